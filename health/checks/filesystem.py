# ============================================================================
# FILESYSTEM HEALTH CHECK
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Infrastructure - Upload directory check
# PURPOSE: Verify the upload directory is present and writable
# CREATED: 14 SEP 2026
# ============================================================================
"""
Filesystem Health Check

UploadDirectoryCheck verifies the upload directory exists, then writes
and immediately deletes a marker file. Critical: listings cannot accept
images without a writable upload directory.

Blocking filesystem calls run in a worker thread so the event loop is
never blocked.
"""

import asyncio
import os
import time
from pathlib import Path

from health.core import HealthCheckPlugin, HealthCheckResult

MARKER_FILENAME = ".health-check"


def _round_trip(directory: Path) -> None:
    if not directory.is_dir():
        raise FileNotFoundError(f"Upload directory not found: {directory}")
    if not os.access(directory, os.W_OK):
        raise PermissionError(f"Upload directory not writable: {directory}")

    marker = directory / MARKER_FILENAME
    marker.write_text("health-check", encoding="utf-8")
    try:
        if marker.read_text(encoding="utf-8") != "health-check":
            raise OSError(f"Marker file content mismatch: {marker}")
    finally:
        marker.unlink(missing_ok=True)


class UploadDirectoryCheck(HealthCheckPlugin):
    """Write/read/delete round trip in the upload directory."""

    name = "filesystem"
    critical = True

    def __init__(self, upload_dir: str = "./uploads"):
        self.upload_dir = Path(upload_dir)

    async def check(self) -> HealthCheckResult:
        start = time.monotonic()
        try:
            await asyncio.to_thread(_round_trip, self.upload_dir)
        except Exception as e:
            return HealthCheckResult.unhealthy(
                str(e) or "Unknown filesystem error",
                response_time_ms=(time.monotonic() - start) * 1000,
                path=str(self.upload_dir),
            )

        return HealthCheckResult.healthy(
            response_time_ms=(time.monotonic() - start) * 1000,
        )


__all__ = [
    "UploadDirectoryCheck",
    "MARKER_FILENAME",
]
