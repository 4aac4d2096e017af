# ============================================================================
# MEMORY HEALTH CHECK
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Infrastructure - In-process memory inspection
# PURPOSE: Flag memory pressure before the process is OOM-killed
# CREATED: 14 SEP 2026
# ============================================================================
"""
Memory Health Check

Computes used / total for the process and classifies it:
    > 90%  unhealthy
    > 75%  degraded
    else   healthy

The default sampler uses psutil: used is the process resident set, total
is the resident set plus the memory still available to the system, i.e.
the ceiling the process could grow to. Inside a container the cgroup
memory limit caps that ceiling. Tests inject their own sampler.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional

import psutil

from health.core import HealthCheckPlugin, HealthCheckResult

_MB = 1024 * 1024


# cgroup v2, then v1; the first readable file wins
CGROUP_LIMIT_FILES = (
    Path("/sys/fs/cgroup/memory.max"),
    Path("/sys/fs/cgroup/memory/memory.limit_in_bytes"),
)


@dataclass(frozen=True)
class MemorySample:
    """Point-in-time memory reading (bytes)."""
    used_bytes: int
    total_bytes: int
    rss_bytes: int

    @property
    def usage_percent(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return (self.used_bytes / self.total_bytes) * 100


def cgroup_memory_limit(paths: Iterable[Path] = CGROUP_LIMIT_FILES) -> Optional[int]:
    """
    Container memory limit in bytes, or None when unlimited or not in a cgroup.

    v2 writes "max" for no limit; v1 writes a huge page-aligned number,
    which the caller's min() against system memory absorbs.
    """
    for path in paths:
        try:
            raw = path.read_text().strip()
        except OSError:
            continue
        if raw == "max":
            return None
        try:
            limit = int(raw)
        except ValueError:
            return None
        return limit if limit > 0 else None
    return None


def sample_process_memory(
    limit_reader: Callable[[], Optional[int]] = cgroup_memory_limit,
) -> MemorySample:
    """Sample this process's memory with psutil, capped by any cgroup limit."""
    rss = psutil.Process().memory_info().rss
    total = rss + psutil.virtual_memory().available

    limit = limit_reader()
    if limit is not None:
        total = min(total, limit)

    return MemorySample(used_bytes=rss, total_bytes=total, rss_bytes=rss)


class MemoryCheck(HealthCheckPlugin):
    """Process memory pressure check."""

    name = "memory"
    critical = False

    def __init__(
        self,
        sampler: Callable[[], MemorySample] = sample_process_memory,
        degraded_percent: float = 75.0,
        unhealthy_percent: float = 90.0,
    ):
        self._sampler = sampler
        self.degraded_percent = degraded_percent
        self.unhealthy_percent = unhealthy_percent

    async def check(self) -> HealthCheckResult:
        try:
            sample = self._sampler()
        except Exception as e:
            return HealthCheckResult.from_exception(e)

        percent = sample.usage_percent
        details = {
            "heapUsedMb": round(sample.used_bytes / _MB),
            "heapTotalMb": round(sample.total_bytes / _MB),
            "usagePercent": percent,
            "rssMb": round(sample.rss_bytes / _MB),
        }

        if percent > self.unhealthy_percent:
            return HealthCheckResult.unhealthy(
                f"Memory usage {percent:.1f}% above {self.unhealthy_percent:g}%",
                **details,
            )
        if percent > self.degraded_percent:
            return HealthCheckResult.degraded(
                f"Memory usage {percent:.1f}% above {self.degraded_percent:g}%",
                **details,
            )
        return HealthCheckResult.healthy(**details)


__all__ = [
    "MemoryCheck",
    "MemorySample",
    "cgroup_memory_limit",
    "sample_process_memory",
]
