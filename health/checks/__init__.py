# ============================================================================
# HEALTH CHECK PLUGINS
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Infrastructure - Health check implementations
# PURPOSE: Concrete health checks for the Listing API dependencies
# CREATED: 14 SEP 2026
# ============================================================================
"""
Health Check Plugins

Critical checks (gate /ready, may force overall unhealthy):
- database: PostgreSQL SELECT 1
- filesystem: upload directory write/delete round trip

Non-critical checks (may at most degrade):
- cache: Redis PING (not_configured without REDIS_URL)
- memory: process memory pressure
- email, sms, push: optional notification channels

build_default_registry() wires all of them and freezes the registry.
"""

from typing import Optional

from core.config import HealthDefaults
from health.registry import HealthCheckRegistry
from health.checks.database import PostgresCheck
from health.checks.cache import RedisCheck
from health.checks.filesystem import UploadDirectoryCheck
from health.checks.memory import MemoryCheck, MemorySample, sample_process_memory
from health.checks.integrations import EmailCheck, SmsCheck, PushCheck


def build_default_registry(
    settings: Optional[HealthDefaults] = None,
) -> HealthCheckRegistry:
    """
    Create the registry of production checks.

    Args:
        settings: Health defaults (upload dir, memory thresholds)

    Returns:
        Frozen HealthCheckRegistry
    """
    settings = settings or HealthDefaults()
    registry = HealthCheckRegistry()

    registry.register(PostgresCheck(query_timeout=settings.probe_timeout_seconds))
    registry.register(RedisCheck())
    registry.register(UploadDirectoryCheck(settings.upload_dir))
    registry.register(MemoryCheck(
        degraded_percent=settings.memory_degraded_percent,
        unhealthy_percent=settings.memory_unhealthy_percent,
    ))
    registry.register(EmailCheck())
    registry.register(SmsCheck())
    registry.register(PushCheck())

    registry.freeze()
    return registry


__all__ = [
    "build_default_registry",
    # Critical
    "PostgresCheck",
    "UploadDirectoryCheck",
    # Non-critical
    "RedisCheck",
    "MemoryCheck",
    "MemorySample",
    "sample_process_memory",
    "EmailCheck",
    "SmsCheck",
    "PushCheck",
]
