# ============================================================================
# CACHE HEALTH CHECK
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Infrastructure - Redis connectivity check
# PURPOSE: Verify the optional cache answers PING
# CREATED: 14 SEP 2026
# ============================================================================
"""
Cache Health Check

RedisCheck sends PING to the shared Redis client. The cache is optional:
without a client the check reports not_configured and does not affect the
overall status. A failing cache degrades the service but never makes it
unhealthy.
"""

import time
from typing import Callable, Optional

from redis import asyncio as aioredis

from health.core import HealthCheckPlugin, HealthCheckResult
from infrastructure.cache import get_cache_client


class RedisCheck(HealthCheckPlugin):
    """Redis PING health check."""

    name = "cache"
    critical = False

    def __init__(
        self,
        client_provider: Callable[[], Optional[aioredis.Redis]] = get_cache_client,
    ):
        self._client_provider = client_provider

    async def check(self) -> HealthCheckResult:
        client = self._client_provider()
        if client is None:
            return HealthCheckResult.not_configured()

        start = time.monotonic()
        try:
            await client.ping()
        except Exception as e:
            return HealthCheckResult.unhealthy(
                str(e) or "Unknown cache error",
                response_time_ms=(time.monotonic() - start) * 1000,
            )

        return HealthCheckResult.healthy(
            response_time_ms=(time.monotonic() - start) * 1000,
        )


__all__ = [
    "RedisCheck",
]
