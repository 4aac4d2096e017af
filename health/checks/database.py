# ============================================================================
# DATABASE HEALTH CHECK
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Infrastructure - PostgreSQL connectivity check
# PURPOSE: Verify the persistent store answers queries
# CREATED: 14 SEP 2026
# ============================================================================
"""
Database Health Check

PostgresCheck runs SELECT 1 on a pooled connection. It is critical: an
unhealthy database makes the whole service unhealthy and not ready.
"""

import time
from typing import Callable, Optional

from psycopg_pool import AsyncConnectionPool

from health.core import HealthCheckPlugin, HealthCheckResult
from repositories.database import get_pool, ping


class PostgresCheck(HealthCheckPlugin):
    """
    PostgreSQL connectivity health check.

    The pool is resolved on every run so the check follows the pool
    lifecycle (not initialised at startup, closed during shutdown).
    """

    name = "database"
    critical = True

    def __init__(
        self,
        pool_provider: Callable[[], Optional[AsyncConnectionPool]] = get_pool,
        query_timeout: float = 5.0,
    ):
        self._pool_provider = pool_provider
        self._query_timeout = query_timeout

    async def check(self) -> HealthCheckResult:
        pool = self._pool_provider()
        if pool is None:
            return HealthCheckResult.unhealthy("Connection pool not initialized")

        start = time.monotonic()
        try:
            await ping(pool, timeout=self._query_timeout)
        except Exception as e:
            elapsed_ms = (time.monotonic() - start) * 1000
            return HealthCheckResult.unhealthy(
                str(e) or "Unknown database error",
                response_time_ms=elapsed_ms,
            )

        return HealthCheckResult.healthy(
            response_time_ms=(time.monotonic() - start) * 1000,
        )


__all__ = [
    "PostgresCheck",
]
