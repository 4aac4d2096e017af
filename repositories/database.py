# ============================================================================
# DATABASE CONNECTION POOL
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Core - Async PostgreSQL connection management
# PURPOSE: Provide connection pooling for psycopg3 async
# CREATED: 14 SEP 2026
# ============================================================================
"""
Database Connection Pool

Manages async PostgreSQL connections using psycopg3 and psycopg_pool.
Singleton pattern ensures one pool per application; the pool is shared by
request handlers and the database health check, and is closed only by the
shutdown coordinator (or the application lifespan in tests).

Usage:
    from repositories.database import init_pool, get_pool

    pool = await init_pool(conninfo)
    async with pool.connection() as conn:
        await conn.execute("SELECT 1")
"""

import logging
from typing import Optional

from psycopg_pool import AsyncConnectionPool

logger = logging.getLogger(__name__)

# Global pool instance
_pool: Optional[AsyncConnectionPool] = None


def mask_conninfo(conninfo: str) -> str:
    """Strip credentials from a connection string for logging."""
    if "@" in conninfo:
        return conninfo.split("@")[-1]
    if "password=" in conninfo:
        head = conninfo.split("password=")[0]
        return head + "password=***"
    return conninfo


async def init_pool(
    conninfo: str,
    min_size: int = 1,
    max_size: int = 10,
) -> AsyncConnectionPool:
    """
    Initialize the global connection pool.

    The pool is opened without waiting for connections, so a database
    outage at startup surfaces through the health checks instead of
    preventing the process from starting.

    Args:
        conninfo: PostgreSQL connection string
        min_size: Minimum connections to maintain
        max_size: Maximum connections allowed

    Returns:
        AsyncConnectionPool instance
    """
    global _pool

    if _pool is not None:
        logger.warning("Pool already initialized, returning existing pool")
        return _pool

    logger.info(f"Initializing connection pool: {mask_conninfo(conninfo)}")

    _pool = AsyncConnectionPool(
        conninfo=conninfo,
        min_size=min_size,
        max_size=max_size,
        open=False,
    )

    await _pool.open(wait=False)
    logger.info(f"Connection pool opened (min={min_size}, max={max_size})")

    return _pool


def get_pool() -> Optional[AsyncConnectionPool]:
    """Get the global connection pool, or None before init_pool()."""
    return _pool


async def close_pool() -> None:
    """Close the global connection pool."""
    global _pool

    if _pool is not None:
        pool, _pool = _pool, None
        await pool.close()
        logger.info("Connection pool closed")


async def ping(pool: AsyncConnectionPool, timeout: float = 5.0) -> None:
    """
    Run a trivial query on a pooled connection.

    Raises:
        psycopg.Error, psycopg_pool.PoolTimeout: When the database is unreachable
    """
    async with pool.connection(timeout=timeout) as conn:
        await conn.execute("SELECT 1")


__all__ = [
    "init_pool",
    "get_pool",
    "close_pool",
    "ping",
    "mask_conninfo",
]
