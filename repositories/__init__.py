# ============================================================================
# REPOSITORIES MODULE
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Core - Database access layer
# PURPOSE: Shared PostgreSQL connection pool
# CREATED: 14 SEP 2026
# ============================================================================
"""
Repositories Module

Uses psycopg3 async with connection pooling.

Usage:
    from repositories import init_pool, get_pool

    await init_pool(settings.service.database_url)
    async with get_pool().connection() as conn:
        await conn.execute("SELECT 1")
"""

from .database import init_pool, get_pool, close_pool, ping, mask_conninfo

__all__ = [
    "init_pool",
    "get_pool",
    "close_pool",
    "ping",
    "mask_conninfo",
]
