# ============================================================================
# REDIS CACHE CLIENT
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Infrastructure - Shared Redis client
# PURPOSE: Single Redis client for handlers and the cache health check
# CREATED: 14 SEP 2026
# ============================================================================
"""
Redis Cache Client

The cache is optional. When REDIS_URL is not set no client is created
and the cache health check reports not_configured.

Usage:
    from infrastructure.cache import init_cache_client, get_cache_client

    client = init_cache_client(settings.redis_url)
    if client is not None:
        await client.ping()
"""

import logging
from typing import Optional

from redis import asyncio as aioredis

logger = logging.getLogger(__name__)

_client: Optional[aioredis.Redis] = None


def init_cache_client(
    url: Optional[str],
    connect_timeout: float = 5.0,
    command_timeout: float = 5.0,
) -> Optional[aioredis.Redis]:
    """
    Create the shared Redis client.

    Connections are established lazily on first command.

    Args:
        url: Redis URL, or None when the cache is not configured

    Returns:
        Redis client, or None when no URL is configured
    """
    global _client

    if not url:
        logger.info("Redis not configured (REDIS_URL unset)")
        return None

    if _client is not None:
        return _client

    logger.info(f"Creating Redis client: {url.split('@')[-1]}")
    _client = aioredis.from_url(
        url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=connect_timeout,
        socket_timeout=command_timeout,
    )
    return _client


def get_cache_client() -> Optional[aioredis.Redis]:
    """Get the shared Redis client, or None if not configured."""
    return _client


async def close_cache_client() -> None:
    """Close the shared Redis client."""
    global _client

    if _client is not None:
        client, _client = _client, None
        await client.aclose()
        logger.info("Redis client closed")


__all__ = [
    "init_cache_client",
    "get_cache_client",
    "close_cache_client",
]
