# ============================================================================
# INFRASTRUCTURE MODULE
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Infrastructure - External service clients
# PURPOSE: Shared Redis cache client
# CREATED: 14 SEP 2026
# ============================================================================
"""
Infrastructure module for the Listing API.

Provides:
- init_cache_client / get_cache_client / close_cache_client: optional
  Redis client shared by handlers and the cache health check
"""

from infrastructure.cache import (
    init_cache_client,
    get_cache_client,
    close_cache_client,
)

__all__ = [
    "init_cache_client",
    "get_cache_client",
    "close_cache_client",
]
