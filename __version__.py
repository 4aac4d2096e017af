# ============================================================================
# VERSION - LISTING API
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# ============================================================================
"""
Version information for the Listing API service.

This is the single source of truth for the application version.
Updated manually for each release.
"""
# Version format: major.minor.patch
__version__ = "1.2.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Build metadata
BUILD_DATE = "2026-10-19"

EPOCH = 2
CODENAME = "Listing API"
