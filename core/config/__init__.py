# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 14 SEP 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the Listing API.
"""

from core.config.defaults import (
    ConfigError,
    ShutdownDefaults,
    HealthDefaults,
    ServiceDefaults,
    Defaults,
    get_defaults,
    reset_defaults,
)

__all__ = [
    "ConfigError",
    "ShutdownDefaults",
    "HealthDefaults",
    "ServiceDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
