# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Core module initialization
# PURPOSE: Export configuration and logging utilities
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================

from core.config import ConfigError, Defaults, get_defaults
from core.logging import configure_logging, get_logger, log_context

__all__ = [
    # Config
    "ConfigError",
    "Defaults",
    "get_defaults",
    # Logging
    "configure_logging",
    "get_logger",
    "log_context",
]
