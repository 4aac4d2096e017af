# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for shutdown, health checks, service wiring
# CREATED: 14 SEP 2026
# ============================================================================
"""
Configuration Defaults

Provides defaults for the lifecycle subsystem. Every value can be
overridden via environment variables.

Durations are configured in milliseconds (operator facing) and exposed
in seconds (asyncio facing).

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
from dataclasses import dataclass, field
from typing import Optional


class ConfigError(Exception):
    """Raised when configuration is invalid."""


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


def _env_ms(name: str, default_ms: int) -> float:
    """Read a millisecond duration and return seconds."""
    value = _env_int(name, default_ms)
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value / 1000.0


@dataclass(frozen=True)
class ShutdownDefaults:
    """
    Defaults for graceful shutdown.

    deadline_seconds is absolute: once exceeded the process is forced to
    exit with a failure code regardless of in-progress cleanup.
    """
    deadline_seconds: float = 30.0
    drain_grace_seconds: float = 5.0

    @classmethod
    def from_env(cls) -> "ShutdownDefaults":
        """Create from environment variables."""
        return cls(
            deadline_seconds=_env_ms("SHUTDOWN_TIMEOUT_MS", 30000),
            drain_grace_seconds=_env_ms("SHUTDOWN_DRAIN_GRACE_MS", 5000),
        )


@dataclass(frozen=True)
class HealthDefaults:
    """
    Defaults for health probes.

    Controls probe timeouts, upload directory and memory thresholds.
    """
    probe_timeout_seconds: float = 5.0
    upload_dir: str = "./uploads"

    # Memory thresholds (percent of total)
    memory_degraded_percent: float = 75.0
    memory_unhealthy_percent: float = 90.0

    @classmethod
    def from_env(cls) -> "HealthDefaults":
        """Create from environment variables."""
        degraded = float(_env_int("MEMORY_DEGRADED_PERCENT", 75))
        unhealthy = float(_env_int("MEMORY_UNHEALTHY_PERCENT", 90))
        if degraded >= unhealthy:
            raise ConfigError(
                "MEMORY_DEGRADED_PERCENT must be below MEMORY_UNHEALTHY_PERCENT"
            )
        return cls(
            probe_timeout_seconds=_env_ms("HEALTH_PROBE_TIMEOUT_MS", 5000),
            upload_dir=os.getenv("UPLOAD_DIR", "./uploads"),
            memory_degraded_percent=degraded,
            memory_unhealthy_percent=unhealthy,
        )


@dataclass(frozen=True)
class ServiceDefaults:
    """
    Defaults for the HTTP service and its dependencies.

    database_url is DATABASE_URL, or is built from POSTGRES_* components
    when POSTGRES_HOST is set; without either it stays None. redis_url is
    optional (cache is not configured without it).
    """
    host: str = "0.0.0.0"
    port: int = 3001
    environment: str = "development"
    log_level: str = "INFO"
    log_json: bool = False
    database_url: Optional[str] = None
    redis_url: Optional[str] = None

    @staticmethod
    def _database_url_from_env() -> Optional[str]:
        if url := os.getenv("DATABASE_URL"):
            return url

        host = os.getenv("POSTGRES_HOST")
        if not host:
            return None
        port = os.getenv("POSTGRES_PORT", "5432")
        name = os.getenv("POSTGRES_DB", "postgres")
        user = os.getenv("POSTGRES_USER", "postgres")
        password = os.getenv("POSTGRES_PASSWORD", "")
        sslmode = os.getenv("POSTGRES_SSLMODE", "prefer")

        return f"postgresql://{user}:{password}@{host}:{port}/{name}?sslmode={sslmode}"

    @classmethod
    def from_env(cls) -> "ServiceDefaults":
        """Create from environment variables."""
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=_env_int("PORT", 3001),
            environment=os.getenv("ENVIRONMENT", os.getenv("NODE_ENV", "development")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_json=os.getenv("LOG_FORMAT", "").lower() == "json",
            database_url=cls._database_url_from_env(),
            redis_url=os.getenv("REDIS_URL") or None,
        )


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

@dataclass
class Defaults:
    """Container for all default configurations."""
    shutdown: ShutdownDefaults = field(default_factory=ShutdownDefaults)
    health: HealthDefaults = field(default_factory=HealthDefaults)
    service: ServiceDefaults = field(default_factory=ServiceDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        """Create all defaults from environment variables."""
        return cls(
            shutdown=ShutdownDefaults.from_env(),
            health=HealthDefaults.from_env(),
            service=ServiceDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ConfigError",
    "ShutdownDefaults",
    "HealthDefaults",
    "ServiceDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
