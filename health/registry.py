# ============================================================================
# HEALTH CHECK REGISTRY
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Infrastructure - Health check plugin registration
# PURPOSE: Register health check plugins once at startup
# CREATED: 14 SEP 2026
# ============================================================================
"""
Health Check Registry

Holds the set of health check plugins evaluated by the executor.

Checks are registered once while the application starts, then the
registry is frozen and becomes read-only.

Usage:
    registry = HealthCheckRegistry()
    registry.register(PostgresCheck(pool))
    registry.freeze()

    critical = registry.get_critical_checks()
"""

import logging
from typing import Dict, List, Optional

from health.core import HealthCheckPlugin

logger = logging.getLogger(__name__)


class RegistryFrozenError(RuntimeError):
    """Raised when registering into a registry that has been frozen."""


class HealthCheckRegistry:
    """
    Registry for health check plugins.

    Names are unique keys; registration order is kept for reporting.
    """

    def __init__(self):
        self._checks: Dict[str, HealthCheckPlugin] = {}
        self._frozen = False

    def register(self, check: HealthCheckPlugin) -> HealthCheckPlugin:
        """
        Register a health check plugin instance.

        Args:
            check: Plugin instance to register

        Returns:
            The registered plugin

        Raises:
            RegistryFrozenError: If the registry has been frozen
        """
        if self._frozen:
            raise RegistryFrozenError(
                f"Cannot register '{check.name}': registry is frozen"
            )

        if check.name in self._checks:
            logger.warning(f"Overwriting health check: {check.name}")

        self._checks[check.name] = check
        logger.debug(
            f"Registered health check: {check.name} (critical={check.critical})"
        )
        return check

    def get(self, name: str) -> Optional[HealthCheckPlugin]:
        """Get health check by name."""
        return self._checks.get(name)

    def get_all(self) -> List[HealthCheckPlugin]:
        """Get all registered checks."""
        return list(self._checks.values())

    def get_critical_checks(self) -> List[HealthCheckPlugin]:
        """Get checks that gate readiness and may force UNHEALTHY."""
        return [c for c in self._checks.values() if c.critical]

    def critical_names(self) -> List[str]:
        return [c.name for c in self.get_critical_checks()]

    def freeze(self) -> None:
        """Make the registry read-only."""
        self._frozen = True
        logger.info(
            f"Health check registry frozen ({len(self._checks)} checks, "
            f"{len(self.get_critical_checks())} critical)"
        )

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def __len__(self) -> int:
        return len(self._checks)

    def __contains__(self, name: str) -> bool:
        return name in self._checks


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "HealthCheckRegistry",
    "RegistryFrozenError",
]
