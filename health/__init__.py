# ============================================================================
# HEALTH CHECK MODULE
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Infrastructure - Health check plugin system
# PURPOSE: Liveness, readiness and dependency health reporting
# CREATED: 14 SEP 2026
# ============================================================================
"""
Health Check Module

Plugin-based health check system for the Listing API:
- /live: Process alive (instant, no checks)
- /ready: Critical checks healthy and not shutting down
- /health: Full report of every registered check

Architecture:
- HealthCheckPlugin: Base class for health checks
- HealthCheckRegistry: Registration, frozen once the app starts
- HealthCheckExecutor: Concurrent execution with per-check timeouts
- reduce_statuses: Critical/non-critical reduction to one status

Usage:
    from health import HealthCheckExecutor, health_router
    from health.checks import build_default_registry

    app.state.health_executor = HealthCheckExecutor(build_default_registry())
    app.include_router(health_router)
"""

from health.core import (
    HealthStatus,
    HealthCheckResult,
    HealthCheckPlugin,
    HealthReport,
    reduce_statuses,
)
from health.registry import (
    HealthCheckRegistry,
    RegistryFrozenError,
)
from health.executor import HealthCheckExecutor
from health.router import health_router

__all__ = [
    # Core types
    "HealthStatus",
    "HealthCheckResult",
    "HealthCheckPlugin",
    "HealthReport",
    "reduce_statuses",
    # Registry
    "HealthCheckRegistry",
    "RegistryFrozenError",
    # Executor
    "HealthCheckExecutor",
    # Router
    "health_router",
]
