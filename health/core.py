# ============================================================================
# HEALTH CHECK CORE TYPES
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Infrastructure - Base classes for health checks
# PURPOSE: Health check plugin interfaces, result and report types
# CREATED: 14 SEP 2026
# ============================================================================
"""
Health Check Core Types

Defines the plugin interface, the per-service result and the aggregated
report.

Status values:
- healthy: Service operational
- degraded: Operational with warnings (non-blocking issues)
- unhealthy: Service failing
- not_configured: Optional service absent; shown in reports but never
  counted towards the overall status

Overall status reduction (first match wins):
1. Any critical check unhealthy -> unhealthy
2. Any check unhealthy or degraded -> degraded
3. Otherwise -> healthy
"""

import time
from abc import ABC, abstractmethod
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Set
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

import psutil


class HealthStatus(str, Enum):
    """Health check status values."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    NOT_CONFIGURED = "not_configured"

    @property
    def counts_towards_overall(self) -> bool:
        return self is not HealthStatus.NOT_CONFIGURED


def reduce_statuses(
    results: Mapping[str, "HealthCheckResult"],
    critical: Iterable[str],
) -> HealthStatus:
    """
    Reduce per-service results to one overall status.

    Args:
        results: Mapping of check name to result
        critical: Names of checks allowed to force UNHEALTHY

    Returns:
        HEALTHY, DEGRADED or UNHEALTHY (never NOT_CONFIGURED)
    """
    critical_names: Set[str] = set(critical)
    counted = {
        name: result for name, result in results.items()
        if result.status.counts_towards_overall
    }

    if any(
        result.status == HealthStatus.UNHEALTHY
        for name, result in counted.items()
        if name in critical_names
    ):
        return HealthStatus.UNHEALTHY

    if any(
        result.status in (HealthStatus.UNHEALTHY, HealthStatus.DEGRADED)
        for result in counted.values()
    ):
        return HealthStatus.DEGRADED

    return HealthStatus.HEALTHY


@dataclass(frozen=True)
class HealthCheckResult:
    """Result from a single health check. Immutable once produced."""
    status: HealthStatus
    response_time_ms: Optional[float] = None
    error: Optional[str] = None
    details: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    @classmethod
    def healthy(cls, response_time_ms: float = None, **details) -> "HealthCheckResult":
        """Create healthy result."""
        return cls(
            status=HealthStatus.HEALTHY,
            response_time_ms=response_time_ms,
            details=details,
        )

    @classmethod
    def degraded(cls, error: str = None, response_time_ms: float = None, **details) -> "HealthCheckResult":
        """Create degraded result."""
        return cls(
            status=HealthStatus.DEGRADED,
            response_time_ms=response_time_ms,
            error=error,
            details=details,
        )

    @classmethod
    def unhealthy(cls, error: str, response_time_ms: float = None, **details) -> "HealthCheckResult":
        """Create unhealthy result."""
        return cls(
            status=HealthStatus.UNHEALTHY,
            response_time_ms=response_time_ms,
            error=error,
            details=details,
        )

    @classmethod
    def not_configured(cls, **details) -> "HealthCheckResult":
        """Create result for an optional service that is not set up."""
        return cls(status=HealthStatus.NOT_CONFIGURED, details=details)

    @classmethod
    def from_exception(cls, e: BaseException, response_time_ms: float = None) -> "HealthCheckResult":
        """Create unhealthy result from exception."""
        return cls(
            status=HealthStatus.UNHEALTHY,
            response_time_ms=response_time_ms,
            error=str(e) or type(e).__name__,
            details={"exception_type": type(e).__name__},
        )

    @classmethod
    def timed_out(cls, timeout_seconds: float, response_time_ms: float = None) -> "HealthCheckResult":
        """Create unhealthy result for a check that exceeded its timeout."""
        return cls(
            status=HealthStatus.UNHEALTHY,
            response_time_ms=response_time_ms,
            error=f"Timeout after {timeout_seconds}s",
            details={"timeout": True},
        )

    def with_response_time(self, response_time_ms: float) -> "HealthCheckResult":
        """Return a copy carrying a measured response time (keeps an existing one)."""
        if self.response_time_ms is not None:
            return self
        return replace(self, response_time_ms=response_time_ms)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON response."""
        result: Dict[str, Any] = {"status": self.status.value}
        if self.response_time_ms is not None:
            result["responseTimeMs"] = round(self.response_time_ms, 2)
        if self.error:
            result["error"] = self.error
        if self.details:
            result["details"] = dict(self.details)
        return result


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def process_uptime_seconds() -> float:
    """Seconds since this process was started."""
    return max(0.0, time.time() - psutil.Process().create_time())


@dataclass
class HealthReport:
    """
    Aggregated result of one evaluation.

    Built fresh for every evaluation and discarded once serialized.
    """
    status: HealthStatus
    services: Dict[str, HealthCheckResult]
    uptime_seconds: float
    timestamp: datetime = field(default_factory=utc_now)
    version: Optional[str] = None
    environment: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON response."""
        body: Dict[str, Any] = {
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat().replace("+00:00", "Z"),
            "uptimeSeconds": round(self.uptime_seconds, 3),
        }
        if self.version is not None:
            body["version"] = self.version
        if self.environment is not None:
            body["environment"] = self.environment
        body["services"] = {
            name: result.to_dict()
            for name, result in self.services.items()
        }
        return body


class HealthCheckPlugin(ABC):
    """
    Base class for health check plugins.

    Subclass and implement check() to probe one dependency. Register
    instances with a HealthCheckRegistry at startup.

    Attributes:
        name: Unique identifier for the check (key in the report)
        critical: If True, an unhealthy result forces overall UNHEALTHY
            and the check gates /ready
        timeout_seconds: Max execution time before the executor gives up;
            None uses the executor's default

    check() must not raise: convert failures into an unhealthy result.
    The executor still wraps every call in an exception boundary.

    Example:
        class PostgresCheck(HealthCheckPlugin):
            name = "database"
            critical = True

            async def check(self) -> HealthCheckResult:
                try:
                    await pool.check()
                    return HealthCheckResult.healthy()
                except Exception as e:
                    return HealthCheckResult.from_exception(e)
    """

    name: str = "unnamed"
    critical: bool = False
    timeout_seconds: Optional[float] = None

    @abstractmethod
    async def check(self) -> HealthCheckResult:
        """
        Execute health check.

        Returns:
            HealthCheckResult with status and optional details
        """

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} critical={self.critical}>"
