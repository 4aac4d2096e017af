# ============================================================================
# HEALTH CHECK EXECUTOR
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Infrastructure - Parallel health check execution
# PURPOSE: Fan out to health checks with timeouts and fold the results
# CREATED: 14 SEP 2026
# ============================================================================
"""
Health Check Executor

Evaluates health checks with:
- Concurrent execution of every check (no ordering between checks)
- Per-check timeouts (a hanging check never blocks its siblings)
- Per-check exception boundary (failures become unhealthy results)
- Reduction to one overall status (see health.core.reduce_statuses)

Total evaluation latency is bounded by the largest per-check timeout,
not the sum of them. Nothing is cached: every call re-measures.
"""

import asyncio
import logging
import time
from typing import Callable, Dict, List, Optional

from core.logging import log_context
from health.core import (
    HealthStatus,
    HealthCheckResult,
    HealthCheckPlugin,
    HealthReport,
    process_uptime_seconds,
    reduce_statuses,
)
from health.registry import HealthCheckRegistry

logger = logging.getLogger(__name__)


class HealthCheckExecutor:
    """
    Runs registered health checks concurrently and builds HealthReports.

    The executor itself never raises from evaluate(); every failure mode
    of a check is mapped to an unhealthy result before reduction.
    """

    def __init__(
        self,
        registry: HealthCheckRegistry,
        default_timeout: float = 5.0,
        version: Optional[str] = None,
        environment: Optional[str] = None,
        uptime: Callable[[], float] = process_uptime_seconds,
    ):
        """
        Initialize executor.

        Args:
            registry: Health check registry to evaluate
            default_timeout: Timeout for checks that do not set their own
            version: Reported service version
            environment: Reported deployment environment
            uptime: Callable returning process uptime in seconds
        """
        self.registry = registry
        self.default_timeout = default_timeout
        self.version = version
        self.environment = environment
        self._uptime = uptime

    async def evaluate(self) -> HealthReport:
        """
        Evaluate every registered check.

        Returns:
            HealthReport with the overall status and per-service results
        """
        return await self._evaluate(self.registry.get_all())

    async def evaluate_critical(self) -> HealthReport:
        """
        Evaluate only critical checks.

        Used by the readiness probe; cheaper than evaluate().
        """
        return await self._evaluate(self.registry.get_critical_checks())

    async def execute_single(self, name: str) -> Optional[HealthCheckResult]:
        """Execute a single check by name."""
        check = self.registry.get(name)
        if check is None:
            return None

        results = await self._run_checks([check])
        return results[check.name]

    async def _evaluate(self, checks: List[HealthCheckPlugin]) -> HealthReport:
        start_time = time.monotonic()

        results = await self._run_checks(checks)

        overall = reduce_statuses(
            results,
            critical=(c.name for c in checks if c.critical),
        )

        duration_ms = (time.monotonic() - start_time) * 1000
        log = logger.warning if overall != HealthStatus.HEALTHY else logger.debug
        log(
            f"Health evaluation: {overall.value} "
            f"({len(results)} checks, {duration_ms:.1f}ms)"
        )

        return HealthReport(
            status=overall,
            services=results,
            uptime_seconds=self._uptime(),
            version=self.version,
            environment=self.environment,
        )

    async def _run_checks(
        self,
        checks: List[HealthCheckPlugin],
    ) -> Dict[str, HealthCheckResult]:
        """
        Fan out to every check and collect one result per check.

        return_exceptions keeps a check that ends cancelled (for example
        one that cancels and awaits its own subtask) from aborting the
        gather. Cancelling the evaluation itself still raises.
        """
        outcomes = await asyncio.gather(
            *(self._execute_check(check) for check in checks),
            return_exceptions=True,
        )

        results: Dict[str, HealthCheckResult] = {}
        for check, outcome in zip(checks, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f"Health check {check.name} ended with {outcome!r}")
                outcome = HealthCheckResult.from_exception(outcome)
            results[check.name] = outcome
        return results

    def _timeout_for(self, check: HealthCheckPlugin) -> float:
        if check.timeout_seconds is not None:
            return check.timeout_seconds
        return self.default_timeout

    async def _execute_check(self, check: HealthCheckPlugin) -> HealthCheckResult:
        """Execute a single check with its own timeout and error boundary."""
        timeout = self._timeout_for(check)
        start_time = time.monotonic()

        with log_context(check_name=check.name, component="health"):
            try:
                result = await asyncio.wait_for(_call_check(check), timeout=timeout)

            except asyncio.TimeoutError:
                duration_ms = (time.monotonic() - start_time) * 1000
                logger.warning(f"Health check {check.name} timed out after {timeout}s")
                return HealthCheckResult.timed_out(timeout, duration_ms)

            except Exception as e:
                duration_ms = (time.monotonic() - start_time) * 1000
                logger.error(f"Health check {check.name} raised: {e}")
                return HealthCheckResult.from_exception(e, duration_ms)

            if not isinstance(result, HealthCheckResult):
                logger.error(
                    f"Health check {check.name} returned {type(result).__name__}, "
                    f"expected HealthCheckResult"
                )
                return HealthCheckResult.unhealthy(
                    f"Invalid check result: {type(result).__name__}"
                )

            if result.status == HealthStatus.NOT_CONFIGURED:
                return result

            duration_ms = (time.monotonic() - start_time) * 1000
            logger.debug(
                f"Health check {check.name}: {result.status.value} ({duration_ms:.1f}ms)"
            )
            return result.with_response_time(duration_ms)


async def _call_check(check: HealthCheckPlugin):
    # A TimeoutError raised by the check body (socket, driver) is the
    # check's failure, not the executor's deadline; wait_for only raises
    # its own TimeoutError outside this coroutine.
    try:
        return await check.check()
    except (asyncio.TimeoutError, TimeoutError) as e:
        logger.error(f"Health check {check.name} raised: {e!r}")
        return HealthCheckResult.from_exception(e)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "HealthCheckExecutor",
]
