# ============================================================================
# HEALTH CHECK ROUTER
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Infrastructure - FastAPI health check endpoints
# PURPOSE: Liveness, readiness and health report endpoints
# CREATED: 17 SEP 2026
# ============================================================================
"""
Health Check Router

Endpoints:
    GET /live    - Liveness probe. Always 200 while the process can answer;
                   runs no checks.

    GET /ready   - Readiness probe. Runs critical checks only.
                   200 when they reduce to healthy, 503 otherwise
                   (degraded is not ready). 503 with reason
                   "shutting_down" while the process drains.

    GET /health  - Full report of every registered check.

    GET /health/{check_name} - Single check status

Response Codes:
    200 - Healthy or degraded
    503 - Unhealthy (service unavailable)

The router reads its collaborators from app.state:
    app.state.health_executor  - HealthCheckExecutor
    app.state.lifecycle        - LifecycleState
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from health.core import HealthStatus, process_uptime_seconds, utc_now
from health.executor import HealthCheckExecutor
from health.schemas import (
    HealthResponse,
    LivenessResponse,
    NotFoundResponse,
    ReadinessResponse,
    ServiceHealthResponse,
)
from lifecycle.state import LifecycleState

logger = logging.getLogger(__name__)

health_router = APIRouter(tags=["Health"])


def _status_to_http_code(status: HealthStatus) -> int:
    """Map health status to HTTP status code."""
    return {
        HealthStatus.HEALTHY: 200,
        HealthStatus.DEGRADED: 200,
        HealthStatus.UNHEALTHY: 503,
        HealthStatus.NOT_CONFIGURED: 200,
    }[status]


def _executor(request: Request) -> HealthCheckExecutor:
    return request.app.state.health_executor


def _lifecycle(request: Request) -> LifecycleState:
    return request.app.state.lifecycle


# ============================================================================
# LIVENESS PROBE
# ============================================================================

@health_router.get("/live", response_model=LivenessResponse)
async def liveness_probe():
    """
    Liveness probe.

    No dependency checks: a failing database must not get the process
    restarted, only taken out of rotation by /ready.
    """
    return {
        "status": "alive",
        "timestamp": utc_now().isoformat().replace("+00:00", "Z"),
        "uptimeSeconds": round(process_uptime_seconds(), 3),
    }


# ============================================================================
# READINESS PROBE
# ============================================================================

@health_router.get(
    "/ready",
    response_model=ReadinessResponse,
    response_model_exclude_none=True,
    responses={503: {"model": ReadinessResponse}},
)
async def readiness_probe(request: Request):
    """
    Readiness probe.

    Returns 200 only when every critical check is healthy. Non-critical
    checks (cache, memory, notification channels) never affect readiness.
    """
    lifecycle = _lifecycle(request)
    if lifecycle.is_shutting_down:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "reason": "shutting_down"},
        )

    report = await _executor(request).evaluate_critical()

    if report.status != HealthStatus.HEALTHY:
        failing = {
            name: result.to_dict()
            for name, result in report.services.items()
            if result.status in (HealthStatus.UNHEALTHY, HealthStatus.DEGRADED)
        }
        reason = ",".join(f"{name}_unavailable" for name in failing)
        logger.warning(f"Readiness failed: {reason}")
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "reason": reason, "checks": failing},
        )

    return {"status": "ready"}


# ============================================================================
# FULL HEALTH CHECK
# ============================================================================

@health_router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def full_health_check(request: Request):
    """
    Comprehensive health check.

    Runs all registered checks concurrently and returns the report.

    Returns:
        200: Healthy or degraded
        503: A critical check is unhealthy
    """
    report = await _executor(request).evaluate()
    return JSONResponse(
        status_code=_status_to_http_code(report.status),
        content=report.to_dict(),
    )


# ============================================================================
# SINGLE CHECK
# ============================================================================

@health_router.get(
    "/health/{check_name}",
    response_model=ServiceHealthResponse,
    responses={404: {"model": NotFoundResponse}, 503: {"model": ServiceHealthResponse}},
)
async def single_health_check(check_name: str, request: Request):
    """
    Run a single health check by name.

    Useful for debugging specific components.
    """
    result = await _executor(request).execute_single(check_name)

    if result is None:
        return JSONResponse(
            status_code=404,
            content={"error": f"Health check not found: {check_name}"},
        )

    return JSONResponse(
        status_code=_status_to_http_code(result.status),
        content=result.to_dict(),
    )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "health_router",
]
