# ============================================================================
# HEALTH SCHEMAS
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Core - Response schemas
# PURPOSE: Pydantic models documenting the probe endpoint payloads
# CREATED: 17 SEP 2026
# ============================================================================
"""
Health Schemas

Response models for /live, /ready, /health and /health/{name}. Field
names follow the camelCase wire format of the probe payloads.
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class ServiceHealthResponse(BaseModel):
    """Result of one health check."""
    status: str = Field(..., description="healthy, degraded, unhealthy or not_configured")
    responseTimeMs: Optional[float] = None
    error: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class HealthResponse(BaseModel):
    """Aggregated health report."""
    status: str = Field(..., description="healthy, degraded or unhealthy")
    timestamp: str
    uptimeSeconds: float
    version: Optional[str] = None
    environment: Optional[str] = None
    services: Dict[str, ServiceHealthResponse] = {}

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "status": "degraded",
                    "timestamp": "2026-09-17T10:00:00Z",
                    "uptimeSeconds": 3600.5,
                    "version": "1.2.0",
                    "environment": "production",
                    "services": {
                        "database": {"status": "healthy", "responseTimeMs": 2.1},
                        "cache": {
                            "status": "unhealthy",
                            "responseTimeMs": 5000.0,
                            "error": "Timeout after 5.0s",
                        },
                        "email": {"status": "not_configured"},
                    },
                }
            ]
        }
    }


class LivenessResponse(BaseModel):
    """Liveness probe response."""
    status: str = "alive"
    timestamp: str
    uptimeSeconds: float


class ReadinessResponse(BaseModel):
    """Readiness probe response."""
    status: str = Field(..., description="ready or not_ready")
    reason: Optional[str] = Field(
        None,
        description="shutting_down or <check>_unavailable when not ready",
    )
    checks: Optional[Dict[str, ServiceHealthResponse]] = None


class NotFoundResponse(BaseModel):
    error: str


__all__ = [
    "ServiceHealthResponse",
    "HealthResponse",
    "LivenessResponse",
    "ReadinessResponse",
    "NotFoundResponse",
]
