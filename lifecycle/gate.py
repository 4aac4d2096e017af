# ============================================================================
# REQUEST GATE
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Core - Reject new work once shutdown has begun
# PURPOSE: ASGI middleware answering 503 while the process drains
# CREATED: 16 SEP 2026
# ============================================================================
"""
Request Gate

Once the lifecycle state leaves RUNNING, every new HTTP request is
answered with 503 before any route handler runs. Exempt paths (liveness)
keep answering so orchestrators do not mistake a draining process for a
hung one.

Usage:
    app.add_middleware(
        ShutdownGateMiddleware,
        gate=RequestGate(state),
        exempt_paths=("/live",),
    )
"""

import logging
from enum import Enum
from typing import Iterable

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from lifecycle.state import LifecycleState

logger = logging.getLogger(__name__)

REJECTION_BODY = {
    "error": "Server is shutting down",
    "message": "Please try again later",
}


class GateDecision(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"


class RequestGate:
    """Per-request admission check backed by the lifecycle state."""

    def __init__(self, state: LifecycleState):
        self._state = state

    def check(self) -> GateDecision:
        if self._state.is_accepting:
            return GateDecision.ACCEPT
        return GateDecision.REJECT


class ShutdownGateMiddleware:
    """Pure ASGI middleware; non-HTTP scopes (lifespan) pass through."""

    def __init__(
        self,
        app: ASGIApp,
        gate: RequestGate,
        exempt_paths: Iterable[str] = (),
        retry_after_seconds: int = 5,
    ):
        self.app = app
        self.gate = gate
        self.exempt_paths = frozenset(exempt_paths)
        self.retry_after_seconds = retry_after_seconds

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path") in self.exempt_paths:
            await self.app(scope, receive, send)
            return

        if self.gate.check() is GateDecision.ACCEPT:
            await self.app(scope, receive, send)
            return

        logger.debug(f"Rejected {scope.get('method')} {scope.get('path')}: shutting down")
        response = JSONResponse(
            status_code=503,
            content=REJECTION_BODY,
            headers={
                "Connection": "close",
                "Retry-After": str(self.retry_after_seconds),
            },
        )
        await response(scope, receive, send)


__all__ = [
    "GateDecision",
    "RequestGate",
    "ShutdownGateMiddleware",
    "REJECTION_BODY",
]
