# ============================================================================
# SERVICE LIFECYCLE
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Core - Process lifecycle management
# PURPOSE: Shutdown state, request gate, server handle, shutdown coordinator
# CREATED: 16 SEP 2026
# ============================================================================
"""
Service Lifecycle

    state.py     - RUNNING -> DRAINING -> TERMINATED state holder
    gate.py      - ASGI middleware rejecting requests while draining
    server.py    - uvicorn server wrapper and drain handle
    shutdown.py  - GracefulShutdown coordinator
"""

from lifecycle.state import ShutdownState, LifecycleState
from lifecycle.gate import GateDecision, RequestGate, ShutdownGateMiddleware, REJECTION_BODY
from lifecycle.server import ServerHandle, ManagedServer, UvicornServerHandle
from lifecycle.shutdown import (
    GracefulShutdown,
    CleanupFailure,
    ShutdownError,
    SHUTDOWN_SIGNALS,
    hard_exit,
)

__all__ = [
    # State
    "ShutdownState",
    "LifecycleState",
    # Gate
    "GateDecision",
    "RequestGate",
    "ShutdownGateMiddleware",
    "REJECTION_BODY",
    # Server
    "ServerHandle",
    "ManagedServer",
    "UvicornServerHandle",
    # Shutdown
    "GracefulShutdown",
    "CleanupFailure",
    "ShutdownError",
    "SHUTDOWN_SIGNALS",
    "hard_exit",
]
