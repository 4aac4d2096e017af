# ============================================================================
# LIFECYCLE STATE
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Core - Process lifecycle state holder
# PURPOSE: Single-writer holder of RUNNING -> DRAINING -> TERMINATED
# CREATED: 16 SEP 2026
# ============================================================================
"""
Lifecycle State

The shutdown coordinator is the only writer; the request gate, the
readiness probe and anything else only read.

Transitions are serialized through a lock so that a trigger arriving from
another thread (excepthook, signal fallback) cannot race the event loop.
"""

import threading
from enum import Enum


class ShutdownState(str, Enum):
    """Process lifecycle states."""
    RUNNING = "running"
    DRAINING = "draining"
    TERMINATED = "terminated"


class LifecycleState:
    """Process-wide lifecycle state holder."""

    def __init__(self):
        self._lock = threading.Lock()
        self._state = ShutdownState.RUNNING
        self._reason = None

    @property
    def state(self) -> ShutdownState:
        return self._state

    @property
    def reason(self):
        """Reason given to the first shutdown trigger, if any."""
        return self._reason

    @property
    def is_accepting(self) -> bool:
        return self._state is ShutdownState.RUNNING

    @property
    def is_shutting_down(self) -> bool:
        return self._state is not ShutdownState.RUNNING

    def begin_draining(self, reason: str) -> bool:
        """
        Atomically move RUNNING -> DRAINING.

        Returns:
            True for the caller that performed the transition, False for
            every later caller.
        """
        with self._lock:
            if self._state is not ShutdownState.RUNNING:
                return False
            self._state = ShutdownState.DRAINING
            self._reason = reason
            return True

    def mark_terminated(self) -> None:
        with self._lock:
            self._state = ShutdownState.TERMINATED

    def __repr__(self) -> str:
        return f"<LifecycleState {self._state.value}>"


__all__ = [
    "ShutdownState",
    "LifecycleState",
]
