# ============================================================================
# SERVER HANDLE
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Core - Listening socket and connection control
# PURPOSE: Let the shutdown coordinator stop and drain the HTTP server
# CREATED: 16 SEP 2026
# ============================================================================
"""
Server Handle

The shutdown coordinator talks to the HTTP server through ServerHandle:
stop accepting, count open connections, force-close what is left, and
finally let serve() return.

ManagedServer is a uvicorn.Server that does not install its own signal
handlers; SIGTERM/SIGINT belong to GracefulShutdown.
"""

import contextlib
import logging
from typing import Protocol, runtime_checkable

import uvicorn

logger = logging.getLogger(__name__)


@runtime_checkable
class ServerHandle(Protocol):
    """What the shutdown coordinator needs from an HTTP server."""

    def stop_accepting(self) -> None:
        """Close listening sockets; in-flight connections stay open."""
        ...

    def open_connections(self) -> int:
        """Number of client connections still open."""
        ...

    def close_connections(self) -> int:
        """Force-close remaining connections; returns how many were closed."""
        ...

    def request_exit(self) -> None:
        """Ask the serve loop to return."""
        ...


class ManagedServer(uvicorn.Server):
    """uvicorn server with signal handling delegated to GracefulShutdown."""

    def install_signal_handlers(self) -> None:
        # uvicorn < 0.29
        pass

    @contextlib.contextmanager
    def capture_signals(self):
        # uvicorn >= 0.29
        yield


class UvicornServerHandle:
    """ServerHandle backed by a running uvicorn.Server."""

    def __init__(self, server: uvicorn.Server):
        self._server = server

    def stop_accepting(self) -> None:
        for listener in getattr(self._server, "servers", []):
            listener.close()

        # Idle keep-alive connections close now; busy ones after their response
        for connection in list(self._server.server_state.connections):
            connection.shutdown()

        logger.info(
            f"HTTP server stopped accepting connections "
            f"({self.open_connections()} still open)"
        )

    def open_connections(self) -> int:
        return len(self._server.server_state.connections)

    def close_connections(self) -> int:
        closed = 0
        for connection in list(self._server.server_state.connections):
            transport = getattr(connection, "transport", None)
            if transport is not None and not transport.is_closing():
                transport.abort()
                closed += 1
        return closed

    def request_exit(self) -> None:
        self._server.should_exit = True


__all__ = [
    "ServerHandle",
    "ManagedServer",
    "UvicornServerHandle",
]
