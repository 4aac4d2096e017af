# ============================================================================
# GRACEFUL SHUTDOWN COORDINATOR
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Core - Orderly, time-bounded process shutdown
# PURPOSE: Drain connections, run cleanup, disconnect dependencies, exit
# CREATED: 16 SEP 2026
# ============================================================================
"""
Graceful Shutdown Coordinator

Every shutdown trigger (SIGTERM, SIGINT, SIGUSR2, an unhandled exception
in the event loop, an uncaught exception in any thread) funnels into
GracefulShutdown.trigger(reason). The first trigger wins; later ones are
logged and ignored.

Sequence (each step best-effort, failures logged and recorded):
    1. Flip the lifecycle state to DRAINING (request gate starts
       rejecting) and stop the listening socket.
    2. Wait up to the drain grace window for open connections, then
       force-close the rest.
    3. Run all cleanup tasks concurrently.
    4. Disconnect the database and cache concurrently.
    5. Cancel the deadline and exit 0.

The deadline timer starts with step 1. If it fires first, the sequence is
cancelled (no later step runs) and the process exits 1.

Usage:
    shutdown = GracefulShutdown.from_defaults(get_defaults().shutdown, state)
    shutdown.set_server(UvicornServerHandle(server))
    shutdown.set_database(close_pool)
    shutdown.add_cleanup_task(flush_search_index, name="search_index")
    shutdown.install(asyncio.get_running_loop())
"""

import asyncio
import logging
import os
import signal
import sys
import threading
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from core.config import ShutdownDefaults
from core.logging import ComponentType, get_logger, log_checkpoint, log_context
from lifecycle.server import ServerHandle
from lifecycle.state import LifecycleState, ShutdownState

logger = get_logger(__name__, ComponentType.LIFECYCLE)

CleanupTask = Callable[[], Awaitable[None]]
ExitFunc = Callable[[int], None]

SHUTDOWN_SIGNALS = ("SIGTERM", "SIGINT", "SIGUSR2")


class ShutdownError(Exception):
    """Raised for misuse of the shutdown coordinator."""


@dataclass(frozen=True)
class CleanupFailure:
    """A shutdown step that raised; recorded instead of propagated."""
    step: str
    name: str
    error: str
    exception_type: str


def hard_exit(code: int) -> None:
    """Flush logging and terminate the process immediately."""
    logging.shutdown()
    os._exit(code)


class GracefulShutdown:
    """
    Coordinates the RUNNING -> DRAINING -> TERMINATED lifecycle.

    Runs on the event loop; triggers from other threads are marshalled
    onto the loop with call_soon_threadsafe.
    """

    DRAIN_POLL_SECONDS = 0.1

    def __init__(
        self,
        state: Optional[LifecycleState] = None,
        deadline_seconds: float = 30.0,
        drain_grace_seconds: float = 5.0,
        exit_func: ExitFunc = hard_exit,
    ):
        if deadline_seconds <= 0 or drain_grace_seconds < 0:
            raise ShutdownError("Shutdown timeouts must be positive")

        self.state = state or LifecycleState()
        self.deadline_seconds = deadline_seconds
        self.drain_grace_seconds = drain_grace_seconds
        self._exit = exit_func

        self._server: Optional[ServerHandle] = None
        self._resources: Dict[str, CleanupTask] = {}
        self._cleanup_tasks: List[Tuple[str, CleanupTask]] = []

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._sequence_task: Optional[asyncio.Task] = None
        self._deadline_handle: Optional[asyncio.TimerHandle] = None
        self._deadline_fired = False
        self._installed_signals: List[int] = []
        self._previous_hooks = None

        self.failures: List[CleanupFailure] = []
        self.exit_code: Optional[int] = None

    @classmethod
    def from_defaults(
        cls,
        defaults: ShutdownDefaults,
        state: Optional[LifecycleState] = None,
        **kwargs,
    ) -> "GracefulShutdown":
        return cls(
            state=state,
            deadline_seconds=defaults.deadline_seconds,
            drain_grace_seconds=defaults.drain_grace_seconds,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def set_server(self, server: ServerHandle) -> None:
        self._server = server

    def set_database(self, close: CleanupTask) -> None:
        """Register the coroutine function that closes the database pool."""
        self._resources["database"] = close

    def set_cache(self, close: CleanupTask) -> None:
        """Register the coroutine function that closes the cache client."""
        self._resources["cache"] = close

    def add_cleanup_task(self, task: CleanupTask, name: Optional[str] = None) -> None:
        """
        Register a cleanup task to run during shutdown.

        Tasks run concurrently with each other and have no ordering
        guarantee; a task that depends on another must sequence itself.

        Raises:
            ShutdownError: If shutdown has already begun
        """
        if self.state.is_shutting_down:
            raise ShutdownError("Cannot add cleanup tasks once shutdown has begun")
        name = name or getattr(task, "__qualname__", repr(task))
        self._cleanup_tasks.append((name, task))

    @property
    def is_shutting_down(self) -> bool:
        return self.state.is_shutting_down

    @property
    def cleanup_task_names(self) -> List[str]:
        return [name for name, _ in self._cleanup_tasks]

    # ------------------------------------------------------------------
    # Trigger wiring
    # ------------------------------------------------------------------

    def install(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """
        Route signals and uncaught errors to trigger().

        Must be called from the thread running the event loop.
        """
        loop = loop or asyncio.get_running_loop()
        self._loop = loop

        for name in SHUTDOWN_SIGNALS:
            sig = getattr(signal, name, None)
            if sig is None:
                continue
            try:
                loop.add_signal_handler(sig, self.trigger, name)
                self._installed_signals.append(sig)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                # Windows, or not running in the main thread
                logger.debug(f"Could not install handler for {name}: {e}")

        self._previous_hooks = (
            loop.get_exception_handler(),
            sys.excepthook,
            threading.excepthook,
        )
        loop.set_exception_handler(self._on_loop_exception)
        sys.excepthook = self._on_uncaught_exception
        threading.excepthook = self._on_thread_exception

        logger.info(
            f"Graceful shutdown handlers installed "
            f"(deadline={self.deadline_seconds}s, grace={self.drain_grace_seconds}s)"
        )

    def uninstall(self) -> None:
        """Remove handlers added by install()."""
        if self._loop is not None and not self._loop.is_closed():
            for sig in self._installed_signals:
                self._loop.remove_signal_handler(sig)
        self._installed_signals.clear()

        if self._previous_hooks is not None:
            loop_handler, excepthook, thread_hook = self._previous_hooks
            if self._loop is not None and not self._loop.is_closed():
                self._loop.set_exception_handler(loop_handler)
            sys.excepthook = excepthook
            threading.excepthook = thread_hook
            self._previous_hooks = None

    def trigger(self, reason: str) -> Optional[asyncio.Task]:
        """
        Single entry point for every shutdown request.

        Must run on the event loop thread. Returns the shutdown sequence
        task for the first call and None for every later call.
        """
        loop = self._loop or asyncio.get_running_loop()

        if not self.state.begin_draining(reason):
            logger.info(f"Shutdown already in progress, ignoring {reason}")
            return None

        self._loop = loop
        with log_context(shutdown_reason=reason, component="lifecycle"):
            logger.info(f"Received {reason}. Starting graceful shutdown...")
            log_checkpoint(
                "shutdown_started",
                {"reason": reason, "deadline_seconds": self.deadline_seconds},
                logger=logging.getLogger(__name__),
            )
            self._deadline_handle = loop.call_later(
                self.deadline_seconds, self._on_deadline, reason
            )
            self._sequence_task = loop.create_task(self._run_sequence(reason))

        return self._sequence_task

    def trigger_threadsafe(self, reason: str) -> None:
        """Trigger from any thread; exits 1 when no event loop is running."""
        loop = self._loop
        if loop is None or loop.is_closed() or not loop.is_running():
            logger.critical(f"{reason} with no running event loop, exiting")
            self.state.begin_draining(reason)
            self._terminate(1)
            return
        loop.call_soon_threadsafe(self.trigger, reason)

    async def shutdown(self, reason: str = "manual") -> None:
        """Trigger shutdown and wait until the sequence ends."""
        task = self.trigger(reason)
        if task is None:
            return
        await asyncio.wait([task])

    # ------------------------------------------------------------------
    # Error hooks
    # ------------------------------------------------------------------

    def _on_loop_exception(self, loop, context: dict) -> None:
        exc = context.get("exception")
        message = context.get("message", "Unhandled exception in event loop")
        logger.error(f"Unhandled async exception: {message}", exc_info=exc)
        self.trigger("unhandled_rejection")

    def _on_uncaught_exception(self, exc_type, exc, tb) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc, tb)
            return
        logger.critical("Uncaught exception", exc_info=(exc_type, exc, tb))
        self.trigger_threadsafe("uncaught_exception")

    def _on_thread_exception(self, args) -> None:
        if args.exc_type is SystemExit:
            return
        thread_name = args.thread.name if args.thread is not None else "unknown"
        logger.critical(
            f"Uncaught exception in thread {thread_name}",
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )
        self.trigger_threadsafe("uncaught_exception")

    # ------------------------------------------------------------------
    # Sequence
    # ------------------------------------------------------------------

    async def _run_sequence(self, reason: str) -> None:
        try:
            await self._drain_server()
            await self._run_cleanup_tasks()
            await self._disconnect_resources()
        except asyncio.CancelledError:
            logger.warning("Shutdown sequence cancelled")
            raise

        if self._server is not None:
            try:
                self._server.request_exit()
            except Exception as e:
                self._record_failure("server", "request_exit", e)

        if self.failures:
            logger.warning(
                f"Graceful shutdown completed with {len(self.failures)} failed step(s)"
            )
        else:
            logger.info("Graceful shutdown completed successfully")
        self._terminate(0)

    async def _drain_server(self) -> None:
        if self._server is None:
            return

        logger.info("Closing HTTP server...")
        try:
            self._server.stop_accepting()
        except Exception as e:
            self._record_failure("server", "stop_accepting", e)

        loop = asyncio.get_running_loop()
        grace_ends = loop.time() + self.drain_grace_seconds
        try:
            while self._server.open_connections() and loop.time() < grace_ends:
                await asyncio.sleep(self.DRAIN_POLL_SECONDS)

            remaining = self._server.open_connections()
            if remaining:
                logger.warning(
                    f"{remaining} connection(s) still open after "
                    f"{self.drain_grace_seconds}s grace, force-closing"
                )
                self._server.close_connections()
            else:
                logger.info("HTTP server closed")
        except Exception as e:
            self._record_failure("server", "drain_connections", e)

    async def _run_cleanup_tasks(self) -> None:
        if not self._cleanup_tasks:
            return
        logger.info(f"Executing {len(self._cleanup_tasks)} cleanup tasks...")
        await asyncio.gather(*(
            self._run_isolated("cleanup", name, task)
            for name, task in self._cleanup_tasks
        ))

    async def _disconnect_resources(self) -> None:
        if not self._resources:
            return
        logger.info(f"Disconnecting {', '.join(self._resources)}...")
        await asyncio.gather(*(
            self._run_isolated("disconnect", name, close)
            for name, close in self._resources.items()
        ))

    async def _run_isolated(self, step: str, name: str, func: CleanupTask) -> None:
        try:
            await func()
        except asyncio.CancelledError as e:
            # Only the deadline cancels the sequence; a task that ends
            # cancelled on its own (awaiting a worker it just cancelled) failed.
            if self._deadline_fired:
                raise
            self._record_failure(step, name, e)
        except Exception as e:
            self._record_failure(step, name, e)
        else:
            logger.debug(f"Shutdown {step} '{name}' done")

    def _record_failure(self, step: str, name: str, e: BaseException) -> None:
        logger.error(f"Error executing shutdown {step} '{name}': {e}", exc_info=e)
        self.failures.append(CleanupFailure(
            step=step,
            name=name,
            error=str(e) or type(e).__name__,
            exception_type=type(e).__name__,
        ))

    def _on_deadline(self, reason: str) -> None:
        if self.state.state is ShutdownState.TERMINATED:
            return

        logger.error(
            f"Graceful shutdown timed out after {self.deadline_seconds}s. Forcing exit."
        )
        log_checkpoint(
            "shutdown_deadline_exceeded",
            {"reason": reason, "deadline_seconds": self.deadline_seconds},
            logger=logging.getLogger(__name__),
        )
        self._deadline_fired = True
        if self._sequence_task is not None and not self._sequence_task.done():
            self._sequence_task.cancel()
        self._terminate(1)

    def _terminate(self, code: int) -> None:
        if self._deadline_handle is not None:
            self._deadline_handle.cancel()
            self._deadline_handle = None

        self.state.mark_terminated()
        self.exit_code = code
        if code == 0:
            log_checkpoint(
                "shutdown_completed",
                {"failures": len(self.failures)},
                logger=logging.getLogger(__name__),
            )
        self._exit(code)


__all__ = [
    "GracefulShutdown",
    "CleanupFailure",
    "ShutdownError",
    "SHUTDOWN_SIGNALS",
    "hard_exit",
]
