# ============================================================================
# LISTING API - MAIN APPLICATION
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Core - FastAPI application entry point
# PURPOSE: Application factory, uvicorn serving and lifecycle wiring
# CREATED: 17 SEP 2026
# ============================================================================
"""
Listing API Main Application

FastAPI application that:
1. Exposes liveness, readiness and health endpoints
2. Rejects new requests once shutdown has begun
3. Owns the database pool and cache client for its lifetime
4. Shuts down gracefully on SIGTERM/SIGINT/SIGUSR2 or an uncaught error

Usage:
    python main.py

Run through main.py rather than `uvicorn main:app`: the uvicorn CLI
installs its own signal handlers, which would bypass GracefulShutdown.
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from __version__ import __version__, BUILD_DATE, EPOCH
from core.config import ConfigError, Defaults, get_defaults
from core.logging import ComponentType, configure_logging, get_logger
from health import HealthCheckExecutor, HealthCheckRegistry, health_router
from health.checks import build_default_registry
from infrastructure.cache import close_cache_client, init_cache_client
from lifecycle import (
    GracefulShutdown,
    LifecycleState,
    ManagedServer,
    RequestGate,
    ShutdownGateMiddleware,
    UvicornServerHandle,
)
from repositories.database import close_pool, init_pool

logger = get_logger(__name__, ComponentType.API)

# Paths that keep answering while the process drains
GATE_EXEMPT_PATHS = ("/live", "/ready")


async def _flush_log_handlers() -> None:
    for handler in logging.getLogger().handlers:
        handler.flush()


def create_app(
    settings: Optional[Defaults] = None,
    registry: Optional[HealthCheckRegistry] = None,
    lifecycle: Optional[LifecycleState] = None,
    shutdown: Optional[GracefulShutdown] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Configuration (defaults to get_defaults())
        registry: Health check registry (defaults to the production checks)
        lifecycle: Shared lifecycle state (taken from shutdown if given)
        shutdown: Shutdown coordinator to register resources with

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_defaults()
    if lifecycle is None:
        lifecycle = shutdown.state if shutdown is not None else LifecycleState()
    if shutdown is None:
        shutdown = GracefulShutdown.from_defaults(settings.shutdown, lifecycle)
    if registry is None:
        registry = build_default_registry(settings.health)
    if not registry.is_frozen:
        registry.freeze()

    shutdown.add_cleanup_task(_flush_log_handlers, name="flush_logs")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan handler.

        Opens dependencies on startup and hands their closers to the
        shutdown coordinator.
        """
        logger.info(
            f"Starting Listing API v{__version__} "
            f"(Epoch {EPOCH}, Build {BUILD_DATE}, {settings.service.environment})"
        )

        if settings.service.database_url:
            await init_pool(settings.service.database_url)
        else:
            logger.warning("No database configured, database check will fail")
        init_cache_client(
            settings.service.redis_url,
            command_timeout=settings.health.probe_timeout_seconds,
        )

        shutdown.set_database(close_pool)
        shutdown.set_cache(close_cache_client)
        logger.info(f"Health checks initialized ({len(registry)} checks registered)")

        yield

        # The coordinator already disconnected everything if it ran
        if not shutdown.is_shutting_down:
            await close_cache_client()
            await close_pool()
        logger.info("Listing API stopped")

    app = FastAPI(
        title="Listing API",
        description=f"Epoch {EPOCH} listing service",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.lifecycle = lifecycle
    app.state.shutdown = shutdown
    app.state.health_executor = HealthCheckExecutor(
        registry,
        default_timeout=settings.health.probe_timeout_seconds,
        version=__version__,
        environment=settings.service.environment,
    )

    app.add_middleware(
        ShutdownGateMiddleware,
        gate=RequestGate(lifecycle),
        exempt_paths=GATE_EXEMPT_PATHS,
    )

    # Health check routes (no prefix - /live, /ready, /health)
    app.include_router(health_router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": "Listing API",
            "version": __version__,
            "epoch": EPOCH,
            "build_date": BUILD_DATE,
            "status": lifecycle.state.value,
            "docs": "/docs",
        }

    return app


async def serve(settings: Defaults) -> bool:
    """
    Serve the application until shutdown.

    Returns:
        False if the server failed to start
    """
    state = LifecycleState()
    shutdown = GracefulShutdown.from_defaults(settings.shutdown, state)
    app = create_app(settings, lifecycle=state, shutdown=shutdown)

    config = uvicorn.Config(
        app,
        host=settings.service.host,
        port=settings.service.port,
        log_config=None,
        lifespan="on",
    )
    server = ManagedServer(config)
    shutdown.set_server(UvicornServerHandle(server))
    shutdown.install(asyncio.get_running_loop())

    logger.info(f"Listening on {settings.service.host}:{settings.service.port}")
    await server.serve()
    return server.started


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

def run() -> None:
    """Console entry point."""
    try:
        settings = get_defaults()
    except ConfigError as e:
        configure_logging()
        logger.critical(f"Invalid configuration: {e}")
        sys.exit(1)

    configure_logging(
        level=settings.service.log_level,
        json_output=settings.service.log_json,
    )

    try:
        started = asyncio.run(serve(settings))
    except Exception as e:
        logger.critical(f"Failed to start server: {e}", exc_info=True)
        sys.exit(1)

    if not started:
        logger.critical("Server did not start")
        sys.exit(1)


if __name__ == "__main__":
    run()
