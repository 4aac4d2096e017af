# ============================================================================
# HEALTH ROUTES TESTS
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Tests - End-to-end probe endpoints
# PURPOSE: Verify /live, /ready, /health through the application factory
# CREATED: 19 SEP 2026
# ============================================================================
"""
Health Routes Tests

Builds the real application with main.create_app() and a registry of
stub checks, then exercises the endpoints with FastAPI TestClient.

Run with:
    pytest tests/test_health_routes.py -v
"""

import asyncio
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from core.config import Defaults, ServiceDefaults
from health.checks import MemoryCheck, MemorySample
from health.core import HealthCheckPlugin, HealthCheckResult
from health.registry import HealthCheckRegistry
from lifecycle import GracefulShutdown, LifecycleState
from main import create_app


# ============================================================================
# FIXTURES
# ============================================================================

class _StubCheck(HealthCheckPlugin):

    def __init__(self, name, result=None, critical=False):
        self.name = name
        self.critical = critical
        self.result = result if result is not None else HealthCheckResult.healthy()
        self.calls = 0

    async def check(self):
        self.calls += 1
        return self.result


def _make_registry(**overrides):
    """database + filesystem critical, cache + memory not."""
    checks = {
        "database": _StubCheck("database", critical=True),
        "filesystem": _StubCheck("filesystem", critical=True),
        "cache": _StubCheck("cache"),
        "memory": _StubCheck("memory"),
    }
    for name, check in overrides.items():
        check.name = name
        checks[name] = check

    registry = HealthCheckRegistry()
    for check in checks.values():
        registry.register(check)
    registry.freeze()
    return registry, checks


def _make_settings():
    return Defaults(service=ServiceDefaults(environment="test"))


def _make_client(registry, lifecycle=None, shutdown=None):
    app = create_app(
        settings=_make_settings(),
        registry=registry,
        lifecycle=lifecycle,
        shutdown=shutdown,
    )
    return TestClient(app)


# ============================================================================
# LIVENESS
# ============================================================================

class TestLiveness:

    def test_live_runs_no_checks(self):
        registry, checks = _make_registry()
        resp = _make_client(registry).get("/live")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "alive"
        assert body["uptimeSeconds"] >= 0
        assert body["timestamp"].endswith("Z")
        assert all(check.calls == 0 for check in checks.values())

    def test_live_answers_while_draining(self):
        registry, _ = _make_registry()
        lifecycle = LifecycleState()
        client = _make_client(registry, lifecycle=lifecycle)
        lifecycle.begin_draining("SIGTERM")

        assert client.get("/live").status_code == 200


# ============================================================================
# FULL HEALTH (END-TO-END SCENARIOS)
# ============================================================================

class TestHealthEndpoint:

    def test_all_healthy(self):
        registry, _ = _make_registry()
        resp = _make_client(registry).get("/health")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["environment"] == "test"
        assert body["version"]
        assert set(body["services"]) == {"database", "filesystem", "cache", "memory"}
        assert body["services"]["database"]["status"] == "healthy"
        assert "responseTimeMs" in body["services"]["database"]

    def test_cache_not_configured_stays_healthy(self):
        registry, _ = _make_registry(
            cache=_StubCheck("cache", HealthCheckResult.not_configured()),
        )
        resp = _make_client(registry).get("/health")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["services"]["cache"] == {"status": "not_configured"}

    def test_critical_filesystem_unhealthy(self):
        registry, _ = _make_registry(
            filesystem=_StubCheck(
                "filesystem",
                HealthCheckResult.unhealthy("Upload directory not found: ./uploads"),
                critical=True,
            ),
        )
        client = _make_client(registry)

        resp = client.get("/health")
        assert resp.status_code == 503
        assert resp.json()["status"] == "unhealthy"
        assert resp.json()["services"]["filesystem"]["error"].startswith("Upload directory")

        assert client.get("/ready").status_code == 503

    def test_memory_pressure_degrades(self):
        total = 1000 * 1024 * 1024

        def sampler():
            used = int(total * 0.8)
            return MemorySample(used_bytes=used, total_bytes=total, rss_bytes=used)

        registry, _ = _make_registry(memory=MemoryCheck(sampler=sampler))
        client = _make_client(registry)

        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "degraded"
        assert body["services"]["memory"]["status"] == "degraded"
        assert body["services"]["memory"]["details"]["heapTotalMb"] == 1000

    def test_non_critical_unhealthy_is_degraded(self):
        registry, _ = _make_registry(
            cache=_StubCheck("cache", HealthCheckResult.unhealthy("Connection refused")),
        )
        resp = _make_client(registry).get("/health")

        assert resp.status_code == 200
        assert resp.json()["status"] == "degraded"

    def test_health_rejected_while_draining(self):
        registry, _ = _make_registry()
        lifecycle = LifecycleState()
        client = _make_client(registry, lifecycle=lifecycle)
        lifecycle.begin_draining("SIGTERM")

        resp = client.get("/health")
        assert resp.status_code == 503
        assert resp.json()["error"] == "Server is shutting down"


# ============================================================================
# READINESS
# ============================================================================

class TestReadiness:

    def test_ready(self):
        registry, _ = _make_registry()
        resp = _make_client(registry).get("/ready")

        assert resp.status_code == 200
        assert resp.json() == {"status": "ready"}

    def test_only_critical_checks_run(self):
        registry, checks = _make_registry(
            cache=_StubCheck("cache", HealthCheckResult.unhealthy("down")),
        )
        resp = _make_client(registry).get("/ready")

        assert resp.status_code == 200
        assert checks["cache"].calls == 0
        assert checks["memory"].calls == 0
        assert checks["database"].calls == 1

    def test_database_down_reason(self):
        registry, _ = _make_registry(
            database=_StubCheck(
                "database", HealthCheckResult.unhealthy("refused"), critical=True,
            ),
        )
        resp = _make_client(registry).get("/ready")

        assert resp.status_code == 503
        body = resp.json()
        assert body["status"] == "not_ready"
        assert body["reason"] == "database_unavailable"
        assert set(body["checks"]) == {"database"}

    def test_degraded_critical_is_not_ready(self):
        registry, _ = _make_registry(
            database=_StubCheck(
                "database", HealthCheckResult.degraded("slow"), critical=True,
            ),
        )
        resp = _make_client(registry).get("/ready")

        assert resp.status_code == 503
        assert resp.json()["reason"] == "database_unavailable"

    def test_shutting_down(self):
        registry, checks = _make_registry()
        lifecycle = LifecycleState()
        client = _make_client(registry, lifecycle=lifecycle)
        lifecycle.begin_draining("SIGTERM")

        resp = client.get("/ready")

        assert resp.status_code == 503
        assert resp.json() == {"status": "not_ready", "reason": "shutting_down"}
        assert checks["database"].calls == 0


# ============================================================================
# SINGLE CHECK
# ============================================================================

class TestSingleCheck:

    def test_known_check(self):
        registry, _ = _make_registry(
            cache=_StubCheck("cache", HealthCheckResult.degraded("slow")),
        )
        resp = _make_client(registry).get("/health/cache")

        assert resp.status_code == 200
        assert resp.json()["status"] == "degraded"

    def test_unhealthy_check(self):
        registry, _ = _make_registry(
            database=_StubCheck(
                "database", HealthCheckResult.unhealthy("refused"), critical=True,
            ),
        )
        resp = _make_client(registry).get("/health/database")
        assert resp.status_code == 503

    def test_unknown_check(self):
        registry, _ = _make_registry()
        resp = _make_client(registry).get("/health/nope")

        assert resp.status_code == 404
        assert resp.json() == {"error": "Health check not found: nope"}


# ============================================================================
# APPLICATION LIFECYCLE
# ============================================================================

class TestApplication:

    def test_root(self):
        registry, _ = _make_registry()
        resp = _make_client(registry).get("/")

        assert resp.status_code == 200
        assert resp.json()["status"] == "running"

    def test_lifespan_registers_with_coordinator(self):
        registry, _ = _make_registry()
        exits = []
        shutdown = GracefulShutdown(exit_func=exits.append)

        with _make_client(registry, shutdown=shutdown) as client:
            assert client.get("/ready").status_code == 200

        assert "flush_logs" in shutdown.cleanup_task_names
        assert exits == []

    def test_coordinator_shutdown_flips_app(self):
        registry, _ = _make_registry()
        exits = []
        shutdown = GracefulShutdown(exit_func=exits.append)
        client = _make_client(registry, shutdown=shutdown)

        asyncio.run(shutdown.shutdown("SIGTERM"))

        assert exits == [0]
        assert client.get("/").status_code == 503
        assert client.get("/ready").json()["reason"] == "shutting_down"
        assert client.get("/live").status_code == 200

    def test_lifespan_skips_pool_without_database_url(self, monkeypatch):
        init_pool = AsyncMock()
        monkeypatch.setattr("main.init_pool", init_pool)
        registry, _ = _make_registry()

        with _make_client(registry) as client:
            assert client.get("/live").status_code == 200

        init_pool.assert_not_awaited()

    def test_lifespan_opens_pool_for_database_url(self, monkeypatch):
        init_pool = AsyncMock()
        monkeypatch.setattr("main.init_pool", init_pool)
        registry, _ = _make_registry()
        settings = Defaults(service=ServiceDefaults(
            environment="test",
            database_url="postgresql://app:secret@db:5432/listings",
        ))
        app = create_app(settings=settings, registry=registry)

        with TestClient(app) as client:
            assert client.get("/live").status_code == 200

        init_pool.assert_awaited_once_with("postgresql://app:secret@db:5432/listings")
