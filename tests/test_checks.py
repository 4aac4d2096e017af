# ============================================================================
# HEALTH CHECK PLUGIN TESTS
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Tests - Concrete dependency checks
# PURPOSE: Verify database, cache, filesystem, memory and channel checks
# CREATED: 18 SEP 2026
# ============================================================================
"""
Health Check Plugin Tests

External dependencies are replaced with mocks (pool ping, Redis client,
memory sampler); the filesystem check runs against pytest's tmp_path.

Run with:
    pytest tests/test_checks.py -v
"""

import asyncio
import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from core.config import HealthDefaults
from health.core import HealthStatus
from health.checks import (
    EmailCheck,
    MemoryCheck,
    MemorySample,
    PostgresCheck,
    PushCheck,
    RedisCheck,
    SmsCheck,
    UploadDirectoryCheck,
    build_default_registry,
)
from health.checks.filesystem import MARKER_FILENAME
from health.checks.memory import cgroup_memory_limit, sample_process_memory

_MB = 1024 * 1024


def _sample(percent, total_mb=1000):
    total = total_mb * _MB
    used = int(total * percent / 100)
    return lambda: MemorySample(used_bytes=used, total_bytes=total, rss_bytes=used)


# ============================================================================
# DATABASE
# ============================================================================

class TestPostgresCheck:

    def test_no_pool_is_unhealthy(self):
        check = PostgresCheck(pool_provider=lambda: None)
        result = asyncio.run(check.check())
        assert result.status == HealthStatus.UNHEALTHY
        assert result.error == "Connection pool not initialized"

    def test_ping_ok(self):
        pool = MagicMock()
        check = PostgresCheck(pool_provider=lambda: pool, query_timeout=2.0)

        with patch("health.checks.database.ping", new_callable=AsyncMock) as ping:
            result = asyncio.run(check.check())

        ping.assert_awaited_once_with(pool, timeout=2.0)
        assert result.status == HealthStatus.HEALTHY
        assert result.response_time_ms is not None

    def test_ping_failure(self):
        check = PostgresCheck(pool_provider=MagicMock)

        with patch(
            "health.checks.database.ping",
            new_callable=AsyncMock,
            side_effect=OSError("connection refused"),
        ):
            result = asyncio.run(check.check())

        assert result.status == HealthStatus.UNHEALTHY
        assert result.error == "connection refused"

    def test_is_critical(self):
        assert PostgresCheck.critical is True


# ============================================================================
# CACHE
# ============================================================================

class TestRedisCheck:

    def test_no_client_is_not_configured(self):
        result = asyncio.run(RedisCheck(client_provider=lambda: None).check())
        assert result.status == HealthStatus.NOT_CONFIGURED

    def test_ping_ok(self):
        client = MagicMock()
        client.ping = AsyncMock(return_value=True)

        result = asyncio.run(RedisCheck(client_provider=lambda: client).check())

        client.ping.assert_awaited_once()
        assert result.status == HealthStatus.HEALTHY

    def test_ping_failure(self):
        client = MagicMock()
        client.ping = AsyncMock(side_effect=ConnectionError("Connection refused"))

        result = asyncio.run(RedisCheck(client_provider=lambda: client).check())

        assert result.status == HealthStatus.UNHEALTHY
        assert result.error == "Connection refused"

    def test_is_not_critical(self):
        assert RedisCheck.critical is False


# ============================================================================
# FILESYSTEM
# ============================================================================

class TestUploadDirectoryCheck:

    def test_writable_directory(self, tmp_path):
        result = asyncio.run(UploadDirectoryCheck(str(tmp_path)).check())

        assert result.status == HealthStatus.HEALTHY
        assert not (tmp_path / MARKER_FILENAME).exists()

    def test_missing_directory(self, tmp_path):
        missing = tmp_path / "nope"
        result = asyncio.run(UploadDirectoryCheck(str(missing)).check())

        assert result.status == HealthStatus.UNHEALTHY
        assert "not found" in result.error
        assert result.details["path"] == str(missing)

    def test_path_is_a_file(self, tmp_path):
        target = tmp_path / "uploads"
        target.write_text("x")
        result = asyncio.run(UploadDirectoryCheck(str(target)).check())
        assert result.status == HealthStatus.UNHEALTHY

    @pytest.mark.skipif(
        hasattr(os, "geteuid") and os.geteuid() == 0,
        reason="root ignores directory permissions",
    )
    def test_read_only_directory(self, tmp_path):
        tmp_path.chmod(0o500)
        try:
            result = asyncio.run(UploadDirectoryCheck(str(tmp_path)).check())
        finally:
            tmp_path.chmod(0o700)
        assert result.status == HealthStatus.UNHEALTHY

    def test_is_critical(self):
        assert UploadDirectoryCheck.critical is True


# ============================================================================
# MEMORY
# ============================================================================

class TestMemoryCheck:

    def test_low_usage_is_healthy(self):
        result = asyncio.run(MemoryCheck(sampler=_sample(50)).check())
        assert result.status == HealthStatus.HEALTHY
        assert result.details["heapTotalMb"] == 1000
        assert result.details["heapUsedMb"] == 500

    def test_eighty_percent_is_degraded(self):
        result = asyncio.run(MemoryCheck(sampler=_sample(80)).check())
        assert result.status == HealthStatus.DEGRADED
        assert result.details["usagePercent"] == pytest.approx(80.0, abs=0.01)

    def test_above_ninety_is_unhealthy(self):
        result = asyncio.run(MemoryCheck(sampler=_sample(95)).check())
        assert result.status == HealthStatus.UNHEALTHY

    def test_thresholds_are_exclusive(self):
        assert asyncio.run(MemoryCheck(sampler=_sample(75)).check()).status == HealthStatus.HEALTHY
        assert asyncio.run(MemoryCheck(sampler=_sample(90)).check()).status == HealthStatus.DEGRADED

    def test_custom_thresholds(self):
        check = MemoryCheck(sampler=_sample(60), degraded_percent=50, unhealthy_percent=55)
        assert asyncio.run(check.check()).status == HealthStatus.UNHEALTHY

    def test_sampler_failure(self):
        def broken():
            raise RuntimeError("no /proc")

        result = asyncio.run(MemoryCheck(sampler=broken).check())
        assert result.status == HealthStatus.UNHEALTHY

    def test_real_sampler(self):
        result = asyncio.run(MemoryCheck().check())
        assert result.details["rssMb"] >= 0
        assert 0 <= result.details["usagePercent"] <= 100

    def test_cgroup_v2_limit(self, tmp_path):
        limit_file = tmp_path / "memory.max"
        limit_file.write_text("536870912\n")
        assert cgroup_memory_limit([limit_file]) == 512 * _MB

    def test_cgroup_unlimited(self, tmp_path):
        limit_file = tmp_path / "memory.max"
        limit_file.write_text("max\n")
        assert cgroup_memory_limit([limit_file]) is None

    def test_cgroup_falls_back_to_v1(self, tmp_path):
        v1 = tmp_path / "memory.limit_in_bytes"
        v1.write_text("1073741824")
        assert cgroup_memory_limit([tmp_path / "missing", v1]) == 1024 * _MB

    def test_no_cgroup(self, tmp_path):
        assert cgroup_memory_limit([tmp_path / "missing"]) is None

    def test_cgroup_limit_caps_total(self):
        rss = 400 * _MB
        process = MagicMock()
        process.memory_info.return_value = MagicMock(rss=rss)
        virtual = MagicMock(available=64 * 1024 * _MB)

        with patch("health.checks.memory.psutil.Process", return_value=process), \
                patch("health.checks.memory.psutil.virtual_memory", return_value=virtual):
            sample = sample_process_memory(limit_reader=lambda: 500 * _MB)

        assert sample.total_bytes == 500 * _MB
        assert sample.usage_percent == pytest.approx(80.0)
        result = asyncio.run(MemoryCheck(sampler=lambda: sample).check())
        assert result.status == HealthStatus.DEGRADED


# ============================================================================
# NOTIFICATION CHANNELS
# ============================================================================

class TestIntegrationChecks:

    def test_email_not_configured(self):
        result = asyncio.run(EmailCheck(environ={}).check())
        assert result.status == HealthStatus.NOT_CONFIGURED

    def test_email_configured(self):
        check = EmailCheck(environ={"SMTP_HOST": "smtp.example.com", "SMTP_PORT": "587"})
        result = asyncio.run(check.check())
        assert result.status == HealthStatus.HEALTHY
        assert result.details["host"] == "smtp.example.com"
        assert result.details["port"] == "587"

    def test_sms_masks_account_sid(self):
        check = SmsCheck(environ={"TWILIO_ACCOUNT_SID": "AC1234567890abcdef"})
        result = asyncio.run(check.check())
        assert result.status == HealthStatus.HEALTHY
        assert result.details["accountSid"] == "AC12345678..."

    def test_push(self):
        check = PushCheck(environ={"VAPID_PUBLIC_KEY": "pub"})
        result = asyncio.run(check.check())
        assert result.status == HealthStatus.HEALTHY
        assert result.details["vapidConfigured"] is False

    def test_empty_value_is_not_configured(self):
        result = asyncio.run(PushCheck(environ={"VAPID_PUBLIC_KEY": ""}).check())
        assert result.status == HealthStatus.NOT_CONFIGURED


# ============================================================================
# DEFAULT REGISTRY
# ============================================================================

class TestDefaultRegistry:

    def test_wiring(self):
        registry = build_default_registry(HealthDefaults(upload_dir="/tmp"))

        assert registry.is_frozen
        assert sorted(c.name for c in registry.get_all()) == [
            "cache", "database", "email", "filesystem", "memory", "push", "sms",
        ]
        assert sorted(registry.critical_names()) == ["database", "filesystem"]
