# ============================================================================
# INTEGRATION HEALTH CHECKS
# ============================================================================
# EPOCH: 2 - SERVICE LIFECYCLE
# STATUS: Infrastructure - Optional third-party integrations
# PURPOSE: Report which notification channels are configured
# CREATED: 15 SEP 2026
# ============================================================================
"""
Integration Health Checks

Optional notification channels. Each reports not_configured when its
environment variable is missing; otherwise healthy with configuration
details. None of them open connections to the provider.

- EmailCheck: SMTP_HOST / SMTP_PORT
- SmsCheck: TWILIO_ACCOUNT_SID
- PushCheck: VAPID_PUBLIC_KEY / VAPID_PRIVATE_KEY
"""

import os
from typing import Mapping, Optional

from health.core import HealthCheckPlugin, HealthCheckResult


class _EnvConfiguredCheck(HealthCheckPlugin):
    """Base for checks that only verify configuration is present."""

    critical = False
    required_var: str = ""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = environ if environ is not None else os.environ

    def _get(self, key: str) -> Optional[str]:
        return self._environ.get(key) or None

    async def check(self) -> HealthCheckResult:
        if not self._get(self.required_var):
            return HealthCheckResult.not_configured()
        return HealthCheckResult.healthy(configured=True, **self.describe())

    def describe(self) -> dict:
        return {}


class EmailCheck(_EnvConfiguredCheck):
    name = "email"
    required_var = "SMTP_HOST"

    def describe(self) -> dict:
        return {"host": self._get("SMTP_HOST"), "port": self._get("SMTP_PORT")}


class SmsCheck(_EnvConfiguredCheck):
    name = "sms"
    required_var = "TWILIO_ACCOUNT_SID"

    def describe(self) -> dict:
        # Never expose the full SID
        return {"accountSid": self._get("TWILIO_ACCOUNT_SID")[:10] + "..."}


class PushCheck(_EnvConfiguredCheck):
    name = "push"
    required_var = "VAPID_PUBLIC_KEY"

    def describe(self) -> dict:
        return {"vapidConfigured": self._get("VAPID_PRIVATE_KEY") is not None}


__all__ = [
    "EmailCheck",
    "SmsCheck",
    "PushCheck",
]
