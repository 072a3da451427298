"""
app/services/self_healing_service.py

Service health checks with remediation for failed dependencies.

Status rules:
    any service ``error``   -> critical
    any service ``warning`` -> degraded
    otherwise               -> healthy

Every service in ``error`` gets its remediation run ("Attempted restart of X")
and every non-ok service gets a "Monitor X closely" recommendation.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import google.auth

from app.config import AnalyticsSettings, NotificationSettings
from app.errors import InternalFlowError, InvalidArgumentError
from app.logging_utils import log_event, log_flow_error
from app.services.llm_provider import get_llm_adapter, reset_llm_adapter
from db.session import dispose_engine, ping_database
from llm_synthesis.adapter import MockLLMAdapter

logger = logging.getLogger(__name__)

FLOW_NAME = "selfHealingFlow"
ALL_CLEAR = "All systems nominal. No action required."
HEALTH_STATE_KEY = "health"

Probe = Callable[[], tuple[str, str]]


class ServiceStatus:
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


class OverallStatus:
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    CRITICAL = "critical"


@dataclass(frozen=True)
class HealthCheck:
    """
    ``probe`` returns ``(status, message)``; an exception counts as ``error``.
    """

    name: str
    probe: Probe
    remediate: Callable[[], None] | None = None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def probe_database() -> tuple[str, str]:
    ping_database()
    return ServiceStatus.OK, "Connected"


def probe_llm() -> tuple[str, str]:
    adapter = get_llm_adapter()
    if isinstance(adapter, MockLLMAdapter):
        return ServiceStatus.OK, "Mock adapter active"
    adapter.ping()
    return ServiceStatus.OK, "API responding"


def make_analytics_probe(settings: AnalyticsSettings) -> Probe:
    def probe_analytics() -> tuple[str, str]:
        if not settings.property_ids:
            return ServiceStatus.WARNING, "No GA4 properties configured"
        google.auth.default(scopes=["https://www.googleapis.com/auth/analytics.readonly"])
        return ServiceStatus.OK, f"{len(settings.property_ids)} properties configured"

    return probe_analytics


def make_notifications_probe(settings: NotificationSettings) -> Probe:
    def probe_notifications() -> tuple[str, str]:
        channels = [
            name
            for name, value in (("email", settings.sendgrid_api_key), ("chat", settings.chat_webhook_url))
            if value
        ]
        if not channels:
            return ServiceStatus.WARNING, "No notification channel configured"
        return ServiceStatus.OK, "Channels configured: " + ", ".join(channels)

    return probe_notifications


def default_health_checks(
    *,
    analytics_settings: AnalyticsSettings,
    notification_settings: NotificationSettings,
) -> list[HealthCheck]:
    return [
        HealthCheck(name="Database", probe=probe_database, remediate=dispose_engine),
        HealthCheck(name="LLM", probe=probe_llm, remediate=reset_llm_adapter),
        HealthCheck(name="Analytics", probe=make_analytics_probe(analytics_settings)),
        HealthCheck(name="Notifications", probe=make_notifications_probe(notification_settings)),
    ]


class SelfHealingService:
    def __init__(
        self,
        *,
        checks: Sequence[HealthCheck],
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._checks = tuple(checks)
        self._clock = clock

    def run(self, *, check_all: bool = True, specific_service: str | None = None) -> dict[str, Any]:
        checks = self._select(check_all=check_all, specific_service=specific_service)
        try:
            services = [self._run_check(check) for check in checks]
        except Exception as exc:
            log_flow_error(logger, flow=FLOW_NAME, step="diagnose", error=exc)
            raise InternalFlowError("Health diagnosis failed.") from exc

        statuses = {service["status"] for service in services}
        if ServiceStatus.ERROR in statuses:
            overall = OverallStatus.CRITICAL
        elif ServiceStatus.WARNING in statuses:
            overall = OverallStatus.DEGRADED
        else:
            overall = OverallStatus.HEALTHY

        actions_taken: list[str] = []
        recommendations: list[str] = []
        for check, service in zip(checks, services):
            if service["status"] == ServiceStatus.ERROR:
                actions_taken.append(f"Attempted restart of {check.name}")
                self._remediate(check)
            if service["status"] != ServiceStatus.OK:
                recommendations.append(f"Monitor {check.name} closely")
        if overall == OverallStatus.HEALTHY:
            recommendations.append(ALL_CLEAR)

        return {
            "status": overall,
            "services": services,
            "actionsTaken": actions_taken,
            "recommendations": recommendations,
        }

    def _select(self, *, check_all: bool, specific_service: str | None) -> tuple[HealthCheck, ...]:
        if not specific_service:
            if not check_all:
                raise InvalidArgumentError("specificService is required when checkAll is false.")
            return self._checks
        wanted = specific_service.strip().lower()
        selected = tuple(check for check in self._checks if check.name.lower() == wanted)
        if not selected:
            names = ", ".join(check.name for check in self._checks)
            raise InvalidArgumentError(f"Unknown service '{specific_service}'. Known services: {names}.")
        return selected

    def _run_check(self, check: HealthCheck) -> dict[str, Any]:
        try:
            status, message = check.probe()
        except Exception as exc:  # noqa: BLE001
            status, message = ServiceStatus.ERROR, f"{type(exc).__name__}: {exc}"
        return {
            "name": check.name,
            "status": status,
            "lastCheck": self._clock().isoformat(),
            "message": message,
        }

    @staticmethod
    def _remediate(check: HealthCheck) -> None:
        if check.remediate is None:
            return
        try:
            check.remediate()
            log_event(logger, logging.WARNING, "service_restarted", service=check.name)
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.ERROR, "service_restart_failed", service=check.name, error=str(exc))
