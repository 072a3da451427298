"""
app/services/dashboard_service.py

Read-only dashboard views: lead/traffic headline stats and the daily
analytics rollup built from synced GA4 reports.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime, timedelta, timezone
from typing import Any

from app.repositories.analytics_repository import AnalyticsRepository
from app.repositories.system_state_repository import SystemStateRepository
from app.services.analytics_service import ANALYTICS_SYNC_STATE_KEY
from app.services.self_healing_service import HEALTH_STATE_KEY
from db.models.analytics import AnalyticsDailyReport
from lead_scoring.repository import LeadRepository

DASHBOARD_TOP_ITEMS = 10
TOTAL_FIELDS = ("sessions", "pageviews", "users", "newUsers")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def report_dates(today: date, days: int) -> list[date]:
    """
    The ``days`` days before ``today``, newest first.
    """

    return [today - timedelta(days=offset) for offset in range(1, days + 1)]


def conversion_rate(converted: int, total: int) -> str:
    if total <= 0:
        return "0%"
    return f"{converted / total * 100:.1f}%"


def merge_summed(
    items: Iterable[dict[str, Any]],
    *,
    key: str,
    count_field: str,
    limit: int = DASHBOARD_TOP_ITEMS,
) -> list[dict[str, Any]]:
    """
    Sum ``count_field`` per ``key`` across days, highest first. Ties keep the
    order in which keys were first seen.
    """

    totals: dict[str, int] = {}
    for item in items:
        name = item.get(key)
        if name is None:
            continue
        totals[name] = totals.get(name, 0) + int(item.get(count_field) or 0)
    ranked = sorted(totals.items(), key=lambda pair: pair[1], reverse=True)
    return [{key: name, count_field: count} for name, count in ranked[:limit]]


def _daily_row(report: AnalyticsDailyReport) -> dict[str, Any]:
    return {
        "date": report.report_date.isoformat(),
        "metrics": dict(report.metrics or {}),
        "topPages": list(report.top_pages or []),
        "trafficSources": list(report.traffic_sources or []),
    }


def summarize_daily_reports(
    property_name: str,
    dates: Sequence[date],
    reports: Sequence[AnalyticsDailyReport],
) -> dict[str, Any]:
    """
    Roll stored daily reports up into totals and merged top-10 lists.
    ``dates`` is newest first; days without a report are left out of
    ``daily``.
    """

    daily = sorted((_daily_row(report) for report in reports), key=lambda row: row["date"])
    totals = {
        name: sum(int(row["metrics"].get(name) or 0) for row in daily)
        for name in TOTAL_FIELDS
    }
    return {
        "property": property_name,
        "dateRange": {
            "start": dates[-1].isoformat() if dates else None,
            "end": dates[0].isoformat() if dates else None,
        },
        "daysWithData": len(daily),
        "totals": totals,
        "daily": daily,
        "topPages": merge_summed(
            (page for row in daily for page in row["topPages"]),
            key="path",
            count_field="views",
        ),
        "trafficSources": merge_summed(
            (source for row in daily for source in row["trafficSources"]),
            key="source",
            count_field="sessions",
        ),
    }


class DashboardService:
    """
    Combines lead counts, synced analytics and operational state for the
    dashboard endpoints.
    """

    def __init__(
        self,
        *,
        leads: LeadRepository,
        analytics: AnalyticsRepository,
        state: SystemStateRepository,
        high_value_threshold: int,
        default_property: str,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._leads = leads
        self._analytics = analytics
        self._state = state
        self._high_value_threshold = high_value_threshold
        self.default_property = default_property
        self._clock = clock

    def stats(self) -> dict[str, Any]:
        lead_stats = self._leads.stats(high_value_threshold=self._high_value_threshold)
        today = self._analytics.get_daily_report(
            property_name=self.default_property,
            report_date=self._clock().date(),
        )
        metrics = dict(today.metrics or {}) if today is not None else {}
        sync = self._state.get(ANALYTICS_SYNC_STATE_KEY) or {}

        return {
            "totalLeads": lead_stats["totalLeads"],
            "newLeads": lead_stats["newLeads"],
            "highValueLeads": lead_stats["highValueLeads"],
            "averageScore": lead_stats["averageScore"],
            "conversionRate": conversion_rate(lead_stats["convertedLeads"], lead_stats["totalLeads"]),
            "sessionsToday": int(metrics.get("sessions") or 0),
            "pageviewsToday": int(metrics.get("pageviews") or 0),
            "lastGA4Sync": sync.get("completedAt"),
            "ga4SyncStatus": sync.get("status", "unknown"),
            "lastHealth": self._state.get(HEALTH_STATE_KEY),
        }

    def analytics(self, *, property_name: str | None = None, days: int = 7) -> dict[str, Any]:
        name = property_name or self.default_property
        dates = report_dates(self._clock().date(), days)
        reports = self._analytics.list_daily_reports(property_name=name, report_dates=dates)
        return summarize_daily_reports(name, dates, reports)
