"""
app/services/analytics_service.py

Per-property GA4 reports with a six-hour cache, cross-property aggregation
and the daily sync used by the scheduler.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime, timedelta, timezone
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import AnalyticsSettings
from app.connectors.ga4_connector import AnalyticsReportClient, ReportRow
from app.logging_utils import log_event
from app.repositories.analytics_repository import AnalyticsRepository
from app.repositories.system_state_repository import SystemStateRepository

logger = logging.getLogger(__name__)

CORE_METRICS = ("sessions", "totalUsers", "bounceRate", "averageSessionDuration", "screenPageViews", "newUsers")
ANALYTICS_SYNC_STATE_KEY = "analytics_sync"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_float(value: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _merge_top(items: Iterable[dict[str, Any]], *, key: str, count_field: str, limit: int) -> list[dict[str, Any]]:
    """
    Merge per-property top lists: highest count first, one entry per key.
    """

    ordered = sorted(items, key=lambda item: item.get(count_field, 0), reverse=True)
    merged: dict[str, dict[str, Any]] = {}
    for item in ordered:
        merged.setdefault(item[key], item)
    return list(merged.values())[:limit]


def sync_status(synced: Sequence[str], failed: Sequence[str]) -> str:
    if failed and synced:
        return "partial"
    if failed:
        return "failed"
    return "success"


class AnalyticsService:
    """
    Fetches analytics for named properties through an ``AnalyticsReportClient``.

    When a session is supplied, results are cached in ``analytics_cache`` for
    ``cache_ttl_seconds``. Cache reads and writes never fail a request.
    """

    def __init__(
        self,
        *,
        client: AnalyticsReportClient,
        settings: AnalyticsSettings,
        session: Session | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._client = client
        self._settings = settings
        self._session = session
        self._clock = clock

    def get_property_analytics(self, property_name: str, date_range: str) -> dict[str, Any] | None:
        """
        Return analytics for one property, or ``None`` when the property has
        no configured GA4 id.
        """

        property_id = self._settings.property_ids.get(property_name)
        if property_id is None:
            logger.warning("Skipping unknown analytics property=%s", property_name)
            return None

        cached = self._read_cache(property_name, date_range)
        if cached is not None:
            return cached

        payload = self._fetch(property_name, property_id, date_range)
        self._write_cache(property_name, date_range, payload)
        return payload

    def get_aggregated(self, properties: Sequence[str], date_range: str) -> dict[str, Any]:
        """
        Sum sessions and users, average bounce rate and session duration, and
        merge top pages and sources across ``properties``.
        """

        reports = [
            report
            for report in (self.get_property_analytics(name, date_range) for name in properties)
            if report is not None
        ]
        count = len(reports)
        top_n = self._settings.top_items
        return {
            "dateRange": date_range,
            "properties": [report["property"] for report in reports],
            "totalSessions": sum(report["sessions"] for report in reports),
            "totalUsers": sum(report["users"] for report in reports),
            "bounceRate": round(sum(r["bounceRate"] for r in reports) / count, 4) if count else 0.0,
            "avgSessionDuration": (
                round(sum(r["avgSessionDuration"] for r in reports) / count, 2) if count else 0.0
            ),
            "topPages": _merge_top(
                (page for report in reports for page in report["topPages"]),
                key="path",
                count_field="views",
                limit=top_n,
            ),
            "trafficSources": _merge_top(
                (source for report in reports for source in report["trafficSources"]),
                key="source",
                count_field="sessions",
                limit=top_n,
            ),
        }

    def sync_daily(self, *, report_date: date | None = None, sync_type: str = "scheduled") -> dict[str, Any]:
        """
        Store one daily report per configured property and record the sync in
        system state. Requires a session. A failing property is logged and
        skipped.
        """

        if self._session is None:
            raise RuntimeError("sync_daily requires a database session.")

        day = report_date or (self._clock() - timedelta(days=1)).date()
        repository = AnalyticsRepository(self._session)
        synced: list[str] = []
        failed: list[str] = []

        for property_name, property_id in self._settings.property_ids.items():
            try:
                payload = self._fetch(property_name, property_id, day.isoformat())
                repository.upsert_daily_report(
                    property_name=property_name,
                    report_date=day,
                    metrics={
                        "sessions": payload["sessions"],
                        "users": payload["users"],
                        "bounceRate": payload["bounceRate"],
                        "avgSessionDuration": payload["avgSessionDuration"],
                        "pageviews": payload["pageviews"],
                        "newUsers": payload["newUsers"],
                    },
                    top_pages=payload["topPages"],
                    traffic_sources=payload["trafficSources"],
                    sync_type=sync_type,
                    fetched_at=self._clock(),
                )
                self._session.commit()
                synced.append(property_name)
            except Exception as exc:
                self._session.rollback()
                failed.append(property_name)
                log_event(
                    logger,
                    logging.ERROR,
                    "analytics_sync_failed",
                    property=property_name,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

        summary = {
            "date": day.isoformat(),
            "syncType": sync_type,
            "synced": synced,
            "failed": failed,
            "status": sync_status(synced, failed),
            "completedAt": self._clock().isoformat(),
        }
        try:
            SystemStateRepository(self._session).put(ANALYTICS_SYNC_STATE_KEY, summary)
            self._session.commit()
        except SQLAlchemyError:
            self._session.rollback()
            raise
        log_event(logger, logging.INFO, "analytics_sync_completed", **summary)
        return summary

    def _fetch(self, property_name: str, property_id: str, date_range: str) -> dict[str, Any]:
        top_n = self._settings.top_items
        core = self._client.run_report(
            property_id=property_id,
            date_range=date_range,
            dimensions=(),
            metrics=CORE_METRICS,
        )
        pages = self._client.run_report(
            property_id=property_id,
            date_range=date_range,
            dimensions=("pagePath",),
            metrics=("screenPageViews",),
            order_by_metric="screenPageViews",
            limit=top_n,
        )
        sources = self._client.run_report(
            property_id=property_id,
            date_range=date_range,
            dimensions=("sessionSource",),
            metrics=("sessions",),
            order_by_metric="sessions",
            limit=top_n,
        )

        totals = core[0].metrics if core else ("0",) * len(CORE_METRICS)
        sessions, users, bounce_rate, duration, pageviews, new_users = (
            _to_float(value) for value in totals[: len(CORE_METRICS)]
        )
        return {
            "property": property_name,
            "dateRange": date_range,
            "sessions": int(sessions),
            "users": int(users),
            "bounceRate": round(bounce_rate, 4),
            "avgSessionDuration": round(duration, 2),
            "pageviews": int(pageviews),
            "newUsers": int(new_users),
            "topPages": self._rows_to_items(pages, key="path", count_field="views"),
            "trafficSources": self._rows_to_items(sources, key="source", count_field="sessions"),
        }

    @staticmethod
    def _rows_to_items(rows: Sequence[ReportRow], *, key: str, count_field: str) -> list[dict[str, Any]]:
        items = []
        for row in rows:
            if not row.dimensions or not row.metrics:
                continue
            items.append({key: row.dimensions[0], count_field: int(_to_float(row.metrics[0]))})
        return items

    def _read_cache(self, property_name: str, date_range: str) -> dict[str, Any] | None:
        if self._session is None or self._settings.cache_ttl_seconds <= 0:
            return None
        try:
            entry = AnalyticsRepository(self._session).get_cached(
                property_name=property_name,
                date_range=date_range,
            )
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.warning("Analytics cache read failed property=%s: %s", property_name, exc)
            return None

        if entry is None:
            return None
        age = self._clock() - entry.cached_at
        if age >= timedelta(seconds=self._settings.cache_ttl_seconds):
            return None
        return dict(entry.payload)

    def _write_cache(self, property_name: str, date_range: str, payload: dict[str, Any]) -> None:
        if self._session is None or self._settings.cache_ttl_seconds <= 0:
            return
        try:
            AnalyticsRepository(self._session).upsert_cached(
                property_name=property_name,
                date_range=date_range,
                payload=payload,
                cached_at=self._clock(),
            )
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.warning("Analytics cache write failed property=%s: %s", property_name, exc)
