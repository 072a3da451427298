"""
app/repositories/analytics_repository.py

DB persistence for the analytics cache and per-property daily reports.
No commits here; the caller controls the transaction.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from db.models.analytics import AnalyticsCacheEntry, AnalyticsDailyReport


def analytics_cache_key(property_name: str, date_range: str) -> str:
    return f"{property_name}_{date_range}"


def daily_report_doc_id(property_name: str, report_date: date) -> str:
    return f"{property_name}_{report_date.isoformat()}"


class AnalyticsRepository:
    """
    Repository for cached analytics payloads and synced daily reports.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_cached(self, *, property_name: str, date_range: str) -> AnalyticsCacheEntry | None:
        return self._session.get(
            AnalyticsCacheEntry,
            analytics_cache_key(property_name, date_range),
            populate_existing=True,
        )

    def upsert_cached(
        self,
        *,
        property_name: str,
        date_range: str,
        payload: dict[str, Any],
        cached_at: datetime,
    ) -> None:
        values = {
            "cache_key": analytics_cache_key(property_name, date_range),
            "property_name": property_name,
            "date_range": date_range,
            "payload": payload,
            "cached_at": cached_at,
        }
        statement = insert(AnalyticsCacheEntry).values(**values)
        statement = statement.on_conflict_do_update(
            index_elements=[AnalyticsCacheEntry.cache_key],
            set_={key: statement.excluded[key] for key in values if key != "cache_key"},
        )
        self._session.execute(statement)

    def upsert_daily_report(
        self,
        *,
        property_name: str,
        report_date: date,
        metrics: dict[str, Any],
        top_pages: list[dict[str, Any]],
        traffic_sources: list[dict[str, Any]],
        sync_type: str,
        fetched_at: datetime,
    ) -> str:
        doc_id = daily_report_doc_id(property_name, report_date)
        values = {
            "doc_id": doc_id,
            "property_name": property_name,
            "report_date": report_date,
            "metrics": metrics,
            "top_pages": top_pages,
            "traffic_sources": traffic_sources,
            "sync_type": sync_type,
            "fetched_at": fetched_at,
        }
        statement = insert(AnalyticsDailyReport).values(**values)
        statement = statement.on_conflict_do_update(
            index_elements=[AnalyticsDailyReport.doc_id],
            set_={key: statement.excluded[key] for key in values if key != "doc_id"},
        )
        self._session.execute(statement)
        return doc_id

    def get_daily_report(self, *, property_name: str, report_date: date) -> AnalyticsDailyReport | None:
        return self._session.get(
            AnalyticsDailyReport,
            daily_report_doc_id(property_name, report_date),
            populate_existing=True,
        )

    def list_daily_reports(
        self,
        *,
        property_name: str,
        report_dates: Sequence[date],
    ) -> list[AnalyticsDailyReport]:
        """
        Stored reports for the given days, oldest first. Days without a report
        are simply absent.
        """

        if not report_dates:
            return []
        doc_ids = [daily_report_doc_id(property_name, day) for day in report_dates]
        statement = (
            select(AnalyticsDailyReport)
            .where(AnalyticsDailyReport.doc_id.in_(doc_ids))
            .order_by(AnalyticsDailyReport.report_date.asc())
        )
        return list(self._session.scalars(statement))
