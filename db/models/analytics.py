"""
db/models/analytics.py

Cached aggregated analytics and per-property daily reports.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import Date, DateTime, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base


class AnalyticsCacheEntry(Base):
    __tablename__ = "analytics_cache"

    cache_key: Mapped[str] = mapped_column(String(255), primary_key=True, comment="{property}_{dateRange}")
    property_name: Mapped[str] = mapped_column(String(120), nullable=False)
    date_range: Mapped[str] = mapped_column(String(32), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    cached_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class AnalyticsDailyReport(Base):
    __tablename__ = "analytics_daily_reports"

    doc_id: Mapped[str] = mapped_column(String(255), primary_key=True, comment="{property}_{YYYY-MM-DD}")
    property_name: Mapped[str] = mapped_column(String(120), nullable=False)
    report_date: Mapped[date] = mapped_column(Date, nullable=False)
    metrics: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    top_pages: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False, default=list)
    traffic_sources: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False, default=list)
    sync_type: Mapped[str] = mapped_column(String(32), nullable=False, default="scheduled")
    fetched_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_analytics_daily_reports_property_date", "property_name", "report_date"),
    )
