"""
app/connectors/ga4_connector.py

Google Analytics 4 Data API connector (``properties/{id}:runReport``).
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import google.auth
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest

from app.config import AnalyticsSettings, ExternalHTTPSettings
from app.connectors.base import BaseConnector, ConnectorRequestError

logger = logging.getLogger(__name__)

ANALYTICS_SCOPE = "https://www.googleapis.com/auth/analytics.readonly"

DATE_RANGES: dict[str, tuple[str, str]] = {
    "today": ("today", "today"),
    "yesterday": ("yesterday", "yesterday"),
    "last7days": ("7daysAgo", "today"),
    "last30days": ("30daysAgo", "today"),
}


@dataclass(frozen=True)
class ReportRow:
    dimensions: tuple[str, ...]
    metrics: tuple[str, ...]


def resolve_date_range(date_range: str) -> tuple[str, str]:
    """
    Map a date range label (or an explicit ``YYYY-MM-DD`` day) to GA4
    start/end dates.
    """

    if date_range in DATE_RANGES:
        return DATE_RANGES[date_range]
    return date_range, date_range


class AnalyticsReportClient(ABC):
    @abstractmethod
    def run_report(
        self,
        *,
        property_id: str,
        date_range: str,
        dimensions: Sequence[str],
        metrics: Sequence[str],
        order_by_metric: str | None = None,
        limit: int | None = None,
    ) -> list[ReportRow]:
        """
        Run one report and return its rows.
        """


class GA4ReportConnector(BaseConnector, AnalyticsReportClient):
    """
    Calls the GA4 Data API with application default credentials.
    """

    def __init__(
        self,
        *,
        settings: AnalyticsSettings,
        http_settings: ExternalHTTPSettings,
        credentials: Any = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(source="ga4", http_settings=http_settings, **kwargs)
        self._base_url = settings.base_url.rstrip("/")
        self._credentials = credentials
        self._credentials_lock = threading.Lock()

    def run_report(
        self,
        *,
        property_id: str,
        date_range: str,
        dimensions: Sequence[str],
        metrics: Sequence[str],
        order_by_metric: str | None = None,
        limit: int | None = None,
    ) -> list[ReportRow]:
        start_date, end_date = resolve_date_range(date_range)
        body: dict[str, Any] = {
            "dateRanges": [{"startDate": start_date, "endDate": end_date}],
            "dimensions": [{"name": name} for name in dimensions],
            "metrics": [{"name": name} for name in metrics],
        }
        if order_by_metric:
            body["orderBys"] = [{"metric": {"metricName": order_by_metric}, "desc": True}]
        if limit:
            body["limit"] = limit

        payload = self._request_json(
            method="POST",
            url=f"{self._base_url}/properties/{property_id}:runReport",
            headers={"Authorization": f"Bearer {self._access_token()}"},
            json_body=body,
        )
        rows = payload.get("rows", []) if isinstance(payload, dict) else []
        return [
            ReportRow(
                dimensions=tuple(item.get("value", "") for item in row.get("dimensionValues", [])),
                metrics=tuple(item.get("value", "0") for item in row.get("metricValues", [])),
            )
            for row in rows
            if isinstance(row, dict)
        ]

    def _access_token(self) -> str:
        with self._credentials_lock:
            try:
                if self._credentials is None:
                    self._credentials, _ = google.auth.default(scopes=[ANALYTICS_SCOPE])
                if not self._credentials.valid:
                    self._credentials.refresh(GoogleAuthRequest())
            except GoogleAuthError as exc:
                raise ConnectorRequestError(f"{self.source}: credentials unavailable.") from exc
            return self._credentials.token
