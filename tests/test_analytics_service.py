"""
tests/test_analytics_service.py

GA4 report connector and the analytics service built on it.

Coverage
--------
- Date range labels map to GA4 start/end dates
- runReport request body, bearer token refresh and row decoding
- Per-property payloads, unknown properties skipped
- Cross-property aggregation (sums, averages, merged top lists)
- Six-hour cache hit / expiry through the session
- Daily sync writes one report per property and records system state
- Sync status roll-up (success, partial, failed)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

import pytest

from app.config import AnalyticsSettings, ExternalHTTPSettings
from app.connectors.ga4_connector import GA4ReportConnector, ReportRow, resolve_date_range
from app.services.analytics_service import AnalyticsService, sync_status
from db.models.analytics import AnalyticsCacheEntry
from tests.fakes import FIXED_NOW, FakeClock, FakeReportClient, FakeResponse, FakeSession, property_report


class FakeCredentials:
    def __init__(self, *, valid: bool) -> None:
        self.valid = valid
        self.token = "stale-token" if valid else None
        self.refreshes = 0

    def refresh(self, request: Any) -> None:
        self.refreshes += 1
        self.valid = True
        self.token = "fresh-token"


@dataclass
class CachedEntry:
    payload: dict[str, Any]
    cached_at: Any


class RecordingSession:
    """
    Records executed statements and transaction calls; ``get`` answers from
    ``rows`` keyed by (model, primary key).
    """

    def __init__(self, rows: dict[tuple[type, str], Any] | None = None) -> None:
        self.rows = dict(rows or {})
        self.statements: list[Any] = []
        self.commits = 0
        self.rollbacks = 0

    def get(self, model: type, key: str, **kwargs: Any) -> Any:
        return self.rows.get((model, key))

    def execute(self, statement: Any) -> None:
        self.statements.append(statement)

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1


SETTINGS = AnalyticsSettings(property_ids={"bespoke-ethos": "111", "gmfg": "222"})


@pytest.fixture()
def client() -> FakeReportClient:
    return FakeReportClient(
        reports={
            "111": property_report(
                sessions=1200,
                users=900,
                bounce_rate=0.41234,
                duration=95.456,
                pageviews=2100,
                new_users=400,
                pages=[("/", 500), ("/services", 120)],
                sources=[("google", 700), ("direct", 300)],
            ),
            "222": property_report(
                sessions=300,
                users=250,
                bounce_rate=0.6,
                duration=40.0,
                pages=[("/", 200), ("/shop", 150)],
                sources=[("instagram", 800)],
            ),
        }
    )


# ---------------------------------------------------------------------------
# GA4 connector
# ---------------------------------------------------------------------------


class TestGA4Connector:
    @pytest.mark.parametrize(
        "label, expected",
        [
            ("today", ("today", "today")),
            ("last7days", ("7daysAgo", "today")),
            ("last30days", ("30daysAgo", "today")),
            ("2026-10-17", ("2026-10-17", "2026-10-17")),
        ],
    )
    def test_date_ranges(self, label: str, expected: tuple[str, str]) -> None:
        assert resolve_date_range(label) == expected

    def test_run_report_request_and_rows(self) -> None:
        session = FakeSession(
            [
                FakeResponse(
                    200,
                    payload={
                        "rows": [
                            {"dimensionValues": [{"value": "/"}], "metricValues": [{"value": "42"}]},
                            {"dimensionValues": [{"value": "/pricing"}], "metricValues": [{"value": "7"}]},
                        ]
                    },
                )
            ]
        )
        credentials = FakeCredentials(valid=False)
        connector = GA4ReportConnector(
            settings=AnalyticsSettings(),
            http_settings=ExternalHTTPSettings(max_retries=0, rate_limit_per_second=0),
            credentials=credentials,
            session=session,
        )

        rows = connector.run_report(
            property_id="111",
            date_range="last7days",
            dimensions=["pagePath"],
            metrics=["screenPageViews"],
            order_by_metric="screenPageViews",
            limit=5,
        )

        assert rows == [ReportRow(("/",), ("42",)), ReportRow(("/pricing",), ("7",))]
        call = session.calls[0]
        assert call["method"] == "POST"
        assert call["url"] == "https://analyticsdata.googleapis.com/v1beta/properties/111:runReport"
        assert call["headers"] == {"Authorization": "Bearer fresh-token"}
        assert call["json"] == {
            "dateRanges": [{"startDate": "7daysAgo", "endDate": "today"}],
            "dimensions": [{"name": "pagePath"}],
            "metrics": [{"name": "screenPageViews"}],
            "orderBys": [{"metric": {"metricName": "screenPageViews"}, "desc": True}],
            "limit": 5,
        }
        assert credentials.refreshes == 1

    def test_valid_credentials_are_reused(self) -> None:
        session = FakeSession([FakeResponse(200, payload={}), FakeResponse(200, payload={})])
        credentials = FakeCredentials(valid=True)
        connector = GA4ReportConnector(
            settings=AnalyticsSettings(),
            http_settings=ExternalHTTPSettings(max_retries=0, rate_limit_per_second=0),
            credentials=credentials,
            session=session,
        )
        for _ in range(2):
            assert connector.run_report(property_id="1", date_range="today", dimensions=[], metrics=["sessions"]) == []
        assert credentials.refreshes == 0
        assert session.calls[1]["headers"] == {"Authorization": "Bearer stale-token"}


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class TestPropertyAnalytics:
    def test_single_property_payload(self, client: FakeReportClient) -> None:
        payload = AnalyticsService(client=client, settings=SETTINGS).get_property_analytics("bespoke-ethos", "today")

        assert payload == {
            "property": "bespoke-ethos",
            "dateRange": "today",
            "sessions": 1200,
            "users": 900,
            "bounceRate": 0.4123,
            "avgSessionDuration": 95.46,
            "pageviews": 2100,
            "newUsers": 400,
            "topPages": [{"path": "/", "views": 500}, {"path": "/services", "views": 120}],
            "trafficSources": [{"source": "google", "sessions": 700}, {"source": "direct", "sessions": 300}],
        }
        assert [call["dimensions"] for call in client.calls] == [(), ("pagePath",), ("sessionSource",)]
        assert client.calls[1]["limit"] == 5

    def test_unknown_property_is_skipped(self, client: FakeReportClient) -> None:
        assert AnalyticsService(client=client, settings=SETTINGS).get_property_analytics("nope", "today") is None
        assert client.calls == []

    def test_empty_report_is_zeroes(self) -> None:
        service = AnalyticsService(client=FakeReportClient(), settings=AnalyticsSettings(property_ids={"x": "9"}))
        payload = service.get_property_analytics("x", "today")
        assert (payload["sessions"], payload["users"], payload["bounceRate"]) == (0, 0, 0.0)
        assert payload["topPages"] == []


class TestAggregation:
    def test_sums_averages_and_merged_lists(self, client: FakeReportClient) -> None:
        aggregated = AnalyticsService(client=client, settings=SETTINGS).get_aggregated(
            ["bespoke-ethos", "gmfg", "unknown"], "last7days"
        )

        assert aggregated["properties"] == ["bespoke-ethos", "gmfg"]
        assert aggregated["totalSessions"] == 1500
        assert aggregated["totalUsers"] == 1150
        assert aggregated["bounceRate"] == pytest.approx(0.5062, abs=1e-4)
        assert aggregated["avgSessionDuration"] == pytest.approx(67.73)
        assert aggregated["topPages"] == [
            {"path": "/", "views": 500},
            {"path": "/shop", "views": 150},
            {"path": "/services", "views": 120},
        ]
        assert aggregated["trafficSources"][0] == {"source": "instagram", "sessions": 800}

    def test_no_known_properties(self, client: FakeReportClient) -> None:
        aggregated = AnalyticsService(client=client, settings=SETTINGS).get_aggregated(["unknown"], "today")
        assert aggregated["totalSessions"] == 0
        assert aggregated["bounceRate"] == 0.0
        assert aggregated["topPages"] == []


class TestCache:
    def test_fresh_entry_is_served_without_fetching(self, client: FakeReportClient, clock: FakeClock) -> None:
        cached = {"property": "gmfg", "sessions": 1}
        session = RecordingSession(
            {(AnalyticsCacheEntry, "gmfg_today"): CachedEntry(payload=cached, cached_at=FIXED_NOW - timedelta(hours=5))}
        )
        service = AnalyticsService(client=client, settings=SETTINGS, session=session, clock=clock)

        assert service.get_property_analytics("gmfg", "today") == cached
        assert client.calls == []

    def test_expired_entry_is_refetched_and_rewritten(self, client: FakeReportClient, clock: FakeClock) -> None:
        session = RecordingSession(
            {(AnalyticsCacheEntry, "gmfg_today"): CachedEntry(payload={}, cached_at=FIXED_NOW - timedelta(hours=6))}
        )
        service = AnalyticsService(client=client, settings=SETTINGS, session=session, clock=clock)

        payload = service.get_property_analytics("gmfg", "today")

        assert payload["sessions"] == 300
        assert len(client.calls) == 3
        assert len(session.statements) == 1
        assert session.commits == 1


class TestDailySync:
    def test_requires_session(self, client: FakeReportClient) -> None:
        with pytest.raises(RuntimeError):
            AnalyticsService(client=client, settings=SETTINGS).sync_daily()

    def test_reports_yesterday_per_property(self, client: FakeReportClient, clock: FakeClock) -> None:
        session = RecordingSession()
        service = AnalyticsService(client=client, settings=SETTINGS, session=session, clock=clock)

        summary = service.sync_daily()

        assert summary["date"] == date(2026, 10, 17).isoformat()
        assert summary["synced"] == ["bespoke-ethos", "gmfg"]
        assert summary["failed"] == []
        assert summary["status"] == "success"
        assert client.calls[0]["date_range"] == "2026-10-17"
        assert len(session.statements) == 3
        assert session.commits == 3

    def test_failing_property_is_recorded_and_skipped(self, client: FakeReportClient, clock: FakeClock) -> None:
        client.fail_for.add("111")
        session = RecordingSession()
        service = AnalyticsService(client=client, settings=SETTINGS, session=session, clock=clock)

        summary = service.sync_daily(report_date=date(2026, 10, 1), sync_type="manual")

        assert summary["synced"] == ["gmfg"]
        assert summary["failed"] == ["bespoke-ethos"]
        assert summary["syncType"] == "manual"
        assert summary["status"] == "partial"
        assert session.rollbacks == 1

    @pytest.mark.parametrize(
        "synced, failed, expected",
        [
            (["a", "b"], [], "success"),
            (["a"], ["b"], "partial"),
            ([], ["a"], "failed"),
            ([], [], "success"),
        ],
    )
    def test_sync_status(self, synced: list[str], failed: list[str], expected: str) -> None:
        assert sync_status(synced, failed) == expected
