"""
tests/test_flow_services.py

Service layer behind the five flow endpoints. Analytics, pages and the LLM
are all faked; no network and no database.

Coverage
--------
- Marketing brief: metrics block, pro model, deterministic fallback narrative
- Competitor watch: no-change short circuit, quick vs full prompts, alert hook,
  run record, fallback summary
- Content drafter: readability, meta description bound, failures
- Opportunity scanner: relevance floor, ordering, high-priority count, sources
- Self-healing: status roll-up, remediation, service selection
"""

from __future__ import annotations

import pytest

from app.config import AnalyticsSettings, ExternalHTTPSettings, NewsAPISettings, OpportunitySettings
from app.connectors.news_api_connector import NewsAPIConnector
from app.errors import InternalFlowError, InvalidArgumentError
from app.scraping.config import CompetitorWatchSettings
from app.scraping.engine import CompetitorWatchEngine
from app.scraping.fetcher import ContentFetcher
from app.services.analytics_service import AnalyticsService
from app.services.competitor_watch_service import (
    NO_CHANGES_SUMMARY,
    CompetitorWatchService,
    make_chat_alert_hook,
)
from app.services.content_drafter_service import (
    ContentDrafterService,
    count_syllables,
    flesch_reading_ease,
    truncate_meta_description,
)
from app.services.marketing_brief_service import BRIEF_CONFIDENCE, MarketingBriefService
from app.services.opportunity_scanner_service import NO_OPPORTUNITIES_SUMMARY, OpportunityScannerService
from app.services.self_healing_service import ALL_CLEAR, HealthCheck, SelfHealingService
from tests.fakes import (
    FIXED_NOW,
    FakeAdapter,
    FakeReportClient,
    FakeResponse,
    FakeSession,
    InlineDispatcher,
    InMemorySnapshotStorage,
    RecordingNotifier,
    html_page,
    property_report,
)

PRICING_URL = "https://acme.example/pricing"


# ---------------------------------------------------------------------------
# Marketing brief
# ---------------------------------------------------------------------------


@pytest.fixture()
def analytics() -> AnalyticsService:
    client = FakeReportClient(
        reports={
            "111": property_report(
                sessions=100,
                users=80,
                bounce_rate=0.4,
                duration=120.5,
                pages=[("/", 50), ("/pricing", 30)],
                sources=[("google", 60)],
            ),
            "222": property_report(
                sessions=50,
                users=40,
                bounce_rate=0.6,
                duration=60.0,
                pages=[("/", 20), ("/about", 40)],
                sources=[("direct", 70)],
            ),
        }
    )
    settings = AnalyticsSettings(property_ids={"bespoke-ethos": "111", "gmfg": "222"})
    return AnalyticsService(client=client, settings=settings)


class TestMarketingBrief:
    def test_narrative_plus_computed_metrics(self, analytics: AnalyticsService, clock, sleeps) -> None:
        adapter = FakeAdapter(
            '{"summary": "Traffic grew.", "highlights": ["150 sessions"], "recommendations": ["Post more"]}'
        )
        service = MarketingBriefService(analytics=analytics, adapter=adapter, sleep=sleeps.append, clock=clock)

        brief = service.generate(date_range="last7days", properties=["bespoke-ethos", "gmfg"])

        assert brief["summary"] == "Traffic grew."
        assert brief["highlights"] == ["150 sessions"]
        assert brief["recommendations"] == ["Post more"]
        assert brief["metrics"] == {
            "totalSessions": 150,
            "totalUsers": 120,
            "bounceRate": 0.5,
            "avgSessionDuration": 90.25,
        }
        assert brief["confidence"] == BRIEF_CONFIDENCE
        assert brief["generatedAt"] == FIXED_NOW.isoformat()
        assert adapter.calls[0][1] == "pro"

    def test_prompt_carries_the_aggregated_data(self, analytics: AnalyticsService) -> None:
        adapter = FakeAdapter('{"summary": "ok"}')
        MarketingBriefService(analytics=analytics, adapter=adapter).generate(
            date_range="last7days", properties=["gmfg"]
        )
        prompt = adapter.calls[0][0]
        assert "## Analytics" in prompt
        assert '"totalSessions": 50' in prompt
        assert "/about" in prompt

    def test_unusable_output_falls_back_to_deterministic_narrative(
        self, analytics: AnalyticsService, sleeps
    ) -> None:
        adapter = FakeAdapter("I cannot produce JSON today.")
        service = MarketingBriefService(analytics=analytics, adapter=adapter, sleep=sleeps.append)

        brief = service.generate(date_range="last7days", properties=["bespoke-ethos", "gmfg"])

        assert len(adapter.calls) == 3
        assert brief["summary"] == (
            "150 sessions from 120 users; Average bounce rate 50.0%; "
            "Top page / with 50 views; Top source direct with 70 sessions."
        )
        assert brief["recommendations"] == []

    def test_transport_failure_is_internal(self, analytics: AnalyticsService, sleeps) -> None:
        adapter = FakeAdapter(RuntimeError("model unavailable"))
        service = MarketingBriefService(analytics=analytics, adapter=adapter, sleep=sleeps.append)
        with pytest.raises(InternalFlowError):
            service.generate(date_range="today", properties=["gmfg"])
        assert sleeps == [1.0, 2.0]

    def test_analytics_failure_is_internal(self) -> None:
        client = FakeReportClient(fail_for={"111"})
        analytics = AnalyticsService(client=client, settings=AnalyticsSettings(property_ids={"a": "111"}))
        service = MarketingBriefService(analytics=analytics, adapter=FakeAdapter())
        with pytest.raises(InternalFlowError):
            service.generate(date_range="today", properties=["a"])


# ---------------------------------------------------------------------------
# Competitor watch
# ---------------------------------------------------------------------------


class _WatchHarness:
    def __init__(self, tmp_path, adapter: FakeAdapter, hooks=()) -> None:
        self.storage = InMemorySnapshotStorage()
        self.session = FakeSession(
            routes={PRICING_URL: FakeResponse(200, text=html_page(title="Acme Pricing", body="From $29/mo Basic"))}
        )
        self.adapter = adapter
        engine = CompetitorWatchEngine(
            storage=self.storage,
            fetcher=ContentFetcher(session=self.session),
            sleep=lambda _: None,
            clock=lambda: FIXED_NOW,
        )
        self.service = CompetitorWatchService(
            storage=self.storage,
            adapter=adapter,
            settings=CompetitorWatchSettings(
                config_path=str(tmp_path / "missing.json"),
                extra_urls=(PRICING_URL,),
            ),
            engine=engine,
            on_action_required=hooks,
            sleep=lambda _: None,
        )

    def change_pricing(self) -> None:
        self.session.routes[PRICING_URL] = FakeResponse(
            200,
            text=html_page(title="Acme Pricing", body="From $29/mo Basic or $49/mo Starter"),
        )


class TestCompetitorWatchService:
    def test_no_changes_skips_the_model(self, tmp_path) -> None:
        harness = _WatchHarness(tmp_path, FakeAdapter())
        result = harness.service.run()

        assert result == {
            "changes": [],
            "summary": NO_CHANGES_SUMMARY,
            "actionRequired": False,
            "confidence": 0.88,
        }
        assert harness.adapter.calls == []
        assert harness.storage.runs[0]["competitors"] == [PRICING_URL]

    def test_pricing_change_requires_action(self, tmp_path) -> None:
        alerts = []
        harness = _WatchHarness(
            tmp_path,
            FakeAdapter('{"summary": "Acme added a Starter tier."}'),
            hooks=[alerts.append],
        )
        harness.service.run(competitors=[PRICING_URL])
        harness.change_pricing()

        result = harness.service.run(competitors=[PRICING_URL])

        assert result["summary"] == "Acme added a Starter tier."
        assert result["actionRequired"] is True
        assert [change["changeType"] for change in result["changes"]] == ["content", "pricing"]
        assert alerts == [result]
        assert harness.storage.runs[-1]["action_required"] is True

    @pytest.mark.parametrize("check_type, has_excerpts", [("quick", False), ("full", True)])
    def test_full_checks_send_page_excerpts(self, tmp_path, check_type: str, has_excerpts: bool) -> None:
        harness = _WatchHarness(tmp_path, FakeAdapter('{"summary": "ok"}'))
        harness.service.run()
        harness.change_pricing()

        harness.service.run(check_type=check_type)

        prompt = harness.adapter.calls[0][0]
        assert ("## Page Excerpts" in prompt) is has_excerpts
        assert "## Competitor Changes" in prompt

    def test_unusable_output_uses_counting_summary(self, tmp_path) -> None:
        harness = _WatchHarness(tmp_path, FakeAdapter("no json"))
        harness.service.run()
        harness.change_pricing()

        result = harness.service.run()

        assert result["summary"] == "2 competitor changes detected, 1 high severity."

    def test_failing_hook_does_not_fail_the_run(self, tmp_path) -> None:
        def broken(result) -> None:
            raise RuntimeError("webhook down")

        harness = _WatchHarness(tmp_path, FakeAdapter(), hooks=[broken])
        harness.service.run()
        harness.change_pricing()
        assert harness.service.run()["actionRequired"] is True

    def test_chat_alert_hook_lists_high_severity_changes(self) -> None:
        dispatcher = InlineDispatcher()
        notifier = RecordingNotifier(channel="chat")
        hook = make_chat_alert_hook(dispatcher, notifier)

        hook(
            {
                "summary": "Acme cut prices.",
                "changes": [
                    {"competitor": PRICING_URL, "description": "New pricing mentions: $49/mo Starter", "severity": "high"},
                    {"competitor": PRICING_URL, "description": "Page content changed.", "severity": "low"},
                ],
            }
        )

        message = notifier.sent[0]
        assert message.subject == "Competitor alert: 1 high-severity change(s)"
        assert "$49/mo Starter" in message.body
        assert "Page content changed." not in message.body

    def test_chat_alert_hook_skips_unconfigured_notifier(self) -> None:
        dispatcher = InlineDispatcher()
        hook = make_chat_alert_hook(dispatcher, RecordingNotifier(channel="chat", configured=False))
        hook({"summary": "s", "changes": []})
        assert dispatcher.submitted == []


# ---------------------------------------------------------------------------
# Content drafter
# ---------------------------------------------------------------------------


class TestReadability:
    @pytest.mark.parametrize("word, expected", [("make", 1), ("table", 2), ("cat", 1), ("rhythm", 1), ("idea", 2)])
    def test_syllables(self, word: str, expected: int) -> None:
        assert count_syllables(word) == expected

    def test_simple_text_is_clamped_to_100(self) -> None:
        assert flesch_reading_ease("The cat sat.") == 100.0

    def test_dense_text_is_clamped_to_0(self) -> None:
        assert flesch_reading_ease("Internationalization responsibilities characteristically.") == 0.0

    def test_no_words_scores_zero(self) -> None:
        assert flesch_reading_ease("... 123 !!!") == 0.0

    def test_meta_description_is_bounded(self) -> None:
        meta = truncate_meta_description("word " * 50)
        assert len(meta) <= 155
        assert meta.endswith("...")

    def test_short_meta_description_is_kept(self) -> None:
        assert truncate_meta_description("  Short   and sweet ") == "Short and sweet"


class TestContentDrafter:
    def test_draft_with_computed_fields(self, sleeps) -> None:
        adapter = FakeAdapter(
            '{"title": "Pricing Guide", "content": "The cat sat.", '
            '"metaDescription": "' + "m" * 200 + '", "suggestedKeywords": ["pricing"]}'
        )
        result = ContentDrafterService(adapter=adapter, sleep=sleeps.append).draft(
            topic="Consulting pricing",
            content_type="blog",
            target_keywords=["consulting", "pricing"],
            tone="professional",
            word_count=800,
        )

        assert result["title"] == "Pricing Guide"
        assert result["readabilityScore"] == 100.0
        assert len(result["metaDescription"]) == 155
        assert result["suggestedKeywords"] == ["pricing"]
        assert result["confidence"] == 0.85
        prompt, model = adapter.calls[0]
        assert model == "pro"
        assert "a long-form blog post with headings" in prompt
        assert '"target_word_count": 800' in prompt

    def test_unusable_output_is_internal(self, sleeps) -> None:
        service = ContentDrafterService(adapter=FakeAdapter('{"title": ""}'), sleep=sleeps.append)
        with pytest.raises(InternalFlowError):
            service.draft(topic="t", content_type="ad", target_keywords=[], tone="casual", word_count=100)


# ---------------------------------------------------------------------------
# Opportunity scanner
# ---------------------------------------------------------------------------


def _news_connector(session: FakeSession, *, api_key: str | None = "news-key") -> NewsAPIConnector:
    return NewsAPIConnector(
        settings=NewsAPISettings(api_key=api_key),
        http_settings=ExternalHTTPSettings(max_retries=0, rate_limit_per_second=0),
        session=session,
        sleep=lambda _: None,
    )


RANKING = (
    '{"opportunities": ['
    '{"title": "City RFP", "source": "news", "relevanceScore": 0.75},'
    '{"title": "Chamber mixer", "source": "nglcc", "relevanceScore": 0.95, "estimatedValue": "$5k"},'
    '{"title": "Unrelated grant", "source": "news", "relevanceScore": 0.4}'
    "]}"
)


class TestOpportunityScanner:
    @pytest.fixture()
    def settings(self) -> OpportunitySettings:
        return OpportunitySettings(source_urls={"nglcc": "https://nglcc.example/events"})

    @pytest.fixture()
    def session(self) -> FakeSession:
        return FakeSession(
            routes={
                "https://newsapi.org/v2/everything": FakeResponse(
                    200,
                    payload={
                        "articles": [
                            {
                                "title": "City issues RFP for consulting",
                                "description": "Proposals due soon.",
                                "url": "https://news.example/rfp",
                                "publishedAt": "2026-10-17T09:00:00Z",
                            }
                        ]
                    },
                ),
                "https://nglcc.example/events": FakeResponse(
                    200, text=html_page(title="NGLCC Events", headings=["Annual business mixer"])
                ),
            }
        )

    def test_ranked_and_filtered(self, settings: OpportunitySettings, session: FakeSession, clock) -> None:
        adapter = FakeAdapter(RANKING)
        service = OpportunityScannerService(
            adapter=adapter,
            settings=settings,
            news=_news_connector(session),
            fetcher=ContentFetcher(session=session),
            clock=clock,
        )

        result = service.scan(sources=["nglcc", "news"], industry="consulting", min_relevance_score=0.7)

        assert [item["title"] for item in result["opportunities"]] == ["Chamber mixer", "City RFP"]
        assert result["totalFound"] == 2
        assert result["highPriority"] == 1
        assert result["summary"] == "Found 2 opportunities, 1 high priority"
        first = result["opportunities"][0]
        assert first["relevanceScore"] == 0.95
        assert first["estimatedValue"] == "$5k"
        assert first["detectedAt"] == FIXED_NOW.isoformat()
        assert result["opportunities"][1]["estimatedValue"] == "Unknown"

        prompt = adapter.calls[0][0]
        assert "City issues RFP for consulting" in prompt
        assert "Annual business mixer" in prompt

    def test_no_signals_skips_the_model(self, settings: OpportunitySettings) -> None:
        adapter = FakeAdapter(RANKING)
        service = OpportunityScannerService(adapter=adapter, settings=settings, news=None)

        result = service.scan(sources=["news", "events"])

        assert result == {
            "opportunities": [],
            "summary": NO_OPPORTUNITIES_SUMMARY,
            "totalFound": 0,
            "highPriority": 0,
        }
        assert adapter.calls == []

    def test_failing_source_is_skipped(self, settings: OpportunitySettings, session: FakeSession) -> None:
        session.routes["https://newsapi.org/v2/everything"] = FakeResponse(401)
        service = OpportunityScannerService(
            adapter=FakeAdapter(RANKING),
            settings=settings,
            news=_news_connector(session),
            fetcher=ContentFetcher(session=session),
        )
        signals = service.collect_signals(["news", "nglcc"], "consulting")
        assert [signal["source"] for signal in signals] == ["nglcc"]

    def test_nothing_above_floor(self, settings: OpportunitySettings, session: FakeSession) -> None:
        service = OpportunityScannerService(
            adapter=FakeAdapter(RANKING),
            settings=settings,
            fetcher=ContentFetcher(session=session),
        )
        result = service.scan(sources=["nglcc"], min_relevance_score=0.99)
        assert result["summary"] == NO_OPPORTUNITIES_SUMMARY


# ---------------------------------------------------------------------------
# Self-healing
# ---------------------------------------------------------------------------


def _ok():
    return "ok", "Connected"


def _warn():
    return "warning", "Slow responses"


def _fail():
    raise ConnectionError("connection refused")


class TestSelfHealing:
    def test_all_ok_is_healthy(self, clock) -> None:
        service = SelfHealingService(checks=[HealthCheck("Database", _ok), HealthCheck("LLM", _ok)], clock=clock)
        result = service.run()

        assert result["status"] == "healthy"
        assert result["actionsTaken"] == []
        assert result["recommendations"] == [ALL_CLEAR]
        assert result["services"][0] == {
            "name": "Database",
            "status": "ok",
            "lastCheck": FIXED_NOW.isoformat(),
            "message": "Connected",
        }

    def test_warning_is_degraded(self) -> None:
        result = SelfHealingService(checks=[HealthCheck("Database", _ok), HealthCheck("Analytics", _warn)]).run()
        assert result["status"] == "degraded"
        assert result["recommendations"] == ["Monitor Analytics closely"]

    def test_error_is_critical_and_remediated(self) -> None:
        restarts = []
        checks = [
            HealthCheck("Database", _fail, remediate=lambda: restarts.append("db")),
            HealthCheck("Analytics", _warn),
        ]
        result = SelfHealingService(checks=checks).run()

        assert result["status"] == "critical"
        assert result["services"][0]["status"] == "error"
        assert "connection refused" in result["services"][0]["message"]
        assert result["actionsTaken"] == ["Attempted restart of Database"]
        assert result["recommendations"] == ["Monitor Database closely", "Monitor Analytics closely"]
        assert restarts == ["db"]

    def test_failing_remediation_is_tolerated(self) -> None:
        def broken() -> None:
            raise RuntimeError("cannot restart")

        result = SelfHealingService(checks=[HealthCheck("LLM", _fail, remediate=broken)]).run()
        assert result["actionsTaken"] == ["Attempted restart of LLM"]

    def test_specific_service_is_case_insensitive(self) -> None:
        service = SelfHealingService(checks=[HealthCheck("Database", _fail), HealthCheck("LLM", _ok)])
        result = service.run(check_all=False, specific_service="llm")
        assert [s["name"] for s in result["services"]] == ["LLM"]
        assert result["status"] == "healthy"

    def test_unknown_service_is_invalid(self) -> None:
        service = SelfHealingService(checks=[HealthCheck("Database", _ok)])
        with pytest.raises(InvalidArgumentError, match="Unknown service"):
            service.run(specific_service="redis")

    def test_check_all_false_needs_a_service(self) -> None:
        service = SelfHealingService(checks=[HealthCheck("Database", _ok)])
        with pytest.raises(InvalidArgumentError):
            service.run(check_all=False)
