"""
app/services/opportunity_scanner_service.py

Opportunity scanning flow: collect signals per source, rank them with one
LLM call and keep those above the relevance floor.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import Any

from app.config import OpportunitySettings
from app.connectors.base import ConnectorRequestError
from app.connectors.news_api_connector import NewsAPIConnector
from app.errors import InternalFlowError
from app.logging_utils import log_event, log_flow_error
from app.scraping.fetcher import ContentFetcher
from app.services.llm_provider import generate_structured
from llm_synthesis.adapter import BaseLLMAdapter
from llm_synthesis.prompt_builder import MarketingPromptBuilder
from llm_synthesis.schema import OpportunityRanking

logger = logging.getLogger(__name__)

FLOW_NAME = "opportunityScannerFlow"
OPPORTUNITY_SOURCES = ("nglcc", "events", "news", "linkedin")
DEFAULT_SOURCES = ("nglcc", "news")
NO_OPPORTUNITIES_SUMMARY = "No new opportunities matching criteria"
_SIGNAL_TEXT_CHARS = 2_000


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OpportunityScannerService:
    """
    ``news`` signals come from the News API; every other source is a
    configured listing page read through the content fetcher. A source that
    fails or has no configured page is logged and skipped.
    """

    def __init__(
        self,
        *,
        adapter: BaseLLMAdapter,
        settings: OpportunitySettings,
        news: NewsAPIConnector | None = None,
        fetcher: ContentFetcher | None = None,
        prompt_builder: MarketingPromptBuilder | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._adapter = adapter
        self._settings = settings
        self._news = news
        self._fetcher = fetcher or ContentFetcher()
        self._prompts = prompt_builder or MarketingPromptBuilder()
        self._sleep = sleep
        self._clock = clock

    def scan(
        self,
        *,
        sources: Sequence[str] = DEFAULT_SOURCES,
        industry: str = "consulting",
        min_relevance_score: float = 0.7,
    ) -> dict[str, Any]:
        signals = self.collect_signals(sources, industry)
        if not signals:
            return self._result([])

        prompt = self._prompts.opportunity_ranking(signals, industry, min_relevance_score)
        try:
            ranking = generate_structured(self._adapter, prompt, OpportunityRanking, sleep=self._sleep)
        except Exception as exc:
            log_flow_error(logger, flow=FLOW_NAME, step="rank_opportunities", error=exc)
            raise InternalFlowError("Failed to rank opportunities.") from exc

        detected_at = self._clock().isoformat()
        kept = sorted(
            (
                {**candidate.model_dump(by_alias=True), "detectedAt": detected_at}
                for candidate in ranking.opportunities
                if candidate.relevance_score >= min_relevance_score
            ),
            key=lambda item: item["relevanceScore"],
            reverse=True,
        )
        return self._result(kept)

    def collect_signals(self, sources: Sequence[str], industry: str) -> list[dict[str, Any]]:
        limit = self._settings.max_signals_per_source
        signals: list[dict[str, Any]] = []
        for source in dict.fromkeys(sources):
            if source == "news":
                signals.extend(self._news_signals(industry, limit))
            else:
                signals.extend(self._page_signals(source))
        log_event(logger, logging.INFO, "opportunity_signals_collected", count=len(signals), sources=list(sources))
        return signals

    def _news_signals(self, industry: str, limit: int) -> list[dict[str, Any]]:
        if self._news is None:
            logger.warning("News connector not configured; skipping news signals.")
            return []
        try:
            return self._news.fetch_signals(industry=industry, limit=limit)
        except ConnectorRequestError as exc:
            log_flow_error(logger, flow=FLOW_NAME, step="fetch_news", error=exc)
            return []

    def _page_signals(self, source: str) -> list[dict[str, Any]]:
        url = self._settings.source_urls.get(source)
        if not url:
            logger.warning("No listing page configured for opportunity source=%s", source)
            return []
        fetched = self._fetcher.fetch(url)
        if not fetched.ok:
            return []
        return [
            {
                "source": source,
                "title": fetched.title or source,
                "description": fetched.text[:_SIGNAL_TEXT_CHARS],
                "headings": list(fetched.key_phrases),
                "url": url,
            }
        ]

    def _result(self, opportunities: list[dict[str, Any]]) -> dict[str, Any]:
        threshold = self._settings.high_priority_threshold
        high_priority = sum(1 for item in opportunities if item["relevanceScore"] >= threshold)
        summary = (
            f"Found {len(opportunities)} opportunities, {high_priority} high priority"
            if opportunities
            else NO_OPPORTUNITIES_SUMMARY
        )
        return {
            "opportunities": opportunities,
            "summary": summary,
            "totalFound": len(opportunities),
            "highPriority": high_priority,
        }
