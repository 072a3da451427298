"""
app/services/marketing_brief_service.py

Executive marketing brief: aggregated analytics plus an LLM narrative.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import Any

from app.errors import InternalFlowError
from app.logging_utils import log_flow_error
from app.services.analytics_service import AnalyticsService
from app.services.llm_provider import generate_structured
from llm_synthesis.adapter import BaseLLMAdapter
from llm_synthesis.prompt_builder import MarketingPromptBuilder
from llm_synthesis.retry import LLMRetryExhaustedError
from llm_synthesis.schema import BriefNarrative

logger = logging.getLogger(__name__)

FLOW_NAME = "marketingBriefFlow"
BRIEF_CONFIDENCE = 0.92


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def fallback_narrative(metrics: dict[str, Any]) -> BriefNarrative:
    """
    Deterministic narrative used when the model never returns valid JSON.
    """

    highlights = [
        f"{metrics['totalSessions']} sessions from {metrics['totalUsers']} users",
        f"Average bounce rate {metrics['bounceRate']:.1%}",
    ]
    if metrics.get("topPages"):
        top_page = metrics["topPages"][0]
        highlights.append(f"Top page {top_page['path']} with {top_page['views']} views")
    if metrics.get("trafficSources"):
        top_source = metrics["trafficSources"][0]
        highlights.append(f"Top source {top_source['source']} with {top_source['sessions']} sessions")

    return BriefNarrative(
        summary="; ".join(highlights) + ".",
        highlights=highlights,
        recommendations=[],
    )


class MarketingBriefService:
    def __init__(
        self,
        *,
        analytics: AnalyticsService,
        adapter: BaseLLMAdapter,
        prompt_builder: MarketingPromptBuilder | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._analytics = analytics
        self._adapter = adapter
        self._prompts = prompt_builder or MarketingPromptBuilder()
        self._sleep = sleep
        self._clock = clock

    def generate(self, *, date_range: str, properties: Sequence[str]) -> dict[str, Any]:
        try:
            aggregated = self._analytics.get_aggregated(properties, date_range)
        except Exception as exc:
            log_flow_error(logger, flow=FLOW_NAME, step="fetch_analytics", error=exc)
            raise InternalFlowError("Failed to load analytics for the marketing brief.") from exc

        prompt = self._prompts.marketing_brief(aggregated, date_range, list(properties))
        try:
            narrative = generate_structured(
                self._adapter,
                prompt,
                BriefNarrative,
                model="pro",
                sleep=self._sleep,
            )
        except LLMRetryExhaustedError as exc:
            log_flow_error(logger, flow=FLOW_NAME, step="generate_narrative", error=exc)
            narrative = fallback_narrative(aggregated)
        except Exception as exc:
            log_flow_error(logger, flow=FLOW_NAME, step="generate_narrative", error=exc)
            raise InternalFlowError("Failed to generate the marketing brief.") from exc

        return {
            "summary": narrative.summary,
            "highlights": list(narrative.highlights),
            "recommendations": list(narrative.recommendations),
            "metrics": {
                "totalSessions": aggregated["totalSessions"],
                "totalUsers": aggregated["totalUsers"],
                "bounceRate": aggregated["bounceRate"],
                "avgSessionDuration": aggregated["avgSessionDuration"],
            },
            "confidence": BRIEF_CONFIDENCE,
            "generatedAt": self._clock().isoformat(),
        }
