"""
app/services/competitor_watch_service.py

Competitor watch flow: change detection over monitored pages, an LLM
read-out of the changes and a stored run record.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from typing import Any

from app.errors import InternalFlowError
from app.logging_utils import log_event, log_flow_error
from app.notifications.base import NotificationMessage, Notifier
from app.notifications.dispatcher import NotificationDispatcher
from app.scraping.config import CompetitorWatchSettings, resolve_default_urls
from app.scraping.engine import CompetitorWatchEngine
from app.scraping.fetcher import ContentFetcher
from app.scraping.fingerprint import get_fingerprint
from app.scraping.storage import SnapshotStorage
from app.scraping.types import Severity, WatchRunResult
from app.services.llm_provider import generate_structured
from llm_synthesis.adapter import BaseLLMAdapter
from llm_synthesis.prompt_builder import MarketingPromptBuilder
from llm_synthesis.retry import LLMRetryExhaustedError
from llm_synthesis.schema import CompetitorSummary

logger = logging.getLogger(__name__)

FLOW_NAME = "competitorWatchFlow"
WATCH_CONFIDENCE = 0.88
NO_CHANGES_SUMMARY = "No significant competitor changes detected."
CHECK_TYPES = ("full", "quick")

ActionHook = Callable[[dict[str, Any]], None]


def build_watch_engine(
    *,
    storage: SnapshotStorage,
    settings: CompetitorWatchSettings,
    sleep: Callable[[float], None] = time.sleep,
) -> CompetitorWatchEngine:
    """
    Wire an engine from competitor watch settings.
    """

    return CompetitorWatchEngine(
        storage=storage,
        fetcher=ContentFetcher(
            timeout_seconds=settings.timeout_seconds,
            user_agent=settings.user_agent,
            max_chars=settings.max_text_chars,
        ),
        fingerprint=get_fingerprint(settings.fingerprint),
        delay_seconds=settings.inter_request_delay_seconds,
        excerpt_chars=settings.excerpt_chars,
        sleep=sleep,
    )


class CompetitorWatchService:
    """
    Runs one watch pass and summarizes it.

    With no detected changes the summary is fixed and the model is not called.
    A run with any high-severity change is flagged ``actionRequired`` and
    handed to ``on_action_required``; hook failures are logged only.
    """

    def __init__(
        self,
        *,
        storage: SnapshotStorage,
        adapter: BaseLLMAdapter,
        settings: CompetitorWatchSettings,
        engine: CompetitorWatchEngine | None = None,
        prompt_builder: MarketingPromptBuilder | None = None,
        on_action_required: Sequence[ActionHook] = (),
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._storage = storage
        self._adapter = adapter
        self._settings = settings
        self._engine = engine or build_watch_engine(storage=storage, settings=settings, sleep=sleep)
        self._prompts = prompt_builder or MarketingPromptBuilder()
        self._on_action_required = tuple(on_action_required)
        self._sleep = sleep

    def run(self, *, competitors: Sequence[str] | None = None, check_type: str = "quick") -> dict[str, Any]:
        urls = list(competitors) if competitors else resolve_default_urls(self._settings)
        try:
            watch = self._engine.run(urls)
        except Exception as exc:
            log_flow_error(logger, flow=FLOW_NAME, step="detect_changes", error=exc)
            raise InternalFlowError("Competitor change detection failed.") from exc

        changes = [change.to_dict() for change in watch.changes]
        summary = self._summarize(watch, changes, check_type)
        result = {
            "changes": changes,
            "summary": summary,
            "actionRequired": watch.action_required,
            "confidence": WATCH_CONFIDENCE,
        }

        self._save_run(watch, result, check_type)
        if watch.action_required:
            self._notify(result)
        return result

    def _summarize(self, watch: WatchRunResult, changes: list[dict[str, Any]], check_type: str) -> str:
        if not changes:
            return NO_CHANGES_SUMMARY

        excerpts = watch.excerpts if check_type == "full" else None
        prompt = self._prompts.competitor_summary(changes, excerpts)
        try:
            return generate_structured(
                self._adapter,
                prompt,
                CompetitorSummary,
                sleep=self._sleep,
            ).summary
        except LLMRetryExhaustedError as exc:
            log_flow_error(logger, flow=FLOW_NAME, step="summarize", error=exc)
            high = sum(1 for change in watch.changes if change.severity == Severity.HIGH)
            return f"{len(changes)} competitor changes detected, {high} high severity."
        except Exception as exc:
            log_flow_error(logger, flow=FLOW_NAME, step="summarize", error=exc)
            raise InternalFlowError("Failed to summarize competitor changes.") from exc

    def _save_run(self, watch: WatchRunResult, result: dict[str, Any], check_type: str) -> None:
        try:
            self._storage.save_run(
                {
                    "check_type": check_type,
                    "competitors": watch.checked_urls,
                    "failed_urls": watch.failed_urls,
                    "changes": result["changes"],
                    "summary": result["summary"],
                    "action_required": result["actionRequired"],
                    "confidence": result["confidence"],
                }
            )
        except Exception as exc:
            log_flow_error(logger, flow=FLOW_NAME, step="save_run", error=exc)

    def _notify(self, result: dict[str, Any]) -> None:
        for hook in self._on_action_required:
            try:
                hook(result)
            except Exception as exc:  # noqa: BLE001
                log_event(
                    logger,
                    logging.WARNING,
                    "competitor_alert_failed",
                    hook=getattr(hook, "__name__", type(hook).__name__),
                    error=str(exc),
                )


def make_chat_alert_hook(dispatcher: NotificationDispatcher, notifier: Notifier) -> ActionHook:
    """
    Hook that queues a chat alert listing the high-severity changes.
    """

    def send_competitor_alert(result: dict[str, Any]) -> None:
        if not notifier.configured:
            return
        high = [change for change in result["changes"] if change["severity"] == Severity.HIGH]
        lines = [f"- {change['competitor']}: {change['description']}" for change in high]
        dispatcher.submit(
            notifier,
            NotificationMessage(
                subject=f"Competitor alert: {len(high)} high-severity change(s)",
                body=result["summary"] + "\n\n" + "\n".join(lines),
                context={"changes": len(result["changes"])},
            ),
        )

    return send_competitor_alert
