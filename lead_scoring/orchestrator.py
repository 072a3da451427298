"""
lead_scoring/orchestrator.py

Coordinates lead capture: normalization, duplicate suppression, scoring,
persistence and best-effort follow-up actions. Contains no scoring rules.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence

from lead_scoring.base import BaseLeadScorer, LeadStore, LeadSubmission, StoredLead
from lead_scoring.scoring import RuleBasedLeadScorer

logger = logging.getLogger(__name__)

LeadHook = Callable[[StoredLead, LeadSubmission], None]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class LeadCaptureResult:
    lead_id: uuid.UUID
    score: int
    duplicate: bool = False
    high_value: bool = False


class LeadCaptureOrchestrator:
    """Captures one submission end to end.

    A submission whose normalized email already has a lead inside the dedup
    window short-circuits: nothing is written and the existing lead is
    returned with ``duplicate=True``. The source channel is not part of the
    duplicate check.

    Hooks run after the lead is stored. Their failures are logged and never
    fail the capture.
    """

    def __init__(
        self,
        store: LeadStore,
        *,
        scorer: Optional[BaseLeadScorer] = None,
        high_value_threshold: int = 75,
        dedup_window: timedelta = timedelta(hours=24),
        on_captured: Sequence[LeadHook] = (),
        on_high_value: Sequence[LeadHook] = (),
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """
        Args:
            store: Lead persistence.
            scorer: Scoring model; defaults to RuleBasedLeadScorer.
            high_value_threshold: Scores at or above this fire ``on_high_value``.
            dedup_window: Trailing window for duplicate suppression.
            on_captured: Hooks run for every new lead.
            on_high_value: Hooks run for new leads at or above the threshold.
            clock: Returns the current UTC time.
        """
        self._store = store
        self._scorer = scorer or RuleBasedLeadScorer()
        self._threshold = high_value_threshold
        self._dedup_window = dedup_window
        self._on_captured = tuple(on_captured)
        self._on_high_value = tuple(on_high_value)
        self._clock = clock

    def capture(self, submission: LeadSubmission) -> LeadCaptureResult:
        now = self._clock()
        email = submission.normalized_email

        existing = self._store.find_recent_by_email(email, now - self._dedup_window)
        if existing is not None:
            logger.info("Duplicate lead suppressed lead_id=%s", existing.id)
            return LeadCaptureResult(lead_id=existing.id, score=existing.score, duplicate=True)

        score = self._scorer.score(submission)
        stored = self._store.create(submission, score=score, created_at=now)
        high_value = score >= self._threshold
        logger.info("Lead captured lead_id=%s score=%d high_value=%s", stored.id, score, high_value)

        self._run_hooks(self._on_captured, stored, submission)
        if high_value:
            self._run_hooks(self._on_high_value, stored, submission)

        return LeadCaptureResult(lead_id=stored.id, score=score, high_value=high_value)

    @staticmethod
    def _run_hooks(hooks: Sequence[LeadHook], stored: StoredLead, submission: LeadSubmission) -> None:
        for hook in hooks:
            try:
                hook(stored, submission)
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "Lead follow-up failed lead_id=%s hook=%s: %s",
                    stored.id,
                    getattr(hook, "__name__", type(hook).__name__),
                    exc,
                )
