"""
Snapshot comparison rules for competitor change detection.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from app.scraping.types import ChangeType, CompetitorChange, CompetitorSnapshot, Severity


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_items(current: Sequence[str], previous: Sequence[str]) -> list[str]:
    seen = set(previous)
    return [item for item in current if item not in seen]


class SnapshotDiffer:
    """
    Compares a fresh snapshot with the stored one for the same URL.

    Rules run in a fixed order and each may emit one change:

    1. content hash differs -> content / low
    2. title differs -> messaging / medium
    3. new key phrases -> messaging / medium
    4. new pricing mentions -> pricing / high

    Without a previous snapshot nothing is emitted; the first observation only
    sets the baseline.
    """

    def __init__(self, *, clock: Callable[[], datetime] = _utc_now) -> None:
        self._clock = clock

    def diff(
        self,
        current: CompetitorSnapshot,
        previous: CompetitorSnapshot | None,
    ) -> list[CompetitorChange]:
        if previous is None:
            return []

        detected_at = self._clock()
        changes: list[CompetitorChange] = []

        def emit(change_type: str, severity: str, description: str) -> None:
            changes.append(
                CompetitorChange(
                    competitor=current.url,
                    change_type=change_type,
                    description=description,
                    severity=severity,
                    detected_at=detected_at,
                )
            )

        if current.content_hash != previous.content_hash:
            emit(ChangeType.CONTENT, Severity.LOW, "Page content changed since the last check.")

        if current.title != previous.title:
            emit(
                ChangeType.MESSAGING,
                Severity.MEDIUM,
                f'Page title changed from "{previous.title}" to "{current.title}".',
            )

        new_phrases = _new_items(current.key_phrases, previous.key_phrases)
        if new_phrases:
            emit(
                ChangeType.MESSAGING,
                Severity.MEDIUM,
                "New key messaging: " + "; ".join(new_phrases),
            )

        new_pricing = _new_items(current.pricing_mentions, previous.pricing_mentions)
        if new_pricing:
            emit(
                ChangeType.PRICING,
                Severity.HIGH,
                "New pricing mentions: " + "; ".join(new_pricing),
            )

        return changes
