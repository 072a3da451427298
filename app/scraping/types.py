"""
Competitor change-detection data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


class ChangeType:
    PRICING = "pricing"
    MESSAGING = "messaging"
    FEATURES = "features"
    DESIGN = "design"
    CONTENT = "content"


class Severity:
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class FetchResult:
    """
    Outcome of fetching one page. ``status`` is 0 on network failure and the
    HTTP status code otherwise; text fields are empty unless the fetch
    succeeded.
    """

    url: str
    status: int
    title: str = ""
    text: str = ""
    key_phrases: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@dataclass(frozen=True)
class CompetitorSnapshot:
    """
    Observed state of one monitored URL at one point in time.
    """

    url: str
    title: str
    content_hash: str
    key_phrases: tuple[str, ...]
    pricing_mentions: tuple[str, ...]
    last_checked: datetime


@dataclass(frozen=True)
class CompetitorChange:
    competitor: str
    change_type: str
    description: str
    severity: str
    detected_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "competitor": self.competitor,
            "changeType": self.change_type,
            "description": self.description,
            "severity": self.severity,
            "detectedAt": self.detected_at.isoformat(),
        }


@dataclass(frozen=True)
class WatchRunResult:
    """
    Outcome of one competitor-watch pass over a list of URLs.
    """

    checked_urls: list[str]
    changes: list[CompetitorChange] = field(default_factory=list)
    snapshots: list[CompetitorSnapshot] = field(default_factory=list)
    failed_urls: list[str] = field(default_factory=list)
    excerpts: dict[str, str] = field(default_factory=dict)

    @property
    def action_required(self) -> bool:
        return any(change.severity == Severity.HIGH for change in self.changes)
