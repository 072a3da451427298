"""
Competitor watch configuration models.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class MonitoredCompetitor:
    """
    One competitor and the pages watched for changes.
    """

    name: str
    base_url: str
    pages: dict[str, str] = field(default_factory=dict)
    enabled: bool = True

    @property
    def urls(self) -> list[str]:
        return list(self.pages.values()) or [self.base_url]


@dataclass(frozen=True)
class CompetitorWatchSettings:
    """
    Runtime settings for competitor change detection.
    """

    config_path: str
    extra_urls: tuple[str, ...] = ()
    user_agent: str = "PrometheusBot/1.0 (+https://example.com/bot)"
    timeout_seconds: float = 10.0
    max_text_chars: int = 10_000
    inter_request_delay_seconds: float = 0.5
    fingerprint: str = "rolling31"
    excerpt_chars: int = 1_500
