"""
Competitor change-detection engine.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from app.logging_utils import log_event
from app.scraping.differ import SnapshotDiffer
from app.scraping.fetcher import ContentFetcher
from app.scraping.fingerprint import ContentFingerprint, RollingHashFingerprint
from app.scraping.parsing import HTMLParsingLayer
from app.scraping.storage import SnapshotStorage, canonical_snapshot_url
from app.scraping.types import CompetitorChange, CompetitorSnapshot, FetchResult, WatchRunResult

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CompetitorWatchEngine:
    """
    Fetches each URL, fingerprints it, diffs against the stored snapshot and
    overwrites the snapshot.

    URLs are processed one at a time with a fixed pause between requests. A
    URL that fails to fetch or persist is logged and skipped; the rest of the
    batch still runs.
    """

    def __init__(
        self,
        *,
        storage: SnapshotStorage,
        fetcher: ContentFetcher | None = None,
        fingerprint: ContentFingerprint | None = None,
        differ: SnapshotDiffer | None = None,
        delay_seconds: float = 0.5,
        excerpt_chars: int = 1_500,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._storage = storage
        self._fetcher = fetcher or ContentFetcher()
        self._fingerprint = fingerprint or RollingHashFingerprint()
        self._differ = differ or SnapshotDiffer(clock=clock)
        self._delay_seconds = max(0.0, delay_seconds)
        self._excerpt_chars = excerpt_chars
        self._sleep = sleep
        self._clock = clock

    def run(self, urls: Sequence[str]) -> WatchRunResult:
        targets = self._unique_targets(urls)
        result = WatchRunResult(checked_urls=targets)

        for index, url in enumerate(targets):
            if index > 0 and self._delay_seconds:
                self._sleep(self._delay_seconds)

            fetched = self._fetcher.fetch(url)
            if not fetched.ok:
                result.failed_urls.append(url)
                continue

            try:
                snapshot = self.build_snapshot(fetched)
                changes = self._check(snapshot)
            except Exception as exc:
                result.failed_urls.append(url)
                log_event(
                    logger,
                    logging.ERROR,
                    "competitor_check_failed",
                    url=url,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                continue

            result.snapshots.append(snapshot)
            result.changes.extend(changes)
            result.excerpts[url] = fetched.text[: self._excerpt_chars]
            log_event(
                logger,
                logging.INFO,
                "competitor_check_completed",
                url=url,
                content_hash=snapshot.content_hash,
                changes=len(changes),
            )

        log_event(
            logger,
            logging.INFO,
            "competitor_watch_completed",
            checked=len(targets),
            failed=len(result.failed_urls),
            changes=len(result.changes),
        )
        return result

    @staticmethod
    def _unique_targets(urls: Sequence[str]) -> list[str]:
        """
        Drop blank URLs and URLs that share a snapshot key with an earlier one.
        """

        targets: dict[str, str] = {}
        for url in urls:
            cleaned = (url or "").strip()
            if cleaned:
                targets.setdefault(canonical_snapshot_url(cleaned), cleaned)
        return list(targets.values())

    def build_snapshot(self, fetched: FetchResult) -> CompetitorSnapshot:
        return CompetitorSnapshot(
            url=fetched.url,
            title=fetched.title,
            content_hash=self._fingerprint.hash(fetched.text),
            key_phrases=fetched.key_phrases,
            pricing_mentions=HTMLParsingLayer.extract_pricing_mentions(fetched.text),
            last_checked=self._clock(),
        )

    def _check(self, snapshot: CompetitorSnapshot) -> list[CompetitorChange]:
        previous = self._storage.get_snapshot(snapshot.url)
        changes = self._differ.diff(snapshot, previous)
        self._storage.save_snapshot(snapshot)
        return changes
