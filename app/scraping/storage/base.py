"""
Storage interfaces for competitor snapshots and watch runs.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any

from app.scraping.fingerprint import Fnv1a64Fingerprint
from app.scraping.types import CompetitorSnapshot

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://")
_UNSAFE_RE = re.compile(r"[^a-z0-9]")
MAX_DOC_ID_LENGTH = 512


def canonical_snapshot_url(url: str) -> str:
    """
    Lowercase ``url`` and drop its scheme and trailing slashes.
    """

    return _SCHEME_RE.sub("", url.strip().lower()).rstrip("/")


def snapshot_doc_id(url: str) -> str:
    """
    Normalize a URL into the identity key of its snapshot row.

    The key is a readable prefix (non-alphanumerics folded to ``_``) plus the
    FNV-1a64 digest of the canonical URL, so ``/blog-pricing`` and
    ``/blog/pricing`` stay distinct while ``https://Acme.com/pricing/`` and
    ``http://acme.com/pricing`` share a row.
    """

    canonical = canonical_snapshot_url(url)
    digest = Fnv1a64Fingerprint().hash(canonical)
    prefix = _UNSAFE_RE.sub("_", canonical)[: MAX_DOC_ID_LENGTH - len(digest) - 1]
    return f"{prefix}_{digest}"


class SnapshotStorage(ABC):
    """
    Storage abstraction for the current snapshot of each monitored URL.
    """

    @abstractmethod
    def get_snapshot(self, url: str) -> CompetitorSnapshot | None:
        """
        Return the stored snapshot for ``url`` or None before the first check.
        """

    @abstractmethod
    def save_snapshot(self, snapshot: CompetitorSnapshot) -> None:
        """
        Replace the stored snapshot for ``snapshot.url``.
        """

    @abstractmethod
    def save_run(self, run: dict[str, Any]) -> None:
        """
        Persist one batch result (changes, summary, failed URLs).
        """
