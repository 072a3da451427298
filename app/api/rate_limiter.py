"""
Fixed-window request rate limiter keyed by client identifier.

The counter map is process-local. Horizontally scaled deployments get one
independent window per instance; a shared counter store would be needed for
a global quota.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass


@dataclass
class RateLimitEntry:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """
    Counts requests per identifier inside fixed windows.

    A window opens on the first request from an identifier (or the first one
    after the previous window expired) and closes ``window_seconds`` later.
    Expired entries are replaced, never incremented.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()

    def check(self, identifier: str, limit: int, window_seconds: float) -> bool:
        """
        Record one request and return whether it is allowed.
        """

        if limit <= 0:
            return False

        with self._lock:
            now = self._clock()
            entry = self._entries.get(identifier)
            if entry is None or now >= entry.reset_at:
                self._entries[identifier] = RateLimitEntry(count=1, reset_at=now + window_seconds)
                return True
            if entry.count < limit:
                entry.count += 1
                return True
            return False

    def remaining(self, identifier: str, limit: int) -> int:
        with self._lock:
            entry = self._live_entry(identifier)
            if entry is None:
                return max(0, limit)
            return max(0, limit - entry.count)

    def reset_at(self, identifier: str) -> float | None:
        """
        Return the absolute window expiry for ``identifier``, or None when no
        window is open.
        """

        with self._lock:
            entry = self._live_entry(identifier)
            return entry.reset_at if entry is not None else None

    def retry_after(self, identifier: str) -> float:
        """
        Seconds until the identifier's window closes (0 when none is open).
        """

        reset_at = self.reset_at(identifier)
        if reset_at is None:
            return 0.0
        return max(0.0, reset_at - self._clock())

    def sweep(self) -> int:
        """
        Drop expired entries and return how many were removed.
        """

        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if now >= entry.reset_at]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def dispose(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _live_entry(self, identifier: str) -> RateLimitEntry | None:
        entry = self._entries.get(identifier)
        if entry is None or self._clock() >= entry.reset_at:
            return None
        return entry


_limiter: FixedWindowRateLimiter | None = None
_limiter_lock = threading.Lock()


def get_rate_limiter() -> FixedWindowRateLimiter:
    """
    Return the process-wide limiter, creating it on first use.
    """

    global _limiter
    with _limiter_lock:
        if _limiter is None:
            _limiter = FixedWindowRateLimiter()
        return _limiter


def dispose_rate_limiter() -> None:
    """
    Clear and release the process-wide limiter.
    """

    global _limiter
    with _limiter_lock:
        if _limiter is not None:
            _limiter.dispose()
        _limiter = None
