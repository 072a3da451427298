"""
app/connectors/base.py

Outbound HTTP plumbing shared by the GA4 and News API connectors.
"""

from __future__ import annotations

import logging
import time
from abc import ABC
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import requests

from app.config import ExternalHTTPSettings
from app.logging_utils import log_event

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class ConnectorRequestError(RuntimeError):
    """
    Raised when a connector cannot fetch data after retries.
    """


def to_utc_datetime(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp (``Z`` suffix allowed); naive values are UTC.
    """

    text = value.strip()
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    parsed = datetime.fromisoformat(text)
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class BackoffPolicy:
    max_retries: int
    initial_seconds: float
    multiplier: float

    @classmethod
    def from_settings(cls, settings: ExternalHTTPSettings) -> BackoffPolicy:
        return cls(
            max_retries=max(0, settings.max_retries),
            initial_seconds=settings.backoff_initial_seconds,
            multiplier=settings.backoff_multiplier,
        )

    def delay(self, retry_number: int) -> float:
        """Wait before retry ``retry_number`` (0-based)."""
        return self.initial_seconds * (self.multiplier**retry_number)


class RequestPacer:
    """
    Spaces consecutive requests at least ``1 / per_second`` apart.
    A rate of zero or less disables pacing.
    """

    def __init__(
        self,
        per_second: float,
        *,
        sleep: Callable[[float], None],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._interval = 1.0 / per_second if per_second > 0 else 0.0
        self._sleep = sleep
        self._clock = clock
        self._last_sent: float | None = None

    def wait(self) -> None:
        if self._interval <= 0:
            return
        if self._last_sent is not None:
            gap = self._interval - (self._clock() - self._last_sent)
            if gap > 0:
                self._sleep(gap)
        self._last_sent = self._clock()


class _RetryableFailure(Exception):
    pass


class BaseConnector(ABC):
    """
    Base for API connectors. Subclasses call ``_request_json`` and own the
    shape of what they return.
    """

    source: str
    parse_iso_datetime = staticmethod(to_utc_datetime)

    def __init__(
        self,
        *,
        source: str,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.source = source
        self._session = session or requests.Session()
        self._sleep = sleep
        self._timeout_seconds = http_settings.timeout_seconds
        self._backoff = BackoffPolicy.from_settings(http_settings)
        self._pacer = RequestPacer(http_settings.rate_limit_per_second, sleep=sleep)

    def _request_json(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        json_body: Any = None,
    ) -> Any:
        response = self._request(method=method, url=url, params=params, headers=headers, json_body=json_body)
        try:
            return response.json()
        except ValueError as exc:
            raise ConnectorRequestError(f"{self.source}: response was not valid JSON.") from exc

    def _request(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        json_body: Any = None,
    ) -> requests.Response:
        """
        Send the request, retrying network errors and retryable statuses
        up to ``max_retries`` times with exponential backoff.
        """

        failure: Exception | None = None
        attempts = self._backoff.max_retries + 1
        for attempt in range(attempts):
            if attempt:
                wait_seconds = self._backoff.delay(attempt - 1)
                log_event(
                    logger,
                    logging.WARNING,
                    "connector_retry",
                    source=self.source,
                    attempt=attempt,
                    max_retries=self._backoff.max_retries,
                    wait_seconds=round(wait_seconds, 2),
                    error=str(failure),
                )
                self._sleep(wait_seconds)
            try:
                return self._send_once(method, url, params=params, headers=headers, json_body=json_body)
            except _RetryableFailure as exc:
                failure = exc.__cause__ or exc

        log_event(logger, logging.ERROR, "connector_exhausted", source=self.source, url=url, error=str(failure))
        raise ConnectorRequestError(f"{self.source}: request failed after retries.") from failure

    def _send_once(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None,
        headers: dict[str, str] | None,
        json_body: Any,
    ) -> requests.Response:
        self._pacer.wait()
        try:
            response = self._session.request(
                method=method,
                url=url,
                params=params,
                headers=headers,
                json=json_body,
                timeout=self._timeout_seconds,
            )
        except (requests.Timeout, requests.ConnectionError) as exc:
            raise _RetryableFailure() from exc

        status = response.status_code
        if status in RETRYABLE_STATUS_CODES:
            raise _RetryableFailure() from requests.HTTPError(f"HTTP {status}", response=response)
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            log_event(logger, logging.ERROR, "connector_rejected", source=self.source, status=status, url=url)
            raise ConnectorRequestError(f"{self.source}: non-retryable request failure (HTTP {status}).") from exc
        return response
