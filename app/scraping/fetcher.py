"""
Single-page content fetcher for competitor monitoring.
"""

from __future__ import annotations

import logging

import requests

from app.logging_utils import log_event
from app.scraping.parsing import HTMLParsingLayer
from app.scraping.parsing.html_parsers import MAX_TEXT_CHARS
from app.scraping.types import FetchResult

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "PrometheusBot/1.0 (+https://example.com/bot)"
DEFAULT_TIMEOUT_SECONDS = 10.0


class ContentFetcher:
    """
    Fetches a page and reduces it to title, key phrases and bounded plain text.

    Failures never raise: a network error yields ``status=0`` and a non-2xx
    response yields its status code, both with empty content.
    """

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        max_chars: int = MAX_TEXT_CHARS,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds
        self.max_chars = max_chars
        self.request_headers = {"User-Agent": user_agent}

    def fetch(self, url: str) -> FetchResult:
        try:
            response = self.session.get(
                url,
                headers=self.request_headers,
                timeout=self.timeout_seconds,
                allow_redirects=True,
            )
        except requests.RequestException as exc:
            log_event(logger, logging.WARNING, "content_fetch_failed", url=url, status=0, error=str(exc))
            return FetchResult(url=url, status=0)

        if not 200 <= response.status_code < 300:
            log_event(
                logger,
                logging.WARNING,
                "content_fetch_failed",
                url=url,
                status=response.status_code,
            )
            return FetchResult(url=url, status=response.status_code)

        soup = HTMLParsingLayer.parse(response.text)
        title = HTMLParsingLayer.extract_title(soup)
        key_phrases = HTMLParsingLayer.extract_key_phrases(soup)
        text = HTMLParsingLayer.extract_text(soup, max_chars=self.max_chars)
        return FetchResult(
            url=url,
            status=response.status_code,
            title=title,
            text=text,
            key_phrases=key_phrases,
        )
