"""
app/connectors/news_api_connector.py

News API connector supplying opportunity signals.
"""

from __future__ import annotations

import logging
from typing import Any

from app.config import ExternalHTTPSettings, NewsAPISettings
from app.connectors.base import BaseConnector

logger = logging.getLogger(__name__)


class NewsAPIConnector(BaseConnector):
    """
    Fetches recent articles matching an industry query from NewsAPI.
    """

    def __init__(
        self,
        *,
        settings: NewsAPISettings,
        http_settings: ExternalHTTPSettings,
        **kwargs: Any,
    ) -> None:
        super().__init__(source="news", http_settings=http_settings, **kwargs)
        self._settings = settings

    @property
    def configured(self) -> bool:
        return self._settings.enabled and bool(self._settings.api_key)

    def fetch_signals(self, *, industry: str, limit: int) -> list[dict[str, Any]]:
        """
        Return normalized article signals. Raises ``ConnectorRequestError``
        when the API cannot be reached.
        """

        if not self._settings.enabled:
            return []

        if not self._settings.api_key:
            logger.error("NEWS_API_KEY is missing; skipping news signals.")
            return []

        payload = self._request_json(
            method="GET",
            url=self._settings.base_url,
            params={
                "q": self._settings.query_template.format(industry=industry),
                "language": self._settings.language,
                "pageSize": min(self._settings.page_size, max(1, limit)),
                "sortBy": "publishedAt",
            },
            headers={"X-Api-Key": self._settings.api_key},
        )

        articles = payload.get("articles", []) if isinstance(payload, dict) else []
        signals: list[dict[str, Any]] = []
        for index, article in enumerate(articles):
            parsed = self._normalize_article(article)
            if parsed is None:
                logger.warning("Skipping malformed News API record index=%s", index)
                continue
            signals.append(parsed)
        return signals[:limit]

    def _normalize_article(self, article: Any) -> dict[str, Any] | None:
        if not isinstance(article, dict):
            return None

        title = (article.get("title") or "").strip()
        if not title:
            return None

        published_raw = (article.get("publishedAt") or "").strip()
        published_at = None
        if published_raw:
            try:
                published_at = self.parse_iso_datetime(published_raw).isoformat()
            except ValueError:
                published_at = None

        return {
            "source": self.source,
            "title": title,
            "description": (article.get("description") or "").strip(),
            "url": article.get("url"),
            "published_at": published_at,
        }
