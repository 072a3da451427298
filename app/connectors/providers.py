"""
app/connectors/providers.py

Process-wide connector instances built from configuration.
"""

from __future__ import annotations

from functools import lru_cache

from app.config import get_analytics_settings, get_external_http_settings, get_news_api_settings
from app.connectors.ga4_connector import GA4ReportConnector
from app.connectors.news_api_connector import NewsAPIConnector


@lru_cache(maxsize=1)
def get_ga4_connector() -> GA4ReportConnector:
    return GA4ReportConnector(
        settings=get_analytics_settings(),
        http_settings=get_external_http_settings(),
    )


@lru_cache(maxsize=1)
def get_news_connector() -> NewsAPIConnector:
    return NewsAPIConnector(
        settings=get_news_api_settings(),
        http_settings=get_external_http_settings(),
    )
