"""
Config helpers for competitor watch.
"""

from app.scraping.config.loader import (
    get_competitor_watch_settings,
    load_monitored_competitors,
    resolve_default_urls,
)
from app.scraping.config.models import CompetitorWatchSettings, MonitoredCompetitor

__all__ = [
    "CompetitorWatchSettings",
    "MonitoredCompetitor",
    "get_competitor_watch_settings",
    "load_monitored_competitors",
    "resolve_default_urls",
]
