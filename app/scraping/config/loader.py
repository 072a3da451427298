"""
Environment + JSON config loader for competitor watch.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from urllib.parse import urljoin

from app.config import _get_float_env, _get_int_env, _get_list_env, _get_str_env
from app.scraping.config.models import CompetitorWatchSettings, MonitoredCompetitor


def _project_root() -> Path:
    return Path(__file__).resolve().parents[3]


def _resolve_config_path(raw_path: str) -> Path:
    candidate = Path(raw_path)
    if candidate.is_absolute():
        return candidate
    return (_project_root() / candidate).resolve()


@lru_cache(maxsize=1)
def get_competitor_watch_settings() -> CompetitorWatchSettings:
    """
    Return cached competitor watch settings from environment variables.
    """

    config_path = _get_str_env(
        "COMPETITOR_WATCH_CONFIG_PATH",
        "app/scraping/config/competitors.json",
    )
    return CompetitorWatchSettings(
        config_path=str(_resolve_config_path(config_path)),
        extra_urls=_get_list_env("COMPETITOR_WATCH_URLS", ()),
        user_agent=_get_str_env(
            "COMPETITOR_WATCH_USER_AGENT",
            "PrometheusBot/1.0 (+https://example.com/bot)",
        ),
        timeout_seconds=max(1.0, _get_float_env("COMPETITOR_WATCH_TIMEOUT_SECONDS", 10.0)),
        max_text_chars=max(100, _get_int_env("COMPETITOR_WATCH_MAX_TEXT_CHARS", 10_000)),
        inter_request_delay_seconds=max(
            0.0,
            _get_float_env("COMPETITOR_WATCH_DELAY_SECONDS", 0.5),
        ),
        fingerprint=_get_str_env("COMPETITOR_WATCH_FINGERPRINT", "rolling31"),
        excerpt_chars=max(100, _get_int_env("COMPETITOR_WATCH_EXCERPT_CHARS", 1_500)),
    )


def load_monitored_competitors(*, config_path: str) -> list[MonitoredCompetitor]:
    """
    Load competitor definitions from a JSON file. A missing file yields an
    empty list so URL-only configuration via env keeps working.
    """

    path = _resolve_config_path(config_path)
    if not path.exists():
        return []

    raw_data = json.loads(path.read_text(encoding="utf-8"))
    competitors = raw_data.get("competitors", [])
    if not isinstance(competitors, list):
        raise ValueError("Invalid competitor config: 'competitors' must be a list.")

    parsed: list[MonitoredCompetitor] = []
    for entry in competitors:
        if not isinstance(entry, dict):
            continue

        name = str(entry.get("name", "")).strip()
        base_url = str(entry.get("base_url", "")).strip()
        if not name or not base_url:
            continue

        enabled = entry.get("enabled", True)
        parsed.append(
            MonitoredCompetitor(
                name=name,
                base_url=base_url.rstrip("/"),
                pages=_normalize_pages(base_url=base_url, pages=entry.get("pages", {})),
                enabled=enabled if isinstance(enabled, bool) else True,
            )
        )

    return parsed


def resolve_default_urls(settings: CompetitorWatchSettings) -> list[str]:
    """
    URLs checked when a caller does not name any: every page of every enabled
    competitor in the config file, then ``COMPETITOR_WATCH_URLS``.
    """

    urls: list[str] = []
    for competitor in load_monitored_competitors(config_path=settings.config_path):
        if competitor.enabled:
            urls.extend(competitor.urls)
    urls.extend(settings.extra_urls)
    return list(dict.fromkeys(urls))


def _normalize_pages(*, base_url: str, pages: object) -> dict[str, str]:
    if not isinstance(pages, dict):
        return {}

    normalized: dict[str, str] = {}
    for key, value in pages.items():
        if not isinstance(key, str) or not isinstance(value, str):
            continue
        page_kind = key.strip().lower()
        raw_url = value.strip()
        if not page_kind or not raw_url:
            continue
        if raw_url.startswith(("http://", "https://")):
            normalized[page_kind] = raw_url
        else:
            normalized[page_kind] = urljoin(f"{base_url.rstrip('/')}/", raw_url.lstrip("/"))
    return normalized
