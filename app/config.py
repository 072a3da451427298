"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _get_list_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """
    Read a comma-separated list from environment variables.
    """

    raw = _get_optional_str_env(name)
    if raw is None:
        return default
    items = tuple(item.strip() for item in raw.split(",") if item.strip())
    return items or default


def _get_mapping_env(name: str) -> dict[str, str]:
    """
    Read ``key:value,key:value`` pairs from environment variables.

    Malformed tokens are ignored.
    """

    raw = _get_optional_str_env(name)
    if raw is None:
        return {}
    mapping: dict[str, str] = {}
    for token in raw.split(","):
        key, sep, value = token.partition(":")
        if not sep or not key.strip() or not value.strip():
            continue
        mapping[key.strip()] = value.strip()
    return mapping


@dataclass(frozen=True)
class ExternalHTTPSettings:
    """
    Shared HTTP behavior settings for external connectors.
    """

    timeout_seconds: float = 15.0
    max_retries: int = 3
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    rate_limit_per_second: float = 5.0


@dataclass(frozen=True)
class NewsAPISettings:
    """
    News API connector settings used by the opportunity scanner.
    """

    enabled: bool = True
    api_key: str | None = None
    base_url: str = "https://newsapi.org/v2/everything"
    query_template: str = '"{industry}" AND (RFP OR "request for proposals" OR partnership OR grant)'
    language: str = "en"
    page_size: int = 20


@dataclass(frozen=True)
class RateLimitSettings:
    """
    Fixed-window quotas for callable endpoints.
    """

    flow_limit: int = 10
    flow_window_seconds: float = 60.0
    lead_limit: int = 5
    lead_window_seconds: float = 3600.0
    sweep_interval_seconds: int = 60


@dataclass(frozen=True)
class RetrySettings:
    """
    Backoff settings for transient external-service failures.
    """

    max_retries: int = 3
    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 10.0
    format_retries: int = 2


@dataclass(frozen=True)
class LLMSettings:
    """
    LLM adapter selection and model aliases.
    """

    adapter: str = "openai"
    flash_model: str = "gpt-4o-mini"
    pro_model: str = "gpt-4o"
    embedding_model: str = "text-embedding-3-small"
    max_tokens: int = 2048
    api_key: str | None = None
    base_url: str | None = None


@dataclass(frozen=True)
class AnalyticsSettings:
    """
    GA4 Data API settings.
    """

    property_ids: dict[str, str] = field(default_factory=dict)
    default_properties: tuple[str, ...] = ("bespoke-ethos", "gmfg")
    base_url: str = "https://analyticsdata.googleapis.com/v1beta"
    cache_ttl_seconds: int = 6 * 3600
    top_items: int = 5


@dataclass(frozen=True)
class NotificationSettings:
    """
    Email and chat delivery settings.
    """

    sendgrid_api_key: str | None = None
    sendgrid_url: str = "https://api.sendgrid.com/v3/mail/send"
    email_from: str = "noreply@example.com"
    sales_email: str | None = None
    chat_webhook_url: str | None = None
    chat_webhook_format: str = "slack"
    dispatcher_workers: int = 2
    email_batch_size: int = 50
    email_send_delay_seconds: float = 0.1


@dataclass(frozen=True)
class LeadSettings:
    """
    Lead capture thresholds.
    """

    high_value_threshold: int = 75
    dedup_window_hours: int = 24
    send_confirmation_email: bool = True


@dataclass(frozen=True)
class OpportunitySettings:
    """
    Opportunity scanner source pages and thresholds.
    """

    source_urls: dict[str, str] = field(default_factory=dict)
    high_priority_threshold: float = 0.85
    max_signals_per_source: int = 10


@dataclass(frozen=True)
class SearchSettings:
    """
    Embedding index defaults.
    """

    default_limit: int = 5
    default_min_score: float = 0.7
    batch_size: int = 5
    batch_delay_seconds: float = 0.1


@lru_cache(maxsize=1)
def get_external_http_settings() -> ExternalHTTPSettings:
    """
    Return shared connector HTTP settings from environment variables.
    """

    return ExternalHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("EXTERNAL_HTTP_TIMEOUT_SECONDS", 15.0)),
        max_retries=max(0, _get_int_env("EXTERNAL_HTTP_MAX_RETRIES", 3)),
        backoff_initial_seconds=max(0.1, _get_float_env("EXTERNAL_HTTP_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("EXTERNAL_HTTP_BACKOFF_MULTIPLIER", 2.0)),
        rate_limit_per_second=max(0.1, _get_float_env("EXTERNAL_HTTP_RATE_LIMIT_PER_SECOND", 5.0)),
    )


@lru_cache(maxsize=1)
def get_news_api_settings() -> NewsAPISettings:
    """
    Return News API connector settings from environment variables.
    """

    return NewsAPISettings(
        enabled=_get_bool_env("NEWS_API_ENABLED", True),
        api_key=_get_optional_str_env("NEWS_API_KEY"),
        base_url=_get_str_env("NEWS_API_BASE_URL", "https://newsapi.org/v2/everything"),
        query_template=_get_str_env("NEWS_API_QUERY_TEMPLATE", NewsAPISettings.query_template),
        language=_get_str_env("NEWS_API_LANGUAGE", "en"),
        page_size=max(1, _get_int_env("NEWS_API_PAGE_SIZE", 20)),
    )


@lru_cache(maxsize=1)
def get_rate_limit_settings() -> RateLimitSettings:
    """
    Return endpoint quotas. A limit of 0 is valid and denies every request.
    """

    return RateLimitSettings(
        flow_limit=max(0, _get_int_env("FLOW_RATE_LIMIT", 10)),
        flow_window_seconds=max(1.0, _get_float_env("FLOW_RATE_WINDOW_SECONDS", 60.0)),
        lead_limit=max(0, _get_int_env("LEAD_RATE_LIMIT", 5)),
        lead_window_seconds=max(1.0, _get_float_env("LEAD_RATE_WINDOW_SECONDS", 3600.0)),
        sweep_interval_seconds=max(1, _get_int_env("RATE_LIMIT_SWEEP_INTERVAL_SECONDS", 60)),
    )


@lru_cache(maxsize=1)
def get_retry_settings() -> RetrySettings:
    """
    Return retry/backoff settings for LLM and network calls.
    """

    return RetrySettings(
        max_retries=max(1, _get_int_env("RETRY_MAX_RETRIES", 3)),
        base_delay_seconds=max(0.0, _get_float_env("RETRY_BASE_DELAY_SECONDS", 1.0)),
        max_delay_seconds=max(0.0, _get_float_env("RETRY_MAX_DELAY_SECONDS", 10.0)),
        format_retries=max(0, _get_int_env("LLM_FORMAT_RETRIES", 2)),
    )


@lru_cache(maxsize=1)
def get_llm_settings() -> LLMSettings:
    """
    Return LLM adapter settings. ``LLM_API_KEY`` wins over ``OPENAI_API_KEY``.
    """

    return LLMSettings(
        adapter=_get_str_env("LLM_ADAPTER", "openai").lower(),
        flash_model=_get_str_env("LLM_FLASH_MODEL", _get_str_env("LLM_MODEL", "gpt-4o-mini")),
        pro_model=_get_str_env("LLM_PRO_MODEL", "gpt-4o"),
        embedding_model=_get_str_env("LLM_EMBEDDING_MODEL", "text-embedding-3-small"),
        max_tokens=max(64, _get_int_env("LLM_MAX_TOKENS", 2048)),
        api_key=_get_optional_str_env("LLM_API_KEY") or _get_optional_str_env("OPENAI_API_KEY"),
        base_url=_get_optional_str_env("LLM_BASE_URL"),
    )


@lru_cache(maxsize=1)
def get_analytics_settings() -> AnalyticsSettings:
    """
    Return GA4 settings. ``GA4_PROPERTY_IDS`` maps property names to ids.
    """

    return AnalyticsSettings(
        property_ids=_get_mapping_env("GA4_PROPERTY_IDS"),
        default_properties=_get_list_env("GA4_DEFAULT_PROPERTIES", ("bespoke-ethos", "gmfg")),
        base_url=_get_str_env("GA4_API_BASE_URL", "https://analyticsdata.googleapis.com/v1beta"),
        cache_ttl_seconds=max(0, _get_int_env("GA4_CACHE_TTL_SECONDS", 6 * 3600)),
        top_items=max(1, _get_int_env("GA4_TOP_ITEMS", 5)),
    )


@lru_cache(maxsize=1)
def get_notification_settings() -> NotificationSettings:
    """
    Return email/chat notification settings.
    """

    return NotificationSettings(
        sendgrid_api_key=_get_optional_str_env("SENDGRID_API_KEY"),
        sendgrid_url=_get_str_env("SENDGRID_API_URL", "https://api.sendgrid.com/v3/mail/send"),
        email_from=_get_str_env("EMAIL_FROM", "noreply@example.com"),
        sales_email=_get_optional_str_env("SALES_ALERT_EMAIL"),
        chat_webhook_url=_get_optional_str_env("CHAT_WEBHOOK_URL"),
        chat_webhook_format=_get_str_env("CHAT_WEBHOOK_FORMAT", "slack").lower(),
        dispatcher_workers=max(1, _get_int_env("NOTIFICATION_WORKERS", 2)),
        email_batch_size=max(1, _get_int_env("EMAIL_BATCH_SIZE", 50)),
        email_send_delay_seconds=max(0.0, _get_float_env("EMAIL_SEND_DELAY_SECONDS", 0.1)),
    )


@lru_cache(maxsize=1)
def get_lead_settings() -> LeadSettings:
    """
    Return lead capture settings.
    """

    return LeadSettings(
        high_value_threshold=_get_int_env("LEAD_HIGH_VALUE_THRESHOLD", 75),
        dedup_window_hours=max(1, _get_int_env("LEAD_DEDUP_WINDOW_HOURS", 24)),
        send_confirmation_email=_get_bool_env("LEAD_SEND_CONFIRMATION_EMAIL", True),
    )


@lru_cache(maxsize=1)
def get_opportunity_settings() -> OpportunitySettings:
    """
    Return opportunity scanner settings. ``OPPORTUNITY_SOURCE_URLS`` maps
    source names (nglcc, events, linkedin) to listing pages.
    """

    return OpportunitySettings(
        source_urls=_get_mapping_env("OPPORTUNITY_SOURCE_URLS"),
        high_priority_threshold=_get_float_env("OPPORTUNITY_HIGH_PRIORITY_THRESHOLD", 0.85),
        max_signals_per_source=max(1, _get_int_env("OPPORTUNITY_MAX_SIGNALS_PER_SOURCE", 10)),
    )


@lru_cache(maxsize=1)
def get_search_settings() -> SearchSettings:
    """
    Return embedding index defaults.
    """

    return SearchSettings(
        default_limit=max(1, _get_int_env("SEARCH_DEFAULT_LIMIT", 5)),
        default_min_score=_get_float_env("SEARCH_DEFAULT_MIN_SCORE", 0.7),
        batch_size=max(1, _get_int_env("EMBEDDING_BATCH_SIZE", 5)),
        batch_delay_seconds=max(0.0, _get_float_env("EMBEDDING_BATCH_DELAY_SECONDS", 0.1)),
    )


@dataclass(frozen=True)
class SchedulerSettings:
    """
    Background job toggles.
    """

    enabled: bool = True
    opportunity_timezone: str = "America/New_York"
    competitor_watch_interval_hours: int = 6
    analytics_sync_interval_hours: int = 6
    health_interval_minutes: int = 15
    email_dispatch_interval_minutes: int = 15


@lru_cache(maxsize=1)
def get_scheduler_settings() -> SchedulerSettings:
    """
    Return scheduler settings from environment variables.
    """

    return SchedulerSettings(
        enabled=_get_bool_env("SCHEDULER_ENABLED", True),
        opportunity_timezone=_get_str_env("OPPORTUNITY_SCAN_TIMEZONE", "America/New_York"),
        competitor_watch_interval_hours=max(1, _get_int_env("COMPETITOR_WATCH_INTERVAL_HOURS", 6)),
        analytics_sync_interval_hours=max(1, _get_int_env("ANALYTICS_SYNC_INTERVAL_HOURS", 6)),
        health_interval_minutes=max(1, _get_int_env("HEALTH_CHECK_INTERVAL_MINUTES", 15)),
        email_dispatch_interval_minutes=max(1, _get_int_env("EMAIL_DISPATCH_INTERVAL_MINUTES", 15)),
    )
