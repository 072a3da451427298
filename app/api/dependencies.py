"""
app/api/dependencies.py

Shared FastAPI dependencies: client identification, rate-limit gates and
service providers. Tests swap providers through ``app.dependency_overrides``.
"""

from __future__ import annotations

import logging

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.api.rate_limiter import FixedWindowRateLimiter, get_rate_limiter
from app.config import (
    get_analytics_settings,
    get_lead_settings,
    get_notification_settings,
    get_opportunity_settings,
    get_rate_limit_settings,
    get_search_settings,
)
from app.connectors.providers import get_ga4_connector, get_news_connector
from app.errors import ResourceExhaustedError
from app.logging_utils import log_event
from app.notifications.providers import (
    get_chat_notifier,
    get_email_notifier,
    get_notification_dispatcher,
)
from app.repositories.analytics_repository import AnalyticsRepository
from app.repositories.scheduled_email_repository import ScheduledEmailRepository
from app.repositories.system_state_repository import SystemStateRepository
from app.scraping.config import get_competitor_watch_settings
from app.scraping.storage import SQLAlchemySnapshotStorage
from app.services.analytics_service import AnalyticsService
from app.services.competitor_watch_service import CompetitorWatchService, make_chat_alert_hook
from app.services.content_drafter_service import ContentDrafterService
from app.services.dashboard_service import DashboardService
from app.services.lead_capture_service import LeadCaptureService
from app.services.llm_provider import get_llm_adapter
from app.services.marketing_brief_service import MarketingBriefService
from app.services.opportunity_scanner_service import OpportunityScannerService
from app.services.self_healing_service import SelfHealingService, default_health_checks
from app.services.semantic_search_service import build_vector_index
from db.session import get_db
from lead_scoring.repository import LeadRepository
from llm_synthesis.adapter import BaseLLMAdapter
from semantic_search.base import VectorIndex

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


# ---------------------------------------------------------------------------
# Client identification and rate limiting
# ---------------------------------------------------------------------------


def get_client_identifier(request: Request) -> str:
    """
    First ``X-Forwarded-For`` entry, then ``X-Real-IP``, then the socket
    peer, then ``unknown``.
    """

    forwarded_for = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded_for.split(",")[0].strip()
    if first_hop:
        return first_hop

    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip

    if request.client is not None and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


def _enforce(
    limiter: FixedWindowRateLimiter,
    *,
    scope: str,
    client_id: str,
    limit: int,
    window_seconds: float,
) -> None:
    key = f"{scope}:{client_id}"
    if limiter.check(key, limit, window_seconds):
        return
    retry_after = limiter.retry_after(key) if limit > 0 else window_seconds
    log_event(
        logger,
        logging.WARNING,
        "rate_limit_exceeded",
        scope=scope,
        client_id=client_id,
        retry_after=retry_after,
    )
    raise ResourceExhaustedError(retry_after)


def enforce_flow_rate_limit(
    client_id: str = Depends(get_client_identifier),
    limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
) -> str:
    settings = get_rate_limit_settings()
    _enforce(
        limiter,
        scope="flow",
        client_id=client_id,
        limit=settings.flow_limit,
        window_seconds=settings.flow_window_seconds,
    )
    return client_id


def enforce_lead_rate_limit(
    client_id: str = Depends(get_client_identifier),
    limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
) -> str:
    settings = get_rate_limit_settings()
    _enforce(
        limiter,
        scope="lead",
        client_id=client_id,
        limit=settings.lead_limit,
        window_seconds=settings.lead_window_seconds,
    )
    return client_id


# ---------------------------------------------------------------------------
# Service providers
# ---------------------------------------------------------------------------


def get_llm_adapter_dependency() -> BaseLLMAdapter:
    return get_llm_adapter()


def get_marketing_brief_service(
    db: Session = Depends(get_db),
    adapter: BaseLLMAdapter = Depends(get_llm_adapter_dependency),
) -> MarketingBriefService:
    analytics = AnalyticsService(
        client=get_ga4_connector(),
        settings=get_analytics_settings(),
        session=db,
    )
    return MarketingBriefService(analytics=analytics, adapter=adapter)


def get_competitor_watch_service(
    db: Session = Depends(get_db),
    adapter: BaseLLMAdapter = Depends(get_llm_adapter_dependency),
) -> CompetitorWatchService:
    return CompetitorWatchService(
        storage=SQLAlchemySnapshotStorage(session=db),
        adapter=adapter,
        settings=get_competitor_watch_settings(),
        on_action_required=(make_chat_alert_hook(get_notification_dispatcher(), get_chat_notifier()),),
    )


def get_content_drafter_service(
    adapter: BaseLLMAdapter = Depends(get_llm_adapter_dependency),
) -> ContentDrafterService:
    return ContentDrafterService(adapter=adapter)


def get_opportunity_scanner_service(
    adapter: BaseLLMAdapter = Depends(get_llm_adapter_dependency),
) -> OpportunityScannerService:
    return OpportunityScannerService(
        adapter=adapter,
        settings=get_opportunity_settings(),
        news=get_news_connector(),
    )


def get_self_healing_service() -> SelfHealingService:
    return SelfHealingService(
        checks=default_health_checks(
            analytics_settings=get_analytics_settings(),
            notification_settings=get_notification_settings(),
        )
    )


def get_lead_repository(db: Session = Depends(get_db)) -> LeadRepository:
    return LeadRepository(db)


def get_lead_capture_service(
    db: Session = Depends(get_db),
    repository: LeadRepository = Depends(get_lead_repository),
) -> LeadCaptureService:
    return LeadCaptureService(
        store=repository,
        lead_settings=get_lead_settings(),
        notification_settings=get_notification_settings(),
        email_queue=ScheduledEmailRepository(db),
        dispatcher=get_notification_dispatcher(),
        chat_notifier=get_chat_notifier(),
        email_notifier=get_email_notifier(),
    )


def get_system_state_repository(db: Session = Depends(get_db)) -> SystemStateRepository:
    return SystemStateRepository(db)


def get_analytics_repository(db: Session = Depends(get_db)) -> AnalyticsRepository:
    return AnalyticsRepository(db)


def get_dashboard_service(
    leads: LeadRepository = Depends(get_lead_repository),
    analytics: AnalyticsRepository = Depends(get_analytics_repository),
    state: SystemStateRepository = Depends(get_system_state_repository),
) -> DashboardService:
    return DashboardService(
        leads=leads,
        analytics=analytics,
        state=state,
        high_value_threshold=get_lead_settings().high_value_threshold,
        default_property=next(iter(get_analytics_settings().default_properties), "bespoke-ethos"),
    )


def get_vector_index(
    db: Session = Depends(get_db),
    adapter: BaseLLMAdapter = Depends(get_llm_adapter_dependency),
) -> VectorIndex:
    return build_vector_index(session=db, adapter=adapter, settings=get_search_settings())
