"""
app/api/routers/flows.py

Callable marketing flows. Every route is gated by the per-client flow quota.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from app.api.dependencies import (
    enforce_flow_rate_limit,
    get_competitor_watch_service,
    get_content_drafter_service,
    get_marketing_brief_service,
    get_opportunity_scanner_service,
    get_self_healing_service,
)
from app.api.responses import success_response
from app.schemas.flows import (
    CompetitorWatchRequest,
    ContentDrafterRequest,
    MarketingBriefRequest,
    OpportunityScannerRequest,
    SelfHealingRequest,
)
from app.services.competitor_watch_service import CompetitorWatchService
from app.services.content_drafter_service import ContentDrafterService
from app.services.marketing_brief_service import MarketingBriefService
from app.services.opportunity_scanner_service import OpportunityScannerService
from app.services.self_healing_service import SelfHealingService

router = APIRouter(
    prefix="/flows",
    tags=["flows"],
    dependencies=[Depends(enforce_flow_rate_limit)],
)


@router.post("/marketing-brief")
def marketing_brief(
    payload: MarketingBriefRequest,
    service: MarketingBriefService = Depends(get_marketing_brief_service),
) -> dict[str, Any]:
    """
    Executive brief over aggregated analytics for the requested properties.
    """

    return success_response(
        service.generate(date_range=payload.date_range, properties=payload.properties)
    )


@router.post("/competitor-watch")
def competitor_watch(
    payload: CompetitorWatchRequest,
    service: CompetitorWatchService = Depends(get_competitor_watch_service),
) -> dict[str, Any]:
    return success_response(
        service.run(competitors=payload.competitors, check_type=payload.check_type)
    )


@router.post("/content-drafter")
def content_drafter(
    payload: ContentDrafterRequest,
    service: ContentDrafterService = Depends(get_content_drafter_service),
) -> dict[str, Any]:
    return success_response(
        service.draft(
            topic=payload.topic,
            content_type=payload.content_type,
            target_keywords=payload.target_keywords,
            tone=payload.tone,
            word_count=payload.word_count,
        )
    )


@router.post("/opportunity-scanner")
def opportunity_scanner(
    payload: OpportunityScannerRequest,
    service: OpportunityScannerService = Depends(get_opportunity_scanner_service),
) -> dict[str, Any]:
    return success_response(
        service.scan(
            sources=payload.sources,
            industry=payload.industry,
            min_relevance_score=payload.min_relevance_score,
        )
    )


@router.post("/self-healing")
def self_healing(
    payload: SelfHealingRequest,
    service: SelfHealingService = Depends(get_self_healing_service),
) -> dict[str, Any]:
    return success_response(
        service.run(check_all=payload.check_all, specific_service=payload.specific_service)
    )
