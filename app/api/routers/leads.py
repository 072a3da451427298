"""
app/api/routers/leads.py

Lead submission and dashboard endpoints.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import (
    enforce_lead_rate_limit,
    get_dashboard_service,
    get_lead_capture_service,
    get_lead_repository,
)
from app.api.responses import success_response
from app.errors import InvalidArgumentError, NotFoundError
from app.schemas.leads import LeadStatusUpdateRequest, LeadStatusValue, LeadSubmissionRequest
from app.services.dashboard_service import DashboardService
from app.services.lead_capture_service import LeadCaptureService
from db.models.lead import Lead
from lead_scoring.base import LeadSubmission
from lead_scoring.repository import LeadRepository

router = APIRouter(tags=["leads"])


def _lead_to_dict(lead: Lead) -> dict[str, Any]:
    return {
        "id": str(lead.id),
        "email": lead.email,
        "name": lead.name,
        "company": lead.company,
        "phone": lead.phone,
        "message": lead.message,
        "source": lead.source,
        "referrer": lead.referrer,
        "score": lead.score,
        "status": lead.status,
        "createdAt": lead.created_at.isoformat() if lead.created_at else None,
        "updatedAt": lead.updated_at.isoformat() if lead.updated_at else None,
    }


@router.post("/leads", dependencies=[Depends(enforce_lead_rate_limit)])
def submit_lead(
    payload: LeadSubmissionRequest,
    service: LeadCaptureService = Depends(get_lead_capture_service),
) -> dict[str, Any]:
    """
    Capture a contact-form lead. Duplicates inside the dedup window return
    the existing lead with ``duplicate: true``.
    """

    submission = LeadSubmission(
        email=payload.email,
        name=payload.name,
        message=payload.message,
        company=payload.company,
        phone=payload.phone,
        source=payload.source,
        referrer=payload.referrer,
    )
    return success_response(service.submit(submission))


@router.get("/dashboard/leads")
def list_leads(
    status: LeadStatusValue | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    repository: LeadRepository = Depends(get_lead_repository),
) -> dict[str, Any]:
    leads, total = repository.list_leads(status=status, limit=limit, offset=offset)
    return success_response(
        {
            "leads": [_lead_to_dict(lead) for lead in leads],
            "total": total,
            "hasMore": offset + len(leads) < total,
        }
    )


@router.patch("/dashboard/leads/{lead_id}")
def update_lead_status(
    lead_id: str,
    payload: LeadStatusUpdateRequest,
    repository: LeadRepository = Depends(get_lead_repository),
) -> dict[str, Any]:
    try:
        parsed_id = uuid.UUID(lead_id)
    except ValueError as exc:
        raise InvalidArgumentError(f"Invalid lead id '{lead_id}'.") from exc

    lead = repository.update_status(parsed_id, payload.status)
    if lead is None:
        raise NotFoundError(f"Lead '{lead_id}' not found.")
    return success_response(_lead_to_dict(lead))


@router.get("/dashboard/stats")
def dashboard_stats(service: DashboardService = Depends(get_dashboard_service)) -> dict[str, Any]:
    return success_response(service.stats())


@router.get("/dashboard/analytics")
def dashboard_analytics(
    property_name: str | None = Query(default=None, alias="property", min_length=1, max_length=120),
    days: int = Query(default=7, ge=1, le=90),
    service: DashboardService = Depends(get_dashboard_service),
) -> dict[str, Any]:
    """
    Daily GA4 reports for one property over the ``days`` days before today,
    with totals and merged top-10 pages and sources.
    """

    return success_response(service.analytics(property_name=property_name, days=days))
