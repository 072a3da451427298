"""
lead_scoring/repository.py

SQLAlchemy persistence for leads. Writes commit and roll back on failure.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models.lead import Lead, LeadStatus
from lead_scoring.base import LeadStore, LeadSubmission, StoredLead


def _to_stored(record: Lead) -> StoredLead:
    return StoredLead(
        id=record.id,
        email=record.email,
        name=record.name,
        score=record.score,
        status=record.status,
        created_at=record.created_at,
        company=record.company,
        source=record.source,
    )


class LeadRepository(LeadStore):
    """Lead reads and writes for capture and the dashboard."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def find_recent_by_email(self, email: str, since: datetime) -> Optional[StoredLead]:
        statement = (
            select(Lead)
            .where(Lead.email == email, Lead.created_at >= since)
            .order_by(Lead.created_at.desc())
            .limit(1)
        )
        record = self._session.scalars(statement).first()
        return _to_stored(record) if record is not None else None

    def create(self, lead: LeadSubmission, *, score: int, created_at: datetime) -> StoredLead:
        record = Lead(
            id=uuid.uuid4(),
            email=lead.normalized_email,
            name=lead.name.strip(),
            company=lead.company,
            phone=lead.phone,
            message=lead.message,
            source=lead.source,
            referrer=lead.referrer,
            score=score,
            status=LeadStatus.NEW,
            created_at=created_at,
            updated_at=created_at,
        )
        try:
            self._session.add(record)
            self._session.commit()
        except SQLAlchemyError:
            self._session.rollback()
            raise
        return _to_stored(record)

    def list_leads(self, *, status: Optional[str] = None, limit: int = 50, offset: int = 0) -> tuple[list[Lead], int]:
        """Return one page of leads (newest first) and the total match count."""
        filters = [Lead.status == status] if status else []
        total = self._session.scalar(select(func.count()).select_from(Lead).where(*filters)) or 0
        statement = (
            select(Lead)
            .where(*filters)
            .order_by(Lead.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(self._session.scalars(statement)), int(total)

    def update_status(self, lead_id: uuid.UUID, status: str) -> Optional[Lead]:
        record = self._session.get(Lead, lead_id)
        if record is None:
            return None
        try:
            record.status = status
            self._session.commit()
        except SQLAlchemyError:
            self._session.rollback()
            raise
        return record

    def stats(self, *, high_value_threshold: int) -> dict:
        total, new, converted, high_value, average = self._session.execute(
            select(
                func.count(Lead.id),
                func.count(Lead.id).filter(Lead.status == LeadStatus.NEW),
                func.count(Lead.id).filter(Lead.status == LeadStatus.CONVERTED),
                func.count(Lead.id).filter(Lead.score >= high_value_threshold),
                func.avg(Lead.score),
            )
        ).one()
        return {
            "totalLeads": int(total or 0),
            "newLeads": int(new or 0),
            "convertedLeads": int(converted or 0),
            "highValueLeads": int(high_value or 0),
            "averageScore": round(float(average), 1) if average is not None else 0.0,
        }
