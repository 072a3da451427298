"""
app/repositories/scheduled_email_repository.py

Queue of outbound emails drained by the email dispatch job.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models.scheduled_email import EmailStatus, ScheduledEmail


class ScheduledEmailRepository:
    """
    Enqueue and drain ``scheduled_emails`` rows. Writes commit immediately.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def enqueue(
        self,
        *,
        to_email: str,
        subject: str,
        template: str,
        variables: dict[str, Any],
        send_after: datetime,
    ) -> ScheduledEmail:
        record = ScheduledEmail(
            to_email=to_email,
            subject=subject,
            template=template,
            variables=variables,
            send_after=send_after,
            status=EmailStatus.PENDING,
        )
        try:
            self._session.add(record)
            self._session.commit()
        except SQLAlchemyError:
            self._session.rollback()
            raise
        return record

    def list_due(self, *, now: datetime, limit: int) -> Sequence[ScheduledEmail]:
        statement = (
            select(ScheduledEmail)
            .where(ScheduledEmail.status == EmailStatus.PENDING, ScheduledEmail.send_after <= now)
            .order_by(ScheduledEmail.send_after)
            .limit(limit)
        )
        return self._session.scalars(statement).all()

    def mark_sent(self, record: ScheduledEmail, *, sent_at: datetime) -> None:
        record.status = EmailStatus.SENT
        record.sent_at = sent_at
        record.error = None
        self._commit()

    def mark_failed(self, record: ScheduledEmail, *, error: str) -> None:
        record.status = EmailStatus.FAILED
        record.error = error[:2000]
        self._commit()

    def _commit(self) -> None:
        try:
            self._session.commit()
        except SQLAlchemyError:
            self._session.rollback()
            raise
