"""
app/services/email_dispatch_service.py

Drains due rows from ``scheduled_emails`` through the email notifier.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone

from app.logging_utils import log_event
from app.notifications.base import NotificationMessage, Notifier
from app.notifications.templates import render_template
from app.repositories.scheduled_email_repository import ScheduledEmailRepository

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EmailDispatchService:
    """
    Sends up to ``batch_size`` pending emails whose ``send_after`` has passed,
    pausing between sends, and marks each row sent or failed.

    With no configured notifier the queue is left untouched.
    """

    def __init__(
        self,
        *,
        repository: ScheduledEmailRepository,
        notifier: Notifier,
        batch_size: int = 50,
        send_delay_seconds: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._repository = repository
        self._notifier = notifier
        self._batch_size = max(1, batch_size)
        self._send_delay_seconds = max(0.0, send_delay_seconds)
        self._sleep = sleep
        self._clock = clock

    def dispatch_due(self) -> dict[str, int]:
        if not self._notifier.configured:
            logger.warning("Email notifier not configured; pending emails left queued.")
            return {"sent": 0, "failed": 0}

        due = self._repository.list_due(now=self._clock(), limit=self._batch_size)
        sent = failed = 0
        for index, record in enumerate(due):
            if index > 0 and self._send_delay_seconds:
                self._sleep(self._send_delay_seconds)

            try:
                _, body = render_template(record.template, dict(record.variables or {}))
            except ValueError as exc:
                self._repository.mark_failed(record, error=str(exc))
                failed += 1
                continue

            result = self._notifier.send(
                NotificationMessage(subject=record.subject, body=body, recipient=record.to_email)
            )
            if result.success:
                self._repository.mark_sent(record, sent_at=self._clock())
                sent += 1
            else:
                self._repository.mark_failed(record, error=result.error or "unknown error")
                failed += 1

        log_event(logger, logging.INFO, "email_dispatch_completed", sent=sent, failed=failed)
        return {"sent": sent, "failed": failed}
