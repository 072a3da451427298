"""
app/services/lead_capture_service.py

Lead submission wiring: the capture orchestrator plus its follow-ups
(queued confirmation email, high-value alerts on the notification
dispatcher).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from app.config import LeadSettings, NotificationSettings
from app.notifications.base import NotificationMessage, Notifier
from app.notifications.dispatcher import NotificationDispatcher
from app.notifications.templates import render_template
from app.repositories.scheduled_email_repository import ScheduledEmailRepository
from lead_scoring.base import LeadStore, LeadSubmission, StoredLead
from lead_scoring.orchestrator import LeadCaptureOrchestrator

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def lead_template_variables(stored: StoredLead, submission: LeadSubmission) -> dict[str, Any]:
    return {
        "name": stored.name,
        "email": stored.email,
        "company": submission.company,
        "source": submission.source,
        "score": stored.score,
        "message": submission.message,
    }


class LeadCaptureService:
    """
    Builds a ``LeadCaptureOrchestrator`` whose hooks enqueue the confirmation
    email and fan high-value alerts out to chat and the sales inbox.
    """

    def __init__(
        self,
        *,
        store: LeadStore,
        lead_settings: LeadSettings,
        notification_settings: NotificationSettings,
        email_queue: ScheduledEmailRepository | None = None,
        dispatcher: NotificationDispatcher | None = None,
        chat_notifier: Notifier | None = None,
        email_notifier: Notifier | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._lead_settings = lead_settings
        self._notification_settings = notification_settings
        self._email_queue = email_queue
        self._dispatcher = dispatcher
        self._chat_notifier = chat_notifier
        self._email_notifier = email_notifier
        self._clock = clock
        self._orchestrator = LeadCaptureOrchestrator(
            store,
            high_value_threshold=lead_settings.high_value_threshold,
            dedup_window=timedelta(hours=lead_settings.dedup_window_hours),
            on_captured=(self.queue_confirmation_email,),
            on_high_value=(self.dispatch_high_value_alert,),
            clock=clock,
        )

    def submit(self, submission: LeadSubmission) -> dict[str, Any]:
        result = self._orchestrator.capture(submission)
        response: dict[str, Any] = {
            "success": True,
            "leadId": str(result.lead_id),
            "score": result.score,
        }
        if result.duplicate:
            response["duplicate"] = True
        return response

    def queue_confirmation_email(self, stored: StoredLead, submission: LeadSubmission) -> None:
        if self._email_queue is None or not self._lead_settings.send_confirmation_email:
            return
        variables = lead_template_variables(stored, submission)
        subject, _ = render_template("lead_confirmation", variables)
        self._email_queue.enqueue(
            to_email=stored.email,
            subject=subject,
            template="lead_confirmation",
            variables=variables,
            send_after=self._clock(),
        )

    def dispatch_high_value_alert(self, stored: StoredLead, submission: LeadSubmission) -> None:
        if self._dispatcher is None:
            return
        subject, body = render_template("high_value_lead", lead_template_variables(stored, submission))
        context = {"leadId": str(stored.id), "score": stored.score}

        if self._chat_notifier is not None and self._chat_notifier.configured:
            self._dispatcher.submit(
                self._chat_notifier,
                NotificationMessage(subject=subject, body=body, context=context),
            )
        sales_email = self._notification_settings.sales_email
        if self._email_notifier is not None and self._email_notifier.configured and sales_email:
            self._dispatcher.submit(
                self._email_notifier,
                NotificationMessage(subject=subject, body=body, recipient=sales_email, context=context),
            )
