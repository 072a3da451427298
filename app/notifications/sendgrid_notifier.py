"""
app/notifications/sendgrid_notifier.py

SendGrid email delivery over the v3 REST API.
"""

from __future__ import annotations

import logging

import requests

from app.notifications.base import NotificationMessage, Notifier, SendResult

logger = logging.getLogger(__name__)


class SendGridEmailNotifier(Notifier):
    channel = "email"

    def __init__(
        self,
        *,
        api_key: str | None,
        from_email: str,
        api_url: str = "https://api.sendgrid.com/v3/mail/send",
        session: requests.Session | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._from_email = from_email
        self._api_url = api_url
        self._session = session or requests.Session()
        self._timeout_seconds = timeout_seconds

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def send(self, message: NotificationMessage) -> SendResult:
        if not self._api_key:
            return SendResult(success=False, error="SENDGRID_API_KEY is not configured.")
        if not message.recipient:
            return SendResult(success=False, error="Email notification has no recipient.")

        payload = {
            "personalizations": [{"to": [{"email": message.recipient}]}],
            "from": {"email": self._from_email},
            "subject": message.subject,
            "content": [{"type": "text/plain", "value": message.body}],
        }
        try:
            response = self._session.post(
                self._api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self._timeout_seconds,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("SendGrid delivery failed recipient=%s error=%s", message.recipient, exc)
            return SendResult(success=False, error=str(exc))
        return SendResult(success=True)
