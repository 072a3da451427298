"""
app/notifications/webhook_notifier.py

Chat alerts through an incoming webhook (Slack or Discord payload shape).
"""

from __future__ import annotations

import logging

import requests

from app.notifications.base import NotificationMessage, Notifier, SendResult

logger = logging.getLogger(__name__)

MAX_CHAT_MESSAGE_CHARS = 1900
_PAYLOAD_KEYS = {"slack": "text", "discord": "content"}


class WebhookChatNotifier(Notifier):
    channel = "chat"

    def __init__(
        self,
        *,
        webhook_url: str | None,
        payload_format: str = "slack",
        session: requests.Session | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        if payload_format not in _PAYLOAD_KEYS:
            raise ValueError(
                f"Unknown chat payload format '{payload_format}'. "
                f"Allowed values: {sorted(_PAYLOAD_KEYS)}."
            )
        self._webhook_url = webhook_url
        self._payload_key = _PAYLOAD_KEYS[payload_format]
        self._session = session or requests.Session()
        self._timeout_seconds = timeout_seconds

    @property
    def configured(self) -> bool:
        return bool(self._webhook_url)

    def send(self, message: NotificationMessage) -> SendResult:
        if not self._webhook_url:
            return SendResult(success=False, error="CHAT_WEBHOOK_URL is not configured.")

        text = f"*{message.subject}*\n{message.body}" if message.subject else message.body
        if len(text) > MAX_CHAT_MESSAGE_CHARS:
            text = text[:MAX_CHAT_MESSAGE_CHARS] + "... [truncated]"

        try:
            response = self._session.post(
                self._webhook_url,
                json={self._payload_key: text},
                timeout=self._timeout_seconds,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Chat webhook delivery failed error=%s", exc)
            return SendResult(success=False, error=str(exc))
        return SendResult(success=True)
