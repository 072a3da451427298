"""
app/notifications/providers.py

Process-wide notifier and dispatcher instances built from configuration.
"""

from __future__ import annotations

from functools import lru_cache

from app.config import get_notification_settings
from app.notifications.dispatcher import NotificationDispatcher
from app.notifications.sendgrid_notifier import SendGridEmailNotifier
from app.notifications.webhook_notifier import WebhookChatNotifier


@lru_cache(maxsize=1)
def get_email_notifier() -> SendGridEmailNotifier:
    settings = get_notification_settings()
    return SendGridEmailNotifier(
        api_key=settings.sendgrid_api_key,
        from_email=settings.email_from,
        api_url=settings.sendgrid_url,
    )


@lru_cache(maxsize=1)
def get_chat_notifier() -> WebhookChatNotifier:
    settings = get_notification_settings()
    return WebhookChatNotifier(
        webhook_url=settings.chat_webhook_url,
        payload_format=settings.chat_webhook_format,
    )


@lru_cache(maxsize=1)
def get_notification_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(max_workers=get_notification_settings().dispatcher_workers)


def shutdown_notification_dispatcher(*, wait: bool = True) -> None:
    """
    Stop the dispatcher if it was ever created.
    """

    if get_notification_dispatcher.cache_info().currsize:
        get_notification_dispatcher().shutdown(wait=wait)
        get_notification_dispatcher.cache_clear()
