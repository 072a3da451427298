"""
Notification delivery exports.
"""

from app.notifications.base import NotificationMessage, Notifier, SendResult
from app.notifications.dispatcher import NotificationDispatcher
from app.notifications.sendgrid_notifier import SendGridEmailNotifier
from app.notifications.templates import render_template
from app.notifications.webhook_notifier import WebhookChatNotifier

__all__ = [
    "NotificationDispatcher",
    "NotificationMessage",
    "Notifier",
    "SendGridEmailNotifier",
    "SendResult",
    "WebhookChatNotifier",
    "render_template",
]
