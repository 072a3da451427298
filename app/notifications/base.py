"""
app/notifications/base.py

Notification message model and delivery interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class NotificationMessage:
    """
    One outbound message. ``recipient`` is an email address for email
    notifiers and ignored by chat notifiers.
    """

    subject: str
    body: str
    recipient: str | None = None
    context: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SendResult:
    success: bool
    error: str | None = None


class Notifier(ABC):
    """
    Delivery channel. ``send`` never raises; failures come back as
    ``SendResult(success=False, error=...)``.
    """

    channel: str

    @abstractmethod
    def send(self, message: NotificationMessage) -> SendResult:
        """
        Deliver one message.
        """

    @property
    def configured(self) -> bool:
        return True
