"""
app/notifications/dispatcher.py

Background queue for best-effort notifications. Sends run on a worker pool
so callers never wait on delivery; failures are logged here and go no
further.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor

from app.logging_utils import log_event
from app.notifications.base import NotificationMessage, Notifier, SendResult

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    def __init__(self, *, max_workers: int = 2) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers),
            thread_name_prefix="notify",
        )

    def submit(self, notifier: Notifier, message: NotificationMessage) -> Future[SendResult]:
        """
        Queue ``message`` for delivery through ``notifier``.
        """

        future = self._executor.submit(self._deliver, notifier, message)
        future.add_done_callback(lambda done: self._report(notifier, message, done))
        return future

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    @staticmethod
    def _deliver(notifier: Notifier, message: NotificationMessage) -> SendResult:
        try:
            return notifier.send(message)
        except Exception as exc:  # noqa: BLE001
            return SendResult(success=False, error=f"{type(exc).__name__}: {exc}")

    @staticmethod
    def _report(notifier: Notifier, message: NotificationMessage, future: Future[SendResult]) -> None:
        result = future.result()
        if result.success:
            log_event(logger, logging.INFO, "notification_sent", channel=notifier.channel, subject=message.subject)
            return
        log_event(
            logger,
            logging.WARNING,
            "notification_failed",
            channel=notifier.channel,
            subject=message.subject,
            error=result.error,
        )
