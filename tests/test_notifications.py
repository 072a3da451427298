"""
tests/test_notifications.py

Email templates, SendGrid and chat webhook delivery, and the background
dispatcher. HTTP goes through a fake session.

Coverage
--------
- Template rendering with missing variables and unknown names
- SendGrid payload shape, unconfigured key, missing recipient, HTTP errors
- Slack vs Discord payload keys and message truncation
- Dispatcher converts notifier exceptions into failed results
"""

from __future__ import annotations

import pytest
import requests

from app.notifications import (
    NotificationDispatcher,
    NotificationMessage,
    SendGridEmailNotifier,
    WebhookChatNotifier,
    render_template,
)
from app.notifications.base import Notifier, SendResult
from tests.fakes import FakeResponse, FakeSession, RecordingNotifier

WEBHOOK_URL = "https://hooks.example/T000/B000"
SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


class TestTemplates:
    def test_lead_confirmation(self) -> None:
        subject, body = render_template("lead_confirmation", {"name": "Jane"})
        assert subject == "Thanks for reaching out, Jane"
        assert body.startswith("Hi Jane,")

    def test_missing_and_none_variables_render_as_dash(self) -> None:
        subject, body = render_template("high_value_lead", {"name": "Jane", "score": 95, "company": None})
        assert subject == "High-value lead: Jane (95)"
        assert "Company: -" in body
        assert "Email: -" in body

    def test_unknown_template_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown email template"):
            render_template("weekly_digest", {})


# ---------------------------------------------------------------------------
# SendGrid
# ---------------------------------------------------------------------------


class TestSendGridEmailNotifier:
    MESSAGE = NotificationMessage(subject="Hello", body="Body text", recipient="jane@acme.example")

    def test_posts_v3_payload_with_bearer_token(self) -> None:
        session = FakeSession([FakeResponse(202)])
        notifier = SendGridEmailNotifier(api_key="SG.key", from_email="ops@agency.example", session=session)

        result = notifier.send(self.MESSAGE)

        assert result == SendResult(success=True)
        call = session.calls[0]
        assert call["url"] == SENDGRID_URL
        assert call["headers"] == {"Authorization": "Bearer SG.key"}
        assert call["json"]["personalizations"] == [{"to": [{"email": "jane@acme.example"}]}]
        assert call["json"]["from"] == {"email": "ops@agency.example"}
        assert call["json"]["content"] == [{"type": "text/plain", "value": "Body text"}]

    def test_missing_key_fails_without_request(self) -> None:
        session = FakeSession()
        notifier = SendGridEmailNotifier(api_key=None, from_email="ops@agency.example", session=session)
        result = notifier.send(self.MESSAGE)
        assert not result.success
        assert "SENDGRID_API_KEY" in result.error
        assert not notifier.configured
        assert session.calls == []

    def test_missing_recipient_fails(self) -> None:
        notifier = SendGridEmailNotifier(api_key="k", from_email="ops@agency.example", session=FakeSession())
        result = notifier.send(NotificationMessage(subject="s", body="b"))
        assert not result.success

    @pytest.mark.parametrize(
        "answer",
        [FakeResponse(401), requests.ConnectionError("refused")],
    )
    def test_delivery_errors_become_failed_results(self, answer) -> None:
        notifier = SendGridEmailNotifier(api_key="k", from_email="ops@agency.example", session=FakeSession([answer]))
        result = notifier.send(self.MESSAGE)
        assert not result.success
        assert result.error


# ---------------------------------------------------------------------------
# Chat webhook
# ---------------------------------------------------------------------------


class TestWebhookChatNotifier:
    @pytest.mark.parametrize("payload_format, key", [("slack", "text"), ("discord", "content")])
    def test_payload_key_per_format(self, payload_format: str, key: str) -> None:
        session = FakeSession([FakeResponse(204)])
        notifier = WebhookChatNotifier(webhook_url=WEBHOOK_URL, payload_format=payload_format, session=session)

        assert notifier.send(NotificationMessage(subject="Alert", body="Pricing changed")).success
        assert session.calls[0]["json"] == {key: "*Alert*\nPricing changed"}

    def test_long_messages_are_truncated(self) -> None:
        session = FakeSession([FakeResponse(200)])
        notifier = WebhookChatNotifier(webhook_url=WEBHOOK_URL, session=session)
        notifier.send(NotificationMessage(subject="", body="x" * 5_000))

        text = session.calls[0]["json"]["text"]
        assert text == "x" * 1_900 + "... [truncated]"

    def test_unconfigured_webhook_fails(self) -> None:
        notifier = WebhookChatNotifier(webhook_url=None, session=FakeSession())
        assert not notifier.configured
        assert not notifier.send(NotificationMessage(subject="s", body="b")).success

    def test_unknown_format_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown chat payload format"):
            WebhookChatNotifier(webhook_url=WEBHOOK_URL, payload_format="teams")


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class _ExplodingNotifier(Notifier):
    channel = "chat"

    def send(self, message: NotificationMessage) -> SendResult:
        raise RuntimeError("socket closed")


class TestNotificationDispatcher:
    @pytest.fixture()
    def dispatcher(self):
        dispatcher = NotificationDispatcher(max_workers=1)
        yield dispatcher
        dispatcher.shutdown()

    def test_delivers_in_background(self, dispatcher: NotificationDispatcher) -> None:
        notifier = RecordingNotifier()
        message = NotificationMessage(subject="s", body="b", recipient="a@b.example")

        result = dispatcher.submit(notifier, message).result(timeout=5)

        assert result.success
        assert notifier.sent == [message]

    def test_exceptions_become_failed_results(self, dispatcher: NotificationDispatcher) -> None:
        result = dispatcher.submit(_ExplodingNotifier(), NotificationMessage(subject="s", body="b")).result(timeout=5)
        assert result == SendResult(success=False, error="RuntimeError: socket closed")
