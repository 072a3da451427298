"""
app/notifications/templates.py

Plain-text bodies for queued and alert emails.
"""

from __future__ import annotations

from typing import Any

EMAIL_TEMPLATES: dict[str, tuple[str, str]] = {
    "lead_confirmation": (
        "Thanks for reaching out, {name}",
        "Hi {name},\n\n"
        "Thanks for contacting us. A member of our team will get back to you "
        "within one business day.\n\n"
        "Best regards,\nThe Team",
    ),
    "high_value_lead": (
        "High-value lead: {name} ({score})",
        "New lead scored {score}.\n\n"
        "Name: {name}\nEmail: {email}\nCompany: {company}\nSource: {source}\n\n"
        "{message}",
    ),
}


class _Defaults(dict):
    def __missing__(self, key: str) -> str:
        return "-"


def render_template(template: str, variables: dict[str, Any]) -> tuple[str, str]:
    """
    Return ``(subject, body)`` for a named template. Missing variables
    render as ``-``.
    """

    try:
        subject, body = EMAIL_TEMPLATES[template]
    except KeyError as exc:
        raise ValueError(f"Unknown email template '{template}'.") from exc
    values = _Defaults({key: value for key, value in variables.items() if value is not None})
    return subject.format_map(values), body.format_map(values)
