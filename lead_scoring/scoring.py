"""
lead_scoring/scoring.py

Additive rule-based lead score.

Base 50, then:
    +15 company present
    +10 phone present
    +5 each for message length over 100, 200 and 300 characters
    +20 email domain is not a consumer webmail domain
    +25 submitted through the demo request form

No upper clamp; the maximum is 135.
"""

from lead_scoring.base import BaseLeadScorer, LeadSubmission

BASE_SCORE = 50
COMPANY_POINTS = 15
PHONE_POINTS = 10
MESSAGE_LENGTH_STEPS: tuple[int, ...] = (100, 200, 300)
MESSAGE_LENGTH_POINTS = 5
BUSINESS_DOMAIN_POINTS = 20
DEMO_REQUEST_POINTS = 25

DEMO_REQUEST_SOURCE = "demo_request"
CONSUMER_EMAIL_DOMAINS = frozenset({"gmail.com", "yahoo.com", "hotmail.com", "outlook.com"})


def _present(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


class RuleBasedLeadScorer(BaseLeadScorer):
    """Deterministic point system over submitted lead attributes."""

    def score(self, lead: LeadSubmission) -> int:
        score = BASE_SCORE

        if _present(lead.company):
            score += COMPANY_POINTS
        if _present(lead.phone):
            score += PHONE_POINTS

        message_length = len(lead.message or "")
        score += MESSAGE_LENGTH_POINTS * sum(1 for step in MESSAGE_LENGTH_STEPS if message_length > step)

        domain = lead.email_domain
        if domain and domain not in CONSUMER_EMAIL_DOMAINS:
            score += BUSINESS_DOMAIN_POINTS

        if (lead.source or "").strip().lower() == DEMO_REQUEST_SOURCE:
            score += DEMO_REQUEST_POINTS

        return score
