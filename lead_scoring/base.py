"""
lead_scoring/base.py

Lead data shapes and the interfaces lead capture depends on.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass(frozen=True)
class LeadSubmission:
    """A contact-form submission as received."""

    email: str
    name: str
    message: str = ""
    company: Optional[str] = None
    phone: Optional[str] = None
    source: str = "contact_form"
    referrer: Optional[str] = None

    @property
    def normalized_email(self) -> str:
        return normalize_email(self.email)

    @property
    def email_domain(self) -> str:
        return self.normalized_email.rpartition("@")[2]


@dataclass(frozen=True)
class StoredLead:
    id: uuid.UUID
    email: str
    name: str
    score: int
    status: str
    created_at: datetime
    company: Optional[str] = None
    source: str = "contact_form"


class BaseLeadScorer(ABC):
    """Abstract base class for lead scoring models."""

    @abstractmethod
    def score(self, lead: LeadSubmission) -> int:
        """Compute an integer score for a submission.

        Args:
            lead: The submitted lead attributes.

        Returns:
            The lead score. Higher means more valuable.
        """
        raise NotImplementedError("Subclasses must implement score()")


class LeadStore(ABC):
    """Persistence used by lead capture."""

    @abstractmethod
    def find_recent_by_email(self, email: str, since: datetime) -> Optional[StoredLead]:
        """Return the newest lead with ``email`` created at or after ``since``."""
        raise NotImplementedError

    @abstractmethod
    def create(self, lead: LeadSubmission, *, score: int, created_at: datetime) -> StoredLead:
        raise NotImplementedError
