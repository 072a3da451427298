"""
app/schemas/leads.py

Lead submission and dashboard schemas.
"""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

LeadStatusValue = Literal["new", "contacted", "qualified", "converted", "lost"]


class LeadSubmissionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    email: str = Field(min_length=3, max_length=320)
    name: str = Field(min_length=1, max_length=255)
    company: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=64)
    message: str = Field(max_length=10_000)
    source: str = Field(default="contact_form", max_length=64)
    referrer: str | None = None

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        if not _EMAIL_RE.match(value):
            raise ValueError("must be a valid email address")
        return value

    @field_validator("company", "phone", "referrer")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        return value or None


class LeadStatusUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: LeadStatusValue
