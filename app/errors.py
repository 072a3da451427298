"""
app/errors.py

Typed errors surfaced to callers through the response envelope.
"""

from __future__ import annotations

import math


class FlowError(Exception):
    """
    Base class for handled errors. ``code`` is the public error code and
    ``status_code`` the HTTP status it maps to.
    """

    code = "internal"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidArgumentError(FlowError):
    code = "invalid-argument"
    status_code = 400


class NotFoundError(FlowError):
    code = "not-found"
    status_code = 404


class ResourceExhaustedError(FlowError):
    """
    Raised when a caller exceeds its request quota.
    """

    code = "resource-exhausted"
    status_code = 429

    def __init__(self, retry_after_seconds: float) -> None:
        self.retry_after_seconds = max(0, math.ceil(retry_after_seconds))
        super().__init__(
            f"Rate limit exceeded. Try again in {self.retry_after_seconds} seconds."
        )


class InternalFlowError(FlowError):
    code = "internal"
    status_code = 500
