"""
db/base.py

Declarative base and the timestamp mixin shared by the marketing-ops tables.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, func, inspect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """
    Project-wide declarative base. ``repr`` shows the primary key only so
    lead emails and payloads stay out of logs.
    """

    def __repr__(self) -> str:
        identity = inspect(self).identity
        key = ", ".join(str(part) for part in identity) if identity else "transient"
        return f"<{type(self).__name__} {key}>"


class TimestampMixin:
    """
    ``created_at`` / ``updated_at`` in UTC. Python-side defaults keep
    unflushed objects usable; the server defaults cover raw SQL inserts.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now,
    )
