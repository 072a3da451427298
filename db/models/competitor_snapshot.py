"""
db/models/competitor_snapshot.py

Current snapshot per monitored competitor URL, plus batch run results.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Float, Index, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base


class CompetitorSnapshotRecord(Base):
    __tablename__ = "competitor_snapshots"

    doc_id: Mapped[str] = mapped_column(
        String(512),
        primary_key=True,
        comment="Normalized URL; one row per monitored URL",
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    content_hash: Mapped[str] = mapped_column(String(32), nullable=False)
    key_phrases: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    pricing_mentions: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    last_checked: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class CompetitorWatchRun(Base):
    __tablename__ = "competitor_watch_runs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    check_type: Mapped[str] = mapped_column(String(16), nullable=False, comment="quick, full")
    competitors: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    failed_urls: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    changes: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False, default=list)
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    action_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_competitor_watch_runs_created_at", "created_at"),
    )
