"""
db/models/embedding_document.py

Indexed text with its embedding vector.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class EmbeddingDocumentRecord(TimestampMixin, Base):
    __tablename__ = "embedding_documents"

    id: Mapped[str] = mapped_column(String(255), primary_key=True, comment="Caller-supplied identity")
    content: Mapped[str] = mapped_column(Text, nullable=False)
    embedding: Mapped[list[float]] = mapped_column(
        JSONB,
        nullable=False,
        comment="Fixed-length float vector from the embedding model",
    )
    metadata_json: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
