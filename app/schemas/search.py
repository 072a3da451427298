"""
app/schemas/search.py

Semantic search and embedding document schemas.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SemanticSearchRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    query: str = Field(min_length=1, max_length=8_000)
    limit: int = Field(default=5, ge=1, le=100)
    min_score: float = Field(default=0.7, ge=-1.0, le=1.0, alias="minScore")


class EmbeddingDocumentRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    metadata: dict[str, Any] = Field(default_factory=dict)


class EmbeddingBatchRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    documents: list[EmbeddingDocumentRequest] = Field(min_length=1, max_length=500)
