"""
semantic_search/base.py

Interfaces for the embedding index and the storage behind it.
Callers depend on VectorIndex only, so the linear scan can be replaced by
an approximate nearest-neighbour index without touching them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional


@dataclass(frozen=True)
class EmbeddingDocument:
    """A unit of indexed text and its embedding."""

    id: str
    content: str
    embedding: list[float]
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class SearchResult:
    id: str
    content: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "score": self.score,
            "metadata": self.metadata,
        }


@dataclass(frozen=True)
class BatchStoreResult:
    success: int
    failed: int


class EmbeddingStorage(ABC):
    """Persistence for embedding documents. Writes overwrite, never merge."""

    @abstractmethod
    def upsert(self, document: EmbeddingDocument) -> None:
        raise NotImplementedError

    @abstractmethod
    def get(self, document_id: str) -> Optional[EmbeddingDocument]:
        raise NotImplementedError

    @abstractmethod
    def delete(self, document_id: str) -> bool:
        """Delete a document. Returns False when it did not exist."""
        raise NotImplementedError

    @abstractmethod
    def iter_all(self) -> Iterable[EmbeddingDocument]:
        raise NotImplementedError


class VectorIndex(ABC):
    """Nearest-neighbour retrieval over stored text."""

    @abstractmethod
    def store(self, document_id: str, content: str, metadata: Optional[dict[str, Any]] = None) -> None:
        """Embed ``content`` and store it under ``document_id``."""
        raise NotImplementedError

    @abstractmethod
    def search(self, query: str, limit: int = 5, min_score: float = 0.7) -> list[SearchResult]:
        """Return up to ``limit`` results scoring at least ``min_score``, best first."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, document_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def get(self, document_id: str) -> Optional[EmbeddingDocument]:
        raise NotImplementedError

    @abstractmethod
    def batch_store(self, documents: Iterable[dict[str, Any]]) -> BatchStoreResult:
        """Store many ``{id, content, metadata}`` items; failures are counted, not raised."""
        raise NotImplementedError
