"""
app/services/semantic_search_service.py

Embedding index wiring for the search endpoints.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from app.config import SearchSettings
from llm_synthesis.adapter import BaseLLMAdapter
from semantic_search.index import BruteForceVectorIndex
from semantic_search.storage import SQLAlchemyEmbeddingStorage


def build_vector_index(
    *,
    session: Session,
    adapter: BaseLLMAdapter,
    settings: SearchSettings,
) -> BruteForceVectorIndex:
    """
    Index over ``embedding_documents`` embedding text with ``adapter.embed``.
    """

    return BruteForceVectorIndex(
        embedder=adapter.embed,
        storage=SQLAlchemyEmbeddingStorage(session),
        batch_size=settings.batch_size,
        batch_delay_seconds=settings.batch_delay_seconds,
    )
