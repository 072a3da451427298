"""
semantic_search/index.py

Brute-force embedding index: every search scans all stored documents.
Cost is O(N) per query, fine for small corpora only.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Optional

from semantic_search.base import (
    BatchStoreResult,
    EmbeddingDocument,
    EmbeddingStorage,
    SearchResult,
    VectorIndex,
)
from semantic_search.similarity import cosine_similarity

logger = logging.getLogger(__name__)

Embedder = Callable[[str], List[float]]


class BruteForceVectorIndex(VectorIndex):
    """Cosine-similarity index over an EmbeddingStorage.

    Embeddings are recomputed in full on every store; there is no
    incremental update.
    """

    def __init__(
        self,
        *,
        embedder: Embedder,
        storage: EmbeddingStorage,
        batch_size: int = 5,
        batch_delay_seconds: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Args:
            embedder: Callable returning the embedding vector for a text.
            storage: Backing document storage.
            batch_size: Documents stored between pauses in ``batch_store``.
            batch_delay_seconds: Pause between batches in ``batch_store``.
            sleep: Sleep function, injectable for tests.
        """
        self._embedder = embedder
        self._storage = storage
        self._batch_size = max(1, batch_size)
        self._batch_delay_seconds = max(0.0, batch_delay_seconds)
        self._sleep = sleep

    def store(self, document_id: str, content: str, metadata: Optional[dict[str, Any]] = None) -> None:
        now = datetime.now(timezone.utc)
        self._storage.upsert(
            EmbeddingDocument(
                id=document_id,
                content=content,
                embedding=list(self._embedder(content)),
                metadata=dict(metadata or {}),
                created_at=now,
                updated_at=now,
            )
        )

    def batch_store(self, documents: Iterable[dict[str, Any]]) -> BatchStoreResult:
        """Store documents in fixed-size batches, pausing between batches.

        Each item needs ``id`` and ``content`` keys and may carry ``metadata``.
        A failing document is logged and counted; the rest still run.
        """
        items = list(documents)
        success = 0
        failed = 0
        for start in range(0, len(items), self._batch_size):
            if start > 0 and self._batch_delay_seconds:
                self._sleep(self._batch_delay_seconds)
            for item in items[start : start + self._batch_size]:
                try:
                    self.store(item["id"], item["content"], item.get("metadata"))
                    success += 1
                except Exception as exc:  # noqa: BLE001
                    failed += 1
                    logger.warning(
                        "Embedding store failed id=%r: %s",
                        item.get("id") if isinstance(item, dict) else None,
                        exc,
                    )
        return BatchStoreResult(success=success, failed=failed)

    def search(self, query: str, limit: int = 5, min_score: float = 0.7) -> List[SearchResult]:
        if limit <= 0:
            return []

        query_vector = self._embedder(query)
        results: List[SearchResult] = []
        for document in self._storage.iter_all():
            score = cosine_similarity(query_vector, document.embedding)
            if score >= min_score:
                results.append(
                    SearchResult(
                        id=document.id,
                        content=document.content,
                        score=score,
                        metadata=document.metadata,
                    )
                )

        results.sort(key=lambda result: result.score, reverse=True)
        return results[:limit]

    def delete(self, document_id: str) -> bool:
        return self._storage.delete(document_id)

    def get(self, document_id: str) -> Optional[EmbeddingDocument]:
        return self._storage.get(document_id)
