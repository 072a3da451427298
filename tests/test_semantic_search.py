"""
tests/test_semantic_search.py

Brute-force embedding index over in-memory storage.

Coverage
--------
- cosine_similarity: identical, orthogonal, opposite, zero and mismatched vectors
- store overwrites by id
- search ordering, threshold and limit
- batch_store pacing and per-document failure counting
- delete / get
"""

from __future__ import annotations

import pytest

from llm_synthesis.adapter import MockLLMAdapter
from semantic_search import BruteForceVectorIndex, cosine_similarity
from tests.fakes import InMemoryEmbeddingStorage

VECTORS = {
    "pricing": [1.0, 0.0, 0.0],
    "pricing plans": [0.9, 0.1, 0.0],
    "hiring": [0.0, 1.0, 0.0],
    "weather": [0.0, 0.0, 1.0],
    "query:pricing": [1.0, 0.0, 0.0],
}


def _embed(text: str) -> list[float]:
    if text == "explode":
        raise RuntimeError("embedding service unavailable")
    return VECTORS[text]


@pytest.fixture()
def storage() -> InMemoryEmbeddingStorage:
    return InMemoryEmbeddingStorage()


@pytest.fixture()
def index(storage: InMemoryEmbeddingStorage, sleeps: list[float]) -> BruteForceVectorIndex:
    return BruteForceVectorIndex(
        embedder=_embed,
        storage=storage,
        batch_size=2,
        batch_delay_seconds=0.1,
        sleep=sleeps.append,
    )


# ---------------------------------------------------------------------------
# Similarity
# ---------------------------------------------------------------------------


class TestCosineSimilarity:
    @pytest.mark.parametrize(
        "a, b, expected",
        [
            ([1.0, 2.0, 3.0], [1.0, 2.0, 3.0], 1.0),
            ([1.0, 0.0], [0.0, 1.0], 0.0),
            ([1.0, 0.0], [-1.0, 0.0], -1.0),
            ([2.0, 0.0], [5.0, 0.0], 1.0),
        ],
    )
    def test_values(self, a: list[float], b: list[float], expected: float) -> None:
        assert cosine_similarity(a, b) == pytest.approx(expected)

    def test_zero_vector_scores_zero(self) -> None:
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0

    def test_dimension_mismatch_raises(self) -> None:
        with pytest.raises(ValueError, match="dimensions must match"):
            cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------


class TestStoreAndSearch:
    def test_store_embeds_and_overwrites(self, index: BruteForceVectorIndex) -> None:
        index.store("doc-1", "pricing", {"kind": "page"})
        index.store("doc-1", "hiring")
        document = index.get("doc-1")
        assert document is not None
        assert document.content == "hiring"
        assert document.embedding == [0.0, 1.0, 0.0]
        assert document.metadata == {}

    def test_results_are_best_first_above_threshold(self, index: BruteForceVectorIndex) -> None:
        index.store("plans", "pricing plans", {"url": "/plans"})
        index.store("price", "pricing")
        index.store("jobs", "hiring")

        results = index.search("query:pricing", limit=5, min_score=0.7)

        assert [result.id for result in results] == ["price", "plans"]
        assert results[0].score == pytest.approx(1.0)
        assert results[1].metadata == {"url": "/plans"}

    def test_limit_truncates(self, index: BruteForceVectorIndex) -> None:
        index.store("plans", "pricing plans")
        index.store("price", "pricing")
        assert [result.id for result in index.search("query:pricing", limit=1)] == ["price"]

    def test_non_positive_limit_returns_nothing(self, index: BruteForceVectorIndex) -> None:
        index.store("price", "pricing")
        assert index.search("query:pricing", limit=0) == []

    def test_zero_threshold_still_excludes_opposites(self, storage: InMemoryEmbeddingStorage) -> None:
        index = BruteForceVectorIndex(embedder=lambda text: [1.0, 0.0] if text == "q" else [-1.0, 0.0], storage=storage)
        index.store("opposite", "anything")
        assert index.search("q", min_score=0.0) == []

    def test_result_serialization(self, index: BruteForceVectorIndex) -> None:
        index.store("price", "pricing", {"tag": "a"})
        payload = index.search("query:pricing")[0].to_dict()
        assert payload["id"] == "price"
        assert payload["content"] == "pricing"
        assert payload["metadata"] == {"tag": "a"}

    def test_delete_reports_existence(self, index: BruteForceVectorIndex) -> None:
        index.store("price", "pricing")
        assert index.delete("price") is True
        assert index.delete("price") is False
        assert index.get("price") is None


class TestBatchStore:
    def test_pauses_between_batches_only(self, index: BruteForceVectorIndex, sleeps: list[float]) -> None:
        documents = [
            {"id": "a", "content": "pricing"},
            {"id": "b", "content": "hiring"},
            {"id": "c", "content": "weather"},
            {"id": "d", "content": "pricing plans"},
            {"id": "e", "content": "pricing", "metadata": {"n": 5}},
        ]
        result = index.batch_store(documents)
        assert (result.success, result.failed) == (5, 0)
        assert sleeps == [0.1, 0.1]

    def test_failures_are_counted_not_raised(
        self, index: BruteForceVectorIndex, storage: InMemoryEmbeddingStorage
    ) -> None:
        result = index.batch_store(
            [
                {"id": "a", "content": "pricing"},
                {"id": "b", "content": "explode"},
                {"content": "hiring"},
            ]
        )
        assert (result.success, result.failed) == (1, 2)
        assert list(storage.documents) == ["a"]

    def test_empty_batch(self, index: BruteForceVectorIndex, sleeps: list[float]) -> None:
        result = index.batch_store([])
        assert (result.success, result.failed) == (0, 0)
        assert sleeps == []


class TestWithMockEmbeddings:
    def test_identical_text_is_the_top_hit(self, storage: InMemoryEmbeddingStorage) -> None:
        adapter = MockLLMAdapter()
        index = BruteForceVectorIndex(embedder=adapter.embed, storage=storage)
        index.store("a", "Consulting pricing for growing teams")
        index.store("b", "Quarterly hiring announcement")

        results = index.search("Consulting pricing for growing teams", min_score=0.0)

        assert results[0].id == "a"
        assert results[0].score == pytest.approx(1.0)
