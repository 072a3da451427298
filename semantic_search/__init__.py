from semantic_search.base import (
    BatchStoreResult,
    EmbeddingDocument,
    EmbeddingStorage,
    SearchResult,
    VectorIndex,
)
from semantic_search.index import BruteForceVectorIndex
from semantic_search.similarity import cosine_similarity

__all__ = [
    "BatchStoreResult",
    "BruteForceVectorIndex",
    "EmbeddingDocument",
    "EmbeddingStorage",
    "SearchResult",
    "VectorIndex",
    "cosine_similarity",
]
