"""
app/api/routers/search.py

Semantic search over the embedding index.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from app.api.dependencies import enforce_flow_rate_limit, get_vector_index
from app.api.responses import success_response
from app.schemas.search import EmbeddingBatchRequest, EmbeddingDocumentRequest, SemanticSearchRequest
from semantic_search.base import VectorIndex

router = APIRouter(
    prefix="/search",
    tags=["search"],
    dependencies=[Depends(enforce_flow_rate_limit)],
)


@router.post("")
def semantic_search(
    payload: SemanticSearchRequest,
    index: VectorIndex = Depends(get_vector_index),
) -> dict[str, Any]:
    results = index.search(payload.query, limit=payload.limit, min_score=payload.min_score)
    return success_response([result.to_dict() for result in results])


@router.post("/documents")
def store_document(
    payload: EmbeddingDocumentRequest,
    index: VectorIndex = Depends(get_vector_index),
) -> dict[str, Any]:
    index.store(payload.id, payload.content, payload.metadata)
    return success_response({"success": True})


@router.post("/documents/batch")
def store_documents(
    payload: EmbeddingBatchRequest,
    index: VectorIndex = Depends(get_vector_index),
) -> dict[str, Any]:
    result = index.batch_store(document.model_dump() for document in payload.documents)
    return success_response({"success": result.success, "failed": result.failed})
