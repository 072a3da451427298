"""
app/schemas package marker.
"""

from app.schemas.flows import (
    CompetitorWatchRequest,
    ContentDrafterRequest,
    MarketingBriefRequest,
    OpportunityScannerRequest,
    SelfHealingRequest,
)
from app.schemas.leads import LeadStatusUpdateRequest, LeadSubmissionRequest
from app.schemas.search import EmbeddingBatchRequest, EmbeddingDocumentRequest, SemanticSearchRequest

__all__ = [
    "CompetitorWatchRequest",
    "ContentDrafterRequest",
    "EmbeddingBatchRequest",
    "EmbeddingDocumentRequest",
    "LeadStatusUpdateRequest",
    "LeadSubmissionRequest",
    "MarketingBriefRequest",
    "OpportunityScannerRequest",
    "SelfHealingRequest",
    "SemanticSearchRequest",
]
