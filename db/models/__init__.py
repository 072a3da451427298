"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.analytics import AnalyticsCacheEntry, AnalyticsDailyReport
from db.models.competitor_snapshot import CompetitorSnapshotRecord, CompetitorWatchRun
from db.models.embedding_document import EmbeddingDocumentRecord
from db.models.lead import Lead, LeadStatus
from db.models.opportunity import Opportunity, OpportunityStatus
from db.models.scheduled_email import EmailStatus, ScheduledEmail
from db.models.system_state import SystemState

__all__ = [
    "AnalyticsCacheEntry",
    "AnalyticsDailyReport",
    "CompetitorSnapshotRecord",
    "CompetitorWatchRun",
    "EmbeddingDocumentRecord",
    "Lead",
    "LeadStatus",
    "Opportunity",
    "OpportunityStatus",
    "EmailStatus",
    "ScheduledEmail",
    "SystemState",
]
