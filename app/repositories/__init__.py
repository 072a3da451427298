"""
app/repositories package marker.
"""

from app.repositories.analytics_repository import AnalyticsRepository
from app.repositories.competitor_snapshot_repository import CompetitorSnapshotRepository
from app.repositories.opportunity_repository import OpportunityRepository
from app.repositories.scheduled_email_repository import ScheduledEmailRepository
from app.repositories.system_state_repository import SystemStateRepository

__all__ = [
    "AnalyticsRepository",
    "CompetitorSnapshotRepository",
    "OpportunityRepository",
    "ScheduledEmailRepository",
    "SystemStateRepository",
]
