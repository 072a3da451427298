"""
app/services package marker.
"""

from app.services.analytics_service import AnalyticsService
from app.services.competitor_watch_service import CompetitorWatchService
from app.services.content_drafter_service import ContentDrafterService
from app.services.email_dispatch_service import EmailDispatchService
from app.services.lead_capture_service import LeadCaptureService
from app.services.marketing_brief_service import MarketingBriefService
from app.services.opportunity_scanner_service import OpportunityScannerService
from app.services.self_healing_service import SelfHealingService

__all__ = [
    "AnalyticsService",
    "CompetitorWatchService",
    "ContentDrafterService",
    "EmailDispatchService",
    "LeadCaptureService",
    "MarketingBriefService",
    "OpportunityScannerService",
    "SelfHealingService",
]
