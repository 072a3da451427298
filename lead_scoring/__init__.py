from lead_scoring.base import BaseLeadScorer, LeadStore, LeadSubmission, StoredLead, normalize_email
from lead_scoring.orchestrator import LeadCaptureOrchestrator, LeadCaptureResult
from lead_scoring.scoring import RuleBasedLeadScorer

__all__ = [
    "BaseLeadScorer",
    "LeadCaptureOrchestrator",
    "LeadCaptureResult",
    "LeadStore",
    "LeadSubmission",
    "RuleBasedLeadScorer",
    "StoredLead",
    "normalize_email",
]
