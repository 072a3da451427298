"""
app/repositories/opportunity_repository.py

Persistence for high-priority opportunities found by scheduled scans.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from db.models.opportunity import Opportunity, OpportunityStatus


class OpportunityRepository:
    """
    Adds opportunity rows. No commits here; the caller controls the transaction.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def add_many(self, opportunities: Iterable[dict[str, Any]], *, detected_at: datetime) -> int:
        count = 0
        for item in opportunities:
            self._session.add(
                Opportunity(
                    title=item["title"],
                    source=item["source"],
                    description=item.get("description", ""),
                    relevance_score=float(item["relevanceScore"]),
                    estimated_value=item.get("estimatedValue") or "Unknown",
                    deadline=item.get("deadline"),
                    url=item.get("url"),
                    detected_at=detected_at,
                    status=OpportunityStatus.NEW,
                )
            )
            count += 1
        self._session.flush()
        return count
