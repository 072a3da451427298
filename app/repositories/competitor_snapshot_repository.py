"""
app/repositories/competitor_snapshot_repository.py

DB persistence for competitor snapshots and watch runs.
No commits here; the caller controls the transaction.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from app.scraping.types import CompetitorSnapshot
from db.models.competitor_snapshot import CompetitorSnapshotRecord, CompetitorWatchRun


class CompetitorSnapshotRepository:
    """
    Repository for the one-row-per-URL snapshot table.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, doc_id: str) -> CompetitorSnapshotRecord | None:
        return self._session.get(CompetitorSnapshotRecord, doc_id, populate_existing=True)

    def upsert(self, *, doc_id: str, snapshot: CompetitorSnapshot) -> None:
        """
        Insert or fully overwrite the snapshot row for ``doc_id``.
        """

        values = {
            "doc_id": doc_id,
            "url": snapshot.url,
            "title": snapshot.title,
            "content_hash": snapshot.content_hash,
            "key_phrases": list(snapshot.key_phrases),
            "pricing_mentions": list(snapshot.pricing_mentions),
            "last_checked": snapshot.last_checked,
        }
        statement = insert(CompetitorSnapshotRecord).values(**values)
        statement = statement.on_conflict_do_update(
            index_elements=[CompetitorSnapshotRecord.doc_id],
            set_={key: statement.excluded[key] for key in values if key != "doc_id"},
        )
        self._session.execute(statement)

    def insert_run(self, run: dict[str, Any]) -> CompetitorWatchRun:
        record = CompetitorWatchRun(
            check_type=run["check_type"],
            competitors=list(run.get("competitors", [])),
            failed_urls=list(run.get("failed_urls", [])),
            changes=list(run.get("changes", [])),
            summary=run["summary"],
            action_required=bool(run.get("action_required", False)),
            confidence=float(run["confidence"]),
        )
        self._session.add(record)
        self._session.flush()
        return record
