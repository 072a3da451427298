"""
SQLAlchemy-backed storage implementation for competitor snapshots.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.repositories.competitor_snapshot_repository import CompetitorSnapshotRepository
from app.scraping.storage.base import SnapshotStorage, snapshot_doc_id
from app.scraping.types import CompetitorSnapshot


class SQLAlchemySnapshotStorage(SnapshotStorage):
    """
    Persist snapshots through the repository, committing each write.
    """

    def __init__(self, *, session: Session) -> None:
        self._session = session
        self._repository = CompetitorSnapshotRepository(session)

    def get_snapshot(self, url: str) -> CompetitorSnapshot | None:
        record = self._repository.get(snapshot_doc_id(url))
        if record is None:
            return None
        return CompetitorSnapshot(
            url=record.url,
            title=record.title,
            content_hash=record.content_hash,
            key_phrases=tuple(record.key_phrases or ()),
            pricing_mentions=tuple(record.pricing_mentions or ()),
            last_checked=record.last_checked,
        )

    def save_snapshot(self, snapshot: CompetitorSnapshot) -> None:
        try:
            self._repository.upsert(doc_id=snapshot_doc_id(snapshot.url), snapshot=snapshot)
            self._session.commit()
        except SQLAlchemyError:
            self._session.rollback()
            raise

    def save_run(self, run: dict[str, Any]) -> None:
        try:
            self._repository.insert_run(run)
            self._session.commit()
        except SQLAlchemyError:
            self._session.rollback()
            raise
