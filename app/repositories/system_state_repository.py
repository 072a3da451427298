"""
app/repositories/system_state_repository.py

Key/value operational state (health, analytics_sync, marketing_brief).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from db.models.system_state import SystemState


class SystemStateRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, key: str) -> dict[str, Any] | None:
        record = self._session.get(SystemState, key, populate_existing=True)
        return dict(record.payload) if record is not None else None

    def put(self, key: str, payload: dict[str, Any]) -> None:
        """
        Overwrite the state row for ``key``. Does not commit.
        """

        statement = insert(SystemState).values(
            key=key,
            payload=payload,
            updated_at=datetime.now(timezone.utc),
        )
        statement = statement.on_conflict_do_update(
            index_elements=[SystemState.key],
            set_={
                "payload": statement.excluded.payload,
                "updated_at": statement.excluded.updated_at,
            },
        )
        self._session.execute(statement)
