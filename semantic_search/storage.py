"""
semantic_search/storage.py

SQLAlchemy-backed EmbeddingStorage.
"""

from typing import Iterable, Optional

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models.embedding_document import EmbeddingDocumentRecord
from semantic_search.base import EmbeddingDocument, EmbeddingStorage

_SCAN_BATCH_SIZE = 500


def _to_document(record: EmbeddingDocumentRecord) -> EmbeddingDocument:
    return EmbeddingDocument(
        id=record.id,
        content=record.content,
        embedding=list(record.embedding or []),
        metadata=dict(record.metadata_json or {}),
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


class SQLAlchemyEmbeddingStorage(EmbeddingStorage):
    """Stores documents in ``embedding_documents``; each write commits."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def upsert(self, document: EmbeddingDocument) -> None:
        values = {
            "id": document.id,
            "content": document.content,
            "embedding": list(document.embedding),
            "metadata_json": dict(document.metadata),
            "created_at": document.created_at,
            "updated_at": document.updated_at,
        }
        statement = insert(EmbeddingDocumentRecord).values(**values)
        statement = statement.on_conflict_do_update(
            index_elements=[EmbeddingDocumentRecord.id],
            set_={key: statement.excluded[key] for key in values if key != "id"},
        )
        try:
            self._session.execute(statement)
            self._session.commit()
        except SQLAlchemyError:
            self._session.rollback()
            raise

    def get(self, document_id: str) -> Optional[EmbeddingDocument]:
        record = self._session.get(EmbeddingDocumentRecord, document_id, populate_existing=True)
        return _to_document(record) if record is not None else None

    def delete(self, document_id: str) -> bool:
        try:
            result = self._session.execute(
                delete(EmbeddingDocumentRecord).where(EmbeddingDocumentRecord.id == document_id)
            )
            self._session.commit()
        except SQLAlchemyError:
            self._session.rollback()
            raise
        return bool(result.rowcount)

    def iter_all(self) -> Iterable[EmbeddingDocument]:
        statement = select(EmbeddingDocumentRecord).execution_options(yield_per=_SCAN_BATCH_SIZE)
        for record in self._session.scalars(statement):
            yield _to_document(record)
