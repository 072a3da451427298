"""
Storage layer exports.
"""

from app.scraping.storage.base import SnapshotStorage, canonical_snapshot_url, snapshot_doc_id
from app.scraping.storage.sqlalchemy_storage import SQLAlchemySnapshotStorage

__all__ = ["SnapshotStorage", "SQLAlchemySnapshotStorage", "canonical_snapshot_url", "snapshot_doc_id"]
