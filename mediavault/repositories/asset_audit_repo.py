"""Tombstone repository."""
from datetime import datetime
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, asc, or_
from sqlalchemy.orm import Session

from mediavault.models.asset_audit import AssetAudit
from mediavault.models.base import utcnow
from mediavault.repositories.base import BaseRepository


class AssetAuditRepository(BaseRepository[AssetAudit]):
    """Writes and reads the per-user tombstones used by delta sync."""

    def __init__(self, db: Session):
        super().__init__(AssetAudit, db)

    def record(self, entries: Iterable[Tuple[UUID, UUID]], at: Optional[datetime] = None) -> int:
        """
        Add tombstones without committing.

        Args:
            entries: (asset_id, user_id) pairs
            at: Deletion time (defaults to now)

        Returns:
            Number of rows added
        """
        at = at or utcnow()
        rows = [
            AssetAudit(asset_id=asset_id, user_id=user_id, deleted_at=at)
            for asset_id, user_id in set(entries)
        ]
        self.db.add_all(rows)
        self.db.flush()
        return len(rows)

    def since(
        self,
        user_id: UUID,
        after: Tuple[datetime, UUID],
        until: Optional[datetime] = None,
        limit: Optional[int] = None
    ) -> List[Tuple[UUID, datetime]]:
        """Tombstones for ``user_id`` strictly after ``after``, ordered by (deleted_at, asset_id)."""
        timestamp, last_id = after
        query = self.db.query(AssetAudit.asset_id, AssetAudit.deleted_at).filter(
            AssetAudit.user_id == user_id,
            or_(
                AssetAudit.deleted_at > timestamp,
                and_(AssetAudit.deleted_at == timestamp, AssetAudit.asset_id > last_id)
            )
        ).order_by(asc(AssetAudit.deleted_at), asc(AssetAudit.asset_id))
        if until is not None:
            query = query.filter(AssetAudit.deleted_at <= until)
        if limit is not None:
            query = query.limit(limit)
        return [(asset_id, deleted_at) for asset_id, deleted_at in query.all()]

    def purge_before(self, cutoff: datetime) -> int:
        count = self.db.query(AssetAudit).filter(
            AssetAudit.deleted_at < cutoff
        ).delete(synchronize_session=False)
        self.db.commit()
        return count
