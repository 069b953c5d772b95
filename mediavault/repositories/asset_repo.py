"""Asset repository: the asset store behind dedup and sync."""
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set, Tuple
from uuid import UUID

from sqlalchemy import and_, asc, or_, select, update
from sqlalchemy.orm import Session

from mediavault.models.album import Album, AlbumUser, album_assets
from mediavault.models.asset import Asset
from mediavault.models.base import utcnow
from mediavault.models.shared_link import shared_link_assets
from mediavault.repositories.base import BaseRepository

# (timestamp, id) position in an ordered asset stream
Position = Tuple[datetime, UUID]


class AssetRepository(BaseRepository[Asset]):
    """Repository for asset database operations."""

    def __init__(self, db: Session):
        super().__init__(Asset, db)

    # ------------------------------------------------------------------
    # Checksum lookups
    # ------------------------------------------------------------------

    def find_by_checksum(self, owner_id: UUID, checksum: str) -> Optional[Asset]:
        """
        Get the live asset with this checksum in the owner's library.

        Args:
            owner_id: Library owner UUID
            checksum: Normalized hex checksum

        Returns:
            Asset or None
        """
        return self.db.query(Asset).filter(
            Asset.owner_id == owner_id,
            Asset.checksum == checksum,
            Asset.deleted_at.is_(None)
        ).first()

    def find_by_checksums(self, owner_id: UUID, checksums: Iterable[str]) -> Dict[str, UUID]:
        """Map each checksum found in the owner's library to its asset id."""
        checksums = list(set(checksums))
        if not checksums:
            return {}

        rows = self.db.query(Asset.checksum, Asset.id).filter(
            Asset.owner_id == owner_id,
            Asset.checksum.in_(checksums),
            Asset.deleted_at.is_(None)
        ).all()
        return {checksum: asset_id for checksum, asset_id in rows}

    def find_device_asset_ids(self, owner_id: UUID, device_id: str, device_asset_ids: Iterable[str]) -> List[str]:
        """Client-local ids from one device that already exist in the library."""
        device_asset_ids = list(set(device_asset_ids))
        if not device_asset_ids:
            return []

        rows = self.db.query(Asset.device_asset_id).filter(
            Asset.owner_id == owner_id,
            Asset.device_id == device_id,
            Asset.device_asset_id.in_(device_asset_ids),
            Asset.deleted_at.is_(None)
        ).all()
        return [row[0] for row in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def soft_delete(self, id: UUID, commit: bool = True) -> bool:
        """Mark an asset deleted; the row stays until purged."""
        return self.delete(id, soft=True, commit=commit)

    def touch(self, asset_ids: Iterable[UUID], now: Optional[datetime] = None) -> int:
        """Advance ``updated_at`` so the assets surface in delta sync."""
        asset_ids = list(set(asset_ids))
        if not asset_ids:
            return 0

        result = self.db.execute(
            update(Asset)
            .where(Asset.id.in_(asset_ids), Asset.deleted_at.is_(None))
            .values(updated_at=now or utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def set_flags(
        self,
        asset: Asset,
        is_favorite: Optional[bool] = None,
        is_archived: Optional[bool] = None,
        now: Optional[datetime] = None
    ) -> Asset:
        if is_favorite is not None:
            asset.is_favorite = is_favorite
        if is_archived is not None:
            asset.is_archived = is_archived
        asset.updated_at = now or utcnow()
        self.db.commit()
        self.db.refresh(asset)
        return asset

    def purge(self, asset: Asset) -> None:
        """Hard delete a soft-deleted asset row."""
        self.db.query(Asset).filter(Asset.live_photo_pair_id == asset.id).update(
            {Asset.live_photo_pair_id: None}, synchronize_session=False
        )
        self.db.delete(asset)

    def get_deleted_before(self, cutoff: datetime, limit: int = 500) -> List[Asset]:
        return self.db.query(Asset).filter(
            Asset.deleted_at.is_not(None),
            Asset.deleted_at < cutoff
        ).order_by(asc(Asset.deleted_at)).limit(limit).all()

    # ------------------------------------------------------------------
    # Visibility candidates
    # ------------------------------------------------------------------

    def candidate_ids_for_user(self, user_id: UUID) -> Set[UUID]:
        """
        Ids of live assets the user owns or that sit in albums the user
        owns or is a member of. The access oracle has the final word.
        """
        member_albums = select(AlbumUser.album_id).where(AlbumUser.user_id == user_id)
        album_asset_ids = select(album_assets.c.asset_id).join(
            Album, Album.id == album_assets.c.album_id
        ).where(
            Album.deleted_at.is_(None),
            or_(Album.owner_id == user_id, Album.id.in_(member_albums))
        )

        rows = self.db.query(Asset.id).filter(
            Asset.deleted_at.is_(None),
            or_(Asset.owner_id == user_id, Asset.id.in_(album_asset_ids))
        ).all()
        return {row[0] for row in rows}

    def candidate_ids_for_link(self, link_id: UUID, album_id: Optional[UUID]) -> Set[UUID]:
        conditions = [
            Asset.id.in_(
                select(shared_link_assets.c.asset_id).where(shared_link_assets.c.shared_link_id == link_id)
            )
        ]
        if album_id is not None:
            conditions.append(
                Asset.id.in_(select(album_assets.c.asset_id).where(album_assets.c.album_id == album_id))
            )

        rows = self.db.query(Asset.id).filter(Asset.deleted_at.is_(None), or_(*conditions)).all()
        return {row[0] for row in rows}

    # ------------------------------------------------------------------
    # Ordered ranges
    # ------------------------------------------------------------------

    @staticmethod
    def _after(column, after: Optional[Position]):
        timestamp, last_id = after
        return or_(column > timestamp, and_(column == timestamp, Asset.id > last_id))

    def range_by_updated_at(
        self,
        visible_ids: Iterable[UUID],
        after: Optional[Position] = None,
        until: Optional[datetime] = None,
        limit: Optional[int] = None
    ) -> List[Asset]:
        """
        Live assets among ``visible_ids`` strictly after ``after`` and updated
        no later than ``until``, ordered by ``(updated_at, id)``.
        """
        visible_ids = list(visible_ids)
        if not visible_ids:
            return []

        query = self.db.query(Asset).filter(
            Asset.id.in_(visible_ids),
            Asset.deleted_at.is_(None)
        )
        if after is not None:
            query = query.filter(self._after(Asset.updated_at, after))
        if until is not None:
            query = query.filter(Asset.updated_at <= until)

        query = query.order_by(asc(Asset.updated_at), asc(Asset.id))
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def range_by_created_at(
        self,
        visible_ids: Iterable[UUID],
        after: Optional[Position] = None,
        limit: int = 1000,
        updated_until: Optional[datetime] = None
    ) -> List[Asset]:
        """
        Live assets among ``visible_ids`` strictly after ``after``, ordered
        by ``(created_at, id)``.
        """
        visible_ids = list(visible_ids)
        if not visible_ids:
            return []

        query = self.db.query(Asset).filter(
            Asset.id.in_(visible_ids),
            Asset.deleted_at.is_(None)
        )
        if after is not None:
            query = query.filter(self._after(Asset.created_at, after))
        if updated_until is not None:
            query = query.filter(Asset.updated_at <= updated_until)

        return query.order_by(asc(Asset.created_at), asc(Asset.id)).limit(limit).all()

    # ------------------------------------------------------------------
    # Library listing
    # ------------------------------------------------------------------

    def get_by_owner(
        self,
        owner_id: UUID,
        skip: int = 0,
        limit: int = 100,
        updated_after: Optional[datetime] = None,
        updated_before: Optional[datetime] = None,
        is_favorite: Optional[bool] = None,
        is_archived: Optional[bool] = None
    ) -> List[Asset]:
        """
        Get live assets in one library, newest file first.

        Args:
            owner_id: Library owner UUID
            skip: Records to skip
            limit: Maximum records
            updated_after: Only assets updated after this time
            updated_before: Only assets updated before this time
            is_favorite: Filter by favorite flag
            is_archived: Filter by archived flag

        Returns:
            List of assets
        """
        query = self.db.query(Asset).filter(
            Asset.owner_id == owner_id,
            Asset.deleted_at.is_(None)
        )
        if updated_after is not None:
            query = query.filter(Asset.updated_at > updated_after)
        if updated_before is not None:
            query = query.filter(Asset.updated_at < updated_before)
        if is_favorite is not None:
            query = query.filter(Asset.is_favorite.is_(is_favorite))
        if is_archived is not None:
            query = query.filter(Asset.is_archived.is_(is_archived))

        return query.order_by(
            Asset.file_created_at.desc(), Asset.created_at.desc(), Asset.id
        ).offset(skip).limit(limit).all()
