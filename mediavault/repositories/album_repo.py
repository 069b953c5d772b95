"""Album repository extending base repository."""
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set
from uuid import UUID

from sqlalchemy import delete, insert, or_, select
from sqlalchemy.orm import Session

from mediavault.models.album import Album, AlbumUser, album_assets
from mediavault.models.asset import Asset
from mediavault.models.base import utcnow
from mediavault.models.enums import AlbumRole
from mediavault.repositories.base import BaseRepository


class AlbumRepository(BaseRepository[Album]):
    """Repository for album, membership and album-asset operations."""

    def __init__(self, db: Session):
        super().__init__(Album, db)

    def create_album(
        self,
        owner_id: UUID,
        name: str,
        description: Optional[str] = None,
        is_activity_enabled: bool = True
    ) -> Album:
        """
        Create new album.

        Args:
            owner_id: UUID of the owning user
            name: Album name
            description: Optional description
            is_activity_enabled: Whether likes/comments are allowed

        Returns:
            Created Album instance
        """
        return self.create({
            'owner_id': owner_id,
            'name': name,
            'description': description,
            'is_activity_enabled': is_activity_enabled,
        })

    def get_accessible(self, user_id: UUID) -> List[Album]:
        """Albums the user owns or is a member of."""
        member_albums = select(AlbumUser.album_id).where(AlbumUser.user_id == user_id)
        return self.db.query(Album).filter(
            Album.deleted_at.is_(None),
            or_(Album.owner_id == user_id, Album.id.in_(member_albums))
        ).order_by(Album.created_at.desc()).all()

    # ------------------------------------------------------------------
    # Album assets
    # ------------------------------------------------------------------

    def asset_ids(self, album_id: UUID) -> Set[UUID]:
        rows = self.db.query(album_assets.c.asset_id).filter(album_assets.c.album_id == album_id).all()
        return {row[0] for row in rows}

    def add_assets(self, album_id: UUID, asset_ids: Iterable[UUID]) -> Set[UUID]:
        """Add assets to an album without committing; returns ids actually added."""
        new_ids = set(asset_ids) - self.asset_ids(album_id)
        if new_ids:
            now = utcnow()
            self.db.execute(
                insert(album_assets),
                [{'album_id': album_id, 'asset_id': asset_id, 'created_at': now} for asset_id in new_ids]
            )
        return new_ids

    def remove_assets(self, album_id: UUID, asset_ids: Iterable[UUID]) -> Set[UUID]:
        """Remove assets from an album without committing; returns ids actually removed."""
        removed = set(asset_ids) & self.asset_ids(album_id)
        if removed:
            self.db.execute(
                delete(album_assets).where(
                    album_assets.c.album_id == album_id,
                    album_assets.c.asset_id.in_(removed)
                )
            )
        return removed

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    def get_member(self, album_id: UUID, user_id: UUID) -> Optional[AlbumUser]:
        return self.db.query(AlbumUser).filter(
            AlbumUser.album_id == album_id,
            AlbumUser.user_id == user_id
        ).first()

    def get_members(self, album_id: UUID) -> List[AlbumUser]:
        return self.db.query(AlbumUser).filter(AlbumUser.album_id == album_id).all()

    def upsert_member(self, album_id: UUID, user_id: UUID, role: AlbumRole) -> AlbumUser:
        """Create or change a membership without committing."""
        member = self.get_member(album_id, user_id)
        if member is None:
            member = AlbumUser(album_id=album_id, user_id=user_id, role=role)
            self.db.add(member)
        else:
            member.role = role
        self.db.flush()
        return member

    def remove_member(self, album_id: UUID, user_id: UUID) -> bool:
        member = self.get_member(album_id, user_id)
        if member is None:
            return False
        self.db.delete(member)
        self.db.flush()
        return True

    def audience(self, album_id: UUID) -> Set[UUID]:
        """Owner plus members of one album."""
        album = self.get(album_id, include_deleted=True)
        if album is None:
            return set()
        users = {member.user_id for member in self.get_members(album_id)}
        users.add(album.owner_id)
        return users

    def audience_by_asset(self, asset_ids: Iterable[UUID]) -> Dict[UUID, Set[UUID]]:
        """
        Users who may see each asset: its owner, plus owners and members of
        every live album containing it.
        """
        asset_ids = list(set(asset_ids))
        result: Dict[UUID, Set[UUID]] = defaultdict(set)
        if not asset_ids:
            return {}

        for asset_id, owner_id in self.db.query(Asset.id, Asset.owner_id).filter(Asset.id.in_(asset_ids)).all():
            result[asset_id].add(owner_id)

        owner_rows = self.db.query(album_assets.c.asset_id, Album.owner_id).join(
            Album, Album.id == album_assets.c.album_id
        ).filter(
            album_assets.c.asset_id.in_(asset_ids),
            Album.deleted_at.is_(None)
        ).all()

        member_rows = self.db.query(album_assets.c.asset_id, AlbumUser.user_id).join(
            AlbumUser, AlbumUser.album_id == album_assets.c.album_id
        ).join(
            Album, Album.id == album_assets.c.album_id
        ).filter(
            album_assets.c.asset_id.in_(asset_ids),
            Album.deleted_at.is_(None)
        ).all()

        for asset_id, user_id in owner_rows + member_rows:
            result[asset_id].add(user_id)
        return dict(result)

    def asset_owners(self, asset_ids: Iterable[UUID]) -> Dict[UUID, UUID]:
        asset_ids = list(set(asset_ids))
        if not asset_ids:
            return {}
        rows = self.db.query(Asset.id, Asset.owner_id).filter(Asset.id.in_(asset_ids)).all()
        return {asset_id: owner_id for asset_id, owner_id in rows}
