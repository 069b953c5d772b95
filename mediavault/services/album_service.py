"""
Album lifecycle and sharing.

Every change that alters who can see an asset is made visible to delta
sync: gaining visibility advances the asset's ``updated_at``, losing it
writes a tombstone for each user who can no longer see the asset.
"""
import logging
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from mediavault.core.access import AccessOracle, Actor, Permission
from mediavault.core.errors import AccessDeniedError, NotFoundError, ValidationError
from mediavault.models.album import Album, AlbumUser
from mediavault.models.base import utcnow
from mediavault.models.enums import AlbumRole
from mediavault.repositories.access_repo import AccessRepository
from mediavault.repositories.album_repo import AlbumRepository
from mediavault.repositories.asset_audit_repo import AssetAuditRepository
from mediavault.repositories.asset_repo import AssetRepository
from mediavault.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)


class AlbumService:
    """Service for album, album asset and membership operations."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock
        self.albums = AlbumRepository(db)
        self.assets = AssetRepository(db)
        self.audits = AssetAuditRepository(db)
        self.users = UserRepository(db)
        self.access = AccessOracle(AccessRepository(db), clock=clock)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_album(self, album_id: UUID) -> Album:
        album = self.albums.get(album_id)
        if album is None:
            raise NotFoundError("Album", album_id)
        return album

    def _require_assets(self, asset_ids: Iterable[UUID]) -> List[UUID]:
        asset_ids = list(dict.fromkeys(asset_ids))
        live = {asset.id for asset in self.assets.get_many(asset_ids)}
        for asset_id in asset_ids:
            if asset_id not in live:
                raise NotFoundError("Asset", asset_id)
        return asset_ids

    def _lost_visibility(self, users: Set[UUID], asset_ids: Iterable[UUID]) -> List[Tuple[UUID, UUID]]:
        """
        (asset_id, user_id) pairs for users in ``users`` who can no longer
        see each asset. Must run after the membership change is flushed.
        """
        asset_ids = list(asset_ids)
        still_visible: Dict[UUID, Set[UUID]] = self.albums.audience_by_asset(asset_ids)
        return [
            (asset_id, user_id)
            for asset_id in asset_ids
            for user_id in users - still_visible.get(asset_id, set())
        ]

    # ------------------------------------------------------------------
    # Albums
    # ------------------------------------------------------------------

    def create_album(
        self,
        actor: Actor,
        name: str,
        description: Optional[str] = None,
        asset_ids: Iterable[UUID] = (),
        is_activity_enabled: bool = True
    ) -> Album:
        """
        Create an album owned by the actor, optionally seeded with assets.

        Args:
            actor: Requesting user
            name: Album name
            description: Optional description
            asset_ids: Assets to add; each needs ``asset.share``
            is_activity_enabled: Whether likes and comments are allowed

        Returns:
            Created Album
        """
        if actor.is_shared_link:
            raise AccessDeniedError(Permission.ALBUM_UPDATE)
        if not name or not name.strip():
            raise ValidationError("Album name is required")

        asset_ids = self._require_assets(asset_ids)
        self.access.require_permission(actor, Permission.ASSET_SHARE, asset_ids)

        album = self.albums.create_album(actor.user_id, name.strip(), description, is_activity_enabled)
        if asset_ids:
            self.albums.add_assets(album.id, asset_ids)
            self.db.commit()

        logger.info(f"User {actor.user_id} created album {album.id}")
        return album

    def list_albums(self, actor: Actor) -> List[Album]:
        if actor.is_shared_link:
            album_id = actor.shared_link.album_id
            if album_id is None:
                return []
            album = self.albums.get(album_id)
            readable = self.access.filter_visible(actor, Permission.ALBUM_READ, [album_id])
            return [album] if album is not None and album_id in readable else []
        return self.albums.get_accessible(actor.user_id)

    def get_album(self, actor: Actor, album_id: UUID) -> Album:
        album = self._get_album(album_id)
        self.access.require_permission(actor, Permission.ALBUM_READ, album_id)
        return album

    def update_album(
        self,
        actor: Actor,
        album_id: UUID,
        name: Optional[str] = None,
        description: Optional[str] = None,
        is_activity_enabled: Optional[bool] = None
    ) -> Album:
        album = self._get_album(album_id)
        self.access.require_permission(actor, Permission.ALBUM_UPDATE, album_id)

        if name is not None:
            if not name.strip():
                raise ValidationError("Album name is required")
            album.name = name.strip()
        if description is not None:
            album.description = description
        if is_activity_enabled is not None:
            album.is_activity_enabled = is_activity_enabled

        self.db.commit()
        self.db.refresh(album)
        return album

    def delete_album(self, actor: Actor, album_id: UUID) -> None:
        """Soft-delete an album; members and the owner lose sight of its assets."""
        album = self._get_album(album_id)
        self.access.require_permission(actor, Permission.ALBUM_DELETE, album_id)

        audience = self.albums.audience(album_id)
        asset_ids = self.albums.asset_ids(album_id)

        now = self.clock()
        album.deleted_at = now
        album.updated_at = now
        self.db.flush()

        self.audits.record(self._lost_visibility(audience, asset_ids), at=now)
        self.db.commit()
        logger.info(f"Album {album_id} deleted by {actor.user_id}")

    # ------------------------------------------------------------------
    # Album assets
    # ------------------------------------------------------------------

    def add_assets(self, actor: Actor, album_id: UUID, asset_ids: Iterable[UUID]) -> Set[UUID]:
        """
        Add assets to an album.

        Returns:
            Ids that were not already in the album
        """
        album = self._get_album(album_id)
        self.access.require_permission(actor, Permission.ALBUM_UPDATE, album_id)
        asset_ids = self._require_assets(asset_ids)
        self.access.require_permission(actor, Permission.ASSET_SHARE, asset_ids)

        now = self.clock()
        added = self.albums.add_assets(album_id, asset_ids)
        if added:
            self.assets.touch(added, now)
            album.updated_at = now
        self.db.commit()

        logger.info(f"Added {len(added)} assets to album {album_id}")
        return added

    def remove_assets(self, actor: Actor, album_id: UUID, asset_ids: Iterable[UUID]) -> Set[UUID]:
        """
        Remove assets from an album.

        Returns:
            Ids that were in the album
        """
        album = self._get_album(album_id)
        self.access.require_permission(actor, Permission.ALBUM_UPDATE, album_id)

        audience = self.albums.audience(album_id)
        now = self.clock()
        removed = self.albums.remove_assets(album_id, asset_ids)
        if removed:
            self.audits.record(self._lost_visibility(audience, removed), at=now)
            album.updated_at = now
        self.db.commit()

        logger.info(f"Removed {len(removed)} assets from album {album_id}")
        return removed

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    def add_member(self, actor: Actor, album_id: UUID, user_id: UUID, role: AlbumRole = AlbumRole.viewer) -> AlbumUser:
        """Grant a user a role on the album."""
        album = self._get_album(album_id)
        self.access.require_permission(actor, Permission.ALBUM_SHARE, album_id)

        if self.users.get(user_id) is None:
            raise NotFoundError("User", user_id)
        if user_id == album.owner_id:
            raise ValidationError("Album owner cannot be added as a member")

        member = self.albums.upsert_member(album_id, user_id, role)
        # Surface the album's assets in the new member's next delta.
        self.assets.touch(self.albums.asset_ids(album_id), self.clock())
        self.db.commit()
        self.db.refresh(member)

        logger.info(f"User {user_id} granted {role.value} on album {album_id}")
        return member

    def remove_member(self, actor: Actor, album_id: UUID, user_id: UUID) -> None:
        """Revoke a membership. Members may always remove themselves."""
        self._get_album(album_id)
        leaving = not actor.is_shared_link and actor.user_id == user_id
        if not leaving:
            self.access.require_permission(actor, Permission.ALBUM_SHARE, album_id)

        if not self.albums.remove_member(album_id, user_id):
            raise NotFoundError("Album member", user_id)

        asset_ids = self.albums.asset_ids(album_id)
        self.audits.record(self._lost_visibility({user_id}, asset_ids), at=self.clock())
        self.db.commit()

        logger.info(f"User {user_id} removed from album {album_id}")
