"""Shared links: capability keys scoped to an album or a list of assets."""
import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from mediavault.core.access import AccessOracle, Actor, Permission, SharedLinkScope
from mediavault.core.errors import AccessDeniedError, NotFoundError, ValidationError
from mediavault.models.base import as_naive_utc, utcnow
from mediavault.models.shared_link import SharedLink
from mediavault.repositories.access_repo import AccessRepository
from mediavault.repositories.album_repo import AlbumRepository
from mediavault.repositories.asset_repo import AssetRepository
from mediavault.repositories.shared_link_repo import SharedLinkRepository

logger = logging.getLogger(__name__)


class SharedLinkService:
    """Service for creating, listing, revoking and resolving shared links."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock
        self.links = SharedLinkRepository(db)
        self.albums = AlbumRepository(db)
        self.assets = AssetRepository(db)
        self.access = AccessOracle(AccessRepository(db), clock=clock)

    def create(
        self,
        actor: Actor,
        album_id: Optional[UUID] = None,
        asset_ids: Iterable[UUID] = (),
        expires_at: Optional[datetime] = None,
        allow_upload: bool = False,
        allow_download: bool = True,
        description: Optional[str] = None
    ) -> SharedLink:
        """
        Create a link for exactly one album or a non-empty asset list.

        Raises:
            ValidationError: if both or neither of album and assets are given,
                or the expiry is in the past
            NotFoundError: if the album or an asset does not exist
            AccessDeniedError: if the actor may not share them
        """
        if actor.is_shared_link:
            raise AccessDeniedError(Permission.ALBUM_SHARE)

        expires_at = as_naive_utc(expires_at)
        asset_ids = list(dict.fromkeys(asset_ids))
        if (album_id is None) == (not asset_ids):
            raise ValidationError("Provide either an album or a list of assets")
        if expires_at is not None and expires_at <= self.clock():
            raise ValidationError("Expiry must be in the future")

        if album_id is not None:
            if self.albums.get(album_id) is None:
                raise NotFoundError("Album", album_id)
            self.access.require_permission(actor, Permission.ALBUM_SHARE, album_id)
        else:
            live = {asset.id for asset in self.assets.get_many(asset_ids)}
            for asset_id in asset_ids:
                if asset_id not in live:
                    raise NotFoundError("Asset", asset_id)
            self.access.require_permission(actor, Permission.ASSET_SHARE, asset_ids)

        link = self.links.create_link(
            owner_id=actor.user_id,
            album_id=album_id,
            asset_ids=asset_ids,
            expires_at=expires_at,
            allow_upload=allow_upload,
            allow_download=allow_download,
            description=description,
        )
        logger.info(f"User {actor.user_id} created shared link {link.id}")
        return link

    def list_links(self, actor: Actor) -> List[SharedLink]:
        if actor.is_shared_link:
            return []
        return self.links.get_by_owner(actor.user_id)

    def get_current_link(self, actor: Actor) -> SharedLink:
        """The link a shared-link actor authenticated with."""
        link = self.links.get(actor.shared_link.id) if actor.is_shared_link else None
        if link is None:
            raise NotFoundError("Shared link")
        return link

    def delete(self, actor: Actor, link_id: UUID) -> None:
        if self.links.get(link_id) is None:
            raise NotFoundError("Shared link", link_id)
        self.access.require_permission(actor, Permission.SHARED_LINK_DELETE, link_id)
        self.links.delete(link_id, soft=False)
        logger.info(f"Shared link {link_id} revoked")

    def resolve_actor(self, key: str) -> Actor:
        """
        Turn a share key into an actor confined to the link's scope.

        Raises:
            AccessDeniedError: if the key is unknown or the link has expired
        """
        link = self.links.get_by_key(key) if key else None
        if link is None:
            raise AccessDeniedError("shared_link")
        if link.expires_at is not None and link.expires_at <= self.clock():
            logger.info(f"Expired shared link {link.id} presented")
            raise AccessDeniedError("shared_link", link.id)

        scope = SharedLinkScope(
            id=link.id,
            owner_id=link.owner_id,
            album_id=link.album_id,
            asset_ids=frozenset(asset.id for asset in link.assets),
            expires_at=link.expires_at,
            allow_upload=link.allow_upload,
            allow_download=link.allow_download,
        )
        return Actor(user_id=link.owner_id, shared_link=scope)
