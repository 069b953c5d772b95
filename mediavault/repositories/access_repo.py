"""Raw ownership and grant lookups consumed by the access oracle."""
from collections import defaultdict
from typing import Dict, List, Optional, Set, Tuple
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from mediavault.models.activity import Activity
from mediavault.models.album import Album, AlbumUser, album_assets
from mediavault.models.asset import Asset
from mediavault.models.enums import AlbumRole
from mediavault.models.shared_link import SharedLink, shared_link_assets


class AccessRepository:
    """
    Set-based lookups keyed by resource id.

    Every method takes a set of ids and returns only the ids it found
    evidence for; nothing here decides whether access is allowed.
    """

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------

    def asset_owners(self, asset_ids: Set[UUID]) -> Dict[UUID, UUID]:
        rows = self.db.query(Asset.id, Asset.owner_id).filter(
            Asset.id.in_(asset_ids),
            Asset.deleted_at.is_(None)
        ).all()
        return {asset_id: owner_id for asset_id, owner_id in rows}

    def album_owners(self, album_ids: Set[UUID]) -> Dict[UUID, UUID]:
        rows = self.db.query(Album.id, Album.owner_id).filter(
            Album.id.in_(album_ids),
            Album.deleted_at.is_(None)
        ).all()
        return {album_id: owner_id for album_id, owner_id in rows}

    def activity_owners(self, activity_ids: Set[UUID]) -> Dict[UUID, Set[UUID]]:
        """Author and album owner of each activity."""
        rows = self.db.query(Activity.id, Activity.user_id, Album.owner_id).join(
            Album, Album.id == Activity.album_id
        ).filter(
            Activity.id.in_(activity_ids),
            Album.deleted_at.is_(None)
        ).all()
        return {activity_id: {author_id, owner_id} for activity_id, author_id, owner_id in rows}

    # ------------------------------------------------------------------
    # Album membership
    # ------------------------------------------------------------------

    def asset_album_roles(self, user_id: UUID, asset_ids: Set[UUID]) -> Dict[UUID, List[Tuple[UUID, AlbumRole]]]:
        """
        Albums containing each asset in which ``user_id`` is a member.

        Owning the album counts as the ``owner`` role.
        """
        result: Dict[UUID, List[Tuple[UUID, AlbumRole]]] = defaultdict(list)

        member_rows = self.db.query(
            album_assets.c.asset_id, AlbumUser.album_id, AlbumUser.role
        ).join(
            AlbumUser, AlbumUser.album_id == album_assets.c.album_id
        ).join(
            Album, Album.id == AlbumUser.album_id
        ).join(
            Asset, Asset.id == album_assets.c.asset_id
        ).filter(
            album_assets.c.asset_id.in_(asset_ids),
            AlbumUser.user_id == user_id,
            Album.deleted_at.is_(None),
            Asset.deleted_at.is_(None)
        ).all()

        owner_rows = self.db.query(
            album_assets.c.asset_id, Album.id
        ).join(
            Album, Album.id == album_assets.c.album_id
        ).join(
            Asset, Asset.id == album_assets.c.asset_id
        ).filter(
            album_assets.c.asset_id.in_(asset_ids),
            Album.owner_id == user_id,
            Album.deleted_at.is_(None),
            Asset.deleted_at.is_(None)
        ).all()

        for asset_id, album_id, role in member_rows:
            result[asset_id].append((album_id, role))
        for asset_id, album_id in owner_rows:
            result[asset_id].append((album_id, AlbumRole.owner))
        return dict(result)

    def album_roles(self, user_id: UUID, album_ids: Set[UUID]) -> Dict[UUID, AlbumRole]:
        rows = self.db.query(AlbumUser.album_id, AlbumUser.role).join(
            Album, Album.id == AlbumUser.album_id
        ).filter(
            AlbumUser.album_id.in_(album_ids),
            AlbumUser.user_id == user_id,
            Album.deleted_at.is_(None)
        ).all()
        return {album_id: role for album_id, role in rows}

    def activity_album_roles(self, user_id: UUID, activity_ids: Set[UUID]) -> Dict[UUID, Tuple[UUID, AlbumRole]]:
        rows = self.db.query(Activity.id, AlbumUser.album_id, AlbumUser.role).join(
            AlbumUser, AlbumUser.album_id == Activity.album_id
        ).join(
            Album, Album.id == AlbumUser.album_id
        ).filter(
            Activity.id.in_(activity_ids),
            AlbumUser.user_id == user_id,
            Album.deleted_at.is_(None)
        ).all()
        return {activity_id: (album_id, role) for activity_id, album_id, role in rows}

    # ------------------------------------------------------------------
    # Shared links
    # ------------------------------------------------------------------

    def get_shared_link(self, link_id: UUID) -> Optional[SharedLink]:
        return self.db.query(SharedLink).filter(SharedLink.id == link_id).first()

    def shared_link_owners(self, link_ids: Set[UUID]) -> Dict[UUID, UUID]:
        rows = self.db.query(SharedLink.id, SharedLink.owner_id).filter(SharedLink.id.in_(link_ids)).all()
        return {link_id: owner_id for link_id, owner_id in rows}

    def shared_link_assets(self, link: SharedLink, asset_ids: Set[UUID]) -> Set[UUID]:
        """Ids among ``asset_ids`` covered by the link's asset list or album."""
        in_link = select(shared_link_assets.c.asset_id).where(
            shared_link_assets.c.shared_link_id == link.id
        )
        conditions = [Asset.id.in_(in_link)]
        if link.album_id is not None:
            in_album = select(album_assets.c.asset_id).join(
                Album, Album.id == album_assets.c.album_id
            ).where(
                album_assets.c.album_id == link.album_id,
                Album.deleted_at.is_(None)
            )
            conditions.append(Asset.id.in_(in_album))

        rows = self.db.query(Asset.id).filter(
            Asset.id.in_(asset_ids),
            Asset.deleted_at.is_(None),
            or_(*conditions)
        ).all()
        return {row[0] for row in rows}

    def shared_link_albums(self, link: SharedLink, album_ids: Set[UUID]) -> Set[UUID]:
        if link.album_id is None or link.album_id not in album_ids:
            return set()
        return set(self.album_owners({link.album_id}))
