"""Shared link repository."""
from datetime import datetime
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from mediavault.models.asset import Asset
from mediavault.models.shared_link import SharedLink
from mediavault.repositories.base import BaseRepository


class SharedLinkRepository(BaseRepository[SharedLink]):
    """Repository for shared link operations."""

    def __init__(self, db: Session):
        super().__init__(SharedLink, db)

    def create_link(
        self,
        owner_id: UUID,
        album_id: Optional[UUID] = None,
        asset_ids: Iterable[UUID] = (),
        expires_at: Optional[datetime] = None,
        allow_upload: bool = False,
        allow_download: bool = True,
        description: Optional[str] = None
    ) -> SharedLink:
        """
        Create a shared link for an album or an explicit asset list.

        Returns:
            Created SharedLink with its assets loaded
        """
        link = SharedLink(
            owner_id=owner_id,
            album_id=album_id,
            expires_at=expires_at,
            allow_upload=allow_upload,
            allow_download=allow_download,
            description=description,
        )
        asset_ids = list(asset_ids)
        if asset_ids:
            link.assets = self.db.query(Asset).filter(Asset.id.in_(asset_ids)).all()
        self.db.add(link)
        self.db.commit()
        self.db.refresh(link)
        return link

    def get_by_key(self, key: str) -> Optional[SharedLink]:
        return self.db.query(SharedLink).options(
            selectinload(SharedLink.assets)
        ).filter(SharedLink.key == key).first()

    def get_by_owner(self, owner_id: UUID) -> List[SharedLink]:
        return self.db.query(SharedLink).options(
            selectinload(SharedLink.assets)
        ).filter(SharedLink.owner_id == owner_id).order_by(SharedLink.created_at.desc()).all()
