"""Activity repository: the activity store behind likes and comments."""
from dataclasses import dataclass
from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy import asc, func
from sqlalchemy.orm import Session

from mediavault.models.activity import Activity
from mediavault.repositories.base import BaseRepository

# Marker distinguishing "no asset filter" from "album-level only (asset_id IS NULL)".
ANY = object()


@dataclass
class ActivitySearch:
    """
    Activity filter.

    ``asset_id`` set to ``ANY`` skips the asset filter; ``None`` matches
    album-level activity only.
    """
    album_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    asset_id: Union[UUID, None, object] = ANY
    is_liked: Optional[bool] = None


class ActivityRepository(BaseRepository[Activity]):
    """Repository for activity database operations."""

    def __init__(self, db: Session):
        super().__init__(Activity, db)

    def search(self, options: ActivitySearch) -> List[Activity]:
        """
        Search activities, oldest first.

        Args:
            options: Filter values

        Returns:
            Matching activities
        """
        query = self.db.query(Activity)

        if options.album_id is not None:
            query = query.filter(Activity.album_id == options.album_id)
        if options.user_id is not None:
            query = query.filter(Activity.user_id == options.user_id)
        if options.asset_id is None:
            query = query.filter(Activity.asset_id.is_(None))
        elif options.asset_id is not ANY:
            query = query.filter(Activity.asset_id == options.asset_id)
        if options.is_liked is not None:
            query = query.filter(Activity.is_liked.is_(options.is_liked))

        return query.order_by(asc(Activity.created_at), asc(Activity.id)).all()

    def create_activity(
        self,
        user_id: UUID,
        album_id: UUID,
        asset_id: Optional[UUID],
        is_liked: bool,
        comment: Optional[str] = None
    ) -> Activity:
        return self.create({
            'user_id': user_id,
            'album_id': album_id,
            'asset_id': asset_id,
            'is_liked': is_liked,
            'comment': comment,
        })

    def statistics(self, album_id: UUID, asset_id: Optional[UUID] = None) -> int:
        """
        Count comments in an album, or on one asset of it.

        Args:
            album_id: Album UUID
            asset_id: Optional asset UUID

        Returns:
            Number of comments
        """
        query = self.db.query(func.count(Activity.id)).filter(
            Activity.album_id == album_id,
            Activity.is_liked.is_(False)
        )
        if asset_id is not None:
            query = query.filter(Activity.asset_id == asset_id)
        return query.scalar() or 0
