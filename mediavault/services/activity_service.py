"""Likes and comments on albums and on assets inside albums."""
import logging
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mediavault.core.access import AccessOracle, Actor, Permission
from mediavault.core.errors import AccessDeniedError, NotFoundError, ValidationError
from mediavault.models.activity import Activity
from mediavault.models.enums import ReactionLevel, ReactionType
from mediavault.repositories.access_repo import AccessRepository
from mediavault.repositories.activity_repo import ANY, ActivityRepository, ActivitySearch
from mediavault.repositories.album_repo import AlbumRepository

logger = logging.getLogger(__name__)


@dataclass
class ActivityResult:
    activity: Activity
    duplicate: bool


class ActivityService:
    """Service for activity operations."""

    def __init__(self, db: Session):
        self.db = db
        self.activities = ActivityRepository(db)
        self.albums = AlbumRepository(db)
        self.access = AccessOracle(AccessRepository(db))

    def _require_album(self, album_id: UUID):
        album = self.albums.get(album_id)
        if album is None:
            raise NotFoundError("Album", album_id)
        return album

    def get_all(
        self,
        actor: Actor,
        album_id: UUID,
        asset_id: Optional[UUID] = None,
        user_id: Optional[UUID] = None,
        type: Optional[ReactionType] = None,
        level: Optional[ReactionLevel] = None
    ) -> List[Activity]:
        """
        List activity of an album.

        Args:
            actor: Requesting actor
            album_id: Album UUID
            asset_id: Only activity on this asset (ignored for album level)
            user_id: Only activity by this user
            type: like or comment
            level: ``album`` restricts to album-level activity

        Returns:
            Activities, oldest first
        """
        self._require_album(album_id)
        self.access.require_permission(actor, Permission.ALBUM_READ, album_id)

        if level == ReactionLevel.album:
            asset_filter = None
        elif asset_id is not None:
            asset_filter = asset_id
        else:
            asset_filter = ANY

        is_liked = None
        if type is not None:
            is_liked = type == ReactionType.like

        return self.activities.search(ActivitySearch(
            album_id=album_id,
            user_id=user_id,
            asset_id=asset_filter,
            is_liked=is_liked,
        ))

    def get_statistics(self, actor: Actor, album_id: UUID, asset_id: Optional[UUID] = None) -> int:
        """Number of comments in an album, or on one of its assets."""
        self._require_album(album_id)
        self.access.require_permission(actor, Permission.ALBUM_READ, album_id)
        return self.activities.statistics(album_id, asset_id)

    def create(
        self,
        actor: Actor,
        album_id: UUID,
        type: ReactionType,
        asset_id: Optional[UUID] = None,
        comment: Optional[str] = None
    ) -> ActivityResult:
        """
        Like or comment.

        A second like by the same user on the same target returns the
        existing like with ``duplicate=True``. Comments are never deduplicated.
        """
        album = self._require_album(album_id)
        self.access.require_permission(actor, Permission.ACTIVITY_CREATE, album_id)
        if not album.is_activity_enabled:
            raise AccessDeniedError(Permission.ACTIVITY_CREATE, album_id)

        if asset_id is not None and asset_id not in self.albums.asset_ids(album_id):
            raise ValidationError("Asset is not part of the album")

        if type == ReactionType.like:
            existing = self._find_like(actor.user_id, album_id, asset_id)
            if existing is not None:
                return ActivityResult(existing, True)
            try:
                activity = self.activities.create_activity(actor.user_id, album_id, asset_id, is_liked=True)
            except IntegrityError:
                self.db.rollback()
                winner = self._find_like(actor.user_id, album_id, asset_id)
                if winner is None:
                    raise
                logger.info(f"Lost like race for user {actor.user_id} in album {album_id}; returning {winner.id}")
                return ActivityResult(winner, True)
        else:
            if not comment or not comment.strip():
                raise ValidationError("Comment text is required")
            activity = self.activities.create_activity(
                actor.user_id, album_id, asset_id, is_liked=False, comment=comment
            )

        logger.info(f"User {actor.user_id} added {type.value} {activity.id} to album {album_id}")
        return ActivityResult(activity, False)

    def _find_like(self, user_id: UUID, album_id: UUID, asset_id: Optional[UUID]) -> Optional[Activity]:
        likes = self.activities.search(ActivitySearch(
            album_id=album_id,
            user_id=user_id,
            asset_id=asset_id,
            is_liked=True,
        ))
        return likes[0] if likes else None

    def delete(self, actor: Actor, activity_id: UUID) -> None:
        activity = self.activities.get(activity_id)
        if activity is None:
            raise NotFoundError("Activity", activity_id)
        self.access.require_permission(actor, Permission.ACTIVITY_DELETE, activity_id)
        self.activities.delete(activity_id, soft=False)
        logger.info(f"Deleted activity {activity_id}")
