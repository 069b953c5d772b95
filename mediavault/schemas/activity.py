"""Activity schemas."""
from pydantic import BaseModel, Field, ConfigDict, model_validator
from datetime import datetime
from uuid import UUID
from typing import Optional

from mediavault.models.enums import ReactionType


class ActivityCreate(BaseModel):
    """Like or comment on an album or one of its assets."""
    album_id: UUID
    asset_id: Optional[UUID] = None
    type: ReactionType
    comment: Optional[str] = Field(None, max_length=5000)

    @model_validator(mode='after')
    def check_comment(self) -> "ActivityCreate":
        if self.type == ReactionType.comment and not (self.comment and self.comment.strip()):
            raise ValueError('comment is required for type "comment"')
        return self


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    album_id: UUID
    asset_id: Optional[UUID] = None
    type: ReactionType
    comment: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_activity(cls, activity) -> "ActivityResponse":
        return cls(
            id=activity.id,
            user_id=activity.user_id,
            album_id=activity.album_id,
            asset_id=activity.asset_id,
            type=ReactionType.like if activity.is_liked else ReactionType.comment,
            comment=activity.comment,
            created_at=activity.created_at,
        )


class ActivityCreateResponse(ActivityResponse):
    duplicate: bool = False


class ActivityStatisticsResponse(BaseModel):
    comments: int
