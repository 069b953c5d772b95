"""Album schemas."""
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from uuid import UUID
from typing import Optional

from mediavault.models.enums import AlbumRole


class AlbumCreate(BaseModel):
    """Schema for creating an album."""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    asset_ids: list[UUID] = Field(default_factory=list)
    is_activity_enabled: bool = True


class AlbumUpdate(BaseModel):
    """Schema for updating an album."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    is_activity_enabled: Optional[bool] = None


class AlbumMemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    role: AlbumRole
    created_at: datetime


class AlbumResponse(BaseModel):
    """Schema for album response."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: UUID
    name: str
    description: Optional[str] = None
    is_activity_enabled: bool
    created_at: datetime
    updated_at: datetime
    members: list[AlbumMemberResponse] = []


class AlbumAssetsRequest(BaseModel):
    ids: list[UUID] = Field(..., min_length=1, max_length=1000)


class AlbumAssetsResponse(BaseModel):
    ids: list[UUID]


class AlbumMemberRequest(BaseModel):
    user_id: UUID
    role: AlbumRole = AlbumRole.viewer
