"""Shared link schemas."""
from pydantic import BaseModel, Field, ConfigDict, model_validator
from datetime import datetime
from uuid import UUID
from typing import Optional


class SharedLinkCreate(BaseModel):
    """Share exactly one album or a list of assets."""
    album_id: Optional[UUID] = None
    asset_ids: list[UUID] = Field(default_factory=list, max_length=1000)
    description: Optional[str] = None
    expires_at: Optional[datetime] = None
    allow_upload: bool = False
    allow_download: bool = True

    @model_validator(mode='after')
    def check_target(self) -> "SharedLinkCreate":
        if (self.album_id is None) == (not self.asset_ids):
            raise ValueError('provide either album_id or asset_ids')
        return self


class SharedLinkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    key: str
    owner_id: UUID
    album_id: Optional[UUID] = None
    asset_ids: list[UUID] = []
    description: Optional[str] = None
    expires_at: Optional[datetime] = None
    allow_upload: bool
    allow_download: bool
    created_at: datetime

    @classmethod
    def from_link(cls, link) -> "SharedLinkResponse":
        response = cls.model_validate(link)
        response.asset_ids = [asset.id for asset in link.assets]
        return response
