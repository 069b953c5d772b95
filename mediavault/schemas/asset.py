"""Asset schemas for API requests and responses."""
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from uuid import UUID
from typing import Optional, Literal

from mediavault.models.enums import AssetType


class AssetResponse(BaseModel):
    """Asset metadata as returned to clients."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: UUID
    checksum: str
    type: AssetType
    live_photo_pair_id: Optional[UUID] = None
    device_id: Optional[str] = None
    device_asset_id: Optional[str] = None
    original_filename: str
    content_type: str
    file_size: int
    file_created_at: Optional[datetime] = None
    file_modified_at: Optional[datetime] = None
    duration: Optional[str] = None
    is_favorite: bool
    is_archived: bool
    has_thumbnail: bool = False
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_asset(cls, asset) -> "AssetResponse":
        response = cls.model_validate(asset)
        response.has_thumbnail = asset.thumbnail_locator is not None
        return response


class AssetUploadResponse(BaseModel):
    """Result of an upload; ``duplicate`` is true when nothing new was stored."""
    id: UUID
    duplicate: bool


class AssetUpdate(BaseModel):
    """Mutable asset flags."""
    is_favorite: Optional[bool] = None
    is_archived: Optional[bool] = None


class AssetBulkDeleteRequest(BaseModel):
    ids: list[UUID] = Field(..., min_length=1, max_length=1000)


class AssetBulkDeleteResponse(BaseModel):
    deleted: list[UUID]


class ChecksumExistRequest(BaseModel):
    """Checksums (hex or base64) to look up in the caller's library."""
    checksums: list[str] = Field(..., min_length=1, max_length=5000)


class ChecksumExistResponse(BaseModel):
    existing: dict[str, Optional[UUID]]


class DeviceAssetExistRequest(BaseModel):
    device_id: str = Field(..., min_length=1, max_length=255)
    device_asset_ids: list[str] = Field(..., max_length=5000)


class DeviceAssetExistResponse(BaseModel):
    existing_ids: list[str]


class BulkUploadCheckItem(BaseModel):
    id: str = Field(..., min_length=1, description="Client-side identifier echoed back")
    checksum: str


class BulkUploadCheckRequest(BaseModel):
    assets: list[BulkUploadCheckItem] = Field(..., max_length=5000)


class BulkUploadCheckResult(BaseModel):
    id: str
    action: Literal["accept", "reject"]
    reason: Optional[Literal["duplicate", "invalid-checksum"]] = None
    asset_id: Optional[UUID] = None


class BulkUploadCheckResponse(BaseModel):
    results: list[BulkUploadCheckResult]
