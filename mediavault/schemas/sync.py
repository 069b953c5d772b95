"""Sync schemas."""
from pydantic import BaseModel
from uuid import UUID
from typing import Optional

from .asset import AssetResponse


class FullSyncResponse(BaseModel):
    """One page of a full sync.

    ``checkpoint`` is the server position when the page was computed;
    clients keep the value from the first page and use it for delta sync.
    """
    assets: list[AssetResponse]
    next_cursor: Optional[str] = None
    checkpoint: str


class DeltaSyncResponse(BaseModel):
    """Changes since a checkpoint, or a request to start over."""
    needs_full_sync: bool = False
    upserted: list[AssetResponse] = []
    deleted: list[UUID] = []
    checkpoint: Optional[str] = None
