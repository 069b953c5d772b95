"""Sync API endpoints."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional

from mediavault.api.deps import get_db, get_user_actor
from mediavault.core.access import Actor
from mediavault.core.checkpoint import PageCursor, SyncCheckpoint
from mediavault.core.errors import StaleCheckpointError
from mediavault.schemas.asset import AssetResponse
from mediavault.schemas.sync import DeltaSyncResponse, FullSyncResponse
from mediavault.services.sync_service import SyncService


router = APIRouter()


@router.get('/full-sync', response_model=FullSyncResponse)
def full_sync(
    cursor: Optional[str] = Query(None, description='next_cursor from the previous page'),
    limit: Optional[int] = Query(None, ge=1),
    updated_until: Optional[datetime] = Query(None),
    actor: Actor = Depends(get_user_actor),
    db: Session = Depends(get_db)
):
    """
    Page through every asset visible to the caller.

    Keep the ``checkpoint`` of the first page and pass it to delta sync
    once all pages are fetched.
    """
    page = SyncService(db).full_sync(
        actor,
        cursor=PageCursor.decode(cursor) if cursor else None,
        limit=limit,
        updated_until=updated_until,
    )
    return FullSyncResponse(
        assets=[AssetResponse.from_asset(asset) for asset in page.assets],
        next_cursor=page.next_cursor.encode() if page.next_cursor else None,
        checkpoint=page.checkpoint.encode(),
    )


@router.get('/delta-sync', response_model=DeltaSyncResponse)
def delta_sync(
    checkpoint: str = Query(..., description='Checkpoint from a previous sync'),
    actor: Actor = Depends(get_user_actor),
    db: Session = Depends(get_db)
):
    """Changes since ``checkpoint``, or ``needs_full_sync`` when it is too old."""
    try:
        result = SyncService(db).delta_sync(actor, SyncCheckpoint.decode(checkpoint))
    except StaleCheckpointError:
        return DeltaSyncResponse(needs_full_sync=True)

    return DeltaSyncResponse(
        upserted=[AssetResponse.from_asset(asset) for asset in result.upserted],
        deleted=result.deleted_ids,
        checkpoint=result.checkpoint.encode(),
    )
