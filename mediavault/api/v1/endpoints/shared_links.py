"""Shared link API endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from mediavault.api.deps import get_current_actor, get_db, get_user_actor
from mediavault.core.access import Actor
from mediavault.schemas.shared_link import SharedLinkCreate, SharedLinkResponse
from mediavault.services.shared_link_service import SharedLinkService


router = APIRouter()


@router.post('', response_model=SharedLinkResponse, status_code=status.HTTP_201_CREATED)
def create_shared_link(
    payload: SharedLinkCreate,
    actor: Actor = Depends(get_user_actor),
    db: Session = Depends(get_db)
):
    """
    Create a shared link.

    - **album_id** or **asset_ids**: what the link exposes (exactly one)
    - **expires_at**: optional expiry (UTC)
    - **allow_upload**: visitors may upload into the owner's library
    - **allow_download**: visitors may fetch original files
    """
    link = SharedLinkService(db).create(
        actor,
        album_id=payload.album_id,
        asset_ids=payload.asset_ids,
        expires_at=payload.expires_at,
        allow_upload=payload.allow_upload,
        allow_download=payload.allow_download,
        description=payload.description,
    )
    return SharedLinkResponse.from_link(link)


@router.get('', response_model=List[SharedLinkResponse])
def list_shared_links(
    actor: Actor = Depends(get_user_actor),
    db: Session = Depends(get_db)
):
    return [SharedLinkResponse.from_link(link) for link in SharedLinkService(db).list_links(actor)]


@router.get('/me', response_model=SharedLinkResponse)
def get_my_shared_link(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """The link the caller authenticated with (``?key=`` or ``x-share-key``)."""
    return SharedLinkResponse.from_link(SharedLinkService(db).get_current_link(actor))


@router.delete('/{link_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_shared_link(
    link_id: UUID,
    actor: Actor = Depends(get_user_actor),
    db: Session = Depends(get_db)
):
    """Revoke a shared link; it stops working immediately."""
    SharedLinkService(db).delete(actor, link_id)
