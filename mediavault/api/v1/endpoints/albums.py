"""Album API endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from mediavault.api.deps import get_current_actor, get_db, get_user_actor
from mediavault.core.access import Actor
from mediavault.schemas.album import (
    AlbumAssetsRequest,
    AlbumAssetsResponse,
    AlbumCreate,
    AlbumMemberRequest,
    AlbumMemberResponse,
    AlbumResponse,
    AlbumUpdate,
)
from mediavault.services.album_service import AlbumService


router = APIRouter()


@router.post('', response_model=AlbumResponse, status_code=status.HTTP_201_CREATED)
def create_album(
    album_data: AlbumCreate,
    actor: Actor = Depends(get_user_actor),
    db: Session = Depends(get_db)
):
    """
    Create new album.

    - **name**: Album name (required)
    - **description**: Free text
    - **asset_ids**: Own assets to put in the album
    - **is_activity_enabled**: Allow likes and comments
    """
    return AlbumService(db).create_album(
        actor,
        album_data.name,
        description=album_data.description,
        asset_ids=album_data.asset_ids,
        is_activity_enabled=album_data.is_activity_enabled,
    )


@router.get('', response_model=List[AlbumResponse])
def list_albums(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Albums the caller owns or is a member of."""
    return AlbumService(db).list_albums(actor)


@router.get('/{album_id}', response_model=AlbumResponse)
def get_album(
    album_id: UUID,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    return AlbumService(db).get_album(actor, album_id)


@router.patch('/{album_id}', response_model=AlbumResponse)
def update_album(
    album_id: UUID,
    album_data: AlbumUpdate,
    actor: Actor = Depends(get_user_actor),
    db: Session = Depends(get_db)
):
    return AlbumService(db).update_album(
        actor,
        album_id,
        name=album_data.name,
        description=album_data.description,
        is_activity_enabled=album_data.is_activity_enabled,
    )


@router.delete('/{album_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_album(
    album_id: UUID,
    actor: Actor = Depends(get_user_actor),
    db: Session = Depends(get_db)
):
    """Delete album. Assets stay in their owners' libraries."""
    AlbumService(db).delete_album(actor, album_id)


@router.put('/{album_id}/assets', response_model=AlbumAssetsResponse)
def add_assets_to_album(
    album_id: UUID,
    payload: AlbumAssetsRequest,
    actor: Actor = Depends(get_user_actor),
    db: Session = Depends(get_db)
):
    """Add assets; returns the ids that were newly added."""
    added = AlbumService(db).add_assets(actor, album_id, payload.ids)
    return AlbumAssetsResponse(ids=sorted(added))


@router.delete('/{album_id}/assets', response_model=AlbumAssetsResponse)
def remove_assets_from_album(
    album_id: UUID,
    payload: AlbumAssetsRequest,
    actor: Actor = Depends(get_user_actor),
    db: Session = Depends(get_db)
):
    """Remove assets; returns the ids that were in the album."""
    removed = AlbumService(db).remove_assets(actor, album_id, payload.ids)
    return AlbumAssetsResponse(ids=sorted(removed))


@router.put('/{album_id}/users', response_model=AlbumMemberResponse)
def add_album_member(
    album_id: UUID,
    payload: AlbumMemberRequest,
    actor: Actor = Depends(get_user_actor),
    db: Session = Depends(get_db)
):
    """Share the album with a user, or change their role."""
    return AlbumService(db).add_member(actor, album_id, payload.user_id, payload.role)


@router.delete('/{album_id}/users/{user_id}', status_code=status.HTTP_204_NO_CONTENT)
def remove_album_member(
    album_id: UUID,
    user_id: UUID,
    actor: Actor = Depends(get_user_actor),
    db: Session = Depends(get_db)
):
    """Revoke a member. Members may remove themselves."""
    AlbumService(db).remove_member(actor, album_id, user_id)
