"""Activity (likes and comments) API endpoints."""
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from mediavault.api.deps import get_db, get_user_actor
from mediavault.core.access import Actor
from mediavault.models.enums import ReactionLevel, ReactionType
from mediavault.schemas.activity import (
    ActivityCreate,
    ActivityCreateResponse,
    ActivityResponse,
    ActivityStatisticsResponse,
)
from mediavault.services.activity_service import ActivityService


router = APIRouter()


@router.get('', response_model=List[ActivityResponse])
def get_activities(
    album_id: UUID = Query(...),
    asset_id: Optional[UUID] = Query(None),
    user_id: Optional[UUID] = Query(None),
    type: Optional[ReactionType] = Query(None),
    level: Optional[ReactionLevel] = Query(None),
    actor: Actor = Depends(get_user_actor),
    db: Session = Depends(get_db)
):
    """List album activity, oldest first."""
    activities = ActivityService(db).get_all(
        actor, album_id, asset_id=asset_id, user_id=user_id, type=type, level=level
    )
    return [ActivityResponse.from_activity(activity) for activity in activities]


@router.get('/statistics', response_model=ActivityStatisticsResponse)
def get_activity_statistics(
    album_id: UUID = Query(...),
    asset_id: Optional[UUID] = Query(None),
    actor: Actor = Depends(get_user_actor),
    db: Session = Depends(get_db)
):
    """Comment count for an album or one of its assets."""
    return ActivityStatisticsResponse(
        comments=ActivityService(db).get_statistics(actor, album_id, asset_id)
    )


@router.post('', response_model=ActivityCreateResponse, status_code=status.HTTP_201_CREATED)
def create_activity(
    payload: ActivityCreate,
    response: Response,
    actor: Actor = Depends(get_user_actor),
    db: Session = Depends(get_db)
):
    """Like or comment. Repeating a like returns the existing one with status 200."""
    result = ActivityService(db).create(
        actor,
        payload.album_id,
        payload.type,
        asset_id=payload.asset_id,
        comment=payload.comment,
    )
    if result.duplicate:
        response.status_code = status.HTTP_200_OK
    return ActivityCreateResponse(
        **ActivityResponse.from_activity(result.activity).model_dump(),
        duplicate=result.duplicate,
    )


@router.delete('/{activity_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_activity(
    activity_id: UUID,
    actor: Actor = Depends(get_user_actor),
    db: Session = Depends(get_db)
):
    ActivityService(db).delete(actor, activity_id)
