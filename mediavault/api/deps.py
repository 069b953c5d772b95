"""Dependencies for API endpoints."""
from fastapi import Depends, Header, HTTPException, Query, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from mediavault.db.base import get_db
from mediavault.models.user import User
from mediavault.core.access import Actor
from mediavault.core.errors import AccessDeniedError
from mediavault.core.security import decode_token
from mediavault.services.shared_link_service import SharedLinkService
from mediavault.services.storage import StorageBackend, get_storage

security = HTTPBearer(auto_error=False)


def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _user_from_token(token: str, db: Session) -> User:
    payload = decode_token(token)
    if payload is None or payload.get("type") != "access":
        raise _credentials_exception()

    user_id = payload.get("sub")
    if user_id is None:
        raise _credentials_exception()

    user = db.query(User).filter(User.id == _parse_uuid(user_id), User.deleted_at.is_(None)).first()
    if user is None:
        raise _credentials_exception()

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )
    return user


def _parse_uuid(value: str):
    try:
        return UUID(str(value))
    except ValueError:
        raise _credentials_exception()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from JWT token."""
    if credentials is None:
        raise _credentials_exception("Not authenticated")
    return _user_from_token(credentials.credentials, db)


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    key: Optional[str] = Query(None, description="Shared link key"),
    x_share_key: Optional[str] = Header(None),
    db: Session = Depends(get_db)
) -> Actor:
    """
    Resolve the request's actor.

    A bearer token yields a user actor; otherwise a shared link key passed
    as ``?key=`` or ``x-share-key`` yields an actor confined to that link.
    """
    if credentials is not None:
        user = _user_from_token(credentials.credentials, db)
        return Actor(user_id=user.id)

    share_key = key or x_share_key
    if share_key:
        try:
            return SharedLinkService(db).resolve_actor(share_key)
        except AccessDeniedError:
            raise _credentials_exception("Invalid or expired shared link")

    raise _credentials_exception("Not authenticated")


async def get_user_actor(current_user: User = Depends(get_current_user)) -> Actor:
    """Actor for endpoints that require a signed-in user, never a shared link."""
    return Actor(user_id=current_user.id)


def get_storage_backend() -> StorageBackend:
    return get_storage()
