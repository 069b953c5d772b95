"""Authentication endpoints: email/password signup and login."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from mediavault.api.deps import get_db, get_current_user
from mediavault.core.security import create_access_token, hash_password, verify_password
from mediavault.models.user import User
from mediavault.repositories.user_repo import UserRepository
from mediavault.schemas.auth import LoginRequest, LoginResponse, SignupRequest, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
def signup(
    payload: SignupRequest,
    db: Session = Depends(get_db)
):
    """Create an account and return an access token."""
    user_repo = UserRepository(db)
    if user_repo.get_by_email(payload.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered"
        )

    user = user_repo.create({
        'name': payload.name,
        'email': payload.email.lower(),
        'hashed_password': hash_password(payload.password),
    })
    logger.info(f"New user registered: {user.id}")

    return LoginResponse(
        user=UserResponse.model_validate(user),
        access_token=create_access_token({"sub": str(user.id)}),
    )


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db)
):
    """Exchange email and password for an access token."""
    user = UserRepository(db).get_by_email(payload.email)
    if user is None or not verify_password(payload.password, user.hashed_password):
        logger.info(f"Failed login for {payload.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    return LoginResponse(
        user=UserResponse.model_validate(user),
        access_token=create_access_token({"sub": str(user.id)}),
    )


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user
