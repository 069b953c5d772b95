"""
API schemas package.

Request/response models for authentication, assets, sync, albums,
activities and shared links.
"""

from .auth import (
    SignupRequest,
    LoginRequest,
    LoginResponse,
    UserResponse,
)

__all__ = [
    "SignupRequest",
    "LoginRequest",
    "LoginResponse",
    "UserResponse",
]
