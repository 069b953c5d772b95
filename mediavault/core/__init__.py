"""
Core package initializer.

This package provides the access oracle, sync checkpoints, checksum
helpers, domain errors and authentication helpers.
"""

from .security import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)

__all__ = [
    # Security
    "create_access_token",
    "decode_token",
    "hash_password",
    "verify_password",
]
