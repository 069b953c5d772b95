"""Domain errors raised by the core services.

The HTTP layer maps each of these onto a status code in
``mediavault.app.exceptions``; services never raise ``HTTPException``.
"""
from typing import Optional
from uuid import UUID


class MediaVaultError(Exception):
    """Base class for domain errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AccessDeniedError(MediaVaultError):
    """Actor lacks the permission for a resource."""

    status_code = 403

    def __init__(self, permission, resource_id: Optional[UUID] = None):
        self.permission = getattr(permission, "value", permission)
        self.resource_id = resource_id
        detail = f"No {self.permission} access"
        if resource_id is not None:
            detail = f"{detail}: {resource_id}"
        super().__init__(detail)


class NotFoundError(MediaVaultError):
    """Resource does not exist or is soft-deleted."""

    status_code = 404

    def __init__(self, resource: str, resource_id: Optional[UUID] = None):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class ChecksumConflictError(MediaVaultError):
    """Concurrent insert lost the (owner, checksum) race. Never leaves the core."""

    status_code = 409

    def __init__(self, owner_id: UUID, checksum: str):
        self.owner_id = owner_id
        self.checksum = checksum
        super().__init__(f"Asset with checksum {checksum} already exists")


class StaleCheckpointError(MediaVaultError):
    """Checkpoint predates the tombstone retention window."""

    status_code = 409

    def __init__(self, reason: str = "Checkpoint is older than the retention window"):
        super().__init__(reason)


class ValidationError(MediaVaultError, ValueError):
    """Malformed input that reached the core."""

    status_code = 400


class StorageError(MediaVaultError):
    """Byte storage failed to store, read or delete an object."""

    status_code = 500
