"""Byte storage contract."""
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO
from uuid import UUID


@dataclass(frozen=True)
class StoredObject:
    """Result of storing a stream: where it went and what it hashed to."""
    locator: str
    checksum: str
    size: int


class StorageBackend(ABC):
    """Opaque byte store. Hashing happens while bytes are written."""

    def generate_key(self, owner_id: UUID, filename: str, prefix: str = "originals") -> str:
        """
        Generate a unique object key.

        Returns:
            Key path: library/{owner_id}/{prefix}/{random_token}.{ext}
        """
        file_ext = filename.rsplit('.', 1)[-1].lower() if '.' in filename else 'bin'
        token = secrets.token_urlsafe(16)
        return f"library/{owner_id}/{prefix}/{token}.{file_ext}"

    @abstractmethod
    def store(self, stream: BinaryIO, key: str) -> StoredObject:
        """Consume ``stream`` into ``key`` while computing its checksum."""

    @abstractmethod
    def read(self, locator: str) -> BinaryIO:
        """Open a stored object for streaming reads."""

    @abstractmethod
    def delete(self, locator: str) -> None:
        """Remove a stored object; missing objects are ignored."""

    @abstractmethod
    def exists(self, locator: str) -> bool:
        """Whether an object is stored under ``locator``."""
