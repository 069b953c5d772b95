"""Opaque positions in ordered asset streams.

Both tokens are a ``(timestamp, id)`` pair. ``SyncCheckpoint`` orders by
``updated_at`` (delta sync), ``PageCursor`` by ``created_at`` (full sync
pagination). On the wire they are url-safe base64 JSON.
"""
import base64
import binascii
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Tuple, Type, TypeVar
from uuid import UUID

from mediavault.core.errors import ValidationError

NIL_UUID = UUID(int=0)

T = TypeVar("T", bound="_Position")


@dataclass(frozen=True, order=True)
class _Position:
    timestamp: datetime
    id: UUID

    def as_tuple(self) -> Tuple[datetime, UUID]:
        return self.timestamp, self.id

    def encode(self) -> str:
        payload = json.dumps({"t": self.timestamp.isoformat(), "id": str(self.id)}, separators=(",", ":"))
        return base64.urlsafe_b64encode(payload.encode()).decode().rstrip("=")

    @classmethod
    def decode(cls: Type[T], token: str) -> T:
        if not token:
            raise ValidationError(f"Empty {cls.__name__}")
        try:
            padded = token + "=" * (-len(token) % 4)
            payload = json.loads(base64.urlsafe_b64decode(padded.encode()))
            timestamp = datetime.fromisoformat(payload["t"])
            return cls(timestamp.replace(tzinfo=None), UUID(payload["id"]))
        except (binascii.Error, UnicodeDecodeError, ValueError, KeyError, TypeError):
            raise ValidationError(f"Malformed {cls.__name__}: {token}")


class SyncCheckpoint(_Position):
    """Everything up to and including this ``(updated_at, id)`` was observed."""


class PageCursor(_Position):
    """Last ``(created_at, id)`` returned by a full-sync page."""
