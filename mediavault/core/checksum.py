"""Content checksums used as the deduplication key."""
import base64
import binascii
import hashlib
import re
from typing import BinaryIO, Iterator, Optional

from mediavault.core.errors import ValidationError

CHECKSUM_ALGORITHM = "sha1"
CHECKSUM_HEX_LENGTH = 40
DEFAULT_CHUNK_SIZE = 64 * 1024

_HEX_RE = re.compile(r"^[0-9a-fA-F]{40}$")


def new_hasher():
    return hashlib.new(CHECKSUM_ALGORITHM)


def normalize_checksum(value: Optional[str]) -> str:
    """
    Normalize a client-supplied checksum to lowercase hex.

    Clients send either hex (40 chars) or standard base64 (28 chars) of the
    raw SHA-1 digest.

    Raises:
        ValidationError: if the value is empty or not a SHA-1 digest
    """
    if value is None or not value.strip():
        raise ValidationError("Checksum must not be empty")

    value = value.strip()
    if _HEX_RE.match(value):
        return value.lower()

    try:
        raw = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError(f"Invalid checksum: {value}")

    if len(raw) != hashlib.new(CHECKSUM_ALGORITHM).digest_size:
        raise ValidationError(f"Invalid checksum length: {value}")
    return raw.hex()


def iter_chunks(stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
    """Yield fixed-size chunks until the stream is exhausted."""
    for chunk in iter(lambda: stream.read(chunk_size), b""):
        yield chunk


class HashingReader:
    """
    File-like wrapper that hashes bytes as they are read.

    Lets storage backends consume an upload stream once while the digest is
    computed on the way through.
    """

    def __init__(self, stream: BinaryIO):
        self._stream = stream
        self._hasher = new_hasher()
        self.size = 0

    def read(self, size: int = -1) -> bytes:
        chunk = self._stream.read(size)
        if chunk:
            self._hasher.update(chunk)
            self.size += len(chunk)
        return chunk

    def hexdigest(self) -> str:
        return self._hasher.hexdigest()


def checksum_bytes(data: bytes) -> str:
    hasher = new_hasher()
    hasher.update(data)
    return hasher.hexdigest()
