"""Filesystem byte storage."""
import logging
import os
from pathlib import Path
from typing import BinaryIO

from mediavault.core.checksum import DEFAULT_CHUNK_SIZE, iter_chunks, new_hasher
from mediavault.core.errors import StorageError
from .base import StorageBackend, StoredObject

logger = logging.getLogger(__name__)


class LocalStorage(StorageBackend):
    """Stores objects as files below a root directory."""

    def __init__(self, root: str, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.root = Path(root)
        self.chunk_size = chunk_size
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, locator: str) -> Path:
        path = (self.root / locator).resolve()
        if self.root.resolve() not in path.parents:
            raise StorageError(f"Locator escapes storage root: {locator}")
        return path

    def store(self, stream: BinaryIO, key: str) -> StoredObject:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        partial = path.with_name(path.name + ".partial")

        hasher = new_hasher()
        size = 0
        try:
            with open(partial, "wb") as out:
                for chunk in iter_chunks(stream, self.chunk_size):
                    hasher.update(chunk)
                    out.write(chunk)
                    size += len(chunk)
            os.replace(partial, path)
        except OSError as e:
            partial.unlink(missing_ok=True)
            logger.error(f"Failed to store {key}: {e}")
            raise StorageError(f"Failed to store object: {str(e)}")

        logger.debug(f"Stored {size} bytes at: {key}")
        return StoredObject(locator=key, checksum=hasher.hexdigest(), size=size)

    def read(self, locator: str) -> BinaryIO:
        try:
            return open(self._path(locator), "rb")
        except OSError as e:
            logger.error(f"Failed to open {locator}: {e}")
            raise StorageError(f"Failed to read object: {str(e)}")

    def delete(self, locator: str) -> None:
        try:
            self._path(locator).unlink(missing_ok=True)
            logger.debug(f"Deleted object: {locator}")
        except OSError as e:
            logger.error(f"Failed to delete {locator}: {e}")
            raise StorageError(f"Failed to delete object: {str(e)}")

    def exists(self, locator: str) -> bool:
        return self._path(locator).is_file()
