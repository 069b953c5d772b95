"""Byte storage backends."""
from functools import lru_cache

from mediavault.app.config import settings
from .base import StorageBackend, StoredObject


@lru_cache
def get_storage() -> StorageBackend:
    """Storage backend selected by ``STORAGE_BACKEND``."""
    if settings.STORAGE_BACKEND == "s3":
        from .s3 import S3Storage
        return S3Storage(
            bucket_name=settings.S3_BUCKET_NAME,
            region=settings.S3_REGION,
            access_key_id=settings.AWS_ACCESS_KEY_ID,
            secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            endpoint_url=settings.S3_ENDPOINT_URL,
        )

    from .local import LocalStorage
    return LocalStorage(settings.STORAGE_ROOT, chunk_size=settings.UPLOAD_CHUNK_SIZE)


__all__ = ["StorageBackend", "StoredObject", "get_storage"]
