"""Application configuration using Pydantic Settings."""
from functools import lru_cache
from typing import Optional
from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings (environment variables override the defaults)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "MediaVault"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_V1_PREFIX: str = "/api/v1"

    # Database
    DATABASE_URL: str = "sqlite:///./mediavault.db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # Auth
    JWT_SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Byte storage
    STORAGE_BACKEND: str = Field("local", pattern="^(local|s3)$")
    STORAGE_ROOT: str = "./data/library"
    UPLOAD_CHUNK_SIZE: int = 64 * 1024

    # AWS / S3
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    S3_BUCKET_NAME: str = "mediavault"
    S3_REGION: str = "us-east-1"
    S3_ENDPOINT_URL: Optional[str] = None

    # Sync
    SYNC_TOMBSTONE_RETENTION_DAYS: int = 100
    SYNC_DELTA_MAX_CHANGES: int = 10000
    SYNC_FULL_PAGE_MAX: int = 1000
    # Delta sync only hands out positions at least this old, so a write
    # stamped before a slower commit is not skipped by a concurrent sync.
    SYNC_SETTLE_SECONDS: int = 2

    # Trash
    TRASH_RETENTION_DAYS: int = 30

    # Redis / Celery
    REDIS_HOST: str = "127.0.0.1"
    REDIS_PORT: int = 6379
    CELERY_BROKER_DB: int = 1
    CELERY_RESULT_DB: int = 2

    @computed_field
    @property
    def CELERY_BROKER_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.CELERY_BROKER_DB}"

    @computed_field
    @property
    def CELERY_RESULT_BACKEND(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.CELERY_RESULT_DB}"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
