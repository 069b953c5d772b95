"""Asset model."""
from sqlalchemy import (
    Column, String, BigInteger, Boolean, DateTime, ForeignKey, Index, Uuid,
    Enum as SQLEnum, text,
)
from sqlalchemy.orm import relationship
import uuid

from mediavault.db.base import Base
from .base import TimestampMixin, SoftDeleteMixin
from .enums import AssetType


class Asset(Base, TimestampMixin, SoftDeleteMixin):
    """Uploaded photo or video, unique per (owner, checksum) while not deleted."""

    __tablename__ = 'assets'
    __table_args__ = (
        Index(
            'uq_assets_owner_checksum',
            'owner_id',
            'checksum',
            unique=True,
            postgresql_where=text('deleted_at IS NULL'),
            sqlite_where=text('deleted_at IS NULL'),
        ),
        Index('ix_assets_owner_updated', 'owner_id', 'updated_at', 'id'),
        Index('ix_assets_owner_device', 'owner_id', 'device_id', 'device_asset_id'),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    owner_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)

    # Content identity
    checksum = Column(String(40), nullable=False, index=True)  # SHA-1 hex
    type = Column(SQLEnum(AssetType), default=AssetType.image, nullable=False)
    live_photo_pair_id = Column(Uuid, ForeignKey('assets.id', ondelete='SET NULL'), nullable=True)

    # Client identifiers
    device_id = Column(String(255), nullable=True)
    device_asset_id = Column(String(255), nullable=True)

    # File metadata
    original_filename = Column(String(255), nullable=False)
    content_type = Column(String(100), nullable=False, default='application/octet-stream')
    file_size = Column(BigInteger, nullable=False, default=0)
    file_created_at = Column(DateTime, nullable=True)
    file_modified_at = Column(DateTime, nullable=True)
    duration = Column(String(32), nullable=True)

    # Flags
    is_favorite = Column(Boolean, default=False, nullable=False)
    is_archived = Column(Boolean, default=False, nullable=False)

    # Byte storage locators
    storage_locator = Column(String(512), nullable=False)
    thumbnail_locator = Column(String(512), nullable=True)
    sidecar_locator = Column(String(512), nullable=True)

    # Relationships
    owner = relationship('User', back_populates='assets', foreign_keys=[owner_id])
    live_photo_pair = relationship('Asset', remote_side=[id], foreign_keys=[live_photo_pair_id])
    albums = relationship('Album', secondary='album_assets', back_populates='assets')

    def __repr__(self) -> str:
        return f'<Asset(id={self.id}, owner_id={self.owner_id}, checksum={self.checksum})>'
