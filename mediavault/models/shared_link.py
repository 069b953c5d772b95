"""Shared link model."""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Table, Text, Uuid
from sqlalchemy.orm import relationship
import uuid
import secrets

from mediavault.db.base import Base
from .base import TimestampMixin


shared_link_assets = Table(
    'shared_link_assets',
    Base.metadata,
    Column('shared_link_id', Uuid, ForeignKey('shared_links.id', ondelete='CASCADE'), primary_key=True),
    Column('asset_id', Uuid, ForeignKey('assets.id', ondelete='CASCADE'), primary_key=True, index=True),
)


class SharedLink(Base, TimestampMixin):
    """Capability token scoped to one album or an explicit asset list."""

    __tablename__ = 'shared_links'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    key = Column(String(64), unique=True, nullable=False, index=True, default=lambda: secrets.token_urlsafe(32))
    owner_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    album_id = Column(Uuid, ForeignKey('albums.id', ondelete='CASCADE'), nullable=True, index=True)

    description = Column(Text, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    allow_upload = Column(Boolean, default=False, nullable=False)
    allow_download = Column(Boolean, default=True, nullable=False)

    # Relationships
    owner = relationship('User')
    album = relationship('Album')
    assets = relationship('Asset', secondary=shared_link_assets)

    def __repr__(self) -> str:
        return f'<SharedLink(id={self.id}, album_id={self.album_id})>'
