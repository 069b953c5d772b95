"""Album model and its membership tables."""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Table, Text, Uuid, Enum as SQLEnum
from sqlalchemy.orm import relationship
import uuid

from mediavault.db.base import Base
from .base import TimestampMixin, SoftDeleteMixin, utcnow
from .enums import AlbumRole


album_assets = Table(
    'album_assets',
    Base.metadata,
    Column('album_id', Uuid, ForeignKey('albums.id', ondelete='CASCADE'), primary_key=True),
    Column('asset_id', Uuid, ForeignKey('assets.id', ondelete='CASCADE'), primary_key=True, index=True),
    Column('created_at', DateTime, default=utcnow, nullable=False),
)


class Album(Base, TimestampMixin, SoftDeleteMixin):
    """Album owned by one user and optionally shared with others."""

    __tablename__ = 'albums'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    owner_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_activity_enabled = Column(Boolean, default=True, nullable=False)

    # Relationships
    owner = relationship('User', back_populates='albums', foreign_keys=[owner_id])
    assets = relationship('Asset', secondary=album_assets, back_populates='albums')
    members = relationship('AlbumUser', back_populates='album', cascade='all, delete-orphan')
    activities = relationship('Activity', back_populates='album', cascade='all, delete-orphan')

    def __repr__(self) -> str:
        return f'<Album(id={self.id}, name={self.name})>'


class AlbumUser(Base):
    """Membership grant of a user on an album."""

    __tablename__ = 'album_users'

    album_id = Column(Uuid, ForeignKey('albums.id', ondelete='CASCADE'), primary_key=True)
    user_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), primary_key=True, index=True)
    role = Column(SQLEnum(AlbumRole), default=AlbumRole.viewer, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    album = relationship('Album', back_populates='members')
    user = relationship('User')

    def __repr__(self) -> str:
        return f'<AlbumUser(album_id={self.album_id}, user_id={self.user_id}, role={self.role})>'
