"""Activity (like/comment) model."""
from sqlalchemy import Column, Boolean, ForeignKey, Index, Text, Uuid, text
from sqlalchemy.orm import relationship
import uuid

from mediavault.db.base import Base
from .base import TimestampMixin


class Activity(Base, TimestampMixin):
    """Reaction on an album, or on an asset inside an album."""

    __tablename__ = 'activities'
    __table_args__ = (
        Index('ix_activities_album_asset_user', 'album_id', 'asset_id', 'user_id'),
        # At most one like per user and target; album-level likes have no asset.
        Index(
            'uq_activities_asset_like',
            'user_id',
            'album_id',
            'asset_id',
            unique=True,
            postgresql_where=text('is_liked AND asset_id IS NOT NULL'),
            sqlite_where=text('is_liked AND asset_id IS NOT NULL'),
        ),
        Index(
            'uq_activities_album_like',
            'user_id',
            'album_id',
            unique=True,
            postgresql_where=text('is_liked AND asset_id IS NULL'),
            sqlite_where=text('is_liked AND asset_id IS NULL'),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    album_id = Column(Uuid, ForeignKey('albums.id', ondelete='CASCADE'), nullable=False)
    asset_id = Column(Uuid, ForeignKey('assets.id', ondelete='CASCADE'), nullable=True)

    is_liked = Column(Boolean, default=False, nullable=False)
    comment = Column(Text, nullable=True)

    # Relationships
    user = relationship('User')
    album = relationship('Album', back_populates='activities')
    asset = relationship('Asset')

    def __repr__(self) -> str:
        return f'<Activity(id={self.id}, album_id={self.album_id}, is_liked={self.is_liked})>'
