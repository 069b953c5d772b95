"""User model."""
from sqlalchemy import Column, String, Boolean, Uuid
from sqlalchemy.orm import relationship
import uuid

from mediavault.db.base import Base
from .base import TimestampMixin, SoftDeleteMixin


class User(Base, TimestampMixin, SoftDeleteMixin):
    """Library owner and album member."""

    __tablename__ = 'users'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    assets = relationship('Asset', back_populates='owner', foreign_keys='Asset.owner_id')
    albums = relationship('Album', back_populates='owner', foreign_keys='Album.owner_id')

    def __repr__(self) -> str:
        return f'<User(id={self.id}, email={self.email})>'
