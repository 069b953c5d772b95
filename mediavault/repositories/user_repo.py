"""User repository."""
from typing import Optional

from sqlalchemy.orm import Session

from mediavault.models.user import User
from mediavault.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for user lookups."""

    def __init__(self, db: Session):
        super().__init__(User, db)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(
            User.email == email.lower(),
            User.deleted_at.is_(None)
        ).first()
