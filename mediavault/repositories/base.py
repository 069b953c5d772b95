"""Base repository with common CRUD operations."""
from typing import TypeVar, Generic, Type, Optional, List, Dict, Any, Iterable
from sqlalchemy.orm import Session
from uuid import UUID

from mediavault.db.base import Base
from mediavault.models.base import utcnow

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with common database operations."""

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    def _live(self, query, include_deleted: bool = False):
        if hasattr(self.model, 'deleted_at') and not include_deleted:
            query = query.filter(self.model.deleted_at.is_(None))
        return query

    def create(self, obj_in: Dict[str, Any], commit: bool = True) -> ModelType:
        """
        Create new record.

        Args:
            obj_in: Dictionary with object data
            commit: Commit immediately; otherwise only flush so the caller
                owns the transaction boundary

        Returns:
            Created model instance
        """
        db_obj = self.model(**obj_in)
        self.db.add(db_obj)
        if commit:
            self.db.commit()
            self.db.refresh(db_obj)
        else:
            self.db.flush()
        return db_obj

    def get(self, id: UUID, include_deleted: bool = False) -> Optional[ModelType]:
        """
        Get record by ID.

        Args:
            id: Record UUID
            include_deleted: Whether to include soft-deleted records

        Returns:
            Model instance or None if not found
        """
        query = self.db.query(self.model).filter(self.model.id == id)
        return self._live(query, include_deleted).first()

    def get_many(self, ids: Iterable[UUID], include_deleted: bool = False) -> List[ModelType]:
        """Get all records whose id is in ``ids``."""
        ids = list(ids)
        if not ids:
            return []
        query = self.db.query(self.model).filter(self.model.id.in_(ids))
        return self._live(query, include_deleted).all()

    def update(self, id: UUID, obj_in: Dict[str, Any]) -> Optional[ModelType]:
        """
        Update record.

        Args:
            id: Record UUID
            obj_in: Dictionary with fields to update

        Returns:
            Updated model instance or None if not found
        """
        db_obj = self.get(id)
        if not db_obj:
            return None

        for field, value in obj_in.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        self.db.commit()
        self.db.refresh(db_obj)
        return db_obj

    def delete(self, id: UUID, soft: bool = True, commit: bool = True) -> bool:
        """
        Delete record (soft or hard).

        Args:
            id: Record UUID
            soft: Whether to soft delete (if model supports it)
            commit: Commit immediately

        Returns:
            True if successful, False if record not found
        """
        db_obj = self.get(id, include_deleted=not soft)
        if not db_obj:
            return False

        if soft and hasattr(self.model, 'deleted_at'):
            now = utcnow()
            db_obj.deleted_at = now
            if hasattr(self.model, 'updated_at'):
                db_obj.updated_at = now
        else:
            self.db.delete(db_obj)

        if commit:
            self.db.commit()
        else:
            self.db.flush()
        return True

    def exists(self, id: UUID, include_deleted: bool = False) -> bool:
        """
        Check if record exists.

        Args:
            id: Record UUID
            include_deleted: Whether to include soft-deleted records

        Returns:
            True if record exists, False otherwise
        """
        query = self._live(self.db.query(self.model.id).filter(self.model.id == id), include_deleted)
        return self.db.query(query.exists()).scalar()

    def commit(self) -> None:
        """Commit current transaction."""
        self.db.commit()

    def rollback(self) -> None:
        """Rollback current transaction."""
        self.db.rollback()

    def flush(self) -> None:
        """Flush changes to database without committing."""
        self.db.flush()
