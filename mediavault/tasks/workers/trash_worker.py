"""
Trash and tombstone cleanup workers.

Soft-deleted assets are hard-deleted (row and bytes) once they have been
in the trash for ``TRASH_RETENTION_DAYS``. Tombstones older than the sync
retention window are dropped; clients holding older checkpoints are sent
back to a full sync.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, Optional
import logging
import traceback

from celery import Task
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mediavault.app.config import settings
from mediavault.db.base import SessionLocal
from mediavault.models.base import utcnow
from mediavault.repositories.asset_audit_repo import AssetAuditRepository
from mediavault.repositories.asset_repo import AssetRepository
from mediavault.services.storage import StorageBackend, get_storage
from mediavault.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)

PURGE_BATCH_SIZE = 500


def purge_trash(
    db: Session,
    storage: StorageBackend,
    now: Optional[datetime] = None,
    retention_days: Optional[int] = None
) -> int:
    """
    Hard-delete assets soft-deleted before the retention cutoff.

    Args:
        db: Database session
        storage: Byte storage holding the asset files
        now: Current time (defaults to now)
        retention_days: Days an asset stays in the trash

    Returns:
        Number of assets purged
    """
    now = now or utcnow()
    if retention_days is None:
        retention_days = settings.TRASH_RETENTION_DAYS
    cutoff = now - timedelta(days=retention_days)
    repo = AssetRepository(db)

    purged = 0
    while True:
        batch = repo.get_deleted_before(cutoff, limit=PURGE_BATCH_SIZE)
        if not batch:
            break
        for asset in batch:
            locators = [asset.storage_locator, asset.thumbnail_locator, asset.sidecar_locator]
            repo.purge(asset)
            db.commit()
            for locator in filter(None, locators):
                try:
                    storage.delete(locator)
                except Exception as e:
                    logger.warning(f"Failed to delete {locator} for purged asset {asset.id}: {e}")
            purged += 1

    logger.info(f"Purged {purged} trashed assets older than {cutoff.isoformat()}")
    return purged


def purge_tombstones(db: Session, now: Optional[datetime] = None, retention_days: Optional[int] = None) -> int:
    """Drop tombstones older than the sync retention window."""
    now = now or utcnow()
    if retention_days is None:
        retention_days = settings.SYNC_TOMBSTONE_RETENTION_DAYS
    cutoff = now - timedelta(days=retention_days)
    count = AssetAuditRepository(db).purge_before(cutoff)
    logger.info(f"Purged {count} tombstones older than {cutoff.isoformat()}")
    return count


# =============================================================================
# Base Task Class
# =============================================================================

class MaintenanceTask(Task):
    """Base task for scheduled maintenance."""

    autoretry_for = (SQLAlchemyError,)
    retry_kwargs = {'max_retries': 3}
    retry_backoff = True
    retry_backoff_max = 600
    retry_jitter = True

    def get_db(self) -> Session:
        """Get database session."""
        return SessionLocal()

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        """Handle task failure."""
        logger.error(
            f"Task {task_id} failed: {str(exc)}",
            extra={
                "task_id": task_id,
                "traceback": traceback.format_exc()
            }
        )


# =============================================================================
# Scheduled Tasks
# =============================================================================

@celery_app.task(bind=True, base=MaintenanceTask, name='tasks.purge_trash')
def purge_trash_task(self) -> Dict[str, Any]:
    """Empty the trash of assets past the retention period (runs daily)."""
    db = self.get_db()
    try:
        return {'status': 'completed', 'assets_purged': purge_trash(db, get_storage())}
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@celery_app.task(bind=True, base=MaintenanceTask, name='tasks.purge_tombstones')
def purge_tombstones_task(self) -> Dict[str, Any]:
    """Drop expired sync tombstones (runs daily)."""
    db = self.get_db()
    try:
        return {'status': 'completed', 'tombstones_purged': purge_tombstones(db)}
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
