"""
Client sync: full snapshots and checkpoint-based deltas.

A client runs one full sync, keeps the checkpoint from its first page and
afterwards only asks for deltas. Replaying deltas from that checkpoint
yields the same set of assets a fresh full sync would.

Positions are stamped by the application before commit, so a write can
become visible after a later-stamped one. Checkpoints therefore trail the
clock by ``SYNC_SETTLE_SECONDS``; that window must exceed the longest
write transaction.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Set
from uuid import UUID

from sqlalchemy.orm import Session

from mediavault.app.config import settings
from mediavault.core.access import AccessOracle, Actor, Permission
from mediavault.core.checkpoint import NIL_UUID, PageCursor, SyncCheckpoint
from mediavault.core.errors import AccessDeniedError, StaleCheckpointError, ValidationError
from mediavault.models.asset import Asset
from mediavault.models.base import as_naive_utc, utcnow
from mediavault.repositories.access_repo import AccessRepository
from mediavault.repositories.asset_audit_repo import AssetAuditRepository
from mediavault.repositories.asset_repo import AssetRepository

logger = logging.getLogger(__name__)


@dataclass
class FullSyncPage:
    assets: List[Asset]
    next_cursor: Optional[PageCursor]
    checkpoint: SyncCheckpoint


@dataclass
class DeltaSyncResult:
    upserted: List[Asset]
    deleted_ids: List[UUID]
    checkpoint: SyncCheckpoint


class SyncService:
    """Computes full and delta sync responses for an actor."""

    def __init__(
        self,
        db: Session,
        clock: Callable[[], datetime] = utcnow,
        retention_days: Optional[int] = None,
        max_changes: Optional[int] = None,
        page_max: Optional[int] = None,
        settle_seconds: Optional[int] = None
    ):
        self.db = db
        self.clock = clock
        self.retention_days = retention_days if retention_days is not None else settings.SYNC_TOMBSTONE_RETENTION_DAYS
        self.max_changes = max_changes if max_changes is not None else settings.SYNC_DELTA_MAX_CHANGES
        self.page_max = page_max if page_max is not None else settings.SYNC_FULL_PAGE_MAX
        self.settle = timedelta(
            seconds=settle_seconds if settle_seconds is not None else settings.SYNC_SETTLE_SECONDS
        )
        self.assets = AssetRepository(db)
        self.audits = AssetAuditRepository(db)
        self.access = AccessOracle(AccessRepository(db), clock=clock)

    def visible_asset_ids(self, actor: Actor) -> Set[UUID]:
        """Ids of every live asset the actor may read right now."""
        if actor.is_shared_link:
            candidates = self.assets.candidate_ids_for_link(actor.shared_link.id, actor.shared_link.album_id)
        else:
            candidates = self.assets.candidate_ids_for_user(actor.user_id)
        return self.access.filter_visible(actor, Permission.ASSET_READ, candidates)

    def full_sync(
        self,
        actor: Actor,
        cursor: Optional[PageCursor] = None,
        limit: Optional[int] = None,
        updated_until: Optional[datetime] = None
    ) -> FullSyncPage:
        """
        One page of the actor's visible assets ordered by ``(created_at, id)``.

        Args:
            actor: Requesting actor
            cursor: Position returned by the previous page, None for the first
            limit: Page size, capped at ``SYNC_FULL_PAGE_MAX``
            updated_until: Only include assets last updated at or before this time

        Returns:
            FullSyncPage; ``next_cursor`` is None on the last page
        """
        updated_until = as_naive_utc(updated_until)
        if limit is None:
            limit = self.page_max
        if limit < 1:
            raise ValidationError("limit must be positive")
        limit = min(limit, self.page_max)

        checkpoint = SyncCheckpoint(self.clock() - self.settle, NIL_UUID)
        visible = self.visible_asset_ids(actor)

        # Fetch one extra row to know whether another page exists.
        rows = self.assets.range_by_created_at(
            visible,
            after=cursor.as_tuple() if cursor is not None else None,
            limit=limit + 1,
            updated_until=updated_until,
        )
        page = rows[:limit]
        next_cursor = None
        if len(rows) > limit:
            last = page[-1]
            next_cursor = PageCursor(last.created_at, last.id)

        return FullSyncPage(assets=page, next_cursor=next_cursor, checkpoint=checkpoint)

    def delta_sync(self, actor: Actor, checkpoint: SyncCheckpoint) -> DeltaSyncResult:
        """
        Changes visible to the actor since ``checkpoint``.

        Raises:
            StaleCheckpointError: if the checkpoint is older than the tombstone
                retention window, or the change set exceeds ``SYNC_DELTA_MAX_CHANGES``
            AccessDeniedError: for shared-link actors, which have no tombstones
        """
        if actor.is_shared_link:
            raise AccessDeniedError(Permission.ASSET_READ)

        now = self.clock()
        if checkpoint.timestamp < now - timedelta(days=self.retention_days):
            logger.info(f"Stale checkpoint {checkpoint.timestamp.isoformat()} for {actor.user_id}")
            raise StaleCheckpointError()

        visible = self.visible_asset_ids(actor)
        after = checkpoint.as_tuple()
        horizon = now - self.settle
        upserted = self.assets.range_by_updated_at(visible, after=after, until=horizon, limit=self.max_changes + 1)
        tombstones = self.audits.since(actor.user_id, after, until=horizon, limit=self.max_changes + 1)

        if len(upserted) + len(tombstones) > self.max_changes:
            logger.info(f"Delta for {actor.user_id} exceeds {self.max_changes} changes; forcing full sync")
            raise StaleCheckpointError("Too many changes since checkpoint")

        deleted_ids: List[UUID] = []
        seen: Set[UUID] = set()
        for asset_id, _ in tombstones:
            if asset_id in visible or asset_id in seen:
                continue
            seen.add(asset_id)
            deleted_ids.append(asset_id)

        positions = [(asset.updated_at, asset.id) for asset in upserted]
        positions.extend((deleted_at, asset_id) for asset_id, deleted_at in tombstones)
        new_checkpoint = SyncCheckpoint(*max(positions)) if positions else checkpoint

        logger.debug(
            f"Delta for {actor.user_id}: {len(upserted)} upserted, {len(deleted_ids)} deleted"
        )
        return DeltaSyncResult(upserted=upserted, deleted_ids=deleted_ids, checkpoint=new_checkpoint)
