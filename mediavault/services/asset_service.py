"""
Asset ingestion and read paths.

Uploads go through a checksum gate: an asset whose content already
exists in the owner's library is returned as a duplicate without storing
new bytes or writing a row, which makes client retries safe.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Callable, Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mediavault.core.access import AccessOracle, Actor, Permission
from mediavault.core.checksum import normalize_checksum
from mediavault.core.errors import ChecksumConflictError, NotFoundError, ValidationError
from mediavault.models.asset import Asset
from mediavault.models.base import as_naive_utc, utcnow
from mediavault.models.enums import AssetType
from mediavault.repositories.access_repo import AccessRepository
from mediavault.repositories.album_repo import AlbumRepository
from mediavault.repositories.asset_audit_repo import AssetAuditRepository
from mediavault.repositories.asset_repo import AssetRepository
from mediavault.services.storage import StorageBackend

logger = logging.getLogger(__name__)


@dataclass
class IncomingFile:
    """One uploaded file part."""
    stream: BinaryIO
    filename: str
    content_type: str = "application/octet-stream"
    checksum: Optional[str] = None  # client-declared, hex or base64


@dataclass
class AssetMetadata:
    device_id: Optional[str] = None
    device_asset_id: Optional[str] = None
    file_created_at: Optional[datetime] = None
    file_modified_at: Optional[datetime] = None
    is_favorite: bool = False
    is_archived: bool = False
    duration: Optional[str] = None


@dataclass
class UploadResult:
    asset: Asset
    duplicate: bool


@dataclass
class BulkCheckItem:
    id: str
    checksum: str


@dataclass
class BulkCheckResult:
    id: str
    action: str  # accept | reject
    reason: Optional[str] = None  # duplicate | invalid-checksum
    asset_id: Optional[UUID] = None


def asset_type_for(content_type: Optional[str]) -> AssetType:
    """Classify an upload by MIME type."""
    content_type = (content_type or "").lower()
    if content_type.startswith("image/"):
        return AssetType.image
    if content_type.startswith("video/"):
        return AssetType.video
    return AssetType.other


class AssetService:
    """Dedup gate, bulk existence checks and asset read/delete paths."""

    def __init__(self, db: Session, storage: StorageBackend, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.storage = storage
        self.clock = clock
        self.assets = AssetRepository(db)
        self.albums = AlbumRepository(db)
        self.audits = AssetAuditRepository(db)
        self.access = AccessOracle(AccessRepository(db), clock=clock)

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def upload(
        self,
        actor: Actor,
        file: IncomingFile,
        metadata: Optional[AssetMetadata] = None,
        live_photo: Optional[IncomingFile] = None,
        sidecar: Optional[IncomingFile] = None
    ) -> UploadResult:
        """
        Ingest an asset idempotently.

        Args:
            actor: Uploading actor (user or upload-enabled shared link)
            file: Main asset file
            metadata: Client-side metadata
            live_photo: Optional video half of a live photo
            sidecar: Optional metadata sidecar, stored on new assets only

        Returns:
            UploadResult with ``duplicate=True`` when the content already
            existed in the target library
        """
        metadata = metadata or AssetMetadata()
        owner_id = actor.shared_link.owner_id if actor.is_shared_link else actor.user_id
        self.access.require_permission(actor, Permission.ASSET_UPLOAD, owner_id)

        album_id = actor.shared_link.album_id if actor.is_shared_link else None

        live_pair_id = None
        if live_photo is not None:
            live = self._ingest(owner_id, live_photo, metadata, AssetType.video)
            live_pair_id = live.asset.id

        try:
            result = self._ingest(
                owner_id,
                file,
                metadata,
                asset_type_for(file.content_type),
                live_pair_id=live_pair_id,
                sidecar=sidecar,
                album_id=album_id,
            )
        except Exception:
            if live_photo is not None and not live.duplicate:
                self._remove_orphan(live.asset)
            raise

        if result.duplicate and live_pair_id is not None and result.asset.live_photo_pair_id is None:
            result.asset.live_photo_pair_id = live_pair_id
            result.asset.updated_at = self.clock()
            self.db.commit()
            self.db.refresh(result.asset)

        return result

    def _ingest(
        self,
        owner_id: UUID,
        file: IncomingFile,
        metadata: AssetMetadata,
        asset_type: AssetType,
        live_pair_id: Optional[UUID] = None,
        sidecar: Optional[IncomingFile] = None,
        album_id: Optional[UUID] = None
    ) -> UploadResult:
        declared = normalize_checksum(file.checksum) if file.checksum is not None else None
        if declared is not None:
            existing = self.assets.find_by_checksum(owner_id, declared)
            if existing is not None:
                logger.info(f"Duplicate upload {declared} for {owner_id} -> {existing.id}")
                return self._duplicate(existing, album_id)

        key = self.storage.generate_key(owner_id, file.filename)
        stored = self.storage.store(file.stream, key)
        staged = [stored.locator]
        try:
            if stored.size == 0:
                raise ValidationError("Empty file")
            if declared is not None and declared != stored.checksum:
                raise ValidationError(f"Checksum mismatch: declared {declared}, computed {stored.checksum}")

            existing = self.assets.find_by_checksum(owner_id, stored.checksum)
            if existing is not None:
                self._discard(staged)
                logger.info(f"Duplicate upload {stored.checksum} for {owner_id} -> {existing.id}")
                return self._duplicate(existing, album_id)

            sidecar_locator = None
            if sidecar is not None:
                sidecar_key = self.storage.generate_key(owner_id, sidecar.filename, prefix="sidecars")
                sidecar_locator = self.storage.store(sidecar.stream, sidecar_key).locator
                staged.append(sidecar_locator)

            now = self.clock()
            asset = self._insert({
                'owner_id': owner_id,
                'checksum': stored.checksum,
                'type': asset_type,
                'live_photo_pair_id': live_pair_id,
                'device_id': metadata.device_id,
                'device_asset_id': metadata.device_asset_id,
                'original_filename': file.filename,
                'content_type': file.content_type,
                'file_size': stored.size,
                'file_created_at': as_naive_utc(metadata.file_created_at),
                'file_modified_at': as_naive_utc(metadata.file_modified_at),
                'is_favorite': metadata.is_favorite,
                'is_archived': metadata.is_archived,
                'duration': metadata.duration,
                'storage_locator': stored.locator,
                'sidecar_locator': sidecar_locator,
                'created_at': now,
                'updated_at': now,
            }, album_id=album_id)
        except ChecksumConflictError as conflict:
            self._discard(staged)
            winner = self.assets.find_by_checksum(owner_id, conflict.checksum)
            if winner is None:
                raise
            logger.info(f"Lost upload race for {conflict.checksum}; returning {winner.id}")
            return self._duplicate(winner, album_id)
        except Exception:
            self._discard(staged)
            raise

        logger.info(f"Stored asset {asset.id} ({stored.size} bytes) for {owner_id}")
        return UploadResult(asset, False)

    def _duplicate(self, existing: Asset, album_id: Optional[UUID] = None) -> UploadResult:
        """Resolve a duplicate; a shared-link upload still lands in the link album."""
        if album_id is not None and self.albums.add_assets(album_id, [existing.id]):
            existing.updated_at = self.clock()
            self.db.commit()
            self.db.refresh(existing)
            logger.info(f"Added existing asset {existing.id} to album {album_id}")
        return UploadResult(existing, True)

    def _insert(self, record: Dict, album_id: Optional[UUID] = None) -> Asset:
        """Insert and commit an asset row; a lost uniqueness race becomes ChecksumConflictError."""
        try:
            asset = self.assets.create(record, commit=False)
            if album_id is not None:
                self.albums.add_assets(album_id, [asset.id])
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ChecksumConflictError(record['owner_id'], record['checksum'])

        self.db.refresh(asset)
        return asset

    def _remove_orphan(self, asset: Asset) -> None:
        """Drop a live-photo video whose still image never made it in."""
        self.db.rollback()
        locators = [asset.storage_locator, asset.sidecar_locator]
        self.audits.record([(asset.id, asset.owner_id)], at=self.clock())
        self.assets.purge(asset)
        self.db.commit()
        self._discard(filter(None, locators))
        logger.info(f"Removed live-photo video {asset.id} after its image failed to ingest")

    def _discard(self, locators: Iterable[str]) -> None:
        for locator in locators:
            try:
                self.storage.delete(locator)
            except Exception as e:
                logger.error(f"Failed to discard staged object {locator}: {e}")

    # ------------------------------------------------------------------
    # Existence checks
    # ------------------------------------------------------------------

    def _library_checksums(self, actor: Actor, checksums: Iterable[str]) -> Dict[str, UUID]:
        """Checksum -> asset id, restricted to what the actor may read in its own library."""
        if actor.is_shared_link:
            return {}
        found = self.assets.find_by_checksums(actor.user_id, checksums)
        readable = self.access.filter_visible(actor, Permission.ASSET_READ, found.values())
        return {checksum: asset_id for checksum, asset_id in found.items() if asset_id in readable}

    def check_existing(self, actor: Actor, checksums: Iterable[str]) -> Dict[str, Optional[UUID]]:
        """
        Report which checksums already exist in the actor's own library.

        Args:
            actor: Requesting actor
            checksums: Client checksums (hex or base64)

        Returns:
            Mapping of each given checksum to the existing asset id or None
        """
        normalized = {checksum: normalize_checksum(checksum) for checksum in checksums}
        found = self._library_checksums(actor, normalized.values())
        return {original: found.get(value) for original, value in normalized.items()}

    def bulk_upload_check(self, actor: Actor, items: List[BulkCheckItem]) -> List[BulkCheckResult]:
        """Tell a backup client which of its files it can skip."""
        normalized: Dict[str, Optional[str]] = {}
        for item in items:
            try:
                normalized[item.id] = normalize_checksum(item.checksum)
            except ValidationError:
                normalized[item.id] = None

        found = self._library_checksums(actor, [c for c in normalized.values() if c is not None])

        results = []
        for item in items:
            checksum = normalized[item.id]
            if checksum is None:
                results.append(BulkCheckResult(id=item.id, action="reject", reason="invalid-checksum"))
            elif checksum in found:
                results.append(BulkCheckResult(id=item.id, action="reject", reason="duplicate", asset_id=found[checksum]))
            else:
                results.append(BulkCheckResult(id=item.id, action="accept"))
        return results

    def check_existing_device_assets(self, actor: Actor, device_id: str, device_asset_ids: Iterable[str]) -> List[str]:
        """Client-local ids from ``device_id`` already backed up by the actor."""
        if actor.is_shared_link:
            return []
        return self.assets.find_device_asset_ids(actor.user_id, device_id, device_asset_ids)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _get_live(self, asset_id: UUID) -> Asset:
        asset = self.assets.get(asset_id)
        if asset is None:
            raise NotFoundError("Asset", asset_id)
        return asset

    def get_asset(self, actor: Actor, asset_id: UUID) -> Asset:
        asset = self._get_live(asset_id)
        self.access.require_permission(actor, Permission.ASSET_READ, asset_id)
        return asset

    def get_all_assets(
        self,
        actor: Actor,
        skip: int = 0,
        take: int = 100,
        updated_after: Optional[datetime] = None,
        updated_before: Optional[datetime] = None,
        is_favorite: Optional[bool] = None,
        is_archived: Optional[bool] = None
    ) -> List[Asset]:
        """List the actor's own library."""
        if actor.is_shared_link:
            return []
        assets = self.assets.get_by_owner(
            actor.user_id,
            skip=skip,
            limit=take,
            updated_after=as_naive_utc(updated_after),
            updated_before=as_naive_utc(updated_before),
            is_favorite=is_favorite,
            is_archived=is_archived,
        )
        readable = self.access.filter_visible(actor, Permission.ASSET_READ, [a.id for a in assets])
        return [asset for asset in assets if asset.id in readable]

    def serve_file(self, actor: Actor, asset_id: UUID) -> Tuple[Asset, BinaryIO]:
        """Open the original bytes of an asset."""
        asset = self._get_live(asset_id)
        self.access.require_permission(actor, Permission.ASSET_VIEW, asset_id)
        return asset, self.storage.read(asset.storage_locator)

    def serve_thumbnail(self, actor: Actor, asset_id: UUID) -> Tuple[Asset, BinaryIO]:
        """Open the thumbnail recorded for an asset by the thumbnail pipeline."""
        asset = self._get_live(asset_id)
        self.access.require_permission(actor, Permission.ASSET_VIEW_THUMBNAIL, asset_id)
        if not asset.thumbnail_locator:
            raise NotFoundError("Thumbnail", asset_id)
        return asset, self.storage.read(asset.thumbnail_locator)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def update_asset(
        self,
        actor: Actor,
        asset_id: UUID,
        is_favorite: Optional[bool] = None,
        is_archived: Optional[bool] = None
    ) -> Asset:
        asset = self._get_live(asset_id)
        self.access.require_permission(actor, Permission.ASSET_UPDATE, asset_id)
        return self.assets.set_flags(asset, is_favorite=is_favorite, is_archived=is_archived, now=self.clock())

    def delete_assets(self, actor: Actor, asset_ids: Iterable[UUID]) -> List[UUID]:
        """
        Soft-delete assets and leave tombstones for everyone who could see them.

        Raises:
            NotFoundError: if any id is unknown or already deleted
            AccessDeniedError: if any asset is not deletable by the actor
        """
        asset_ids = list(dict.fromkeys(asset_ids))
        live = {asset.id for asset in self.assets.get_many(asset_ids)}
        for asset_id in asset_ids:
            if asset_id not in live:
                raise NotFoundError("Asset", asset_id)
        self.access.require_permission(actor, Permission.ASSET_DELETE, asset_ids)

        audience = self.albums.audience_by_asset(asset_ids)
        now = self.clock()
        for asset_id in asset_ids:
            asset = self.assets.get(asset_id)
            asset.deleted_at = now
            asset.updated_at = now
        self.audits.record(
            ((asset_id, user_id) for asset_id, users in audience.items() for user_id in users),
            at=now
        )
        self.db.commit()

        logger.info(f"Soft-deleted {len(asset_ids)} assets for {actor.user_id}")
        return asset_ids
