"""Asset API endpoints: upload, existence checks, reads and deletion."""
from fastapi import APIRouter, Depends, File, Form, Header, Query, Response, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from datetime import datetime
from typing import BinaryIO, Iterator, List, Optional
from uuid import UUID

from mediavault.api.deps import get_current_actor, get_db, get_storage_backend, get_user_actor
from mediavault.core.access import Actor
from mediavault.core.checksum import iter_chunks
from mediavault.schemas.asset import (
    AssetBulkDeleteRequest,
    AssetBulkDeleteResponse,
    AssetResponse,
    AssetUpdate,
    AssetUploadResponse,
    BulkUploadCheckRequest,
    BulkUploadCheckResponse,
    BulkUploadCheckResult,
    ChecksumExistRequest,
    ChecksumExistResponse,
    DeviceAssetExistRequest,
    DeviceAssetExistResponse,
)
from mediavault.services.asset_service import (
    AssetMetadata,
    AssetService,
    BulkCheckItem,
    IncomingFile,
)
from mediavault.services.storage import StorageBackend


router = APIRouter()


def _incoming(upload: Optional[UploadFile], checksum: Optional[str] = None) -> Optional[IncomingFile]:
    if upload is None:
        return None
    return IncomingFile(
        stream=upload.file,
        filename=upload.filename or "upload.bin",
        content_type=upload.content_type or "application/octet-stream",
        checksum=checksum,
    )


def _stream(file: BinaryIO) -> Iterator[bytes]:
    try:
        yield from iter_chunks(file)
    finally:
        file.close()


@router.post('/upload', response_model=AssetUploadResponse, status_code=status.HTTP_201_CREATED)
def upload_asset(
    response: Response,
    asset_data: UploadFile = File(..., description='Asset file'),
    live_photo_data: Optional[UploadFile] = File(None, description='Video part of a live photo'),
    sidecar_data: Optional[UploadFile] = File(None, description='Metadata sidecar'),
    device_id: Optional[str] = Form(None),
    device_asset_id: Optional[str] = Form(None),
    file_created_at: Optional[datetime] = Form(None),
    file_modified_at: Optional[datetime] = Form(None),
    is_favorite: bool = Form(False),
    is_archived: bool = Form(False),
    duration: Optional[str] = Form(None),
    x_asset_checksum: Optional[str] = Header(None, description='SHA-1 of the asset, hex or base64'),
    actor: Actor = Depends(get_current_actor),
    storage: StorageBackend = Depends(get_storage_backend),
    db: Session = Depends(get_db)
):
    """
    Upload an asset.

    Uploading content that already exists in the target library returns
    the existing asset id with ``duplicate: true`` and status 200; nothing
    new is stored.
    """
    metadata = AssetMetadata(
        device_id=device_id,
        device_asset_id=device_asset_id,
        file_created_at=file_created_at,
        file_modified_at=file_modified_at,
        is_favorite=is_favorite,
        is_archived=is_archived,
        duration=duration,
    )
    result = AssetService(db, storage).upload(
        actor,
        _incoming(asset_data, x_asset_checksum),
        metadata,
        live_photo=_incoming(live_photo_data),
        sidecar=_incoming(sidecar_data),
    )
    if result.duplicate:
        response.status_code = status.HTTP_200_OK
    return AssetUploadResponse(id=result.asset.id, duplicate=result.duplicate)


@router.get('', response_model=List[AssetResponse])
def get_all_assets(
    skip: int = Query(0, ge=0),
    take: int = Query(100, ge=1, le=1000),
    updated_after: Optional[datetime] = Query(None),
    updated_before: Optional[datetime] = Query(None),
    is_favorite: Optional[bool] = Query(None),
    is_archived: Optional[bool] = Query(None),
    actor: Actor = Depends(get_current_actor),
    storage: StorageBackend = Depends(get_storage_backend),
    db: Session = Depends(get_db)
):
    """List assets in the caller's own library, newest first."""
    assets = AssetService(db, storage).get_all_assets(
        actor,
        skip=skip,
        take=take,
        updated_after=updated_after,
        updated_before=updated_before,
        is_favorite=is_favorite,
        is_archived=is_archived,
    )
    return [AssetResponse.from_asset(asset) for asset in assets]


@router.post('/exist', response_model=DeviceAssetExistResponse)
def check_existing_device_assets(
    payload: DeviceAssetExistRequest,
    actor: Actor = Depends(get_user_actor),
    storage: StorageBackend = Depends(get_storage_backend),
    db: Session = Depends(get_db)
):
    """Which of a device's local asset ids are already backed up."""
    existing = AssetService(db, storage).check_existing_device_assets(
        actor, payload.device_id, payload.device_asset_ids
    )
    return DeviceAssetExistResponse(existing_ids=existing)


@router.post('/checksum-exist', response_model=ChecksumExistResponse)
def check_existing_checksums(
    payload: ChecksumExistRequest,
    actor: Actor = Depends(get_user_actor),
    storage: StorageBackend = Depends(get_storage_backend),
    db: Session = Depends(get_db)
):
    """Map each checksum to the existing asset id in the caller's library, or null."""
    return ChecksumExistResponse(existing=AssetService(db, storage).check_existing(actor, payload.checksums))


@router.post('/bulk-upload-check', response_model=BulkUploadCheckResponse)
def bulk_upload_check(
    payload: BulkUploadCheckRequest,
    actor: Actor = Depends(get_user_actor),
    storage: StorageBackend = Depends(get_storage_backend),
    db: Session = Depends(get_db)
):
    """Tell a backup client which files to upload and which to skip."""
    items = [BulkCheckItem(id=item.id, checksum=item.checksum) for item in payload.assets]
    results = AssetService(db, storage).bulk_upload_check(actor, items)
    return BulkUploadCheckResponse(results=[
        BulkUploadCheckResult(id=r.id, action=r.action, reason=r.reason, asset_id=r.asset_id)
        for r in results
    ])


@router.delete('', response_model=AssetBulkDeleteResponse)
def delete_assets(
    payload: AssetBulkDeleteRequest,
    actor: Actor = Depends(get_user_actor),
    storage: StorageBackend = Depends(get_storage_backend),
    db: Session = Depends(get_db)
):
    """Move assets to the trash. Bytes are purged after the retention period."""
    deleted = AssetService(db, storage).delete_assets(actor, payload.ids)
    return AssetBulkDeleteResponse(deleted=deleted)


@router.get('/file/{asset_id}')
def serve_file(
    asset_id: UUID,
    actor: Actor = Depends(get_current_actor),
    storage: StorageBackend = Depends(get_storage_backend),
    db: Session = Depends(get_db)
):
    """Stream the original file."""
    asset, file = AssetService(db, storage).serve_file(actor, asset_id)
    return StreamingResponse(
        _stream(file),
        media_type=asset.content_type,
        headers={'Content-Disposition': f'inline; filename="{asset.original_filename}"'},
    )


@router.get('/thumbnail/{asset_id}')
def serve_thumbnail(
    asset_id: UUID,
    actor: Actor = Depends(get_current_actor),
    storage: StorageBackend = Depends(get_storage_backend),
    db: Session = Depends(get_db)
):
    """Stream the asset thumbnail."""
    _, file = AssetService(db, storage).serve_thumbnail(actor, asset_id)
    return StreamingResponse(_stream(file), media_type='image/jpeg')


@router.get('/{asset_id}', response_model=AssetResponse)
def get_asset(
    asset_id: UUID,
    actor: Actor = Depends(get_current_actor),
    storage: StorageBackend = Depends(get_storage_backend),
    db: Session = Depends(get_db)
):
    """Get asset metadata."""
    return AssetResponse.from_asset(AssetService(db, storage).get_asset(actor, asset_id))


@router.patch('/{asset_id}', response_model=AssetResponse)
def update_asset(
    asset_id: UUID,
    payload: AssetUpdate,
    actor: Actor = Depends(get_user_actor),
    storage: StorageBackend = Depends(get_storage_backend),
    db: Session = Depends(get_db)
):
    """Update favorite/archived flags."""
    asset = AssetService(db, storage).update_asset(
        actor, asset_id, is_favorite=payload.is_favorite, is_archived=payload.is_archived
    )
    return AssetResponse.from_asset(asset)
