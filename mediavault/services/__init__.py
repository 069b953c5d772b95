"""
Services package initializer.

Re-exports service classes so callers can import from
`mediavault.services` instead of deep module paths.
"""

from .activity_service import ActivityService
from .album_service import AlbumService
from .asset_service import AssetService
from .shared_link_service import SharedLinkService
from .sync_service import SyncService

__all__ = [
    "ActivityService",
    "AlbumService",
    "AssetService",
    "SharedLinkService",
    "SyncService",
]
