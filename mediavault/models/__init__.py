"""Import all models for Alembic."""
from .base import TimestampMixin, SoftDeleteMixin, utcnow
from .enums import AssetType, AlbumRole, ReactionType, ReactionLevel
from .user import User
from .asset import Asset
from .album import Album, AlbumUser, album_assets
from .shared_link import SharedLink, shared_link_assets
from .activity import Activity
from .asset_audit import AssetAudit

__all__ = [
    "TimestampMixin",
    "SoftDeleteMixin",
    "utcnow",
    "AssetType",
    "AlbumRole",
    "ReactionType",
    "ReactionLevel",
    "User",
    "Asset",
    "Album",
    "AlbumUser",
    "album_assets",
    "SharedLink",
    "shared_link_assets",
    "Activity",
    "AssetAudit",
]
