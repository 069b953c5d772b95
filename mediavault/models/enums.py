"""Enums for database models."""
import enum


class AssetType(str, enum.Enum):
    """Kind of media stored in an asset."""
    image = "image"
    video = "video"
    other = "other"


class AlbumRole(str, enum.Enum):
    """Role a user holds on a shared album."""
    viewer = "viewer"
    editor = "editor"
    owner = "owner"


ALBUM_ROLE_RANK = {
    AlbumRole.viewer: 1,
    AlbumRole.editor: 2,
    AlbumRole.owner: 3,
}


class ReactionType(str, enum.Enum):
    """Activity reaction types."""
    like = "like"
    comment = "comment"


class ReactionLevel(str, enum.Enum):
    """Whether an activity targets the whole album or one asset."""
    album = "album"
    asset = "asset"
