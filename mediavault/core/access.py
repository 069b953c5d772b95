"""
Access oracle.

Decides whether an actor may perform a permission on a set of resources.
Grants come in three variants evaluated in a fixed order, first match
wins:

1. ownership of the resource (or of its parent album / authorship of an
   activity),
2. the actor's own share link, when the permission is shareable,
3. an album membership with a sufficient role.

Each variant is a frozen record plus a pure predicate. Records are loaded
fresh on every call; no decision outlives the call that produced it.
"""
import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, FrozenSet, Iterable, List, Optional, Set, Union
from uuid import UUID

from mediavault.core.errors import AccessDeniedError
from mediavault.models.base import utcnow
from mediavault.models.enums import AlbumRole, ALBUM_ROLE_RANK
from mediavault.repositories.access_repo import AccessRepository

logger = logging.getLogger(__name__)


class ResourceKind(str, enum.Enum):
    asset = "asset"
    album = "album"
    activity = "activity"
    library = "library"
    shared_link = "shared_link"


class Permission(str, enum.Enum):
    """Operations gated by the oracle, scoped to one resource kind each."""
    ASSET_READ = "asset.read"
    ASSET_VIEW = "asset.view"
    ASSET_VIEW_THUMBNAIL = "asset.thumbnail"
    ASSET_DOWNLOAD = "asset.download"
    ASSET_UPLOAD = "asset.upload"
    ASSET_UPDATE = "asset.update"
    ASSET_DELETE = "asset.delete"
    ASSET_SHARE = "asset.share"
    ALBUM_READ = "album.read"
    ALBUM_UPDATE = "album.update"
    ALBUM_SHARE = "album.share"
    ALBUM_DELETE = "album.delete"
    ACTIVITY_CREATE = "activity.create"
    ACTIVITY_DELETE = "activity.delete"
    SHARED_LINK_DELETE = "shared_link.delete"


PERMISSION_RESOURCE = {
    Permission.ASSET_READ: ResourceKind.asset,
    Permission.ASSET_VIEW: ResourceKind.asset,
    Permission.ASSET_VIEW_THUMBNAIL: ResourceKind.asset,
    Permission.ASSET_DOWNLOAD: ResourceKind.asset,
    Permission.ASSET_UPDATE: ResourceKind.asset,
    Permission.ASSET_DELETE: ResourceKind.asset,
    Permission.ASSET_SHARE: ResourceKind.asset,
    Permission.ASSET_UPLOAD: ResourceKind.library,
    Permission.ALBUM_READ: ResourceKind.album,
    Permission.ALBUM_UPDATE: ResourceKind.album,
    Permission.ALBUM_SHARE: ResourceKind.album,
    Permission.ALBUM_DELETE: ResourceKind.album,
    Permission.ACTIVITY_CREATE: ResourceKind.album,
    Permission.ACTIVITY_DELETE: ResourceKind.activity,
    Permission.SHARED_LINK_DELETE: ResourceKind.shared_link,
}

SHAREABLE_PERMISSIONS = frozenset({
    Permission.ASSET_READ,
    Permission.ASSET_VIEW,
    Permission.ASSET_VIEW_THUMBNAIL,
    Permission.ASSET_DOWNLOAD,
    Permission.ASSET_UPLOAD,
    Permission.ALBUM_READ,
})

# Minimum album role; permissions missing here are never granted by membership.
REQUIRED_ALBUM_ROLE = {
    Permission.ASSET_READ: AlbumRole.viewer,
    Permission.ASSET_VIEW: AlbumRole.viewer,
    Permission.ASSET_VIEW_THUMBNAIL: AlbumRole.viewer,
    Permission.ASSET_DOWNLOAD: AlbumRole.viewer,
    Permission.ALBUM_READ: AlbumRole.viewer,
    Permission.ALBUM_UPDATE: AlbumRole.editor,
    Permission.ACTIVITY_CREATE: AlbumRole.editor,
    Permission.ALBUM_SHARE: AlbumRole.owner,
    Permission.ACTIVITY_DELETE: AlbumRole.owner,
}


# ----------------------------------------------------------------------
# Actor
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class SharedLinkScope:
    """Snapshot of the share link an actor authenticated with."""
    id: UUID
    owner_id: UUID
    album_id: Optional[UUID] = None
    asset_ids: FrozenSet[UUID] = field(default_factory=frozenset)
    expires_at: Optional[datetime] = None
    allow_upload: bool = False
    allow_download: bool = True


@dataclass(frozen=True)
class Actor:
    """Authenticated identity issuing a request.

    A shared-link actor carries the link owner's id but is confined to the
    link's scope; ownership and membership never apply to it.
    """
    user_id: UUID
    shared_link: Optional[SharedLinkScope] = None

    @property
    def is_shared_link(self) -> bool:
        return self.shared_link is not None

    @property
    def granted_scopes(self) -> FrozenSet[UUID]:
        if self.shared_link is None:
            return frozenset()
        scopes = set(self.shared_link.asset_ids)
        if self.shared_link.album_id is not None:
            scopes.add(self.shared_link.album_id)
        return frozenset(scopes)


# ----------------------------------------------------------------------
# Grant variants
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class OwnershipGrant:
    resource_id: UUID
    owner_ids: FrozenSet[UUID]


@dataclass(frozen=True)
class ShareLinkGrant:
    resource_id: UUID
    link_id: UUID
    expires_at: Optional[datetime]
    allow_upload: bool
    allow_download: bool


@dataclass(frozen=True)
class AlbumGrant:
    resource_id: UUID
    album_id: UUID
    user_id: UUID
    role: AlbumRole


Grant = Union[OwnershipGrant, ShareLinkGrant, AlbumGrant]


def ownership_permits(grant: OwnershipGrant, actor: Actor, permission: Permission, now: datetime) -> bool:
    return not actor.is_shared_link and actor.user_id in grant.owner_ids


def share_link_permits(grant: ShareLinkGrant, actor: Actor, permission: Permission, now: datetime) -> bool:
    if actor.shared_link is None or actor.shared_link.id != grant.link_id:
        return False
    if permission not in SHAREABLE_PERMISSIONS:
        return False
    if grant.expires_at is not None and grant.expires_at <= now:
        return False
    if permission is Permission.ASSET_UPLOAD:
        return grant.allow_upload
    if permission in (Permission.ASSET_VIEW, Permission.ASSET_DOWNLOAD):
        return grant.allow_download
    return True


def album_grant_permits(grant: AlbumGrant, actor: Actor, permission: Permission, now: datetime) -> bool:
    required = REQUIRED_ALBUM_ROLE.get(permission)
    if required is None or actor.is_shared_link or grant.user_id != actor.user_id:
        return False
    return ALBUM_ROLE_RANK[grant.role] >= ALBUM_ROLE_RANK[required]


# ----------------------------------------------------------------------
# Oracle
# ----------------------------------------------------------------------

class AccessOracle:
    """Answers ALLOW/DENY for (actor, permission, resource ids)."""

    def __init__(self, repository: AccessRepository, clock: Callable[[], datetime] = utcnow):
        self.repository = repository
        self.clock = clock

    def check_access(self, actor: Actor, permission: Permission, ids: Iterable[UUID]) -> Set[UUID]:
        """Return the subset of ``ids`` the actor may access."""
        remaining = {resource_id for resource_id in ids if resource_id is not None}
        allowed: Set[UUID] = set()
        if not remaining:
            return allowed

        kind = PERMISSION_RESOURCE[permission]
        now = self.clock()
        stages = (
            (self._ownership_grants, ownership_permits),
            (self._share_link_grants, share_link_permits),
            (self._album_grants, album_grant_permits),
        )
        for load, permits in stages:
            if not remaining:
                break
            for grant in load(actor, permission, kind, remaining):
                if grant.resource_id in remaining and permits(grant, actor, permission, now):
                    allowed.add(grant.resource_id)
            remaining -= allowed

        return allowed

    def filter_visible(self, actor: Actor, permission: Permission, ids: Iterable[UUID]) -> Set[UUID]:
        """Non-failing variant for "show me what I can see" callers."""
        return self.check_access(actor, permission, ids)

    def require_permission(
        self,
        actor: Actor,
        permission: Permission,
        ids: Union[UUID, Iterable[UUID]]
    ) -> None:
        """
        Require ``permission`` on every id.

        Args:
            actor: Requesting actor
            permission: Permission to check
            ids: A single resource id or an iterable of ids

        Raises:
            AccessDeniedError: for the first id (in the given order) that is
                not allowed
        """
        ordered = [ids] if isinstance(ids, UUID) else list(dict.fromkeys(ids))
        allowed = self.check_access(actor, permission, ordered)
        for resource_id in ordered:
            if resource_id not in allowed:
                logger.info(
                    "Denied %s on %s for user %s (shared_link=%s)",
                    permission.value, resource_id, actor.user_id, actor.is_shared_link
                )
                raise AccessDeniedError(permission, resource_id)

    # ------------------------------------------------------------------
    # Grant loaders
    # ------------------------------------------------------------------

    def _ownership_grants(self, actor: Actor, permission: Permission, kind: ResourceKind, ids: Set[UUID]) -> List[Grant]:
        if actor.is_shared_link:
            return []

        if kind is ResourceKind.library:
            return [OwnershipGrant(resource_id, frozenset({resource_id})) for resource_id in ids]
        if kind is ResourceKind.asset:
            owners = self.repository.asset_owners(ids)
            return [OwnershipGrant(rid, frozenset({owner})) for rid, owner in owners.items()]
        if kind is ResourceKind.album:
            owners = self.repository.album_owners(ids)
            return [OwnershipGrant(rid, frozenset({owner})) for rid, owner in owners.items()]
        if kind is ResourceKind.activity:
            owners = self.repository.activity_owners(ids)
            return [OwnershipGrant(rid, frozenset(owner_ids)) for rid, owner_ids in owners.items()]
        if kind is ResourceKind.shared_link:
            owners = self.repository.shared_link_owners(ids)
            return [OwnershipGrant(rid, frozenset({owner})) for rid, owner in owners.items()]
        return []

    def _share_link_grants(self, actor: Actor, permission: Permission, kind: ResourceKind, ids: Set[UUID]) -> List[Grant]:
        if actor.shared_link is None or permission not in SHAREABLE_PERMISSIONS:
            return []

        # Re-read the link so a revoked or edited link takes effect immediately.
        link = self.repository.get_shared_link(actor.shared_link.id)
        if link is None:
            return []

        if kind is ResourceKind.asset:
            covered = self.repository.shared_link_assets(link, ids)
        elif kind is ResourceKind.album:
            covered = self.repository.shared_link_albums(link, ids)
        elif kind is ResourceKind.library:
            covered = {link.owner_id} & ids
        else:
            covered = set()

        return [
            ShareLinkGrant(
                resource_id=rid,
                link_id=link.id,
                expires_at=link.expires_at,
                allow_upload=link.allow_upload,
                allow_download=link.allow_download,
            )
            for rid in covered
        ]

    def _album_grants(self, actor: Actor, permission: Permission, kind: ResourceKind, ids: Set[UUID]) -> List[Grant]:
        if actor.is_shared_link or permission not in REQUIRED_ALBUM_ROLE:
            return []

        grants: List[Grant] = []
        if kind is ResourceKind.asset:
            for rid, memberships in self.repository.asset_album_roles(actor.user_id, ids).items():
                grants.extend(AlbumGrant(rid, album_id, actor.user_id, role) for album_id, role in memberships)
        elif kind is ResourceKind.album:
            for rid, role in self.repository.album_roles(actor.user_id, ids).items():
                grants.append(AlbumGrant(rid, rid, actor.user_id, role))
        elif kind is ResourceKind.activity:
            for rid, (album_id, role) in self.repository.activity_album_roles(actor.user_id, ids).items():
                grants.append(AlbumGrant(rid, album_id, actor.user_id, role))
        return grants
