from datetime import timedelta

import pytest

from mediavault.core.access import Actor
from mediavault.core.checkpoint import NIL_UUID, SyncCheckpoint
from mediavault.core.errors import AccessDeniedError, StaleCheckpointError, ValidationError
from mediavault.models.enums import AlbumRole
from mediavault.repositories.shared_link_repo import SharedLinkRepository
from mediavault.services.album_service import AlbumService
from mediavault.services.shared_link_service import SharedLinkService
from mediavault.services.sync_service import SyncService


@pytest.fixture
def sync(db_session, clock):
    return SyncService(db_session, clock=clock, retention_days=30, max_changes=100, page_max=50, settle_seconds=0)


@pytest.fixture
def albums(db_session, clock):
    return AlbumService(db_session, clock=clock)


def replay(sync, actor, checkpoint, known):
    """Apply one delta to a client-side id set and return the new checkpoint."""
    delta = sync.delta_sync(actor, checkpoint)
    known |= {asset.id for asset in delta.upserted}
    known -= set(delta.deleted_ids)
    return delta.checkpoint


def full_ids(sync, actor):
    ids, cursor = [], None
    while True:
        page = sync.full_sync(actor, cursor=cursor, limit=2)
        ids.extend(asset.id for asset in page.assets)
        if page.next_cursor is None:
            return ids
        cursor = page.next_cursor


# ----------------------------------------------------------------------
# Full sync
# ----------------------------------------------------------------------

def test_full_sync_pages_in_creation_order(sync, owner, make_asset):
    assets = [make_asset(owner) for _ in range(5)]
    actor = Actor(user_id=owner.id)

    first = sync.full_sync(actor, limit=2)
    second = sync.full_sync(actor, cursor=first.next_cursor, limit=2)
    third = sync.full_sync(actor, cursor=second.next_cursor, limit=2)

    assert [a.id for a in first.assets + second.assets + third.assets] == [a.id for a in assets]
    assert first.next_cursor is not None
    assert third.next_cursor is None
    assert len(third.assets) == 1


def test_full_sync_checkpoint_is_server_time(sync, clock, owner):
    page = sync.full_sync(Actor(user_id=owner.id))
    assert page.checkpoint.id == NIL_UUID
    assert page.checkpoint.timestamp <= clock.now


def test_full_sync_limit_bounds(sync, owner, make_asset):
    for _ in range(3):
        make_asset(owner)
    actor = Actor(user_id=owner.id)

    with pytest.raises(ValidationError):
        sync.full_sync(actor, limit=0)

    capped = SyncService(sync.db, clock=sync.clock, page_max=2, settle_seconds=0).full_sync(actor, limit=1000)
    assert len(capped.assets) == 2
    assert capped.next_cursor is not None


def test_full_sync_only_returns_visible_assets(db_session, sync, albums, owner, other, make_asset):
    mine = make_asset(owner)
    make_asset(other)
    shared = make_asset(other)
    album = albums.create_album(Actor(user_id=other.id), "Shared", asset_ids=[shared.id])
    albums.add_member(Actor(user_id=other.id), album.id, owner.id, AlbumRole.viewer)

    ids = full_ids(sync, Actor(user_id=owner.id))

    assert set(ids) == {mine.id, shared.id}


def test_full_sync_for_shared_link_is_scoped(db_session, clock, sync, owner, make_asset):
    shared = make_asset(owner)
    make_asset(owner)
    link = SharedLinkRepository(db_session).create_link(owner_id=owner.id, asset_ids=[shared.id])
    actor = SharedLinkService(db_session, clock=clock).resolve_actor(link.key)

    assert full_ids(sync, actor) == [shared.id]


# ----------------------------------------------------------------------
# Delta sync
# ----------------------------------------------------------------------

def test_delta_reports_new_updated_and_deleted(sync, upload, asset_service, owner):
    actor = Actor(user_id=owner.id)
    kept = upload(actor, b"kept" * 10).asset
    doomed = upload(actor, b"doomed" * 10).asset
    checkpoint = sync.full_sync(actor).checkpoint

    added = upload(actor, b"added" * 10).asset
    asset_service.update_asset(actor, kept.id, is_favorite=True)
    asset_service.delete_assets(actor, [doomed.id])

    delta = sync.delta_sync(actor, checkpoint)

    assert {a.id for a in delta.upserted} == {added.id, kept.id}
    assert delta.deleted_ids == [doomed.id]
    assert delta.checkpoint > checkpoint


def test_empty_delta_keeps_checkpoint(sync, upload, owner):
    actor = Actor(user_id=owner.id)
    upload(actor, b"one" * 10)
    checkpoint = sync.full_sync(actor).checkpoint

    delta = sync.delta_sync(actor, checkpoint)

    assert delta.upserted == []
    assert delta.deleted_ids == []
    assert delta.checkpoint == checkpoint


def test_recent_writes_are_held_back_until_settled(db_session, clock, upload, owner):
    sync = SyncService(db_session, clock=clock, retention_days=30, max_changes=100, settle_seconds=10)
    actor = Actor(user_id=owner.id)
    checkpoint = sync.full_sync(actor).checkpoint
    fresh = upload(actor, b"fresh" * 10).asset

    held = sync.delta_sync(actor, checkpoint)
    assert held.upserted == []
    assert held.checkpoint == checkpoint

    clock.advance(timedelta(seconds=10))
    settled = sync.delta_sync(actor, held.checkpoint)
    assert [a.id for a in settled.upserted] == [fresh.id]
    assert settled.checkpoint == SyncCheckpoint(fresh.updated_at, fresh.id)


def test_checkpoints_are_monotonic(sync, upload, owner):
    actor = Actor(user_id=owner.id)
    checkpoint = sync.full_sync(actor).checkpoint
    seen = [checkpoint]
    for n in range(3):
        upload(actor, f"photo {n}".encode())
        checkpoint = sync.delta_sync(actor, checkpoint).checkpoint
        seen.append(checkpoint)

    assert seen == sorted(seen)
    assert len(set(seen)) == len(seen)


def test_upload_then_delete_between_syncs_is_reported_deleted(sync, upload, asset_service, owner):
    actor = Actor(user_id=owner.id)
    checkpoint = sync.full_sync(actor).checkpoint

    a1 = upload(actor, b"a1" * 10).asset
    assert upload(actor, b"a1" * 10).duplicate is True
    asset_service.delete_assets(actor, [a1.id])

    delta = sync.delta_sync(actor, checkpoint)

    assert a1.id in delta.deleted_ids
    assert a1.id not in {a.id for a in delta.upserted}


def test_joining_and_leaving_album_flows_through_delta(sync, albums, owner, other, make_asset):
    asset = make_asset(owner)
    album = albums.create_album(Actor(user_id=owner.id), "Trip", asset_ids=[asset.id])
    member = Actor(user_id=other.id)
    checkpoint = sync.full_sync(member).checkpoint

    albums.add_member(Actor(user_id=owner.id), album.id, other.id, AlbumRole.viewer)
    joined = sync.delta_sync(member, checkpoint)
    assert [a.id for a in joined.upserted] == [asset.id]

    albums.remove_member(member, album.id, other.id)
    left = sync.delta_sync(member, joined.checkpoint)
    assert left.upserted == []
    assert left.deleted_ids == [asset.id]


def test_removed_then_readded_asset_is_upserted_not_deleted(sync, albums, owner, other, make_asset):
    asset = make_asset(owner)
    owner_actor = Actor(user_id=owner.id)
    album = albums.create_album(owner_actor, "Trip", asset_ids=[asset.id])
    albums.add_member(owner_actor, album.id, other.id, AlbumRole.viewer)
    member = Actor(user_id=other.id)
    checkpoint = sync.full_sync(member).checkpoint

    albums.remove_assets(owner_actor, album.id, [asset.id])
    albums.add_assets(owner_actor, album.id, [asset.id])

    delta = sync.delta_sync(member, checkpoint)
    assert [a.id for a in delta.upserted] == [asset.id]
    assert delta.deleted_ids == []


def test_album_deletion_tombstones_members_only(sync, albums, owner, other, make_asset):
    asset = make_asset(owner)
    owner_actor = Actor(user_id=owner.id)
    album = albums.create_album(owner_actor, "Trip", asset_ids=[asset.id])
    albums.add_member(owner_actor, album.id, other.id, AlbumRole.viewer)
    member_checkpoint = sync.full_sync(Actor(user_id=other.id)).checkpoint
    owner_checkpoint = sync.full_sync(owner_actor).checkpoint

    albums.delete_album(owner_actor, album.id)

    assert sync.delta_sync(Actor(user_id=other.id), member_checkpoint).deleted_ids == [asset.id]
    assert sync.delta_sync(owner_actor, owner_checkpoint).deleted_ids == []


def test_delta_replay_matches_full_sync(sync, upload, asset_service, albums, owner, other):
    actor = Actor(user_id=owner.id)
    first = upload(actor, b"first" * 10).asset
    checkpoint = sync.full_sync(actor).checkpoint
    known = set(full_ids(sync, actor))

    second = upload(actor, b"second" * 10).asset
    checkpoint = replay(sync, actor, checkpoint, known)

    theirs = upload(Actor(user_id=other.id), b"theirs" * 10).asset
    album = albums.create_album(Actor(user_id=other.id), "Theirs", asset_ids=[theirs.id])
    albums.add_member(Actor(user_id=other.id), album.id, owner.id, AlbumRole.viewer)
    asset_service.delete_assets(actor, [first.id])
    checkpoint = replay(sync, actor, checkpoint, known)

    assert known == set(full_ids(sync, actor)) == {second.id, theirs.id}


# ----------------------------------------------------------------------
# Staleness
# ----------------------------------------------------------------------

def test_checkpoint_older_than_retention_is_stale(sync, clock, owner):
    old = SyncCheckpoint(clock.now - timedelta(days=31), NIL_UUID)
    with pytest.raises(StaleCheckpointError):
        sync.delta_sync(Actor(user_id=owner.id), old)


def test_too_many_changes_is_stale(db_session, clock, upload, owner):
    sync = SyncService(db_session, clock=clock, retention_days=30, max_changes=2, settle_seconds=0)
    actor = Actor(user_id=owner.id)
    checkpoint = sync.full_sync(actor).checkpoint
    for n in range(3):
        upload(actor, f"photo {n}".encode())

    with pytest.raises(StaleCheckpointError):
        sync.delta_sync(actor, checkpoint)


def test_shared_link_actor_cannot_delta_sync(db_session, clock, sync, owner, make_asset):
    asset = make_asset(owner)
    link = SharedLinkRepository(db_session).create_link(owner_id=owner.id, asset_ids=[asset.id])
    actor = SharedLinkService(db_session, clock=clock).resolve_actor(link.key)

    with pytest.raises(AccessDeniedError):
        sync.delta_sync(actor, SyncCheckpoint(clock.now, NIL_UUID))
