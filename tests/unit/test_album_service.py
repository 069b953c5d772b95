from uuid import uuid4

import pytest

from mediavault.core.access import Actor
from mediavault.core.errors import AccessDeniedError, NotFoundError, ValidationError
from mediavault.models import AssetAudit
from mediavault.models.enums import AlbumRole
from mediavault.repositories.shared_link_repo import SharedLinkRepository
from mediavault.services.album_service import AlbumService
from mediavault.services.shared_link_service import SharedLinkService


@pytest.fixture
def albums(db_session, clock):
    return AlbumService(db_session, clock=clock)


def tombstones(db_session):
    return {(a.asset_id, a.user_id) for a in db_session.query(AssetAudit).all()}


def test_create_album_with_assets(albums, owner, make_asset):
    asset = make_asset(owner)
    album = albums.create_album(Actor(user_id=owner.id), "  Summer  ", asset_ids=[asset.id])

    assert album.name == "Summer"
    assert album.owner_id == owner.id
    assert albums.albums.asset_ids(album.id) == {asset.id}


def test_create_album_requires_name(albums, owner):
    with pytest.raises(ValidationError):
        albums.create_album(Actor(user_id=owner.id), "   ")


def test_cannot_seed_album_with_foreign_assets(albums, owner, other, make_asset):
    theirs = make_asset(other)
    with pytest.raises(AccessDeniedError):
        albums.create_album(Actor(user_id=owner.id), "Stolen", asset_ids=[theirs.id])


def test_create_album_with_unknown_asset_is_not_found(albums, owner):
    with pytest.raises(NotFoundError):
        albums.create_album(Actor(user_id=owner.id), "Ghost", asset_ids=[uuid4()])


def test_list_albums_includes_memberships(albums, owner, other):
    mine = albums.create_album(Actor(user_id=owner.id), "Mine")
    theirs = albums.create_album(Actor(user_id=other.id), "Theirs")
    albums.create_album(Actor(user_id=other.id), "Private")
    albums.add_member(Actor(user_id=other.id), theirs.id, owner.id)

    listed = {album.id for album in albums.list_albums(Actor(user_id=owner.id))}

    assert listed == {mine.id, theirs.id}


def test_shared_link_lists_only_its_album(db_session, clock, albums, owner):
    shared = albums.create_album(Actor(user_id=owner.id), "Shared")
    albums.create_album(Actor(user_id=owner.id), "Private")
    link = SharedLinkRepository(db_session).create_link(owner_id=owner.id, album_id=shared.id)
    actor = SharedLinkService(db_session, clock=clock).resolve_actor(link.key)

    assert [album.id for album in albums.list_albums(actor)] == [shared.id]
    with pytest.raises(AccessDeniedError):
        albums.create_album(actor, "Nope")


def test_update_album_by_editor(albums, owner, other):
    album = albums.create_album(Actor(user_id=owner.id), "Trip")
    albums.add_member(Actor(user_id=owner.id), album.id, other.id, AlbumRole.editor)

    updated = albums.update_album(Actor(user_id=other.id), album.id, name="Road trip", is_activity_enabled=False)

    assert updated.name == "Road trip"
    assert updated.is_activity_enabled is False


def test_viewer_cannot_update_album(albums, owner, other):
    album = albums.create_album(Actor(user_id=owner.id), "Trip")
    albums.add_member(Actor(user_id=owner.id), album.id, other.id, AlbumRole.viewer)

    with pytest.raises(AccessDeniedError):
        albums.update_album(Actor(user_id=other.id), album.id, name="Mine now")


def test_only_owner_deletes_album(albums, owner, other):
    album = albums.create_album(Actor(user_id=owner.id), "Trip")
    albums.add_member(Actor(user_id=owner.id), album.id, other.id, AlbumRole.editor)

    with pytest.raises(AccessDeniedError):
        albums.delete_album(Actor(user_id=other.id), album.id)

    albums.delete_album(Actor(user_id=owner.id), album.id)
    with pytest.raises(NotFoundError):
        albums.get_album(Actor(user_id=owner.id), album.id)


def test_add_assets_touches_and_reports_new_ids(albums, owner, make_asset):
    first, second = make_asset(owner), make_asset(owner)
    actor = Actor(user_id=owner.id)
    album = albums.create_album(actor, "Trip", asset_ids=[first.id])
    before = second.updated_at

    added = albums.add_assets(actor, album.id, [first.id, second.id])

    assert added == {second.id}
    albums.db.refresh(second)
    assert second.updated_at > before


def test_editor_cannot_add_assets_they_do_not_own(albums, owner, other, make_asset):
    album = albums.create_album(Actor(user_id=owner.id), "Trip")
    albums.add_member(Actor(user_id=owner.id), album.id, other.id, AlbumRole.editor)
    foreign = make_asset(owner)

    with pytest.raises(AccessDeniedError):
        albums.add_assets(Actor(user_id=other.id), album.id, [foreign.id])

    own = make_asset(other)
    assert albums.add_assets(Actor(user_id=other.id), album.id, [own.id]) == {own.id}


def test_remove_assets_tombstones_members(db_session, albums, owner, other, make_asset):
    asset = make_asset(owner)
    actor = Actor(user_id=owner.id)
    album = albums.create_album(actor, "Trip", asset_ids=[asset.id])
    albums.add_member(actor, album.id, other.id)

    removed = albums.remove_assets(actor, album.id, [asset.id, uuid4()])

    assert removed == {asset.id}
    assert tombstones(db_session) == {(asset.id, other.id)}


def test_asset_still_visible_through_another_album_is_not_tombstoned(db_session, albums, owner, other, make_asset):
    asset = make_asset(owner)
    actor = Actor(user_id=owner.id)
    first = albums.create_album(actor, "First", asset_ids=[asset.id])
    second = albums.create_album(actor, "Second", asset_ids=[asset.id])
    albums.add_member(actor, first.id, other.id)
    albums.add_member(actor, second.id, other.id)

    albums.remove_assets(actor, first.id, [asset.id])

    assert tombstones(db_session) == set()


def test_add_member_validations(albums, owner, other):
    album = albums.create_album(Actor(user_id=owner.id), "Trip")

    with pytest.raises(ValidationError):
        albums.add_member(Actor(user_id=owner.id), album.id, owner.id)
    with pytest.raises(NotFoundError):
        albums.add_member(Actor(user_id=owner.id), album.id, uuid4())
    with pytest.raises(AccessDeniedError):
        albums.add_member(Actor(user_id=other.id), album.id, other.id)


def test_add_member_changes_role(albums, owner, other):
    album = albums.create_album(Actor(user_id=owner.id), "Trip")
    albums.add_member(Actor(user_id=owner.id), album.id, other.id, AlbumRole.viewer)

    member = albums.add_member(Actor(user_id=owner.id), album.id, other.id, AlbumRole.editor)

    assert member.role == AlbumRole.editor
    assert len(albums.albums.get_members(album.id)) == 1


def test_member_may_leave_but_not_remove_others(albums, owner, other, make_user):
    third = make_user("third")
    actor = Actor(user_id=owner.id)
    album = albums.create_album(actor, "Trip")
    albums.add_member(actor, album.id, other.id, AlbumRole.editor)
    albums.add_member(actor, album.id, third.id)

    with pytest.raises(AccessDeniedError):
        albums.remove_member(Actor(user_id=other.id), album.id, third.id)

    albums.remove_member(Actor(user_id=other.id), album.id, other.id)
    assert {m.user_id for m in albums.albums.get_members(album.id)} == {third.id}

    with pytest.raises(NotFoundError):
        albums.remove_member(actor, album.id, other.id)
