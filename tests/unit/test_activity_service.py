from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from mediavault.core.access import Actor
from mediavault.core.errors import AccessDeniedError, NotFoundError, ValidationError
from mediavault.models.activity import Activity
from mediavault.models.enums import AlbumRole, ReactionLevel, ReactionType
from mediavault.services.activity_service import ActivityService
from mediavault.services.album_service import AlbumService


@pytest.fixture
def activities(db_session):
    return ActivityService(db_session)


@pytest.fixture
def shared_album(db_session, clock, owner, other, make_asset):
    """Album owned by ``owner`` holding one asset, with ``other`` as editor."""
    asset = make_asset(owner)
    albums = AlbumService(db_session, clock=clock)
    album = albums.create_album(Actor(user_id=owner.id), "Trip", asset_ids=[asset.id])
    albums.add_member(Actor(user_id=owner.id), album.id, other.id, AlbumRole.editor)
    return album, asset


def test_like_is_deduplicated_per_target(activities, shared_album, other):
    album, asset = shared_album
    actor = Actor(user_id=other.id)

    first = activities.create(actor, album.id, ReactionType.like, asset_id=asset.id)
    again = activities.create(actor, album.id, ReactionType.like, asset_id=asset.id)
    album_like = activities.create(actor, album.id, ReactionType.like)

    assert first.duplicate is False
    assert again.duplicate is True
    assert again.activity.id == first.activity.id
    assert album_like.duplicate is False
    assert album_like.activity.asset_id is None


def test_comments_are_never_deduplicated(activities, shared_album, other):
    album, _ = shared_album
    actor = Actor(user_id=other.id)

    a = activities.create(actor, album.id, ReactionType.comment, comment="nice")
    b = activities.create(actor, album.id, ReactionType.comment, comment="nice")

    assert a.activity.id != b.activity.id
    assert activities.get_statistics(actor, album.id) == 2


def test_comment_requires_text(activities, shared_album, owner):
    album, _ = shared_album
    with pytest.raises(ValidationError):
        activities.create(Actor(user_id=owner.id), album.id, ReactionType.comment, comment="  ")


def test_asset_must_belong_to_album(activities, shared_album, owner, make_asset):
    album, _ = shared_album
    outside = make_asset(owner)
    with pytest.raises(ValidationError):
        activities.create(Actor(user_id=owner.id), album.id, ReactionType.like, asset_id=outside.id)


def test_disabled_activity_is_denied(db_session, clock, activities, shared_album, owner):
    album, _ = shared_album
    AlbumService(db_session, clock=clock).update_album(Actor(user_id=owner.id), album.id, is_activity_enabled=False)

    with pytest.raises(AccessDeniedError):
        activities.create(Actor(user_id=owner.id), album.id, ReactionType.like)


def test_viewer_reads_but_cannot_react(db_session, clock, activities, shared_album, owner, make_user):
    album, _ = shared_album
    viewer = make_user("viewer")
    AlbumService(db_session, clock=clock).add_member(Actor(user_id=owner.id), album.id, viewer.id, AlbumRole.viewer)
    activities.create(Actor(user_id=owner.id), album.id, ReactionType.comment, comment="hello")

    assert len(activities.get_all(Actor(user_id=viewer.id), album.id)) == 1
    with pytest.raises(AccessDeniedError):
        activities.create(Actor(user_id=viewer.id), album.id, ReactionType.like)


def test_stranger_cannot_read(activities, shared_album, make_user):
    album, _ = shared_album
    with pytest.raises(AccessDeniedError):
        activities.get_all(Actor(user_id=make_user("stranger").id), album.id)


def test_unknown_album_is_not_found(activities, owner):
    with pytest.raises(NotFoundError):
        activities.get_all(Actor(user_id=owner.id), uuid4())


def test_get_all_filters(activities, shared_album, owner, other):
    album, asset = shared_album
    owner_actor, other_actor = Actor(user_id=owner.id), Actor(user_id=other.id)
    album_like = activities.create(owner_actor, album.id, ReactionType.like).activity
    asset_like = activities.create(other_actor, album.id, ReactionType.like, asset_id=asset.id).activity
    comment = activities.create(other_actor, album.id, ReactionType.comment, asset_id=asset.id, comment="wow").activity

    def ids(**filters):
        return {a.id for a in activities.get_all(owner_actor, album.id, **filters)}

    assert ids() == {album_like.id, asset_like.id, comment.id}
    assert ids(level=ReactionLevel.album) == {album_like.id}
    assert ids(asset_id=asset.id) == {asset_like.id, comment.id}
    assert ids(type=ReactionType.comment) == {comment.id}
    assert ids(user_id=owner.id) == {album_like.id}
    assert activities.get_statistics(owner_actor, album.id, asset_id=asset.id) == 1


def test_delete_by_author_or_album_owner(activities, shared_album, owner, other, make_user):
    album, _ = shared_album
    by_other = activities.create(Actor(user_id=other.id), album.id, ReactionType.comment, comment="one").activity
    by_owner = activities.create(Actor(user_id=owner.id), album.id, ReactionType.comment, comment="two").activity

    with pytest.raises(AccessDeniedError):
        activities.delete(Actor(user_id=other.id), by_owner.id)

    activities.delete(Actor(user_id=owner.id), by_other.id)
    activities.delete(Actor(user_id=owner.id), by_owner.id)

    assert activities.get_all(Actor(user_id=owner.id), album.id) == []
    with pytest.raises(NotFoundError):
        activities.delete(Actor(user_id=owner.id), by_owner.id)


@pytest.mark.parametrize("on_asset", [True, False])
def test_concurrent_like_converges_on_winner(db_session, activities, shared_album, other, mocker, on_asset):
    album, asset = shared_album
    asset_id = asset.id if on_asset else None
    actor = Actor(user_id=other.id)
    winner = activities.create(actor, album.id, ReactionType.like, asset_id=asset_id).activity
    real_search = activities.activities.search
    calls = {"n": 0}

    def racing_search(options):
        # The first lookup misses the winner, as if its commit landed
        # between our lookup and our insert.
        calls["n"] += 1
        if calls["n"] == 1:
            return []
        return real_search(options)

    mocker.patch.object(activities.activities, "search", side_effect=racing_search)

    result = activities.create(actor, album.id, ReactionType.like, asset_id=asset_id)

    assert result.duplicate is True
    assert result.activity.id == winner.id
    assert db_session.query(Activity).filter(Activity.is_liked.is_(True)).count() == 1


def test_like_uniqueness_is_enforced_by_the_table(db_session, shared_album, other):
    album, asset = shared_album
    db_session.add_all([
        Activity(user_id=other.id, album_id=album.id, asset_id=asset.id, is_liked=False, comment="a"),
        Activity(user_id=other.id, album_id=album.id, asset_id=asset.id, is_liked=False, comment="b"),
        Activity(user_id=other.id, album_id=album.id, asset_id=asset.id, is_liked=True),
    ])
    db_session.commit()

    db_session.add(Activity(user_id=other.id, album_id=album.id, asset_id=asset.id, is_liked=True))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()
