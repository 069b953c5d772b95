import pytest


@pytest.fixture
def shared_album(client, alice, bob, upload_file):
    """Alice's album with one photo, shared with Bob as editor."""
    _, alice_headers = alice
    bob_user, _ = bob
    asset_id = upload_file(alice_headers, b"party" * 40).json()["id"]
    album = client.post("/api/v1/albums", json={"name": "Party", "asset_ids": [asset_id]}, headers=alice_headers).json()
    client.put(
        f"/api/v1/albums/{album['id']}/users",
        json={"user_id": bob_user["id"], "role": "editor"},
        headers=alice_headers,
    )
    return album["id"], asset_id


@pytest.mark.integration
def test_like_twice_returns_existing(client, bob, shared_album):
    _, headers = bob
    album_id, asset_id = shared_album
    payload = {"album_id": album_id, "asset_id": asset_id, "type": "like"}

    first = client.post("/api/v1/activities", json=payload, headers=headers)
    second = client.post("/api/v1/activities", json=payload, headers=headers)

    assert first.status_code == 201
    assert first.json()["duplicate"] is False
    assert second.status_code == 200
    assert second.json()["duplicate"] is True
    assert second.json()["id"] == first.json()["id"]


@pytest.mark.integration
def test_comments_and_statistics(client, alice, bob, shared_album):
    _, bob_headers = bob
    _, alice_headers = alice
    album_id, asset_id = shared_album

    client.post("/api/v1/activities", json={"album_id": album_id, "type": "comment", "comment": "great"}, headers=bob_headers)
    client.post(
        "/api/v1/activities",
        json={"album_id": album_id, "asset_id": asset_id, "type": "comment", "comment": "love it"},
        headers=alice_headers,
    )

    stats = client.get("/api/v1/activities/statistics", params={"album_id": album_id}, headers=alice_headers)
    assert stats.json() == {"comments": 2}

    album_level = client.get(
        "/api/v1/activities", params={"album_id": album_id, "level": "album"}, headers=alice_headers
    ).json()
    assert [a["comment"] for a in album_level] == ["great"]
    assert album_level[0]["type"] == "comment"


@pytest.mark.integration
def test_comment_without_text_is_rejected(client, bob, shared_album):
    _, headers = bob
    album_id, _ = shared_album
    response = client.post("/api/v1/activities", json={"album_id": album_id, "type": "comment"}, headers=headers)
    assert response.status_code == 422


@pytest.mark.integration
def test_outsider_cannot_react(client, signup, shared_album):
    _, headers = signup("carol")
    album_id, _ = shared_album

    assert client.post("/api/v1/activities", json={"album_id": album_id, "type": "like"}, headers=headers).status_code == 403
    assert client.get("/api/v1/activities", params={"album_id": album_id}, headers=headers).status_code == 403


@pytest.mark.integration
def test_delete_activity(client, alice, bob, shared_album):
    _, alice_headers = alice
    _, bob_headers = bob
    album_id, _ = shared_album
    mine = client.post(
        "/api/v1/activities", json={"album_id": album_id, "type": "comment", "comment": "mine"}, headers=alice_headers
    ).json()

    assert client.delete(f"/api/v1/activities/{mine['id']}", headers=bob_headers).status_code == 403
    assert client.delete(f"/api/v1/activities/{mine['id']}", headers=alice_headers).status_code == 204
    assert client.delete(f"/api/v1/activities/{mine['id']}", headers=alice_headers).status_code == 404
