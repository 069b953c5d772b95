import pytest


@pytest.fixture
def album_with_photo(client, alice, upload_file):
    _, headers = alice
    asset_id = upload_file(headers, b"beach" * 40).json()["id"]
    response = client.post("/api/v1/albums", json={"name": "Beach", "asset_ids": [asset_id]}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json(), asset_id


@pytest.mark.integration
def test_create_and_get_album(client, alice, album_with_photo):
    _, headers = alice
    album, _ = album_with_photo

    response = client.get(f"/api/v1/albums/{album['id']}", headers=headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Beach"
    assert response.json()["members"] == []


@pytest.mark.integration
def test_sharing_grants_and_revokes_access(client, alice, bob, album_with_photo):
    _, alice_headers = alice
    bob_user, bob_headers = bob
    album, asset_id = album_with_photo

    assert client.get(f"/api/v1/assets/{asset_id}", headers=bob_headers).status_code == 403

    shared = client.put(
        f"/api/v1/albums/{album['id']}/users",
        json={"user_id": bob_user["id"], "role": "viewer"},
        headers=alice_headers,
    )
    assert shared.status_code == 200
    assert shared.json()["role"] == "viewer"

    assert client.get(f"/api/v1/assets/{asset_id}", headers=bob_headers).status_code == 200
    assert [a["id"] for a in client.get("/api/v1/albums", headers=bob_headers).json()] == [album["id"]]
    assert client.patch(f"/api/v1/albums/{album['id']}", json={"name": "Mine"}, headers=bob_headers).status_code == 403

    revoked = client.delete(f"/api/v1/albums/{album['id']}/users/{bob_user['id']}", headers=alice_headers)
    assert revoked.status_code == 204
    assert client.get(f"/api/v1/assets/{asset_id}", headers=bob_headers).status_code == 403


@pytest.mark.integration
def test_membership_change_shows_up_in_delta(client, alice, bob, album_with_photo):
    _, alice_headers = alice
    bob_user, bob_headers = bob
    album, asset_id = album_with_photo
    checkpoint = client.get("/api/v1/sync/full-sync", headers=bob_headers).json()["checkpoint"]

    client.put(f"/api/v1/albums/{album['id']}/users", json={"user_id": bob_user["id"]}, headers=alice_headers)
    joined = client.get("/api/v1/sync/delta-sync", params={"checkpoint": checkpoint}, headers=bob_headers).json()
    assert [a["id"] for a in joined["upserted"]] == [asset_id]

    client.delete(f"/api/v1/albums/{album['id']}/users/{bob_user['id']}", headers=bob_headers)
    left = client.get(
        "/api/v1/sync/delta-sync", params={"checkpoint": joined["checkpoint"]}, headers=bob_headers
    ).json()
    assert left["deleted"] == [asset_id]


@pytest.mark.integration
def test_add_and_remove_assets(client, alice, upload_file, album_with_photo):
    _, headers = alice
    album, first = album_with_photo
    second = upload_file(headers, b"waves" * 40).json()["id"]

    added = client.put(f"/api/v1/albums/{album['id']}/assets", json={"ids": [first, second]}, headers=headers)
    assert added.json()["ids"] == [second]

    removed = client.request("DELETE", f"/api/v1/albums/{album['id']}/assets", json={"ids": [first]}, headers=headers)
    assert removed.json()["ids"] == [first]


@pytest.mark.integration
def test_delete_album(client, alice, bob, album_with_photo):
    _, alice_headers = alice
    _, bob_headers = bob
    album, asset_id = album_with_photo

    assert client.delete(f"/api/v1/albums/{album['id']}", headers=bob_headers).status_code == 403
    assert client.delete(f"/api/v1/albums/{album['id']}", headers=alice_headers).status_code == 204
    assert client.get(f"/api/v1/albums/{album['id']}", headers=alice_headers).status_code == 404
    assert client.get(f"/api/v1/assets/{asset_id}", headers=alice_headers).status_code == 200


@pytest.mark.integration
def test_cannot_add_owner_as_member(client, alice, album_with_photo):
    alice_user, headers = alice
    album, _ = album_with_photo

    response = client.put(f"/api/v1/albums/{album['id']}/users", json={"user_id": alice_user["id"]}, headers=headers)
    assert response.status_code == 400
