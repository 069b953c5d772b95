from datetime import timedelta
from uuid import UUID

import pytest

from mediavault.core.checkpoint import NIL_UUID, SyncCheckpoint
from mediavault.models.base import utcnow


def full_sync(client, headers, **params):
    response = client.get("/api/v1/sync/full-sync", params=params, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def delta_sync(client, headers, checkpoint):
    response = client.get("/api/v1/sync/delta-sync", params={"checkpoint": checkpoint}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


@pytest.mark.integration
def test_full_sync_pagination(client, alice, upload_file):
    _, headers = alice
    ids = [upload_file(headers, f"photo {n}".encode()).json()["id"] for n in range(3)]

    first = full_sync(client, headers, limit=2)
    assert len(first["assets"]) == 2
    assert first["next_cursor"]

    second = full_sync(client, headers, limit=2, cursor=first["next_cursor"])
    assert second["next_cursor"] is None

    assert [a["id"] for a in first["assets"] + second["assets"]] == ids


@pytest.mark.integration
def test_full_sync_rejects_bad_cursor(client, alice):
    _, headers = alice
    response = client.get("/api/v1/sync/full-sync", params={"cursor": "%%%"}, headers=headers)
    assert response.status_code == 400


@pytest.mark.integration
def test_delta_after_full_sync(client, alice, upload_file):
    _, headers = alice
    kept = upload_file(headers, b"kept" * 10).json()["id"]
    gone = upload_file(headers, b"gone" * 10).json()["id"]
    checkpoint = full_sync(client, headers)["checkpoint"]

    added = upload_file(headers, b"added" * 10).json()["id"]
    client.request("DELETE", "/api/v1/assets", json={"ids": [gone]}, headers=headers)

    delta = delta_sync(client, headers, checkpoint)
    assert delta["needs_full_sync"] is False
    assert [a["id"] for a in delta["upserted"]] == [added]
    assert delta["deleted"] == [gone]

    again = delta_sync(client, headers, delta["checkpoint"])
    assert again["upserted"] == []
    assert again["deleted"] == []
    assert again["checkpoint"] == delta["checkpoint"]
    assert kept not in delta["deleted"]


@pytest.mark.integration
def test_delete_between_syncs_is_not_upserted(client, alice, upload_file):
    _, headers = alice
    checkpoint = full_sync(client, headers)["checkpoint"]

    asset_id = upload_file(headers, b"a1" * 10).json()["id"]
    assert upload_file(headers, b"a1" * 10).json()["duplicate"] is True
    client.request("DELETE", "/api/v1/assets", json={"ids": [asset_id]}, headers=headers)

    delta = delta_sync(client, headers, checkpoint)
    assert asset_id in delta["deleted"]
    assert asset_id not in [a["id"] for a in delta["upserted"]]


@pytest.mark.integration
def test_stale_checkpoint_requests_full_sync(client, alice):
    _, headers = alice
    old = SyncCheckpoint(utcnow() - timedelta(days=365), NIL_UUID).encode()

    delta = delta_sync(client, headers, old)

    assert delta["needs_full_sync"] is True
    assert delta["checkpoint"] is None


@pytest.mark.integration
def test_sync_is_user_only(client, alice, upload_file):
    _, headers = alice
    asset_id = upload_file(headers, b"x" * 10).json()["id"]
    link = client.post("/api/v1/shared-links", json={"asset_ids": [asset_id]}, headers=headers).json()

    response = client.get("/api/v1/sync/full-sync", params={"key": link["key"]})
    assert response.status_code == 401

    checkpoint = full_sync(client, headers)["checkpoint"]
    assert UUID(int=0) == SyncCheckpoint.decode(checkpoint).id
