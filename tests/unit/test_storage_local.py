import io
import uuid

import pytest

from mediavault.core.checksum import checksum_bytes
from mediavault.core.errors import StorageError
from mediavault.services.storage.local import LocalStorage


@pytest.fixture
def local(tmp_path):
    return LocalStorage(str(tmp_path), chunk_size=8)


def test_store_hashes_while_writing(local):
    data = b"0123456789" * 10
    key = local.generate_key(uuid.uuid4(), "IMG_0001.JPG")

    stored = local.store(io.BytesIO(data), key)

    assert stored.locator == key
    assert stored.size == len(data)
    assert stored.checksum == checksum_bytes(data)
    assert key.endswith(".jpg")
    with local.read(key) as handle:
        assert handle.read() == data


def test_delete_is_idempotent(local):
    key = local.generate_key(uuid.uuid4(), "a.png")
    local.store(io.BytesIO(b"x"), key)
    assert local.exists(key)

    local.delete(key)
    local.delete(key)

    assert not local.exists(key)


def test_no_partial_file_left_behind(local, tmp_path):
    key = local.generate_key(uuid.uuid4(), "a.png")
    local.store(io.BytesIO(b"abc"), key)
    assert not list(tmp_path.rglob("*.partial"))


def test_locator_cannot_escape_root(local):
    with pytest.raises(StorageError):
        local.read("../outside.txt")


def test_read_missing_object_raises(local):
    with pytest.raises(StorageError):
        local.read("library/nothing/here.jpg")
