from datetime import datetime
from uuid import uuid4

import pytest

from mediavault.core.checkpoint import NIL_UUID, PageCursor, SyncCheckpoint
from mediavault.core.errors import ValidationError


def test_checkpoint_roundtrip_preserves_position():
    checkpoint = SyncCheckpoint(datetime(2026, 3, 1, 8, 30, 15, 123456), uuid4())
    decoded = SyncCheckpoint.decode(checkpoint.encode())
    assert decoded == checkpoint
    assert isinstance(decoded, SyncCheckpoint)


def test_checkpoint_token_is_url_safe():
    token = SyncCheckpoint(datetime(2026, 3, 1), NIL_UUID).encode()
    assert "=" not in token
    assert "/" not in token and "+" not in token


def test_positions_order_by_timestamp_then_id():
    t = datetime(2026, 3, 1)
    low, high = sorted([uuid4(), uuid4()])
    assert SyncCheckpoint(t, low) < SyncCheckpoint(t, high)
    assert SyncCheckpoint(t, high) < SyncCheckpoint(datetime(2026, 3, 2), NIL_UUID)


@pytest.mark.parametrize("token", ["", "%%%", "bm90IGpzb24", "eyJ0IjoxfQ"])
def test_decode_rejects_malformed_tokens(token):
    with pytest.raises(ValidationError):
        PageCursor.decode(token)
