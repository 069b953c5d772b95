"""
Unit test configuration: in-memory SQLite sessions, a deterministic clock
and local byte storage under tmp_path.
"""
import io
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mediavault.db.base import Base
from mediavault.core.access import Actor
from mediavault.core.checksum import checksum_bytes
from mediavault.models import Asset, User
from mediavault.services.asset_service import AssetService, IncomingFile
from mediavault.services.storage.local import LocalStorage


class TickingClock:
    """Returns a strictly increasing time on every call."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, 0), step: timedelta = timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        self.now += self.step
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """Create test database session."""
    Session = sessionmaker(bind=engine, autoflush=False)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "library"))


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make_user(name: str = None) -> User:
        counter["n"] += 1
        name = name or f"user{counter['n']}"
        user = User(name=name, email=f"{name}@example.com", hashed_password="x")
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture
def owner(make_user):
    return make_user("owner")


@pytest.fixture
def other(make_user):
    return make_user("other")


@pytest.fixture
def asset_service(db_session, storage, clock):
    return AssetService(db_session, storage, clock=clock)


@pytest.fixture
def upload(asset_service):
    """Upload ``data`` as ``actor`` through the dedup gate."""

    def _upload(actor: Actor, data: bytes, filename: str = "photo.jpg", content_type: str = "image/jpeg", **kwargs):
        file = IncomingFile(io.BytesIO(data), filename, content_type, checksum=kwargs.pop("checksum", None))
        return asset_service.upload(actor, file, **kwargs)

    return _upload


@pytest.fixture
def make_asset(db_session, clock):
    """Insert an asset row directly, bypassing byte storage."""

    def _make_asset(owner: User, data: bytes = None) -> Asset:
        now = clock()
        data = data if data is not None else now.isoformat().encode()
        asset = Asset(
            owner_id=owner.id,
            checksum=checksum_bytes(data),
            original_filename="img.jpg",
            content_type="image/jpeg",
            file_size=len(data),
            storage_locator=f"library/{owner.id}/originals/{checksum_bytes(data)}.jpg",
            created_at=now,
            updated_at=now,
        )
        db_session.add(asset)
        db_session.commit()
        return asset

    return _make_asset
