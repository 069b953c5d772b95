"""
Integration test configuration
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import mediavault.models  # noqa: F401
from mediavault.api.deps import get_storage_backend
from mediavault.app.config import settings
from mediavault.app.main import app
from mediavault.db.base import Base, get_db
from mediavault.services.storage.local import LocalStorage


@pytest.fixture
def session_factory():
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
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


@pytest.fixture
def client(session_factory, tmp_path, monkeypatch):
    """FastAPI test client with dependency overrides."""
    monkeypatch.setattr(settings, "SYNC_SETTLE_SECONDS", 0)
    storage = LocalStorage(str(tmp_path / "library"))

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage_backend] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    """Register a user and return (user json, auth headers)."""

    def _signup(name: str):
        response = client.post("/api/v1/auth/signup", json={
            "name": name,
            "email": f"{name}@example.com",
            "password": "correct-horse",
        })
        assert response.status_code == 201, response.text
        body = response.json()
        return body["user"], {"Authorization": f"Bearer {body['access_token']}"}

    return _signup


@pytest.fixture
def alice(signup):
    return signup("alice")


@pytest.fixture
def bob(signup):
    return signup("bob")


@pytest.fixture
def upload_file(client):
    """POST bytes to the upload endpoint and return the response."""

    def _upload(headers, data: bytes, filename: str = "IMG_0001.jpg", content_type: str = "image/jpeg", **kwargs):
        files = {"asset_data": (filename, data, content_type)}
        if "live_photo" in kwargs:
            files["live_photo_data"] = ("IMG_0001.MOV", kwargs.pop("live_photo"), "video/quicktime")
        extra_headers = dict(headers)
        if "checksum" in kwargs:
            extra_headers["x-asset-checksum"] = kwargs.pop("checksum")
        params = kwargs.pop("params", None)
        return client.post("/api/v1/assets/upload", files=files, data=kwargs, headers=extra_headers, params=params)

    return _upload
