from __future__ import annotations

import uuid

import pytest
from starlette.testclient import TestClient

from catalog_api.core.config import Settings
from catalog_api.core.database import Database
from catalog_api.core.errors import UploadError
from catalog_api.main import create_app
from catalog_api.models.provider import Provider
from catalog_api.services.object_storage import ImageUploader, UploadedImage


class FakeUploader(ImageUploader):
    """Keeps uploads in memory and hands back CDN-looking URIs."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.uploaded: list[tuple[str, bytes]] = []

    async def upload(self, content, filename=None):
        if self.fail:
            raise UploadError("Image upload failed")
        self.uploaded.append((filename, content))
        return UploadedImage(uri=f"https://cdn.test/{len(self.uploaded)}-{filename}")


def add_provider(db, provider_type: str, name: str = "Provider") -> Provider:
    provider = Provider(
        id=uuid.uuid4().hex,
        type=provider_type,
        name=name,
        services=[] if provider_type == "individual" else None,
    )
    db.add(provider)
    db.commit()
    db.refresh(provider)
    return provider


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        DATABASE_URL="sqlite://",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def db():
    database = Database("sqlite://")
    database.create_all()
    session = database.session()
    try:
        yield session
    finally:
        session.close()
        database.dispose()


@pytest.fixture
def workshop(db) -> Provider:
    return add_provider(db, "workshop", "Fast Lane Garage")


@pytest.fixture
def technician(db) -> Provider:
    return add_provider(db, "individual", "Omar the Mechanic")


@pytest.fixture
def uploader() -> FakeUploader:
    return FakeUploader()


@pytest.fixture
def app(settings, uploader):
    return create_app(settings, uploader=uploader)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def register_provider(client, provider_type: str, name: str = "Provider") -> str:
    resp = client.post("/providers", json={"type": provider_type, "name": name})
    assert resp.status_code == 201, resp.text
    return resp.json()["provider"]["id"]
