"""
Pytest configuration and fixtures.

Provides reusable fixtures for upload testing:
- settings: Settings pointing at a per-test upload directory
- storage: LocalFileStorage rooted in that directory
- make_upload: Spools bytes to a temp file as an UploadedFile
- client: TestClient with storage/settings dependencies overridden
- auth_headers: Bearer token for a regular user
"""

import os
from collections.abc import Callable, Generator
from io import BytesIO
from pathlib import Path

# Keep tests away from a developer's .env and ./uploads
os.environ.setdefault("UPLOAD_PATH", "./.test-uploads")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from PIL import Image

from apps.api.config import Settings, get_settings
from apps.api.uploads.models import UploadedFile
from packages.shared.storage import LocalFileStorage

# =============================================================================
# Image Helpers
# =============================================================================


def make_image_bytes(
    width: int = 10,
    height: int = 10,
    fmt: str = "PNG",
    color: tuple[int, int, int] = (200, 30, 30),
) -> bytes:
    """Render a solid-color image in memory."""
    buffer = BytesIO()
    mode = "RGBA" if fmt == "PNG" else "RGB"
    Image.new(mode, (width, height), color).save(buffer, format=fmt)
    return buffer.getvalue()


# =============================================================================
# Settings / Storage Fixtures
# =============================================================================


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def tmp_upload_dir(tmp_path: Path) -> Path:
    path = tmp_path / "tmp"
    path.mkdir()
    return path


@pytest.fixture
def settings(upload_dir: Path, tmp_upload_dir: Path) -> Settings:
    """Settings with processing disabled and local storage in tmp_path."""
    return Settings(
        _env_file=None,
        storage_backend="local",
        upload_path=str(upload_dir),
        upload_tmp_path=str(tmp_upload_dir),
        image_resize=False,
    )


@pytest.fixture
def processing_settings(settings: Settings) -> Settings:
    """Settings with the image transform stage enabled and small limits."""
    return settings.model_copy(
        update={"image_resize": True, "image_max_width": 100, "image_max_height": 100}
    )


@pytest.fixture
def storage(upload_dir: Path) -> LocalFileStorage:
    return LocalFileStorage(base_path=str(upload_dir))


@pytest.fixture
def make_upload(tmp_upload_dir: Path) -> Callable[..., UploadedFile]:
    """Factory spooling bytes to a temp file the way intake does."""
    counter = {"n": 0}

    def _make(
        data: bytes,
        original_name: str = "photo.png",
        content_type: str = "image/png",
    ) -> UploadedFile:
        counter["n"] += 1
        temp_path = tmp_upload_dir / f"upload-{counter['n']}"
        temp_path.write_bytes(data)
        return UploadedFile(
            original_name=original_name,
            content_type=content_type,
            size=len(data),
            temp_path=temp_path,
        )

    return _make


# =============================================================================
# App / Client Fixtures
# =============================================================================


@pytest.fixture(scope="module")
def app() -> FastAPI:
    """
    Import and return the FastAPI application.

    Scope: module (one app instance per test module)
    """
    from apps.api.main import app as fastapi_app

    return fastapi_app


@pytest.fixture
def client(
    app: FastAPI,
    settings: Settings,
    storage: LocalFileStorage,
) -> Generator[TestClient, None, None]:
    """
    Create a TestClient for the FastAPI app.

    Storage and settings are overridden per test; overrides are cleared
    before and after each test.
    """
    from apps.api.routers.uploads import get_storage

    app.dependency_overrides.clear()
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_storage] = lambda: storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Authorization header for a regular user."""
    from apps.api.auth.security import create_access_token

    token = create_access_token("42", "user@example.com", "user")
    return {"Authorization": f"Bearer {token}"}
