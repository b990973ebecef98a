from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.imgdrop.core.config import Settings
from src.imgdrop.core.rate_limiter import limiter
from src.imgdrop.main import create_app
from tests.images import make_animated_gif, make_image_bytes

API_KEY = "k" * 40


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Ensure rate limiter state does not leak across tests."""
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture()
def api_key() -> str:
    return API_KEY


@pytest.fixture()
def upload_dir(tmp_path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture()
def settings(upload_dir, api_key) -> Settings:
    return Settings(
        api_key=api_key,
        upload_dir=upload_dir,
        base_url="https://img.example.com",
        rate_limit_enabled=False,
    )


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def auth_headers(api_key):
    return {"Authorization": f"Bearer {api_key}"}


@pytest.fixture()
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG")


@pytest.fixture()
def png_bytes() -> bytes:
    return make_image_bytes("PNG", mode="RGBA", color=(10, 200, 10, 128))


@pytest.fixture()
def webp_bytes() -> bytes:
    return make_image_bytes("WEBP")


@pytest.fixture()
def gif_bytes() -> bytes:
    return make_animated_gif()
