"""Integration test fixtures for VoiceForm.

Provides an async HTTP client for the read API that uses an in-memory
SQLite database and a temporary media directory.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from voiceform.api.app import create_app
from voiceform.core.config import get_settings
from voiceform.services.storage.local import LocalGateway


@pytest.fixture
def media_dir(tmp_path, monkeypatch):
    """Point ``MEDIA_DIR`` at a temp directory for the lifetime of the test."""
    path = tmp_path / "media"
    monkeypatch.setenv("MEDIA_DIR", str(path))
    get_settings.cache_clear()
    yield path
    get_settings.cache_clear()


@pytest.fixture
def app():
    """Create a fresh FastAPI application instance."""
    return create_app()


@pytest.fixture
async def async_client(app, local_store, media_dir):
    """AsyncClient backed by the in-memory test engine (see ``local_store``)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def local_gateway(local_store, media_dir):
    """Gateway writing into the same database and media directory as the API."""
    return LocalGateway(media_dir=str(media_dir), public_base_url="http://test")
