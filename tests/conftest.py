"""Shared pytest fixtures for the VoiceForm test suite.

Provides audio payloads, a small question set, a mocked persistence
gateway, settings isolated from the developer's ``.env`` and an in-memory
SQLite database.
"""

import io
import math
import struct
import wave
from unittest.mock import AsyncMock

import pytest

# ---------------------------------------------------------------------------
# Audio Fixtures
# ---------------------------------------------------------------------------


def _wav_bytes(frames: bytes, sample_rate: int = 16000) -> bytes:
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(frames)
    return buf.getvalue()


@pytest.fixture
def sample_wav_bytes():
    """1 second of 440Hz sine wave as a 16kHz, 16-bit mono WAV file.

    Returns:
        bytes: Encoded WAV payload, like the one ``st.audio_input`` returns.
    """
    sample_rate = 16000
    amplitude = 16000  # ~50% of max int16
    frames = b"".join(
        struct.pack("<h", int(amplitude * math.sin(2 * math.pi * 440.0 * i / sample_rate)))
        for i in range(sample_rate)
    )
    return _wav_bytes(frames, sample_rate)


@pytest.fixture
def silent_wav_bytes():
    """1 second of digital silence as a 16kHz, 16-bit mono WAV file."""
    return _wav_bytes(b"\x00\x00" * 16000)


# ---------------------------------------------------------------------------
# Domain Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def questions():
    """Three keyed questions (q0..q2)."""
    from voiceform.core.questions import build_questions

    return build_questions(["Erste Frage?", "Zweite Frage?", "Dritte Frage?"])


@pytest.fixture
def make_clip():
    """Factory for small in-memory clips."""
    from voiceform.core.models import RecordedClip

    def _make(data: bytes = b"RIFFfake-audio", content_type: str = "audio/wav"):
        return RecordedClip(data=data, content_type=content_type)

    return _make


@pytest.fixture
def mock_gateway():
    """Create a mock persistence gateway for unit testing.

    Returns:
        AsyncMock: Implements ``PersistenceGateway``; ``upload_blob`` returns a
        URL derived from the object path, ``create_document`` returns "doc-1".
    """
    from voiceform.services.storage.gateway import PersistenceGateway

    gateway = AsyncMock(spec=PersistenceGateway)

    async def _upload(data, path, content_type, metadata=None):
        return f"https://files.test/{path}"

    gateway.upload_blob.side_effect = _upload
    gateway.create_document.return_value = "doc-1"
    return gateway


@pytest.fixture
def settings(tmp_path):
    """Settings that ignore any ``.env`` file and point storage at *tmp_path*."""
    from voiceform.core.config import Settings

    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'voiceform.db'}",
        media_dir=str(tmp_path / "media"),
        public_base_url="http://test",
    )


# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with tables, dispose after test."""
    from sqlalchemy.ext.asyncio import create_async_engine

    from voiceform.services.storage import models_db  # noqa: F401
    from voiceform.services.storage.database import Base

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Yield an AsyncSession bound to the test engine; rolls back after test."""
    from sqlalchemy.ext.asyncio import async_sessionmaker

    factory = async_sessionmaker(db_engine, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def repository(db_session):
    """Return a DocumentRepository bound to the test session."""
    from voiceform.services.storage.repository import DocumentRepository

    return DocumentRepository(db_session)


@pytest.fixture
async def local_store(db_engine):
    """Inject the test engine into the database module (used by LocalGateway and routes)."""
    from voiceform.services.storage import database

    database._engine = db_engine
    database._session_factory = None  # force re-creation from new engine
    yield db_engine
    database.reset_engine()
