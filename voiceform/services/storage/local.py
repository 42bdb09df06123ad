"""
Local persistence gateway.

Blobs are written under ``media_dir`` and indexed in SQLite; documents are
stored as JSON rows. Returned URLs point at the read API's ``/media`` route.
"""

import asyncio
import logging
from pathlib import Path, PurePosixPath
from typing import Any
from urllib.parse import quote

from pydantic_core import to_jsonable_python

from voiceform.core.config import get_settings
from voiceform.services.storage.database import get_session
from voiceform.services.storage.gateway import PersistenceGateway
from voiceform.services.storage.repository import DocumentRepository

logger = logging.getLogger(__name__)


def normalize_blob_path(path: str) -> str:
    """Validate an object path and return it in canonical POSIX form.

    Raises:
        ValueError: Empty, absolute, or escaping (``..``) paths.
    """
    pure = PurePosixPath(path)
    if not path or pure.is_absolute() or ".." in pure.parts:
        raise ValueError(f"Invalid blob path: {path!r}")
    return str(pure)


class LocalGateway(PersistenceGateway):
    """Filesystem + SQLite implementation of :class:`PersistenceGateway`.

    Args:
        media_dir: Root directory for uploaded files.
        public_base_url: Base URL of the read API serving ``/media``.
    """

    def __init__(
        self,
        media_dir: str | None = None,
        public_base_url: str | None = None,
    ) -> None:
        settings = get_settings()
        self._media_dir = Path(media_dir or settings.media_dir)
        self._public_base_url = (public_base_url or settings.public_base_url).rstrip("/")

    @property
    def media_dir(self) -> Path:
        return self._media_dir

    def url_for(self, path: str) -> str:
        return f"{self._public_base_url}/media/{quote(path)}"

    def resolve(self, path: str) -> Path:
        """Absolute filesystem location for an object path."""
        return self._media_dir / normalize_blob_path(path)

    async def upload_blob(
        self,
        data: bytes,
        path: str,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> str:
        object_path = normalize_blob_path(path)
        target = self._media_dir / object_path
        await asyncio.to_thread(self._write_file, target, data)

        async with get_session() as session:
            repo = DocumentRepository(session)
            await repo.record_blob(object_path, content_type, len(data), metadata)

        logger.debug("Stored %d bytes at %s", len(data), target)
        return self.url_for(object_path)

    async def create_document(self, collection: str, record: dict[str, Any]) -> str:
        body = to_jsonable_python(record)
        async with get_session() as session:
            repo = DocumentRepository(session)
            document = await repo.create_document(collection, body)
        logger.info("Created document %s in %s", document.id, collection)
        return document.id

    @staticmethod
    def _write_file(target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
