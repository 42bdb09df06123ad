"""
CRUD repository for the local document/blob store.

``DocumentRepository`` receives an ``AsyncSession`` and provides all
data-access methods.  It calls ``flush()`` rather than ``commit()`` so
that transaction boundaries are controlled by the caller (typically
:func:`get_session`).
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from voiceform.core.exceptions import DocumentNotFoundError
from voiceform.services.storage.models_db import InterviewDocument, StoredBlob

logger = logging.getLogger(__name__)


class DocumentRepository:
    """Data-access layer for stored interviews and blob metadata.

    Args:
        session: An active SQLAlchemy ``AsyncSession``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def create_document(self, collection: str, body: dict) -> InterviewDocument:
        """Insert a new document and return it with its generated ID."""
        document = InterviewDocument(collection=collection, body=body)
        self._session.add(document)
        await self._session.flush()
        return document

    async def get_document(self, document_id: str) -> InterviewDocument:
        """Return a document by ID or raise :class:`DocumentNotFoundError`."""
        document = await self._session.get(InterviewDocument, document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        return document

    async def list_documents(
        self,
        collection: str,
        limit: int = 50,
        offset: int = 0,
    ) -> list[InterviewDocument]:
        """Return documents of *collection*, newest first."""
        stmt = (
            select(InterviewDocument)
            .where(InterviewDocument.collection == collection)
            .order_by(InterviewDocument.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def count_documents(self, collection: str) -> int:
        stmt = select(func.count()).select_from(InterviewDocument).where(
            InterviewDocument.collection == collection
        )
        result = await self._session.execute(stmt)
        return int(result.scalar_one())

    # ------------------------------------------------------------------
    # Blobs
    # ------------------------------------------------------------------

    async def record_blob(
        self,
        path: str,
        content_type: str,
        size: int,
        custom_metadata: dict | None = None,
    ) -> StoredBlob:
        """Insert or overwrite blob metadata for *path*."""
        blob = await self._session.get(StoredBlob, path)
        if blob is None:
            blob = StoredBlob(path=path)
            self._session.add(blob)
        else:
            logger.warning("Overwriting existing blob %s", path)
        blob.content_type = content_type
        blob.size = size
        blob.custom_metadata = dict(custom_metadata or {})
        await self._session.flush()
        return blob

    async def get_blob(self, path: str) -> StoredBlob | None:
        return await self._session.get(StoredBlob, path)
