"""
SQLAlchemy ORM models for the local document/blob store.

Tables: ``interview_documents``, ``stored_blobs``.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from voiceform.services.storage.database import Base


class InterviewDocument(Base):
    """One document written through ``create_document``."""

    __tablename__ = "interview_documents"
    __table_args__ = (Index("ix_interview_documents_collection_created", "collection", "created_at"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    collection: Mapped[str] = mapped_column(String(100))
    body: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))

    def __repr__(self) -> str:
        return f"<InterviewDocument id={self.id!r} collection={self.collection!r}>"


class StoredBlob(Base):
    """Metadata for an uploaded file kept on the local filesystem."""

    __tablename__ = "stored_blobs"

    path: Mapped[str] = mapped_column(String(512), primary_key=True)
    content_type: Mapped[str] = mapped_column(String(100))
    size: Mapped[int] = mapped_column(default=0)
    custom_metadata: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))

    def __repr__(self) -> str:
        return f"<StoredBlob path={self.path!r} size={self.size}>"
