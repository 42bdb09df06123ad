"""
Interview read endpoints.

Lists and returns documents written by the local gateway. All endpoints
delegate to ``DocumentRepository`` — no business logic here.
"""

import logging

from fastapi import APIRouter, Query, Response

from voiceform.core.config import get_settings
from voiceform.core.models import InterviewDocumentResponse, InterviewSummaryResponse
from voiceform.services.storage.database import get_session
from voiceform.services.storage.models_db import InterviewDocument
from voiceform.services.storage.repository import DocumentRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/interviews", tags=["interviews"])


def _to_summary(document: InterviewDocument) -> InterviewSummaryResponse:
    """Condense a stored document into a listing entry."""
    metadata = document.body.get("metadata") or {}
    return InterviewSummaryResponse(
        id=document.id,
        created_at=document.created_at,
        timestamp=document.body.get("timestamp"),
        answered_questions=metadata.get("answeredQuestions", 0),
        questions_with_audio=metadata.get("questionsWithAudio", 0),
    )


@router.get("", response_model=list[InterviewSummaryResponse])
async def list_interviews(
    response: Response,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    """List stored interviews, newest first.

    The size of the whole collection is returned in ``X-Total-Count`` so a
    reader can page through it.
    """
    collection = get_settings().document_collection
    async with get_session() as session:
        repo = DocumentRepository(session)
        documents = await repo.list_documents(collection, limit=limit, offset=offset)
        total = await repo.count_documents(collection)
    response.headers["X-Total-Count"] = str(total)
    return [_to_summary(d) for d in documents]


@router.get("/{document_id}", response_model=InterviewDocumentResponse)
async def get_interview(document_id: str):
    """Return one stored interview with its full record."""
    async with get_session() as session:
        repo = DocumentRepository(session)
        document = await repo.get_document(document_id)
    return InterviewDocumentResponse(
        id=document.id,
        collection=document.collection,
        created_at=document.created_at,
        record=document.body,
    )
