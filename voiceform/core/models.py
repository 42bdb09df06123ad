"""
Pydantic v2 domain and API models.

Capture side: Question, RecordedClip, Answer, PersonalInfo
Submission side: InterviewSubmission (serialized with camelCase keys), progress
Read API: health, stored interview documents, error envelope
"""

import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Capture
# ---------------------------------------------------------------------------


class Question(BaseModel):
    """One interview question. Key is derived from its position (q0, q1, ...)."""

    model_config = ConfigDict(frozen=True)

    id: str
    index: int
    text: str


class RecordedClip(BaseModel):
    """One recorded audio take for a question."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    data: bytes
    content_type: str = "audio/wav"
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    duration: float | None = None  # seconds, when the container can be probed

    @property
    def size(self) -> int:
        return len(self.data)


class Answer(BaseModel):
    """Merged text + clip set for one question."""

    text: str = ""
    clips: list[RecordedClip] = Field(default_factory=list)

    @property
    def is_answered(self) -> bool:
        """An answer counts once it has non-blank text or at least one clip."""
        return self.text.strip() != "" or len(self.clips) > 0

    @property
    def has_audio(self) -> bool:
        return len(self.clips) > 0


class PersonalInfo(BaseModel):
    """Optional respondent details shown above the questions."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = ""
    company: str = ""
    position: str = ""

    def missing_fields(self) -> list[str]:
        """Return the names of fields that are still blank."""
        return [field for field, value in self.model_dump().items() if not value.strip()]


# ---------------------------------------------------------------------------
# Submission record
# ---------------------------------------------------------------------------


class _RecordModel(BaseModel):
    """Base for the immutable submission record (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class SubmissionAnswer(_RecordModel):
    """One question's entry in the stored interview."""

    question_id: str
    question_text: str
    text_answer: str
    audio_urls: tuple[str, ...] = ()
    has_audio: bool = False


class SubmissionMetadata(_RecordModel):
    """Aggregate counters stored alongside the answers."""

    total_questions: int
    answered_questions: int
    questions_with_audio: int


class InterviewSubmission(_RecordModel):
    """The terminal record written to the document store."""

    timestamp: str
    submitted_at: datetime
    personal_info: PersonalInfo | None = None
    answers: tuple[SubmissionAnswer, ...]
    metadata: SubmissionMetadata

    def to_record(self) -> dict[str, Any]:
        """Return the document body with camelCase keys.

        Datetimes stay ``datetime`` objects so each gateway can encode them
        natively (Firestore timestamp vs. ISO string in SQLite JSON).
        """
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Submission progress
# ---------------------------------------------------------------------------


class SubmissionPhase(StrEnum):
    """Coarse stage of an in-flight submission."""

    started = "started"
    uploading = "uploading"
    persisting = "persisting"
    completed = "completed"
    failed = "failed"


class SubmissionProgress(BaseModel):
    """Snapshot handed to the progress callback."""

    phase: SubmissionPhase
    percent: float = 0.0
    completed_clips: int = 0
    total_clips: int = 0

    @property
    def upload_percent(self) -> float:
        """Share of clips uploaded so far (100 when there is nothing to upload)."""
        if self.total_clips == 0:
            return 100.0
        return self.completed_clips / self.total_clips * 100


# ---------------------------------------------------------------------------
# Read API
# ---------------------------------------------------------------------------


class InterviewDocumentResponse(BaseModel):
    """A stored interview as returned by the read API."""

    id: str
    collection: str
    created_at: datetime
    record: dict[str, Any]


class InterviewSummaryResponse(BaseModel):
    """Compact listing entry for stored interviews."""

    id: str
    created_at: datetime
    timestamp: str | None = None
    answered_questions: int = 0
    questions_with_audio: int = 0


class ErrorResponse(BaseModel):
    """Standard error envelope returned by the API."""

    detail: str
    code: str
    timestamp: str
