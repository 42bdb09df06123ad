"""Submission coordinator: validate, upload clips, build the record, persist.

Order within one submission:

1. validation (no gateway call if anything is missing)
2. upload of every clip, joined before anything else happens
3. construction of the immutable :class:`InterviewSubmission`
4. a single ``create_document`` call

Every failure is caught here and returned in :class:`SubmissionResult`;
answers are never cleared, so the user can simply submit again (uploads are
re-issued, previously uploaded files are left in place).

Usage::

    coordinator = SubmissionCoordinator(questions, gateway, on_progress=print)
    coordinator.report_answer("q0", "hello", [])
    result = await coordinator.submit(consent=True)
"""

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from types import MappingProxyType

from voiceform.core.exceptions import (
    AlreadySubmittedError,
    ConsentRequiredError,
    IncompleteAnswersError,
    PersistFailedError,
    PersonalInfoIncompleteError,
    SubmissionInProgressError,
    UploadFailedError,
    VoiceFormError,
)
from voiceform.core.models import (
    Answer,
    InterviewSubmission,
    PersonalInfo,
    Question,
    RecordedClip,
    SubmissionAnswer,
    SubmissionMetadata,
    SubmissionPhase,
    SubmissionProgress,
)
from voiceform.core.utils import utc_timestamp
from voiceform.services.progress import count_answered, progress, unanswered_questions
from voiceform.services.storage.gateway import PersistenceGateway

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[SubmissionProgress], None]

# Shown when there is nothing to upload: the document write is next
NO_UPLOAD_MIDPOINT = 50.0


class FormStatus(StrEnum):
    """Exit states of the form, plus the in-flight state between them."""

    form = "form"
    submitting = "submitting"
    submitted = "submitted"


@dataclass
class SubmissionResult:
    """Outcome of one submit attempt."""

    ok: bool
    document_id: str | None = None
    record: InterviewSubmission | None = None
    error: VoiceFormError | None = None


def clip_path(
    prefix: str, submission_timestamp: str, question_id: str, index: int, extension: str
) -> str:
    """Object path for the *index*-th (0-based) clip of a question."""
    return f"{prefix}/{submission_timestamp}/{question_id}_audio{index + 1}.{extension}"


def build_submission(
    questions: Sequence[Question],
    answers: Mapping[str, Answer],
    audio_urls: Mapping[str, Sequence[str]],
    timestamp: str,
    submitted_at: datetime,
    personal_info: PersonalInfo | None = None,
) -> InterviewSubmission:
    """Assemble the immutable record from answers and uploaded clip URLs.

    Entries follow question order. ``textAnswer`` is trimmed; ``answeredQuestions``
    counts local answers (text or clips), ``questionsWithAudio`` counts questions
    that ended up with at least one URL.
    """
    entries = []
    for question in questions:
        answer = answers.get(question.id, Answer())
        urls = tuple(audio_urls.get(question.id, ()))
        entries.append(
            SubmissionAnswer(
                question_id=question.id,
                question_text=question.text,
                text_answer=answer.text.strip(),
                audio_urls=urls,
                has_audio=len(urls) > 0,
            )
        )

    metadata = SubmissionMetadata(
        total_questions=len(questions),
        answered_questions=count_answered(answers.get(q.id, Answer()) for q in questions),
        questions_with_audio=sum(1 for entry in entries if entry.has_audio),
    )
    return InterviewSubmission(
        timestamp=timestamp,
        submitted_at=submitted_at,
        personal_info=personal_info,
        answers=tuple(entries),
        metadata=metadata,
    )


class _UploadTracker:
    """Counts finished uploads and reports overall progress."""

    def __init__(self, total: int, emit: Callable[[SubmissionProgress], None]) -> None:
        self.total = total
        self.completed = 0
        self._emit = emit

    def advance(self) -> None:
        self.completed += 1
        # The document write counts as one more step, so 100 is reserved for it
        percent = self.completed / (self.total + 1) * 100
        self._emit(
            SubmissionProgress(
                phase=SubmissionPhase.uploading,
                percent=percent,
                completed_clips=self.completed,
                total_clips=self.total,
            )
        )


class SubmissionCoordinator:
    """Collects reported answers and runs the one-shot submission.

    Args:
        questions: The fixed question set.
        gateway: Injected persistence gateway (built once at startup).
        collection: Document collection name.
        storage_prefix: First segment of every blob path.
        audio_extension: File extension for uploaded clips.
        concurrent_uploads: Fire all uploads and join, instead of one by one.
        collect_personal_info: Require a complete :class:`PersonalInfo`.
        on_progress: Receives a :class:`SubmissionProgress` at every step.
        clock: Returns the current UTC time (injectable for tests).
    """

    def __init__(
        self,
        questions: Sequence[Question],
        gateway: PersistenceGateway,
        *,
        collection: str = "interviews",
        storage_prefix: str = "interviews",
        audio_extension: str = "wav",
        concurrent_uploads: bool = True,
        collect_personal_info: bool = False,
        on_progress: ProgressCallback | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._questions = tuple(questions)
        self._question_ids = {q.id for q in self._questions}
        self._gateway = gateway
        self._collection = collection
        self._storage_prefix = storage_prefix.strip("/")
        self._audio_extension = audio_extension.lstrip(".")
        self._concurrent_uploads = concurrent_uploads
        self._collect_personal_info = collect_personal_info
        self._on_progress = on_progress
        self._clock = clock or (lambda: datetime.now(UTC))

        self._answers: dict[str, Answer] = {}
        self._status = FormStatus.form
        self._submit_progress = 0.0
        self._last_error: VoiceFormError | None = None
        self._document_id: str | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    @property
    def answers(self) -> Mapping[str, Answer]:
        return MappingProxyType(self._answers)

    @property
    def status(self) -> FormStatus:
        return self._status

    @property
    def is_pending(self) -> bool:
        return self._status == FormStatus.submitting

    @property
    def submit_progress(self) -> float:
        """Percentage of the current/last submission (0 after a failure)."""
        return self._submit_progress

    @property
    def last_error(self) -> VoiceFormError | None:
        return self._last_error

    @property
    def document_id(self) -> str | None:
        return self._document_id

    @property
    def completion(self) -> float:
        """Share of questions answered, as shown by the progress bar."""
        return progress(self._answers.values(), len(self._questions))

    def set_progress_callback(self, on_progress: ProgressCallback | None) -> None:
        self._on_progress = on_progress

    # ------------------------------------------------------------------
    # Answer reporting (called by answer slots)
    # ------------------------------------------------------------------

    def report_answer(self, question_id: str, text_answer: str, clips: list[RecordedClip]) -> None:
        """Store the merged answer forwarded by a slot."""
        if question_id not in self._question_ids:
            raise ValueError(f"Unknown question: {question_id}")
        self._answers[question_id] = Answer(text=text_answer, clips=list(clips))

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, consent: bool, personal_info: PersonalInfo | None = None) -> None:
        """Check every precondition without touching the network.

        Raises:
            IncompleteAnswersError: Some question has neither text nor clips.
            ConsentRequiredError: Consent not affirmed.
            PersonalInfoIncompleteError: Personal info required but incomplete.
        """
        missing = unanswered_questions(self._questions, self._answers)
        if missing:
            raise IncompleteAnswersError(missing)
        if not consent:
            raise ConsentRequiredError()
        if self._collect_personal_info:
            info = personal_info or PersonalInfo()
            missing_fields = info.missing_fields()
            if missing_fields:
                raise PersonalInfoIncompleteError(missing_fields)

    def can_submit(self, consent: bool, personal_info: PersonalInfo | None = None) -> bool:
        """Whether the submit control should be enabled."""
        if self._status != FormStatus.form:
            return False
        try:
            self.validate(consent, personal_info)
        except VoiceFormError:
            return False
        return True

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(
        self, consent: bool, personal_info: PersonalInfo | None = None
    ) -> SubmissionResult:
        """Run validation, uploads and the document write once."""
        if self._status == FormStatus.submitting:
            return SubmissionResult(ok=False, error=SubmissionInProgressError())
        if self._status == FormStatus.submitted:
            return SubmissionResult(ok=False, error=AlreadySubmittedError())

        try:
            self.validate(consent, personal_info)
        except VoiceFormError as exc:
            logger.info("Submission rejected: %s", exc.detail)
            return self._fail(exc)

        self._status = FormStatus.submitting
        self._last_error = None
        self._submit_progress = 0.0

        # Later edits must not leak into this submission
        answers = dict(self._answers)
        info = personal_info if self._collect_personal_info else None

        try:
            self._emit(SubmissionProgress(phase=SubmissionPhase.started, percent=0.0))
            submitted_at = self._clock()
            timestamp = utc_timestamp(submitted_at)
            audio_urls = await self._upload_all(answers, timestamp)
            record = build_submission(
                self._questions, answers, audio_urls, timestamp, submitted_at, info
            )
            document_id = await self._persist(record)
        except VoiceFormError as exc:
            return self._fail(exc)
        except Exception:
            logger.exception("Unexpected error during submission")
            return self._fail(PersistFailedError())

        self._status = FormStatus.submitted
        self._document_id = document_id
        total_clips = sum(len(a.clips) for a in answers.values())
        self._emit(
            SubmissionProgress(
                phase=SubmissionPhase.completed,
                percent=100.0,
                completed_clips=total_clips,
                total_clips=total_clips,
            )
        )
        logger.info(
            "Interview %s submitted (%d/%d answered, %d with audio)",
            document_id,
            record.metadata.answered_questions,
            record.metadata.total_questions,
            record.metadata.questions_with_audio,
        )
        return SubmissionResult(ok=True, document_id=document_id, record=record)

    async def _upload_all(
        self, answers: Mapping[str, Answer], timestamp: str
    ) -> dict[str, list[str]]:
        """Upload every clip; raise the first failure (in question/clip order)."""
        jobs = [
            (question.id, index, clip)
            for question in self._questions
            for index, clip in enumerate(answers.get(question.id, Answer()).clips)
        ]
        if not jobs:
            self._emit(
                SubmissionProgress(phase=SubmissionPhase.persisting, percent=NO_UPLOAD_MIDPOINT)
            )
            return {}

        tracker = _UploadTracker(len(jobs), self._emit)
        logger.info("Uploading %d clip(s) for submission %s", len(jobs), timestamp)

        if self._concurrent_uploads:
            # Wait for every upload to settle before deciding, so no late
            # progress event follows a failure
            outcomes = await asyncio.gather(
                *(self._upload_clip(qid, i, clip, timestamp, tracker) for qid, i, clip in jobs),
                return_exceptions=True,
            )
        else:
            outcomes = []
            for qid, i, clip in jobs:
                outcomes.append(await self._upload_clip(qid, i, clip, timestamp, tracker))

        urls: dict[str, list[str]] = {}
        for (question_id, _, _), outcome in zip(jobs, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                raise outcome
            urls.setdefault(question_id, []).append(outcome)
        return urls

    async def _upload_clip(
        self,
        question_id: str,
        index: int,
        clip: RecordedClip,
        timestamp: str,
        tracker: _UploadTracker,
    ) -> str:
        path = clip_path(
            self._storage_prefix, timestamp, question_id, index, self._audio_extension
        )
        try:
            url = await self._gateway.upload_blob(
                clip.data,
                path,
                clip.content_type,
                {"timeCreated": utc_timestamp()},
            )
        except Exception as exc:
            logger.exception("Failed to upload audio for question %s", question_id)
            raise UploadFailedError(question_id) from exc
        tracker.advance()
        return url

    async def _persist(self, record: InterviewSubmission) -> str:
        try:
            return await self._gateway.create_document(self._collection, record.to_record())
        except Exception as exc:
            logger.exception("Error saving interview")
            raise PersistFailedError() from exc

    def _fail(self, error: VoiceFormError) -> SubmissionResult:
        self._status = FormStatus.form
        self._last_error = error
        self._submit_progress = 0.0
        self._emit(SubmissionProgress(phase=SubmissionPhase.failed, percent=0.0))
        return SubmissionResult(ok=False, error=error)

    def _emit(self, update: SubmissionProgress) -> None:
        if update.phase != SubmissionPhase.failed:
            # Non-decreasing within one submission
            update = update.model_copy(
                update={"percent": max(update.percent, self._submit_progress)}
            )
        self._submit_progress = update.percent
        if self._on_progress is not None:
            self._on_progress(update)

