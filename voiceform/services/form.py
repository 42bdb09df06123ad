"""
Interview form — wires answer slots, recording sessions and the coordinator.

One ``InterviewForm`` lives per respondent (Streamlit session). Each question
gets an :class:`AnswerSlot` whose report callback feeds the shared
:class:`SubmissionCoordinator`; recordings are captured through short-lived
:class:`RecordingSession` objects that hand their clip to the slot.
"""

import logging
from collections.abc import Sequence

from voiceform.core.config import Settings, get_settings
from voiceform.core.exceptions import CaptureUnavailableError, RecordingStateError
from voiceform.core.models import PersonalInfo, Question, RecordedClip
from voiceform.services.answers.preview import PreviewRegistry
from voiceform.services.answers.slot import AnswerSlot
from voiceform.services.audio.capture import CaptureCapability
from voiceform.services.audio.processor import AudioProcessor
from voiceform.services.audio.recorder import RecordingSession
from voiceform.services.storage.gateway import PersistenceGateway
from voiceform.services.submission import SubmissionCoordinator, SubmissionResult

logger = logging.getLogger(__name__)


class InterviewForm:
    """Per-respondent form state.

    Args:
        questions: The fixed question set.
        gateway: Shared persistence gateway.
        settings: Application settings (defaults to ``get_settings()``).
        processor: Audio probe for clip durations.
    """

    def __init__(
        self,
        questions: Sequence[Question],
        gateway: PersistenceGateway,
        settings: Settings | None = None,
        processor: AudioProcessor | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._processor = processor or AudioProcessor()
        self.previews = PreviewRegistry()
        self.personal_info = PersonalInfo()
        self.consent = False
        self.coordinator = SubmissionCoordinator(
            questions,
            gateway,
            collection=self._settings.document_collection,
            storage_prefix=self._settings.storage_prefix,
            audio_extension=self._settings.audio_extension,
            concurrent_uploads=self._settings.upload_concurrency == "concurrent",
            collect_personal_info=self._settings.collect_personal_info,
        )
        self.slots: dict[str, AnswerSlot] = {
            question.id: AnswerSlot(
                question,
                self.coordinator.report_answer,
                self.previews,
                policy=self._settings.recording_policy,
            )
            for question in questions
        }
        self._active: dict[str, RecordingSession] = {}

    @property
    def questions(self) -> tuple[Question, ...]:
        return self.coordinator.questions

    @property
    def completion(self) -> float:
        return self.coordinator.completion

    @property
    def processor(self) -> AudioProcessor:
        return self._processor

    def slot(self, question_id: str) -> AnswerSlot:
        return self.slots[question_id]

    def recording_session(self, question_id: str) -> RecordingSession | None:
        return self._active.get(question_id)

    def start_recording(self, question_id: str, capture: CaptureCapability) -> RecordingSession:
        """Open a recording session for *question_id* and start capturing.

        Only one session may hold the capture device at a time.

        Raises:
            RecordingStateError: That question is already recording, or its
                previous take must first be confirmed for replacement.
            CaptureUnavailableError: Another question is recording, or the
                capture device could not be opened.
        """
        slot = self.slots[question_id]
        if question_id in self._active:
            raise RecordingStateError(f"Question {question_id} is already recording")
        if self._active:
            busy = next(iter(self._active))
            raise CaptureUnavailableError(
                f"Microphone is busy (recording for question {busy}). "
                "Please stop that recording first."
            )
        if not slot.ready_for_take:
            raise RecordingStateError(
                f"Confirm replacing the recording for {question_id} before recording again"
            )
        session = RecordingSession(
            question_id,
            capture,
            slot.on_clip_completed,
            content_type=self._settings.audio_content_type,
            processor=self._processor,
        )
        try:
            session.start()
        except Exception:
            session.close()
            raise
        self._active[question_id] = session
        return session

    def stop_recording(self, question_id: str) -> RecordedClip | None:
        """Stop the active take for *question_id*; the slot receives the clip."""
        session = self._active.pop(question_id, None)
        if session is None:
            raise RecordingStateError(f"No recording in progress for {question_id}")
        with session:
            return session.stop()

    def record_clip(self, question_id: str, capture: CaptureCapability) -> RecordedClip | None:
        """Run a full take (start, drain the stream, stop) in one call."""
        session = self.start_recording(question_id, capture)
        try:
            return self.stop_recording(question_id)
        finally:
            session.close()

    def can_submit(self) -> bool:
        return self.coordinator.can_submit(self.consent, self.personal_info)

    async def submit(self) -> SubmissionResult:
        return await self.coordinator.submit(self.consent, self.personal_info)

    def close(self) -> None:
        """Release every recording device and preview handle."""
        for session in self._active.values():
            session.close()
        self._active.clear()
        for slot in self.slots.values():
            slot.close()
