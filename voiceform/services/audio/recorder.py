"""
Recording session — one audio capture for one question.

States: idle -> preparing -> recording -> idle (with result)

The capture stream is released on every exit path (stop, failed start,
teardown), exactly once.
"""

import logging
from collections.abc import Callable
from enum import StrEnum

from voiceform.core.exceptions import CaptureUnavailableError, RecordingStateError
from voiceform.core.models import RecordedClip
from voiceform.services.audio.capture import CaptureCapability, CaptureStream
from voiceform.services.audio.processor import AudioProcessor

logger = logging.getLogger(__name__)


class RecordingState(StrEnum):
    """Lifecycle states of a recording session."""

    idle = "idle"
    preparing = "preparing"
    recording = "recording"


class RecordingSession:
    """Owns a single active capture and emits the finished clip.

    Args:
        question_id: Key of the question this session records for (logging only).
        capture: Capability used to obtain the capture stream.
        on_clip_completed: Called with each finished clip (the owning answer slot).
        content_type: Container type stamped on every clip.
        processor: Optional probe used to fill in clip duration.
    """

    def __init__(
        self,
        question_id: str,
        capture: CaptureCapability,
        on_clip_completed: Callable[[RecordedClip], None],
        content_type: str = "audio/wav",
        processor: AudioProcessor | None = None,
    ) -> None:
        self.question_id = question_id
        self._capture = capture
        self._on_clip_completed = on_clip_completed
        self._content_type = content_type
        self._processor = processor
        self._stream: CaptureStream | None = None
        self._state = RecordingState.idle
        self._chunk_count = 0
        self.last_clip: RecordedClip | None = None

    @property
    def state(self) -> RecordingState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state == RecordingState.recording

    @property
    def chunk_count(self) -> int:
        """Number of non-empty chunks buffered in the current take."""
        return self._chunk_count

    @property
    def stream(self) -> CaptureStream | None:
        return self._stream

    def start(self) -> None:
        """Request the capture device and begin buffering chunks.

        Raises:
            RecordingStateError: A take is already being prepared or recorded.
            CaptureUnavailableError: Permission denied or device error.
        """
        if self._state != RecordingState.idle:
            raise RecordingStateError(f"Recording for {self.question_id} is already {self._state}")

        self._state = RecordingState.preparing
        try:
            stream = self._capture.request_stream()
        except CaptureUnavailableError:
            self._state = RecordingState.idle
            logger.warning("Capture unavailable for question %s", self.question_id)
            raise
        except Exception as exc:
            self._state = RecordingState.idle
            logger.exception("Capture device error for question %s", self.question_id)
            raise CaptureUnavailableError(f"Could not access microphone: {exc}") from exc

        self._stream = stream
        self._chunk_count = 0
        stream.on_chunk(self._count_chunk)
        self._state = RecordingState.recording
        logger.debug("Recording started for question %s", self.question_id)

    def feed(self, chunk: bytes) -> None:
        """Buffer one chunk delivered by the device."""
        if self._state != RecordingState.recording or self._stream is None:
            raise RecordingStateError("Cannot buffer audio: no recording in progress")
        self._stream.push(chunk)

    def stop(self) -> RecordedClip | None:
        """Finalize the take, release the device and emit the clip.

        Returns:
            The finished clip, or None when nothing was captured (the empty
            take is discarded and not emitted).

        Raises:
            RecordingStateError: Called while not recording.
        """
        if self._state != RecordingState.recording or self._stream is None:
            raise RecordingStateError("Cannot stop: no recording in progress")

        try:
            data = self._stream.finalize()
        finally:
            self._release_stream()
            self._state = RecordingState.idle

        if not data:
            logger.warning("Discarding empty recording for question %s", self.question_id)
            return None

        duration = self._processor.probe_duration(data) if self._processor else None
        clip = RecordedClip(data=data, content_type=self._content_type, duration=duration)
        self.last_clip = clip
        logger.info(
            "Recording stopped for question %s (%d bytes, %d chunks)",
            self.question_id,
            clip.size,
            self._chunk_count,
        )
        self._on_clip_completed(clip)
        return clip

    def close(self) -> None:
        """Tear the session down, releasing the device if still held."""
        if self._stream is not None:
            logger.debug("Tearing down active recording for question %s", self.question_id)
        self._release_stream()
        self._state = RecordingState.idle

    def __enter__(self) -> "RecordingSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _count_chunk(self, _chunk: bytes) -> None:
        self._chunk_count += 1

    def _release_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.release()
