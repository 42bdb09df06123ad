"""
Capture capability abstraction.

A ``CaptureCapability`` turns a user gesture into a ``CaptureStream``: a
source of binary chunks that is finalized into one payload and must be
released exactly once so the device (and the browser's microphone
indicator) is freed.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable

from voiceform.core.exceptions import CaptureUnavailableError, RecordingStateError

logger = logging.getLogger(__name__)

ChunkListener = Callable[[bytes], None]


class CaptureStream(ABC):
    """A live capture producing binary chunks.

    Subclasses deliver device data through :meth:`push` and may override
    :meth:`_flush` (drain pending data before finalize) and :meth:`_close`
    (free the underlying device).
    """

    def __init__(self) -> None:
        self._chunks: list[bytes] = []
        self._listeners: list[ChunkListener] = []
        self._finalized = False
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    @property
    def buffered_bytes(self) -> int:
        return sum(len(c) for c in self._chunks)

    def on_chunk(self, listener: ChunkListener) -> None:
        """Register a callback invoked for every non-empty chunk."""
        self._listeners.append(listener)

    def push(self, chunk: bytes) -> None:
        """Buffer one chunk from the device. Empty chunks are dropped."""
        if self._finalized or self._released:
            raise RecordingStateError("Cannot push audio into a finished capture stream")
        if not chunk:
            return
        self._chunks.append(chunk)
        for listener in self._listeners:
            listener(chunk)

    def finalize(self) -> bytes:
        """Stop producing chunks and return the concatenated payload."""
        if not self._finalized:
            self._flush()
            self._finalized = True
        return b"".join(self._chunks)

    def release(self) -> None:
        """Free the underlying device. Safe to call more than once."""
        if self._released:
            return
        self._released = True
        self._close()

    def _flush(self) -> None:  # noqa: B027
        """Hook: push any data still held by the device."""

    @abstractmethod
    def _close(self) -> None:
        """Hook: release the hardware/browser stream."""


class CaptureCapability(ABC):
    """Interface for anything that can grant a capture stream."""

    @abstractmethod
    def request_stream(self) -> CaptureStream:
        """Request exclusive access to the capture device.

        Raises:
            CaptureUnavailableError: Permission denied or device busy.
        """


# ---------------------------------------------------------------------------
# Streamlit audio_input adapter
# ---------------------------------------------------------------------------


class ReplayCaptureStream(CaptureStream):
    """Replays an already-recorded payload as fixed-size chunks."""

    def __init__(self, payload: bytes, chunk_size: int = 32000) -> None:
        super().__init__()
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._payload = payload
        self._chunk_size = chunk_size
        self._offset = 0

    def pump(self, max_chunks: int | None = None) -> int:
        """Push up to *max_chunks* chunks (all remaining if None). Returns count pushed."""
        pushed = 0
        while self._offset < len(self._payload):
            if max_chunks is not None and pushed >= max_chunks:
                break
            chunk = self._payload[self._offset : self._offset + self._chunk_size]
            self._offset += self._chunk_size
            self.push(chunk)
            pushed += 1
        return pushed

    def _flush(self) -> None:
        self.pump()

    def _close(self) -> None:
        # Drop the reference so the browser payload can be collected
        self._payload = b""
        logger.debug("Replay capture stream released")


class AudioInputCapture(CaptureCapability):
    """Capability backed by the bytes of one ``st.audio_input`` recording.

    The browser handles the permission prompt; an absent or empty payload is
    treated as a denied/unavailable device.
    """

    def __init__(self, payload: bytes | None, chunk_size: int = 32000) -> None:
        self._payload = payload
        self._chunk_size = chunk_size
        self._granted = False

    def request_stream(self) -> CaptureStream:
        if not self._payload:
            raise CaptureUnavailableError()
        if self._granted:
            raise CaptureUnavailableError("Microphone is busy with another recording")
        self._granted = True
        return ReplayCaptureStream(self._payload, chunk_size=self._chunk_size)
