"""
Answer slot — per-question owner of the text note and recorded clips.

Every local edit recomputes the merged answer and forwards it upward through
the ``report`` callback ``(question_id, text, clips)``. Destructive actions
(deleting a clip, replacing a take under the "replace" policy) go through an
explicit request -> confirm / cancel step.
"""

import logging
from collections.abc import Callable
from typing import Literal

from voiceform.core.exceptions import ClipNotFoundError, RecordingStateError
from voiceform.core.models import Answer, Question, RecordedClip
from voiceform.services.answers.preview import PreviewRegistry

logger = logging.getLogger(__name__)

ReportCallback = Callable[[str, str, list[RecordedClip]], None]
RecordingPolicy = Literal["append", "replace"]


class AnswerSlot:
    """Merges text and clips for one question and owns their preview handles.

    Args:
        question: The question this slot answers.
        report: Receives the merged answer after every change.
        previews: Registry that issues preview handles for clips.
        policy: "append" keeps every take; "replace" swaps the previous take
            after confirmation.
    """

    def __init__(
        self,
        question: Question,
        report: ReportCallback,
        previews: PreviewRegistry | None = None,
        policy: RecordingPolicy = "append",
    ) -> None:
        self.question = question
        self._report = report
        self._previews = previews if previews is not None else PreviewRegistry()
        self._policy = policy
        self._text = ""
        self._clips: list[RecordedClip] = []
        self._handles: list[str] = []
        self._pending_deletion: int | None = None
        self._pending_replace = False
        self._replace_confirmed = False
        self._closed = False

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def question_id(self) -> str:
        return self.question.id

    @property
    def policy(self) -> RecordingPolicy:
        return self._policy

    @property
    def text(self) -> str:
        return self._text

    @property
    def clips(self) -> tuple[RecordedClip, ...]:
        return tuple(self._clips)

    @property
    def preview_handles(self) -> tuple[str, ...]:
        """Preview handles aligned index-for-index with :attr:`clips`."""
        return tuple(self._handles)

    @property
    def answer(self) -> Answer:
        return Answer(text=self._text, clips=list(self._clips))

    @property
    def pending_deletion(self) -> int | None:
        return self._pending_deletion

    @property
    def pending_replace(self) -> bool:
        return self._pending_replace

    @property
    def ready_for_take(self) -> bool:
        """Whether a new take may be recorded without losing an unconfirmed one."""
        if self._policy == "replace" and self._clips:
            return self._replace_confirmed
        return True

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def on_text_changed(self, new_text: str) -> None:
        """Store the raw text (trimming happens at submission) and forward."""
        self._ensure_open()
        self._text = new_text
        self._forward()

    def on_clip_completed(self, clip: RecordedClip) -> None:
        """Accept a finished take from the recording session and forward.

        Raises:
            RecordingStateError: Replace policy and the swap of the previous
                take was never confirmed (or was cancelled).
        """
        self._ensure_open()
        if not self.ready_for_take:
            raise RecordingStateError(
                f"Replacing the recording for {self.question_id} was not confirmed"
            )
        if self._policy == "replace" and self._clips:
            logger.info("Replacing previous recording for question %s", self.question_id)
            for handle in self._handles:
                self._previews.release(handle)
            self._clips.clear()
            self._handles.clear()
        self._pending_replace = False
        self._replace_confirmed = False
        self._pending_deletion = None

        self._clips.append(clip)
        self._handles.append(self._previews.create(clip))
        self._forward()

    def request_new_recording(self) -> bool:
        """Ask whether a new take may start.

        Returns:
            True when the user must confirm first (replace policy with an
            existing take), False when recording may start immediately.
        """
        self._ensure_open()
        if self._policy == "replace" and self._clips:
            self._pending_replace = True
            return True
        return False

    def confirm_replace(self) -> None:
        """Accept the pending replacement; the old take is dropped when the new one completes."""
        if not self._pending_replace:
            raise RecordingStateError("No replacement is awaiting confirmation")
        self._pending_replace = False
        self._replace_confirmed = True

    def cancel_replace(self) -> None:
        self._pending_replace = False
        self._replace_confirmed = False

    def request_clip_deletion(self, index: int) -> None:
        """Mark the clip at *index* for deletion, pending confirmation."""
        self._ensure_open()
        if not 0 <= index < len(self._clips):
            raise ClipNotFoundError(self.question_id, index)
        self._pending_deletion = index

    def confirm_clip_deletion(self) -> RecordedClip:
        """Remove the clip marked by :meth:`request_clip_deletion` and forward.

        Returns:
            The removed clip.
        """
        index = self._pending_deletion
        if index is None:
            raise RecordingStateError("No clip deletion is awaiting confirmation")
        self._pending_deletion = None

        removed = self._clips.pop(index)
        self._previews.release(self._handles.pop(index))
        logger.info("Deleted recording %d for question %s", index + 1, self.question_id)
        self._forward()
        return removed

    def cancel_clip_deletion(self) -> None:
        self._pending_deletion = None

    def close(self) -> None:
        """Release every preview handle held by this slot."""
        for handle in self._handles:
            self._previews.release(handle)
        self._handles.clear()
        self._closed = True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _forward(self) -> None:
        self._report(self.question_id, self._text, list(self._clips))

    def _ensure_open(self) -> None:
        if self._closed:
            raise RecordingStateError(f"Answer slot {self.question_id} is closed")
