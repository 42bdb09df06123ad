"""Ephemeral local preview handles for recorded clips.

A handle is an opaque token mapped to the clip bytes until its owner
releases it, so the UI never holds clip data beyond the slot that owns it.
"""

import logging
import uuid

from voiceform.core.models import RecordedClip

logger = logging.getLogger(__name__)


class PreviewRegistry:
    """Holds clip payloads for audio preview, keyed by short-lived handles."""

    def __init__(self) -> None:
        self._entries: dict[str, RecordedClip] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, handle: object) -> bool:
        return handle in self._entries

    def create(self, clip: RecordedClip) -> str:
        """Register *clip* and return a new handle for it."""
        handle = f"preview-{uuid.uuid4().hex}"
        self._entries[handle] = clip
        return handle

    def resolve(self, handle: str) -> RecordedClip | None:
        """Return the clip behind *handle*, or None once released."""
        return self._entries.get(handle)

    def release(self, handle: str) -> bool:
        """Drop *handle*. Returns False if it was already released."""
        if self._entries.pop(handle, None) is None:
            logger.debug("Preview handle %s already released", handle)
            return False
        return True
