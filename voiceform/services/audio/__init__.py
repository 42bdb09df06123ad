"""
Audio module - capture abstraction, recording sessions and clip probing.
"""

from .capture import AudioInputCapture, CaptureCapability, CaptureStream, ReplayCaptureStream
from .processor import AudioProcessor
from .recorder import RecordingSession, RecordingState

__all__ = [
    "AudioInputCapture",
    "AudioProcessor",
    "CaptureCapability",
    "CaptureStream",
    "RecordingSession",
    "RecordingState",
    "ReplayCaptureStream",
]
