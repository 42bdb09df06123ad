"""Audio inspection utilities for recorded clips.

Decodes encoded clip bytes (WAV, FLAC, OGG) with soundfile to report
duration and to flag takes that are effectively silent.
"""

import io
import logging

import numpy as np
import soundfile as sf

logger = logging.getLogger(__name__)


class AudioProcessor:
    """Probes encoded audio payloads produced by the capture widget.

    Containers libsndfile cannot read (e.g. WebM/Opus) are reported as
    unknown rather than failing the recording.
    """

    def __init__(self, silence_threshold: float = 0.01) -> None:
        """Initialize the audio processor.

        Args:
            silence_threshold: RMS energy below this value is considered silence.
        """
        self.silence_threshold = silence_threshold

    def decode(self, data: bytes) -> tuple[np.ndarray, int] | None:
        """Decode an encoded clip to mono float32 samples.

        Returns:
            ``(samples, sample_rate)`` or None when the payload cannot be decoded.
        """
        if not data:
            return None
        try:
            samples, sample_rate = sf.read(io.BytesIO(data), dtype="float32")
        except (sf.LibsndfileError, RuntimeError, TypeError) as exc:
            logger.debug("Could not decode audio payload (%d bytes): %s", len(data), exc)
            return None

        # Convert to mono if stereo
        if samples.ndim > 1:
            samples = samples.mean(axis=1)
        return samples, sample_rate

    def probe_duration(self, data: bytes) -> float | None:
        """Return clip duration in seconds, or None if it cannot be determined."""
        decoded = self.decode(data)
        if decoded is None:
            return None
        samples, sample_rate = decoded
        if sample_rate <= 0:
            return None
        return len(samples) / sample_rate

    def is_silent(self, data: bytes) -> bool | None:
        """Check whether a clip is silence based on RMS energy.

        Returns:
            True/False, or None when the payload cannot be decoded.
        """
        decoded = self.decode(data)
        if decoded is None:
            return None
        samples, _ = decoded
        if len(samples) == 0:
            return True
        rms = np.sqrt(np.mean(samples**2))
        return float(rms) < self.silence_threshold
