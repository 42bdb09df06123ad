"""
VoiceForm exception hierarchy.

All application-specific exceptions inherit from VoiceFormError,
enabling centralized error handling in the submission coordinator
and the API middleware layer.
"""

from datetime import UTC, datetime


class VoiceFormError(Exception):
    """Base exception for all VoiceForm errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "VOICEFORM_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Capture
# ---------------------------------------------------------------------------


class CaptureUnavailableError(VoiceFormError):
    """Raised when microphone permission is denied or the device is busy."""

    def __init__(
        self,
        detail: str = "Could not access microphone. "
        "Please ensure you have granted permission.",
    ) -> None:
        super().__init__(detail=detail, code="CAPTURE_UNAVAILABLE", status_code=503)


class RecordingStateError(VoiceFormError):
    """Raised on an invalid recording transition (e.g. stop while idle)."""

    def __init__(self, detail: str = "Invalid recording state") -> None:
        super().__init__(detail=detail, code="RECORDING_STATE", status_code=409)


class ClipNotFoundError(VoiceFormError):
    """Raised when a clip index does not exist in an answer slot."""

    def __init__(self, question_id: str, index: int) -> None:
        super().__init__(
            detail=f"No clip {index} for question {question_id}",
            code="CLIP_NOT_FOUND",
            status_code=404,
        )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class IncompleteAnswersError(VoiceFormError):
    """Raised when at least one question has neither text nor audio."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            detail=f"Please answer every question (missing: {', '.join(self.missing)})",
            code="INCOMPLETE_ANSWERS",
            status_code=422,
        )


class ConsentRequiredError(VoiceFormError):
    """Raised when the consent toggle is not affirmed."""

    def __init__(self) -> None:
        super().__init__(
            detail="Please accept the privacy policy before submitting",
            code="CONSENT_REQUIRED",
            status_code=422,
        )


class PersonalInfoIncompleteError(VoiceFormError):
    """Raised when the personal-info block is enabled but not filled in."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            detail=f"Please fill in: {', '.join(self.missing)}",
            code="PERSONAL_INFO_INCOMPLETE",
            status_code=422,
        )


class SubmissionInProgressError(VoiceFormError):
    """Raised when submit is triggered while a submission is in flight."""

    def __init__(self) -> None:
        super().__init__(
            detail="A submission is already in progress",
            code="SUBMISSION_IN_PROGRESS",
            status_code=409,
        )


class AlreadySubmittedError(VoiceFormError):
    """Raised when submit is triggered after a successful submission."""

    def __init__(self) -> None:
        super().__init__(
            detail="This interview has already been submitted",
            code="ALREADY_SUBMITTED",
            status_code=409,
        )


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class UploadFailedError(VoiceFormError):
    """Raised when uploading a clip for a question fails."""

    def __init__(self, question_id: str) -> None:
        self.question_id = question_id
        super().__init__(
            detail=f"Failed to upload audio for question {question_id}",
            code="UPLOAD_FAILED",
            status_code=502,
        )


class PersistFailedError(VoiceFormError):
    """Raised when the final document write fails."""

    def __init__(self, detail: str = "Failed to save interview. Please try again.") -> None:
        super().__init__(detail=detail, code="PERSIST_FAILED", status_code=502)


class DocumentNotFoundError(VoiceFormError):
    """Raised when a stored interview document does not exist."""

    def __init__(self, document_id: str) -> None:
        super().__init__(
            detail=f"Interview not found: {document_id}",
            code="DOCUMENT_NOT_FOUND",
            status_code=404,
        )


class QuestionCatalogError(VoiceFormError):
    """Raised when the configured question file cannot be used."""

    def __init__(self, detail: str = "Invalid question catalogue") -> None:
        super().__init__(detail=detail, code="QUESTION_CATALOG", status_code=500)


class MediaNotFoundError(VoiceFormError):
    """Raised when a requested media object does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(detail=f"Media not found: {path}", code="MEDIA_NOT_FOUND", status_code=404)
