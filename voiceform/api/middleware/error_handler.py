"""
Error envelope for the read API.

Every error leaves the API as ``{"detail", "code", "timestamp"}`` so the
Streamlit side and any external reader can branch on ``code`` alone.
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from voiceform.core.exceptions import VoiceFormError

logger = logging.getLogger(__name__)


def _envelope(
    status_code: int, detail: str, code: str, timestamp: str | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": detail,
            "code": code,
            "timestamp": timestamp or datetime.now(UTC).isoformat(),
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the handlers for domain errors, bad query params and crashes."""

    @app.exception_handler(VoiceFormError)
    async def voiceform_error_handler(request: Request, exc: VoiceFormError) -> JSONResponse:
        # Missing interviews and media are routine; only log server-side faults
        if exc.status_code >= 500:
            logger.error("%s on %s: %s", exc.code, request.url.path, exc.detail)
        return _envelope(exc.status_code, exc.detail, exc.code, exc.timestamp)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _envelope(422, str(exc), "VALIDATION_ERROR")

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
        return _envelope(500, "Internal server error", "INTERNAL_ERROR")
