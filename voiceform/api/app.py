"""
FastAPI application factory.

``create_app()`` assembles the read API with CORS, error handlers,
routers, and the health endpoint. The module-level ``app`` instance
allows ``uvicorn voiceform.api.app:app --reload``.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from voiceform import __version__
from voiceform.api.middleware.error_handler import register_error_handlers
from voiceform.api.routes import interviews, media
from voiceform.core.config import get_settings
from voiceform.core.models import HealthResponse
from voiceform.core.utils import configure_logging
from voiceform.services.storage.database import close_db, init_db


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Create tables on startup, dispose the engine on shutdown."""
    configure_logging(get_settings().log_level)
    await init_db()
    yield
    await close_db()


def create_app() -> FastAPI:
    """Build and return a fully configured FastAPI application."""

    app = FastAPI(
        title="VoiceForm",
        description="Read access to submitted interviews and their audio answers.",
        version=__version__,
        lifespan=lifespan,
    )

    # -- CORS --
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:8501",  # Streamlit
        ],
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    # -- Error handlers --
    register_error_handlers(app)

    # -- Health check (root-level, not under /api/v1) --
    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        return HealthResponse(version=__version__, timestamp=datetime.now(UTC))

    # -- REST routes --
    app.include_router(interviews.router, prefix="/api/v1")
    app.include_router(media.router)

    return app


app = create_app()
