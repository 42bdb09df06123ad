"""
Process-wide UI runtime: settings, question set, gateway and event loop.

Streamlit scripts run synchronously, so async gateway calls go through one
persistent event loop (``AsyncRunner``). Keeping a single loop matters
because the async engine and HTTP client bind their connections to it.
"""

import asyncio
import logging
import threading
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any, TypeVar

import streamlit as st

from voiceform.core.config import Settings, get_settings
from voiceform.core.models import Question
from voiceform.core.questions import resolve_questions
from voiceform.core.utils import configure_logging
from voiceform.services.storage.database import get_engine, init_db
from voiceform.services.storage.gateway import PersistenceGateway, create_gateway

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncRunner:
    """Runs coroutines to completion on one long-lived event loop.

    Calls are serialized with a lock: only one coroutine drives the loop at a
    time, even when several browser sessions submit simultaneously.
    """

    def __init__(self) -> None:
        self._loop = asyncio.new_event_loop()
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._loop.is_closed()

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        with self._lock:
            return self._loop.run_until_complete(coro)

    def close(self) -> None:
        with self._lock:
            if not self._loop.is_closed():
                self._loop.close()


@dataclass
class Runtime:
    """Objects shared by every browser session."""

    settings: Settings
    questions: tuple[Question, ...]
    gateway: PersistenceGateway
    runner: AsyncRunner


def build_runtime(settings: Settings | None = None) -> Runtime:
    """Initialize storage and build the shared gateway once."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    runner = AsyncRunner()
    if settings.storage_provider == "local":
        # Binds the module-level engine to this URL for every later session
        runner.run(init_db(get_engine(settings.database_url)))
        gateway = create_gateway(
            "local",
            media_dir=settings.media_dir,
            public_base_url=settings.public_base_url,
        )
    else:
        gateway = create_gateway(
            "firebase",
            project_id=settings.firebase_project_id,
            storage_bucket=settings.firebase_storage_bucket,
            api_key=settings.firebase_api_key,
            timeout=settings.firebase_timeout,
        )
    logger.info("UI runtime ready (storage=%s)", settings.storage_provider)
    return Runtime(
        settings=settings,
        questions=resolve_questions(settings.questions_file),
        gateway=gateway,
        runner=runner,
    )


@st.cache_resource
def get_runtime() -> Runtime:
    """Cached :func:`build_runtime` shared across sessions and reruns."""
    return build_runtime()
