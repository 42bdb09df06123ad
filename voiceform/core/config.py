"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """VoiceForm application settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        storage_provider: Which persistence gateway to build ("local" or "firebase").
        recording_policy: How a new take interacts with earlier ones
            ("append" keeps all takes, "replace" swaps after confirmation).
        upload_concurrency: "concurrent" fires all uploads and joins them,
            "sequential" awaits them one by one.
        collect_personal_info: Show and require the name/company/position block.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Storage gateway ---
    storage_provider: Literal["local", "firebase"] = "local"
    document_collection: str = "interviews"
    storage_prefix: str = "interviews"  # Blob path namespace

    # Local store: SQLite documents + filesystem blobs
    database_url: str = "sqlite+aiosqlite:///data/voiceform.db"
    media_dir: str = "data/media"
    public_base_url: str = "http://localhost:8000"  # Where the read API serves /media

    # Firebase (Storage + Firestore REST)
    firebase_project_id: str = ""
    firebase_storage_bucket: str = ""  # e.g. "my-project.appspot.com"
    firebase_api_key: str = ""
    firebase_timeout: float = 60.0

    # --- Audio capture ---
    # st.audio_input records WAV in the browser
    audio_content_type: str = "audio/wav"
    audio_extension: str = "wav"
    recording_policy: Literal["append", "replace"] = "append"

    # --- Submission ---
    upload_concurrency: Literal["concurrent", "sequential"] = "concurrent"
    collect_personal_info: bool = False

    # --- Form content ---
    form_title: str = "Experteninterview - Social Entrepreneurship"
    form_intro: str = "Willkommen beim Interview!"
    questions_file: str = ""  # YAML list of question texts; empty = built-in set
    privacy_policy_url: str = ""

    # --- Application ---
    app_host: str = "0.0.0.0"  # Bind address for the FastAPI read API
    app_port: int = 8000
    log_level: str = "INFO"  # Python logging level


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
