"""Serve the read API: ``python -m voiceform.api`` (host/port from settings)."""

import uvicorn

from voiceform.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "voiceform.api.app:app",
        host=settings.app_host,
        port=settings.app_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
