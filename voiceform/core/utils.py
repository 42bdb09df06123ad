"""Shared utility functions for VoiceForm."""

import logging
from datetime import UTC, datetime

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once for an entry point (UI or API)."""
    logging.basicConfig(level=level.upper(), format=_LOG_FORMAT)


def utc_timestamp(moment: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix.

    Naive datetimes are taken to be UTC.
    """
    moment = moment or datetime.now(UTC)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
