"""
Abstract persistence gateway.

Every backing store (local SQLite + filesystem, Firebase) implements this
two-operation interface so the submission coordinator stays store-agnostic.
The gateway is built once at startup with explicit configuration and passed
to the coordinator by reference.
"""

from abc import ABC, abstractmethod
from typing import Any


class PersistenceGateway(ABC):
    """Interface that every blob/document store adapter must implement."""

    @abstractmethod
    async def upload_blob(
        self,
        data: bytes,
        path: str,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Store *data* at *path* and return a URL that resolves to it.

        Args:
            data: Binary payload.
            path: Unique object path, e.g. ``interviews/<ts>/q0_audio1.wav``.
            content_type: MIME type recorded with the object.
            metadata: Custom key/value metadata (e.g. ``timeCreated``).

        Returns:
            Download URL for the stored object.
        """

    @abstractmethod
    async def create_document(self, collection: str, record: dict[str, Any]) -> str:
        """Write *record* as a single new document in *collection*.

        Returns:
            The generated document ID.
        """

    async def close(self) -> None:  # noqa: B027
        """Release network clients or engines held by the gateway."""


def create_gateway(provider: str, **kwargs) -> PersistenceGateway:
    """
    Factory function to create a gateway instance based on provider.

    Args:
        provider: Gateway provider name ("local" or "firebase")
        **kwargs: Provider-specific configuration

    Returns:
        PersistenceGateway implementation instance

    Raises:
        ValueError: If provider is unknown
    """
    if provider == "local":
        from .local import LocalGateway
        return LocalGateway(**kwargs)
    elif provider == "firebase":
        from .firebase import FirebaseGateway
        return FirebaseGateway(**kwargs)
    else:
        raise ValueError(f"Unknown storage provider: {provider}")
