"""
Firebase persistence gateway (Cloud Storage + Firestore REST APIs).

Uses ``httpx.AsyncClient``. Requests carry the web API key when configured;
access control is left to the project's security rules.
"""

import base64
import logging
import math
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any
from urllib.parse import quote

import httpx

from voiceform.core.config import get_settings
from voiceform.services.storage.gateway import PersistenceGateway

logger = logging.getLogger(__name__)

STORAGE_BASE_URL = "https://firebasestorage.googleapis.com/v0"
FIRESTORE_BASE_URL = "https://firestore.googleapis.com/v1"


# ---------------------------------------------------------------------------
# Firestore value encoding
# ---------------------------------------------------------------------------


def _format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def encode_value(value: Any) -> dict[str, Any]:
    """Encode a Python value as a Firestore REST ``Value``.

    Raises:
        TypeError: For types Firestore cannot represent.
    """
    if value is None:
        return {"nullValue": None}
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        if math.isnan(value):
            return {"doubleValue": "NaN"}
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, datetime):
        return {"timestampValue": _format_timestamp(value)}
    if isinstance(value, bytes | bytearray):
        return {"bytesValue": base64.b64encode(bytes(value)).decode("ascii")}
    if isinstance(value, Mapping):
        return {"mapValue": {"fields": encode_fields(value)}}
    if isinstance(value, list | tuple):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    raise TypeError(f"Cannot encode {type(value).__name__} as a Firestore value")


def encode_fields(record: Mapping[str, Any]) -> dict[str, Any]:
    """Encode a mapping as Firestore document ``fields``."""
    return {str(key): encode_value(value) for key, value in record.items()}


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------


class FirebaseGateway(PersistenceGateway):
    """Firebase Storage / Firestore implementation of :class:`PersistenceGateway`.

    Args:
        project_id: Firebase / GCP project ID (Firestore).
        storage_bucket: Storage bucket name, e.g. ``my-project.appspot.com``.
        api_key: Web API key appended as ``?key=`` when set.
        timeout: Per-request timeout in seconds.
        client: Optional pre-built ``httpx.AsyncClient`` (tests inject a mock transport).
    """

    def __init__(
        self,
        project_id: str | None = None,
        storage_bucket: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        settings = get_settings()
        self._project_id = project_id or settings.firebase_project_id
        self._bucket = storage_bucket or settings.firebase_storage_bucket
        self._api_key = api_key if api_key is not None else settings.firebase_api_key
        if not self._project_id or not self._bucket:
            raise ValueError("firebase_project_id and firebase_storage_bucket must be set")
        self._client = client or httpx.AsyncClient(
            timeout=timeout or settings.firebase_timeout
        )

    def _params(self, **extra: str) -> dict[str, str]:
        params = dict(extra)
        if self._api_key:
            params["key"] = self._api_key
        return params

    def _object_url(self, path: str) -> str:
        return f"{STORAGE_BASE_URL}/b/{self._bucket}/o/{quote(path, safe='')}"

    def download_url(self, path: str, token: str) -> str:
        """Token-bearing download URL, as returned by the Firebase web SDK."""
        return f"{self._object_url(path)}?alt=media&token={token}"

    async def upload_blob(
        self,
        data: bytes,
        path: str,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> str:
        resp = await self._client.post(
            f"{STORAGE_BASE_URL}/b/{self._bucket}/o",
            params=self._params(name=path),
            content=data,
            headers={"Content-Type": content_type},
        )
        resp.raise_for_status()
        info = resp.json()

        if metadata:
            meta_resp = await self._client.patch(
                self._object_url(path),
                params=self._params(),
                json={"metadata": metadata},
            )
            meta_resp.raise_for_status()
            info = meta_resp.json() or info

        token = (info.get("downloadTokens") or "").split(",")[0]
        if not token:
            raise ValueError(f"Storage response for {path} carries no download token")
        logger.debug("Uploaded %d bytes to gs://%s/%s", len(data), self._bucket, path)
        return self.download_url(path, token)

    async def create_document(self, collection: str, record: dict[str, Any]) -> str:
        url = (
            f"{FIRESTORE_BASE_URL}/projects/{self._project_id}"
            f"/databases/(default)/documents/{collection}"
        )
        resp = await self._client.post(
            url,
            params=self._params(),
            json={"fields": encode_fields(record)},
        )
        resp.raise_for_status()
        name = resp.json().get("name", "")
        document_id = name.rsplit("/", 1)[-1]
        if not document_id:
            raise ValueError("Firestore response carries no document name")
        logger.info("Interview saved successfully with ID: %s", document_id)
        return document_id

    async def close(self) -> None:
        await self._client.aclose()
