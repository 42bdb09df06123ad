"""
Media endpoint — serves audio uploaded through the local gateway so that
the URLs stored in interview documents resolve.
"""

from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import FileResponse

from voiceform.core.config import get_settings
from voiceform.core.exceptions import MediaNotFoundError
from voiceform.services.storage.database import get_session
from voiceform.services.storage.local import normalize_blob_path
from voiceform.services.storage.repository import DocumentRepository

router = APIRouter(tags=["media"])


@router.get("/media/{object_path:path}")
async def get_media(object_path: str):
    """Stream a stored blob with its recorded content type."""
    try:
        path = normalize_blob_path(object_path)
    except ValueError:
        raise MediaNotFoundError(object_path) from None

    async with get_session() as session:
        blob = await DocumentRepository(session).get_blob(path)

    file_path = Path(get_settings().media_dir) / path
    if blob is None or not file_path.is_file():
        raise MediaNotFoundError(path)
    return FileResponse(file_path, media_type=blob.content_type, filename=file_path.name)
