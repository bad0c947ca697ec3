"""
Serving of locally stored files when no B2 credentials are configured
"""
import mimetypes

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from core.dependencies import get_storage
from services.storage import StorageService

router = APIRouter(tags=["files"])

# Initialize mimetypes
mimetypes.init()


@router.get("/uploads/{key:path}")
async def serve_local_file(key: str, download: bool = False, storage: StorageService = Depends(get_storage)):
    file_path = storage.open_local(key)
    media_type = mimetypes.guess_type(file_path.name)[0] or 'application/octet-stream'
    disposition = "attachment" if download else "inline"

    return FileResponse(
        file_path,
        media_type=media_type,
        headers={
            "Content-Disposition": f"{disposition}; filename={file_path.name}",
            "Cache-Control": "private, max-age=3600",
        }
    )
