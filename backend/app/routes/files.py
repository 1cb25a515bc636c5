"""
Shutterfeed Backend — Stored File Route
========================================

What:  GET /api/files/{path} serves uploaded images.
How:   FileService.resolve() maps the relative path under the storage root
       and rejects anything that escapes it (../../etc/passwd → 400).

Images are immutable once stored (every upload gets a fresh UUID name),
so they are served with a long public cache lifetime.
"""

from fastapi import APIRouter
from fastapi.responses import FileResponse

from app.schemas.common import ErrorResponse
from app.services.file_service import file_service

router = APIRouter(prefix="/api", tags=["Files"])


@router.get(
    "/files/{file_path:path}",
    summary="Serve an uploaded image",
    responses={
        200: {"description": "Image file"},
        400: {"description": "Path outside storage", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
)
async def serve_file(file_path: str) -> FileResponse:
    full_path = file_service.resolve(file_path)
    return FileResponse(
        path=str(full_path),
        media_type=file_service.media_type(full_path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
