"""
Storefront Backend — Uploaded File Serving
============================================

What:  GET /uploads/{path} returns files stored by FileService, e.g.
       /uploads/products/<uuid>.png or /uploads/profile-pictures/<uuid>.jpg.
Security:
    FileService.resolve_public_path rejects any path that resolves outside
    the upload root (400) and missing files (404).
"""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from app.dependencies import get_file_service
from app.services.file_service import FileService

router = APIRouter(tags=["Uploads"])


@router.get("/uploads/{file_path:path}", summary="Serve an uploaded image")
async def serve_upload(
    file_path: str,
    files: FileService = Depends(get_file_service),
) -> FileResponse:
    full_path = files.resolve_public_path(file_path)
    return FileResponse(
        path=str(full_path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
