"""Artifact download endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from mp3grab.api.deps import get_file_manager
from mp3grab.api.responses import ArtifactResponse
from mp3grab.api.schemas import ErrorResponse
from mp3grab.services.files import FileLifecycleManager

router = APIRouter(
    prefix="/api",
    tags=["download"],
    responses={404: {"model": ErrorResponse}},
)


@router.get("/download/{filename}")
async def download(
    filename: str,
    files: FileLifecycleManager = Depends(get_file_manager),
) -> ArtifactResponse:
    """Stream an artifact as an attachment, then delete it shortly after."""
    path, handle = files.open_artifact(filename)
    return ArtifactResponse(path, handle, files)
