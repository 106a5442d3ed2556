"""Conversion endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from mp3grab.api.deps import get_orchestrator
from mp3grab.api.schemas import (
    ConversionResponse,
    ConvertRequest,
    ErrorResponse,
    StreamConvertRequest,
)
from mp3grab.errors import ValidationError
from mp3grab.models.conversion import ConversionJob, ConversionMode, ConversionResult
from mp3grab.services.naming import extract_video_id
from mp3grab.services.orchestrator import ConversionOrchestrator

router = APIRouter(
    prefix="/api",
    tags=["convert"],
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)


def _to_response(result: ConversionResult) -> ConversionResponse:
    return ConversionResponse(
        success=True,
        filename=result.filename,
        title=result.title,
        method=result.method.value,
    )


@router.post("/convert", response_model=ConversionResponse)
async def convert(
    req: ConvertRequest,
    orchestrator: ConversionOrchestrator = Depends(get_orchestrator),
) -> ConversionResponse:
    url = (req.url or "").strip()
    if not url:
        raise ValidationError("YouTube URL is required")
    video_id = extract_video_id(url)
    if video_id is None:
        raise ValidationError("Invalid YouTube URL")

    job = ConversionJob(source_url=url, mode=ConversionMode.AUTO, video_id=video_id)
    return _to_response(await orchestrator.convert(job))


@router.post("/convert-from-stream", response_model=ConversionResponse)
async def convert_from_stream(
    req: StreamConvertRequest,
    orchestrator: ConversionOrchestrator = Depends(get_orchestrator),
) -> ConversionResponse:
    stream_url = (req.stream_url or "").strip()
    if not stream_url:
        raise ValidationError("Stream URL is required")
    if not stream_url.startswith(("http://", "https://")):
        raise ValidationError("Invalid stream URL")

    job = ConversionJob(
        mode=ConversionMode.FROM_PRE_EXTRACTED_STREAM,
        stream_url=stream_url,
        title=req.title,
        video_id=req.video_id,
    )
    return _to_response(await orchestrator.convert(job))
