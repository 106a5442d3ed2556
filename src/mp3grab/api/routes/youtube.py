"""Watch-page proxy endpoint for browser-side extraction."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from mp3grab.api.deps import get_page_fetcher
from mp3grab.api.schemas import ErrorResponse, FetchPageRequest, FetchPageResponse
from mp3grab.services.youtube_page import YouTubePageFetcher

router = APIRouter(
    prefix="/api",
    tags=["youtube"],
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)


@router.post("/fetch-youtube", response_model=FetchPageResponse)
async def fetch_youtube(
    req: FetchPageRequest,
    fetcher: YouTubePageFetcher = Depends(get_page_fetcher),
) -> FetchPageResponse:
    return FetchPageResponse(html=await fetcher.fetch(req.video_id))
