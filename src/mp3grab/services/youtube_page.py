"""Watch-page proxy used by the browser-side stream extractor."""

from __future__ import annotations

import logging

import httpx

from mp3grab.errors import UpstreamError, ValidationError
from mp3grab.services.naming import is_valid_video_id

logger = logging.getLogger(__name__)

WATCH_URL = "https://www.youtube.com/watch"


class YouTubePageFetcher:
    """Fetch a video's watch page so the browser can parse it same-origin."""

    def __init__(
        self,
        user_agent: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._user_agent = user_agent
        self._timeout = timeout
        self._transport = transport

    async def fetch(self, video_id: str | None) -> str:
        """Return the raw watch-page HTML for ``video_id``.

        Raises:
            ValidationError: If the id is missing or malformed.
            UpstreamError: If the page cannot be fetched.
        """
        if not video_id:
            raise ValidationError("Video ID is required")
        if not is_valid_video_id(video_id):
            raise ValidationError("Invalid video ID")

        headers = {
            "User-Agent": self._user_agent,
            "Accept-Language": "en-US,en;q=0.9",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(WATCH_URL, params={"v": video_id}, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Watch page fetch failed for %s: %s", video_id, exc)
            raise UpstreamError("Failed to fetch YouTube page") from exc

        return response.text
