"""Remote conversion API strategy (Cobalt-style JSON API)."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path, PurePosixPath
from typing import Any

import httpx

from mp3grab.errors import StrategyFailure
from mp3grab.models.conversion import ConversionJob, StrategyKind, StrategyResult
from mp3grab.services.files import FileLifecycleManager
from mp3grab.services.naming import PLACEHOLDER_TITLE, make_fingerprint, remote_artifact_name

logger = logging.getLogger(__name__)


def _error_detail(data: dict[str, Any]) -> str | None:
    """Return the service's error message, if the payload reports one."""
    error = data.get("error")
    if isinstance(error, dict):
        return str(error.get("code") or error.get("message") or error)
    if error:
        return str(error)
    if data.get("status") == "error":
        return "Remote API reported an error"
    return None


def _title_from_payload(data: dict[str, Any]) -> str:
    title = data.get("title")
    if title:
        return str(title)
    filename = data.get("filename")
    if filename:
        return PurePosixPath(str(filename)).stem or PLACEHOLDER_TITLE
    return PLACEHOLDER_TITLE


class RemoteApiStrategy:
    """Ask a third-party conversion service for an MP3 and download it.

    One POST asks the service to convert the source URL; any error field or
    an empty result URL counts as failure. A second GET pulls the produced
    file into the output directory under a fresh fingerprinted name.
    """

    def __init__(
        self,
        files: FileLifecycleManager,
        api_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        download_timeout: float = 120.0,
        max_download_bytes: int = 100 * 1024 * 1024,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the strategy.

        Args:
            files: Lifecycle manager owning the output directory.
            api_url: Conversion endpoint. Empty disables the strategy.
            api_key: Optional key sent as ``Authorization: Api-Key <key>``.
            timeout: Timeout for the conversion request, in seconds.
            download_timeout: Timeout for the file fetch, in seconds.
            max_download_bytes: Abort the file fetch beyond this size.
            transport: Optional httpx transport (used by tests).
        """
        self._files = files
        self._api_url = api_url
        self._api_key = api_key
        self._timeout = timeout
        self._download_timeout = download_timeout
        self._max_download_bytes = max_download_bytes
        self._transport = transport

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.REMOTE_API

    @property
    def is_available(self) -> bool:
        return bool(self._api_url)

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    async def execute(self, job: ConversionJob) -> StrategyResult:
        if not self.is_available:
            raise StrategyFailure("Remote conversion API is not configured", self.kind.value)

        data = await self._request_conversion(job.source_url)
        detail = _error_detail(data)
        if detail:
            raise StrategyFailure(f"Remote API error: {detail}", self.kind.value)

        file_url = data.get("url")
        if not file_url:
            raise StrategyFailure("Remote API returned no file URL", self.kind.value)

        destination = self._files.path_for(remote_artifact_name(make_fingerprint()))
        await self._download(str(file_url), destination)

        title = _title_from_payload(data)
        logger.info("Remote API produced %s", destination.name)
        return StrategyResult(artifact_path=destination, title=title)

    async def _request_conversion(self, source_url: str) -> dict[str, Any]:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Api-Key {self._api_key}"
        payload = {"url": source_url, "downloadMode": "audio", "audioFormat": "mp3"}

        try:
            async with self._client(self._timeout) as client:
                response = await client.post(self._api_url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise StrategyFailure(f"Remote API request failed: {exc}", self.kind.value) from exc

        try:
            data = response.json()
        except ValueError:
            data = None

        if not isinstance(data, dict):
            raise StrategyFailure(
                f"Remote API responded with HTTP {response.status_code}", self.kind.value
            )
        if response.is_error and not _error_detail(data):
            raise StrategyFailure(
                f"Remote API responded with HTTP {response.status_code}", self.kind.value
            )
        return data

    async def _download(self, file_url: str, destination: Path) -> None:
        received = 0
        try:
            async with self._client(self._download_timeout) as client:
                async with client.stream("GET", file_url) as response:
                    response.raise_for_status()
                    fh = await asyncio.to_thread(destination.open, "wb")
                    try:
                        async for chunk in response.aiter_bytes():
                            received += len(chunk)
                            if received > self._max_download_bytes:
                                raise StrategyFailure(
                                    f"Converted file exceeded {self._max_download_bytes} bytes",
                                    self.kind.value,
                                    partial_files=[destination],
                                )
                            await asyncio.to_thread(fh.write, chunk)
                    finally:
                        await asyncio.to_thread(fh.close)
        except (httpx.HTTPError, OSError) as exc:
            raise StrategyFailure(
                f"Failed to fetch converted file: {exc}",
                self.kind.value,
                partial_files=[destination],
            ) from exc

        if received == 0:
            raise StrategyFailure(
                "Remote API returned an empty file",
                self.kind.value,
                partial_files=[destination],
            )
