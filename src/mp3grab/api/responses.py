"""Custom responses for the mp3grab API."""

from __future__ import annotations

import asyncio
import os
from collections.abc import AsyncIterator
from pathlib import Path
from typing import BinaryIO
from urllib.parse import quote

from starlette.responses import StreamingResponse
from starlette.types import Receive, Scope, Send

from mp3grab.services.files import FileLifecycleManager


def _content_disposition(filename: str) -> str:
    quoted = quote(filename)
    if quoted != filename:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'


class ArtifactResponse(StreamingResponse):
    """Stream an already-open artifact, then schedule its deletion.

    Deletion is scheduled however the transfer ends, including when the
    client goes away mid-body.
    """

    media_type = "audio/mpeg"
    chunk_size = 64 * 1024

    def __init__(self, path: Path, handle: BinaryIO, files: FileLifecycleManager) -> None:
        self.path = path
        self._handle = handle
        self._files = files
        super().__init__(
            self._chunks(),
            headers={
                "content-length": str(os.fstat(handle.fileno()).st_size),
                "content-disposition": _content_disposition(path.name),
            },
        )

    async def _chunks(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await asyncio.to_thread(self._handle.read, self.chunk_size)
            if not chunk:
                return
            yield chunk

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            self._handle.close()
            await self._files.schedule_deletion(self.path)
