"""FFmpeg strategy: transcode a pre-extracted stream URL to MP3."""

from __future__ import annotations

import logging
import shutil
from urllib.parse import urlsplit

from mp3grab.errors import ExternalProcessError, StrategyFailure
from mp3grab.models.conversion import ConversionJob, StrategyKind, StrategyResult
from mp3grab.services.files import FileLifecycleManager
from mp3grab.services.naming import PLACEHOLDER_TITLE, stream_artifact_name
from mp3grab.services.process import run_process, summarize_output

logger = logging.getLogger(__name__)


class StreamTranscodeStrategy:
    """Transcode a direct media URL (extracted in the browser) with ffmpeg.

    The ffmpeg process is bounded by a wall-clock timeout; on timeout it is
    killed and any partially written output is reported for removal.
    """

    def __init__(
        self,
        files: FileLifecycleManager,
        binary: str = "ffmpeg",
        timeout: float = 300.0,
        bitrate: str = "128k",
        user_agent: str | None = None,
        max_buffer_bytes: int = 50 * 1024 * 1024,
    ) -> None:
        self._files = files
        self._binary = binary
        self._timeout = timeout
        self._bitrate = bitrate
        self._user_agent = user_agent
        self._max_buffer_bytes = max_buffer_bytes

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.STREAM_TRANSCODE

    @property
    def is_available(self) -> bool:
        return shutil.which(self._binary) is not None

    def build_command(self, stream_url: str, output_path: str) -> list[str]:
        cmd = [self._binary, "-y", "-hide_banner", "-loglevel", "error"]
        if self._user_agent:
            cmd += ["-user_agent", self._user_agent]
        cmd += [
            "-i", stream_url,
            "-vn",  # No video
            "-acodec", "libmp3lame",
            "-b:a", self._bitrate,
            output_path,
        ]
        return cmd

    async def execute(self, job: ConversionJob) -> StrategyResult:
        stream_url = job.stream_url or ""
        if urlsplit(stream_url).scheme not in ("http", "https"):
            raise StrategyFailure("Stream URL must be an http(s) URL", self.kind.value)

        output_path = self._files.path_for(stream_artifact_name(job.title, job.fingerprint))
        cmd = self.build_command(stream_url, str(output_path))
        logger.info("Transcoding stream for video %s -> %s", job.video_id, output_path.name)

        try:
            result = await run_process(
                cmd,
                max_buffer_bytes=self._max_buffer_bytes,
                timeout=self._timeout,
            )
        except ExternalProcessError as exc:
            message = (
                f"Transcoding timed out after {self._timeout:g}s"
                if exc.timed_out
                else str(exc)
            )
            raise StrategyFailure(
                message, self.kind.value, partial_files=[output_path]
            ) from exc

        if not result.ok:
            raise StrategyFailure(
                f"ffmpeg exited with status {result.returncode}: "
                f"{summarize_output(result.stderr)}",
                self.kind.value,
                partial_files=[output_path],
            )
        if not output_path.exists():
            raise StrategyFailure("ffmpeg produced no output file", self.kind.value)

        return StrategyResult(artifact_path=output_path, title=job.title or PLACEHOLDER_TITLE)
