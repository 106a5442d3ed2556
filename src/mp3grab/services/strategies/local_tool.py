"""yt-dlp strategy: download and extract MP3 with a local binary."""

from __future__ import annotations

import logging
import shutil
from functools import partial

from mp3grab.errors import ExternalProcessError, StrategyFailure, TotalAcquisitionFailure
from mp3grab.models.conversion import ConversionJob, StrategyKind, StrategyResult
from mp3grab.services.fallback import FallbackStep, first_success
from mp3grab.services.files import FileLifecycleManager
from mp3grab.services.naming import AUDIO_EXTENSION, local_tool_stem, title_from_filename
from mp3grab.services.process import run_process, summarize_output

logger = logging.getLogger(__name__)

DEFAULT_PLAYER_CLIENTS = ("default", "android", "ios", "tv_embedded")


class YtDlpStrategy:
    """Run yt-dlp once per player-client configuration until one works.

    Each sub-attempt impersonates a different player client. A sub-attempt
    fails on a non-zero exit, on runaway output, or when no
    ``video-<fingerprint>*.mp3`` file appears afterwards. The first success
    wins; if all fail, the last sub-attempt's diagnostic is raised.
    """

    def __init__(
        self,
        files: FileLifecycleManager,
        binary: str = "yt-dlp",
        player_clients: list[str] | tuple[str, ...] = DEFAULT_PLAYER_CLIENTS,
        audio_quality: str = "128K",
        user_agent: str | None = None,
        max_buffer_bytes: int = 10 * 1024 * 1024,
    ) -> None:
        self._files = files
        self._binary = binary
        self._player_clients = list(player_clients)
        self._audio_quality = audio_quality
        self._user_agent = user_agent
        self._max_buffer_bytes = max_buffer_bytes

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.LOCAL_TOOL

    @property
    def is_available(self) -> bool:
        return shutil.which(self._binary) is not None

    def build_command(self, url: str, fingerprint: str, player_client: str) -> list[str]:
        """Build the yt-dlp argv for one player-client sub-attempt."""
        template = self._files.output_dir / f"{local_tool_stem(fingerprint)}.%(title).80s.%(ext)s"
        cmd = [
            self._binary,
            "-x",
            "--audio-format", "mp3",
            "--audio-quality", self._audio_quality,
            "--no-playlist",
            "--restrict-filenames",
            "--extractor-args", f"youtube:player_client={player_client}",
        ]
        if self._user_agent:
            cmd += ["--user-agent", self._user_agent]
        cmd += ["-o", str(template), url]
        return cmd

    async def execute(self, job: ConversionJob) -> StrategyResult:
        fingerprint = job.fingerprint
        steps = [
            FallbackStep(
                name=f"{self.kind.value}[{client}]",
                run=partial(self._attempt, job.source_url, fingerprint, client),
                sub_attempt=index,
            )
            for index, client in enumerate(self._player_clients)
        ]

        try:
            outcome = await first_success(steps, on_failure=self._discard_partials)
        except TotalAcquisitionFailure as exc:
            raise StrategyFailure(str(exc), self.kind.value) from exc

        logger.info(
            "yt-dlp succeeded on attempt %d/%d", len(outcome.attempts), len(steps)
        )
        return outcome.value

    async def _attempt(self, url: str, fingerprint: str, player_client: str) -> StrategyResult:
        cmd = self.build_command(url, fingerprint, player_client)
        logger.info("Downloading and converting with yt-dlp (client=%s): %s", player_client, url)

        stem = local_tool_stem(fingerprint)
        try:
            result = await run_process(cmd, max_buffer_bytes=self._max_buffer_bytes)
        except ExternalProcessError as exc:
            raise StrategyFailure(
                str(exc), self.kind.value, partial_files=self._files.find_by_prefix(stem)
            ) from exc

        if result.stderr:
            logger.debug("yt-dlp stderr: %s", result.stderr)

        if not result.ok:
            raise StrategyFailure(
                f"yt-dlp exited with status {result.returncode}: "
                f"{summarize_output(result.stderr)}",
                self.kind.value,
                partial_files=self._files.find_by_prefix(stem),
            )

        produced = self._files.find_by_prefix(stem, AUDIO_EXTENSION)
        if not produced:
            raise StrategyFailure(
                "MP3 file not found after conversion",
                self.kind.value,
                partial_files=self._files.find_by_prefix(stem),
            )

        artifact = produced[0]
        logger.info("Conversion finished: %s", artifact.name)
        return StrategyResult(
            artifact_path=artifact,
            title=title_from_filename(artifact.name, fingerprint),
        )

    async def _discard_partials(self, step: FallbackStep, exc: BaseException) -> None:
        if isinstance(exc, StrategyFailure) and exc.partial_files:
            self._files.discard_all(exc.partial_files)
