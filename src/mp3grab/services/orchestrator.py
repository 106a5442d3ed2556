"""Conversion orchestration across acquisition strategies."""

from __future__ import annotations

import logging
from functools import partial

from mp3grab.config import Settings
from mp3grab.errors import StrategyFailure, TotalAcquisitionFailure
from mp3grab.models.conversion import ConversionJob, ConversionMode, ConversionResult
from mp3grab.services.fallback import FallbackStep, first_success
from mp3grab.services.files import FileLifecycleManager
from mp3grab.services.strategies import (
    IAcquisitionStrategy,
    RemoteApiStrategy,
    StreamTranscodeStrategy,
    YtDlpStrategy,
)

logger = logging.getLogger(__name__)


class ConversionOrchestrator:
    """Turns conversion jobs into a single registered artifact.

    In ``auto`` mode the strategies run in priority order (remote API, then
    yt-dlp); the first success is returned and nothing after it runs. A
    failing strategy is recorded and its partial files discarded. When all
    fail, the last failure's diagnostic is raised as
    ``TotalAcquisitionFailure``.

    In ``fromPreExtractedStream`` mode only the stream transcoder runs and
    its failure is surfaced directly, with no fallback.
    """

    def __init__(
        self,
        files: FileLifecycleManager,
        strategies: list[IAcquisitionStrategy],
        stream_strategy: IAcquisitionStrategy,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            files: Lifecycle manager owning the output directory.
            strategies: Strategies for ``auto`` mode, in priority order.
            stream_strategy: Strategy for ``fromPreExtractedStream`` mode.
        """
        self._files = files
        self._strategies = list(strategies)
        self._stream_strategy = stream_strategy

        logger.info(
            "ConversionOrchestrator initialized with strategy order: %s",
            ", ".join(s.kind.value for s in self._strategies) or "(none)",
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, files: FileLifecycleManager
    ) -> "ConversionOrchestrator":
        """Build the default strategy chain from application settings."""
        strategies: list[IAcquisitionStrategy] = [
            RemoteApiStrategy(
                files,
                api_url=settings.remote_api_url,
                api_key=settings.remote_api_key,
                timeout=settings.remote_api_timeout_seconds,
                download_timeout=settings.remote_download_timeout_seconds,
                max_download_bytes=settings.remote_max_download_bytes,
            ),
            YtDlpStrategy(
                files,
                binary=settings.ytdlp_binary,
                player_clients=settings.ytdlp_player_clients,
                audio_quality=settings.ytdlp_audio_quality,
                user_agent=settings.user_agent,
                max_buffer_bytes=settings.ytdlp_max_buffer_bytes,
            ),
        ]
        stream = StreamTranscodeStrategy(
            files,
            binary=settings.ffmpeg_binary,
            timeout=settings.transcode_timeout_seconds,
            bitrate=settings.transcode_bitrate,
            user_agent=settings.user_agent,
            max_buffer_bytes=settings.transcode_max_buffer_bytes,
        )
        return cls(files, strategies, stream)

    @property
    def strategy_order(self) -> list[str]:
        return [s.kind.value for s in self._strategies]

    async def convert(self, job: ConversionJob) -> ConversionResult:
        """Run ``job`` to completion.

        Args:
            job: The conversion request.

        Returns:
            ConversionResult naming the artifact and the winning strategy.

        Raises:
            TotalAcquisitionFailure: If no strategy produced an artifact.
        """
        if job.mode == ConversionMode.FROM_PRE_EXTRACTED_STREAM:
            strategies = [self._stream_strategy]
        else:
            strategies = self._strategies

        steps = [
            FallbackStep(name=s.kind.value, run=partial(self._attempt, s, job))
            for s in strategies
        ]

        try:
            outcome = await first_success(steps, on_failure=self._discard_partials)
        except TotalAcquisitionFailure as exc:
            logger.error(
                "All strategies failed for %s (%d attempt(s)): %s",
                job.source_url or job.video_id,
                len(exc.attempts),
                exc,
            )
            raise

        result = outcome.value
        result.attempts = outcome.attempts
        logger.info(
            "Converted %s via %s -> %s",
            job.source_url or job.video_id,
            result.method.value,
            result.filename,
        )
        return result

    async def _attempt(
        self, strategy: IAcquisitionStrategy, job: ConversionJob
    ) -> ConversionResult:
        if not strategy.is_available:
            raise StrategyFailure(f"{strategy.kind.value} is not available", strategy.kind.value)

        produced = await strategy.execute(job)
        try:
            artifact = self._files.register(produced.artifact_path)
        except StrategyFailure as exc:
            exc.partial_files.append(produced.artifact_path)
            raise

        return ConversionResult(
            filename=artifact.filename,
            title=produced.title,
            method=strategy.kind,
        )

    async def _discard_partials(self, step: FallbackStep, exc: BaseException) -> None:
        if isinstance(exc, StrategyFailure) and exc.partial_files:
            removed = self._files.discard_all(exc.partial_files)
            if removed:
                logger.info("Discarded %d partial file(s) from %s", removed, step.name)
