"""Tests for the acquisition strategies."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from mp3grab.errors import ExternalProcessError, StrategyFailure
from mp3grab.models.conversion import ConversionJob, ConversionMode
from mp3grab.services.files import FileLifecycleManager
from mp3grab.services.process import ProcessResult
from mp3grab.services.strategies import RemoteApiStrategy, StreamTranscodeStrategy, YtDlpStrategy

REQUESTED_AT = datetime.fromtimestamp(1_700_000_000, tz=timezone.utc)
FINGERPRINT = "1700000000000"
API_URL = "https://convert.example.com/"


def _job(url: str = "https://youtu.be/abc123") -> ConversionJob:
    return ConversionJob(source_url=url, requested_at=REQUESTED_AT)


def _stream_job(stream_url: str = "https://rr1.googlevideo.com/videoplayback?id=1") -> ConversionJob:
    return ConversionJob(
        mode=ConversionMode.FROM_PRE_EXTRACTED_STREAM,
        requested_at=REQUESTED_AT,
        stream_url=stream_url,
        title="Test",
        video_id="abc123",
    )


# ---------------------------------------------------------------------------
# yt-dlp
# ---------------------------------------------------------------------------

class TestYtDlpStrategy:
    def test_build_command(self, files: FileLifecycleManager, output_dir: Path) -> None:
        strategy = YtDlpStrategy(files, audio_quality="128K", user_agent="UA/1.0")
        cmd = strategy.build_command("https://youtu.be/abc123", FINGERPRINT, "android")

        assert cmd[0] == "yt-dlp"
        assert cmd[cmd.index("--audio-format") + 1] == "mp3"
        assert cmd[cmd.index("--audio-quality") + 1] == "128K"
        assert "youtube:player_client=android" in cmd
        assert cmd[cmd.index("--user-agent") + 1] == "UA/1.0"
        assert cmd[cmd.index("-o") + 1].startswith(str(files.output_dir / f"video-{FINGERPRINT}"))
        assert cmd[-1] == "https://youtu.be/abc123"

    @pytest.mark.asyncio
    async def test_second_player_client_succeeds(
        self, files: FileLifecycleManager, output_dir: Path
    ) -> None:
        commands: list[list[str]] = []

        async def fake_run(cmd, **kwargs):
            commands.append(cmd)
            if len(commands) == 1:
                (output_dir / f"video-{FINGERPRINT}.webm.part").write_bytes(b"partial")
                return ProcessResult(1, "", "ERROR: Sign in to confirm you're not a bot\n")
            (output_dir / f"video-{FINGERPRINT}.My_Song.mp3").write_bytes(b"ID3")
            return ProcessResult(0, "", "")

        strategy = YtDlpStrategy(files, player_clients=["default", "android", "ios"])
        with patch("mp3grab.services.strategies.local_tool.run_process", side_effect=fake_run):
            result = await strategy.execute(_job())

        assert len(commands) == 2
        assert "youtube:player_client=android" in commands[1]
        assert result.artifact_path.name == f"video-{FINGERPRINT}.My_Song.mp3"
        assert result.title == "My Song"
        assert not (output_dir / f"video-{FINGERPRINT}.webm.part").exists()

    @pytest.mark.asyncio
    async def test_all_clients_fail_reports_last_error(self, files: FileLifecycleManager) -> None:
        results = iter([
            ProcessResult(1, "", "ERROR: first\n"),
            ProcessResult(1, "", "ERROR: second\n"),
        ])

        async def fake_run(cmd, **kwargs):
            return next(results)

        strategy = YtDlpStrategy(files, player_clients=["default", "android"])
        with patch("mp3grab.services.strategies.local_tool.run_process", side_effect=fake_run):
            with pytest.raises(StrategyFailure) as exc_info:
                await strategy.execute(_job())

        assert "ERROR: second" in str(exc_info.value)
        assert exc_info.value.strategy == "localTool"

    @pytest.mark.asyncio
    async def test_success_without_mp3_is_a_failure(self, files: FileLifecycleManager) -> None:
        async def fake_run(cmd, **kwargs):
            return ProcessResult(0, "", "")

        strategy = YtDlpStrategy(files, player_clients=["default"])
        with patch("mp3grab.services.strategies.local_tool.run_process", side_effect=fake_run):
            with pytest.raises(StrategyFailure, match="MP3 file not found after conversion"):
                await strategy.execute(_job())

    @pytest.mark.asyncio
    async def test_process_error_discards_partials(
        self, files: FileLifecycleManager, output_dir: Path
    ) -> None:
        partial = output_dir / f"video-{FINGERPRINT}.m4a"

        async def fake_run(cmd, **kwargs):
            partial.write_bytes(b"x")
            raise ExternalProcessError("yt-dlp output exceeded 10 bytes")

        strategy = YtDlpStrategy(files, player_clients=["default"])
        with patch("mp3grab.services.strategies.local_tool.run_process", side_effect=fake_run):
            with pytest.raises(StrategyFailure, match="exceeded"):
                await strategy.execute(_job())

        assert not partial.exists()

    def test_unavailable_binary(self, files: FileLifecycleManager) -> None:
        assert not YtDlpStrategy(files, binary="definitely-not-a-real-yt-dlp").is_available


# ---------------------------------------------------------------------------
# Remote API
# ---------------------------------------------------------------------------

def _remote(files: FileLifecycleManager, handler, **kwargs) -> RemoteApiStrategy:
    return RemoteApiStrategy(
        files, api_url=API_URL, transport=httpx.MockTransport(handler), **kwargs
    )


class TestRemoteApiStrategy:
    @pytest.mark.asyncio
    async def test_success_downloads_file(self, files: FileLifecycleManager) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.method == "POST":
                return httpx.Response(
                    200,
                    json={
                        "status": "tunnel",
                        "url": "https://cdn.example.com/file.mp3",
                        "filename": "My Song.mp3",
                    },
                )
            return httpx.Response(200, content=b"ID3 remote payload")

        strategy = _remote(files, handler, api_key="secret")
        result = await strategy.execute(_job())

        body = json.loads(seen[0].content)
        assert body == {
            "url": "https://youtu.be/abc123",
            "downloadMode": "audio",
            "audioFormat": "mp3",
        }
        assert seen[0].headers["Authorization"] == "Api-Key secret"
        assert result.artifact_path.name.startswith("remote-")
        assert result.artifact_path.read_bytes() == b"ID3 remote payload"
        assert result.title == "My Song"

    @pytest.mark.asyncio
    async def test_error_field_is_a_failure(self, files: FileLifecycleManager) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400, json={"status": "error", "error": {"code": "error.api.link.invalid"}}
            )

        with pytest.raises(StrategyFailure, match="error.api.link.invalid"):
            await _remote(files, handler).execute(_job())

    @pytest.mark.asyncio
    async def test_empty_url_is_a_failure(self, files: FileLifecycleManager) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": "tunnel", "url": ""})

        with pytest.raises(StrategyFailure, match="no file URL"):
            await _remote(files, handler).execute(_job())

    @pytest.mark.asyncio
    async def test_non_json_response(self, files: FileLifecycleManager) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="Service Unavailable")

        with pytest.raises(StrategyFailure, match="HTTP 503"):
            await _remote(files, handler).execute(_job())

    @pytest.mark.asyncio
    async def test_failed_download_reports_partial(self, files: FileLifecycleManager) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(200, json={"url": "https://cdn.example.com/f.mp3"})
            return httpx.Response(500)

        with pytest.raises(StrategyFailure, match="Failed to fetch converted file") as exc_info:
            await _remote(files, handler).execute(_job())

        assert len(exc_info.value.partial_files) == 1
        assert exc_info.value.partial_files[0].parent == files.output_dir

    @pytest.mark.asyncio
    async def test_empty_download(self, files: FileLifecycleManager) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(200, json={"url": "https://cdn.example.com/f.mp3"})
            return httpx.Response(200, content=b"")

        with pytest.raises(StrategyFailure, match="empty file"):
            await _remote(files, handler).execute(_job())

    @pytest.mark.asyncio
    async def test_oversized_download_is_aborted(self, files: FileLifecycleManager) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(200, json={"url": "https://cdn.example.com/f.mp3"})
            return httpx.Response(200, content=b"x" * 4096)

        strategy = _remote(files, handler, max_download_bytes=1024)
        with pytest.raises(StrategyFailure, match="exceeded 1024 bytes") as exc_info:
            await strategy.execute(_job())

        assert exc_info.value.partial_files[0].parent == files.output_dir

    @pytest.mark.asyncio
    async def test_unconfigured(self, files: FileLifecycleManager) -> None:
        strategy = RemoteApiStrategy(files, api_url="")
        assert not strategy.is_available
        with pytest.raises(StrategyFailure, match="not configured"):
            await strategy.execute(_job())


# ---------------------------------------------------------------------------
# Stream transcode
# ---------------------------------------------------------------------------

class TestStreamTranscodeStrategy:
    def test_build_command(self, files: FileLifecycleManager) -> None:
        strategy = StreamTranscodeStrategy(files, bitrate="128k")
        cmd = strategy.build_command("https://example.com/s", "/tmp/out.mp3")
        assert cmd[cmd.index("-i") + 1] == "https://example.com/s"
        assert "-vn" in cmd
        assert cmd[cmd.index("-acodec") + 1] == "libmp3lame"
        assert cmd[cmd.index("-b:a") + 1] == "128k"
        assert cmd[-1] == "/tmp/out.mp3"

    @pytest.mark.asyncio
    async def test_success(self, files: FileLifecycleManager, output_dir: Path) -> None:
        async def fake_run(cmd, **kwargs):
            Path(cmd[-1]).write_bytes(b"ID3")
            return ProcessResult(0, "", "")

        strategy = StreamTranscodeStrategy(files)
        with patch("mp3grab.services.strategies.stream_transcode.run_process", side_effect=fake_run):
            result = await strategy.execute(_stream_job())

        assert result.artifact_path == files.output_dir / f"Test-{FINGERPRINT}.mp3"
        assert result.title == "Test"

    @pytest.mark.asyncio
    async def test_timeout_reports_partial_output(
        self, files: FileLifecycleManager, output_dir: Path
    ) -> None:
        async def fake_run(cmd, **kwargs):
            Path(cmd[-1]).write_bytes(b"half")
            raise ExternalProcessError("ffmpeg timed out after 300s", timed_out=True)

        strategy = StreamTranscodeStrategy(files, timeout=300)
        with patch("mp3grab.services.strategies.stream_transcode.run_process", side_effect=fake_run):
            with pytest.raises(StrategyFailure, match="timed out") as exc_info:
                await strategy.execute(_stream_job())

        assert exc_info.value.partial_files == [files.output_dir / f"Test-{FINGERPRINT}.mp3"]

    @pytest.mark.asyncio
    async def test_nonzero_exit(self, files: FileLifecycleManager) -> None:
        async def fake_run(cmd, **kwargs):
            return ProcessResult(1, "", "Server returned 403 Forbidden\n")

        strategy = StreamTranscodeStrategy(files)
        with patch("mp3grab.services.strategies.stream_transcode.run_process", side_effect=fake_run):
            with pytest.raises(StrategyFailure, match="403 Forbidden"):
                await strategy.execute(_stream_job())

    @pytest.mark.asyncio
    async def test_rejects_non_http_stream(self, files: FileLifecycleManager) -> None:
        strategy = StreamTranscodeStrategy(files)
        with pytest.raises(StrategyFailure, match="http"):
            await strategy.execute(_stream_job("file:///etc/passwd"))
