"""Shared fixtures for mp3grab tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from mp3grab.api.deps import get_file_manager, get_orchestrator, get_page_fetcher
from mp3grab.config import Settings
from mp3grab.errors import StrategyFailure
from mp3grab.main import create_app
from mp3grab.models.conversion import ConversionJob, StrategyKind, StrategyResult
from mp3grab.services.files import FileLifecycleManager

FIXED_REQUEST_TIME = datetime.fromtimestamp(1_700_000_000, tz=timezone.utc)


class FakeStrategy:
    """In-memory strategy that either writes an artifact or fails."""

    def __init__(
        self,
        kind: StrategyKind,
        files: FileLifecycleManager,
        *,
        produces: str | None = None,
        title: str = "Fake Title",
        error: str | None = None,
        partial: str | None = None,
        available: bool = True,
    ) -> None:
        self._kind = kind
        self._files = files
        self._produces = produces
        self._title = title
        self._error = error
        self._partial = partial
        self._available = available
        self.calls: list[ConversionJob] = []

    @property
    def kind(self) -> StrategyKind:
        return self._kind

    @property
    def is_available(self) -> bool:
        return self._available

    async def execute(self, job: ConversionJob) -> StrategyResult:
        self.calls.append(job)
        partial_files: list[Path] = []
        if self._partial:
            partial_path = self._files.path_for(self._partial)
            partial_path.write_bytes(b"partial")
            partial_files.append(partial_path)
        if self._error:
            raise StrategyFailure(self._error, self._kind.value, partial_files=partial_files)
        assert self._produces is not None
        path = self._files.path_for(self._produces)
        path.write_bytes(b"ID3 fake mp3 payload")
        return StrategyResult(artifact_path=path, title=self._title)


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    path = tmp_path / "downloads"
    path.mkdir()
    return path


@pytest.fixture
def files(output_dir: Path) -> FileLifecycleManager:
    return FileLifecycleManager(output_dir, max_age_seconds=3600.0, delete_delay_seconds=0.0)


@pytest.fixture
def app_settings(output_dir: Path) -> Settings:
    return Settings(
        _env_file=None,
        output_dir=output_dir,
        remote_api_url="",
        delete_delay_seconds=0.0,
    )


@pytest.fixture
def make_client(
    app_settings: Settings, files: FileLifecycleManager
) -> Iterator[Callable[..., TestClient]]:
    """Build a TestClient whose services are replaced by the given doubles."""
    clients: list[TestClient] = []

    def _make(orchestrator=None, page_fetcher=None) -> TestClient:
        app = create_app(app_settings)
        app.dependency_overrides[get_file_manager] = lambda: files
        if orchestrator is not None:
            app.dependency_overrides[get_orchestrator] = lambda: orchestrator
        if page_fetcher is not None:
            app.dependency_overrides[get_page_fetcher] = lambda: page_fetcher
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def make_strategy(files: FileLifecycleManager) -> Callable[..., FakeStrategy]:
    def _make(kind: StrategyKind, **kwargs) -> FakeStrategy:
        return FakeStrategy(kind, files, **kwargs)

    return _make
