"""FastAPI dependencies."""

from __future__ import annotations

from dataclasses import dataclass

from mp3grab.config import Settings
from mp3grab.services.files import FileLifecycleManager, PeriodicSweeper
from mp3grab.services.orchestrator import ConversionOrchestrator
from mp3grab.services.youtube_page import YouTubePageFetcher


@dataclass
class Services:
    """Process-scoped service instances."""

    files: FileLifecycleManager
    orchestrator: ConversionOrchestrator
    page_fetcher: YouTubePageFetcher
    sweeper: PeriodicSweeper


_services: Services | None = None


def build_services(settings: Settings) -> Services:
    """Wire the service graph from settings without touching global state."""
    files = FileLifecycleManager(
        settings.output_dir,
        max_age_seconds=settings.max_file_age_seconds,
        delete_delay_seconds=settings.delete_delay_seconds,
    )
    return Services(
        files=files,
        orchestrator=ConversionOrchestrator.from_settings(settings, files),
        page_fetcher=YouTubePageFetcher(
            user_agent=settings.user_agent,
            timeout=settings.page_fetch_timeout_seconds,
        ),
        sweeper=PeriodicSweeper(files, settings.cleanup_interval_seconds),
    )


def init_services(settings: Settings) -> Services:
    """Initialize the global services (called at app startup)."""
    global _services
    _services = build_services(settings)
    return _services


def reset_services() -> None:
    global _services
    _services = None


def _require() -> Services:
    if _services is None:
        raise RuntimeError("Services not initialized; call init_services() first")
    return _services


def get_file_manager() -> FileLifecycleManager:
    """Dependency that provides the FileLifecycleManager instance."""
    return _require().files


def get_orchestrator() -> ConversionOrchestrator:
    """Dependency that provides the ConversionOrchestrator instance."""
    return _require().orchestrator


def get_page_fetcher() -> YouTubePageFetcher:
    """Dependency that provides the YouTubePageFetcher instance."""
    return _require().page_fetcher
