"""Services module for mp3grab."""

from mp3grab.services.fallback import FallbackOutcome, FallbackStep, first_success
from mp3grab.services.files import FileLifecycleManager, PeriodicSweeper
from mp3grab.services.orchestrator import ConversionOrchestrator
from mp3grab.services.youtube_page import YouTubePageFetcher

__all__ = [
    "ConversionOrchestrator",
    "FallbackOutcome",
    "FallbackStep",
    "FileLifecycleManager",
    "PeriodicSweeper",
    "YouTubePageFetcher",
    "first_success",
]
