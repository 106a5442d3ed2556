"""Custom exceptions for mp3grab."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mp3grab.models.conversion import StrategyAttempt


class Mp3GrabError(Exception):
    """Base exception for mp3grab."""

    status_code: int = 500


class ValidationError(Mp3GrabError):
    """Bad or missing request input."""

    status_code = 400


class StrategyFailure(Mp3GrabError):
    """A single acquisition strategy failed.

    Recovered by the orchestrator; only surfaced when it is the last
    strategy in an exhausted chain.
    """

    def __init__(
        self,
        message: str,
        strategy: str | None = None,
        partial_files: list[Path] | None = None,
    ) -> None:
        super().__init__(message)
        self.strategy = strategy
        self.partial_files = list(partial_files or [])


class TotalAcquisitionFailure(Mp3GrabError):
    """Every strategy in a fallback chain failed."""

    def __init__(
        self,
        message: str,
        attempts: list[StrategyAttempt] | None = None,
    ) -> None:
        super().__init__(message)
        self.attempts = list(attempts or [])


class ArtifactNotFound(Mp3GrabError):
    """Requested artifact is missing, expired, or not a bare filename."""

    status_code = 404


class UpstreamError(Mp3GrabError):
    """An upstream page fetch failed."""

    status_code = 502


class ExternalProcessError(Mp3GrabError):
    """An external tool could not be run to completion."""

    def __init__(self, message: str, timed_out: bool = False) -> None:
        super().__init__(message)
        self.timed_out = timed_out
