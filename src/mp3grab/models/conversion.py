"""Conversion job domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path


class ConversionMode(str, Enum):
    """How a job acquires its audio."""

    AUTO = "auto"
    FROM_PRE_EXTRACTED_STREAM = "fromPreExtractedStream"


class StrategyKind(str, Enum):
    """Acquisition strategy identifiers, reported as the response ``method``."""

    REMOTE_API = "remoteApi"
    LOCAL_TOOL = "localTool"
    STREAM_TRANSCODE = "streamTranscode"


class AttemptOutcome(str, Enum):
    """Outcome of one strategy attempt."""

    SUCCESS = "success"
    FAILURE = "failure"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ConversionJob:
    """One user request. Immutable and never persisted."""

    source_url: str = ""
    mode: ConversionMode = ConversionMode.AUTO
    requested_at: datetime = field(default_factory=_utc_now)
    stream_url: str | None = None
    title: str | None = None
    video_id: str | None = None

    @property
    def fingerprint(self) -> str:
        """Millisecond timestamp used to name this job's artifacts."""
        return str(int(self.requested_at.timestamp() * 1000))


@dataclass
class StrategyAttempt:
    """Diagnostic record of one strategy invocation within a job."""

    strategy: str
    outcome: AttemptOutcome
    error: str | None = None
    sub_attempt: int | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome == AttemptOutcome.SUCCESS


@dataclass
class StrategyResult:
    """What a strategy hands back on success: a local file and a title."""

    artifact_path: Path
    title: str


@dataclass
class ConversionResult:
    """Normalized result of a successful job."""

    filename: str
    title: str
    method: StrategyKind
    attempts: list[StrategyAttempt] = field(default_factory=list)
