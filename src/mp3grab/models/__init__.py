"""Data models for mp3grab."""

from mp3grab.models.artifact import Artifact
from mp3grab.models.conversion import (
    AttemptOutcome,
    ConversionJob,
    ConversionMode,
    ConversionResult,
    StrategyAttempt,
    StrategyKind,
    StrategyResult,
)

__all__ = [
    # Artifact
    "Artifact",
    # Conversion
    "AttemptOutcome",
    "ConversionJob",
    "ConversionMode",
    "ConversionResult",
    "StrategyAttempt",
    "StrategyKind",
    "StrategyResult",
]
