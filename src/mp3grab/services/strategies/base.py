"""Base interface for acquisition strategies."""

from typing import Protocol

from mp3grab.models.conversion import ConversionJob, StrategyKind, StrategyResult


class IAcquisitionStrategy(Protocol):
    """Protocol defining the contract for acquisition strategies.

    Each strategy turns a job into an MP3 file inside the output directory
    and reports a best-effort display title. Any failure is raised as
    ``StrategyFailure``; callers never need strategy-specific errors.
    """

    @property
    def kind(self) -> StrategyKind:
        """Strategy identifier, reported as the response ``method``."""
        ...

    @property
    def is_available(self) -> bool:
        """Whether the strategy can run in this environment."""
        ...

    async def execute(self, job: ConversionJob) -> StrategyResult:
        """Produce an audio artifact for ``job``.

        Args:
            job: The conversion request.

        Returns:
            StrategyResult with the artifact path and title.

        Raises:
            StrategyFailure: On any non-success condition.
        """
        ...
