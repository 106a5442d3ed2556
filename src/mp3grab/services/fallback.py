"""Ordered fallback over fallible async operations.

Both the orchestrator's strategy list and yt-dlp's player-client list are
run through :func:`first_success`: steps run one at a time in order, the
first success wins, and when every step fails the caller gets a single
:class:`TotalAcquisitionFailure` carrying the last diagnostic.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from mp3grab.errors import TotalAcquisitionFailure
from mp3grab.models.conversion import AttemptOutcome, StrategyAttempt

logger = logging.getLogger(__name__)

T = TypeVar("T")

FailureHook = Callable[["FallbackStep", BaseException], Awaitable[None]]
FailureSummary = Callable[[list[StrategyAttempt]], str]


@dataclass
class FallbackStep(Generic[T]):
    """One fallible operation in an ordered chain."""

    name: str
    run: Callable[[], Awaitable[T]]
    sub_attempt: int | None = None


@dataclass
class FallbackOutcome(Generic[T]):
    """The winning step, its value, and every attempt made to get there."""

    step: FallbackStep[T]
    value: T
    attempts: list[StrategyAttempt] = field(default_factory=list)


def keep_last(attempts: list[StrategyAttempt]) -> str:
    """Report the diagnostic of the last failed attempt."""
    for attempt in reversed(attempts):
        if attempt.error:
            return attempt.error
    return "No strategies were attempted"


async def first_success(
    steps: Sequence[FallbackStep[T]],
    *,
    is_success: Callable[[T], bool] | None = None,
    on_failure: FailureHook | None = None,
    summarize: FailureSummary = keep_last,
) -> FallbackOutcome[T]:
    """Run ``steps`` in order and return the first successful one.

    A step fails if it raises or if ``is_success`` rejects its value. Step
    failures are logged and recorded, never propagated individually.

    Args:
        steps: Operations in priority order.
        is_success: Optional predicate over a step's return value.
        on_failure: Optional async hook called after each failed step,
            e.g. to discard partial output.
        summarize: Builds the surfaced message from the attempt log.

    Returns:
        FallbackOutcome for the winning step.

    Raises:
        TotalAcquisitionFailure: If every step failed (or none were given).
    """
    attempts: list[StrategyAttempt] = []

    for step in steps:
        failure: BaseException | None = None
        try:
            value = await step.run()
        except Exception as exc:
            failure = exc
        else:
            if is_success is None or is_success(value):
                attempts.append(
                    StrategyAttempt(
                        strategy=step.name,
                        outcome=AttemptOutcome.SUCCESS,
                        sub_attempt=step.sub_attempt,
                    )
                )
                return FallbackOutcome(step=step, value=value, attempts=attempts)
            failure = ValueError(f"{step.name} produced an unusable result")

        error = str(failure) or type(failure).__name__
        attempts.append(
            StrategyAttempt(
                strategy=step.name,
                outcome=AttemptOutcome.FAILURE,
                error=error,
                sub_attempt=step.sub_attempt,
            )
        )
        logger.warning("Step '%s' failed: %s", step.name, error)

        if on_failure is not None:
            try:
                await on_failure(step, failure)
            except Exception:
                logger.exception("Failure hook raised for step '%s'", step.name)

    raise TotalAcquisitionFailure(summarize(attempts), attempts=attempts)
