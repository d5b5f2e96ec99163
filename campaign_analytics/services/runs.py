"""
Pipeline Run Control

Every pipeline run is all-or-nothing: it either returns its full result or
fails with a single error message. Runs are tagged with a generation number
per pipeline and run scope; when a newer run of the same pipeline in the same
scope starts before an older one finishes, the older outcome is marked stale
so callers never let it overwrite the newer result. A scope names whoever owns
the runs (one dashboard session, say), so overlapping runs of different
callers never supersede each other.

Usage:
    context = PipelineContext(source=source)
    outcome = await run_pipeline(
        context.tracker,
        'campaign_stats',
        lambda: compute_campaign_stats(context.source, report_filter),
        default_message='Failed to fetch campaign stats',
        scope='session-42',
    )
    if outcome.stale:
        ...  # drop it
    elif outcome.error:
        ...  # show outcome.error
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

from campaign_analytics.models.schemas import PipelineOutcome
from campaign_analytics.services.datasource import TabularDataSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunToken:
    """Identity of one run: pipeline key plus its generation number."""
    key: str
    generation: int


class RunTracker:
    """
    Per-key generation counters.

    begin() hands out increasing generations; a token is current until another
    run of the same key begins. Only counters are shared, so concurrent
    pipelines need no locking on the event loop.
    """

    def __init__(self) -> None:
        self._generations: Dict[str, int] = {}

    def begin(self, key: str) -> RunToken:
        generation = self._generations.get(key, 0) + 1
        self._generations[key] = generation
        return RunToken(key=key, generation=generation)

    def is_current(self, token: RunToken) -> bool:
        return self._generations.get(token.key) == token.generation

    def latest(self, key: str) -> int:
        return self._generations.get(key, 0)


def run_key(pipeline: str, scope: Optional[str] = None) -> str:
    """Tracker key for a pipeline within a run scope; no scope means the bare pipeline."""
    return f"{pipeline}@{scope}" if scope else pipeline


@dataclass
class PipelineContext:
    """
    Explicit per-application context for pipeline runs.

    Attributes:
        source: Data source every pipeline reads from.
        tracker: Generation counters used to detect superseded runs.
    """
    source: TabularDataSource
    tracker: RunTracker = field(default_factory=RunTracker)


async def run_pipeline(
    tracker: RunTracker,
    key: str,
    operation: Callable[[], Awaitable[Any]],
    default_message: str = 'Failed to fetch data',
    scope: Optional[str] = None,
) -> PipelineOutcome:
    """
    Execute one pipeline run and capture its outcome.

    Any exception raised by the operation (transport, validation, parsing) is
    logged and turned into outcome.error: the exception's message, or
    default_message when it has none.

    Args:
        tracker: Generation counters shared by runs of the same pipeline.
        key: Pipeline key, e.g. 'campaign_stats'.
        operation: Zero-argument coroutine factory doing the work.
        default_message: Error text for exceptions without a message.
        scope: Owner of the run. Only runs with the same key and scope
            supersede each other.

    Returns:
        PipelineOutcome with data or error, marked stale if superseded.
    """
    token = tracker.begin(run_key(key, scope))
    logger.info(f"Pipeline {token.key} run {token.generation} started")

    try:
        data = await operation()
        outcome = PipelineOutcome(pipeline=key, generation=token.generation, data=data)
    except Exception as e:
        logger.exception(f"Pipeline {token.key} run {token.generation} failed: {e}")
        outcome = PipelineOutcome(
            pipeline=key,
            generation=token.generation,
            error=str(e) or default_message,
        )

    if not tracker.is_current(token):
        logger.info(
            f"Pipeline {token.key} run {token.generation} superseded by run {tracker.latest(token.key)}"
        )
        outcome.stale = True
    else:
        logger.info(f"Pipeline {token.key} run {token.generation} finished")

    return outcome
