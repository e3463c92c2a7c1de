"""Wave-based batch execution of meeting fetches.

WHY: Fetching hundreds of full transcripts at once trips the Fireflies
rate limit, and one bad meeting must not sink the rest. The runner
caps how many fetches are in flight, pauses between groups, and turns
each failure into an error entry instead of an exception.

HOW: Tasks are zero-argument coroutine factories. They are split into
consecutive waves of at most ``concurrency_limit``. Each wave runs under
asyncio.gather(return_exceptions=True) and is fully settled before the
next one starts (a hard barrier, not a sliding window). Between waves
the runner sleeps for ``inter_batch_delay`` seconds.

RULES:
- ceil(N / K) waves and ceil(N / K) - 1 pauses; none after the last wave
- Input order is preserved across waves; within a wave only the set of
  settled results is guaranteed
- A failing task adds str(exc) (or its class name) to errors; never raises
- No tasks: empty result, no waves, no pause
- Pacing is fixed; there is no reaction to rate-limit responses
- on_progress is called with a WaveProgress before each wave starts
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from fireflies_sdk.config import DEFAULT_BATCH_DELAY_S, DEFAULT_CONCURRENCY_LIMIT

logger = logging.getLogger(__name__)

FetchTask = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class BatchProcessResult:
    """Outcome of one key's batch run.

    Attributes:
        meetings: Records of the tasks that succeeded.
        errors: One message per task that failed.
    """

    meetings: Tuple[Any, ...] = field(default_factory=tuple)
    errors: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_error(cls, message: str) -> BatchProcessResult:
        return cls(meetings=(), errors=(message,))

    def to_dict(self) -> Dict[str, list]:
        return {"meetings": list(self.meetings), "errors": list(self.errors)}


@dataclass(frozen=True)
class WaveProgress:
    """Progress snapshot passed to on_progress before a wave starts.

    ``start`` is inclusive and ``end`` exclusive, both 0-based task indices.
    """

    label: str
    wave_index: int
    wave_count: int
    start: int
    end: int
    total: int


def error_message(exc: BaseException) -> str:
    """Readable message for a failed task or key."""
    return str(exc) or type(exc).__name__


async def run_batches(
    tasks: Sequence[FetchTask],
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
    inter_batch_delay: float = DEFAULT_BATCH_DELAY_S,
    on_progress: Optional[Callable[[WaveProgress], None]] = None,
    label: str = "",
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> BatchProcessResult:
    """Run fetch tasks in paced, bounded waves.

    Args:
        tasks: Zero-argument callables returning awaitables.
        concurrency_limit: Maximum tasks per wave.
        inter_batch_delay: Seconds to pause between waves.
        on_progress: Optional observer called at each wave boundary.
        label: Free-form tag (usually a masked API key) for progress output.
        sleep: Pause implementation; injectable for tests.

    Returns:
        BatchProcessResult with the successes and the collected error messages.
    """
    if concurrency_limit < 1:
        raise ValueError("concurrency_limit must be >= 1, got {}".format(concurrency_limit))
    if inter_batch_delay < 0:
        raise ValueError("inter_batch_delay must be >= 0, got {}".format(inter_batch_delay))

    total = len(tasks)
    wave_count = -(-total // concurrency_limit)
    meetings: List[Any] = []
    errors: List[str] = []

    for wave_index, start in enumerate(range(0, total, concurrency_limit)):
        end = min(start + concurrency_limit, total)
        progress = WaveProgress(label, wave_index, wave_count, start, end, total)
        logger.debug("Processing %d to %d of %d for %s", start, end, total, label)
        if on_progress:
            on_progress(progress)

        results = await asyncio.gather(
            *(_invoke(task) for task in tasks[start:end]),
            return_exceptions=True,
        )
        for offset, result in enumerate(results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    # KeyboardInterrupt, SystemExit, CancelledError
                    raise result
                logger.warning("Task %d failed for %s: %s", start + offset, label, result)
                errors.append(error_message(result))
            else:
                meetings.append(result)

        if end < total:
            await sleep(inter_batch_delay)

    return BatchProcessResult(meetings=tuple(meetings), errors=tuple(errors))


async def _invoke(task: FetchTask) -> Any:
    # Factory errors surface through gather() like task errors.
    return await task()
