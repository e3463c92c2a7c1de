"""Multi-account meeting aggregation pipeline.

WHY: Teams often hold several Fireflies accounts whose meetings overlap.
Pulling "all meetings" means discovering what each account can see,
fetching every shared meeting only once, and surviving the inevitable
individual failures without losing the rest of the run.

HOW: Four steps, keys always walked in input order:
  1. Discovery: list_all_meeting_ids() per key
  2. Ownership: assign_ownership() once over all discovered indices
  3. Fetching: one get_transcript() task per owned id, run through
     run_batches() (bounded waves with fixed pacing)
  4. Output: each key's BatchProcessResult goes to the output sink

RULES:
- An empty key list is rejected before any client is created
- Field projection, output mode, page size, concurrency limit and
  pacing delay are validated before any remote call
- Keys are processed one after another, never concurrently
- A key whose discovery fails gets 0 meetings and 1 error, and its ids
  take no part in ownership; other keys carry on
- Any exception while fetching or emitting one key's results becomes an
  all-error result (0 meetings, 1 error) for that key only
- The returned mapping always has exactly one entry per distinct input key
- Duplicate keys are collapsed, first occurrence kept
"""

from __future__ import annotations

import asyncio
import functools
import logging
from pathlib import Path
from typing import Any, AsyncContextManager, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from fireflies_sdk.api.client import FirefliesClient
from fireflies_sdk.api.fields import validate_fields
from fireflies_sdk.config import (
    DEFAULT_BATCH_DELAY_S,
    DEFAULT_CONCURRENCY_LIMIT,
    DEFAULT_OUTPUT_MODE,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    mask_api_key,
)
from fireflies_sdk.core.assignment import assign_ownership
from fireflies_sdk.core.batch import BatchProcessResult, WaveProgress, error_message, run_batches
from fireflies_sdk.core.pagination import list_all_meeting_ids
from fireflies_sdk.sinks import BaseSink, create_sink

logger = logging.getLogger(__name__)

AggregateResult = Dict[str, BatchProcessResult]
ClientFactory = Callable[[str], AsyncContextManager[Any]]


async def aggregate_meetings(
    api_keys: Sequence[str],
    fields: Optional[Sequence[str]] = None,
    output: str = DEFAULT_OUTPUT_MODE,
    *,
    client_factory: ClientFactory = FirefliesClient,
    sink: Optional[BaseSink] = None,
    output_dir: Union[str, Path, None] = None,
    page_size: int = DEFAULT_PAGE_SIZE,
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
    inter_batch_delay: float = DEFAULT_BATCH_DELAY_S,
    on_progress: Optional[Callable[[WaveProgress], None]] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> AggregateResult:
    """Fetch every meeting visible to any of the keys, each exactly once.

    Args:
        api_keys: Keys in priority order; earlier keys own shared meetings.
        fields: Transcript fields to fetch (default: DEFAULT_FIELDS["transcript"]).
        output: Output mode name from sinks.SINKS. Ignored when sink is given.
        client_factory: Builds an async-context-managed client for a key.
        sink: Explicit sink instance.
        output_dir: Directory for file-writing sinks.
        page_size: Discovery page size.
        concurrency_limit: Fetches per wave.
        inter_batch_delay: Seconds between waves.
        on_progress: Observer for wave boundaries.
        sleep: Pause implementation passed to the batch runner.

    Returns:
        Key -> BatchProcessResult, one entry per distinct key, in input order.

    Raises:
        ValueError: No keys, unknown output mode, or invalid fields
            (InvalidFieldError), or run settings out of range. Nothing
            remote happens in that case.
    """
    if not api_keys:
        raise ValueError("At least one API key is required")

    _check_settings(page_size, concurrency_limit, inter_batch_delay)
    keys = _distinct(api_keys)
    field_list = validate_fields("transcript", fields)
    sink = sink or create_sink(output, output_dir)

    # 1. Discovery
    index: Dict[str, List[str]] = {}
    failed: Dict[str, BatchProcessResult] = {}
    for api_key in keys:
        try:
            async with client_factory(api_key) as client:
                index[api_key] = await list_all_meeting_ids(client, page_size=page_size)
        except Exception as e:
            logger.exception("Discovery failed for API key %s", mask_api_key(api_key))
            failed[api_key] = BatchProcessResult.from_error(error_message(e))
        else:
            logger.info("API key %s sees %d meeting(s)", mask_api_key(api_key), len(index[api_key]))

    # 2. Ownership
    assignment = assign_ownership(index)
    logger.info("Found unique meetings: %d", len(assignment.unique_ids))

    # 3 + 4. Fetching and output
    results: AggregateResult = {}
    for api_key in keys:
        if api_key in failed:
            results[api_key] = failed[api_key]
            _emit_quietly(sink, failed[api_key], api_key)
            continue
        try:
            async with client_factory(api_key) as client:
                tasks = [
                    functools.partial(client.get_transcript, meeting_id, field_list)
                    for meeting_id in assignment.owners[api_key]
                ]
                result = await run_batches(
                    tasks,
                    concurrency_limit=concurrency_limit,
                    inter_batch_delay=inter_batch_delay,
                    on_progress=on_progress,
                    label=mask_api_key(api_key),
                    sleep=sleep,
                )
            sink.emit(result, api_key)
        except Exception as e:
            logger.exception("Processing failed for API key %s", mask_api_key(api_key))
            result = BatchProcessResult.from_error(error_message(e))
        results[api_key] = result

    return results


def aggregate_meetings_sync(api_keys: Sequence[str], *args: Any, **kwargs: Any) -> AggregateResult:
    """Blocking wrapper around aggregate_meetings() for scripts."""
    return asyncio.run(aggregate_meetings(api_keys, *args, **kwargs))


def _distinct(api_keys: Sequence[str]) -> List[str]:
    keys: List[str] = []
    for api_key in api_keys:
        if api_key in keys:
            logger.warning("Ignoring duplicate API key %s", mask_api_key(api_key))
            continue
        keys.append(api_key)
    return keys


def _emit_quietly(sink: BaseSink, result: BatchProcessResult, api_key: str) -> None:
    try:
        sink.emit(result, api_key)
    except Exception:
        logger.exception("Could not emit results for API key %s", mask_api_key(api_key))


def _check_settings(page_size: int, concurrency_limit: int, inter_batch_delay: float) -> None:
    # Must fail before any client is created, not inside the per-key handlers
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise ValueError(
            "page_size must be between 1 and {}, got {}".format(MAX_PAGE_SIZE, page_size)
        )
    if concurrency_limit < 1:
        raise ValueError("concurrency_limit must be >= 1, got {}".format(concurrency_limit))
    if inter_batch_delay < 0:
        raise ValueError("inter_batch_delay must be >= 0, got {}".format(inter_batch_delay))
