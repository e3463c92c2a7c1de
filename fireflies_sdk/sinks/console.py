"""Console sink: human-readable dump of a key's result to a log stream."""

from __future__ import annotations

import json
import logging
from typing import Optional

from fireflies_sdk.config import mask_api_key
from fireflies_sdk.core.batch import BatchProcessResult
from fireflies_sdk.sinks.base import BaseSink

logger = logging.getLogger(__name__)


class ConsoleSink(BaseSink):
    """Log meeting counts, then the meetings and errors as indented JSON.

    Output goes to the ``fireflies_sdk.sinks.console`` logger at INFO
    unless another logger is passed in.
    """

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self._log = log or logger

    @property
    def name(self) -> str:
        return "Console"

    def emit(self, result: BatchProcessResult, api_key: str) -> None:
        self._log.info(
            "API key %s: %d meeting(s), %d error(s)",
            mask_api_key(api_key), len(result.meetings), len(result.errors),
        )
        self._log.info("Meetings: %s", json.dumps(list(result.meetings), indent=2, default=str))
        self._log.info("Errors: %s", json.dumps(list(result.errors), indent=2))
