"""Output sink registry.

WHY: The pipeline and the CLI need a single lookup to find the right
sink for an output mode. A central dict makes it trivial to add modes:
create the sink class, import it here, add one line.

HOW: SINKS maps mode names to sink *classes* (not instances).
create_sink() instantiates one, passing output_dir to sinks that write
files.

RULES:
- Keys are the output mode names used in the CLI and pipeline ("console", "json")
- Unknown modes raise ValueError listing the available ones
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from fireflies_sdk.sinks.base import BaseSink
from fireflies_sdk.sinks.console import ConsoleSink
from fireflies_sdk.sinks.json_files import JsonFileSink

SINKS: dict[str, type[BaseSink]] = {
    "console": ConsoleSink,
    "json": JsonFileSink,
}


def create_sink(mode: str, output_dir: Union[str, Path, None] = None) -> BaseSink:
    """Instantiate the sink registered for ``mode``."""
    if mode not in SINKS:
        raise ValueError(
            "Unknown output mode '{}'. Available modes: {}".format(
                mode, ", ".join(sorted(SINKS))
            )
        )
    if SINKS[mode] is JsonFileSink:
        return JsonFileSink(output_dir)
    return SINKS[mode]()


__all__ = ["BaseSink", "ConsoleSink", "JsonFileSink", "SINKS", "create_sink"]
