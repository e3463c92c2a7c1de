"""JSON file sink: one results file and, when needed, one errors file per key.

WHY: Aggregation runs over several accounts are usually archived or fed
to other tools. Writing each key's meetings to its own file keeps runs
diffable and lets a failed account be re-run on its own.

HOW: For each key, writes ``RESULTS_<slug>.json`` with the meetings
array and, only if the error list is non-empty, ``ERRORS_<slug>.json``
with the error messages. Both are pretty-printed UTF-8 JSON.

RULES:
- File names are deterministic: the slug is the API key itself when it
  only uses [A-Za-z0-9_.-]; otherwise the unsafe characters become "_"
  and a short hash of the raw key is appended, so distinct keys never
  share a file
- Existing files for the same key are overwritten (one run == one snapshot)
- No errors file when there are no errors; one left by an earlier run
  for the same key is removed
- Write failures propagate (OSError); the pipeline isolates them per key
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from pathlib import Path
from typing import List, Optional, Union

from fireflies_sdk.config import mask_api_key
from fireflies_sdk.core.batch import BatchProcessResult
from fireflies_sdk.sinks.base import BaseSink

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def key_slug(api_key: str) -> str:
    """File-name-safe, deterministic form of an API key."""
    slug = _UNSAFE_CHARS.sub("_", api_key)
    if slug == api_key:
        return slug
    digest = hashlib.sha256(api_key.encode("utf-8")).hexdigest()[:8]
    return "{}_{}".format(slug, digest)


class JsonFileSink(BaseSink):
    """Write per-key RESULTS_/ERRORS_ JSON files into output_dir."""

    def __init__(self, output_dir: Union[str, Path, None] = None) -> None:
        self.output_dir = Path(output_dir) if output_dir else Path.cwd()
        self.written: List[Path] = []

    @property
    def name(self) -> str:
        return "JSON files"

    def results_path(self, api_key: str) -> Path:
        return self.output_dir / "RESULTS_{}.json".format(key_slug(api_key))

    def errors_path(self, api_key: str) -> Path:
        return self.output_dir / "ERRORS_{}.json".format(key_slug(api_key))

    def emit(self, result: BatchProcessResult, api_key: str) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)

        results_path = self.results_path(api_key)
        _write_json(results_path, list(result.meetings))
        self.written.append(results_path)

        errors_path: Optional[Path] = None
        if result.errors:
            errors_path = self.errors_path(api_key)
            _write_json(errors_path, list(result.errors))
            self.written.append(errors_path)
        else:
            stale = self.errors_path(api_key)
            if stale.exists():
                stale.unlink()
                logger.debug("Removed stale %s", stale.name)

        logger.info(
            "Saved %d meeting(s) for %s to %s%s",
            len(result.meetings), mask_api_key(api_key), results_path.name,
            " ({} error(s) in {})".format(len(result.errors), errors_path.name) if errors_path else "",
        )


def _write_json(path: Path, payload: object) -> None:
    path.write_text(
        json.dumps(payload, indent=2, ensure_ascii=False, default=str) + "\n",
        encoding="utf-8",
    )
