"""Command-line interface for the Fireflies SDK.

WHY: The most common job is a one-off pull of every meeting across a
team's accounts, and a quick "is my key working?" check. The CLI wires
the aggregation pipeline and a couple of single-call reads behind one
command.

HOW: Uses argparse with subcommands. Keys come from --keys or from
FIREFLIES_API_KEYS / FIREFLIES_API_KEY (.env). The async work runs via
asyncio.run(). Status messages go to stderr; JSON payloads of the
single-call commands go to stdout.

RULES:
- aggregate: runs the pipeline, prints a per-key summary to stderr
- me: prints the current user as JSON on stdout
- transcripts: prints one page of transcripts as JSON on stdout
- ValueError (config, bad fields, bad mode) exits 1 with a message
- Remote failures in single-call commands exit 1 with a message
- Keys are only ever shown masked
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from fireflies_sdk.api.client import FirefliesAPIError, FirefliesClient
from fireflies_sdk.api.models import TranscriptsQuery
from fireflies_sdk.config import (
    DEFAULT_BATCH_DELAY_S,
    DEFAULT_CONCURRENCY_LIMIT,
    DEFAULT_OUTPUT_MODE,
    MAX_PAGE_SIZE,
    load_api_key,
    load_api_keys,
    mask_api_key,
)
from fireflies_sdk.core.batch import WaveProgress
from fireflies_sdk.core.pipeline import aggregate_meetings
from fireflies_sdk.sinks import SINKS


def _status(msg: str) -> None:
    """Print a status message to stderr, flushed, so stdout stays pipeable."""
    print(msg, file=sys.stderr, flush=True)


def _on_progress(progress: WaveProgress) -> None:
    _status("Processing {} to {} of {} for API key: {}".format(
        progress.start, progress.end, progress.total, progress.label
    ))


def _split_csv(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]


async def _run_aggregate(args: argparse.Namespace) -> None:
    keys = _split_csv(args.keys) or load_api_keys()
    _status("Aggregating meetings for {} API key(s)...".format(len(keys)))

    results = await aggregate_meetings(
        keys,
        _split_csv(args.fields),
        args.output,
        output_dir=args.output_dir,
        concurrency_limit=args.concurrency,
        inter_batch_delay=args.delay,
        on_progress=_on_progress,
    )

    _status("")
    for index, (api_key, result) in enumerate(results.items(), start=1):
        _status("API key #{} ({}):".format(index, mask_api_key(api_key)))
        _status("  - Meetings found: {}".format(len(result.meetings)))
        _status("  - Errors encountered: {}".format(len(result.errors)))


async def _run_me(args: argparse.Namespace) -> None:
    async with FirefliesClient(args.key or load_api_key()) as client:
        user = await client.get_current_user(_split_csv(args.fields))
    print(json.dumps(user, indent=2))


async def _run_transcripts(args: argparse.Namespace) -> None:
    params = TranscriptsQuery(limit=args.limit, skip=args.skip, mine=args.mine or None)
    async with FirefliesClient(args.key or load_api_key()) as client:
        transcripts = await client.get_transcripts(params, _split_csv(args.fields))
    print(json.dumps(transcripts, indent=2))


_COMMANDS = {
    "aggregate": _run_aggregate,
    "me": _run_me,
    "transcripts": _run_transcripts,
}


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    Separate from main() so tests can inspect the parser without
    running anything.
    """
    parser = argparse.ArgumentParser(
        prog="fireflies_sdk",
        description="Fireflies.ai client: pull meetings across accounts and query the API.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log progress details (INFO level) to stderr.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    agg = sub.add_parser(
        "aggregate",
        help="Fetch every meeting visible to any of the API keys, each exactly once.",
    )
    agg.add_argument(
        "--keys",
        default=None,
        help="Comma-separated API keys in priority order "
             "(default: FIREFLIES_API_KEYS or FIREFLIES_API_KEY).",
    )
    agg.add_argument(
        "--fields",
        default=None,
        help="Comma-separated transcript fields, e.g. 'id,title,summary { overview }'.",
    )
    agg.add_argument(
        "--output",
        choices=sorted(SINKS.keys()),
        default=DEFAULT_OUTPUT_MODE,
        help="Output mode (default: %(default)s).",
    )
    agg.add_argument(
        "--output-dir",
        default=None,
        help="Directory for JSON output files (default: current directory).",
    )
    agg.add_argument(
        "--concurrency",
        type=int,
        default=DEFAULT_CONCURRENCY_LIMIT,
        help="Meetings fetched per wave (default: %(default)s).",
    )
    agg.add_argument(
        "--delay",
        type=float,
        default=DEFAULT_BATCH_DELAY_S,
        help="Seconds to pause between waves (default: %(default)s).",
    )

    me = sub.add_parser("me", help="Show the user that owns the API key.")
    me.add_argument("--key", default=None, help="API key (default: FIREFLIES_API_KEY).")
    me.add_argument("--fields", default=None, help="Comma-separated user fields.")

    tr = sub.add_parser("transcripts", help="List one page of transcripts.")
    tr.add_argument("--key", default=None, help="API key (default: FIREFLIES_API_KEY).")
    tr.add_argument("--fields", default=None, help="Comma-separated transcript fields.")
    tr.add_argument(
        "--limit",
        type=int,
        default=MAX_PAGE_SIZE,
        help="Page size, at most {} (default: %(default)s).".format(MAX_PAGE_SIZE),
    )
    tr.add_argument("--skip", type=int, default=0, help="Offset (default: %(default)s).")
    tr.add_argument(
        "--mine",
        action="store_true",
        help="Only meetings organised by the key's owner.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m fireflies_sdk`` and the console script.

    argv=None means use sys.argv; explicit argv is for testing.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    # The console sink reports through its logger at INFO
    logging.getLogger("fireflies_sdk.sinks.console").setLevel(logging.INFO)

    try:
        asyncio.run(_COMMANDS[args.command](args))
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except ValueError as e:
        # Config errors (missing API key, bad fields, bad mode, etc.)
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)
    except FirefliesAPIError as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
