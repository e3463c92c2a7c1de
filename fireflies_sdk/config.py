"""Configuration constants, pipeline defaults, and .env loading.

WHY: Centralizes all configurable values so they are easy to find,
update, and override. Endpoint URL, pagination size, and pacing defaults
are plain module-level values, not buried in logic, so the client, the
pipeline, and the CLI all agree on them.

HOW: python-dotenv loads the .env file on import. Constants are read
from the environment with sensible fallbacks. load_api_key() and
load_api_keys() give a clear error when no key is configured.

RULES:
- API keys are loaded from .env via python-dotenv, never hardcoded
- All defaults can be overridden via environment variables
- FIREFLIES_API_KEYS is a comma-separated list for multi-account runs
- Keys are never logged in full; use mask_api_key() in messages
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# API configuration defaults
# ---------------------------------------------------------------------------

FIREFLIES_BASE_URL = os.getenv("FIREFLIES_BASE_URL", "https://api.fireflies.ai/graphql")
FIREFLIES_TIMEOUT_S = float(os.getenv("FIREFLIES_TIMEOUT_S", "60"))

MAX_PAGE_SIZE = 50
"""Largest ``limit`` the transcripts/bites/apps list queries accept."""

# ---------------------------------------------------------------------------
# Aggregation pipeline defaults
# ---------------------------------------------------------------------------

DEFAULT_PAGE_SIZE = int(os.getenv("FIREFLIES_PAGE_SIZE", str(MAX_PAGE_SIZE)))
DEFAULT_CONCURRENCY_LIMIT = int(os.getenv("FIREFLIES_CONCURRENCY_LIMIT", "5"))
DEFAULT_BATCH_DELAY_S = float(os.getenv("FIREFLIES_BATCH_DELAY_S", "5.0"))
DEFAULT_OUTPUT_MODE = os.getenv("FIREFLIES_OUTPUT_MODE", "console")


def load_api_key() -> str:
    """Load the single Fireflies API key from the environment.

    WHY: Every client call needs a key. Loading it from the environment
    (via .env) keeps it out of source code.

    HOW: Reads FIREFLIES_API_KEY from os.environ (populated by python-dotenv).

    RULES:
    - Raises ValueError if the key is missing or empty
    - Never returns a default/placeholder value
    """
    key = os.getenv("FIREFLIES_API_KEY", "").strip()
    if not key:
        raise ValueError(
            "Fireflies API key not configured. "
            "Add FIREFLIES_API_KEY to the .env file."
        )
    return key


def load_api_keys() -> list[str]:
    """Load the API keys used for a multi-account aggregation run.

    Reads the comma-separated FIREFLIES_API_KEYS; falls back to the single
    FIREFLIES_API_KEY. Order is preserved because it decides meeting
    ownership when several accounts can see the same meeting.
    """
    raw = os.getenv("FIREFLIES_API_KEYS", "")
    keys = [k.strip() for k in raw.split(",") if k.strip()]
    if keys:
        return keys
    try:
        return [load_api_key()]
    except ValueError:
        raise ValueError(
            "No Fireflies API keys configured. "
            "Set FIREFLIES_API_KEYS (comma-separated) or FIREFLIES_API_KEY in .env."
        ) from None


def mask_api_key(api_key: str) -> str:
    """Return a log-safe prefix of an API key (the part before the first '-')."""
    prefix = api_key.split("-", 1)[0]
    if prefix == api_key:
        return api_key[:4] + "..."
    return prefix
