"""Field projections for Fireflies GraphQL queries.

WHY: Every read query asks the caller which fields to return. Joining
arbitrary strings into a query only fails once the server rejects it,
with a cryptic GraphQL error. Validating the requested projection
against the known fields of each record type gives an immediate,
readable error before any request is sent.

HOW: FIELD_SCHEMAS maps a record type ("user", "transcript", "bite",
"ai_app_output") to the set of top-level field names it exposes. A
field spec is either a bare name ("title") or a name followed by a
nested selection ("summary { keywords overview }"). Only the top-level
name is checked; nested selections are passed through once their braces
balance. build_selection() renders the validated specs into the GraphQL
selection set body.

RULES:
- validate_fields() raises InvalidFieldError for unknown names,
  empty projections, and unbalanced braces
- Duplicate field specs are collapsed, first occurrence wins
- DEFAULT_FIELDS is used when the caller passes no fields
"""

from __future__ import annotations

import re
from collections.abc import Iterable

FIELD_SCHEMAS: dict[str, frozenset[str]] = {
    "user": frozenset({
        "user_id", "recent_transcript", "recent_meeting", "num_transcripts",
        "name", "minutes_consumed", "is_admin", "integrations", "email",
    }),
    "transcript": frozenset({
        "id", "dateString", "privacy", "speakers", "sentences", "title",
        "host_email", "organizer_email", "calendar_id", "user",
        "fireflies_users", "participants", "date", "transcript_url",
        "audio_url", "video_url", "duration", "meeting_attendees", "summary",
        "cal_id", "calendar_type", "apps_preview", "meeting_link",
    }),
    "bite": frozenset({
        "transcript_id", "name", "id", "thumbnail", "preview", "status",
        "summary", "user_id", "start_time", "end_time", "summary_status",
        "media_type", "created_at", "created_from", "captions", "sources",
        "privacies", "user",
    }),
    "ai_app_output": frozenset({
        "transcript_id", "user_id", "app_id", "created_at", "title",
        "prompt", "response",
    }),
}

DEFAULT_FIELDS: dict[str, tuple[str, ...]] = {
    "user": ("user_id", "name", "email"),
    "transcript": ("id", "title", "date", "duration"),
    "bite": ("id", "name", "status", "start_time", "end_time"),
    "ai_app_output": ("transcript_id", "app_id", "title", "response"),
}

_FIELD_NAME = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*(\{.*\})?\s*$", re.DOTALL)


class InvalidFieldError(ValueError):
    """Raised when a requested field projection does not fit the record type.

    WHY: Callers need a typed error to tell a bad projection apart from
    a remote failure; it is raised before any network activity.

    RULES:
    - Message names the record type and the offending field spec
    """


def _balanced(text: str) -> bool:
    depth = 0
    for ch in text:
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def validate_fields(record_type: str, fields: Iterable[str] | None = None) -> list[str]:
    """Check a field projection against FIELD_SCHEMAS and normalise it.

    Args:
        record_type: One of the keys of FIELD_SCHEMAS.
        fields: Field specs; None means DEFAULT_FIELDS for the type.

    Returns:
        The de-duplicated field specs, stripped, in request order.
    """
    if record_type not in FIELD_SCHEMAS:
        raise InvalidFieldError("Unknown record type '{}'".format(record_type))
    if fields is None:
        return list(DEFAULT_FIELDS[record_type])

    allowed = FIELD_SCHEMAS[record_type]
    result: list[str] = []
    seen: set[str] = set()
    for spec in fields:
        spec = spec.strip()
        match = _FIELD_NAME.match(spec)
        if not match or not _balanced(spec):
            raise InvalidFieldError(
                "Malformed field '{}' for {}".format(spec, record_type)
            )
        name = match.group(1)
        if name not in allowed:
            raise InvalidFieldError(
                "Unknown field '{}' for {}. Available: {}".format(
                    name, record_type, ", ".join(sorted(allowed))
                )
            )
        if spec not in seen:
            seen.add(spec)
            result.append(spec)

    if not result:
        raise InvalidFieldError("Empty field projection for {}".format(record_type))
    return result


def build_selection(fields: Iterable[str]) -> str:
    """Render field specs as a GraphQL selection body."""
    return " ".join(fields)
