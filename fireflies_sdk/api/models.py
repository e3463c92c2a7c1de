"""Fireflies API request and response dataclasses.

WHY: Read queries return whatever projection the caller asked for, so
records (transcripts, users, bites) stay plain dicts. Mutations and
list filters, on the other hand, have a fixed shape. Typed dataclasses
make those shapes explicit, enable IDE autocompletion, and catch field
mismatches early.

HOW: Query and input dataclasses expose to_variables(), which drops
unset (None) fields so the GraphQL server applies its own defaults.
Response dataclasses expose from_dict() factories that parse the raw
``data`` payload.

RULES:
- Field names match the Fireflies GraphQL schema exactly (snake_case)
- to_variables() never sends None values
- from_dict() tolerates absent optional fields
"""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


class UserRole(str, enum.Enum):
    """Team roles accepted by the setUserRole mutation."""

    ADMIN = "admin"
    USER = "user"


# ---------------------------------------------------------------------------
# List query parameters
# ---------------------------------------------------------------------------


@dataclass
class TranscriptsQuery:
    """Filters for the ``transcripts`` list query.

    RULES:
    - limit: at most 50 (server maximum)
    - from_date / to_date: ISO 8601 strings (YYYY-MM-DDTHH:mm.sssZ)
    - date: deprecated, milliseconds since epoch
    """

    title: Optional[str] = None
    from_date: Optional[str] = None
    to_date: Optional[str] = None
    date: Optional[float] = None
    limit: Optional[int] = None
    skip: Optional[int] = None
    host_email: Optional[str] = None
    organizer_email: Optional[str] = None
    participant_email: Optional[str] = None
    user_id: Optional[str] = None
    mine: Optional[bool] = None

    def to_variables(self) -> Dict[str, Any]:
        return _drop_none({
            "title": self.title,
            "fromDate": self.from_date,
            "toDate": self.to_date,
            "date": self.date,
            "limit": self.limit,
            "skip": self.skip,
            "hostEmail": self.host_email,
            "organizerEmail": self.organizer_email,
            "participantEmail": self.participant_email,
            "userId": self.user_id,
            "mine": self.mine,
        })


@dataclass
class BitesQuery:
    """Filters for the ``bites`` list query (limit at most 50)."""

    mine: Optional[bool] = None
    transcript_id: Optional[str] = None
    my_team: Optional[bool] = None
    limit: Optional[int] = None
    skip: Optional[int] = None

    def to_variables(self) -> Dict[str, Any]:
        return _drop_none(asdict(self))


@dataclass
class AIAppsQuery:
    """Filters for the ``apps`` query returning AI app outputs."""

    app_id: Optional[str] = None
    transcript_id: Optional[str] = None
    skip: Optional[int] = None
    limit: Optional[int] = None

    def to_variables(self) -> Dict[str, Any]:
        return _drop_none(asdict(self))


# ---------------------------------------------------------------------------
# Mutation inputs
# ---------------------------------------------------------------------------


@dataclass
class Attendee:
    """An attendee passed to uploadAudio / addToLiveMeeting."""

    displayName: str
    email: str
    phoneNumber: Optional[str] = None

    def to_variables(self) -> Dict[str, Any]:
        return _drop_none(asdict(self))


@dataclass
class AudioUploadInput:
    """Input for the uploadAudio mutation.

    RULES:
    - url must be HTTPS and publicly accessible
    - title is required
    """

    url: str
    title: str
    webhook: Optional[str] = None
    custom_language: Optional[str] = None
    save_video: Optional[bool] = None
    attendees: List[Attendee] = field(default_factory=list)
    client_reference_id: Optional[str] = None

    def to_variables(self) -> Dict[str, Any]:
        data = _drop_none({
            "url": self.url,
            "title": self.title,
            "webhook": self.webhook,
            "custom_language": self.custom_language,
            "save_video": self.save_video,
            "client_reference_id": self.client_reference_id,
        })
        if self.attendees:
            data["attendees"] = [a.to_variables() for a in self.attendees]
        return data


@dataclass
class CreateBiteInput:
    """Input for the createBite mutation. Times are in seconds."""

    transcript_id: str
    start_time: float
    end_time: float
    name: Optional[str] = None
    media_type: Optional[str] = None  # "video" or "audio"
    privacies: Optional[List[str]] = None  # "public", "team", "participants"
    summary: Optional[str] = None

    def to_variables(self) -> Dict[str, Any]:
        return _drop_none(asdict(self))


@dataclass
class AddToLiveMeetingInput:
    """Input for the addToLiveMeeting mutation.

    RULES:
    - duration is in minutes, 15..120, server default 60
    """

    meeting_link: str
    title: Optional[str] = None
    meeting_password: Optional[str] = None
    duration: Optional[int] = None
    language: Optional[str] = None
    attendees: List[Attendee] = field(default_factory=list)

    def to_variables(self) -> Dict[str, Any]:
        data = _drop_none({
            "meeting_link": self.meeting_link,
            "title": self.title,
            "meeting_password": self.meeting_password,
            "duration": self.duration,
            "language": self.language,
        })
        if self.attendees:
            data["attendees"] = [a.to_variables() for a in self.attendees]
        return data


# ---------------------------------------------------------------------------
# Mutation responses
# ---------------------------------------------------------------------------


@dataclass
class SetUserRoleResponse:
    name: str
    is_admin: bool

    @classmethod
    def from_dict(cls, data: dict) -> SetUserRoleResponse:
        return cls(name=data.get("name", ""), is_admin=bool(data.get("is_admin")))


@dataclass
class DeleteTranscriptResponse:
    title: str
    date: Optional[float]
    duration: Optional[float]
    organizer_email: Optional[str]

    @classmethod
    def from_dict(cls, data: dict) -> DeleteTranscriptResponse:
        return cls(
            title=data.get("title", ""),
            date=data.get("date"),
            duration=data.get("duration"),
            organizer_email=data.get("organizer_email"),
        )


@dataclass
class AudioUploadResponse:
    success: bool
    title: str
    message: str

    @classmethod
    def from_dict(cls, data: dict) -> AudioUploadResponse:
        return cls(
            success=bool(data.get("success")),
            title=data.get("title", ""),
            message=data.get("message", ""),
        )


@dataclass
class CreateBiteResponse:
    id: str
    name: Optional[str]
    status: str

    @classmethod
    def from_dict(cls, data: dict) -> CreateBiteResponse:
        return cls(id=data["id"], name=data.get("name"), status=data.get("status", ""))


@dataclass
class AddToLiveMeetingResponse:
    success: bool

    @classmethod
    def from_dict(cls, data: dict) -> AddToLiveMeetingResponse:
        return cls(success=bool(data.get("success")))


@dataclass
class Summary:
    """The AI-generated summary attached to a transcript.

    WHY: get_transcript_summary() is the one read helper with a fixed
    projection, so its result can be typed.

    RULES:
    - List fields default to [] and string fields to "" when absent or null
    """

    overview: str = ""
    short_summary: str = ""
    meeting_type: str = ""
    keywords: List[str] = field(default_factory=list)
    action_items: List[str] = field(default_factory=list)
    topics_discussed: List[str] = field(default_factory=list)

    FIELDS = ("overview", "short_summary", "meeting_type", "keywords",
              "action_items", "topics_discussed")

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Summary:
        data = data or {}
        return cls(
            overview=data.get("overview") or "",
            short_summary=data.get("short_summary") or "",
            meeting_type=data.get("meeting_type") or "",
            keywords=list(data.get("keywords") or []),
            action_items=_as_list(data.get("action_items")),
            topics_discussed=list(data.get("topics_discussed") or []),
        )


def _as_list(value: Any) -> List[str]:
    # action_items comes back as a newline-separated string on some plans
    if not value:
        return []
    if isinstance(value, str):
        return [line.strip() for line in value.splitlines() if line.strip()]
    return list(value)
