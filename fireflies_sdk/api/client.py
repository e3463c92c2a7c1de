"""Async GraphQL client for the Fireflies.ai meeting-transcription API.

WHY: Every Fireflies operation (read a user, list transcripts, create a
bite, upload audio, ...) is a single GraphQL request against one
endpoint. This module encapsulates auth, request shaping, field
projection, and error wrapping behind one client class so callers (CLI,
aggregation pipeline, tests) don't need to know HTTP or GraphQL details.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. FirefliesClient is an
async context manager bound to exactly one API key: enter it to get an
authenticated client, exit to close the connection pool. Each operation
builds its query text, validates the requested fields through
api.fields, and goes through _execute(), which POSTs {query, variables}
and unwraps the ``data`` payload.

RULES:
- Always use the async context manager (async with FirefliesClient(key) as client:)
- One client instance == one API key (one account)
- Non-2xx responses and transport failures raise FirefliesAPIError
- A 200 response carrying a GraphQL ``errors`` array raises FirefliesGraphQLError
- Field projections are validated before any request is sent
- No retries here; callers decide how to isolate failures
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from fireflies_sdk.api.fields import build_selection, validate_fields
from fireflies_sdk.api.models import (
    AddToLiveMeetingInput,
    AddToLiveMeetingResponse,
    AIAppsQuery,
    AudioUploadInput,
    AudioUploadResponse,
    BitesQuery,
    CreateBiteInput,
    CreateBiteResponse,
    DeleteTranscriptResponse,
    SetUserRoleResponse,
    Summary,
    TranscriptsQuery,
    UserRole,
)
from fireflies_sdk.config import (
    FIREFLIES_BASE_URL,
    FIREFLIES_TIMEOUT_S,
    MAX_PAGE_SIZE,
    load_api_key,
    mask_api_key,
)

logger = logging.getLogger(__name__)

_LIVE_MEETING_MIN_DURATION = 15
_LIVE_MEETING_MAX_DURATION = 120


class FirefliesAPIError(Exception):
    """Raised when a Fireflies request fails at the HTTP level.

    WHY: Callers need a typed exception to distinguish remote failures
    from local validation errors.

    HOW: Wraps the HTTP status code and response body. Transport failures
    (DNS, connection reset, timeout) are wrapped with status_code 0.

    RULES:
    - Always include status_code and message
    - message is the server's error message when one can be parsed
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Fireflies API error {status_code}: {message}")


class FirefliesGraphQLError(FirefliesAPIError):
    """Raised when the server answers 200 but reports GraphQL errors.

    HOW: Carries the first error's message and its ``extensions.code``
    (e.g. "object_not_found", "too_many_requests") when present.
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        self.code = code
        super().__init__(200, message)


class FirefliesClient:
    """Async client for the Fireflies GraphQL API.

    WHY: Provides a clean, typed interface for every Fireflies operation
    used by this package. Handles auth, projection, and error wrapping.

    HOW: Wraps httpx.AsyncClient with Bearer token auth. Each operation is
    an async method issuing one GraphQL request.

    RULES:
    - Use as: async with FirefliesClient(api_key) as client: ...
    - api_key defaults to load_api_key() from .env
    - base_url defaults to FIREFLIES_BASE_URL from config
    - transport is for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key or load_api_key()
        self._base_url = base_url or FIREFLIES_BASE_URL
        self._timeout = timeout if timeout is not None else FIREFLIES_TIMEOUT_S
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def api_key(self) -> str:
        return self._api_key

    async def __aenter__(self) -> FirefliesClient:
        self._client = httpx.AsyncClient(
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self._api_key}",
            },
            timeout=httpx.Timeout(self._timeout, connect=30.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "FirefliesClient must be used as an async context manager: "
                "async with FirefliesClient(api_key) as client: ..."
            )
        return self._client

    async def _execute(self, query: str, variables: dict[str, Any] | None = None) -> dict:
        """POST one GraphQL operation and return its ``data`` object.

        RULES:
        - Raises FirefliesAPIError on transport errors and non-2xx responses
        - Raises FirefliesGraphQLError when the body has an ``errors`` array
        - Returns {} when ``data`` is null
        """
        client = self._ensure_client()
        try:
            resp = await client.post(
                self._base_url,
                json={"query": query, "variables": variables or {}},
            )
        except httpx.HTTPError as e:
            raise FirefliesAPIError(0, str(e) or type(e).__name__) from e

        if resp.status_code != 200:
            logger.debug(
                "Fireflies request failed for %s: %s %s",
                mask_api_key(self._api_key), resp.status_code, resp.text,
            )
            raise FirefliesAPIError(resp.status_code, _error_message(resp))

        try:
            body = resp.json()
        except ValueError as e:
            raise FirefliesAPIError(resp.status_code, "Invalid JSON response") from e
        errors = body.get("errors")
        if errors:
            first = errors[0] or {}
            raise FirefliesGraphQLError(
                first.get("message", "Unknown GraphQL error"),
                code=(first.get("extensions") or {}).get("code"),
            )
        return body.get("data") or {}

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def get_user(self, user_id: str | None = None, fields: list[str] | None = None) -> dict:
        """Fetch one user; without user_id the API key's owner is returned."""
        selection = build_selection(validate_fields("user", fields))
        query = f"""
            query User($userId: String) {{
              user(id: $userId) {{ {selection} }}
            }}
        """
        data = await self._execute(query, {"userId": user_id} if user_id else {})
        return data.get("user") or {}

    async def get_current_user(self, fields: list[str] | None = None) -> dict:
        return await self.get_user(None, fields)

    async def get_users(self, fields: list[str] | None = None) -> list[dict]:
        """Fetch every user in the key owner's team."""
        selection = build_selection(validate_fields("user", fields))
        query = f"""
            query Users {{
              users {{ {selection} }}
            }}
        """
        data = await self._execute(query)
        return data.get("users") or []

    async def set_user_role(self, user_id: str, role: UserRole) -> SetUserRoleResponse:
        query = """
            mutation SetUserRole($userId: String!, $role: Role!) {
              setUserRole(user_id: $userId, role: $role) { name is_admin }
            }
        """
        data = await self._execute(query, {"userId": user_id, "role": UserRole(role).value})
        return SetUserRoleResponse.from_dict(data.get("setUserRole") or {})

    # ------------------------------------------------------------------
    # Transcripts
    # ------------------------------------------------------------------

    async def get_transcript(self, transcript_id: str, fields: list[str] | None = None) -> dict:
        """Fetch a single transcript record with the requested projection.

        RULES:
        - Raises FirefliesAPIError when the transcript comes back null,
          so a missing record counts as a failure rather than an empty dict
        """
        selection = build_selection(validate_fields("transcript", fields))
        query = f"""
            query Transcript($transcriptId: String!) {{
              transcript(id: $transcriptId) {{ {selection} }}
            }}
        """
        data = await self._execute(query, {"transcriptId": transcript_id})
        transcript = data.get("transcript")
        if transcript is None:
            raise FirefliesAPIError(404, f"Transcript {transcript_id} not found")
        return transcript

    async def get_transcripts(
        self,
        params: TranscriptsQuery | None = None,
        fields: list[str] | None = None,
    ) -> list[dict]:
        """List transcripts visible to this key, filtered by params.

        RULES:
        - params.limit must not exceed 50
        - Returns [] when the server answers null
        """
        params = params or TranscriptsQuery()
        _check_limit(params.limit)
        selection = build_selection(validate_fields("transcript", fields))
        query = f"""
            query Transcripts(
              $title: String
              $fromDate: DateTime
              $toDate: DateTime
              $date: Float
              $limit: Int
              $skip: Int
              $hostEmail: String
              $organizerEmail: String
              $participantEmail: String
              $userId: String
              $mine: Boolean
            ) {{
              transcripts(
                title: $title
                fromDate: $fromDate
                toDate: $toDate
                date: $date
                limit: $limit
                skip: $skip
                host_email: $hostEmail
                organizer_email: $organizerEmail
                participant_email: $participantEmail
                user_id: $userId
                mine: $mine
              ) {{ {selection} }}
            }}
        """
        data = await self._execute(query, params.to_variables())
        return data.get("transcripts") or []

    async def list_transcript_ids(self, limit: int, skip: int) -> list[str]:
        """Return one page of transcript ids (the pagination primitive)."""
        items = await self.get_transcripts(TranscriptsQuery(limit=limit, skip=skip), ["id"])
        return [item["id"] for item in items]

    async def delete_transcript(self, transcript_id: str) -> DeleteTranscriptResponse:
        query = """
            mutation DeleteTranscript($transcriptId: String!) {
              deleteTranscript(id: $transcriptId) { title date duration organizer_email }
            }
        """
        data = await self._execute(query, {"transcriptId": transcript_id})
        return DeleteTranscriptResponse.from_dict(data.get("deleteTranscript") or {})

    async def get_transcript_summary(self, transcript_id: str) -> Summary:
        field = "summary {{ {} }}".format(" ".join(Summary.FIELDS))
        transcript = await self.get_transcript(transcript_id, [field])
        return Summary.from_dict(transcript.get("summary"))

    async def get_meeting_videos(self, limit: int = MAX_PAGE_SIZE) -> list[dict]:
        """List recent transcripts with their video URL (None when no video)."""
        return await self.get_transcripts(
            TranscriptsQuery(limit=limit), ["id", "title", "video_url"]
        )

    async def find_external_participant_questions(
        self,
        internal_domain: str,
        transcript_id: str | None = None,
    ) -> tuple[list[str], list[str]]:
        """Collect questions asked by participants outside internal_domain.

        WHY: A common follow-up workflow is "what did the customer ask?".
        Fireflies tags question sentences via ``ai_filters.question``.

        HOW: Reads participants and sentences of one transcript (the most
        recent one when transcript_id is None). A participant is external
        when their email does not end with internal_domain. Sentence
        speakers are matched to participants by the local part of the
        email or by display name, case-insensitively.

        Returns:
            (external participant emails, question texts in spoken order)
        """
        domain = internal_domain.lower()
        if not domain.startswith("@"):
            domain = "@" + domain

        if transcript_id is None:
            latest = await self.get_transcripts(TranscriptsQuery(limit=1), ["id"])
            if not latest:
                return [], []
            transcript_id = latest[0]["id"]

        transcript = await self.get_transcript(
            transcript_id,
            ["participants", "sentences { speaker_name text ai_filters { question } }"],
        )
        participants = transcript.get("participants") or []
        external = [p for p in participants if p and not p.lower().endswith(domain)]
        external_names = {p.split("@", 1)[0].lower() for p in external}

        questions: list[str] = []
        for sentence in transcript.get("sentences") or []:
            speaker = (sentence.get("speaker_name") or "").lower()
            filters = sentence.get("ai_filters") or {}
            if not filters.get("question"):
                continue
            if speaker in external_names or speaker.replace(" ", ".") in external_names:
                questions.append(sentence.get("text", ""))
        return external, questions

    # ------------------------------------------------------------------
    # Bites
    # ------------------------------------------------------------------

    async def get_bite(self, bite_id: str, fields: list[str] | None = None) -> dict:
        selection = build_selection(validate_fields("bite", fields))
        query = f"""
            query Bite($biteId: ID!) {{
              bite(id: $biteId) {{ {selection} }}
            }}
        """
        data = await self._execute(query, {"biteId": bite_id})
        return data.get("bite") or {}

    async def get_bites(
        self,
        params: BitesQuery | None = None,
        fields: list[str] | None = None,
    ) -> list[dict]:
        params = params or BitesQuery()
        _check_limit(params.limit)
        selection = build_selection(validate_fields("bite", fields))
        query = f"""
            query Bites($mine: Boolean, $transcript_id: ID, $my_team: Boolean, $limit: Int, $skip: Int) {{
              bites(mine: $mine, transcript_id: $transcript_id, my_team: $my_team, limit: $limit, skip: $skip) {{
                {selection}
              }}
            }}
        """
        data = await self._execute(query, params.to_variables())
        return data.get("bites") or []

    async def create_bite(self, bite: CreateBiteInput) -> CreateBiteResponse:
        """Create a bite (clip) from a span of a transcript.

        RULES:
        - start_time >= 0 and end_time > start_time, else ValueError
        """
        if bite.start_time < 0 or bite.end_time <= bite.start_time:
            raise ValueError(
                "Invalid bite range: start_time={} end_time={}".format(
                    bite.start_time, bite.end_time
                )
            )
        query = """
            mutation CreateBite(
              $transcript_id: ID!
              $name: String
              $start_time: Float!
              $end_time: Float!
              $media_type: String
              $privacies: [String]
              $summary: String
            ) {
              createBite(
                transcript_id: $transcript_id
                name: $name
                start_time: $start_time
                end_time: $end_time
                media_type: $media_type
                privacies: $privacies
                summary: $summary
              ) { status name id }
            }
        """
        data = await self._execute(query, bite.to_variables())
        return CreateBiteResponse.from_dict(data.get("createBite") or {})

    # ------------------------------------------------------------------
    # AI apps
    # ------------------------------------------------------------------

    async def get_ai_apps_outputs(
        self,
        params: AIAppsQuery | None = None,
        fields: list[str] | None = None,
    ) -> list[dict]:
        params = params or AIAppsQuery()
        _check_limit(params.limit)
        selection = build_selection(validate_fields("ai_app_output", fields))
        query = f"""
            query GetAIAppsOutputs($app_id: String, $transcript_id: String, $skip: Float, $limit: Float) {{
              apps(app_id: $app_id, transcript_id: $transcript_id, skip: $skip, limit: $limit) {{
                outputs {{ {selection} }}
              }}
            }}
        """
        data = await self._execute(query, params.to_variables())
        return (data.get("apps") or {}).get("outputs") or []

    # ------------------------------------------------------------------
    # Uploads and live meetings
    # ------------------------------------------------------------------

    async def upload_audio(self, upload: AudioUploadInput) -> AudioUploadResponse:
        """Submit a publicly reachable audio file for transcription.

        RULES:
        - url must start with https:// (ValueError otherwise)
        """
        if not upload.url.lower().startswith("https://"):
            raise ValueError("Audio URL must be HTTPS: {}".format(upload.url))
        query = """
            mutation UploadAudio($input: AudioUploadInput) {
              uploadAudio(input: $input) { success title message }
            }
        """
        data = await self._execute(query, {"input": upload.to_variables()})
        return AudioUploadResponse.from_dict(data.get("uploadAudio") or {})

    async def add_to_live_meeting(self, meeting: AddToLiveMeetingInput) -> AddToLiveMeetingResponse:
        """Ask the Fireflies notetaker to join a live meeting.

        RULES:
        - duration, when set, must be within 15..120 minutes
        """
        if meeting.duration is not None and not (
            _LIVE_MEETING_MIN_DURATION <= meeting.duration <= _LIVE_MEETING_MAX_DURATION
        ):
            raise ValueError(
                "Live meeting duration must be between {} and {} minutes, got {}".format(
                    _LIVE_MEETING_MIN_DURATION, _LIVE_MEETING_MAX_DURATION, meeting.duration
                )
            )
        query = """
            mutation AddToLiveMeeting(
              $meeting_link: String!
              $title: String
              $meeting_password: String
              $duration: Int
              $language: String
              $attendees: [Attendee]
            ) {
              addToLiveMeeting(
                meeting_link: $meeting_link
                title: $title
                meeting_password: $meeting_password
                duration: $duration
                language: $language
                attendees: $attendees
              ) { success }
            }
        """
        data = await self._execute(query, meeting.to_variables())
        return AddToLiveMeetingResponse.from_dict(data.get("addToLiveMeeting") or {})


# ---------------------------------------------------------------------------
# Helpers (module-private)
# ---------------------------------------------------------------------------


def _check_limit(limit: int | None) -> None:
    if limit is not None and not (0 < limit <= MAX_PAGE_SIZE):
        raise ValueError(
            "limit must be between 1 and {}, got {}".format(MAX_PAGE_SIZE, limit)
        )


def _error_message(resp: httpx.Response) -> str:
    """Pull a readable message out of an error response body."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    if isinstance(body, dict):
        if body.get("message"):
            return str(body["message"])
        errors = body.get("errors")
        if errors and isinstance(errors, list) and isinstance(errors[0], dict):
            return str(errors[0].get("message", resp.text))
    return resp.text
