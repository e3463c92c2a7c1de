"""Tests for the Fireflies GraphQL client (api.client).

WHY: Every remote operation funnels through FirefliesClient._execute().
Auth headers, variable shaping, and the mapping of HTTP and GraphQL
failures onto typed exceptions are what the aggregation pipeline relies
on to isolate errors correctly.

HOW: httpx.MockTransport stands in for the network. Each test installs
a handler that inspects the outgoing request and returns a canned
response. Requests are captured for assertions.

RULES:
- The real Fireflies API is never called
- Local validation errors must fire before any request is sent
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from fireflies_sdk.api.client import (
    FirefliesAPIError,
    FirefliesClient,
    FirefliesGraphQLError,
)
from fireflies_sdk.api.fields import InvalidFieldError
from fireflies_sdk.api.models import (
    AddToLiveMeetingInput,
    Attendee,
    AudioUploadInput,
    BitesQuery,
    CreateBiteInput,
    TranscriptsQuery,
    UserRole,
)

BASE_URL = "https://example.test/graphql"


class Recorder:
    """MockTransport handler that records requests and replays responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)

    def body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


def _call(handler, method, *args, **kwargs):
    async def _run():
        async with FirefliesClient(
            "key-123", base_url=BASE_URL, transport=httpx.MockTransport(handler)
        ) as client:
            return await getattr(client, method)(*args, **kwargs)

    return asyncio.run(_run())


class TestTransport:
    def test_sends_bearer_auth_and_json(self):
        rec = Recorder({"data": {"user": {"name": "Ada"}}})
        assert _call(rec, "get_current_user", ["name"]) == {"name": "Ada"}
        request = rec.requests[0]
        assert request.method == "POST"
        assert str(request.url) == BASE_URL
        assert request.headers["Authorization"] == "Bearer key-123"
        assert "user" in rec.body()["query"]

    def test_http_error_status(self):
        rec = Recorder(httpx.Response(401, json={"message": "Invalid API key"}))
        with pytest.raises(FirefliesAPIError) as exc_info:
            _call(rec, "get_current_user")
        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Invalid API key"

    def test_http_error_with_plain_text_body(self):
        rec = Recorder(httpx.Response(502, text="Bad Gateway"))
        with pytest.raises(FirefliesAPIError, match="Bad Gateway"):
            _call(rec, "get_current_user")

    def test_graphql_errors_raise_typed_error(self):
        rec = Recorder({
            "data": None,
            "errors": [{"message": "Too many requests", "extensions": {"code": "too_many_requests"}}],
        })
        with pytest.raises(FirefliesGraphQLError) as exc_info:
            _call(rec, "get_transcript", "t1")
        assert exc_info.value.code == "too_many_requests"
        assert exc_info.value.message == "Too many requests"
        assert isinstance(exc_info.value, FirefliesAPIError)

    def test_transport_failure_wrapped(self):
        rec = Recorder(httpx.ConnectError("connection refused"))
        with pytest.raises(FirefliesAPIError) as exc_info:
            _call(rec, "get_current_user")
        assert exc_info.value.status_code == 0

    def test_invalid_json_body(self):
        rec = Recorder(httpx.Response(200, text="<html>"))
        with pytest.raises(FirefliesAPIError, match="Invalid JSON"):
            _call(rec, "get_current_user")

    def test_requires_context_manager(self):
        client = FirefliesClient("key-123", base_url=BASE_URL)
        with pytest.raises(RuntimeError):
            asyncio.run(client.get_current_user())


class TestReads:
    def test_get_user_passes_id(self):
        rec = Recorder({"data": {"user": {"user_id": "u1"}}})
        _call(rec, "get_user", "u1", ["user_id"])
        assert rec.body()["variables"] == {"userId": "u1"}

    def test_get_users(self):
        rec = Recorder({"data": {"users": [{"name": "a"}, {"name": "b"}]}})
        assert len(_call(rec, "get_users", ["name"])) == 2

    def test_get_transcript_projection_in_query(self):
        rec = Recorder({"data": {"transcript": {"id": "t1", "title": "Sync"}}})
        record = _call(rec, "get_transcript", "t1", ["id", "title", "summary { overview }"])
        assert record == {"id": "t1", "title": "Sync"}
        body = rec.body()
        assert body["variables"] == {"transcriptId": "t1"}
        assert "id title summary { overview }" in body["query"]

    def test_missing_transcript_raises(self):
        rec = Recorder({"data": {"transcript": None}})
        with pytest.raises(FirefliesAPIError) as exc_info:
            _call(rec, "get_transcript", "t404")
        assert exc_info.value.status_code == 404

    def test_invalid_field_sends_nothing(self):
        rec = Recorder({"data": {}})
        with pytest.raises(InvalidFieldError):
            _call(rec, "get_transcript", "t1", ["bogus"])
        assert rec.requests == []

    def test_get_transcripts_maps_filters_to_variables(self):
        rec = Recorder({"data": {"transcripts": [{"id": "a"}]}})
        params = TranscriptsQuery(limit=10, skip=20, host_email="h@x.com", mine=True)
        assert _call(rec, "get_transcripts", params, ["id"]) == [{"id": "a"}]
        assert rec.body()["variables"] == {"limit": 10, "skip": 20, "hostEmail": "h@x.com", "mine": True}

    def test_get_transcripts_null_is_empty(self):
        rec = Recorder({"data": {"transcripts": None}})
        assert _call(rec, "get_transcripts") == []

    def test_list_transcript_ids(self):
        rec = Recorder({"data": {"transcripts": [{"id": "a"}, {"id": "b"}]}})
        assert _call(rec, "list_transcript_ids", limit=50, skip=100) == ["a", "b"]
        assert rec.body()["variables"] == {"limit": 50, "skip": 100}

    def test_limit_above_maximum_rejected(self):
        rec = Recorder({"data": {}})
        with pytest.raises(ValueError):
            _call(rec, "get_transcripts", TranscriptsQuery(limit=51))
        with pytest.raises(ValueError):
            _call(rec, "get_bites", BitesQuery(limit=100))
        assert rec.requests == []

    def test_get_bites_and_bite(self):
        rec = Recorder({"data": {"bites": [{"id": "b1"}], "bite": {"id": "b1"}}})
        assert _call(rec, "get_bites", BitesQuery(mine=True, limit=10), ["id"]) == [{"id": "b1"}]
        assert rec.body()["variables"] == {"mine": True, "limit": 10}
        assert _call(rec, "get_bite", "b1", ["id"]) == {"id": "b1"}

    def test_get_ai_apps_outputs(self):
        rec = Recorder({"data": {"apps": {"outputs": [{"app_id": "x"}]}}})
        assert _call(rec, "get_ai_apps_outputs", None, ["app_id"]) == [{"app_id": "x"}]

    def test_get_transcript_summary(self):
        rec = Recorder({"data": {"transcript": {"summary": {
            "overview": "We shipped.",
            "keywords": ["release"],
            "action_items": "Ada: write notes\nBob: deploy\n",
        }}}})
        summary = _call(rec, "get_transcript_summary", "t1")
        assert summary.overview == "We shipped."
        assert summary.keywords == ["release"]
        assert summary.action_items == ["Ada: write notes", "Bob: deploy"]
        assert summary.topics_discussed == []

    def test_get_meeting_videos(self):
        rec = Recorder({"data": {"transcripts": [{"id": "a", "title": "A", "video_url": None}]}})
        assert _call(rec, "get_meeting_videos")[0]["video_url"] is None
        assert "video_url" in rec.body()["query"]

    def test_find_external_participant_questions(self):
        rec = Recorder(
            {"data": {"transcripts": [{"id": "t1"}]}},
            {"data": {"transcript": {
                "participants": ["ada@acme.com", "carol@client.io"],
                "sentences": [
                    {"speaker_name": "Carol", "text": "When is launch?", "ai_filters": {"question": "When is launch?"}},
                    {"speaker_name": "Ada", "text": "Any blockers?", "ai_filters": {"question": "Any blockers?"}},
                    {"speaker_name": "Carol", "text": "Sounds good.", "ai_filters": {"question": None}},
                ],
            }}},
        )
        external, questions = _call(rec, "find_external_participant_questions", "acme.com")
        assert external == ["carol@client.io"]
        assert questions == ["When is launch?"]
        assert rec.body(1)["variables"] == {"transcriptId": "t1"}


class TestMutations:
    def test_set_user_role(self):
        rec = Recorder({"data": {"setUserRole": {"name": "Ada", "is_admin": True}}})
        resp = _call(rec, "set_user_role", "u1", UserRole.ADMIN)
        assert resp.is_admin is True
        assert rec.body()["variables"] == {"userId": "u1", "role": "admin"}

    def test_delete_transcript(self):
        rec = Recorder({"data": {"deleteTranscript": {"title": "Old", "date": 1700000000000}}})
        resp = _call(rec, "delete_transcript", "t1")
        assert resp.title == "Old"
        assert resp.organizer_email is None

    def test_upload_audio(self):
        rec = Recorder({"data": {"uploadAudio": {"success": True, "title": "T", "message": "queued"}}})
        upload = AudioUploadInput(
            url="https://cdn.example.com/a.mp3",
            title="T",
            attendees=[Attendee(displayName="Ada", email="ada@acme.com")],
        )
        resp = _call(rec, "upload_audio", upload)
        assert resp.success is True
        assert rec.body()["variables"]["input"] == {
            "url": "https://cdn.example.com/a.mp3",
            "title": "T",
            "attendees": [{"displayName": "Ada", "email": "ada@acme.com"}],
        }

    def test_upload_audio_requires_https(self):
        rec = Recorder({"data": {}})
        with pytest.raises(ValueError, match="HTTPS"):
            _call(rec, "upload_audio", AudioUploadInput(url="http://x/a.mp3", title="T"))
        assert rec.requests == []

    def test_create_bite(self):
        rec = Recorder({"data": {"createBite": {"id": "b1", "name": "Clip", "status": "pending"}}})
        resp = _call(rec, "create_bite", CreateBiteInput(transcript_id="t1", start_time=120, end_time=180))
        assert resp.id == "b1"
        assert rec.body()["variables"] == {"transcript_id": "t1", "start_time": 120, "end_time": 180}

    @pytest.mark.parametrize("start,end", [(10, 10), (20, 10), (-1, 5)])
    def test_create_bite_rejects_bad_range(self, start, end):
        rec = Recorder({"data": {}})
        with pytest.raises(ValueError):
            _call(rec, "create_bite", CreateBiteInput(transcript_id="t1", start_time=start, end_time=end))
        assert rec.requests == []

    def test_add_to_live_meeting(self):
        rec = Recorder({"data": {"addToLiveMeeting": {"success": True}}})
        meeting = AddToLiveMeetingInput(meeting_link="https://meet.google.com/abc", duration=45)
        assert _call(rec, "add_to_live_meeting", meeting).success is True
        assert rec.body()["variables"] == {"meeting_link": "https://meet.google.com/abc", "duration": 45}

    @pytest.mark.parametrize("duration", [14, 121])
    def test_add_to_live_meeting_duration_bounds(self, duration):
        rec = Recorder({"data": {}})
        with pytest.raises(ValueError):
            _call(rec, "add_to_live_meeting", AddToLiveMeetingInput(meeting_link="x", duration=duration))
