"""Shared test fixtures for the fireflies_sdk test suite.

WHY: The pagination, batch, and pipeline tests all need a stand-in for
FirefliesClient that serves a fixed set of meetings per API key, can be
told to fail, and records every call it receives. Centralizing it here
keeps the scenarios short and consistent.

HOW: FakeRemote holds the visible meeting ids per key plus the failure
switches. Calling it with an API key returns a FakeClient (so it can be
passed straight in as a client_factory). RecordingSleep replaces
asyncio.sleep so pacing is observable and tests never really wait.

RULES:
- Every FakeClient call is recorded on the shared FakeRemote
- Meeting records returned by get_transcript are {"id": ..., "fetched_by": ...}
- Nothing here touches the network
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Set, Tuple

import pytest

from fireflies_sdk.api.client import FirefliesAPIError


class FakeClient:
    """Async-context-managed stand-in for FirefliesClient bound to one key."""

    def __init__(self, remote: "FakeRemote", api_key: str) -> None:
        self.remote = remote
        self.api_key = api_key

    async def __aenter__(self) -> "FakeClient":
        self.remote.entered.append(self.api_key)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.remote.exited.append(self.api_key)

    async def list_transcript_ids(self, limit: int, skip: int) -> Optional[List[str]]:
        self.remote.list_calls.append((self.api_key, limit, skip))
        if self.api_key in self.remote.failing_lists:
            raise FirefliesAPIError(500, "listing failed for {}".format(self.api_key))
        if self.api_key in self.remote.null_pages:
            return None
        ids = self.remote.meetings.get(self.api_key, [])
        return list(ids[skip:skip + limit])

    async def get_transcript(self, transcript_id: str, fields: Sequence[str]) -> dict:
        self.remote.fetch_calls.append((self.api_key, transcript_id, list(fields)))
        if transcript_id in self.remote.failing_ids:
            raise FirefliesAPIError(404, "Transcript {} not found".format(transcript_id))
        return {"id": transcript_id, "fetched_by": self.api_key}


class FakeRemote:
    """Fixed remote state shared by every FakeClient it creates."""

    def __init__(self, meetings: Optional[Dict[str, List[str]]] = None) -> None:
        self.meetings: Dict[str, List[str]] = dict(meetings or {})
        self.failing_lists: Set[str] = set()
        self.failing_ids: Set[str] = set()
        self.null_pages: Set[str] = set()
        self.created: List[str] = []
        self.entered: List[str] = []
        self.exited: List[str] = []
        self.list_calls: List[Tuple[str, int, int]] = []
        self.fetch_calls: List[Tuple[str, str, List[str]]] = []

    def __call__(self, api_key: str) -> FakeClient:
        self.created.append(api_key)
        return FakeClient(self, api_key)

    def fetched_by(self, api_key: str) -> List[str]:
        return [mid for key, mid, _ in self.fetch_calls if key == api_key]

    @property
    def call_count(self) -> int:
        return len(self.list_calls) + len(self.fetch_calls)


class RecordingSleep:
    """Drop-in for asyncio.sleep that records delays without waiting."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def remote():
    """Scenario A remote: k1 sees m1..m3, k2 sees m2 and m4."""
    return FakeRemote({"k1": ["m1", "m2", "m3"], "k2": ["m2", "m4"]})


@pytest.fixture
def no_sleep():
    return RecordingSleep()


@pytest.fixture
def make_remote():
    """Factory fixture: make_remote({"k1": [...]}) builds a fresh FakeRemote."""
    return FakeRemote
