"""
Pytest configuration and fixtures for notebook tagger testing.

Provides a fake Joplin data API built on httpx.MockTransport, so the
transport, pagination and sync code run unchanged against canned data.
"""

import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from joplin_tagger.config import TaggerConfig
from joplin_tagger.transport import JoplinTransport, RetryPolicy

# Test data constants
TEST_TOKEN = "test_token_123456789"
TEST_SERVER_URL = "http://localhost:41184"

SAMPLE_NOTEBOOK_DATA = {
    "id": "abcdef12345678901234567890123456",
    "title": "Test Notebook",
    "parent_id": "",
}

SAMPLE_TAG_DATA = {
    "id": "fedcba09876543210987654321098765",
    "title": "notebook.Test Notebook",
}

SAMPLE_NOTE_DATA = {
    "id": "12345678901234567890123456789012",
    "title": "Test Note",
    "parent_id": "abcdef12345678901234567890123456",
}


class FakeJoplin:
    """In-memory Joplin data API that records every request it receives."""

    def __init__(
        self,
        folders: Optional[List[Dict[str, Any]]] = None,
        tags: Optional[List[Dict[str, Any]]] = None,
        notes: Optional[List[Dict[str, Any]]] = None,
    ):
        self.folders = list(folders or [])
        self.tags = list(tags or [])
        self.notes = list(notes or [])
        self.note_tags: Dict[str, set] = {}
        self.requests: List[httpx.Request] = []
        self._next_id = 1

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        query = request.url.params

        if query.get("token") != TEST_TOKEN:
            return httpx.Response(403, text="Invalid token")

        if request.method == "GET" and path in ("/folders", "/tags", "/notes"):
            collection = {"/folders": self.folders, "/tags": self.tags, "/notes": self.notes}[path]
            return self._page(collection, query)

        if request.method == "POST" and path == "/tags":
            title = json.loads(request.content)["title"]
            if any(t["title"].lower() == title.lower() for t in self.tags):
                return httpx.Response(
                    500, json={"error": f"The tag \"{title}\" already exists. Please choose a different name."}
                )
            tag = {"id": f"tag{self._next_id}", "title": title}
            self._next_id += 1
            self.tags.append(tag)
            return httpx.Response(200, json=tag)

        if request.method == "POST" and path.startswith("/tags/") and path.endswith("/notes"):
            tag_id = path.split("/")[2]
            note_id = json.loads(request.content)["id"]
            self.note_tags.setdefault(tag_id, set()).add(note_id)
            return httpx.Response(200, json={"id": note_id})

        return httpx.Response(404, text="Not found")

    @staticmethod
    def _page(collection, query) -> httpx.Response:
        limit = int(query.get("limit", "100"))
        page = int(query.get("page", "1"))
        start = (page - 1) * limit
        items = collection[start : start + limit]
        return httpx.Response(
            200,
            json={
                "items": items,
                "has_more": start + limit < len(collection),
                "total_items": len(collection),
            },
        )

    def requests_to(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]


@pytest.fixture
def test_config() -> TaggerConfig:
    """Return a valid configuration pointing at the fake server."""
    return TaggerConfig(base_url=TEST_SERVER_URL, token=TEST_TOKEN)


@pytest.fixture
def sleeps() -> List[float]:
    """Collects the backoff delays a transport would have slept."""
    return []


@pytest.fixture
def make_transport(test_config, sleeps):
    """Build a JoplinTransport around any httpx handler, without real sleeping."""

    def _make(handler, config: Optional[TaggerConfig] = None) -> JoplinTransport:
        config = config or test_config
        client = httpx.Client(transport=httpx.MockTransport(handler))
        policy = RetryPolicy(max_attempts=config.max_attempts, sleep=sleeps.append)
        return JoplinTransport(config, client=client, policy=policy)

    return _make


@pytest.fixture
def fake_joplin() -> FakeJoplin:
    return FakeJoplin()
