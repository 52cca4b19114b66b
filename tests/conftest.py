"""Pytest configuration helpers.

Puts `backend/` on `sys.path` so tests can import the `tracksync` package
without an editable install, and provides shared fakes for the upstream
API and the media CDN.
"""
from __future__ import annotations

import os
import sys

import httpx
import pytest

BACKEND = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "backend"))
if BACKEND not in sys.path:
    sys.path.insert(0, BACKEND)


def record_info(status: str, tracks: list | None = None) -> dict:
    """Kie record-info payload in its most common shape."""
    return {
        "code": 200,
        "msg": "success",
        "data": {
            "taskId": "ignored",
            "status": status,
            "response": {"sunoData": tracks or []},
        },
    }


def track(ordinal: int, title: str, *, audio: str | None = None, image: str | None = None) -> dict:
    item: dict = {"id": f"trk-{ordinal}", "title": title}
    if audio:
        item["audioUrl"] = audio
    if image:
        item["imageUrl"] = image
    return item


class FakeUpstream:
    """Scripted stand-in for KieMusicClient.

    `query_status` walks through `responses` (a dict is returned, an
    exception is raised); the last entry repeats once the script runs out.
    """

    def __init__(self, responses: list | None = None, submit_response: dict | Exception | None = None):
        self.responses = list(responses or [record_info("PENDING")])
        self.submit_response = submit_response or {"code": 200, "msg": "success", "data": {"taskId": "task-1"}}
        self.status_calls: list[str] = []
        self.submissions: list[tuple[str, dict]] = []
        self.closed = False

    async def submit(self, route: str, payload: dict) -> dict:
        self.submissions.append((route, payload))
        if isinstance(self.submit_response, Exception):
            raise self.submit_response
        return self.submit_response

    async def query_status(self, task_id: str) -> dict:
        index = min(len(self.status_calls), len(self.responses) - 1)
        self.status_calls.append(task_id)
        result = self.responses[index]
        if isinstance(result, Exception):
            raise result
        return result

    async def aclose(self) -> None:
        self.closed = True


class MediaCDN:
    """httpx.MockTransport handler serving fixed bytes per URL; unknown URLs 404."""

    def __init__(self, files: dict[str, bytes] | None = None):
        self.files = dict(files or {})
        self.requests: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url in self.files:
            return httpx.Response(200, content=self.files[url], headers={"content-type": "audio/mpeg"})
        return httpx.Response(404, text="not found")

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self), follow_redirects=True)


@pytest.fixture
def media_cdn() -> MediaCDN:
    return MediaCDN()
