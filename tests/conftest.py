"""
Shared fixtures: in-memory stand-ins for aiohttp sessions and the metadata client.
"""

import asyncio
import json
from unittest.mock import MagicMock

import aiohttp
import pytest

from archive_dl.api.client import build_download_url
from archive_dl.models.manifest import FileEntry
from archive_dl.transfer import downloader as downloader_module


class FakeContent:
    def __init__(self, body: bytes, delay: float = 0.0):
        self._body = body
        self._delay = delay

    async def iter_chunked(self, n: int):
        if self._delay:
            await asyncio.sleep(self._delay)
        for i in range(0, len(self._body), n):
            yield self._body[i : i + n]


class FakeResponse:
    """Mimics the parts of aiohttp.ClientResponse the application touches."""

    def __init__(self, status=200, body=b"", headers=None, delay=0.0):
        self.status = status
        self.body = body if isinstance(body, bytes) else body.encode("utf-8")
        self.headers = dict(headers or {})
        self.headers.setdefault("Content-Length", str(len(self.body)))
        self.content = FakeContent(self.body, delay)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False

    def raise_for_status(self):
        if self.status >= 400:
            raise aiohttp.ClientResponseError(
                request_info=MagicMock(real_url="http://fake"),
                history=(),
                status=self.status,
                message="fake error",
            )

    async def json(self, content_type="application/json"):
        return json.loads(self.body.decode("utf-8"))


class FakeSession:
    """
    Routes GET requests to canned responses. A route is either a FakeResponse
    or a callable taking the request headers and returning one.
    """

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.requests = []
        self.closed = False

    def get(self, url, headers=None, **kwargs):
        self.requests.append((url, dict(headers or {})))
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(status=404)
        return route(dict(headers or {})) if callable(route) else route

    async def close(self):
        self.closed = True


def range_route(body: bytes, honor_range: bool = True, delay: float = 0.0):
    """A file server route that answers Range requests like archive.org does."""

    def respond(headers):
        range_header = headers.get("Range")
        if range_header and honor_range:
            start = int(range_header.split("=", 1)[1].rstrip("-"))
            if start >= len(body):
                return FakeResponse(status=416, body=b"", delay=delay)
            return FakeResponse(
                status=206,
                body=body[start:],
                headers={"Content-Range": f"bytes {start}-{len(body) - 1}/{len(body)}"},
                delay=delay,
            )
        return FakeResponse(status=200, body=body, delay=delay)

    return respond


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def patch_download_pool(monkeypatch, fake_session):
    """Makes the downloader use `fake_session` instead of a real connection pool."""

    async def fake_pool(max_workers: int = 4):
        return fake_session

    monkeypatch.setattr(downloader_module, "get_connection_pool", fake_pool)
    return fake_session


class FakeAPIClient:
    """Stands in for ArchiveAPIClient with a fixed manifest per identifier."""

    manifests: dict = {}
    fetch_count = 0

    def __init__(self, base_url: str = "https://archive.org"):
        self.base_url = base_url

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def fetch_manifest(self, identifier):
        type(self).fetch_count += 1
        return [FileEntry(**raw) for raw in self.manifests.get(identifier, [])]

    async def fetch_download_urls(self, identifier):
        manifest = await self.fetch_manifest(identifier)
        return [build_download_url(identifier, e.name, self.base_url) for e in manifest]


@pytest.fixture
def fake_api():
    FakeAPIClient.manifests = {"foo": [{"name": "a b.txt", "size": 10}]}
    FakeAPIClient.fetch_count = 0
    return FakeAPIClient
