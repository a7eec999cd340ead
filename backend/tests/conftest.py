"""
Shared pytest fixtures for update checker tests.

Fixtures provided:
- fake_session_factory: Builds a fake aiohttp session from a request handler
- inventory_item: Sample container from the Docker inventory

Registry traffic never leaves the process: a handler function receives
(method, url, headers) and returns a FakeResponse or an exception to raise.
"""

import asyncio
from typing import Callable, Dict, List, Optional, Tuple

import aiohttp
import pytest

from updates.types import ContainerInventoryItem

TOKEN_URL_DOCKERHUB = "https://auth.docker.io/token"
TOKEN_URL_GHCR = "https://ghcr.io/token"


class FakeResponse:
    """Minimal stand-in for aiohttp.ClientResponse"""

    def __init__(self, status: int = 200, json_data=None, headers: Optional[Dict[str, str]] = None, text: str = ""):
        self.status = status
        self._json = json_data
        self.headers = headers or {}
        self._text = text

    async def json(self, content_type="application/json"):
        if isinstance(self._json, Exception):
            raise self._json
        return self._json

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class _RaisingContext:
    """Context manager that fails on enter, like a refused aiohttp request"""

    def __init__(self, error: BaseException):
        self._error = error

    async def __aenter__(self):
        raise self._error

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Records requests and answers them through a handler"""

    def __init__(self, handler: Callable[[str, str, Dict[str, str]], object]):
        self.handler = handler
        self.calls: List[Tuple[str, str, Dict[str, str]]] = []
        self.closed = False

    def _request(self, method: str, url: str, **kwargs):
        headers = dict(kwargs.get("headers") or {})
        self.calls.append((method, url, headers))
        result = self.handler(method, url, headers)
        if isinstance(result, BaseException):
            return _RaisingContext(result)
        return result

    def get(self, url, **kwargs):
        return self._request("GET", url, **kwargs)

    def head(self, url, **kwargs):
        return self._request("HEAD", url, **kwargs)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True
        return False


def make_registry_handler(
    token: Optional[str] = "test-token",
    digests: Optional[Dict[str, str]] = None,
    tags: Optional[List[str]] = None,
    failing_repositories: Tuple[str, ...] = (),
):
    """
    Build a handler that behaves like a registry.

    Args:
        token: Token returned by the token endpoint (None → 401)
        digests: Accept media type → digest header value for manifest HEADs
        tags: Tag list returned by tags/list (None → 404)
        failing_repositories: Repositories whose token request times out
    """
    digests = digests or {}

    def handler(method, url, headers):
        if "/token?" in url:
            if any(f"repository:{repo}:pull" in url for repo in failing_repositories):
                return asyncio.TimeoutError()
            if token is None:
                return FakeResponse(status=401, text="unauthorized")
            return FakeResponse(json_data={"token": token})
        if method == "HEAD" and "/manifests/" in url:
            digest = digests.get(headers.get("Accept"))
            if digest:
                return FakeResponse(headers={"Docker-Content-Digest": digest})
            return FakeResponse(status=404)
        if method == "GET" and url.endswith("/tags/list"):
            if tags is None:
                return FakeResponse(status=404)
            return FakeResponse(json_data={"name": "repo", "tags": tags})
        return aiohttp.ClientConnectionError(f"unexpected request {method} {url}")

    return handler


@pytest.fixture
def fake_session_factory():
    """Returns a function: handler → (session, factory returning that session)"""
    def _build(handler):
        session = FakeSession(handler)
        return session, lambda: session
    return _build


@pytest.fixture
def inventory_item():
    return ContainerInventoryItem(
        container_id="abc123def456789012345678901234567890123456789012345678901234",
        name="web",
        status="Up 3 hours",
        state="running",
        image="nginx:1.25",
        local_repo_digest="nginx@sha256:aaaa1111bbbb2222cccc3333dddd4444eeee5555ffff6666aaaa7777bbbb8888",
    )


@pytest.fixture
def registry_handler():
    """Factory for registry-like handlers, see make_registry_handler"""
    return make_registry_handler


@pytest.fixture
def fake_response():
    """The FakeResponse class, for tests that write their own handler"""
    return FakeResponse
