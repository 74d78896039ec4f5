"""
Test Configuration

Pytest configuration and fixtures for the test suite.

Outbound Vercel and GitHub calls are served by FakeUpstream through
httpx.MockTransport; no test touches the network.
"""

import hashlib
import hmac
import json
from typing import Any, AsyncIterator, Callable, Dict, Generator, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient

from deploy_relay.config import Settings, get_settings
from deploy_relay.main import app
from deploy_relay.webhook.handler import get_http_client


TEST_SECRET = "test_secret"

Responder = Callable[[httpx.Request], httpx.Response]


def make_settings(**overrides: Any) -> Settings:
    """Build settings with test credentials, ignoring any local .env file."""
    values: Dict[str, Any] = {
        "vercel_client_secret": TEST_SECRET,
        "vercel_api_token": "vercel-test-token",
        "github_token": "github-test-token",
        "log_json_format": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def sign(body: bytes, secret: str = TEST_SECRET) -> str:
    """Sign a body the way Vercel does."""
    return hmac.new(secret.encode(), body, hashlib.sha1).hexdigest()


class FakeUpstream:
    """
    Scripted Vercel and GitHub APIs.

    Routes are keyed by method and URL path; unrouted requests get a 404.
    Every request is recorded for assertions.
    """

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Responder] = {}
        self.requests: List[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        status_code: int = 200,
        json_body: Any = None,
        text: Optional[str] = None,
        error: Optional[Exception] = None,
    ) -> None:
        def respond(request: httpx.Request) -> httpx.Response:
            if error is not None:
                raise error
            if text is not None:
                return httpx.Response(status_code, text=text)
            return httpx.Response(status_code, json=json_body)

        self.routes[(method, path)] = respond

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responder = self.routes.get((request.method, request.url.path))
        if responder is None:
            return httpx.Response(404, json={"message": "Not Found"})
        return responder(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def client(settings: Settings, upstream: FakeUpstream) -> Generator[TestClient, None, None]:
    """Create a test client wired to the fake upstream APIs."""
    async def fake_http_client() -> AsyncIterator[httpx.AsyncClient]:
        async with upstream.client() as http:
            yield http

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_http_client] = fake_http_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def sample_deployment_error() -> dict:
    """Sample deployment-error webhook delivery."""
    return {
        "id": "evt_1700000000000",
        "type": "deployment-error",
        "createdAt": 1700000000000,
        "payload": {
            "team": {"id": "team_test123"},
            "user": {"id": "user_test123"},
            "deployment": {
                "id": "dpl_abc123",
                "meta": {
                    "githubOrg": "acme",
                    "githubRepo": "widgets",
                    "githubPrId": "42",
                    "githubCommitRef": "refs/pull/42/merge"
                },
                "url": "widgets-abc123.vercel.app",
                "name": "widgets"
            },
            "links": {
                "deployment": "https://vercel.com/acme/widgets/dpl_abc123",
                "project": "https://vercel.com/acme/widgets"
            },
            "project": {"id": "prj_test123"}
        }
    }


@pytest.fixture
def sample_deployment_details() -> dict:
    """Deployment record as returned by GET /v13/deployments/{id}."""
    return {
        "id": "dpl_abc123",
        "name": "widgets-web",
        "url": "widgets-abc123.vercel.app",
        "meta": {
            "githubOrg": "acme",
            "githubRepo": "widgets",
            "githubPrId": "42",
            "githubCommitRef": "refs/pull/42/merge"
        },
        "gitSource": {"type": "github", "ref": "feature/login", "repoId": 123456}
    }


@pytest.fixture
def sample_events() -> list:
    """Build event stream as returned by GET /v3/deployments/{id}/events."""
    return [
        {"type": "stdout", "payload": {"text": "Running \"npm run build\""}},
        {"type": "stdout", "payload": {"text": "Compiled with warnings"}},
        {"type": "stderr", "payload": {"text": "Type error: Property 'foo' does not exist"}},
        {"type": "stdout", "payload": {"text": "Build failed because of webpack errors"}},
        {"type": "stdout", "payload": {"text": "Done in 12s"}},
    ]


def encode(payload: dict) -> bytes:
    return json.dumps(payload).encode()
