"""Pytest configuration and fixtures for forge-release tests."""

import json
import logging
import os

import httpx
import pytest

from forge_release.core.config import CIEnvironment
from forge_release.providers.gitea import GiteaProvider
from forge_release.providers.github import GitHubProvider

ENV_PREFIXES = ("GITHUB_", "GITEA_", "INPUT_", "FORGE_RELEASE_", "ACTIONS_STEP_DEBUG")


class MockApi:
    """Routes requests by (method, path) to canned JSON responses.

    Each route holds a queue; the last response of a queue keeps being
    served once the others are used up. Unknown routes answer 404.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], list[tuple[int, object]]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, status: int = 200, json=None, content: bytes | None = None):
        body = content if content is not None else json
        self.routes.setdefault((method, path), []).append((status, body))
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)

        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"message": "Not Found"})

        status, body = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(body, bytes):
            return httpx.Response(status, content=body)
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: str | None = None, path: str | None = None) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if (method is None or r.method == method) and (path is None or r.url.path == path)
        ]

    def route_log(self) -> list[tuple[str, str]]:
        return [(r.method, r.url.path) for r in self.requests]

    @staticmethod
    def body(request: httpx.Request) -> dict:
        return json.loads(request.content)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the runner's own CI variables out of the tests."""
    for key in list(os.environ):
        if key.startswith(ENV_PREFIXES):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def enable_log_propagation():
    """Let caplog see forge_release logs even after setup_logging ran."""
    logger = logging.getLogger("forge_release")
    original = logger.propagate, list(logger.handlers), logger.level
    logger.propagate = True
    yield
    logger.propagate, handlers, level = original
    logger.handlers[:] = handlers
    logger.setLevel(level)


@pytest.fixture
def mock_api():
    return MockApi()


@pytest.fixture
def sleeps():
    """Records retry delays instead of sleeping."""
    return []


@pytest.fixture
def env():
    return CIEnvironment()


@pytest.fixture
def github(mock_api, sleeps):
    with GitHubProvider(
        "test-token", "owner", "repo", transport=mock_api.transport, sleep=sleeps.append
    ) as provider:
        yield provider


@pytest.fixture
def gitea(mock_api, sleeps, env):
    with GiteaProvider(
        "test-token",
        "owner",
        "repo",
        "https://gitea.example.com",
        env=env,
        transport=mock_api.transport,
        sleep=sleeps.append,
    ) as provider:
        yield provider
