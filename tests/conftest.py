import asyncio
import json
from typing import Any, Callable, Dict, List, Tuple, Union
from urllib.parse import urlparse

import httpx
import pytest
from fastapi.testclient import TestClient

import config
from main import app
from utils import get_query_cache, get_transport

Responder = Union[Callable[[httpx.Request], httpx.Response], Tuple[int, Any]]


class FakeUpstream:
    """Stand-in for the recruitment REST API, recording every request it sees."""

    def __init__(self, prefix: str = ""):
        self.prefix = prefix.rstrip("/")
        self.routes: Dict[Tuple[str, str], Responder] = {}
        self.requests: List[httpx.Request] = []

    def on(self, method: str, path: str, responder: Responder) -> None:
        self.routes[(method.upper(), path)] = responder

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if self.prefix and path.startswith(self.prefix):
            path = path[len(self.prefix):]
        responder = self.routes.get((request.method, path))
        if responder is None:
            return httpx.Response(404, json={"message": f"No route for {request.method} {path}"})
        if callable(responder):
            return responder(request)
        status_code, body = responder
        return httpx.Response(status_code, json=body)

    def last(self, method: str, path: str) -> httpx.Request:
        for request in reversed(self.requests):
            if request.method == method and request.url.path == self.prefix + path:
                return request
        raise AssertionError(f"{method} {path} was never requested")

    def count(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r.method == method and r.url.path == self.prefix + path)


def request_json(request: httpx.Request) -> Any:
    return json.loads(request.content.decode("utf-8"))


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def upstream():
    return FakeUpstream(prefix=urlparse(config.API_BASE_URL).path)


@pytest.fixture
def client(upstream):
    app.dependency_overrides[get_transport] = lambda: httpx.MockTransport(upstream)
    app.dependency_overrides[get_query_cache] = lambda: None
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def candidate_json(candidate_id, name, score=None, role_id="r1", **extra):
    record = {
        "id": candidate_id,
        "name": name,
        "email": f"{name.split()[0].lower()}@example.com",
        "roleId": role_id,
        "status": "pending",
        "appliedAt": "2024-05-01T10:00:00Z",
    }
    if score is not None:
        record["evaluation"] = {
            "score": score,
            "strengths": ["Strong Python"],
            "weaknesses": ["Limited testing"],
            "summary": f"Summary for {name}",
            "evaluatedAt": "2024-05-02T10:00:00Z",
        }
    record.update(extra)
    return record
