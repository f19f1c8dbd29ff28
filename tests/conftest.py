"""Shared fixtures: a FloraClient backed by a scripted httpx transport."""

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from flora_admin.client import FloraClient
from flora_admin.config import FloraSettings


class FakeFlora:
    """Scripted stand-in for the Flora IM REST API.

    Routes map ``(method, path)`` to a list of responses served in order; the
    last response repeats. Every request is recorded.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[httpx.Response | Exception]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, *responses: httpx.Response | Exception) -> None:
        self.routes[(method, path)] = list(responses)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responses = self.routes.get((request.method, request.url.path))
        if not responses:
            return httpx.Response(404, json={"code": "rest_no_route", "message": "No route was found"})
        response = responses.pop(0) if len(responses) > 1 else responses[0]
        if isinstance(response, Exception):
            raise response
        return httpx.Response(response.status_code, headers=response.headers, content=response.content)


def json_response(status_code: int, data: Any) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(data).encode(), headers={"Content-Type": "application/json"})


@pytest.fixture
def fake_flora() -> FakeFlora:
    return FakeFlora()


@pytest.fixture
def settings() -> FloraSettings:
    return FloraSettings(
        api_base="https://api.example.com",
        consumer_key="ck_test",
        consumer_secret="cs_test",
        max_attempts=3,
        base_delay=0.0,
    )


@pytest.fixture
def make_client(fake_flora: FakeFlora, settings: FloraSettings) -> Callable[..., FloraClient]:
    def _make(**overrides: Any) -> FloraClient:
        values = {**settings.__dict__, **overrides}
        return FloraClient(FloraSettings(**values), transport=httpx.MockTransport(fake_flora.handler))

    return _make


@pytest.fixture
def client(make_client: Callable[..., FloraClient]) -> FloraClient:
    return make_client()
