"""Shared fakes for provider and REPL tests."""

from __future__ import annotations

import io
import json
from typing import Any, Dict, List

import pytest
import requests

from llmchat.console import make_console


def make_response(body: Any, status: int = 200) -> requests.Response:
    """Build a real :class:`requests.Response` around *body* (JSON-encoded unless bytes/str)."""

    response = requests.Response()
    response.status_code = status
    if isinstance(body, bytes):
        response._content = body
    elif isinstance(body, str):
        response._content = body.encode("utf-8")
    else:
        response._content = json.dumps(body).encode("utf-8")
    response.encoding = "utf-8"
    response.url = "http://test.invalid/"
    return response


class FakeSession:
    """Stands in for :class:`requests.Session`, replaying queued responses."""

    def __init__(self, *responses: Any) -> None:
        self.responses: List[Any] = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def queue(self, body: Any, status: int = 200) -> None:
        self.responses.append(make_response(body, status))

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {url}")
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    @property
    def last(self) -> Dict[str, Any]:
        return self.calls[-1]


@pytest.fixture
def http() -> FakeSession:
    return FakeSession()


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def test_console(output: io.StringIO):
    return make_console(file=output, width=200, force_terminal=False, color_system=None)
