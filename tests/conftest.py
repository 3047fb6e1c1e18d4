"""Shared test doubles for HTTP and sleeping."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import pytest
import requests


class FakeSession:
    """
    Stands in for requests.Session.

    Outcomes are consumed in order; the last one repeats once the others are
    used up. An exception outcome is raised instead of returned.
    """

    def __init__(self, outcomes: list[requests.Response | BaseException]) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        self.calls.append((method, url, kwargs))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def close(self) -> None:
        self.closed = True


class SleepRecorder:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def build_response(
    status_code: int = 200,
    json_body: Any = None,
    text: str | None = None,
    headers: dict[str, str] | None = None,
    url: str = "https://api.test/api",
) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response.reason = ""
    response.url = url
    response.encoding = "utf-8"
    response.headers.update(headers or {})
    if json_body is not None:
        response._content = json.dumps(json_body).encode("utf-8")
    else:
        response._content = (text or "").encode("utf-8")
    return response


@pytest.fixture
def make_response() -> Callable[..., requests.Response]:
    return build_response


@pytest.fixture
def fake_session() -> Callable[[list[requests.Response | BaseException]], FakeSession]:
    return FakeSession


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()
