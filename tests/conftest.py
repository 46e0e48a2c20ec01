"""Shared fixtures: a scripted operator and a fake Ambassador admin API."""

from __future__ import annotations

import io
import json
from typing import Any, List, Optional, Sequence

import httpx
import pytest
from rich.console import Console

from ambassador_pointings.config import Config
from ambassador_pointings.prompts import Prompter

BASE_URL = "http://ambassador.test:8080"
LIST_PATH = "/ambassador/admin/list-microservice-endpoint"
UPDATE_PATH = "/ambassador/admin/update-microservice-endpoint"


class ScriptedPrompter(Prompter):
    """Prompter that replays canned answers and records what was asked."""

    def __init__(self, console: Console, answers: Sequence[Any] = ()) -> None:
        super().__init__(console)
        self.answers: List[Any] = list(answers)
        self.asked: List[tuple[str, str]] = []

    def _next(self) -> Any:
        if not self.answers:
            raise EOFError
        answer = self.answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    def select_one(self, title: str, options: Sequence[str]) -> Optional[str]:
        self.asked.append(("select", title))
        return self._next()

    def read_line(self, label: str, default: str = "") -> str:
        self.asked.append(("text", label))
        return self._next()


class FakeAmbassador:
    """httpx.MockTransport handler serving the list/update admin endpoints.

    Each GET consumes the next listing; the last one is repeated. A listing
    may be a dict (served as JSON), an httpx.Response, or an exception.
    """

    def __init__(
        self,
        listings: Sequence[Any],
        update_status: int = 200,
        update_body: str = "OK",
    ) -> None:
        self.listings = list(listings)
        self.update_status = update_status
        self.update_body = update_body
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "GET" and request.url.path == LIST_PATH:
            listing = self.listings.pop(0) if len(self.listings) > 1 else self.listings[0]
            if isinstance(listing, BaseException):
                raise listing
            if isinstance(listing, httpx.Response):
                return listing
            return httpx.Response(200, json=listing)
        if request.method == "POST" and request.url.path == UPDATE_PATH:
            return httpx.Response(self.update_status, text=self.update_body)
        return httpx.Response(404, text="not found")

    @property
    def gets(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "GET"]

    @property
    def posts(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]

    def posted_json(self) -> List[Any]:
        return [json.loads(r.content.decode()) for r in self.posts]


def output_of(console: Console) -> str:
    return console.file.getvalue()  # type: ignore[attr-defined]


@pytest.fixture
def config() -> Config:
    return Config()


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), width=200, force_terminal=False, color_system=None)


@pytest.fixture
def make_client():
    clients: List[httpx.Client] = []

    def _make(handler) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()
