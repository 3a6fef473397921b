"""
Shared fakes for desk tests. Nothing here touches the network.
"""
from __future__ import annotations

import json
from typing import Any, Callable, List, Optional

import pytest

from deribit_desk.calls import CallDispatcher
from deribit_desk.deribit.base_client import TransportResponse
from deribit_desk.deribit_client import DeskClient
from deribit_desk.models import Credentials, Session

FIXED_NOW_MS = 1_700_000_000_000


class FakeTransport:
    """
    Scripted transport. Each queued response is a dict (sent as JSON),
    a raw string, or a TransportResponse; once the queue is empty
    ``default`` is returned.
    """

    def __init__(self, responses: Optional[List[Any]] = None, default: Any = ""):
        self.responses = list(responses or [])
        self.default = default
        self.calls: List[dict] = []
        self.closed = False

    def send(self, url: str, json_body: dict, bearer_token: Optional[str] = None) -> TransportResponse:
        self.calls.append({"url": url, "body": json_body, "token": bearer_token})
        item = self.responses.pop(0) if self.responses else self.default
        if isinstance(item, TransportResponse):
            return item
        if isinstance(item, dict):
            item = json.dumps(item)
        return TransportResponse(body=item, status_code=200 if item else None)

    @property
    def last(self) -> dict:
        return self.calls[-1]

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(client_id="client-x", client_secret="secret-y")


@pytest.fixture
def session() -> Session:
    return Session(
        access_token="tok123",
        refresh_token="r1",
        expires_in=900,
        scope="all",
        issued_at_ms=FIXED_NOW_MS,
    )


@pytest.fixture
def make_client(credentials: Credentials, session: Session) -> Callable[..., DeskClient]:
    """Build a DeskClient over a FakeTransport; authenticated unless told otherwise."""
    def _make(
        responses: Optional[List[Any]] = None,
        default: Any = "",
        authenticated: bool = True,
    ) -> DeskClient:
        client = DeskClient(
            base_url="https://test.deribit.com",
            credentials=credentials,
            transport=FakeTransport(responses, default=default),
            clock=lambda: FIXED_NOW_MS,
            dispatcher=CallDispatcher(timeout=5.0),
            api_log_enabled=False,
        )
        if authenticated:
            client.set_session(session)
        return client

    return _make
