"""Shared fixtures for unit tests."""

import json
from typing import Any

import anyio
import pytest
from anyio.abc import TaskStatus
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.types import Receive, Scope, Send

from mineru_mcp.server.registry import SessionRegistry
from mineru_mcp.server.session import Session


class StubClient:
    """Records MinerU calls and answers from a canned endpoint -> data map."""

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses = responses or {}
        self.calls: list[tuple[str, str, dict[str, Any] | None]] = []

    async def request(
        self, endpoint: str, method: str = "GET", body: dict[str, Any] | None = None
    ) -> Any:
        self.calls.append((endpoint, method, body))
        return self.responses[endpoint]


@pytest.fixture
def stub_client() -> StubClient:
    return StubClient()


class FakeSession(Session):
    """In-memory Session that answers every message with an echo result.

    Tests steer it through ``gate`` (blocks the handler until set) and
    ``fail_next`` (the next handler call raises).
    """

    def __init__(self, session_id: str) -> None:
        super().__init__(session_id)
        self.received: list[dict[str, Any]] = []
        self.forwarded_session_headers: list[str | None] = []
        self.events: list[str] = []
        self.gate: anyio.Event | None = None
        self.fail_next = False
        self.transport_closed = False
        self._stopped = anyio.Event()

    async def _serve(self, *, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
        task_status.started()
        try:
            await self._stopped.wait()
        finally:
            self._mark_closed()

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        message = json.loads(await request.body())
        self.received.append(message)
        self.forwarded_session_headers.append(request.headers.get("mcp-session-id"))

        if self.gate is not None:
            await self.gate.wait()
        if self.fail_next:
            self.fail_next = False
            raise RuntimeError("handler exploded")

        response = JSONResponse(
            {"jsonrpc": "2.0", "id": message.get("id"), "result": {"echo": message.get("method")}},
            headers={"mcp-session-id": self.session_id},
        )
        await response(scope, receive, send)
        self.events.append("responded")

    async def handle_stream(self, scope: Scope, receive: Receive, send: Send) -> None:
        await PlainTextResponse("stream open")(scope, receive, send)

    async def _close_transport(self) -> None:
        self.transport_closed = True
        self._stopped.set()


@pytest.fixture
def fake_registry() -> SessionRegistry:
    return SessionRegistry(FakeSession)
