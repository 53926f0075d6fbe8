"""
Session-multiplexed protocol gateway.

Entry point for every HTTP request on the MCP endpoint. For each inbound
message the gateway:

1. Reads the session id from the ``mcp-session-id`` header
2. Forwards the message to the registered Session when the id is known
3. Creates, starts and registers a new Session for a valid ``initialize``
   message without a known id
4. Rejects anything else with a client error

The gateway never interprets tool semantics; request/response correlation is
the session's job. Failures while forwarding are confined to the one exchange
that raised them.

Example:
    gateway = ProtocolGateway(SessionRegistry(factory))

    async with gateway.run():
        ...  # serve gateway as an ASGI app
"""

import json
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any
from uuid import uuid4

import anyio
from anyio.abc import TaskGroup
from mcp.server.streamable_http import MCP_SESSION_ID_HEADER
from mcp.types import INTERNAL_ERROR, INVALID_REQUEST, PARSE_ERROR, InitializeRequest, JSONRPCRequest
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import Headers
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.types import Message, Receive, Scope, Send

from mineru_mcp.framework.errors import ConflictError, NotFoundError
from mineru_mcp.observability.logging import current_session_id
from mineru_mcp.server.registry import SessionRegistry
from mineru_mcp.server.session import Session

logger = logging.getLogger(__name__)

# JSON-RPC "server error" range, used for protocol-level rejections
BAD_REQUEST = -32000


def _jsonrpc_error(status_code: int, code: int, message: str) -> JSONResponse:
    return JSONResponse(
        {"jsonrpc": "2.0", "error": {"code": code, "message": message}, "id": None},
        status_code=status_code,
    )


def _session_id(scope: Scope) -> str | None:
    return Headers(scope=scope).get(MCP_SESSION_ID_HEADER)


def _without_session_header(scope: Scope) -> Scope:
    header = MCP_SESSION_ID_HEADER.encode()
    headers = [(k, v) for k, v in scope["headers"] if k.lower() != header]
    return {**scope, "headers": headers}


def _replay_body(body: bytes, receive: Receive) -> Receive:
    """Hand an already-read body to the next reader, then defer to ``receive``."""
    delivered = False

    async def replay() -> Message:
        nonlocal delivered
        if not delivered:
            delivered = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay


def _is_initialize(message: Any) -> bool:
    return isinstance(message, dict) and message.get("method") == "initialize"


def _validate_initialize(message: dict[str, Any]) -> None:
    JSONRPCRequest.model_validate(message)
    InitializeRequest.model_validate({"method": message["method"], "params": message.get("params")})


class _TrackedSend:
    """ASGI send wrapper that remembers whether the response has started."""

    def __init__(self, send: Send) -> None:
        self._send = send
        self.started = False

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.started = True
        await self._send(message)


class ProtocolGateway:
    """Routes MCP messages to per-client sessions.

    Attributes:
        registry: Live sessions by id
    """

    def __init__(
        self,
        registry: SessionRegistry,
        session_id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.registry = registry
        self._new_session_id = session_id_factory or (lambda: uuid4().hex)
        self._task_group: TaskGroup | None = None

    @asynccontextmanager
    async def run(self) -> AsyncIterator[None]:
        """Own the task group that runs every session's server loop.

        Sessions still open on exit are cancelled and removed.
        """
        if self._task_group is not None:
            msg = "ProtocolGateway.run() is already active"
            raise RuntimeError(msg)

        async with anyio.create_task_group() as tg:
            self._task_group = tg
            logger.info("Protocol gateway started")
            try:
                yield
            finally:
                open_ids = self.registry.session_ids()
                logger.info(
                    "Protocol gateway stopping (%d live session(s)): %s",
                    len(open_ids),
                    ", ".join(open_ids) or "none",
                )
                tg.cancel_scope.cancel()
                self._task_group = None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        method = scope["method"]
        if method == "POST":
            await self.handle_request(scope, receive, send)
        elif method == "GET":
            await self.handle_stream_open(scope, receive, send)
        elif method == "DELETE":
            await self.handle_terminate(scope, receive, send)
        else:
            response = PlainTextResponse(
                "Method Not Allowed", status_code=405, headers={"Allow": "GET, POST, DELETE"}
            )
            await response(scope, receive, send)

    # ------------------------------------------------------------------
    # Exchanges
    # ------------------------------------------------------------------

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Open or continue an exchange (POST)."""
        session = self.registry.lookup(_session_id(scope))
        if session is not None:
            await self._forward(session, scope, receive, send)
            return

        body = await Request(scope, receive).body()
        try:
            message = json.loads(body)
        except ValueError:
            logger.warning("Rejected request without session: body is not valid JSON")
            response = _jsonrpc_error(400, PARSE_ERROR, "Parse error: body is not valid JSON")
            await response(scope, receive, send)
            return

        if not _is_initialize(message):
            logger.warning("Rejected request without a valid session ID")
            response = _jsonrpc_error(400, BAD_REQUEST, "Bad Request: No valid session ID provided")
            await response(scope, receive, send)
            return

        try:
            _validate_initialize(message)
        except PydanticValidationError as e:
            logger.warning("Rejected malformed initialize request: %s", e)
            response = _jsonrpc_error(400, INVALID_REQUEST, "Invalid initialize request")
            await response(scope, receive, send)
            return

        session_id = self._new_session_id()
        token = current_session_id.set(session_id)
        try:
            session = await self._open_session(session_id)
        except ConflictError as e:
            logger.warning("Could not open session: %s", e)
            await _jsonrpc_error(409, BAD_REQUEST, e.message)(scope, receive, send)
            return
        except Exception:
            logger.exception("Could not open session %s", session_id)
            await _jsonrpc_error(500, INTERNAL_ERROR, "Internal error")(scope, receive, send)
            return
        finally:
            current_session_id.reset(token)

        await self._forward(
            session, _without_session_header(scope), _replay_body(body, receive), send
        )

    async def _open_session(self, session_id: str) -> Session:
        if self._task_group is None:
            msg = "ProtocolGateway is not running; wrap serving in 'async with gateway.run()'"
            raise RuntimeError(msg)

        session = self.registry.create(session_id)
        try:
            await session.start(self._task_group)
        except BaseException:
            self.registry.remove(session_id)
            raise
        return session

    async def _forward(self, session: Session, scope: Scope, receive: Receive, send: Send) -> None:
        """Hand one exchange to ``session``; failures stay scoped to this exchange."""
        token = current_session_id.set(session.session_id)
        tracked = _TrackedSend(send)
        try:
            async with session.exchange():
                await session.handle_request(scope, receive, tracked)
        except NotFoundError as e:
            logger.warning("Rejected exchange: %s", e.message)
            if not tracked.started:
                response = _jsonrpc_error(400, BAD_REQUEST, f"Bad Request: {e.message}")
                await response(scope, receive, tracked)
        except Exception:
            logger.exception("Exchange failed on session %s", session.session_id)
            if not tracked.started:
                await _jsonrpc_error(500, INTERNAL_ERROR, "Internal error")(scope, receive, tracked)
        finally:
            current_session_id.reset(token)

    # ------------------------------------------------------------------
    # Push streams and termination
    # ------------------------------------------------------------------

    def _require_session(self, scope: Scope) -> Session:
        session_id = _session_id(scope)
        session = self.registry.lookup(session_id)
        if session is None:
            msg = "Invalid or missing session ID"
            raise NotFoundError(msg, resource_type="session", resource_id=session_id)
        return session

    async def handle_stream_open(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Attach the caller to the session's server-to-client stream (GET)."""
        try:
            session = self._require_session(scope)
            if not session.accepting:
                msg = "Invalid or missing session ID"
                raise NotFoundError(msg, resource_type="session", resource_id=session.session_id)
        except NotFoundError as e:
            logger.warning("Rejected stream open: %s", e.message)
            await PlainTextResponse(e.message, status_code=400)(scope, receive, send)
            return

        token = current_session_id.set(session.session_id)
        tracked = _TrackedSend(send)
        try:
            await session.handle_stream(scope, receive, tracked)
        except Exception:
            logger.exception("Push stream failed on session %s", session.session_id)
            if not tracked.started:
                await PlainTextResponse("Internal error", status_code=500)(scope, receive, tracked)
        finally:
            current_session_id.reset(token)

    async def handle_terminate(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Close the session after its accepted exchanges finish (DELETE)."""
        try:
            session = self._require_session(scope)
        except NotFoundError as e:
            logger.warning("Rejected terminate: %s", e.message)
            await PlainTextResponse(e.message, status_code=400)(scope, receive, send)
            return

        token = current_session_id.set(session.session_id)
        try:
            await session.terminate()
        except Exception:
            logger.exception("Closing session %s failed", session.session_id)
            await PlainTextResponse("Internal error", status_code=500)(scope, receive, send)
            return
        finally:
            current_session_id.reset(token)
        await Response(status_code=200)(scope, receive, send)


__all__ = ["ProtocolGateway"]
