"""
Per-client protocol sessions.

A Session owns one client's transport and the MCP server state behind it. The
base class handles lifecycle bookkeeping common to every transport:

- counting in-flight exchanges so termination waits for them
- refusing new exchanges once termination has begun
- firing close callbacks exactly once, inline with the close event

McpSession binds that lifecycle to the MCP SDK's streamable HTTP transport.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import anyio
from anyio.abc import TaskGroup, TaskStatus
from mcp.server.streamable_http import StreamableHTTPServerTransport
from starlette.types import Receive, Scope, Send

from mineru_mcp.framework.errors import NotFoundError
from mineru_mcp.server.mcp_server import MineruMCPServer

logger = logging.getLogger(__name__)

CloseCallback = Callable[[str], None]


class Session(ABC):
    """One logical client connection, from initialization to termination."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        self.created_at = datetime.now(timezone.utc)
        self._close_callbacks: list[CloseCallback] = []
        self._in_flight = 0
        self._idle = anyio.Event()
        self._idle.set()
        self._terminating = False
        self._closed = anyio.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def accepting(self) -> bool:
        """Whether new exchanges may start on this session."""
        return not (self._terminating or self.closed)

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def add_close_callback(self, callback: CloseCallback) -> None:
        """Register ``callback(session_id)`` to run when the session closes."""
        self._close_callbacks.append(callback)

    async def start(self, task_group: TaskGroup) -> None:
        """Start the session's server loop inside ``task_group``."""
        await task_group.start(self._serve)

    @asynccontextmanager
    async def exchange(self) -> AsyncIterator[None]:
        """Track one request/response cycle.

        Raises:
            NotFoundError: If the session is terminating or closed
        """
        if not self.accepting:
            msg = f"Session {self.session_id} is terminating"
            raise NotFoundError(msg, resource_type="session", resource_id=self.session_id)

        self._in_flight += 1
        if self._in_flight == 1:
            self._idle = anyio.Event()
        try:
            yield
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._idle.set()

    async def terminate(self) -> None:
        """Close the session once every accepted exchange has finished.

        Safe to call concurrently; later callers wait for the first to finish.
        """
        if self._terminating or self.closed:
            await self._closed.wait()
            return

        self._terminating = True
        logger.info(
            "Terminating session %s (%d exchange(s) in flight)",
            self.session_id,
            self._in_flight,
        )
        try:
            await self._idle.wait()
            await self._close_transport()
        finally:
            self._mark_closed()

    def _mark_closed(self) -> None:
        if self.closed:
            return
        self._closed.set()
        logger.info("Session closed: %s", self.session_id)
        for callback in self._close_callbacks:
            callback(self.session_id)

    @abstractmethod
    async def _serve(self, *, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
        """Run the session's server loop; call ``task_status.started()`` once ready."""

    @abstractmethod
    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Deliver one client message and write its response."""

    @abstractmethod
    async def handle_stream(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Attach the caller to the server-to-client notification stream."""

    @abstractmethod
    async def _close_transport(self) -> None:
        """Release the transport."""


class McpSession(Session):
    """Session backed by the MCP SDK streamable HTTP transport.

    Each session gets its own MineruMCPServer, so protocol state (negotiated
    capabilities, pending requests) is never shared between clients.
    """

    def __init__(
        self,
        session_id: str,
        server_factory: Callable[[], MineruMCPServer],
        json_response: bool = False,
    ) -> None:
        super().__init__(session_id)
        self._server_factory = server_factory
        self.transport = StreamableHTTPServerTransport(
            mcp_session_id=session_id,
            is_json_response_enabled=json_response,
        )

    async def _serve(self, *, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
        mcp_server = self._server_factory().server
        try:
            async with self.transport.connect() as (read_stream, write_stream):
                task_status.started()
                await mcp_server.run(
                    read_stream,
                    write_stream,
                    mcp_server.create_initialization_options(),
                    stateless=False,
                )
        except Exception:
            logger.exception("Session %s server loop crashed", self.session_id)
        finally:
            self._mark_closed()

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.transport.handle_request(scope, receive, send)

    async def handle_stream(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.transport.handle_request(scope, receive, send)

    async def _close_transport(self) -> None:
        await self.transport.terminate()


__all__ = ["McpSession", "Session"]
