"""
HTTP transport for the MinerU MCP gateway (MCP streamable HTTP).

Endpoints:
- POST   /mcp     open (initialize) or continue an exchange
- GET    /mcp     open the server-to-client SSE stream of a session
- DELETE /mcp     terminate a session
- GET    /health  liveness check (unauthenticated)

The session id travels in the ``mcp-session-id`` header. Every request on
/mcp goes through the ProtocolGateway, which keeps one MineruMCPServer per
session. The MinerU client is shared by all sessions.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from mcp.server.streamable_http import MCP_SESSION_ID_HEADER
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from mineru_mcp import __version__
from mineru_mcp.providers.client import MineruClient
from mineru_mcp.server.config import Config
from mineru_mcp.server.gateway import ProtocolGateway
from mineru_mcp.server.mcp_server import MineruMCPServer
from mineru_mcp.server.registry import SessionRegistry
from mineru_mcp.server.session import McpSession
from mineru_mcp.server.tools import MineruTools

logger = logging.getLogger(__name__)

SERVICE_NAME = "mineru-mcp"


def build_gateway(config: Config, client: MineruClient) -> ProtocolGateway:
    """Wire tools, sessions and registry into a gateway."""
    tools = MineruTools(client, default_model=config.mineru.default_model)

    def new_session(session_id: str) -> McpSession:
        return McpSession(
            session_id,
            server_factory=lambda: MineruMCPServer(tools),
            json_response=config.server.json_response,
        )

    return ProtocolGateway(SessionRegistry(new_session))


def create_app(config: Config, client: MineruClient | None = None) -> Starlette:
    """Create the Starlette application.

    Args:
        config: Loaded configuration
        client: Optional MinerU client (default: one built from config.mineru)
    """
    client = client or MineruClient(config.mineru)
    gateway = build_gateway(config, client)

    async def health_check(request: Request) -> Any:
        """Liveness check for load balancers; never touches MinerU."""
        return JSONResponse(
            {
                "status": "ok",
                "service": SERVICE_NAME,
                "version": __version__,
                **gateway.registry.get_stats(),
            }
        )

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        logger.info("MinerU MCP HTTP server v%s starting", __version__)
        async with client, gateway.run():
            yield
        logger.info("MinerU MCP HTTP server stopped")

    middleware = [
        # Browser-based MCP clients must be able to read the session header
        Middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST", "DELETE"],
            allow_headers=["Content-Type", "Accept", MCP_SESSION_ID_HEADER, "mcp-protocol-version"],
            expose_headers=[MCP_SESSION_ID_HEADER],
        ),
    ]

    app = Starlette(
        routes=[
            Route("/mcp", endpoint=gateway, methods=["GET", "POST", "DELETE"]),
            Route("/health", health_check, methods=["GET", "HEAD"]),
        ],
        middleware=middleware,
        lifespan=lifespan,
    )
    app.state.gateway = gateway
    return app


__all__ = ["SERVICE_NAME", "build_gateway", "create_app"]
