"""
stdio transport for MCP.

One implicit session per process: the client that spawned us talks over
stdin/stdout, so there is no session id and no gateway. Logging must stay on
stderr.
"""

import asyncio
import logging

from mineru_mcp.providers.client import MineruClient
from mineru_mcp.server.config import Config
from mineru_mcp.server.mcp_server import MineruMCPServer
from mineru_mcp.server.tools import MineruTools

logger = logging.getLogger(__name__)


async def serve_stdio(config: Config) -> None:  # pragma: no cover - exercised in real runtime
    async with MineruClient(config.mineru) as client:
        tools = MineruTools(client, default_model=config.mineru.default_model)
        await MineruMCPServer(tools).run_stdio()


def run(config: Config) -> None:  # pragma: no cover - exercised in real runtime
    """Entry point to start the stdio transport."""
    asyncio.run(serve_stdio(config))
