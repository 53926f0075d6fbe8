"""MinerU MCP server implementation.

This module provides the MCP server wrapper that:
1. Registers the MinerU tools from the tool catalog
2. Maps tool calls to MineruTools handlers
3. Turns handler failures into MCP tool errors

Architecture:
- MCP client → Protocol Gateway → Session → MineruMCPServer → MineruTools → MineruClient
- One MineruMCPServer per session in HTTP mode, a single one in stdio mode
"""

import logging
from collections.abc import Iterable
from typing import Any

from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from mineru_mcp import __version__
from mineru_mcp.framework.errors import InternalError, MCPError
from mineru_mcp.server.tools import TOOL_CATALOG, MineruTools

logger = logging.getLogger(__name__)

SERVER_NAME = "mineru"


class MineruMCPServer:
    """MCP server exposing the MinerU tools.

    Attributes:
        tools: Tool handlers shared across sessions
        server: Low-level MCP server holding this session's protocol state
    """

    def __init__(self, tools: MineruTools, server_name: str = SERVER_NAME) -> None:
        self.tools = tools
        self.server = Server(server_name, version=__version__)
        self._register_tools()

    def _register_tools(self) -> None:
        """Register MCP tool handlers."""

        @self.server.list_tools()
        async def list_tools() -> Iterable[Tool]:
            return self._build_tool_list()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
            return await self._handle_tool_call(name, arguments)

    def _build_tool_list(self) -> list[Tool]:
        return [
            Tool(name=spec.name, description=spec.description, inputSchema=spec.input_schema)
            for spec in TOOL_CATALOG.values()
        ]

    async def _handle_tool_call(self, tool_name: str, arguments: dict[str, Any]) -> list[TextContent]:
        """Run one tool call.

        Known errors propagate unchanged so the client sees their message as
        the tool error text. Anything else is logged and replaced by a generic
        error; the session keeps serving.
        """
        logger.info("Tool call: %s", tool_name, extra={"tool": tool_name})

        try:
            text = await self.tools.call(tool_name, arguments)
        except MCPError as e:
            logger.warning(
                "Tool %s failed: %s", tool_name, e, extra={"tool": tool_name}
            )
            raise
        except Exception as e:
            logger.exception("Unexpected error in tool %s", tool_name, extra={"tool": tool_name})
            msg = f"Tool '{tool_name}' failed unexpectedly. Check the server logs."
            raise InternalError(msg, cause=e) from e

        return [TextContent(type="text", text=text)]

    async def run_stdio(self) -> None:
        """Serve a single implicit session over stdin/stdout."""
        logger.info("Starting MinerU MCP server (stdio mode)")

        async with stdio_server() as (read, write):
            await self.server.run(read, write, self.server.create_initialization_options())


__all__ = ["SERVER_NAME", "MineruMCPServer"]
