"""
mineru-mcp: MinerU document parsing over the Model Context Protocol.

Exposes MinerU's parse / status / batch / batch-status operations as MCP tools,
over stdio (one implicit session) or streamable HTTP (many concurrent sessions
multiplexed by the protocol gateway).

Public API modules:
- mineru_mcp.server: gateway, sessions, transports and tool handlers
- mineru_mcp.providers: MinerU API client
- mineru_mcp.framework: error taxonomy
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("mineru-mcp")
except PackageNotFoundError:
    # Development checkout, not installed via pip
    __version__ = "1.0.2"

__all__ = ["__version__"]
