"""MCP Server Core - Protocol Implementation.

This package contains the MCP protocol layer:
- gateway.py: session-multiplexed protocol gateway (HTTP)
- registry.py: session registry
- session.py: per-client session lifecycle
- mcp_server.py: MCP server wrapper exposing the MinerU tools
- tools.py / schemas.py / formatting.py: tool handlers and their I/O
- http_transport.py / http_server.py: Starlette app and uvicorn launcher
- stdio_transport.py: stdio transport
- config.py: server configuration
"""
