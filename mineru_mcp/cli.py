"""mineru-mcp CLI - start the MinerU MCP server.

Example:
    # stdio transport (spawned by an MCP client such as an IDE)
    MINERU_API_KEY=... mineru-mcp

    # Streamable HTTP transport with concurrent sessions
    MINERU_API_KEY=... mineru-mcp http --port 3000

    # With a config file
    mineru-mcp --config mineru_mcp.yml http
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from mineru_mcp import __version__
from mineru_mcp.observability.logging import configure_logging
from mineru_mcp.server.config import Config, load_config

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mineru-mcp",
        description="MinerU document parsing MCP server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  MINERU_API_KEY        MinerU API key (required for tool calls)
  MINERU_BASE_URL       API base URL (default: https://mineru.net/api/v4)
  MINERU_DEFAULT_MODEL  pipeline | vlm (default: pipeline)
  PORT                  HTTP port (default: 3000)
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to YAML config file (overrides MINERU_MCP_CONFIG env var)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (overrides config)",
    )

    subparsers = parser.add_subparsers(dest="transport")
    subparsers.add_parser("stdio", help="Serve one client over stdin/stdout (default)")

    http_parser = subparsers.add_parser("http", help="Serve many clients over streamable HTTP")
    http_parser.add_argument("--host", type=str, default=None, help="Host address to bind to")
    http_parser.add_argument("--port", "-p", type=int, default=None, help="Port to listen on")

    return parser


def _apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    server = config.server
    if args.log_level:
        server = replace(server, log_level=args.log_level)
    if getattr(args, "host", None):
        server = replace(server, http_host=args.host)
    if getattr(args, "port", None):
        server = replace(server, http_port=args.port)
    return replace(config, server=server)


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = _apply_overrides(load_config(args.config), args)
    except ValueError as e:
        configure_logging()
        logger.error("Invalid configuration: %s", e)
        sys.exit(1)

    configure_logging(config.server.log_level, config.server.structured_logging)
    logger.debug("Configuration: %s", config.to_dict())

    if args.transport == "http":
        from mineru_mcp.server.http_server import start_server

        start_server(config)
        return

    from mineru_mcp.server import stdio_transport

    try:
        stdio_transport.run(config)
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.exception("Server error: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
