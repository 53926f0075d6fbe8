"""HTTP server launcher for the MinerU MCP gateway.

Example:
    # Start server (port from PORT, default 3000)
    MINERU_API_KEY=... mineru-mcp http

    # Custom bind address
    mineru-mcp http --host 127.0.0.1 --port 8080
"""

import logging
import sys

import uvicorn

from mineru_mcp.server.config import Config
from mineru_mcp.server.http_transport import create_app

logger = logging.getLogger(__name__)


def start_server(config: Config) -> None:
    """Start the HTTP server and block until it stops.

    Exits with status 1 if the server cannot start (e.g. the port is taken).
    """
    host = config.server.http_host
    port = config.server.http_port

    try:
        app = create_app(config)
        logger.info("Starting HTTP server on %s:%s", host, port)
        logger.info("  Endpoint: http://%s:%s/mcp", host, port)
        logger.info("  Health:   http://%s:%s/health", host, port)
        uvicorn.run(
            app,
            host=host,
            port=port,
            log_level=config.server.log_level.lower(),
            access_log=False,  # Reduce noise, the gateway logs session events
        )
    except Exception as e:
        logger.exception("Server startup failed: %s", e)
        sys.exit(1)
