"""Observability helpers (logging)."""

from mineru_mcp.observability.logging import (
    JSONFormatter,
    SessionContextFilter,
    configure_logging,
    current_session_id,
)

__all__ = ["JSONFormatter", "SessionContextFilter", "configure_logging", "current_session_id"]
