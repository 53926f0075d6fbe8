"""Framework-level building blocks shared by every layer (error taxonomy)."""

from mineru_mcp.framework.errors import (
    ConfigurationError,
    ConflictError,
    ErrorCode,
    ErrorSeverity,
    InternalError,
    MCPError,
    NotFoundError,
    RemoteError,
    TransportError,
    ValidationError,
)

__all__ = [
    "ConfigurationError",
    "ConflictError",
    "ErrorCode",
    "ErrorSeverity",
    "InternalError",
    "MCPError",
    "NotFoundError",
    "RemoteError",
    "TransportError",
    "ValidationError",
]
