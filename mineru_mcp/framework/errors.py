"""
Error taxonomy for the MinerU MCP gateway.

Tools, the remote client and the gateway raise these typed exceptions; the
transport layers map them to MCP tool errors or HTTP/JSON-RPC error responses.

Key features:
- Error code enums (avoid typos)
- Severity levels (fatal, transient, user_error)
- Boundary translation functions
"""

from enum import Enum
from typing import Any

# ============================================================================
# Error Codes and Severity
# ============================================================================


class ErrorCode(str, Enum):
    """Enumeration of all error codes in the system."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Remote service errors
    REMOTE_ERROR = "REMOTE_ERROR"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"

    # Session registry errors
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"

    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorSeverity(str, Enum):
    """Error severity for alerting."""

    FATAL = "fatal"  # Unrecoverable, requires intervention
    TRANSIENT = "transient"  # Temporary, caller may retry
    USER_ERROR = "user_error"  # User mistake, not retryable


# ============================================================================
# Base Exception Class
# ============================================================================


class MCPError(Exception):
    """Base class for all gateway errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        details: dict[str, Any] | None = None,
        severity: ErrorSeverity = ErrorSeverity.FATAL,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.severity = severity

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "error": self.code.value,
            "message": str(self),
            "details": self.details,
            "severity": self.severity.value,
        }


# ============================================================================
# Local Errors
# ============================================================================


class ValidationError(MCPError):
    """Input validation failed before any remote call was made."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        received: Any | None = None,
    ) -> None:
        details = {}
        if field:
            details["field"] = field
        if received is not None:
            details["received"] = str(received)
        super().__init__(
            message, ErrorCode.VALIDATION_ERROR, details, severity=ErrorSeverity.USER_ERROR
        )


class ConfigurationError(MCPError):
    """Required configuration (e.g. the API key) is missing or invalid."""

    def __init__(self, message: str, setting: str | None = None) -> None:
        details = {"setting": setting} if setting else {}
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


# ============================================================================
# Remote Service Errors
# ============================================================================


class RemoteError(MCPError):
    """MinerU answered with a non-success envelope code.

    ``message`` holds the resolved, actionable text; ``str(err)`` prefixes it
    with the service code the way it is shown to MCP clients.
    """

    def __init__(self, code: str, message: str) -> None:
        super().__init__(
            message,
            ErrorCode.REMOTE_ERROR,
            {"remote_code": code},
            severity=ErrorSeverity.USER_ERROR,
        )
        self.remote_code = code

    def __str__(self) -> str:
        return f"MinerU error {self.remote_code}: {self.message}"


class TransportError(MCPError):
    """MinerU could not be reached or answered with a bare HTTP failure."""

    def __init__(self, status: int | None, message: str) -> None:
        details = {"status": status} if status is not None else {}
        super().__init__(
            message, ErrorCode.TRANSPORT_ERROR, details, severity=ErrorSeverity.TRANSIENT
        )
        self.status = status


# ============================================================================
# Session Registry Errors
# ============================================================================


class NotFoundError(MCPError):
    """Session (or tool) not found."""

    def __init__(
        self, message: str, resource_type: str | None = None, resource_id: str | None = None
    ) -> None:
        details = {}
        if resource_type:
            details["resource_type"] = resource_type
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message, ErrorCode.NOT_FOUND, details, severity=ErrorSeverity.USER_ERROR)


class ConflictError(MCPError):
    """Session id already registered."""

    def __init__(self, message: str, conflict_type: str | None = None) -> None:
        details = {}
        if conflict_type:
            details["conflict_type"] = conflict_type
        super().__init__(message, ErrorCode.CONFLICT, details, severity=ErrorSeverity.USER_ERROR)


class InternalError(MCPError):
    """Internal server error (unexpected condition)."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        details = {}
        if cause:
            details["cause"] = str(cause)
            details["cause_type"] = type(cause).__name__
        super().__init__(message, ErrorCode.INTERNAL_ERROR, details, severity=ErrorSeverity.FATAL)


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
