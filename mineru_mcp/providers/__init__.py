"""Clients for external services."""

from mineru_mcp.providers.client import ERROR_MESSAGES, MineruClient, resolve_error_message

__all__ = ["ERROR_MESSAGES", "MineruClient", "resolve_error_message"]
