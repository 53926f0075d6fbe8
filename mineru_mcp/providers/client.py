"""HTTP client for the MinerU document parsing API.

Every MinerU response is wrapped in an envelope::

    {"code": 0, "msg": "ok", "data": {...}}

``MineruClient.request`` attaches the bearer credential, unwraps the envelope
and turns failures into the gateway's error taxonomy. It never retries.
"""

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

import httpx

from mineru_mcp.framework.errors import ConfigurationError, RemoteError, TransportError
from mineru_mcp.server.config import MineruConfig

logger = logging.getLogger(__name__)

# Service error codes with actionable messages
ERROR_MESSAGES: Mapping[str, str] = MappingProxyType(
    {
        "A0202": "Token error. Check your API key.",
        "A0211": "Token expired. Get a new API key.",
        "-60002": "Invalid file format. Use: pdf, doc, docx, ppt, pptx, png, jpg, jpeg",
        "-60005": "File too large. Max 200MB.",
        "-60006": "Too many pages. Max 600 per file. Split the document.",
        "-60008": "URL timeout. Check the URL is accessible.",
        "-60009": "Queue full. Try again later.",
        "-60012": "Task not found. Check task_id is valid.",
        "-60013": "Access denied. You can only access your own tasks.",
    }
)


def resolve_error_message(code: str, service_message: str | None = None) -> str:
    """Look up the actionable message for a service error code.

    Falls back to the service-provided message, then to "Unknown error".
    """
    return ERROR_MESSAGES.get(code) or service_message or "Unknown error"


class MineruClient:
    """Async client for the MinerU API, shared by all sessions."""

    def __init__(
        self,
        config: MineruConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize MinerU client.

        Args:
            config: Credential, base URL and timeout
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.config.api_key}",
                },
                timeout=self.config.timeout_seconds,
                transport=self._transport,
            )
        return self._client

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        body: dict[str, Any] | None = None,
    ) -> Any:
        """Call a MinerU endpoint and return the envelope's ``data``.

        Args:
            endpoint: API path relative to the base URL (e.g. "/extract/task")
            method: HTTP method (GET or POST)
            body: JSON request body

        Returns:
            The ``data`` member of a successful envelope

        Raises:
            ConfigurationError: If no API key is configured
            RemoteError: If MinerU reports a non-success code
            TransportError: If the HTTP call fails or times out
        """
        if not self.config.api_key:
            msg = "MINERU_API_KEY not set. Add it to your environment."
            raise ConfigurationError(msg, setting="MINERU_API_KEY")

        client = self._get_client()
        logger.debug("MinerU %s %s", method, endpoint)

        try:
            response = await client.request(method, endpoint, json=body)
        except httpx.TimeoutException as e:
            msg = f"MinerU request timed out after {self.config.timeout_seconds}s"
            raise TransportError(None, msg) from e
        except httpx.HTTPError as e:
            msg = f"MinerU connection failed: {e}"
            raise TransportError(None, msg) from e

        payload = _decode_json(response)

        if response.is_error:
            if isinstance(payload, dict) and payload.get("code"):
                code = str(payload["code"])
                raise RemoteError(code, resolve_error_message(code, payload.get("msg")))
            msg = f"HTTP {response.status_code}: {response.reason_phrase}"
            raise TransportError(response.status_code, msg)

        if not isinstance(payload, dict):
            msg = f"MinerU returned a non-JSON response (status {response.status_code})"
            raise TransportError(response.status_code, msg)

        code = str(payload.get("code"))
        if code != "0":
            logger.warning("MinerU %s %s failed with code %s", method, endpoint, code)
            raise RemoteError(code, resolve_error_message(code, payload.get("msg")))

        return payload.get("data")

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "MineruClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


def _decode_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None
