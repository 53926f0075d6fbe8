"""
Tests for MineruClient.

httpx.MockTransport stands in for the MinerU API.
"""

import json
from collections.abc import Callable

import httpx
import pytest

from mineru_mcp.framework.errors import ConfigurationError, RemoteError, TransportError
from mineru_mcp.providers.client import MineruClient, resolve_error_message
from mineru_mcp.server.config import MineruConfig

Handler = Callable[[httpx.Request], httpx.Response]


def make_client(handler: Handler, api_key: str = "secret-key") -> tuple[MineruClient, list]:
    seen: list[httpx.Request] = []

    def recording(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    config = MineruConfig(api_key=api_key, base_url="https://mineru.test/api/v4")
    return MineruClient(config, transport=httpx.MockTransport(recording)), seen


class TestRequest:
    """Tests for envelope unwrapping and request shape."""

    @pytest.mark.asyncio
    async def test_success_returns_data(self) -> None:
        client, seen = make_client(
            lambda r: httpx.Response(200, json={"code": 0, "msg": "ok", "data": {"task_id": "t-1"}})
        )

        async with client:
            data = await client.request("/extract/task", "POST", {"url": "https://x/a.pdf"})

        assert data == {"task_id": "t-1"}
        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/api/v4/extract/task"
        assert request.headers["authorization"] == "Bearer secret-key"
        assert json.loads(request.content) == {"url": "https://x/a.pdf"}

    @pytest.mark.asyncio
    async def test_string_zero_code_is_success(self) -> None:
        client, _ = make_client(lambda r: httpx.Response(200, json={"code": "0", "data": [1]}))

        async with client:
            assert await client.request("/extract/task/t-1") == [1]

    @pytest.mark.asyncio
    async def test_missing_key_makes_no_request(self) -> None:
        client, seen = make_client(lambda r: httpx.Response(200, json={"code": 0}), api_key="")

        async with client:
            with pytest.raises(ConfigurationError) as exc_info:
                await client.request("/extract/task/t-1")

        assert exc_info.value.message == "MINERU_API_KEY not set. Add it to your environment."
        assert seen == []


class TestErrors:
    """Tests for error mapping."""

    @pytest.mark.asyncio
    async def test_known_code_gets_actionable_message(self) -> None:
        client, _ = make_client(
            lambda r: httpx.Response(200, json={"code": -60006, "msg": "page limit"})
        )

        async with client:
            with pytest.raises(RemoteError) as exc_info:
                await client.request("/extract/task", "POST", {})

        error = exc_info.value
        assert error.remote_code == "-60006"
        assert error.message == "Too many pages. Max 600 per file. Split the document."
        assert str(error) == (
            "MinerU error -60006: Too many pages. Max 600 per file. Split the document."
        )

    @pytest.mark.asyncio
    async def test_unknown_code_passes_service_message(self) -> None:
        client, _ = make_client(lambda r: httpx.Response(200, json={"code": -99, "msg": "odd"}))

        async with client:
            with pytest.raises(RemoteError) as exc_info:
                await client.request("/extract/task/t-1")

        assert exc_info.value.message == "odd"

    @pytest.mark.asyncio
    async def test_unknown_code_without_message(self) -> None:
        client, _ = make_client(lambda r: httpx.Response(200, json={"code": -99}))

        async with client:
            with pytest.raises(RemoteError) as exc_info:
                await client.request("/extract/task/t-1")

        assert exc_info.value.message == "Unknown error"

    @pytest.mark.asyncio
    async def test_http_error_with_envelope(self) -> None:
        client, _ = make_client(
            lambda r: httpx.Response(401, json={"code": "A0202", "msg": "bad token"})
        )

        async with client:
            with pytest.raises(RemoteError) as exc_info:
                await client.request("/extract/task/t-1")

        assert exc_info.value.remote_code == "A0202"
        assert exc_info.value.message == "Token error. Check your API key."

    @pytest.mark.asyncio
    async def test_http_error_without_envelope(self) -> None:
        client, _ = make_client(lambda r: httpx.Response(500, text="boom"))

        async with client:
            with pytest.raises(TransportError) as exc_info:
                await client.request("/extract/task/t-1")

        assert exc_info.value.status == 500
        assert exc_info.value.message == "HTTP 500: Internal Server Error"

    @pytest.mark.asyncio
    async def test_non_json_success_body(self) -> None:
        client, _ = make_client(lambda r: httpx.Response(200, text="<html>"))

        async with client:
            with pytest.raises(TransportError):
                await client.request("/extract/task/t-1")

    @pytest.mark.asyncio
    async def test_connection_failure(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client, _ = make_client(refuse)

        async with client:
            with pytest.raises(TransportError) as exc_info:
                await client.request("/extract/task/t-1")

        assert exc_info.value.status is None
        assert "connection refused" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        def slow(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        client, _ = make_client(slow)

        async with client:
            with pytest.raises(TransportError) as exc_info:
                await client.request("/extract/task/t-1")

        assert "timed out" in exc_info.value.message


class TestResolveErrorMessage:
    """Tests for resolve_error_message()."""

    @pytest.mark.parametrize(
        ("code", "service_message", "expected"),
        [
            ("A0211", "ignored", "Token expired. Get a new API key."),
            ("-60012", None, "Task not found. Check task_id is valid."),
            ("-1", "from service", "from service"),
            ("-1", None, "Unknown error"),
            ("-1", "", "Unknown error"),
        ],
    )
    def test_lookup(self, code: str, service_message: str | None, expected: str) -> None:
        assert resolve_error_message(code, service_message) == expected
