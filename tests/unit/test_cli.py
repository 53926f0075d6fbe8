"""
Tests for the mineru-mcp command line.
"""

import logging
from pathlib import Path

import pytest

from mineru_mcp import cli
from mineru_mcp.server import http_server, stdio_transport
from mineru_mcp.server.config import Config


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ("MINERU_API_KEY", "MINERU_DEFAULT_MODEL", "PORT", "MINERU_MCP_HOST"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("MINERU_MCP_CONFIG", str(tmp_path / "absent.yml"))
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)


class TestMain:
    """Tests for cli.main()."""

    def test_http_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        started: list[Config] = []
        monkeypatch.setattr(http_server, "start_server", started.append)

        cli.main(["--log-level", "DEBUG", "http", "--host", "127.0.0.1", "--port", "8123"])

        (config,) = started
        assert config.server.http_host == "127.0.0.1"
        assert config.server.http_port == 8123
        assert config.server.log_level == "DEBUG"

    def test_stdio_is_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        started: list[Config] = []
        monkeypatch.setattr(stdio_transport, "run", started.append)

        cli.main([])

        assert len(started) == 1

    def test_invalid_config_exits(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MINERU_DEFAULT_MODEL", "gpt")

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["http"])

        assert exc_info.value.code == 1

    def test_invalid_port_rejected(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["http", "--port", "99999"])

        assert exc_info.value.code == 1

    def test_logs_redacted_config(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        monkeypatch.setenv("MINERU_API_KEY", "secret-key")
        monkeypatch.setattr(http_server, "start_server", lambda config: None)
        caplog.set_level(logging.DEBUG, logger="mineru_mcp.cli")

        cli.main(["http"])

        config_lines = [r.getMessage() for r in caplog.records if "Configuration" in r.getMessage()]
        assert len(config_lines) == 1
        assert "'api_key': '***'" in config_lines[0]
        assert "secret-key" not in caplog.text
