"""Configuration management with validation.

This module provides centralized configuration for the MinerU MCP gateway with:
- YAML file support (mineru_mcp.yml)
- Environment variable overrides
- Validation in frozen dataclasses

Configuration precedence (highest to lowest):
1. Environment variables (MINERU_*, MINERU_MCP_*, PORT)
2. YAML config file
3. Default values

Example mineru_mcp.yml:
    mineru:
      base_url: "https://mineru.net/api/v4"
      default_model: "vlm"
      timeout_seconds: 60

    server:
      http_host: "127.0.0.1"
      http_port: 3000
      log_level: "INFO"

Usage:
    config = load_config()
    client = MineruClient(config.mineru)

The API key is best kept out of the YAML file and supplied via MINERU_API_KEY.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://mineru.net/api/v4"
DEFAULT_CONFIG_FILE = "mineru_mcp.yml"
VALID_MODELS = ("pipeline", "vlm")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class MineruConfig:
    """Credential and defaults for the MinerU API.

    Attributes:
        api_key: Bearer token from mineru.net (empty = every remote call fails)
        base_url: API base URL
        default_model: Model used when a tool call names none ("pipeline" | "vlm")
        timeout_seconds: Per-request timeout for calls to MinerU
    """

    api_key: str = field(default="", repr=False)
    base_url: str = DEFAULT_BASE_URL
    default_model: str = "pipeline"
    timeout_seconds: float = 60.0

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.default_model not in VALID_MODELS:
            msg = f"default_model must be one of {list(VALID_MODELS)}, got '{self.default_model}'"
            raise ValueError(msg)

        if self.timeout_seconds <= 0:
            msg = f"timeout_seconds must be > 0, got {self.timeout_seconds}"
            raise ValueError(msg)

        if not self.base_url:
            msg = "base_url must not be empty"
            raise ValueError(msg)

        # Normalize base_url (use object.__setattr__ for frozen dataclass)
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))


@dataclass(frozen=True)
class ServerConfig:
    """Transport configuration.

    Attributes:
        http_host: HTTP server bind address
        http_port: HTTP server port
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        structured_logging: Emit JSON log lines
        json_response: Answer POST /mcp with plain JSON instead of an SSE stream
    """

    http_host: str = "0.0.0.0"  # S104: intentional for container deployments
    http_port: int = 3000
    log_level: str = "INFO"
    structured_logging: bool = False
    json_response: bool = False

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.log_level.upper() not in VALID_LOG_LEVELS:
            msg = f"log_level must be one of {list(VALID_LOG_LEVELS)}, got '{self.log_level}'"
            raise ValueError(msg)

        if not (0 < self.http_port < 65536):
            msg = f"http_port must be 1-65535, got {self.http_port}"
            raise ValueError(msg)

        object.__setattr__(self, "log_level", self.log_level.upper())


@dataclass(frozen=True)
class Config:
    """Root configuration object."""

    mineru: MineruConfig = field(default_factory=MineruConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary (API key redacted)."""
        return {
            "mineru": {
                "api_key": "***" if self.mineru.api_key else "",
                "base_url": self.mineru.base_url,
                "default_model": self.mineru.default_model,
                "timeout_seconds": self.mineru.timeout_seconds,
            },
            "server": {
                "http_host": self.server.http_host,
                "http_port": self.server.http_port,
                "log_level": self.server.log_level,
                "structured_logging": self.server.structured_logging,
                "json_response": self.server.json_response,
            },
        }


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def load_config(
    config_path: Path | None = None, environ: Mapping[str, str] | None = None
) -> Config:
    """Load configuration from YAML file and environment variables.

    Precedence (highest to lowest):
    1. Environment variables
    2. YAML config file
    3. Default values

    Args:
        config_path: Optional path to config YAML file
            (default: $MINERU_MCP_CONFIG, then ./mineru_mcp.yml)
        environ: Environment mapping (default: os.environ)

    Returns:
        Config object

    Raises:
        ValueError: If a setting fails validation

    Environment variables:
        MINERU_API_KEY: MinerU API key
        MINERU_BASE_URL: API base URL
        MINERU_DEFAULT_MODEL: Default model (pipeline/vlm)
        MINERU_TIMEOUT_SECONDS: Request timeout
        MINERU_MCP_HOST: HTTP server host
        PORT: HTTP server port
        MINERU_MCP_LOG_LEVEL: Log level (DEBUG/INFO/WARNING/ERROR/CRITICAL)
        MINERU_MCP_STRUCTURED_LOGGING: JSON log lines (true/false)
        MINERU_MCP_JSON_RESPONSE: JSON instead of SSE POST responses (true/false)
    """
    env = os.environ if environ is None else environ

    mineru_values: dict[str, Any] = {}
    server_values: dict[str, Any] = {}

    if config_path is None:
        config_path = Path(env.get("MINERU_MCP_CONFIG", DEFAULT_CONFIG_FILE))

    if config_path.exists():
        logger.info("Loading configuration from %s", config_path)
        with open(config_path) as f:
            try:
                yaml_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                msg = f"config file {config_path} is not valid YAML: {e}"
                raise ValueError(msg) from e

        if not isinstance(yaml_config, dict):
            msg = f"config file {config_path} must contain a mapping"
            raise ValueError(msg)

        for section, values in (("mineru", mineru_values), ("server", server_values)):
            section_values = yaml_config.get(section) or {}
            if not isinstance(section_values, dict):
                msg = f"'{section}' in {config_path} must be a mapping"
                raise ValueError(msg)
            values.update(section_values)

    # Environment overrides
    if env.get("MINERU_API_KEY"):
        mineru_values["api_key"] = env["MINERU_API_KEY"]
    if env.get("MINERU_BASE_URL"):
        mineru_values["base_url"] = env["MINERU_BASE_URL"]
    if env.get("MINERU_DEFAULT_MODEL"):
        mineru_values["default_model"] = env["MINERU_DEFAULT_MODEL"]
    if env.get("MINERU_TIMEOUT_SECONDS"):
        mineru_values["timeout_seconds"] = float(env["MINERU_TIMEOUT_SECONDS"])

    if env.get("MINERU_MCP_HOST"):
        server_values["http_host"] = env["MINERU_MCP_HOST"]
    if env.get("PORT"):
        server_values["http_port"] = int(env["PORT"])
    if env.get("MINERU_MCP_LOG_LEVEL"):
        server_values["log_level"] = env["MINERU_MCP_LOG_LEVEL"]
    if env.get("MINERU_MCP_STRUCTURED_LOGGING"):
        server_values["structured_logging"] = _parse_bool(env["MINERU_MCP_STRUCTURED_LOGGING"])
    if env.get("MINERU_MCP_JSON_RESPONSE"):
        server_values["json_response"] = _parse_bool(env["MINERU_MCP_JSON_RESPONSE"])

    try:
        config = Config(
            mineru=MineruConfig(**mineru_values),
            server=ServerConfig(**server_values),
        )
    except (TypeError, ValueError) as e:
        logger.exception("Configuration validation failed: %s", e)
        raise ValueError(str(e)) from e

    if not config.mineru.api_key:
        logger.warning("MINERU_API_KEY is not set; every MinerU call will fail until it is")

    return config


__all__ = [
    "DEFAULT_BASE_URL",
    "VALID_MODELS",
    "Config",
    "MineruConfig",
    "ServerConfig",
    "load_config",
]
