"""Application configuration management.

Loads configuration from config.yaml files and environment variables.
Environment variables take precedence over config file settings.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from franceconnect.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Default config locations
DEFAULT_CONFIG_DIR = Path.home() / ".franceconnect"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"

# Environment variable prefix
ENV_PREFIX = "FRANCECONNECT_"

DEFAULT_SCOPES = ["openid", "profile", "email"]

# Prefix marking a callback/logout value as a Flask endpoint name
ROUTE_PREFIX = "route:"


@dataclass
class ProviderSettings:
    """Static settings for the single pre-configured identity provider."""

    client_id: str = ""
    client_secret: str = ""
    base_url: str = ""
    scopes: list[str] = field(default_factory=lambda: list(DEFAULT_SCOPES))
    callback_url: str = ""
    logout_url: str = ""
    proxy_host: str | None = None
    proxy_port: int | None = None
    timeout: float = 30.0
    provider_keys: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.base_url and not self.base_url.endswith("/"):
            self.base_url += "/"

    @property
    def authorization_endpoint(self) -> str:
        return f"{self.base_url}authorize"

    @property
    def token_endpoint(self) -> str:
        return f"{self.base_url}token"

    @property
    def userinfo_endpoint(self) -> str:
        return f"{self.base_url}userinfo?schema=openid"

    @property
    def logout_endpoint(self) -> str:
        return f"{self.base_url}logout"

    def validate(self) -> None:
        """Check that every setting needed by the flow is present.

        Raises:
            ConfigurationError: If a required setting is missing.
        """
        missing = [
            name
            for name in ("client_id", "client_secret", "base_url", "callback_url", "logout_url")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError(f"Missing provider settings: {', '.join(missing)}")
        if self.proxy_port and not self.proxy_host:
            raise ConfigurationError("proxy_port is set without proxy_host")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProviderSettings:
        """Create ProviderSettings from a dictionary."""
        scopes = data.get("scopes") or list(DEFAULT_SCOPES)
        if isinstance(scopes, str):
            scopes = scopes.split()
        proxy_port = data.get("proxy_port")
        return cls(
            client_id=str(data.get("client_id", "")),
            client_secret=str(data.get("client_secret", "")),
            base_url=data.get("base_url", ""),
            scopes=list(scopes),
            callback_url=data.get("callback_url", ""),
            logout_url=data.get("logout_url", ""),
            proxy_host=data.get("proxy_host") or None,
            proxy_port=int(proxy_port) if proxy_port else None,
            timeout=float(data.get("timeout", 30.0)),
            provider_keys=list(data.get("provider_keys") or []),
        )

    def to_dict(self, mask_secret: bool = False) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        secret = self.client_secret
        if mask_secret and secret:
            secret = "********"
        return {
            "client_id": self.client_id,
            "client_secret": secret,
            "base_url": self.base_url,
            "scopes": list(self.scopes),
            "callback_url": self.callback_url,
            "logout_url": self.logout_url,
            "proxy_host": self.proxy_host,
            "proxy_port": self.proxy_port,
            "timeout": self.timeout,
            "provider_keys": list(self.provider_keys),
        }


@dataclass
class ServerSettings:
    """Development server settings."""

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    secret_key: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ServerSettings:
        """Create ServerSettings from a dictionary."""
        return cls(
            host=data.get("host", "127.0.0.1"),
            port=data.get("port", 8000),
            debug=data.get("debug", False),
            secret_key=data.get("secret_key"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "secret_key": self.secret_key,
        }


@dataclass
class AppConfig:
    """Main application configuration."""

    provider: ProviderSettings = field(default_factory=ProviderSettings)
    server: ServerSettings = field(default_factory=ServerSettings)
    config_path: Path | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], config_path: Path | None = None) -> AppConfig:
        """Create AppConfig from a dictionary."""
        return cls(
            provider=ProviderSettings.from_dict(data.get("provider") or {}),
            server=ServerSettings.from_dict(data.get("server") or {}),
            config_path=config_path,
        )

    def to_dict(self, mask_secret: bool = False) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "provider": self.provider.to_dict(mask_secret=mask_secret),
            "server": self.server.to_dict(),
        }


def _get_env_bool(key: str, default: bool) -> bool:
    """Get a boolean from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _get_env_int(key: str, default: int | None) -> int | None:
    """Get an integer from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer value for {key}: {value!r}")
        return default


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load application configuration.

    Configuration is loaded in this order (later values override earlier):
    1. Default values
    2. config.yaml file (if exists)
    3. Environment variables

    Args:
        config_path: Path to config file. Uses default if not specified.

    Returns:
        AppConfig with merged settings.

    Raises:
        ConfigurationError: If the config file exists but is not valid YAML.
    """
    config = AppConfig()

    file_path = config_path or DEFAULT_CONFIG_FILE
    if file_path.exists():
        try:
            with open(file_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid configuration file {file_path}: {e}") from e
        config = AppConfig.from_dict(data, config_path=file_path)

    provider = config.provider
    for name in ("client_id", "client_secret", "callback_url", "logout_url", "proxy_host"):
        value = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if value:
            setattr(provider, name, value)

    if os.environ.get(f"{ENV_PREFIX}BASE_URL"):
        provider.base_url = os.environ[f"{ENV_PREFIX}BASE_URL"]
        provider.__post_init__()

    if os.environ.get(f"{ENV_PREFIX}SCOPES"):
        provider.scopes = os.environ[f"{ENV_PREFIX}SCOPES"].split()

    provider.proxy_port = _get_env_int(f"{ENV_PREFIX}PROXY_PORT", provider.proxy_port)

    if os.environ.get(f"{ENV_PREFIX}TIMEOUT"):
        try:
            provider.timeout = float(os.environ[f"{ENV_PREFIX}TIMEOUT"])
        except ValueError:
            logger.warning(f"Ignoring invalid {ENV_PREFIX}TIMEOUT value")

    # Server settings
    server = config.server
    if os.environ.get(f"{ENV_PREFIX}HOST"):
        server.host = os.environ[f"{ENV_PREFIX}HOST"]

    server.port = _get_env_int(f"{ENV_PREFIX}PORT", server.port) or server.port
    server.debug = _get_env_bool(f"{ENV_PREFIX}DEBUG", server.debug)

    if os.environ.get(f"{ENV_PREFIX}SECRET_KEY"):
        server.secret_key = os.environ[f"{ENV_PREFIX}SECRET_KEY"]

    return config


def get_default_config_yaml() -> str:
    """Get the default config.yaml content as a string.

    Useful for generating example configuration files.
    """
    return """\
# FranceConnect relying-party configuration
# Environment variables override these settings (prefix: FRANCECONNECT_)

provider:
  # Credentials issued by the identity provider
  client_id: ""
  client_secret: ""

  # Provider base URL; endpoints are {base_url}authorize, token, userinfo, logout
  base_url: "https://fcp.integ01.dev-franceconnect.fr/api/v1/"

  # Requested scopes, in order
  scopes:
    - openid
    - profile
    - email

  # Absolute URL, or "route:<endpoint>" to resolve a Flask endpoint
  callback_url: "route:oidc.callback"
  logout_url: "route:main.index"

  # Optional outbound HTTP proxy
  # proxy_host: "proxy.example.org"
  # proxy_port: 3128

  # HTTP timeout in seconds
  timeout: 30

  # Security provider keys that also receive the serialized identity
  provider_keys: []

server:
  host: "127.0.0.1"
  port: 8000
  debug: false
"""
