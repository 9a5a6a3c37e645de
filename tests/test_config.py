"""Tests for configuration loading."""

from pathlib import Path

import pytest

from franceconnect.core.config import (
    AppConfig,
    ProviderSettings,
    get_default_config_yaml,
    load_config,
)
from franceconnect.core.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove FRANCECONNECT_* variables set in the outer environment."""
    import os

    for key in list(os.environ):
        if key.startswith("FRANCECONNECT_"):
            monkeypatch.delenv(key)


class TestProviderSettings:
    """Tests for ProviderSettings."""

    def test_endpoints_from_base_url(self) -> None:
        settings = ProviderSettings(base_url="https://fc.example.test/api/v1")
        assert settings.base_url == "https://fc.example.test/api/v1/"
        assert settings.authorization_endpoint == "https://fc.example.test/api/v1/authorize"
        assert settings.token_endpoint == "https://fc.example.test/api/v1/token"
        assert settings.userinfo_endpoint == "https://fc.example.test/api/v1/userinfo?schema=openid"
        assert settings.logout_endpoint == "https://fc.example.test/api/v1/logout"

    def test_validate_missing_fields(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            ProviderSettings(client_id="id").validate()
        assert "client_secret" in str(exc_info.value)

    def test_validate_proxy_port_without_host(self, settings: ProviderSettings) -> None:
        settings.proxy_port = 3128
        with pytest.raises(ConfigurationError):
            settings.validate()

    def test_validate_complete(self, settings: ProviderSettings) -> None:
        settings.validate()

    def test_from_dict_accepts_space_separated_scopes(self) -> None:
        settings = ProviderSettings.from_dict({"scopes": "openid birthdate"})
        assert settings.scopes == ["openid", "birthdate"]

    def test_to_dict_masks_secret(self, settings: ProviderSettings) -> None:
        assert settings.to_dict(mask_secret=True)["client_secret"] == "********"
        assert settings.to_dict()["client_secret"] == settings.client_secret


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_when_file_missing(self, tmp_path: Path) -> None:
        config = load_config(tmp_path / "missing.yaml")
        assert config.provider.scopes == ["openid", "profile", "email"]
        assert config.server.port == 8000

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "provider:\n"
            "  client_id: abc\n"
            "  client_secret: xyz\n"
            "  base_url: https://fc.example.test/api/v1/\n"
            "  scopes: [openid, email]\n"
            "  proxy_host: proxy.local\n"
            "  proxy_port: 3128\n"
            "server:\n"
            "  port: 9000\n"
        )
        config = load_config(path)

        assert config.provider.client_id == "abc"
        assert config.provider.scopes == ["openid", "email"]
        assert config.provider.proxy_port == 3128
        assert config.server.port == 9000
        assert config.config_path == path

    def test_env_overrides(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FRANCECONNECT_CLIENT_ID", "from-env")
        monkeypatch.setenv("FRANCECONNECT_BASE_URL", "https://env.example.test")
        monkeypatch.setenv("FRANCECONNECT_SCOPES", "openid family_name")
        monkeypatch.setenv("FRANCECONNECT_PROXY_PORT", "8080")
        monkeypatch.setenv("FRANCECONNECT_DEBUG", "true")

        config = load_config(tmp_path / "missing.yaml")

        assert config.provider.client_id == "from-env"
        assert config.provider.base_url == "https://env.example.test/"
        assert config.provider.scopes == ["openid", "family_name"]
        assert config.provider.proxy_port == 8080
        assert config.server.debug is True

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("provider: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_default_yaml_is_loadable(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(get_default_config_yaml())
        config = load_config(path)

        assert isinstance(config, AppConfig)
        assert config.provider.callback_url == "route:oidc.callback"
        assert config.provider.base_url.endswith("/")
