"""Tests for YAML configuration and settings loading."""

from pathlib import Path

import pytest
import yaml

from flora_admin.config import DEFAULT_API_BASE, Config, load_settings


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the global config at a temporary home directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


def test_set_get_unset(tmp_path: Path) -> None:
    """Test values round trip through the YAML file."""
    config = Config(config_dir=tmp_path / "local")
    config.set("flora.api_base", "https://shop.example.com")

    assert config.get("flora.api_base") == "https://shop.example.com"
    with open(config.config_file) as f:
        assert yaml.safe_load(f) == {"flora.api_base": "https://shop.example.com"}

    config.unset("flora.api_base")
    assert config.get("flora.api_base") is None
    assert config.get("flora.api_base", "fallback") == "fallback"


def test_local_falls_back_to_global(isolated_home: Path, tmp_path: Path) -> None:
    """Test local config reads global values it does not override."""
    global_config = Config(use_global=True)
    global_config.set("flora.username", "admin")
    global_config.set("flora.api_base", "https://global.example.com")

    local = Config(config_dir=tmp_path / "local")
    local.set("flora.api_base", "https://local.example.com")

    assert local.get("flora.username") == "admin"
    assert local.get("flora.api_base") == "https://local.example.com"
    assert local.list() == {"flora.username": "admin", "flora.api_base": "https://local.example.com"}
    assert global_config.list() == {"flora.username": "admin", "flora.api_base": "https://global.example.com"}


def test_invalid_yaml_raises(tmp_path: Path) -> None:
    """Test a broken config file is reported as ValueError."""
    config_dir = tmp_path / "broken"
    config_dir.mkdir()
    (config_dir / "config.yaml").write_text("flora: [unclosed")

    with pytest.raises(ValueError, match="Failed to load config"):
        Config(config_dir=config_dir)


def test_settings_defaults(tmp_path: Path) -> None:
    """Test defaults when nothing is configured."""
    settings = load_settings(Config(config_dir=tmp_path / "empty"), environ={})

    assert settings.api_base == DEFAULT_API_BASE
    assert settings.consumer_key is None
    assert settings.max_attempts == 3
    assert settings.base_delay == 1.0
    assert settings.success_seconds == 2.0
    assert settings.error_seconds == 6.0


def test_settings_from_config_values(tmp_path: Path) -> None:
    """Test string values from `config set` are converted."""
    config = Config(config_dir=tmp_path / "local")
    config.set("retry.max_attempts", "5")
    config.set("retry.base_delay", "0.5")
    config.set("flora.consumer_key", "ck_from_file")

    settings = load_settings(config, environ={})

    assert settings.max_attempts == 5
    assert settings.base_delay == 0.5
    assert settings.consumer_key == "ck_from_file"


def test_environment_overrides_credentials(tmp_path: Path) -> None:
    """Test credentials injected through the environment win over files."""
    config = Config(config_dir=tmp_path / "local")
    config.set("flora.consumer_key", "ck_from_file")

    settings = load_settings(
        config,
        environ={
            "WP_CONSUMER_KEY": "ck_env",
            "WP_CONSUMER_SECRET": "cs_env",
            "FLORA_API_BASE": "https://staging.example.com",
            "FLORA_USERNAME": "Master",
            "FLORA_APP_PASSWORD": "abcd efgh",
        },
    )

    assert settings.consumer_key == "ck_env"
    assert settings.consumer_secret == "cs_env"
    assert settings.api_base == "https://staging.example.com"
    assert settings.username == "Master"
    assert settings.app_password == "abcd efgh"


def test_invalid_number_rejected(tmp_path: Path) -> None:
    """Test a non-numeric retry setting is a configuration error."""
    config = Config(config_dir=tmp_path / "local")
    config.set("retry.max_attempts", "many")

    with pytest.raises(ValueError, match="retry.max_attempts"):
        load_settings(config, environ={})
