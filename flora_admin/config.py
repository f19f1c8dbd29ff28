"""Configuration management for flora-admin using YAML files."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger()

CONFIG_DIR_NAME = ".flora-admin"
DEFAULT_API_BASE = "https://api.floradistro.com"

# Config key -> environment variable that overrides it
ENV_OVERRIDES = {
    "flora.api_base": "FLORA_API_BASE",
    "flora.consumer_key": "WP_CONSUMER_KEY",
    "flora.consumer_secret": "WP_CONSUMER_SECRET",
    "flora.username": "FLORA_USERNAME",
    "flora.app_password": "FLORA_APP_PASSWORD",
}


class Config:
    """Configuration manager using YAML file storage.

    Supports both local (working directory) and global (user-level) configuration.
    Local config is stored in .flora-admin/config.yaml in the current directory.
    Global config is stored in ~/.flora-admin/config.yaml.

    When reading, values are looked up in local config first, then global config.
    """

    def __init__(self, use_global: bool = False, config_dir: Path | None = None) -> None:
        """Initialize configuration manager.

        Args:
            use_global: If True, use global config only. If False, use local config with global fallback.
            config_dir: Custom directory to store config file (overrides use_global)
        """
        if config_dir is not None:
            self.config_dir = Path(config_dir)
            self.is_global = use_global
        elif use_global:
            self.config_dir = Path.home() / CONFIG_DIR_NAME
            self.is_global = True
        else:
            self.config_dir = Path.cwd() / CONFIG_DIR_NAME
            self.is_global = False

        self.config_file = self.config_dir / "config.yaml"
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self._config: dict[str, Any] = self._load()

        # For local config, also load global config as fallback
        self._global_config: dict[str, Any] = {}
        if not self.is_global:
            global_config_file = Path.home() / CONFIG_DIR_NAME / "config.yaml"
            if global_config_file.exists() and global_config_file != self.config_file:
                try:
                    with open(global_config_file, "r") as f:
                        self._global_config = yaml.safe_load(f) or {}
                except (OSError, yaml.YAMLError) as e:
                    logger.warning("Failed to load global config", error=str(e))

        logger.debug("Config initialized", config_file=str(self.config_file), is_global=self.is_global)

    def _load(self) -> dict[str, Any]:
        """Load configuration from YAML file.

        Returns:
            Configuration dictionary
        """
        if not self.config_file.exists():
            logger.debug("Config file does not exist, initializing empty config")
            return {}

        try:
            with open(self.config_file, "r") as f:
                config = yaml.safe_load(f) or {}
                logger.debug("Config loaded successfully", keys=list(config.keys()))
                return config
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to load config", error=str(e))
            raise ValueError(f"Failed to load config from {self.config_file}: {e}") from e

    def _save(self) -> None:
        try:
            with open(self.config_file, "w") as f:
                yaml.safe_dump(self._config, f, default_flow_style=False, sort_keys=False)
            logger.debug("Config saved successfully")
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to save config", error=str(e))
            raise ValueError(f"Failed to save config to {self.config_file}: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value, local first, then global."""
        if key in self._config:
            logger.debug("Getting config value from local", key=key)
            return self._config[key]

        if not self.is_global and key in self._global_config:
            logger.debug("Getting config value from global", key=key)
            return self._global_config[key]

        logger.debug("Config value not found", key=key)
        return default

    def set(self, key: str, value: str) -> None:
        logger.debug("Setting config value", key=key)
        self._config[key] = value
        self._save()

    def unset(self, key: str) -> None:
        logger.debug("Unsetting config value", key=key)
        if key in self._config:
            del self._config[key]
            self._save()

    def list(self) -> dict[str, Any]:
        """List all configuration settings.

        For local config, merges global config with local config (local takes precedence).
        """
        if self.is_global:
            logger.debug("Listing global config values", count=len(self._config))
            return self._config.copy()

        merged = self._global_config.copy()
        merged.update(self._config)
        logger.debug("Listing merged config values", count=len(merged))
        return merged


def get_config(use_global: bool = False) -> Config:
    """Get a configuration instance.

    Args:
        use_global: If True, return global config. If False, return local config with global fallback.

    Returns:
        Config instance
    """
    return Config(use_global=use_global)


@dataclass(frozen=True)
class FloraSettings:
    """Everything the remote resource client and the views are constructed with."""

    api_base: str = DEFAULT_API_BASE
    consumer_key: str | None = None
    consumer_secret: str | None = None
    username: str | None = None
    app_password: str | None = None
    timeout: float = 30.0
    max_attempts: int = 3
    base_delay: float = 1.0
    success_seconds: float = 2.0
    warning_seconds: float = 3.0
    error_seconds: float = 6.0


def _lookup(config: Config, key: str, environ: dict[str, str]) -> Any:
    env_name = ENV_OVERRIDES.get(key)
    if env_name and environ.get(env_name):
        return environ[env_name]
    return config.get(key)


def _as_number(key: str, value: Any, kind: type, default: Any) -> Any:
    if value is None or value == "":
        return default
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Config value {key}={value!r} is not a valid {kind.__name__}") from e


def load_settings(config: Config | None = None, environ: dict[str, str] | None = None) -> FloraSettings:
    """Build FloraSettings from YAML config with environment overrides.

    Credentials are never embedded in source; they come from config files or
    from ``FLORA_API_BASE``, ``WP_CONSUMER_KEY``, ``WP_CONSUMER_SECRET``,
    ``FLORA_USERNAME`` and ``FLORA_APP_PASSWORD``.
    """
    config = config or get_config()
    environ = dict(os.environ) if environ is None else environ

    settings = FloraSettings(
        api_base=_lookup(config, "flora.api_base", environ) or DEFAULT_API_BASE,
        consumer_key=_lookup(config, "flora.consumer_key", environ),
        consumer_secret=_lookup(config, "flora.consumer_secret", environ),
        username=_lookup(config, "flora.username", environ),
        app_password=_lookup(config, "flora.app_password", environ),
        timeout=_as_number("flora.timeout", config.get("flora.timeout"), float, 30.0),
        max_attempts=_as_number("retry.max_attempts", config.get("retry.max_attempts"), int, 3),
        base_delay=_as_number("retry.base_delay", config.get("retry.base_delay"), float, 1.0),
        success_seconds=_as_number("notify.success_seconds", config.get("notify.success_seconds"), float, 2.0),
        warning_seconds=_as_number("notify.warning_seconds", config.get("notify.warning_seconds"), float, 3.0),
        error_seconds=_as_number("notify.error_seconds", config.get("notify.error_seconds"), float, 6.0),
    )
    logger.debug(
        "Settings loaded",
        api_base=settings.api_base,
        has_consumer_key=bool(settings.consumer_key),
        has_app_password=bool(settings.app_password),
    )
    return settings
