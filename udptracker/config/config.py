"""Configuration management for the UDP tracker client.

Loads configuration hierarchically from defaults → TOML file → environment,
validated through the pydantic models in :mod:`udptracker.models`.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import toml

from udptracker.models import Config, NetworkConfig
from udptracker.utils.exceptions import ConfigurationError
from udptracker.utils.logging_config import setup_logging

# Global configuration instance
_config_manager: ConfigManager | None = None

ENV_MAPPINGS: dict[str, str] = {
    # Network
    "UDPTRACKER_BASE_TIMEOUT": "network.tracker_base_timeout",
    "UDPTRACKER_MAX_BACKOFF_EXPONENT": "network.tracker_max_backoff_exponent",
    "UDPTRACKER_CONNECTION_ID_TTL": "network.connection_id_ttl",
    "UDPTRACKER_MAX_DATAGRAM_SIZE": "network.max_datagram_size",
    "UDPTRACKER_AUTO_CONNECT": "network.tracker_auto_connect",
    "UDPTRACKER_SEND_URL_DATA": "network.tracker_send_url_data",
    "UDPTRACKER_BIND_ADDRESS": "network.bind_address",
    # Observability
    "UDPTRACKER_LOG_LEVEL": "observability.log_level",
    "UDPTRACKER_LOG_FILE": "observability.log_file",
    "UDPTRACKER_STRUCTURED_LOGGING": "observability.structured_logging",
}


def _parse_env_value(raw: str) -> bool | int | float | str:
    low = raw.lower()
    if low in {"true", "yes", "on"}:
        return True
    if low in {"false", "no", "off"}:
        return False
    try:
        if "." in raw:
            return float(raw)
        return int(raw)
    except ValueError:
        return raw


def _set_nested(d: dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    cur = d
    for p in parts[:-1]:
        cur = cur.setdefault(p, {})
    cur[parts[-1]] = value


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_file: str | Path | None = None, setup_logs: bool = True):
        """Initialize configuration manager.

        Args:
            config_file: Path to TOML config file. If None, searches for udptracker.toml
            setup_logs: Configure logging from the loaded observability section

        """
        self.config_file = self._find_config_file(config_file)
        self.config = self._load_config()
        if setup_logs:
            self._setup_logging()

    def _find_config_file(self, config_file: str | Path | None) -> Path | None:
        """Find configuration file in standard locations."""
        if config_file:
            return Path(config_file)

        search_paths = [
            Path.cwd() / "udptracker.toml",
            Path.home() / ".config" / "udptracker" / "udptracker.toml",
            Path.home() / ".udptracker.toml",
        ]

        for path in search_paths:
            if path.exists():
                return path

        return None

    def _load_config(self) -> Config:
        """Load configuration from file and environment."""
        config_data: dict[str, Any] = {}

        if self.config_file and self.config_file.exists():
            try:
                with open(self.config_file, encoding="utf-8") as f:
                    config_data.update(toml.load(f))
            except (OSError, toml.TomlDecodeError) as e:
                msg = f"Failed to load config file {self.config_file}: {e}"
                raise ConfigurationError(msg) from e

        config_data = self._merge_config(config_data, self._get_env_config())

        try:
            return Config(**config_data)
        except ValueError as e:
            msg = f"Invalid configuration: {e}"
            raise ConfigurationError(msg) from e

    def _get_env_config(self) -> dict[str, Any]:
        """Get configuration from environment variables."""
        env_config: dict[str, Any] = {}
        for env_name, cfg_path in ENV_MAPPINGS.items():
            raw = os.getenv(env_name)
            if raw is None:
                continue
            _set_nested(env_config, cfg_path, _parse_env_value(raw))
        return env_config

    def _merge_config(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Merge configuration dictionaries recursively."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value

        return result

    def export(self) -> str:
        """Export current configuration as TOML."""
        return toml.dumps(self.config.model_dump(mode="json", exclude_none=True))

    def _setup_logging(self) -> None:
        """Set up logging configuration."""
        setup_logging(self.config.observability)


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager.config


def init_config(config_file: str | Path | None = None) -> ConfigManager:
    """Initialize the global configuration manager."""
    global _config_manager
    _config_manager = ConfigManager(config_file)
    return _config_manager


def reload_config() -> Config:
    """Reload configuration from file."""
    if _config_manager is None:
        msg = "Configuration not initialized"
        raise ConfigurationError(msg)

    _config_manager.config = _config_manager._load_config()
    _config_manager._setup_logging()
    return _config_manager.config


def set_config(new_config: Config) -> None:
    """Replace the global configuration at runtime.

    Clients snapshot configuration when constructed; create new clients to
    pick up changes.
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager(None, setup_logs=False)
    _config_manager.config = new_config
    _config_manager._setup_logging()


def reset_config() -> None:
    """Forget the global configuration so the next lookup reloads it."""
    global _config_manager
    _config_manager = None
    logging.getLogger(__name__).debug("Global configuration reset")


def get_network_config() -> NetworkConfig:
    """Get network configuration."""
    return get_config().network

