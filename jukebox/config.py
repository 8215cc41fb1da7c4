"""
Jukebox Configuration System.

Priority order (highest to lowest):
1. Command-line arguments
2. Environment variables
3. Configuration file (YAML)
4. Default values
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)


# Playback device types
VALID_DEVICE_TYPES = {"connect", "librespot"}

# Valid log levels
VALID_LOG_LEVELS = {"debug", "info", "warning", "error"}

DEFAULT_SCOPES = [
    "user-read-playback-state",
    "user-modify-playback-state",
    "streaming",
    "user-read-email",
    "user-read-private",
]

# Environment variable mappings
ENV_MAPPINGS = {
    # Spotify
    "SPOTIFY_CLIENT_ID": ("spotify", "client_id"),
    "SPOTIFY_REDIRECT_URI": ("spotify", "redirect_uri"),
    "SPOTIFY_ACCESS_TOKEN": ("spotify", "access_token"),
    "JUKEBOX_TOKEN_FILE": ("spotify", "token_file"),
    # Device
    "JUKEBOX_DEVICE_TYPE": ("device", "type"),
    "JUKEBOX_DEVICE_NAME": ("device", "name"),
    "JUKEBOX_LIBRESPOT_URL": ("device", "librespot_url"),
    # Server
    "JUKEBOX_HTTP_PORT": ("server", "http_port"),
    # Logging
    "JUKEBOX_LOG_LEVEL": ("logging", "level"),
}


class ConfigError(Exception):
    """Configuration error."""

    pass


@dataclass
class SpotifyConfig:
    """Spotify application and catalog configuration."""

    client_id: str = ""
    redirect_uri: str = "http://localhost:8700/callback"
    scopes: list[str] = field(default_factory=lambda: list(DEFAULT_SCOPES))
    access_token: str = ""  # Pre-seeded bearer token (skips the login redirect)
    token_file: str = "~/.config/jukebox/token.json"
    search_query: str = "indie rock essentials"
    fallback_playlist_id: str = "37i9dQZF1DX2sUQwD7tbmL"
    market: str = ""


@dataclass
class DeviceConfig:
    """Playback device configuration."""

    type: str = "connect"
    name: str = "Indie Rock Jukebox"
    librespot_url: str = "http://localhost:3678"
    poll_interval: float = 1.0  # seconds, Spotify Connect device only


@dataclass
class ServerConfig:
    """HTTP server configuration."""

    http_port: int = 8700
    bind_address: str = "127.0.0.1"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class Config:
    """Complete jukebox configuration."""

    spotify: SpotifyConfig = field(default_factory=SpotifyConfig)
    device: DeviceConfig = field(default_factory=DeviceConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def validate_port(port: int) -> bool:
    """Validate port number."""
    return 1 <= port <= 65535


def validate_config(config: Config) -> None:
    """
    Validate configuration.

    Raises:
        ConfigError: If configuration is invalid
    """
    errors = []

    # Spotify application
    if not config.spotify.client_id and not config.spotify.access_token:
        errors.append("Spotify client_id is required (or provide an access_token)")

    if not config.spotify.search_query.strip():
        errors.append("Search query must not be empty")

    if not config.spotify.fallback_playlist_id:
        errors.append("Fallback playlist id is required")

    # Device
    if config.device.type not in VALID_DEVICE_TYPES:
        errors.append(
            f"Invalid device type: {config.device.type}. "
            f"Valid values: {sorted(VALID_DEVICE_TYPES)}"
        )
    elif config.device.type == "librespot" and not config.device.librespot_url:
        errors.append("librespot_url is required when device type is 'librespot'")
    elif config.device.type == "connect" and not config.device.name:
        errors.append("Device name is required when device type is 'connect'")

    if config.device.poll_interval <= 0:
        errors.append(f"Invalid poll interval: {config.device.poll_interval}")

    # Server port
    if not validate_port(config.server.http_port):
        errors.append(f"Invalid HTTP port: {config.server.http_port}")

    # Logging
    if config.logging.level.lower() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid log level: {config.logging.level}. "
            f"Valid values: {sorted(VALID_LOG_LEVELS)}"
        )

    if errors:
        raise ConfigError("Configuration validation failed:\n  - " + "\n  - ".join(errors))


def load_yaml_config(path: Path) -> dict:
    """
    Load configuration from YAML file.

    Args:
        path: Path to YAML file

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If file cannot be read or parsed
    """
    if not path.exists():
        logger.debug(f"Config file not found: {path}")
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
            return data if data else {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML config: {e}")
    except IOError as e:
        raise ConfigError(f"Error reading config file: {e}")


def _set_nested(d: dict, path: tuple, value: Any) -> None:
    """Set a nested dictionary value using a path tuple."""
    for key in path[:-1]:
        d = d.setdefault(key, {})
    d[path[-1]] = value


def load_env_config() -> dict:
    """
    Load configuration from environment variables.

    Returns:
        Configuration dictionary with values from environment
    """
    result: dict = {}

    for env_var, path in ENV_MAPPINGS.items():
        value: Any = os.environ.get(env_var)
        if value is not None:
            if env_var == "JUKEBOX_HTTP_PORT":
                try:
                    value = int(value)
                except ValueError:
                    logger.warning(f"Invalid integer for {env_var}: {value}")
                    continue

            _set_nested(result, path, value)

    return result


def _deep_merge(base: dict, override: dict) -> None:
    """Recursively merge override into base."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def merge_configs(*configs: dict) -> dict:
    """
    Deep merge multiple configuration dictionaries.
    Later configs override earlier ones.
    """
    result: dict = {}
    for config in configs:
        _deep_merge(result, config)
    return result


def dict_to_config(d: dict) -> Config:
    """Convert a dictionary to Config dataclass."""
    config = Config()

    # Spotify
    if "spotify" in d:
        s = d["spotify"]
        config.spotify.client_id = s.get("client_id", config.spotify.client_id)
        config.spotify.redirect_uri = s.get("redirect_uri", config.spotify.redirect_uri)
        scopes = s.get("scopes", config.spotify.scopes)
        # Accept "a b c" as well as a YAML list
        if isinstance(scopes, str):
            scopes = scopes.split()
        config.spotify.scopes = list(scopes)
        config.spotify.access_token = s.get("access_token", config.spotify.access_token)
        config.spotify.token_file = s.get("token_file", config.spotify.token_file)
        config.spotify.search_query = s.get("search_query", config.spotify.search_query)
        config.spotify.fallback_playlist_id = s.get(
            "fallback_playlist_id", config.spotify.fallback_playlist_id
        )
        config.spotify.market = s.get("market", config.spotify.market)

    # Device
    if "device" in d:
        dev = d["device"]
        config.device.type = dev.get("type", config.device.type)
        config.device.name = dev.get("name", config.device.name)
        config.device.librespot_url = dev.get("librespot_url", config.device.librespot_url)
        config.device.poll_interval = float(
            dev.get("poll_interval", config.device.poll_interval)
        )

    # Server
    if "server" in d:
        srv = d["server"]
        config.server.http_port = srv.get("http_port", config.server.http_port)
        config.server.bind_address = srv.get("bind_address", config.server.bind_address)

    # Logging
    if "logging" in d:
        config.logging.level = d["logging"].get("level", config.logging.level)

    return config


def load_config(
    config_path: Optional[Path] = None,
    cli_args: Optional[dict] = None,
) -> Config:
    """
    Load configuration from all sources.

    Priority (highest to lowest):
    1. CLI arguments
    2. Environment variables
    3. Config file
    4. Defaults

    Args:
        config_path: Path to YAML config file
        cli_args: Dictionary of CLI arguments

    Returns:
        Merged Config object

    Raises:
        ConfigError: If configuration is invalid
    """
    configs = []

    # 1. Load from file (lowest priority of explicit configs)
    if config_path:
        file_config = load_yaml_config(config_path)
        if file_config:
            configs.append(file_config)
            logger.debug(f"Loaded config from {config_path}")

    # 2. Load from environment
    env_config = load_env_config()
    if env_config:
        configs.append(env_config)
        logger.debug("Loaded config from environment variables")

    # 3. Load from CLI (highest priority)
    if cli_args:
        configs.append(cli_args)
        logger.debug("Loaded config from CLI arguments")

    merged = merge_configs(*configs) if configs else {}

    # Convert to Config object (fills in defaults)
    config = dict_to_config(merged)

    validate_config(config)

    return config
