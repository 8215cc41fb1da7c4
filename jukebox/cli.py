"""
Jukebox CLI entry point.

Provides command-line interface for running the jukebox.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

from jukebox import __version__
from jukebox.app import Jukebox
from jukebox.auth import AuthenticationError, TokenStore
from jukebox.config import VALID_DEVICE_TYPES, Config, ConfigError, load_config
from jukebox.device import DeviceNotFoundError

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_AUTH_ERROR = 2
EXIT_NETWORK_ERROR = 3


def setup_logging(level: str = "info") -> None:
    """Configure logging to stdout."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="jukebox",
        description="Headless Spotify indie rock jukebox",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  jukebox --config config.yaml
  jukebox --client-id abc123 --device-name "Living Room"
  jukebox --device-type librespot --librespot-url http://localhost:3678
  jukebox --login-url

Environment Variables:
  SPOTIFY_CLIENT_ID, SPOTIFY_REDIRECT_URI, SPOTIFY_ACCESS_TOKEN
  JUKEBOX_TOKEN_FILE, JUKEBOX_DEVICE_TYPE, JUKEBOX_DEVICE_NAME
  JUKEBOX_LIBRESPOT_URL, JUKEBOX_HTTP_PORT, JUKEBOX_LOG_LEVEL
""",
    )

    # General
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    # Configuration
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("./config.yaml"),
        metavar="PATH",
        help="Path to config file (default: ./config.yaml)",
    )

    # Authentication
    auth_group = parser.add_argument_group("Authentication")
    auth_group.add_argument(
        "--client-id",
        metavar="TEXT",
        help="Spotify application client ID",
    )
    auth_group.add_argument(
        "--access-token",
        metavar="TEXT",
        help="Use this bearer token instead of logging in",
    )
    auth_group.add_argument(
        "--login-url",
        action="store_true",
        help="Print the Spotify login URL and exit",
    )
    auth_group.add_argument(
        "--logout",
        action="store_true",
        help="Forget the stored token and exit",
    )

    # Device
    device_group = parser.add_argument_group("Device")
    device_group.add_argument(
        "--device-type",
        choices=sorted(VALID_DEVICE_TYPES),
        metavar="TYPE",
        help="Playback device: connect or librespot",
    )
    device_group.add_argument(
        "--device-name",
        metavar="TEXT",
        help="Spotify Connect device name to play on",
    )
    device_group.add_argument(
        "--librespot-url",
        metavar="URL",
        help="go-librespot API URL (default: http://localhost:3678)",
    )

    # Server
    server_group = parser.add_argument_group("Server")
    server_group.add_argument(
        "--http-port",
        type=int,
        metavar="INT",
        help="HTTP server port (default: 8700)",
    )
    server_group.add_argument(
        "--bind",
        metavar="TEXT",
        help="Bind address (default: 127.0.0.1)",
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        metavar="LEVEL",
        help="Log level: debug, info, warning, error",
    )

    return parser


def parse_args(argv: Any = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)


def _set_nested(d: dict, path: tuple, value: Any) -> None:
    """Set a nested dictionary value."""
    for key in path[:-1]:
        d = d.setdefault(key, {})
    d[path[-1]] = value


def args_to_dict(args: argparse.Namespace) -> dict:
    """Convert argparse namespace to nested config dict."""
    result: dict = {}

    # Map CLI args to config paths
    mappings = {
        "client_id": ("spotify", "client_id"),
        "access_token": ("spotify", "access_token"),
        "device_type": ("device", "type"),
        "device_name": ("device", "name"),
        "librespot_url": ("device", "librespot_url"),
        "http_port": ("server", "http_port"),
        "bind": ("server", "bind_address"),
        "log_level": ("logging", "level"),
    }

    for arg_name, path in mappings.items():
        value = getattr(args, arg_name, None)
        if value is None:
            continue
        _set_nested(result, path, value)

    return result


def log_config(config: Config) -> None:
    """Log configuration summary (without sensitive data)."""
    logger.info(f"Device: {config.device.name} ({config.device.type})")
    if config.device.type == "librespot":
        logger.info(f"librespot API: {config.device.librespot_url}")
    logger.info(f"HTTP server: {config.server.bind_address}:{config.server.http_port}")
    logger.info(f"Search: '{config.spotify.search_query}'")
    if config.spotify.access_token:
        logger.info("Using configured access token")


def run_login_url(config: Config) -> int:
    """Print the authorize URL."""
    app = Jukebox(config)
    try:
        print(app.login_url())
    except AuthenticationError as e:
        logger.error(f"Authentication failed: {e}")
        return EXIT_AUTH_ERROR
    return EXIT_SUCCESS


def run_logout(config: Config) -> int:
    """Forget the stored token."""
    TokenStore(Path(config.spotify.token_file)).clear()
    return EXIT_SUCCESS


def run_serve(args: argparse.Namespace) -> int:
    """
    Run the jukebox.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    # Setup basic logging first (will be reconfigured after config load)
    setup_logging("info")

    logger.info(f"Jukebox v{__version__}")

    try:
        # Load configuration
        cli_config = args_to_dict(args)
        config = load_config(args.config, cli_config)

        # Reconfigure logging with loaded level
        setup_logging(config.logging.level)

    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    if args.login_url:
        return run_login_url(config)
    if args.logout:
        return run_logout(config)

    log_config(config)

    # Run the application
    try:
        app = Jukebox(config)
        asyncio.run(app.run())
        return EXIT_SUCCESS

    except AuthenticationError as e:
        logger.error(f"Authentication failed: {e}")
        return EXIT_AUTH_ERROR

    except DeviceNotFoundError as e:
        logger.error(f"Device error: {e}")
        return EXIT_CONFIG_ERROR

    except (ConnectionError, OSError) as e:
        logger.error(f"Network error: {e}")
        return EXIT_NETWORK_ERROR

    except KeyboardInterrupt:
        logger.info("Interrupted")
        return EXIT_SUCCESS

    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return EXIT_NETWORK_ERROR


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code: 0=success, 1=config error, 2=auth error, 3=network error
    """
    return run_serve(parse_args())


if __name__ == "__main__":
    sys.exit(main())
