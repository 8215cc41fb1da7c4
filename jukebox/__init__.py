"""
Indie Jukebox - Headless Spotify jukebox.

Builds a shuffled indie rock queue from the Spotify catalog and plays it on a
Spotify Connect or go-librespot device.
"""

__version__ = "0.1.0"

from jukebox.app import Jukebox
from jukebox.config import Config, ConfigError, load_config

__all__ = [
    "Jukebox",
    "Config",
    "ConfigError",
    "load_config",
    "__version__",
]
