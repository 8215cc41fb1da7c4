"""
Device factory and registry.

Provides factory methods to instantiate playback devices by type name.
"""

import logging
from typing import TYPE_CHECKING, Optional

from jukebox.config import Config

from .base import PlaybackDevice
from .connect import SpotifyConnectDevice
from .librespot import LibrespotDevice

if TYPE_CHECKING:
    from jukebox.spotify.client import SpotifyAPIClient

logger = logging.getLogger(__name__)


class DeviceNotFoundError(Exception):
    """Raised when requested device type is not available."""

    pass


class DeviceRegistry:
    """
    Registry of available device types.

    Factory uses this to check requested types.
    """

    _devices: dict[str, type[PlaybackDevice]] = {}

    @classmethod
    def register(cls, type_name: str, device_class: type[PlaybackDevice]) -> None:
        """Register a device class."""
        cls._devices[type_name] = device_class
        logger.debug(f"Registered device type: {type_name}")

    @classmethod
    def get(cls, type_name: str) -> Optional[type[PlaybackDevice]]:
        """Get device class by type name."""
        return cls._devices.get(type_name)

    @classmethod
    def available_types(cls) -> list[str]:
        """Get list of registered device type names."""
        return list(cls._devices.keys())


class DeviceFactory:
    """
    Factory for creating playback device instances.

    Usage:
        device = DeviceFactory.create_from_config(config, api_client)
    """

    @classmethod
    def create_from_config(cls, config: Config, api_client: "SpotifyAPIClient") -> PlaybackDevice:
        """Create a device based on configuration (not yet connected)."""
        device_type = config.device.type

        if not DeviceRegistry.get(device_type):
            available = DeviceRegistry.available_types()
            raise DeviceNotFoundError(
                f"Device type '{device_type}' not available. " f"Available types: {available}"
            )

        if device_type == "librespot":
            return LibrespotDevice(
                base_url=config.device.librespot_url,
                name=config.device.name,
            )
        return SpotifyConnectDevice(
            api_client=api_client,
            name=config.device.name,
            poll_interval=config.device.poll_interval,
        )


# Register devices
DeviceRegistry.register("connect", SpotifyConnectDevice)
DeviceRegistry.register("librespot", LibrespotDevice)
