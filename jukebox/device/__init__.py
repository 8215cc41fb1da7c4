"""
Playback device module.

Provides the device interface, the Connect and librespot devices, a factory,
and the binding that routes device events into the session controller.
"""

from .base import (
    DeviceCommandError,
    NotReadyCallback,
    PlaybackDevice,
    ReadyCallback,
    StateChangeCallback,
)
from .binding import DeviceBinding
from .connect import SpotifyConnectDevice
from .factory import DeviceFactory, DeviceNotFoundError, DeviceRegistry
from .librespot import LibrespotDevice
from .types import DeviceHandle, DeviceInfo, DeviceState

__all__ = [
    # Types
    "DeviceHandle",
    "DeviceInfo",
    "DeviceState",
    # Base class
    "PlaybackDevice",
    "DeviceCommandError",
    # Callback types
    "ReadyCallback",
    "NotReadyCallback",
    "StateChangeCallback",
    # Devices
    "SpotifyConnectDevice",
    "LibrespotDevice",
    # Factory
    "DeviceFactory",
    "DeviceNotFoundError",
    "DeviceRegistry",
    # Binding
    "DeviceBinding",
]
