"""
Abstract playback device interface.

Defines the contract that all playback devices must implement.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from .types import DeviceInfo, DeviceState

logger = logging.getLogger(__name__)

# Event callback types
ReadyCallback = Callable[[str], None]  # device_id
NotReadyCallback = Callable[[str], None]  # device_id
StateChangeCallback = Callable[[DeviceState], None]


class DeviceCommandError(Exception):
    """A playback command was rejected by, or could not reach, the device."""

    pass


class PlaybackDevice(ABC):
    """
    Abstract base class for remote playback devices.

    A device is connected once per session, announces readiness with its
    device ID (possibly several times, e.g. after a reconnect) and reports
    paused/playing changes. Commands raise ``DeviceCommandError`` on failure.
    """

    device_type = "unknown"

    def __init__(self, name: str = "PlaybackDevice"):
        """Initialize device."""
        self.name = name
        self._device_id: Optional[str] = None
        self._is_connected: bool = False

        # Event callbacks
        self._on_ready: Optional[ReadyCallback] = None
        self._on_not_ready: Optional[NotReadyCallback] = None
        self._on_state_change: Optional[StateChangeCallback] = None

    # =========================================================================
    # Playback Control - Required
    # =========================================================================

    @abstractmethod
    async def play(self, uris: list[str], device_id: str) -> None:
        """Start playback of the given track URIs on device_id."""
        pass

    @abstractmethod
    async def pause(self) -> None:
        """Pause current playback."""
        pass

    @abstractmethod
    async def resume(self) -> None:
        """Resume paused playback."""
        pass

    # =========================================================================
    # Lifecycle - Required
    # =========================================================================

    @abstractmethod
    async def connect(self) -> bool:
        """Start connecting to the device. Returns True if started."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Disconnect and clean up device resources."""
        pass

    def is_connected(self) -> bool:
        """Check if device is connected."""
        return self._is_connected

    # =========================================================================
    # Event Callbacks
    # =========================================================================

    def on_ready(self, callback: Optional[ReadyCallback]) -> None:
        """Register callback for device readiness."""
        self._on_ready = callback

    def on_not_ready(self, callback: Optional[NotReadyCallback]) -> None:
        """Register callback for the device going offline."""
        self._on_not_ready = callback

    def on_state_change(self, callback: Optional[StateChangeCallback]) -> None:
        """Register callback for paused/playing changes."""
        self._on_state_change = callback

    # =========================================================================
    # Event Notification Helpers
    # =========================================================================

    def _notify_ready(self, device_id: str) -> None:
        """Notify listeners that the device is ready."""
        self._device_id = device_id
        if self._on_ready:
            try:
                self._on_ready(device_id)
            except Exception as e:
                logger.error(f"Ready callback error: {e}")

    def _notify_not_ready(self, device_id: str) -> None:
        """Notify listeners that the device went offline."""
        if self._on_not_ready:
            try:
                self._on_not_ready(device_id)
            except Exception as e:
                logger.error(f"Not-ready callback error: {e}")

    def _notify_state_change(self, state: DeviceState) -> None:
        """Notify listeners of a playback state change."""
        if self._on_state_change:
            try:
                self._on_state_change(state)
            except Exception as e:
                logger.error(f"State change callback error: {e}")

    # =========================================================================
    # Info
    # =========================================================================

    def get_info(self) -> DeviceInfo:
        """Get information about this device."""
        return DeviceInfo(
            device_type=self.device_type,
            name=self.name,
            device_id=self._device_id or "",
        )
