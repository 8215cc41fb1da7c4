"""
Playback device types.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class DeviceHandle:
    """
    The remote playback target as seen by the jukebox.

    The ID is only usable for commands once ``is_ready`` is set by a
    ready event.
    """

    device_id: Optional[str] = None
    is_ready: bool = False

    def mark_ready(self, device_id: str) -> None:
        """Record a ready event (may repeat, e.g. after a reconnect)."""
        self.device_id = device_id
        self.is_ready = True

    def mark_not_ready(self) -> None:
        """Record that the device went offline. The last ID is kept."""
        self.is_ready = False


@dataclass
class DeviceState:
    """
    Playback state reported by a device.

    Only ``paused`` drives the session; the other fields are informational.
    """

    paused: bool
    track_uri: str = ""
    position_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "paused": self.paused,
            "track_uri": self.track_uri,
            "position_ms": self.position_ms,
        }


@dataclass
class DeviceInfo:
    """Information about a playback device, for logging and display."""

    device_type: str  # 'connect', 'librespot'
    name: str
    device_id: str = ""

    def __str__(self) -> str:
        if self.device_id:
            return f"{self.name} ({self.device_type}) [{self.device_id[:8]}]"
        return f"{self.name} ({self.device_type})"
