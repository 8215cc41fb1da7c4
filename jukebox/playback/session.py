"""
Session state for the playback controller.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class SessionStatus(Enum):
    """
    Coarse session status for reporting.

    Loading and error are overlays on top of the last ready index, so this is
    derived from independent flags rather than stored.
    """

    NO_QUEUE = "no_queue"  # No fetch has completed yet
    LOADING = "loading"  # A fetch or transport command is in flight
    READY = "ready"  # Queue loaded, idle
    ERROR = "error"  # Last operation recorded an error


@dataclass
class Session:
    """
    Mutable playback state for the current queue.

    Attributes:
        current_index: Position in the queue (valid only while it is non-empty)
        is_playing: Last known playing state (optimistic or device-reported)
        is_loading: Transport guard; set while a command is in flight
        last_error: User-visible message of the last failure
        device_id: Device ID from the last ready event
        current_track: Track detail of the current item, for display
    """

    current_index: int = 0
    is_playing: bool = False
    is_loading: bool = False
    last_error: Optional[str] = None
    device_id: Optional[str] = None
    current_track: Optional[dict[str, Any]] = None


@dataclass
class PlaybackSnapshot:
    """
    Observable state read by the UI layer.

    ``current_track`` is the normalized display form of the current item.
    """

    current_track: Optional[dict[str, Any]]
    is_playing: bool
    is_loading: bool
    error: Optional[str]
    has_token: bool
    status: SessionStatus = SessionStatus.NO_QUEUE
    current_index: int = 0
    queue_length: int = 0
    device_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "current_track": self.current_track,
            "is_playing": self.is_playing,
            "is_loading": self.is_loading,
            "error": self.error,
            "has_token": self.has_token,
            "status": self.status.value,
            "current_index": self.current_index,
            "queue_length": self.queue_length,
            "device_id": self.device_id,
        }
