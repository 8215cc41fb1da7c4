"""Playback queue and session control."""

from .controller import (
    ERROR_LOAD_TRACK,
    ERROR_NEXT_TRACK,
    ERROR_PREVIOUS_TRACK,
    ERROR_TOGGLE,
    SessionController,
)
from .queue import MAX_QUEUE_SIZE, PlaybackQueue, build_queue
from .session import PlaybackSnapshot, Session, SessionStatus

__all__ = [
    "SessionController",
    "PlaybackQueue",
    "build_queue",
    "MAX_QUEUE_SIZE",
    "Session",
    "SessionStatus",
    "PlaybackSnapshot",
    # Error messages
    "ERROR_LOAD_TRACK",
    "ERROR_NEXT_TRACK",
    "ERROR_PREVIOUS_TRACK",
    "ERROR_TOGGLE",
]
