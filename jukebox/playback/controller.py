"""
Jukebox Session Controller.

Owns the current index, issues transport commands to the playback device and
reconciles device-reported state with local state.
"""

import logging
from typing import TYPE_CHECKING, Any, Optional

from jukebox.device.base import DeviceCommandError
from jukebox.models import CatalogItem

from .queue import PlaybackQueue
from .session import PlaybackSnapshot, Session, SessionStatus

if TYPE_CHECKING:
    from jukebox.catalog.fetcher import CatalogFetcher
    from jukebox.device.base import PlaybackDevice
    from jukebox.spotify.client import SpotifyAPIClient

logger = logging.getLogger(__name__)

# User-visible error messages
ERROR_LOAD_TRACK = "Failed to load track. Please try again."
ERROR_NEXT_TRACK = "Failed to skip track. Trying next one..."
ERROR_PREVIOUS_TRACK = "Failed to go to previous track. Trying again..."
ERROR_TOGGLE = "Failed to control playback."


class SessionController:
    """
    Playback queue and session-state controller.

    State machine:
        NO_QUEUE -> READY (first successful fetch)
        READY -> READY (next/previous, with LOADING / ERROR as overlays)
        any -> NO_QUEUE (reset, when the credential is cleared)

    ``is_loading`` is the transport guard: next/previous while a command is
    in flight, or before a device is ready, are no-ops. No operation raises;
    failures become ``last_error`` plus a bounded index adjustment (skip,
    never retry).
    """

    def __init__(self, api_client: "SpotifyAPIClient", device: "PlaybackDevice"):
        """
        Initialize controller.

        Args:
            api_client: Catalog client used for track detail
            device: Playback device receiving transport commands
        """
        self.api = api_client
        self.device = device
        self.session = Session()
        self._queue: Optional[PlaybackQueue] = None

    # =========================================================================
    # Queue
    # =========================================================================

    @property
    def queue(self) -> Optional[PlaybackQueue]:
        """The current queue, or None before the first successful fetch."""
        return self._queue

    @property
    def has_queue(self) -> bool:
        """Check if a non-empty queue is loaded."""
        return self._queue is not None and not self._queue.is_empty

    @property
    def current_item(self) -> Optional[CatalogItem]:
        """The item at the current index."""
        if self._queue is None:
            return None
        return self._queue.get(self.session.current_index)

    def set_queue(self, queue: PlaybackQueue) -> None:
        """Replace the queue wholesale and rewind to its first track."""
        self._queue = queue
        self.session.current_index = 0
        self.session.current_track = None
        logger.info(f"Queue replaced: {len(queue)} tracks")

    async def load_queue(self, fetcher: "CatalogFetcher") -> bool:
        """
        Run a fetch cycle and install the resulting queue.

        Also fetches the first track's detail for display.

        Returns:
            True if a queue is loaded afterwards
        """
        self.session.is_loading = True
        self.session.last_error = None
        try:
            result = await fetcher.fetch_queue()
            if not result.ok:
                self.session.last_error = str(result.error)
                return False

            assert result.queue is not None
            self.set_queue(result.queue)
            item = self.current_item
            if item is not None:
                self.session.current_track = await self.api.get_track(item.id)
            return True

        except Exception as e:
            logger.error(f"Error loading queue: {e}")
            self.session.last_error = f"Failed to load tracks: {e}"
            return self.has_queue

        finally:
            self.session.is_loading = False

    def reset(self) -> None:
        """Tear down to the initial state (credential cleared)."""
        self._queue = None
        self.session = Session()
        logger.info("Session reset")

    # =========================================================================
    # Transport Commands
    # =========================================================================

    async def load_current(self, device_id: Optional[str] = None) -> None:
        """
        Load and play the track at the current index.

        On failure, moves one track forward unless already on the last one.
        The same index is never retried automatically.
        """
        target = device_id or self.session.device_id
        queue = self._queue

        self.session.is_loading = True
        self.session.last_error = None
        try:
            item = self.current_item
            if item is None:
                raise LookupError("No track available")
            await self._play_item(item, target)

        except Exception as e:
            logger.error(f"Error loading track: {e}")
            self.session.last_error = ERROR_LOAD_TRACK
            if queue is not None and queue is self._queue:
                if self.session.current_index < queue.last_index:
                    self.session.current_index += 1

        finally:
            self.session.is_loading = False

    async def advance(self) -> None:
        """
        Skip to the next track (wrapping).

        A failed skip jumps one further, past the offending track, unless the
        skip started from the last track.
        """
        if self.session.is_loading or not self.has_queue or not self.session.device_id:
            return

        queue = self._queue
        assert queue is not None
        old_index = self.session.current_index

        self.session.is_loading = True
        self.session.last_error = None
        try:
            next_index = queue.next_index(old_index)
            self.session.current_index = next_index
            await self._play_item(queue[next_index], self.session.device_id)

        except Exception as e:
            logger.error(f"Error skipping track: {e}")
            self.session.last_error = ERROR_NEXT_TRACK
            if queue is self._queue and old_index < queue.last_index:
                self.session.current_index = queue.wrap(old_index + 2)

        finally:
            self.session.is_loading = False

    async def retreat(self) -> None:
        """
        Go back to the previous track (wrapping).

        A failed step back jumps two positions back from where it started
        (wrapping to the last track), or to the last track when it started
        from the first.
        """
        if self.session.is_loading or not self.has_queue or not self.session.device_id:
            return

        queue = self._queue
        assert queue is not None
        old_index = self.session.current_index

        self.session.is_loading = True
        self.session.last_error = None
        try:
            prev_index = queue.previous_index(old_index)
            self.session.current_index = prev_index
            await self._play_item(queue[prev_index], self.session.device_id)

        except Exception as e:
            logger.error(f"Error going to previous track: {e}")
            self.session.last_error = ERROR_PREVIOUS_TRACK
            if queue is self._queue:
                if old_index > 0 and old_index - 2 >= 0:
                    self.session.current_index = old_index - 2
                else:
                    self.session.current_index = queue.last_index

        finally:
            self.session.is_loading = False

    async def toggle_play_pause(self) -> None:
        """
        Pause when playing, resume otherwise.

        The playing flag flips optimistically on success; a later device
        state event overrides it.
        """
        if not self.session.device_id:
            return

        was_playing = self.session.is_playing
        try:
            if was_playing:
                await self.device.pause()
            else:
                await self.device.resume()
            self.session.is_playing = not was_playing
            self.session.last_error = None

        except Exception as e:
            logger.error(f"Error toggling playback: {e}")
            self.session.last_error = ERROR_TOGGLE

    async def _play_item(self, item: CatalogItem, device_id: Optional[str]) -> None:
        """Fetch the item's detail for display, then play it on the device."""
        if not device_id:
            raise DeviceCommandError("No playback device ready")

        self.session.current_track = await self.api.get_track(item.id)
        await self.device.play([item.uri], device_id)
        logger.info(f"Playing {item.artist_name} - {item.name}")

    # =========================================================================
    # Device Events
    # =========================================================================

    def on_device_ready(self, device_id: str) -> None:
        """Record the device ID from a ready event (may repeat)."""
        if self.session.device_id and self.session.device_id != device_id:
            logger.info(f"Device ID changed: {self.session.device_id} -> {device_id}")
        self.session.device_id = device_id

    def on_device_not_ready(self, device_id: str) -> None:
        """Device went offline; the ID is kept until the next ready event."""
        logger.info(f"Device ID has gone offline {device_id}")

    def on_state_changed(self, paused: bool) -> None:
        """Apply device-reported state. Authoritative over optimistic toggles."""
        self.session.is_playing = not paused

    # =========================================================================
    # State Access
    # =========================================================================

    @property
    def status(self) -> SessionStatus:
        """Derived coarse status."""
        if self.session.is_loading:
            return SessionStatus.LOADING
        if self.session.last_error:
            return SessionStatus.ERROR
        if self.has_queue:
            return SessionStatus.READY
        return SessionStatus.NO_QUEUE

    def snapshot(self, has_token: bool = True) -> PlaybackSnapshot:
        """Get the observable state for the UI layer."""
        return PlaybackSnapshot(
            current_track=self._display_track(),
            is_playing=self.session.is_playing,
            is_loading=self.session.is_loading,
            error=self.session.last_error,
            has_token=has_token,
            status=self.status,
            current_index=self.session.current_index,
            queue_length=len(self._queue) if self._queue is not None else 0,
            device_id=self.session.device_id,
        )

    def _display_track(self) -> Optional[dict[str, Any]]:
        """Normalized current track: fetched detail if complete, else queue item."""
        detail = CatalogItem.from_track(self.session.current_track)
        if detail is not None:
            return detail.to_dict()
        item = self.current_item
        return item.to_dict() if item is not None else None
