"""
Spotify Connect playback device.

Drives any Connect speaker visible to the account (spotifyd, librespot,
a phone or desktop client) through the Web API player endpoints. Readiness
and paused state are derived by polling.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Optional

from jukebox.spotify.client import SpotifyAPIError

from .base import DeviceCommandError, PlaybackDevice
from .types import DeviceState

if TYPE_CHECKING:
    from jukebox.spotify.client import SpotifyAPIClient

logger = logging.getLogger(__name__)

# Back off this many poll intervals after a failed poll
POLL_ERROR_BACKOFF = 5


class SpotifyConnectDevice(PlaybackDevice):
    """Connect device matched by name in the user's device list."""

    device_type = "connect"

    def __init__(
        self,
        api_client: "SpotifyAPIClient",
        name: str,
        poll_interval: float = 1.0,
    ):
        """
        Initialize device.

        Args:
            api_client: Authenticated Spotify API client
            name: Device name as shown in Spotify's device list
            poll_interval: Seconds between device/state polls
        """
        super().__init__(name=name)
        self.api = api_client
        self.poll_interval = poll_interval

        self._is_ready = False
        self._last_paused: Optional[bool] = None
        self._poll_task: Optional[asyncio.Task[None]] = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def connect(self) -> bool:
        """Start polling for the device."""
        if self._poll_task:
            return True

        self._is_connected = True
        self._poll_task = asyncio.create_task(self._poll_loop())
        logger.info(f"Looking for Spotify Connect device '{self.name}'")
        return True

    async def disconnect(self) -> None:
        """Stop polling."""
        self._is_connected = False
        if self._poll_task:
            self._poll_task.cancel()
            try:
                await self._poll_task
            except asyncio.CancelledError:
                pass
            self._poll_task = None
        self._is_ready = False
        self._last_paused = None
        logger.info(f"Disconnected from '{self.name}'")

    # =========================================================================
    # Playback Control
    # =========================================================================

    async def play(self, uris: list[str], device_id: str) -> None:
        """Start playback of uris on device_id."""
        try:
            await self.api.start_playback(uris, device_id=device_id)
            logger.debug(f"Play {uris[0] if uris else '-'} on {device_id}")
        except SpotifyAPIError as e:
            raise DeviceCommandError(f"Play failed: {e}") from e

    async def pause(self) -> None:
        """Pause playback."""
        try:
            await self.api.pause_playback(device_id=self._device_id)
        except SpotifyAPIError as e:
            raise DeviceCommandError(f"Pause failed: {e}") from e

    async def resume(self) -> None:
        """Resume playback."""
        try:
            await self.api.resume_playback(device_id=self._device_id)
        except SpotifyAPIError as e:
            raise DeviceCommandError(f"Resume failed: {e}") from e

    # =========================================================================
    # Polling
    # =========================================================================

    async def _poll_loop(self) -> None:
        """Background task tracking device presence and paused state."""
        while self._is_connected:
            try:
                await self.poll_once()
                await asyncio.sleep(self.poll_interval)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.warning(f"Device poll failed: {e}")
                await asyncio.sleep(self.poll_interval * POLL_ERROR_BACKOFF)

    async def poll_once(self) -> None:
        """Refresh readiness and playback state once."""
        match = self._find_device(await self.api.get_devices())

        if match:
            device_id = str(match["id"])
            if not self._is_ready or device_id != self._device_id:
                self._is_ready = True
                logger.info(f"Ready with Device ID {device_id}")
                self._notify_ready(device_id)
        elif self._is_ready:
            self._is_ready = False
            self._last_paused = None
            logger.warning(f"Device ID has gone offline {self._device_id}")
            self._notify_not_ready(self._device_id or "")

        if not self._is_ready:
            return

        playback = await self.api.get_playback_state()
        state = self._parse_playback(playback)
        if state is not None and state.paused != self._last_paused:
            self._last_paused = state.paused
            self._notify_state_change(state)

    def _find_device(self, devices: list[dict[str, Any]]) -> Optional[dict[str, Any]]:
        """Find our device by name (case-insensitive)."""
        wanted = self.name.strip().lower()
        for device in devices:
            if not isinstance(device, dict) or not device.get("id"):
                continue
            if str(device.get("name", "")).strip().lower() == wanted:
                return device
        return None

    def _parse_playback(self, playback: Optional[dict[str, Any]]) -> Optional[DeviceState]:
        """Map a /me/player payload to a DeviceState for our device."""
        if not playback:
            return None
        device = playback.get("device") or {}
        if device.get("id") != self._device_id:
            return None
        item = playback.get("item") or {}
        return DeviceState(
            paused=not playback.get("is_playing", False),
            track_uri=str(item.get("uri") or ""),
            position_ms=int(playback.get("progress_ms") or 0),
        )
