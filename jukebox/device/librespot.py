"""
go-librespot playback device.

Commands go to the daemon's REST API; playback events arrive over its
``/events`` WebSocket. Every (re)connection of the event stream announces
the device as ready again.
"""

import asyncio
import json
import logging
from typing import Any, Optional

import aiohttp
import websockets
from websockets import ClientConnection

from .base import DeviceCommandError, PlaybackDevice
from .types import DeviceState

logger = logging.getLogger(__name__)

# Connection constants
PING_INTERVAL = 10.0  # seconds
PONG_TIMEOUT = 30.0  # seconds
INITIAL_RECONNECT_DELAY = 1.0  # seconds
MAX_RECONNECT_DELAY = 60.0  # seconds
RECONNECT_BACKOFF_MULTIPLIER = 2.0
COMMAND_TIMEOUT = 10  # seconds

# Event types that mean "not playing"
PAUSED_EVENTS = {"paused", "not_playing", "stopped", "inactive"}


class LibrespotDevice(PlaybackDevice):
    """Playback device backed by a local go-librespot daemon."""

    device_type = "librespot"

    def __init__(self, base_url: str, name: str = "librespot"):
        """
        Initialize device.

        Args:
            base_url: Daemon API root, e.g. ``http://localhost:3678``
            name: Display name
        """
        super().__init__(name=name)
        self.base_url = base_url.rstrip("/")

        self._session: Optional[aiohttp.ClientSession] = None
        self._ws: Optional[ClientConnection] = None
        self._should_run = False
        self._is_ready = False
        self._reconnect_delay = INITIAL_RECONNECT_DELAY
        self._event_task: Optional[asyncio.Task[None]] = None

    @property
    def events_url(self) -> str:
        """WebSocket URL of the daemon's event stream."""
        if self.base_url.startswith("https://"):
            return "wss://" + self.base_url[len("https://"):] + "/events"
        if self.base_url.startswith("http://"):
            return "ws://" + self.base_url[len("http://"):] + "/events"
        return f"ws://{self.base_url}/events"

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def connect(self) -> bool:
        """Start the event stream connection loop."""
        if self._event_task:
            return True

        self._session = aiohttp.ClientSession(headers={"Content-Type": "application/json"})
        self._should_run = True
        self._is_connected = True
        self._event_task = asyncio.create_task(self._connection_loop())
        logger.info(f"Connecting to librespot at {self.base_url}")
        return True

    async def disconnect(self) -> None:
        """Stop the event stream and close the HTTP session."""
        self._should_run = False
        self._is_connected = False
        if self._ws:
            await self._ws.close()
        if self._event_task:
            self._event_task.cancel()
            try:
                await self._event_task
            except asyncio.CancelledError:
                pass
            self._event_task = None
        if self._session:
            await self._session.close()
            self._session = None
        self._is_ready = False
        logger.info("librespot device disconnected")

    # =========================================================================
    # Playback Control
    # =========================================================================

    async def play(self, uris: list[str], device_id: str) -> None:
        """Play the first URI; the daemon itself is the target device."""
        if not uris:
            raise DeviceCommandError("Play failed: no URI given")
        logger.info(f"API play: {uris[0]}")
        await self._post("/player/play", {"uri": uris[0]})

    async def pause(self) -> None:
        """Pause playback."""
        await self._post("/player/pause")

    async def resume(self) -> None:
        """Resume playback."""
        await self._post("/player/resume")

    async def get_status(self) -> Optional[dict[str, Any]]:
        """
        Get the daemon status.

        Returns:
            Status dict, or None when the daemon has nothing to report (204)

        Raises:
            DeviceCommandError: If the daemon is unreachable
        """
        if not self._session:
            raise DeviceCommandError("Device not connected")
        timeout = aiohttp.ClientTimeout(total=COMMAND_TIMEOUT)
        try:
            async with self._session.get(f"{self.base_url}/status", timeout=timeout) as resp:
                if resp.status == 204:
                    return None
                if resp.status != 200:
                    raise DeviceCommandError(f"Status failed: {resp.status}")
                status: dict[str, Any] = await resp.json(content_type=None)
                return status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DeviceCommandError(f"Status failed: {e}") from e

    async def _post(self, path: str, payload: Optional[dict[str, Any]] = None) -> None:
        """POST a player command."""
        if not self._session:
            raise DeviceCommandError("Device not connected")
        timeout = aiohttp.ClientTimeout(total=COMMAND_TIMEOUT)
        try:
            async with self._session.post(
                f"{self.base_url}{path}", json=payload, timeout=timeout
            ) as resp:
                logger.debug(f"{path}: {resp.status}")
                if resp.status >= 400:
                    text = await resp.text()
                    raise DeviceCommandError(f"{path} failed: {resp.status} {text}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DeviceCommandError(f"{path} failed: {e}") from e

    # =========================================================================
    # Event Stream
    # =========================================================================

    async def _connection_loop(self) -> None:
        """Main connection loop with reconnection logic."""
        while self._should_run:
            try:
                await self._connect_and_run()
            except Exception as e:
                logger.error(f"librespot connection error: {e}")

            if not self._should_run:
                break

            if self._is_ready:
                self._is_ready = False
                logger.warning(f"Device ID has gone offline {self._device_id}")
                self._notify_not_ready(self._device_id or "")

            logger.info(f"Reconnecting in {self._reconnect_delay:.1f}s...")
            await asyncio.sleep(self._reconnect_delay)
            self._reconnect_delay = min(
                self._reconnect_delay * RECONNECT_BACKOFF_MULTIPLIER,
                MAX_RECONNECT_DELAY,
            )

    async def _connect_and_run(self) -> None:
        """Connect the event stream, announce readiness, dispatch events."""
        status = await self.get_status() or {}
        device_id = str(status.get("device_id") or self.name)

        try:
            async with websockets.connect(
                self.events_url,
                ping_interval=PING_INTERVAL,
                ping_timeout=PONG_TIMEOUT,
            ) as ws:
                self._ws = ws
                self._reconnect_delay = INITIAL_RECONNECT_DELAY
                self._is_ready = True
                logger.info(f"Ready with Device ID {device_id}")
                self._notify_ready(device_id)

                if status:
                    paused = bool(status.get("paused") or status.get("stopped"))
                    track = status.get("track") or {}
                    self._notify_state_change(
                        DeviceState(paused=paused, track_uri=str(track.get("uri") or ""))
                    )

                async for raw in ws:
                    self.handle_event(raw)

        except websockets.ConnectionClosed as e:
            logger.warning(f"Event stream closed: {e.code} {e.reason}")
        finally:
            self._ws = None

    def handle_event(self, raw: Any) -> None:
        """Decode one event frame and forward paused/playing changes."""
        try:
            event = json.loads(raw)
        except (TypeError, ValueError):
            logger.debug(f"Ignoring undecodable event: {raw!r}")
            return
        if not isinstance(event, dict):
            return

        event_type = event.get("type")
        data = event.get("data") or {}
        uri = str(data.get("uri") or "") if isinstance(data, dict) else ""

        if event_type == "playing":
            self._notify_state_change(DeviceState(paused=False, track_uri=uri))
        elif event_type in PAUSED_EVENTS:
            self._notify_state_change(DeviceState(paused=True, track_uri=uri))
        else:
            logger.debug(f"Unhandled librespot event: {event_type}")
