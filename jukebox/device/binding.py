"""
Device binding.

Connects exactly one playback device to the session controller: readiness,
offline and paused/playing events flow from the device into the controller.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Optional

from .base import PlaybackDevice
from .types import DeviceHandle, DeviceState

if TYPE_CHECKING:
    from jukebox.playback.controller import SessionController

logger = logging.getLogger(__name__)


class DeviceBinding:
    """
    Routes device events to a SessionController.

    The first ready event starts playback of the current track when a queue
    is already loaded and no fetch is in flight. Later ready events
    (reconnects) only re-announce the device ID.
    """

    def __init__(self, device: PlaybackDevice, controller: "SessionController"):
        self.device = device
        self.controller = controller
        self.handle = DeviceHandle()

        self._seen_ready = False
        self._playback_started = False
        self._bound = False
        self._load_task: Optional[asyncio.Task[None]] = None

    @property
    def is_ready(self) -> bool:
        """Check if the device has announced itself and is online."""
        return self.handle.is_ready

    async def bind(self) -> bool:
        """Register event handlers and connect the device."""
        if self._bound:
            return True

        self.device.on_ready(self._handle_ready)
        self.device.on_not_ready(self._handle_not_ready)
        self.device.on_state_change(self._handle_state_change)
        self._bound = True

        connected = await self.device.connect()
        logger.info(f"Bound device: {self.device.get_info()}")
        return connected

    async def unbind(self) -> None:
        """Disconnect the device and drop its handlers."""
        if not self._bound:
            return

        if self._load_task and not self._load_task.done():
            self._load_task.cancel()
            try:
                await self._load_task
            except asyncio.CancelledError:
                pass
        self._load_task = None

        await self.device.disconnect()
        self.device.on_ready(None)
        self.device.on_not_ready(None)
        self.device.on_state_change(None)
        self.handle.mark_not_ready()
        self._bound = False
        logger.info("Device unbound")

    async def start_playback_if_ready(self) -> None:
        """Play the current track if the device is ready and nothing was started yet."""
        if not self.handle.is_ready or self._playback_started:
            return
        if not self.controller.has_queue:
            return
        self._playback_started = True
        await self.controller.load_current(self.handle.device_id)

    # =========================================================================
    # Event Handlers
    # =========================================================================

    def _handle_ready(self, device_id: str) -> None:
        first = not self._seen_ready
        self._seen_ready = True
        self.handle.mark_ready(device_id)
        self.controller.on_device_ready(device_id)

        # While load_queue runs, start_playback_if_ready() starts playback after it
        if self.controller.session.is_loading:
            return
        if first and self.controller.has_queue and not self._playback_started:
            self._playback_started = True
            self._load_task = asyncio.create_task(self.controller.load_current(device_id))

    def _handle_not_ready(self, device_id: str) -> None:
        self.handle.mark_not_ready()
        self.controller.on_device_not_ready(device_id)

    def _handle_state_change(self, state: DeviceState) -> None:
        logger.debug(f"Device state: {state.to_dict()}")
        self.controller.on_state_changed(state.paused)
