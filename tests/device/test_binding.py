"""Tests for the device binding."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from jukebox.catalog import FetchResult
from jukebox.device.base import PlaybackDevice
from jukebox.device.binding import DeviceBinding
from jukebox.device.types import DeviceState
from jukebox.models import CatalogItem
from jukebox.playback import PlaybackQueue, SessionController


class FakeDevice(PlaybackDevice):
    """Device whose events are fired by the test."""

    device_type = "fake"

    def __init__(self) -> None:
        super().__init__(name="Fake")
        self.connected = False

    async def play(self, uris: list[str], device_id: str) -> None:
        pass

    async def pause(self) -> None:
        pass

    async def resume(self) -> None:
        pass

    async def connect(self) -> bool:
        self.connected = True
        return True

    async def disconnect(self) -> None:
        self.connected = False

    def fire_ready(self, device_id: str) -> None:
        self._notify_ready(device_id)

    def fire_not_ready(self, device_id: str) -> None:
        self._notify_not_ready(device_id)

    def fire_state(self, paused: bool) -> None:
        self._notify_state_change(DeviceState(paused=paused))


@pytest.fixture
def device() -> FakeDevice:
    return FakeDevice()


@pytest.fixture
def controller() -> MagicMock:
    """Create a mock controller that has a queue."""
    ctrl = MagicMock()
    ctrl.has_queue = True
    ctrl.session.is_loading = False
    ctrl.load_current = AsyncMock()
    return ctrl


@pytest.fixture
async def binding(device: FakeDevice, controller: MagicMock) -> DeviceBinding:
    b = DeviceBinding(device, controller)
    await b.bind()
    return b


class TestBind:
    """Tests for bind/unbind."""

    async def test_bind_connects(self, binding: DeviceBinding, device: FakeDevice) -> None:
        assert device.connected is True
        assert binding.is_ready is False

    async def test_unbind_disconnects(self, binding: DeviceBinding, device: FakeDevice) -> None:
        """Test that unbinding drops handlers and disconnects."""
        await binding.unbind()

        assert device.connected is False
        assert device._on_ready is None
        assert device._on_not_ready is None
        assert device._on_state_change is None

    async def test_bind_twice(self, binding: DeviceBinding) -> None:
        assert await binding.bind() is True


class TestReadyEvents:
    """Tests for ready handling."""

    async def test_first_ready_plays_current(
        self, binding: DeviceBinding, device: FakeDevice, controller: MagicMock
    ) -> None:
        """Test that the first ready event starts the current track."""
        device.fire_ready("dev-1")
        await asyncio.sleep(0)

        controller.on_device_ready.assert_called_once_with("dev-1")
        controller.load_current.assert_awaited_once_with("dev-1")
        assert binding.is_ready is True
        assert binding.handle.device_id == "dev-1"

    async def test_repeated_ready_only_reannounces(
        self, binding: DeviceBinding, device: FakeDevice, controller: MagicMock
    ) -> None:
        """Test that a reconnect does not restart playback."""
        device.fire_ready("dev-1")
        await asyncio.sleep(0)
        device.fire_ready("dev-2")
        await asyncio.sleep(0)

        assert controller.on_device_ready.call_count == 2
        controller.on_device_ready.assert_called_with("dev-2")
        assert controller.load_current.await_count == 1

    async def test_ready_without_queue(
        self, binding: DeviceBinding, device: FakeDevice, controller: MagicMock
    ) -> None:
        controller.has_queue = False

        device.fire_ready("dev-1")
        await asyncio.sleep(0)

        controller.on_device_ready.assert_called_once_with("dev-1")
        controller.load_current.assert_not_awaited()

    async def test_ready_while_loading_defers(
        self, binding: DeviceBinding, device: FakeDevice, controller: MagicMock
    ) -> None:
        """Test that a ready event during a queue fetch leaves playback to the loader."""
        controller.session.is_loading = True

        device.fire_ready("dev-1")
        await asyncio.sleep(0)

        controller.on_device_ready.assert_called_once_with("dev-1")
        controller.load_current.assert_not_awaited()

        controller.session.is_loading = False
        await binding.start_playback_if_ready()

        controller.load_current.assert_awaited_once_with("dev-1")

    async def test_start_playback_if_ready(
        self, binding: DeviceBinding, device: FakeDevice, controller: MagicMock
    ) -> None:
        """Test that playback starts once the queue arrives after readiness."""
        controller.has_queue = False
        device.fire_ready("dev-1")
        controller.has_queue = True

        await binding.start_playback_if_ready()
        await binding.start_playback_if_ready()

        controller.load_current.assert_awaited_once_with("dev-1")

    async def test_start_playback_not_ready(
        self, binding: DeviceBinding, controller: MagicMock
    ) -> None:
        await binding.start_playback_if_ready()

        controller.load_current.assert_not_awaited()


class TestOtherEvents:
    """Tests for not-ready and state events."""

    async def test_not_ready(
        self, binding: DeviceBinding, device: FakeDevice, controller: MagicMock
    ) -> None:
        controller.has_queue = False
        device.fire_ready("dev-1")
        device.fire_not_ready("dev-1")

        controller.on_device_not_ready.assert_called_once_with("dev-1")
        assert binding.is_ready is False
        assert binding.handle.device_id == "dev-1"

    async def test_state_change(
        self, binding: DeviceBinding, device: FakeDevice, controller: MagicMock
    ) -> None:
        device.fire_state(paused=True)
        device.fire_state(paused=False)

        assert [c.args[0] for c in controller.on_state_changed.call_args_list] == [True, False]


class RecordingDevice(FakeDevice):
    """Device that records play commands and how many overlap."""

    def __init__(self) -> None:
        super().__init__()
        self.plays: list[tuple[list[str], str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def play(self, uris: list[str], device_id: str) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.plays.append((uris, device_id))
        await asyncio.sleep(0.01)
        self.in_flight -= 1


def _queue(size: int) -> PlaybackQueue:
    return PlaybackQueue(
        CatalogItem(
            uri=f"spotify:track:{i}",
            id=str(i),
            name=f"Song {i}",
            artist_name="Band",
            album_art=("http://img/1",),
        )
        for i in range(size)
    )


class TestReadyDuringQueueLoad:
    """Tests for a device becoming ready while the queue is being fetched."""

    async def test_single_play_in_flight(self) -> None:
        """Test that user commands stay guarded while the first track starts."""
        detail_started = asyncio.Event()
        detail_gate = asyncio.Event()
        calls = 0

        async def get_track(track_id: str) -> dict:
            nonlocal calls
            calls += 1
            if calls == 1:
                detail_started.set()
                await detail_gate.wait()
            return {"id": track_id}

        api = MagicMock()
        api.get_track = AsyncMock(side_effect=get_track)
        device = RecordingDevice()
        controller = SessionController(api, device)
        binding = DeviceBinding(device, controller)
        await binding.bind()

        fetcher = MagicMock()
        fetcher.fetch_queue = AsyncMock(return_value=FetchResult(queue=_queue(10)))

        load = asyncio.create_task(controller.load_queue(fetcher))
        await detail_started.wait()
        device.fire_ready("dev-1")
        detail_gate.set()
        assert await load is True
        await asyncio.sleep(0)

        assert device.plays == []
        assert controller.session.device_id == "dev-1"

        start = asyncio.create_task(binding.start_playback_if_ready())
        while not device.plays:
            await asyncio.sleep(0)
        assert controller.session.is_loading is True

        # Rejected while the first track is still starting
        await controller.advance()
        await start

        await controller.advance()

        assert device.plays == [
            (["spotify:track:0"], "dev-1"),
            (["spotify:track:1"], "dev-1"),
        ]
        assert device.max_in_flight == 1
        assert controller.session.current_index == 1
        assert controller.session.is_loading is False
