"""Tests for the jukebox HTTP API."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp.test_utils import TestClient, TestServer

from jukebox.auth import AuthenticationError, AuthMissingError
from jukebox.playback import PlaybackSnapshot
from jukebox.web import JukeboxWebServer


def _snapshot(has_token: bool = True) -> PlaybackSnapshot:
    return PlaybackSnapshot(
        current_track={"name": "Song", "artist": "Band"},
        is_playing=True,
        is_loading=False,
        error=None,
        has_token=has_token,
    )


@pytest.fixture
def jukebox() -> MagicMock:
    app = MagicMock()
    app.snapshot.return_value = _snapshot()
    app.next = AsyncMock(return_value=_snapshot())
    app.previous = AsyncMock(return_value=_snapshot())
    app.toggle_play_pause = AsyncMock(return_value=_snapshot())
    app.set_token_from_fragment = AsyncMock()
    app.clear_token = AsyncMock()
    app.login_url.return_value = "https://accounts.spotify.com/authorize?client_id=x"
    return app


@pytest.fixture
async def client(jukebox: MagicMock):
    server = JukeboxWebServer(jukebox)
    async with TestClient(TestServer(server.create_app())) as test_client:
        yield test_client


class TestState:
    """Tests for GET /api/state."""

    async def test_state(self, client: TestClient) -> None:
        resp = await client.get("/api/state")

        assert resp.status == 200
        data = await resp.json()
        assert data["current_track"]["name"] == "Song"
        assert data["is_playing"] is True
        assert data["has_token"] is True
        assert data["error"] is None


class TestCommands:
    """Tests for the player commands."""

    @pytest.mark.parametrize(
        "path,method",
        [("/api/next", "next"), ("/api/previous", "previous"), ("/api/toggle", "toggle_play_pause")],
    )
    async def test_command(
        self, client: TestClient, jukebox: MagicMock, path: str, method: str
    ) -> None:
        resp = await client.post(path)

        assert resp.status == 200
        getattr(jukebox, method).assert_awaited_once()
        assert (await resp.json())["is_playing"] is True

    async def test_without_token(self, client: TestClient, jukebox: MagicMock) -> None:
        """Test that commands without a credential answer 401."""
        jukebox.next.side_effect = AuthMissingError("Not logged in")

        resp = await client.post("/api/next")

        assert resp.status == 401
        assert (await resp.json())["error"] == "Not logged in"


class TestLogin:
    """Tests for the login routes."""

    async def test_login_redirects(self, client: TestClient) -> None:
        resp = await client.get("/login", allow_redirects=False)

        assert resp.status == 302
        assert resp.headers["Location"].startswith("https://accounts.spotify.com/authorize")

    async def test_login_without_client_id(self, client: TestClient, jukebox: MagicMock) -> None:
        jukebox.login_url.side_effect = AuthenticationError("Spotify client_id is not configured")

        resp = await client.get("/login", allow_redirects=False)

        assert resp.status == 400

    async def test_callback_page(self, client: TestClient) -> None:
        """Test that the callback page posts the fragment back."""
        resp = await client.get("/callback")

        assert resp.status == 200
        assert resp.content_type == "text/html"
        assert "/api/token" in await resp.text()

    async def test_callback_error(self, client: TestClient) -> None:
        resp = await client.get("/callback", params={"error": "access_denied"})

        assert resp.status == 400

    async def test_set_token_fragment(self, client: TestClient, jukebox: MagicMock) -> None:
        resp = await client.post("/api/token", json={"fragment": "#access_token=abc"})

        assert resp.status == 200
        jukebox.set_token_from_fragment.assert_awaited_once_with("#access_token=abc")

    async def test_set_token_raw(self, client: TestClient, jukebox: MagicMock) -> None:
        resp = await client.post("/api/token", json={"access_token": "abc"})

        assert resp.status == 200
        jukebox.set_token_from_fragment.assert_awaited_once_with("access_token=abc")

    async def test_set_token_invalid(self, client: TestClient, jukebox: MagicMock) -> None:
        jukebox.set_token_from_fragment.side_effect = AuthenticationError("No access token")

        resp = await client.post("/api/token", json={"fragment": "#error=access_denied"})

        assert resp.status == 400

    async def test_set_token_bad_json(self, client: TestClient) -> None:
        resp = await client.post("/api/token", data="not json")

        assert resp.status == 400

    async def test_logout(self, client: TestClient, jukebox: MagicMock) -> None:
        jukebox.snapshot.return_value = _snapshot(has_token=False)

        resp = await client.delete("/api/token")

        assert resp.status == 200
        jukebox.clear_token.assert_awaited_once()
        assert (await resp.json())["has_token"] is False
