"""Tests for the Spotify Web API client."""

from typing import Any

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from jukebox.spotify import SpotifyAPIClient, SpotifyAPIError


class FakeSpotify:
    """Scripted Web API: records requests and replays canned responses."""

    def __init__(self) -> None:
        self.requests: list[dict[str, Any]] = []
        self.responses: list[web.Response] = []
        self.url = ""

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self._handle)
        return app

    async def _handle(self, request: web.Request) -> web.Response:
        body = await request.text()
        self.requests.append(
            {
                "method": request.method,
                "path": request.path,
                "query": dict(request.query),
                "auth": request.headers.get("Authorization"),
                "body": body,
            }
        )
        if self.responses:
            return self.responses.pop(0)
        return web.json_response({})


@pytest.fixture
async def spotify():
    fake = FakeSpotify()
    server = TestServer(fake.app())
    await server.start_server()
    fake.url = str(server.make_url("")).rstrip("/")
    yield fake
    await server.close()


@pytest.fixture
async def client(spotify: FakeSpotify):
    api = SpotifyAPIClient("token-123")
    api.API_BASE = spotify.url
    async with api:
        yield api


class TestCatalog:
    """Tests for catalog endpoints."""

    async def test_search_playlists(self, client: SpotifyAPIClient, spotify: FakeSpotify) -> None:
        """Test that the search returns the playlist items, nulls included."""
        spotify.responses.append(
            web.json_response({"playlists": {"items": [{"id": "p1"}, None]}})
        )

        playlists = await client.search_playlists("indie rock essentials", limit=5)

        assert playlists == [{"id": "p1"}, None]
        request = spotify.requests[0]
        assert request["path"] == "/search"
        assert request["query"]["q"] == "indie rock essentials"
        assert request["query"]["type"] == "playlist"
        assert request["query"]["limit"] == "5"
        assert request["auth"] == "Bearer token-123"

    async def test_search_malformed(self, client: SpotifyAPIClient, spotify: FakeSpotify) -> None:
        spotify.responses.append(web.json_response({"playlists": None}))

        assert await client.search_playlists("x") == []

    async def test_playlist_items(self, client: SpotifyAPIClient, spotify: FakeSpotify) -> None:
        spotify.responses.append(web.json_response({"items": [{"track": {"id": "t1"}}]}))

        items = await client.get_playlist_items("p1", limit=10)

        assert items == [{"track": {"id": "t1"}}]
        assert spotify.requests[0]["path"] == "/playlists/p1/tracks"
        assert spotify.requests[0]["query"]["limit"] == "10"

    async def test_get_track(self, client: SpotifyAPIClient, spotify: FakeSpotify) -> None:
        spotify.responses.append(web.json_response({"id": "t1", "name": "Song"}))

        track = await client.get_track("t1")

        assert track["name"] == "Song"
        assert spotify.requests[0]["path"] == "/tracks/t1"

    async def test_not_found(self, client: SpotifyAPIClient, spotify: FakeSpotify) -> None:
        """Test that error statuses raise with the Spotify message."""
        spotify.responses.append(
            web.json_response({"error": {"status": 404, "message": "Not found"}}, status=404)
        )

        with pytest.raises(SpotifyAPIError) as exc_info:
            await client.get_track("missing")

        assert exc_info.value.status == 404
        assert "Not found" in str(exc_info.value)

    async def test_invalid_json(self, client: SpotifyAPIClient, spotify: FakeSpotify) -> None:
        spotify.responses.append(web.Response(text="<html>", content_type="text/html"))

        with pytest.raises(SpotifyAPIError):
            await client.get_track("t1")


class TestPlayer:
    """Tests for player endpoints."""

    async def test_start_playback(self, client: SpotifyAPIClient, spotify: FakeSpotify) -> None:
        spotify.responses.append(web.Response(status=204))

        await client.start_playback(["spotify:track:a"], device_id="dev-1")

        request = spotify.requests[0]
        assert request["method"] == "PUT"
        assert request["path"] == "/me/player/play"
        assert request["query"] == {"device_id": "dev-1"}
        assert '"uris": ["spotify:track:a"]' in request["body"]

    async def test_pause(self, client: SpotifyAPIClient, spotify: FakeSpotify) -> None:
        spotify.responses.append(web.Response(status=204))

        await client.pause_playback(device_id="dev-1")

        assert spotify.requests[0]["path"] == "/me/player/pause"

    async def test_playback_state_inactive(
        self, client: SpotifyAPIClient, spotify: FakeSpotify
    ) -> None:
        """Test that no active playback reads as None."""
        spotify.responses.append(web.Response(status=204))

        assert await client.get_playback_state() is None

    async def test_devices(self, client: SpotifyAPIClient, spotify: FakeSpotify) -> None:
        spotify.responses.append(web.json_response({"devices": [{"id": "d1", "name": "Box"}]}))

        assert await client.get_devices() == [{"id": "d1", "name": "Box"}]


class TestRateLimit:
    """Tests for 429 handling."""

    async def test_retries_after_429(self, client: SpotifyAPIClient, spotify: FakeSpotify) -> None:
        spotify.responses.append(web.Response(status=429, headers={"Retry-After": "0"}))
        spotify.responses.append(web.json_response({"id": "t1"}))

        track = await client.get_track("t1")

        assert track == {"id": "t1"}
        assert len(spotify.requests) == 2

    async def test_gives_up(self, client: SpotifyAPIClient, spotify: FakeSpotify) -> None:
        """Test that repeated 429s eventually raise."""
        for _ in range(3):
            spotify.responses.append(web.Response(status=429, headers={"Retry-After": "0"}))

        with pytest.raises(SpotifyAPIError) as exc_info:
            await client.get_track("t1")

        assert exc_info.value.status == 429
        assert len(spotify.requests) == 3


class TestSession:
    """Tests for session handling."""

    async def test_request_without_open(self, spotify: FakeSpotify) -> None:
        """Test that a temporary session is used when none is open."""
        api = SpotifyAPIClient("token-123")
        api.API_BASE = spotify.url
        spotify.responses.append(web.json_response({"id": "t1"}))

        assert await api.get_track("t1") == {"id": "t1"}
