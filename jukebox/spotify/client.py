"""
Spotify Web API Client.

Bearer-authenticated requests for the catalog (search, playlists, tracks)
and the Connect player endpoints.
"""

import asyncio
import json
import logging
from typing import Any, Optional
from urllib.parse import urlencode

import aiohttp

logger = logging.getLogger(__name__)

# Maximum number of retries after a 429 response
MAX_RATE_LIMIT_RETRIES = 2
DEFAULT_RETRY_AFTER_S = 2.0
REQUEST_TIMEOUT_S = 10


class SpotifyAPIError(Exception):
    """Spotify Web API error."""

    def __init__(self, message: str, status: int = 0):
        super().__init__(message)
        self.status = status


class SpotifyAPIClient:
    """Spotify Web API client."""

    API_BASE = "https://api.spotify.com/v1"

    def __init__(self, access_token: str, market: str = ""):
        """
        Initialize API client.

        Args:
            access_token: Bearer token from the login redirect
            market: Optional ISO country code passed to catalog lookups
        """
        self.access_token = access_token
        self.market = market
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "SpotifyAPIClient":
        """Async context manager entry."""
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[Any],
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def open(self) -> None:
        """Create the shared HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(headers={"User-Agent": "indie-jukebox"})

    async def close(self) -> None:
        """Close the shared HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    # =========================================================================
    # Catalog
    # =========================================================================

    async def search_playlists(self, query: str, limit: int = 5) -> list[Any]:
        """
        Search playlists.

        Args:
            query: Search term
            limit: Maximum number of playlists

        Returns:
            Raw playlist objects. Spotify may return null entries; they are
            passed through for the caller to filter.

        Raises:
            SpotifyAPIError: On request failure or unexpected payload
        """
        params: dict[str, Any] = {"q": query, "type": "playlist", "limit": limit}
        if self.market:
            params["market"] = self.market
        response = await self._request("GET", "/search", params=params)

        playlists = (response or {}).get("playlists")
        if not isinstance(playlists, dict):
            return []
        items = playlists.get("items")
        return items if isinstance(items, list) else []

    async def get_playlist_items(self, playlist_id: str, limit: int = 10) -> list[Any]:
        """
        Get the first entries of a playlist.

        Returns:
            Raw playlist entry objects (``{"track": {...}}``)
        """
        params: dict[str, Any] = {"limit": limit}
        if self.market:
            params["market"] = self.market
        response = await self._request("GET", f"/playlists/{playlist_id}/tracks", params=params)
        items = (response or {}).get("items")
        return items if isinstance(items, list) else []

    async def get_playlist(self, playlist_id: str) -> dict[str, Any]:
        """Get a full playlist object, including its first page of entries."""
        params: dict[str, Any] = {}
        if self.market:
            params["market"] = self.market
        response = await self._request("GET", f"/playlists/{playlist_id}", params=params)
        if not response:
            raise SpotifyAPIError(f"Empty response for playlist {playlist_id}")
        return response

    async def get_track(self, track_id: str) -> dict[str, Any]:
        """
        Get full track detail.

        Raises:
            SpotifyAPIError: On request failure or empty response
        """
        response = await self._request("GET", f"/tracks/{track_id}")
        if not response:
            raise SpotifyAPIError(f"Empty response for track {track_id}")
        return response

    # =========================================================================
    # Player
    # =========================================================================

    async def start_playback(self, uris: list[str], device_id: Optional[str] = None) -> None:
        """Play the given track URIs on a device."""
        params = {"device_id": device_id} if device_id else None
        await self._request("PUT", "/me/player/play", params=params, payload={"uris": uris})

    async def resume_playback(self, device_id: Optional[str] = None) -> None:
        """Resume the current context."""
        params = {"device_id": device_id} if device_id else None
        await self._request("PUT", "/me/player/play", params=params)

    async def pause_playback(self, device_id: Optional[str] = None) -> None:
        """Pause playback."""
        params = {"device_id": device_id} if device_id else None
        await self._request("PUT", "/me/player/pause", params=params)

    async def get_devices(self) -> list[dict[str, Any]]:
        """List the user's available Connect devices."""
        response = await self._request("GET", "/me/player/devices")
        devices = (response or {}).get("devices")
        return devices if isinstance(devices, list) else []

    async def get_playback_state(self) -> Optional[dict[str, Any]]:
        """Get current playback state, or None when nothing is active."""
        return await self._request("GET", "/me/player")

    # =========================================================================
    # Transport
    # =========================================================================

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        payload: Optional[dict[str, Any]] = None,
    ) -> Optional[dict[str, Any]]:
        """
        Make an authenticated API request.

        Returns:
            Decoded JSON body, or None for empty (204) responses

        Raises:
            SpotifyAPIError: On non-success status or transport failure
        """
        url = f"{self.API_BASE}{path}"
        if params:
            url = f"{url}?{urlencode(params)}"
        headers = {"Authorization": f"Bearer {self.access_token}"}

        session = self._session
        close_session = False
        if session is None:
            session = aiohttp.ClientSession(headers={"User-Agent": "indie-jukebox"})
            close_session = True

        timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_S)
        try:
            for attempt in range(MAX_RATE_LIMIT_RETRIES + 1):
                async with session.request(
                    method, url, headers=headers, json=payload, timeout=timeout
                ) as resp:
                    if resp.status == 429 and attempt < MAX_RATE_LIMIT_RETRIES:
                        retry_after = _parse_retry_after(resp.headers.get("Retry-After"))
                        logger.warning(f"Rate limited on {path}, retrying in {retry_after}s")
                        await asyncio.sleep(retry_after)
                        continue

                    if resp.status == 204:
                        return None

                    if 200 <= resp.status < 300:
                        text = await resp.text()
                        if not text:
                            return None
                        result: dict[str, Any] = json.loads(text)
                        return result

                    message = await _error_message(resp)
                    logger.debug(f"API request failed: {method} {path} -> {resp.status}")
                    raise SpotifyAPIError(
                        f"{method} {path} failed ({resp.status}): {message}", resp.status
                    )

            raise SpotifyAPIError(f"{method} {path} rate limited", 429)

        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"API request error: {e}")
            raise SpotifyAPIError(f"{method} {path} failed: {e}") from e

        finally:
            if close_session:
                await session.close()


def _parse_retry_after(value: Optional[str]) -> float:
    """Parse a Retry-After header (seconds)."""
    try:
        return max(0.0, float(value)) if value is not None else DEFAULT_RETRY_AFTER_S
    except ValueError:
        return DEFAULT_RETRY_AFTER_S


async def _error_message(resp: aiohttp.ClientResponse) -> str:
    """Extract the error message from a Spotify error body."""
    try:
        body = await resp.json(content_type=None)
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            return str(error.get("message", ""))
        if error:
            return str(error)
    except (ValueError, aiohttp.ContentTypeError):
        pass
    return resp.reason or ""
