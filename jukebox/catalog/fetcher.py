"""
Catalog fetcher.

Builds a playback queue from a playlist search, falling back to a fixed,
known-good playlist when the search path yields nothing playable.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from jukebox.models import CatalogItem
from jukebox.playback.queue import PlaybackQueue, build_queue

from .errors import (
    FetchError,
    NoCollectionsFoundError,
    NoValidCollectionsError,
    NoValidTracksError,
    UnrecoverableFetchError,
)

if TYPE_CHECKING:
    from jukebox.spotify.client import SpotifyAPIClient

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_QUERY = "indie rock essentials"
DEFAULT_FALLBACK_PLAYLIST_ID = "37i9dQZF1DX2sUQwD7tbmL"

# Number of candidate playlists requested from search
SEARCH_LIMIT = 5
# Number of candidates whose tracks are fetched (in parallel)
MAX_COLLECTIONS = 3
# Entries fetched per candidate playlist
COLLECTION_ITEM_LIMIT = 10


@dataclass
class FetchResult:
    """
    Outcome of a fetch cycle.

    Exactly one of ``queue`` / ``error`` is set.
    """

    queue: Optional[PlaybackQueue] = None
    error: Optional[FetchError] = None
    used_fallback: bool = False

    @property
    def ok(self) -> bool:
        """Check if a queue was produced."""
        return self.queue is not None


def normalize_entries(entries: list[Any]) -> list[CatalogItem]:
    """Map raw playlist entries to catalog items, dropping incomplete ones."""
    items = []
    for entry in entries:
        item = CatalogItem.from_playlist_entry(entry)
        if item is not None:
            items.append(item)
    return items


class CatalogFetcher:
    """Fetches candidate tracks for one queue from the Spotify catalog."""

    def __init__(
        self,
        api_client: "SpotifyAPIClient",
        search_query: str = DEFAULT_SEARCH_QUERY,
        fallback_playlist_id: str = DEFAULT_FALLBACK_PLAYLIST_ID,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize fetcher.

        Args:
            api_client: Authenticated Spotify API client
            search_query: Fixed thematic search term
            fallback_playlist_id: Playlist used when the search path fails
            rng: Random source handed to the queue builder
        """
        self.api = api_client
        self.search_query = search_query
        self.fallback_playlist_id = fallback_playlist_id
        self._rng = rng

    async def fetch_queue(self) -> FetchResult:
        """
        Run one fetch cycle.

        Never raises: failures of the search path trigger the fallback, and a
        failing fallback is reported as ``UnrecoverableFetchError``.
        """
        try:
            items = await self.fetch_from_search()
            return FetchResult(queue=build_queue(items, rng=self._rng))
        except Exception as e:
            logger.error(f"Error fetching tracks: {e}")

        try:
            items = await self.fetch_from_fallback()
            logger.info(f"Loaded {len(items)} tracks from fallback playlist")
            return FetchResult(queue=build_queue(items, rng=self._rng), used_fallback=True)
        except Exception as e:
            logger.error(f"Fallback playlist failed: {e}")

        return FetchResult(error=UnrecoverableFetchError(), used_fallback=True)

    async def fetch_from_search(self) -> list[CatalogItem]:
        """
        Collect tracks from the playlists matching the search term.

        Raises:
            NoCollectionsFoundError: Search returned no playlists
            NoValidCollectionsError: No playlist had an ID
            NoValidTracksError: No complete track among the fetched entries
            SpotifyAPIError: The search request itself failed
        """
        playlists = await self.api.search_playlists(self.search_query, limit=SEARCH_LIMIT)
        if not playlists:
            raise NoCollectionsFoundError()

        valid = [p for p in playlists if isinstance(p, dict) and p.get("id")]
        if not valid:
            raise NoValidCollectionsError()

        candidates = valid[:MAX_COLLECTIONS]
        logger.debug(f"Fetching tracks from {len(candidates)} playlists")
        results = await asyncio.gather(
            *(self._fetch_collection(str(p["id"])) for p in candidates)
        )

        entries = [entry for result in results for entry in result]
        items = normalize_entries(entries)
        if not items:
            raise NoValidTracksError()

        logger.info(f"Found {len(items)} valid tracks in {len(candidates)} playlists")
        return items

    async def fetch_from_fallback(self) -> list[CatalogItem]:
        """
        Collect tracks from the fixed fallback playlist.

        Raises:
            NoValidTracksError: The playlist had no complete track
            SpotifyAPIError: The playlist request failed
        """
        playlist = await self.api.get_playlist(self.fallback_playlist_id)
        tracks = playlist.get("tracks")
        entries = tracks.get("items") if isinstance(tracks, dict) else None
        items = normalize_entries(entries if isinstance(entries, list) else [])
        if not items:
            raise NoValidTracksError()
        return items

    async def _fetch_collection(self, playlist_id: str) -> list[Any]:
        """Fetch one playlist's entries; a failure contributes no entries."""
        try:
            return await self.api.get_playlist_items(playlist_id, limit=COLLECTION_ITEM_LIMIT)
        except Exception as e:
            logger.error(f"Error fetching tracks for playlist {playlist_id}: {e}")
            return []
