"""
Catalog item model.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class CatalogItem:
    """
    A playable track normalized from a Spotify playlist entry.

    Attributes:
        uri: Playable reference (``spotify:track:...``)
        id: Spotify track ID
        name: Track title
        artist_name: Name of the first credited artist
        album_art: Album image URLs, largest first as returned by Spotify
        album_name: Album title (display only)
    """

    uri: str
    id: str
    name: str
    artist_name: str
    album_art: tuple[str, ...]
    album_name: str = ""

    @classmethod
    def from_playlist_entry(cls, entry: Any) -> Optional["CatalogItem"]:
        """
        Build an item from a raw playlist entry (``{"track": {...}}``).

        Returns None when any required field is missing: uri, id, name,
        at least one artist and at least one album image.
        """
        if not isinstance(entry, dict):
            return None
        return cls.from_track(entry.get("track"))

    @classmethod
    def from_track(cls, track: Any) -> Optional["CatalogItem"]:
        """Build an item from a raw track object."""
        if not isinstance(track, dict):
            return None

        uri = track.get("uri")
        track_id = track.get("id")
        name = track.get("name")
        if not uri or not track_id or not name:
            return None

        artists = track.get("artists")
        if not isinstance(artists, list) or not artists or not isinstance(artists[0], dict):
            return None

        album = track.get("album")
        if not isinstance(album, dict):
            return None
        images = album.get("images")
        if not isinstance(images, list):
            return None
        album_art = tuple(
            image["url"] for image in images if isinstance(image, dict) and image.get("url")
        )
        if not album_art:
            return None

        return cls(
            uri=str(uri),
            id=str(track_id),
            name=str(name),
            artist_name=str(artists[0].get("name") or ""),
            album_art=album_art,
            album_name=str(album.get("name") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "uri": self.uri,
            "id": self.id,
            "name": self.name,
            "artist": self.artist_name,
            "album": self.album_name,
            "album_art": list(self.album_art),
        }
