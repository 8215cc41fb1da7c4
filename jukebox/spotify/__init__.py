"""Spotify Web API access."""

from .client import SpotifyAPIClient, SpotifyAPIError

__all__ = [
    "SpotifyAPIClient",
    "SpotifyAPIError",
]
