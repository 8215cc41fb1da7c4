"""HTTP API for the jukebox UI."""

from .server import JukeboxWebServer

__all__ = ["JukeboxWebServer"]
