"""
Catalog fetch errors.
"""


class FetchError(Exception):
    """Building a queue from the catalog failed."""

    pass


class NoCollectionsFoundError(FetchError):
    """Playlist search returned nothing usable."""

    def __init__(self, message: str = "No playlists found"):
        super().__init__(message)


class NoValidCollectionsError(FetchError):
    """Search returned playlists, but none with an ID."""

    def __init__(self, message: str = "No valid playlists found"):
        super().__init__(message)


class NoValidTracksError(FetchError):
    """No playlist entry passed normalization."""

    def __init__(self, message: str = "No valid tracks found"):
        super().__init__(message)


class UnrecoverableFetchError(FetchError):
    """Both the search and the fallback playlist failed."""

    def __init__(self, message: str = "Could not load any tracks. Please try again later."):
        super().__init__(message)
