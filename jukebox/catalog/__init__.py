"""Catalog fetching module."""

from .errors import (
    FetchError,
    NoCollectionsFoundError,
    NoValidCollectionsError,
    NoValidTracksError,
    UnrecoverableFetchError,
)
from .fetcher import CatalogFetcher, FetchResult, normalize_entries

__all__ = [
    "CatalogFetcher",
    "FetchResult",
    "normalize_entries",
    # Errors
    "FetchError",
    "NoCollectionsFoundError",
    "NoValidCollectionsError",
    "NoValidTracksError",
    "UnrecoverableFetchError",
]
