"""
Playback queue for the jukebox.

A queue is built once per fetch cycle from normalized catalog items and is
replaced wholesale on the next fetch; it is never edited in place.
"""

import logging
import random
from typing import Iterable, Iterator, Optional

from jukebox.models import CatalogItem

logger = logging.getLogger(__name__)

# Upper bound on queue length
MAX_QUEUE_SIZE = 20


class PlaybackQueue:
    """
    Immutable ordered set of tracks, unique by track ID.

    Index arithmetic (``next_index`` / ``previous_index``) wraps around so a
    valid index always maps to a valid index.
    """

    def __init__(self, items: Iterable[CatalogItem] = ()):
        unique: list[CatalogItem] = []
        seen: set[str] = set()
        for item in items:
            if item.id in seen:
                continue
            seen.add(item.id)
            unique.append(item)
        self._items: tuple[CatalogItem, ...] = tuple(unique)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[CatalogItem]:
        return iter(self._items)

    def __getitem__(self, index: int) -> CatalogItem:
        return self._items[index]

    def __repr__(self) -> str:
        return f"PlaybackQueue({len(self._items)} tracks)"

    @property
    def is_empty(self) -> bool:
        """Check if queue is empty."""
        return not self._items

    @property
    def last_index(self) -> int:
        """Index of the last track (-1 when empty)."""
        return len(self._items) - 1

    def get(self, index: int) -> Optional[CatalogItem]:
        """Get the track at index, or None when out of range."""
        if 0 <= index < len(self._items):
            return self._items[index]
        return None

    def wrap(self, index: int) -> int:
        """Clamp any integer onto the queue by modulo arithmetic."""
        if not self._items:
            return 0
        return index % len(self._items)

    def next_index(self, index: int) -> int:
        """Index after ``index``, wrapping to the start."""
        return self.wrap(index + 1)

    def previous_index(self, index: int) -> int:
        """Index before ``index``, wrapping to the end."""
        return self.wrap(index - 1 + len(self._items))


def build_queue(
    items: Iterable[CatalogItem],
    rng: Optional[random.Random] = None,
    max_size: int = MAX_QUEUE_SIZE,
) -> PlaybackQueue:
    """
    Build a playback queue from normalized items.

    Duplicates (by ID) are dropped keeping the first occurrence, the
    remainder is shuffled uniformly and truncated to ``max_size``.

    Args:
        items: Normalized catalog items
        rng: Random source (for reproducible ordering in tests)
        max_size: Maximum queue length
    """
    unique = list(PlaybackQueue(items))
    (rng or random).shuffle(unique)
    queue = PlaybackQueue(unique[:max_size])
    logger.debug(f"Built queue: {len(queue)} of {len(unique)} unique tracks")
    return queue
