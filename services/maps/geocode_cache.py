import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

import structlog

from config.map_config import MapConfig
from models.map_model import LatLng

logger = structlog.get_logger(__name__)


def normalize_address(query: str) -> str:
    return " ".join((query or "").split()).casefold()


class GeocodeCache:
    """In-process coordinate cache keyed by normalized geocoding query.

    Entries expire after ``ttl_seconds``; the least recently used entry is
    evicted once ``max_entries`` is reached. A zero TTL disables caching.
    Only successful lookups are stored.
    """

    def __init__(
        self,
        ttl_seconds: float = MapConfig.GEOCODE_CACHE_TTL_SECONDS,
        max_entries: int = MapConfig.GEOCODE_CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max(1, max_entries)
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, LatLng]]" = OrderedDict()

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, query: str) -> Optional[LatLng]:
        if not self.enabled:
            return None
        key = normalize_address(query)
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, location = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return location

    def set(self, query: str, location: LatLng) -> None:
        if not self.enabled:
            return
        key = normalize_address(query)
        self._entries[key] = (self._clock() + self.ttl_seconds, location)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("geocode_cache_evicted", key=evicted)

    def clear(self) -> None:
        self._entries.clear()
