from __future__ import annotations

import time
from collections.abc import Callable, Iterable

from .types import WatchedAddress, normalize_address


class ProcessedHashRegistry:
    """Transaction hashes that have been finally classified.

    Entries expire ``ttl_seconds`` after the later of their insertion time and
    their trade time. The TTL must exceed the activity window so an expired
    hash can only belong to a record the recency filter already rejects.
    """

    def __init__(self, ttl_seconds: int, clock: Callable[[], float] = time.time) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._seen: dict[str, float] = {}

    def __contains__(self, tx_hash: str) -> bool:
        self._purge(self._clock())
        return tx_hash.lower() in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def add(self, tx_hash: str, activity_time: float | None = None) -> bool:
        """Record ``tx_hash``; returns False when it was already present.

        The entry ages from the later of now and ``activity_time`` so a trade
        stamped ahead of our clock outlives the recency window.
        """
        now = self._clock()
        self._purge(now)
        key = tx_hash.lower()
        if key in self._seen:
            return False
        self._seen[key] = max(now, activity_time or now)
        return True

    def _purge(self, now: float) -> None:
        cutoff = now - self.ttl_seconds
        expired = [key for key, added in self._seen.items() if added < cutoff]
        for key in expired:
            del self._seen[key]


class WindowState:
    """Per-address last-seen activity times plus the processed hash registry."""

    def __init__(
        self,
        addresses: Iterable[str],
        ttl_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.processed = ProcessedHashRegistry(ttl_seconds, clock=clock)
        self._watched: dict[str, WatchedAddress] = {}
        for address in addresses:
            key = normalize_address(address)
            self._watched.setdefault(key, WatchedAddress(key))

    def last_seen(self, address: str) -> int:
        watched = self._watched.get(normalize_address(address))
        return watched.last_seen_activity_time if watched else 0

    def advance(self, address: str, activity_time: int) -> None:
        key = normalize_address(address)
        watched = self._watched.setdefault(key, WatchedAddress(key))
        watched.last_seen_activity_time = max(watched.last_seen_activity_time, activity_time)
