"""
Backend availability cache.

Remembers, for a bounded time, whether a probed backend (e.g. the local Ollama
server) answered its last health probe, so it is not probed on every call.

Invariants:
- Entries are immutable; a refresh replaces the whole entry in one assignment
- Concurrent refreshes are harmless (last writer wins, both saw real probes)
- The clock is injected so TTL expiry is testable without sleeping
"""

import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL_S = 60.0


@dataclass(frozen=True)
class AvailabilityEntry:
    available: bool
    checked_at: float


class AvailabilityCache:
    """TTL cache of backend reachability keyed by backend name."""

    def __init__(self, ttl_s: float = DEFAULT_TTL_S, clock: Callable[[], float] = time.monotonic):
        self.ttl_s = ttl_s
        self._clock = clock
        self._entries: Dict[str, AvailabilityEntry] = {}

    def get(self, key: str) -> Optional[bool]:
        """Cached availability, or None when unknown or stale."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.checked_at >= self.ttl_s:
            return None
        return entry.available

    def put(self, key: str, available: bool) -> None:
        self._entries[key] = AvailabilityEntry(available=available, checked_at=self._clock())

    def invalidate(self, key: Optional[str] = None) -> None:
        if key is None:
            self._entries = {}
        else:
            self._entries.pop(key, None)

    async def check(self, key: str, probe: Callable[[], Awaitable[bool]]) -> bool:
        """
        Return cached availability, probing and refreshing when stale.

        A probe that raises counts as unavailable.
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        try:
            available = bool(await probe())
        except Exception as e:
            logger.debug(f"Availability probe for {key} raised: {e}")
            available = False

        self.put(key, available)
        logger.info(f"Availability of {key} refreshed: {'up' if available else 'down'}")
        return available
