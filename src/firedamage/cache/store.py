"""In-memory, time-expiring store for completed assessments."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from firedamage.core.config import CacheConfig

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: Any
    written_at: float


class AssessmentCache:
    """Key/value store with a fixed time-to-live, checked lazily on read.

    Expired entries are only evicted when ``get`` touches them, so
    ``size()`` may include entries that are logically expired.

    Args:
        config: Cache configuration. Only ``ttl_seconds`` is used here.
        clock: Monotonic time source in seconds. Injected by tests.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = (config or CacheConfig()).ttl_seconds
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = _Entry(value=value, written_at=self._clock())
        logger.debug("Cache entry set: %s", key)

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.written_at > self._ttl:
                del self._entries[key]
                expired = True
            else:
                expired = False

        if expired:
            logger.debug("Cache entry expired: %s", key)
            return None
        logger.debug("Cache hit: %s", key)
        return entry.value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.debug("Cache cleared")

    def size(self) -> int:
        with self._lock:
            return len(self._entries)
