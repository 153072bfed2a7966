import time
import threading
from typing import Callable, Dict

from shockbot.infra.logging import logger


class MessageDeduplicator:
    """In-memory deduplicator for Discord message IDs.

    The gateway can re-deliver a message after a resume; a re-delivered
    message must not trigger a second shock.

    Strategy:
      - Keep {message_id: first_seen_timestamp}
      - TTL based eviction on access
      - Size bound, oldest entries dropped first
    """

    def __init__(
        self,
        ttl_seconds: float = 60.0,
        max_entries: int = 5000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._store: Dict[int, float] = {}
        self._lock = threading.Lock()

    def _evict_expired(self, now: float):
        expired_keys = [k for k, ts in self._store.items() if now - ts > self.ttl]
        for k in expired_keys:
            self._store.pop(k, None)

    def _trim(self):
        overflow = len(self._store) - self.max_entries
        if overflow <= 0:
            return
        # oldest first; dict order breaks timestamp ties so the newest id survives
        for k, _ in sorted(self._store.items(), key=lambda x: x[1])[:overflow]:
            self._store.pop(k, None)
        logger.info(f"[dedup] trimmed {overflow} entries over max={self.max_entries}")

    def check_and_mark(self, message_id: int) -> bool:
        """Return True the first time a message id is seen, False afterwards."""
        now = self._clock()
        with self._lock:
            self._evict_expired(now)
            if message_id in self._store:
                return False
            self._store[message_id] = now
            self._trim()
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


__all__ = ["MessageDeduplicator"]
