import logging
import threading
import time
from typing import Callable, Dict, List, Optional
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class CacheEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    value: str
    expires_at: Optional[float] = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now > self.expires_at


class MemoryCache:
    """
    In-process key/value store with per-entry time-to-live.
    Expiration is evaluated lazily on read. All operations hold a re-entrant lock,
    so the store is safe to share between threads.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._clock = clock

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                logger.debug(f"Cache entry expired: {key}")
                return None
            return entry.value

    def set(self, key: str, value: str, ttl_seconds: Optional[float] = 0) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds else None
        with self._lock:
            self._entries[key] = CacheEntry(key=key, value=value, expires_at=expires_at)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def flush(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def stats(self) -> Dict[str, object]:
        with self._lock:
            return {"size": len(self._entries), "keys": list(self._entries)}
