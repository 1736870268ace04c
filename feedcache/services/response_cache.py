import asyncio
import time
from dataclasses import dataclass
from threading import RLock
from typing import Any, Callable, Dict, Optional


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    stored_at: float
    ttl: float

    @property
    def expires_at(self) -> float:
        return self.stored_at + self.ttl

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class ResponseCache:
    """In-memory TTL cache for serialized feed responses.

    Entries are never deleted on invalidation: a generation bump moves the key
    space on and old entries go away when their TTL runs out, either on read or
    through `purge_expired`. Each key also gets an asyncio lock so concurrent
    misses can share one upstream fetch.
    """

    def __init__(self, ttl_seconds: int = 3600, clock: Callable[[], float] = time.time):
        self.ttl = ttl_seconds
        self._clock = clock
        self._store: Dict[str, CacheEntry] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        # the sweep job runs on a scheduler thread
        self._mutex = RLock()

    def put(self, key: str, value: Any, ttl: Optional[float] = None) -> CacheEntry:
        entry = CacheEntry(key=key, value=value, stored_at=self._clock(), ttl=self.ttl if ttl is None else ttl)
        with self._mutex:
            self._store[key] = entry
            # superseded generations are never read again, reclaim them here too
            self._drop_expired(entry.stored_at)
        return entry

    def entry(self, key: str) -> Optional[CacheEntry]:
        with self._mutex:
            entry = self._store.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                # expired
                del self._store[key]
                return None
            return entry

    def get(self, key: str) -> Optional[Any]:
        entry = self.entry(key)
        return entry.value if entry is not None else None

    def __contains__(self, key: str) -> bool:
        return self.entry(key) is not None

    def lock_for(self, key: str) -> asyncio.Lock:
        """Return the per-key single-flight lock (create if absent)."""
        with self._mutex:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = asyncio.Lock()
            return lock

    def purge_expired(self) -> int:
        """Drop expired entries and idle locks. Returns the number of entries removed."""
        with self._mutex:
            return self._drop_expired(self._clock())

    def _drop_expired(self, now: float) -> int:
        # caller holds the mutex
        expired = [k for k, e in self._store.items() if e.is_expired(now)]
        for key in expired:
            del self._store[key]
        idle = [k for k, l in self._locks.items() if k not in self._store and not l.locked()]
        for key in idle:
            del self._locks[key]
        return len(expired)

    def clear(self) -> None:
        with self._mutex:
            self._store.clear()
            self._locks.clear()

    def stats(self) -> Dict[str, int]:
        with self._mutex:
            return {"size": len(self._store), "locks": len(self._locks), "ttl": self.ttl}
