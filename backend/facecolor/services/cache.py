"""
Facial Color Profile Cache
Thread-safe in-memory cache with TTL expiry and capacity-bounded eviction.
"""
import time
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Dict, Optional

from loguru import logger

from facecolor.schemas import FacialColorProfile
from facecolor.services.fingerprint import split_profile_cache_key


@dataclass(frozen=True)
class CacheEntry:
    """Cached profile keyed by content hash."""
    content_hash: str
    profile: FacialColorProfile
    timestamp: float


class ProfileCache:
    """
    In-memory profile cache.
    
    Entries older than ttl_seconds are never served. At capacity the entry
    with the oldest timestamp is evicted. A lock guards every access;
    concurrent analyses of the same image may overwrite the same key.
    """
    
    def __init__(self, ttl_seconds: float = 24 * 3600, max_size: int = 100,
                 clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._lock = Lock()
        self._entries: Dict[str, CacheEntry] = {}
        self.stats = {'hits': 0, 'misses': 0, 'evictions': 0, 'expirations': 0}
    
    def get(self, key: str) -> Optional[FacialColorProfile]:
        """Get a non-expired profile, or None."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.stats['misses'] += 1
                return None
            
            if self._is_expired(entry):
                del self._entries[key]
                self.stats['expirations'] += 1
                self.stats['misses'] += 1
                return None
            
            self.stats['hits'] += 1
            return entry.profile
    
    def set(self, key: str, profile: FacialColorProfile) -> CacheEntry:
        """Store a profile, evicting the oldest entry when full."""
        entry = CacheEntry(
            content_hash=split_profile_cache_key(key),
            profile=profile,
            timestamp=self._clock(),
        )
        with self._lock:
            if len(self._entries) >= self.max_size and key not in self._entries:
                self._evict_oldest()
            self._entries[key] = entry
        return entry
    
    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None
    
    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            for stat in self.stats:
                self.stats[stat] = 0
    
    def clean_expired(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        with self._lock:
            expired = [key for key, entry in self._entries.items() if self._is_expired(entry)]
            for key in expired:
                del self._entries[key]
            self.stats['expirations'] += len(expired)
        if expired:
            logger.debug(f"Removed {len(expired)} expired profile cache entries")
        return len(expired)
    
    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
    
    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not self._is_expired(entry)
    
    def get_stats(self) -> Dict[str, Any]:
        """Size, hit/miss counts, hit rate and oldest entry age in seconds."""
        with self._lock:
            now = self._clock()
            total = self.stats['hits'] + self.stats['misses']
            oldest_age = max((now - e.timestamp for e in self._entries.values()), default=0.0)
            return {
                'size': len(self._entries),
                'max_size': self.max_size,
                'hits': self.stats['hits'],
                'misses': self.stats['misses'],
                'hit_rate': self.stats['hits'] / total if total > 0 else 0.0,
                'oldest_entry_age_s': oldest_age,
            }
    
    def _is_expired(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.timestamp > self.ttl_seconds
    
    def _evict_oldest(self):
        """Evict the entry with the oldest timestamp. Caller holds the lock."""
        if not self._entries:
            return
        oldest_key = min(self._entries, key=lambda k: self._entries[k].timestamp)
        del self._entries[oldest_key]
        self.stats['evictions'] += 1
