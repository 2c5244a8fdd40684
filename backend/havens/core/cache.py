"""Read-through query cache with change notification.

Writers publish a topic (e.g. "menu") after their transaction commits.
The cache is subscribed to the notifier and drops every entry under that
topic, so the next read re-fetches the full result. There is no incremental
diffing; this is intended for small, rarely-written listings.
"""

import hashlib
import json
import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from havens.core.config import settings

logger = logging.getLogger(__name__)

Listener = Callable[[str], None]


class ChangeNotifier:
    """Minimal publish/subscribe hub keyed by topic name."""

    def __init__(self):
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """Register ``callback(topic)``; returns a function that unsubscribes it."""
        with self._lock:
            self._listeners.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe

    def publish(self, topic: str) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(topic)
            except Exception as e:
                # A broken subscriber must not fail the write that already committed
                logger.warning(f"Change listener failed for topic '{topic}': {e}")


class CacheKeys:
    OUTLETS = "outlets"
    MENU = "menu"
    INVENTORY = "inventory"
    ORDERS = "orders"
    SETTINGS = "settings"
    STAFF = "staff"
    CUSTOMERS = "customers"
    INVOICES = "invoices"
    REVIEWS = "reviews"


def make_signature(*args, **kwargs) -> str:
    """Stable hash of query arguments."""
    key_data = json.dumps({"args": args, "kwargs": kwargs}, sort_keys=True, default=str)
    return hashlib.md5(key_data.encode()).hexdigest()


class QueryCache:
    """In-memory TTL cache keyed by (topic, query signature).

    Each topic carries a generation counter bumped on invalidation. A load
    that started before an invalidation is returned to its caller but not
    stored, so a stale read never outlives the write that replaced it.
    """

    MAX_ENTRIES = 5000

    def __init__(self, ttl_seconds: int = 300):
        self.ttl_seconds = ttl_seconds
        self._cache: Dict[Tuple[str, str], Any] = {}
        self._expiry: Dict[Tuple[str, str], datetime] = {}
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def generation(self, topic: str) -> int:
        with self._lock:
            return self._generations.get(topic, 0)

    def get(self, topic: str, signature: str) -> Optional[Any]:
        key = (topic, signature)
        with self._lock:
            if key in self._cache:
                if datetime.now() < self._expiry.get(key, datetime.min):
                    return self._cache[key]
                del self._cache[key]
                self._expiry.pop(key, None)
        return None

    def set(self, topic: str, signature: str, value: Any, generation: Optional[int] = None) -> bool:
        """Store ``value``; skipped when ``topic`` was invalidated since ``generation``."""
        key = (topic, signature)
        with self._lock:
            if generation is not None and generation != self._generations.get(topic, 0):
                return False
            if len(self._cache) >= self.MAX_ENTRIES:
                oldest = sorted(self._expiry, key=self._expiry.get)[:100]
                for k in oldest:
                    self._cache.pop(k, None)
                    self._expiry.pop(k, None)
            self._cache[key] = value
            self._expiry[key] = datetime.now() + timedelta(seconds=self.ttl_seconds)
        return True

    def get_or_load(self, topic: str, signature: str, loader: Callable[[], Any]) -> Any:
        """Return the cached value or call ``loader`` and cache its result."""
        cached = self.get(topic, signature)
        if cached is not None:
            self.hits += 1
            logger.debug(f"Cache hit: {topic}:{signature}")
            return cached
        self.misses += 1
        logger.debug(f"Cache miss: {topic}:{signature}")
        generation = self.generation(topic)
        value = loader()
        if not self.set(topic, signature, value, generation):
            logger.debug(f"Discarded load of {topic}:{signature} invalidated mid-flight")
        return value

    def invalidate(self, topic: str) -> None:
        """Drop every entry cached under ``topic``."""
        with self._lock:
            self._generations[topic] = self._generations.get(topic, 0) + 1
            keys = [k for k in self._cache if k[0] == topic]
            for k in keys:
                self._cache.pop(k, None)
                self._expiry.pop(k, None)
        if keys:
            logger.debug(f"Invalidated {len(keys)} cache entries for '{topic}'")

    def clear(self) -> None:
        with self._lock:
            for topic in self._generations:
                self._generations[topic] += 1
            self._cache.clear()
            self._expiry.clear()

    def stats(self) -> dict:
        return {"entries": len(self._cache), "hits": self.hits, "misses": self.misses}


notifier = ChangeNotifier()
cache = QueryCache(ttl_seconds=settings.cache_ttl_seconds)
notifier.subscribe(cache.invalidate)
