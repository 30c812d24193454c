"""Caching utilities for chat responses."""

import json
import time
import uuid
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from asap_agent.config import CACHE_MAX_SIZE, CACHE_TTL_MS
from asap_agent.exceptions import StorageError
from asap_agent.logger import LoggerMixin
from asap_agent.storage import CacheStorage, MemoryStorage

CACHE_STORAGE_KEY = "asap_agent_cache"


def now_ms() -> int:
    """Current time as integer epoch milliseconds."""
    return int(time.time() * 1000)


def normalize_question(text: str) -> str:
    return text.lower().strip()


def questions_match(stored: str, query: str) -> bool:
    """
    Decide whether a cached question can answer a new query.

    Both sides are compared case-insensitively after trimming. They match when
    they are equal or when either one contains the other.
    """
    stored = normalize_question(stored)
    query = normalize_question(query)
    return stored == query or stored in query or query in stored


@dataclass
class CacheEntry:
    key: str
    question: str
    response: str
    timestamp: int


class SimilarityResponseCache(LoggerMixin):
    """
    Bounded question/response cache with similarity lookup.

    Entries expire lazily once older than ``ttl_ms`` and the least recently
    updated ones are evicted when more than ``max_size`` are stored. The whole
    mapping is written to ``storage`` after every mutation; storage failures
    are logged and never reach the caller.
    """

    def __init__(
        self,
        storage: Optional[CacheStorage] = None,
        max_size: int = CACHE_MAX_SIZE,
        ttl_ms: int = CACHE_TTL_MS,
        clock: Callable[[], int] = now_ms,
        matcher: Callable[[str, str], bool] = questions_match,
        storage_key: str = CACHE_STORAGE_KEY,
    ):
        """
        Initialize the cache and load any previously saved entries.

        Args:
            storage: Durable key/value backend (defaults to process memory)
            max_size: Maximum number of live entries (default 50)
            ttl_ms: Maximum entry age in milliseconds (default 24 hours)
            clock: Returns the current time in epoch milliseconds
            matcher: Predicate ``(stored_question, query) -> bool``
            storage_key: Key the serialized mapping is stored under
        """
        self.storage = storage if storage is not None else MemoryStorage()
        self.max_size = max_size
        self.ttl_ms = ttl_ms
        self.clock = clock
        self.matcher = matcher
        self.storage_key = storage_key
        self._entries: Dict[str, CacheEntry] = self._load()
        self._cleanup_expired()

    def __len__(self) -> int:
        return len(self._entries)

    # --- persistence ---

    def _load(self) -> Dict[str, CacheEntry]:
        try:
            blob = self.storage.load(self.storage_key)
        except StorageError as e:
            self.logger.warning(f"Could not load response cache, starting empty: {e}")
            return {}
        if not blob:
            return {}

        try:
            raw = json.loads(blob)
            if not isinstance(raw, dict):
                raise ValueError(f"expected an object, got {type(raw).__name__}")
            return {
                key: CacheEntry(
                    key=key,
                    question=str(item["question"]),
                    response=str(item["response"]),
                    timestamp=int(item["timestamp"]),
                )
                for key, item in raw.items()
            }
        except (ValueError, TypeError, KeyError, OverflowError, RecursionError) as e:
            self.logger.warning(f"Discarding corrupt response cache: {e}")
            return {}

    def _save(self) -> None:
        blob = json.dumps({
            key: {"question": e.question, "response": e.response, "timestamp": e.timestamp}
            for key, e in self._entries.items()
        })
        try:
            self.storage.save(self.storage_key, blob)
        except StorageError as e:
            self.logger.warning(f"Could not persist response cache: {e}")

    # --- housekeeping ---

    def _cleanup_expired(self) -> None:
        now = self.clock()
        expired = [k for k, e in self._entries.items() if now - e.timestamp > self.ttl_ms]
        for key in expired:
            del self._entries[key]
        if expired:
            self.logger.debug(f"Purged {len(expired)} expired cache entries")
            self._save()

    def _enforce_max_size(self) -> None:
        excess = len(self._entries) - self.max_size
        if excess <= 0:
            return
        # Oldest timestamps first
        oldest = sorted(self._entries.values(), key=lambda e: e.timestamp)[:excess]
        for entry in oldest:
            del self._entries[entry.key]
        self.logger.debug(f"Evicted {excess} cache entries over max size {self.max_size}")

    # --- public API ---

    def get(self, query: str) -> Optional[str]:
        """Return a cached response for a similar question, or None."""
        self._cleanup_expired()

        for entry in self._entries.values():
            if self.matcher(entry.question, query):
                # Reading keeps the entry alive longer
                entry.timestamp = self.clock()
                self._save()
                return entry.response

        return None

    def set(self, query: str, response: str) -> None:
        """Store a new entry; near-duplicates are not merged."""
        key = uuid.uuid4().hex
        self._entries[key] = CacheEntry(
            key=key,
            question=query,
            response=response,
            timestamp=self.clock(),
        )
        self._enforce_max_size()
        self._save()

    def clear(self) -> int:
        """Remove every entry. Returns how many were removed."""
        removed = len(self._entries)
        self._entries.clear()
        self._save()
        return removed

    def entries(self) -> List[CacheEntry]:
        """Snapshot of the stored entries in scan order."""
        return [CacheEntry(**asdict(e)) for e in self._entries.values()]

    def stats(self) -> Dict[str, int]:
        return {"size": len(self._entries), "max_size": self.max_size, "ttl_ms": self.ttl_ms}


class ProxyCache:
    """Exact-key time-based cache for passthrough completions."""

    def __init__(self, ttl_seconds: int = 60, clock: Callable[[], float] = time.time):
        """
        Initialize proxy cache.

        Args:
            ttl_seconds: Time to live in seconds (default 1 minute)
            clock: Returns the current time in epoch seconds
        """
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._cache: Dict[str, Tuple[Any, float]] = {}

    def __len__(self) -> int:
        return len(self._cache)

    @staticmethod
    def make_key(messages: List[Dict[str, Any]]) -> str:
        """Canonical key for a conversation payload."""
        return json.dumps(messages, sort_keys=True, ensure_ascii=False)

    def get(self, key: str) -> Any:
        """Get value from cache if not expired."""
        if key not in self._cache:
            return None

        value, timestamp = self._cache[key]
        if self.clock() - timestamp >= self.ttl_seconds:
            # Expired
            del self._cache[key]
            return None

        return value

    def set(self, key: str, value: Any) -> None:
        """Set value in cache with current timestamp, dropping expired entries first."""
        now = self.clock()
        expired = [k for k, (_, ts) in self._cache.items() if now - ts >= self.ttl_seconds]
        for k in expired:
            del self._cache[k]
        self._cache[key] = (value, now)

    def clear(self) -> int:
        """Clear all cached values. Returns how many were removed."""
        removed = len(self._cache)
        self._cache.clear()
        return removed
