"""Bounded TTL cache for remote inference results.

Expiry is lazy: ``get`` reports an expired entry as a miss but leaves it in
place. Expired entries are only purged by capacity eviction, which runs after
every ``put``.
"""

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from ..models import Context, FieldDescriptor

logger = logging.getLogger("autofill.classifier.cache")

__all__ = [
    "CacheEntry",
    "ResponseCache",
    "field_cache_key",
    "question_cache_key",
]

DEFAULT_MAX_SIZE = 100
DEFAULT_TTL_SECONDS = 24 * 60 * 60


def _digest(text: str, length: int) -> str:
    return hashlib.sha256(text.encode("utf-8", "surrogatepass")).hexdigest()[:length]


def field_cache_key(fields: Sequence[FieldDescriptor], context: Context) -> str:
    """Fingerprint a field batch plus its page context.

    Order-sensitive: the same fields in a different order produce a different
    key, since results are merged back by position.
    """
    fields_part = "|".join(
        f"{f.kind}-{f.name}-{f.dom_id}-{f.label}" for f in fields
    )
    context_part = f"{context.platform_type.value}-{context.url}"
    return f"fields-{_digest(fields_part + context_part, 32)}"


def question_cache_key(text: str, context: Context) -> str:
    """Fingerprint a question plus the position/company it was asked for."""
    context_part = f"{context.position}-{context.company}"
    return f"question-{_digest(text, 32)}-{_digest(context_part, 16)}"


@dataclass(frozen=True)
class CacheEntry:
    key: str
    payload: Any
    created_at: float


class ResponseCache:
    """Insertion-ordered cache with lazy TTL and oldest-first eviction.

    Attributes:
        max_size: Maximum number of retained entries
        ttl: Entry lifetime in seconds
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        name: str = "default",
    ):
        self.max_size = max_size
        self.ttl = ttl
        self.name = name
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at > self.ttl

    def get(self, key: str) -> Optional[Any]:
        """Return the cached payload, or None on a miss or expired entry."""
        entry = self._entries.get(key)
        if entry is None or self._expired(entry, self._clock()):
            self._misses += 1
            return None
        self._hits += 1
        return entry.payload

    def put(self, key: str, payload: Any) -> None:
        """Store ``payload`` under ``key``, replacing any previous entry."""
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(key=key, payload=payload, created_at=self._clock())
        self.evict_if_over_capacity()

    def evict_if_over_capacity(self) -> int:
        """Shrink to max_size: expired entries first, then oldest by creation.

        Returns:
            Number of entries evicted.
        """
        if len(self._entries) <= self.max_size:
            return 0

        now = self._clock()
        evicted = 0

        for key in [k for k, e in self._entries.items() if self._expired(e, now)]:
            del self._entries[key]
            evicted += 1

        overflow = len(self._entries) - self.max_size
        if overflow > 0:
            # sorted() is stable, so equal timestamps keep insertion order
            oldest = sorted(self._entries.values(), key=lambda e: e.created_at)
            for entry in oldest[:overflow]:
                del self._entries[entry.key]
                evicted += 1

        logger.debug(
            "cache_evicted",
            extra={"cache": self.name, "evicted": evicted, "size": len(self._entries)},
        )
        return evicted

    def clear(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    def stats(self) -> dict:
        return {
            "name": self.name,
            "size": len(self._entries),
            "max_size": self.max_size,
            "ttl_seconds": self.ttl,
            "hits": self._hits,
            "misses": self._misses,
        }
