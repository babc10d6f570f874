"""ValidatorCache: memoizes compiled validators by structural key.

Entries expire a fixed time after insertion (checked lazily on lookup) and,
when an insertion would exceed capacity, the oldest share of entries by
insertion time is evicted first. Lookups do not refresh an entry's age.
"""

import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from toolspine.kernel.validation.compiler import CompiledValidator
from toolspine.kernel.validation.fields import FieldDefinition
from toolspine.kernel.validation.result import ValidationOptions

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str, str]


def structural_hash(value: Any) -> str:
    """Deterministic content hash of a JSON-like value.

    Mappings are canonicalized with sorted keys, so logically equal values
    hash equally regardless of construction order.
    """
    canonical = json.dumps(value, sort_keys=True, separators=(",", ":"), default=repr)
    return hashlib.blake2b(canonical.encode("utf-8"), digest_size=16).hexdigest()


def schema_fingerprint(fields: Mapping[str, FieldDefinition]) -> str:
    """Structural hash of one schema namespace.

    Declaration order is part of the fingerprint because it determines the
    order in which errors are reported.
    """
    return structural_hash(
        {
            "order": list(fields),
            "fields": {
                name: definition.model_dump(by_alias=True, exclude_unset=True)
                for name, definition in fields.items()
            },
        }
    )


def make_cache_key(
    kind: str, fields: Mapping[str, FieldDefinition], options: ValidationOptions
) -> CacheKey:
    """Build the ``(kind, schema hash, options hash)`` cache key."""
    return (kind, schema_fingerprint(fields), structural_hash(options.model_dump()))


@dataclass
class CacheEntry:
    validator: CompiledValidator
    inserted_at: float
    hit_count: int = 0


class ValidatorCache:
    """In-memory, thread-safe cache of compiled validators."""

    def __init__(
        self,
        max_size: int = 1000,
        ttl_seconds: float = 300.0,
        eviction_fraction: float = 0.25,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize validator cache.

        Args:
            max_size: Maximum number of entries
            ttl_seconds: Absolute entry lifetime, measured from insertion
            eviction_fraction: Share of oldest entries dropped when full
            clock: Monotonic time source in seconds
        """
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self.eviction_fraction = eviction_fraction
        self._clock = clock
        # Insertion-ordered: the first entries are always the oldest
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: CacheKey) -> CompiledValidator | None:
        """Return the cached validator, or None on a miss or expired entry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.inserted_at > self.ttl_seconds:
                del self._entries[key]
                logger.debug("Cache entry expired: %s", key[0])
                return None
            entry.hit_count += 1
            return entry.validator

    def put(self, key: CacheKey, validator: CompiledValidator) -> None:
        """Insert a validator, evicting the oldest entries if the cache is full."""
        with self._lock:
            self._entries.pop(key, None)
            if len(self._entries) >= self.max_size:
                self._evict_oldest()
            self._entries[key] = CacheEntry(validator=validator, inserted_at=self._clock())

    def _evict_oldest(self) -> None:
        count = max(1, int(len(self._entries) * self.eviction_fraction))
        for key in list(self._entries)[:count]:
            del self._entries[key]
        logger.debug("Evicted %d oldest cache entries", count)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def hit_count(self, key: CacheKey) -> int:
        """Number of hits recorded for ``key`` (0 if absent)."""
        with self._lock:
            entry = self._entries.get(key)
            return entry.hit_count if entry else 0

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
