"""Freshness-checked cache for model-generated insights."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol

DEFAULT_TTL_SECONDS = 24 * 60 * 60


class CacheStore(Protocol):
    """Storage backend for cached values and their write timestamps."""

    def read(self, key: str) -> tuple[dict[str, object], datetime] | None:
        """Return the stored value and the time it was written, if present."""

    def write(self, key: str, value: dict[str, object], stored_at: datetime) -> None:
        """Store a value with its write timestamp."""

    def remove(self, key: str) -> None:
        """Drop a stored value."""


@dataclass(frozen=True)
class CachedInsight:
    """A cache hit and how old it is."""

    value: dict[str, object]
    age: timedelta


@dataclass
class InMemoryCacheStore(CacheStore):
    """Process-local cache store."""

    _entries: dict[str, tuple[dict[str, object], datetime]]

    def __init__(self) -> None:
        self._entries = {}

    def read(self, key: str) -> tuple[dict[str, object], datetime] | None:
        return self._entries.get(key)

    def write(self, key: str, value: dict[str, object], stored_at: datetime) -> None:
        self._entries[key] = (value, stored_at)

    def remove(self, key: str) -> None:
        self._entries.pop(key, None)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class InsightCache:
    """Serves stored values only while they are younger than the TTL."""

    store: CacheStore
    ttl_seconds: int = DEFAULT_TTL_SECONDS
    clock: Callable[[], datetime] = field(default=_utcnow)

    def get(self, key: str) -> CachedInsight | None:
        """Return a fresh cached value, or None on a miss."""
        entry = self.store.read(key)
        if entry is None:
            return None
        value, stored_at = entry
        age = self.clock() - stored_at
        if age >= timedelta(seconds=self.ttl_seconds):
            self.store.remove(key)
            return None
        return CachedInsight(value=value, age=age)

    def put(self, key: str, value: dict[str, object]) -> None:
        """Store a value stamped with the current time."""
        self.store.write(key, value, self.clock())
