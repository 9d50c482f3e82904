"""
Single-slot content cache.

Holds the most recent extraction artifact for a page context. Not keyed by
page identity: whoever owns the cache owns the page, and a navigation
should be followed by ``invalidate()``.
"""

import time
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from pagepal.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Cached artifact with its build time on the cache clock (seconds)."""

    artifact: T
    built_at: float


class ContentCache(Generic[T]):
    """
    Time-bounded single-slot cache.

    Example:
        >>> cache = ContentCache(ttl_ms=30000)
        >>> document = cache.get_or_build(lambda: extractor.extract(page))
    """

    def __init__(
        self,
        ttl_ms: int = 30000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize cache.

        Args:
            ttl_ms: Lifetime of an entry in milliseconds (0 disables reuse)
            clock: Monotonic time source in seconds
        """
        self.ttl_ms = ttl_ms
        self._clock = clock
        self._entry: CacheEntry[T] | None = None

    @property
    def entry(self) -> CacheEntry[T] | None:
        return self._entry

    def _is_fresh(self, entry: CacheEntry[T]) -> bool:
        age_ms = (self._clock() - entry.built_at) * 1000
        return age_ms < self.ttl_ms

    def get(self) -> T | None:
        """Return the cached artifact if it is still fresh."""
        entry = self._entry
        if entry is not None and self._is_fresh(entry):
            return entry.artifact
        return None

    def get_or_build(self, builder: Callable[[], T]) -> T:
        """
        Return the fresh artifact, or build and store a new one.

        A builder that raises leaves the previous slot untouched.

        Args:
            builder: Produces a new artifact

        Returns:
            Cached or newly built artifact
        """
        entry = self._entry
        if entry is not None and self._is_fresh(entry):
            logger.debug("Content cache hit")
            return entry.artifact

        artifact = builder()
        self._entry = CacheEntry(artifact=artifact, built_at=self._clock())
        return artifact

    def invalidate(self) -> None:
        """Drop the cached artifact."""
        self._entry = None
