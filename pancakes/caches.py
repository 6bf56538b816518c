"""
In-memory caches for the Pancakes runtime.

Each cache is an explicit object created when the framework is initialized
and handed to the component that owns it, so tests can start from fresh
instances.

Invalidation semantics differ per cache:
    - ServiceCache: service name -> composed service, never invalidated
    - RouteCache: app name -> compiled routes, never invalidated
    - RouteInfoCache: "app||url" -> resolved RouteInfo, only ``query``
      is refreshed on hit
    - PageCache: "url||model" -> rendered page, LRU + TTL eviction

None of them lock. The runtime is single threaded asyncio and every value
stored is recomputable, so two concurrent misses only do redundant work.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar, runtime_checkable

from cachetools import TTLCache

if TYPE_CHECKING:
    from pancakes.factories.service_factory import ComposedService
    from pancakes.web.routes import RouteInfo

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")

DEFAULT_PAGE_CACHE_SIZE = 100
DEFAULT_PAGE_CACHE_TTL = 60.0  # seconds


class MemoCache(Generic[K, V]):
    """Unbounded dict-backed memo with no expiry."""

    def __init__(self) -> None:
        self._entries: dict[K, V] = {}

    def get(self, key: K) -> V | None:
        return self._entries.get(key)

    def set(self, key: K, value: V) -> None:
        self._entries[key] = value

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class ServiceCache(MemoCache[str, "ComposedService"]):
    """Composed services by service name."""


class RouteCache(MemoCache[str, "list[RouteInfo]"]):
    """Compiled routes by app name."""


class RouteInfoCache(MemoCache[str, "RouteInfo"]):
    """Resolved route info by ``app||url``."""

    @staticmethod
    def make_key(app_name: str, url: str) -> str:
        return f"{app_name}||{url}"


@runtime_checkable
class PageCache(Protocol):
    """
    Protocol for rendered page caching.

    Apps may pass their own implementation (Redis, memcached, ...) through
    the request callbacks as long as it follows this keyword contract.
    """

    async def get(self, *, key: str) -> Any | None:
        """Get cached render by key."""
        ...

    async def set(self, *, key: str, value: Any) -> None:
        """Store a render."""
        ...


class InMemoryPageCache:
    """
    Default page cache: LRU bounded by size with a per-entry TTL.

    Configuration:
        - maxsize: Maximum number of entries (default 100)
        - ttl: Seconds before an entry expires (default 60)
    """

    def __init__(
        self,
        maxsize: int = DEFAULT_PAGE_CACHE_SIZE,
        ttl: float = DEFAULT_PAGE_CACHE_TTL,
    ):
        self._maxsize = maxsize
        self._ttl = ttl
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)
        logger.debug(f"[page_cache] Using TTLCache (maxsize={maxsize}, ttl={ttl}s)")

    @property
    def maxsize(self) -> int:
        return self._maxsize

    @property
    def ttl(self) -> float:
        return self._ttl

    async def get(self, *, key: str) -> Any | None:
        """Get cached render, respecting TTL."""
        return self._cache.get(key)

    async def set(self, *, key: str, value: Any) -> None:
        """Store render; the oldest entry is evicted at capacity."""
        self._cache[key] = value

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
