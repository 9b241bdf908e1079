"""Shared edge cache in front of the backend chain.

The gateway only ever looks entries up and stores new ones; expiry and
eviction belong to the cache itself. EdgeCacheProtocol is the seam for
that external cache, and InMemoryEdgeCache is the process-local
implementation used by default and in tests. It honours the max-age the
response carries, preferring the CDN-scoped directive the way a CDN does.
"""

from __future__ import annotations

import collections
import re
import time
import urllib.parse
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable

    from data_proxy.storage import models

_MAX_AGE = re.compile(r"(?:^|[,\s])(?:s-)?max-age=(\d+)", re.IGNORECASE)


def cache_key(url: str) -> str:
    """Derive the lookup identity of a request URL.

    Only scheme, host and path take part; the query string is ignored and
    the method is always GET.

    Example:
        >>> cache_key("https://map.example.org/data/index.json?v=2")
        'GET https://map.example.org/data/index.json'
    """
    parts = urllib.parse.urlsplit(str(url))
    return f"GET {parts.scheme}://{parts.netloc}{parts.path}"


def max_age(entry: models.CachedResponse) -> int | None:
    """Seconds an entry may be kept, from its cache-control headers."""
    for name in ("CDN-Cache-Control", "Cache-Control"):
        directive = entry.header(name)
        if not directive:
            continue
        match = _MAX_AGE.search(directive)
        if match:
            return int(match.group(1))

    return None


class EdgeCacheProtocol(Protocol):
    """Protocol interface for the shared response cache."""

    async def match(self, key: str) -> models.CachedResponse | None: ...

    async def put(self, key: str, entry: models.CachedResponse) -> None: ...


class InMemoryEdgeCache:
    """Bounded in-process response cache with per-entry TTL.

    Entries expire after the max-age they carry; entries with no positive
    max-age are not stored. When full, the oldest stored entry is evicted.
    Entries are immutable snapshots, so handing one out never exposes
    mutable cache state.
    """

    def __init__(
        self,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_entries = max_entries
        self._clock = clock
        self._entries: collections.OrderedDict[
            str, tuple[float, models.CachedResponse]
        ] = collections.OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    async def match(self, key: str) -> models.CachedResponse | None:
        stored = self._entries.get(key)
        if stored is None:
            return None

        expires_at, entry = stored
        if expires_at <= self._clock():
            self._entries.pop(key, None)
            return None

        return entry

    async def put(self, key: str, entry: models.CachedResponse) -> None:
        ttl = max_age(entry)
        if not ttl:
            return

        self._entries.pop(key, None)
        self._entries[key] = (self._clock() + ttl, entry)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
