"""Data models for backend fetches and cached responses.

This module defines the value types that flow between the storage
adapters, the fallback chain and the edge cache. A fetch against one
backend yields exactly one of Found, NotFound or Errored; a response kept
in the edge cache is stored as an immutable CachedResponse snapshot.

Example:
    Branching on a fetch result:
        >>> from data_proxy.storage.models import Found, Errored
        >>> result = await backend.fetch("relays/2024-01-01.json")
        >>> if isinstance(result, Found):
        ...     print(result.source, len(result.body))
        ... elif isinstance(result, Errored):
        ...     print(result.message)
"""

from __future__ import annotations

import dataclasses

Headers = tuple[tuple[str, str], ...]


@dataclasses.dataclass(frozen=True)
class Found:
    """Object bytes returned by a backend.

    Attributes:
        body: Complete object content.
        source: Served-from name of the backend, e.g. "cloudflare-r2".
    """

    body: bytes
    source: str


@dataclasses.dataclass(frozen=True)
class NotFound:
    """The backend was reachable but holds no object for the key."""


@dataclasses.dataclass(frozen=True)
class Errored:
    """A transport or binding failure while fetching from a backend.

    Attributes:
        cause: The exception raised by the underlying client.
        source: Served-from name of the backend that failed.
    """

    cause: BaseException
    source: str

    @property
    def message(self) -> str:
        return str(self.cause) or type(self.cause).__name__


FetchResult = Found | NotFound | Errored


@dataclasses.dataclass(frozen=True)
class ChainFailure:
    """The most recent backend error seen while walking the chain."""

    source: str
    message: str


@dataclasses.dataclass(frozen=True)
class CachedResponse:
    """Snapshot of an outbound response as kept by the edge cache.

    Entries are never mutated once stored; a cache hit builds a new
    response object from the snapshot.

    Attributes:
        status_code: HTTP status of the stored response.
        headers: Header name/value pairs in their original order.
        body: Complete response body.
    """

    status_code: int
    headers: Headers
    body: bytes

    def header(self, name: str) -> str | None:
        """Return the first header value matching ``name`` (case-insensitive)."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None
