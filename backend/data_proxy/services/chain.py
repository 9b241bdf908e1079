"""Fallback chain resolution over the configured storage backends.

The chain is the configured backend order restricted to the backends that
are actually available. Availability filtering never reorders: the chain
is always a subsequence of the configured order. Unknown identifiers are
skipped and an empty chain is a valid result.

Example:
    >>> order = config.parse_storage_order("do,r2")
    >>> chain = resolve_chain(order, {"r2": r2_backend})
    >>> [backend.name for backend in chain]
    ['cloudflare-r2']
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from data_proxy.storage import backends


def resolve_chain(
    order: Iterable[str],
    registry: Mapping[str, backends.StorageBackend],
) -> list[backends.StorageBackend]:
    """Return the available backends in configured order.

    Args:
        order: Backend identifiers in the order they should be tried.
        registry: Available backends keyed by identifier.

    Returns:
        Adapters to try, possibly empty. An identifier listed twice is
        tried once, at its first position.
    """
    chain: list[backends.StorageBackend] = []
    seen: set[str] = set()
    for identifier in order:
        backend = registry.get(identifier)
        if backend is None or identifier in seen:
            continue
        seen.add(identifier)
        chain.append(backend)

    return chain


def describe_chain(chain: Sequence[backends.StorageBackend]) -> list[str]:
    """Served-from names of the chain members, for logs and health checks."""
    return [backend.name for backend in chain]
