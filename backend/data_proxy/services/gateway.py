"""Read-through edge cache with ordered backend fallback.

Request lifecycle:

1. Look the request up in the edge cache by origin and path. A hit is
   served from a fresh copy of the cached entry, annotated HIT.
2. On a miss, walk the fallback chain in configured order. The first
   backend that returns the object wins; its response is served annotated
   MISS and a snapshot is stored in the edge cache after the response has
   been sent.
3. Backend errors are logged and remembered, then the next backend is
   tried. A missing object just moves on.
4. When the chain is exhausted, a 404 carrying the last error is served.
   It is never cached, so content that reappears is picked up at once.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from data_proxy.services import chain as chain_service
from data_proxy.services import edge_cache, keys
from data_proxy.services import responses as response_builder
from data_proxy.storage import models

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    import fastapi
    from fastapi import responses

    from data_proxy.core import config
    from data_proxy.storage import backends

LOG = logging.getLogger("data_proxy.services.gateway")


class EdgeCacheGateway:
    """Serve data artifacts from the edge cache or the backend chain.

    The gateway holds no per-request state. Settings and the backend
    registry are fixed at startup; the edge cache is the only shared
    mutable resource and is treated as opaque.

    Attributes:
        settings: Application settings (order and TTL).
        backends: Available backends keyed by identifier.
        cache: Shared edge cache.
    """

    def __init__(
        self,
        settings: config.Settings,
        backends: Mapping[str, backends.StorageBackend],
        cache: edge_cache.EdgeCacheProtocol,
    ) -> None:
        self.settings = settings
        self.backends = dict(backends)
        self.cache = cache

    def chain(self) -> list[backends.StorageBackend]:
        """Backends to try for a request, in configured order."""
        return chain_service.resolve_chain(
            self.settings.storage_order_list,
            self.backends,
        )

    async def handle(
        self,
        url: str,
        path: str | Sequence[str] | None,
        background_tasks: fastapi.BackgroundTasks,
    ) -> responses.Response:
        """Resolve one GET request for a data artifact.

        Args:
            url: Full request URL; origin and path form the cache key.
            path: Raw path segments below the data prefix.
            background_tasks: Request-scoped tasks run after the response is
                sent; used for the edge-cache write.

        Returns:
            The artifact (200, HIT or MISS) or a 404 with diagnostics.
        """
        lookup_key = edge_cache.cache_key(url)
        cached = await self.cache.match(lookup_key)
        if cached is not None:
            LOG.debug("Edge cache hit for %s", lookup_key)
            return response_builder.from_snapshot(cached)

        key = keys.normalize_path(path)
        fallback = self.chain()
        if not fallback:
            LOG.warning("No storage backend available for %s", key)

        last_error: models.ChainFailure | None = None
        for backend in fallback:
            result = await self._fetch(backend, key)
            if isinstance(result, models.Found):
                response = response_builder.build_response(
                    result.body,
                    key,
                    result.source,
                    ttl_seconds=self.settings.cache_ttl_seconds,
                )
                background_tasks.add_task(
                    self._store,
                    lookup_key,
                    response_builder.snapshot(response),
                )
                response.headers[response_builder.CACHE_STATUS_HEADER] = (
                    response_builder.MISS
                )
                return response

            if isinstance(result, models.Errored):
                LOG.error(
                    "%s error for %s: %s",
                    result.source,
                    key,
                    result.message,
                )
                last_error = models.ChainFailure(
                    source=result.source,
                    message=result.message,
                )

        return response_builder.build_not_found(key, last_error)

    async def _fetch(
        self,
        backend: backends.StorageBackend,
        key: str,
    ) -> models.FetchResult:
        """Fetch from one backend, containing any unexpected failure."""
        try:
            return await backend.fetch(key)
        except Exception as exc:  # noqa: BLE001
            return models.Errored(cause=exc, source=backend.name)

    async def _store(self, lookup_key: str, entry: models.CachedResponse) -> None:
        try:
            await self.cache.put(lookup_key, entry)
        except Exception:
            LOG.exception("Edge cache write failed for %s", lookup_key)
        else:
            LOG.debug("Stored %s in edge cache", lookup_key)
