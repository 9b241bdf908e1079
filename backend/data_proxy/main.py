"""FastAPI application entrypoint and configuration.

This module provides the main FastAPI application factory that sets up
logging, CORS middleware, the storage backends and edge cache used by the
data router, and exposes a health check endpoint for monitoring.

Example:
    The application can be run with uvicorn:
        $ uvicorn data_proxy.main:app --reload

    Or imported and used programmatically:
        >>> from data_proxy.main import app
        >>> # Use app in ASGI server
"""

import contextlib
import logging
from collections.abc import AsyncIterator

import fastapi
import httpx
from fastapi.middleware import cors

from data_proxy.api import data
from data_proxy.core import config
from data_proxy.services import chain, edge_cache, gateway
from data_proxy.storage import backends

LOG = logging.getLogger("data_proxy.main")


def build_gateway(
    settings: config.Settings,
    http_client: httpx.AsyncClient,
) -> gateway.EdgeCacheGateway:
    """Assemble the gateway from configuration.

    Args:
        settings: Application settings.
        http_client: Shared async HTTP client for HTTP-addressable backends.

    Returns:
        Gateway over the configured backends and an in-memory edge cache.
    """
    return gateway.EdgeCacheGateway(
        settings=settings,
        backends=backends.build_backends(settings, http_client),
        cache=edge_cache.InMemoryEdgeCache(
            max_entries=settings.edge_cache_max_entries,
        ),
    )


def create_app() -> fastapi.FastAPI:
    """Create and configure the FastAPI application.

    Sets up logging and CORS middleware, includes the data router, and adds
    a health check endpoint. Backends are built inside the application
    lifespan so the shared HTTP client is closed on shutdown.

    Returns:
        Configured FastAPI application instance ready for ASGI server.

    Example:
        The app can be used with uvicorn or other ASGI servers:
            >>> app = create_app()
            >>> # Or use the module-level app instance:
            >>> from data_proxy.main import app
    """
    settings = config.get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    @contextlib.asynccontextmanager
    async def lifespan(app: fastapi.FastAPI) -> AsyncIterator[None]:
        async with httpx.AsyncClient(
            timeout=settings.backend_timeout_seconds,
            headers={"User-Agent": settings.user_agent},
        ) as http_client:
            app.state.gateway = build_gateway(settings, http_client)
            LOG.info(
                "Data proxy ready (chain=%s)",
                ",".join(chain.describe_chain(app.state.gateway.chain()))
                or "empty",
            )
            yield

    app = fastapi.FastAPI(
        title="Tor Map Data Proxy",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(data.router)

    app.add_middleware(
        cors.CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_methods=["GET", "HEAD", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Served-From", "X-Cache-Status", "X-Error"],
    )

    @app.get("/health")
    async def health(
        proxy: gateway.EdgeCacheGateway = fastapi.Depends(data._get_gateway),  # noqa: B008
    ) -> dict[str, str | list[str]]:  # type: ignore[misc]
        """Health check endpoint for monitoring and load balancers.

        Returns:
            Dictionary with status "ok" and the served-from names of the
            backends currently in the fallback chain.
        """
        return {
            "status": "ok",
            "chain": chain.describe_chain(proxy.chain()),
        }

    return app


app = create_app()
