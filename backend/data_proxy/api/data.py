"""Data artifact endpoints backed by the edge cache and storage chain.

This module exposes the read-only ``/data`` prefix the map front-end
fetches its JSON artifacts from. Every path below the prefix is accepted
and handed to the gateway, which answers from the edge cache or the first
backend in the configured chain that holds the object.

Example:
    Fetch the relay snapshot for one day:
        >>> response = client.get("/data/relays/2024-01-01.json")
        >>> response.headers["X-Served-From"]
        'digitalocean-spaces'
        >>> response.headers["X-Cache-Status"]
        'MISS'

    An empty path serves the index document:
        >>> client.get("/data/").headers["Content-Type"]
        'application/json'
"""

import fastapi
from fastapi import responses

from data_proxy.services import gateway

router = fastapi.APIRouter(prefix="/data", tags=["data"])


def _get_gateway(request: fastapi.Request) -> gateway.EdgeCacheGateway:
    """Resolve the gateway built during application startup.

    Args:
        request: Incoming request (injected by FastAPI).

    Returns:
        EdgeCacheGateway stored on the application state.
    """
    return request.app.state.gateway


@router.get("")
async def get_index(
    request: fastapi.Request,
    background_tasks: fastapi.BackgroundTasks,
    proxy: gateway.EdgeCacheGateway = fastapi.Depends(_get_gateway),  # noqa: B008
) -> responses.Response:
    """Serve the index document for the bare prefix."""
    return await proxy.handle(str(request.url), None, background_tasks)


@router.get("/{path:path}")
async def get_data(
    path: str,
    request: fastapi.Request,
    background_tasks: fastapi.BackgroundTasks,
    proxy: gateway.EdgeCacheGateway = fastapi.Depends(_get_gateway),  # noqa: B008
) -> responses.Response:
    """Serve a data artifact by path.

    Args:
        request: Incoming request; its origin and path key the edge cache.
        background_tasks: Tasks run after the response is sent.
        path: Path below ``/data/``; empty selects ``index.json``.
        proxy: Gateway (injected via FastAPI Depends).

    Returns:
        The artifact with cache and attribution headers, or a plain-text
        404 when no backend has it.
    """
    return await proxy.handle(str(request.url), path, background_tasks)
