"""Outbound response construction for served data artifacts.

Successful responses share one header contract regardless of the backend
that produced the bytes: media type from the storage key, identical public
max-age for browsers and the CDN, the backend's served-from name and an
unrestricted CORS origin. The X-Cache-Status annotation is left to the
caller, which knows whether the response came from the edge cache.
"""

from __future__ import annotations

from fastapi import responses

from data_proxy.services import keys
from data_proxy.storage import models

CACHE_STATUS_HEADER = "X-Cache-Status"
SERVED_FROM_HEADER = "X-Served-From"
ERROR_HEADER = "X-Error"
HIT = "HIT"
MISS = "MISS"
NOT_FOUND_ERROR = "not-found"

_MAX_ERROR_LENGTH = 200


def cache_control(ttl_seconds: int) -> str:
    return f"public, max-age={ttl_seconds}"


def build_response(
    body: bytes,
    key: str,
    source: str,
    ttl_seconds: int = 300,
) -> responses.Response:
    """Wrap backend bytes in the uniform 200 response.

    Args:
        body: Object content.
        key: Storage key, used to pick the Content-Type.
        source: Served-from name of the backend.
        ttl_seconds: max-age for Cache-Control and CDN-Cache-Control.

    Returns:
        Response without an X-Cache-Status header.
    """
    policy = cache_control(ttl_seconds)
    return responses.Response(
        content=body,
        status_code=200,
        headers={
            "Content-Type": keys.media_type_for(key),
            "Cache-Control": policy,
            "CDN-Cache-Control": policy,
            SERVED_FROM_HEADER: source,
            "Access-Control-Allow-Origin": "*",
        },
    )


def header_safe(message: str) -> str:
    """Collapse an error message into a single-line, latin-1 header value."""
    flat = " ".join(message.split())
    flat = flat.encode("latin-1", errors="replace").decode("latin-1")
    return flat[:_MAX_ERROR_LENGTH] or NOT_FOUND_ERROR


def build_not_found(
    key: str,
    last_error: models.ChainFailure | None,
) -> responses.Response:
    """Plain-text 404 returned when no backend produced the object.

    Args:
        key: Storage key that was requested.
        last_error: Most recent backend failure, if any backend errored.

    Returns:
        404 response annotated as a cache miss with an X-Error header.
    """
    error = header_safe(last_error.message) if last_error else NOT_FOUND_ERROR
    return responses.Response(
        content=f"Not Found: {key}",
        status_code=404,
        headers={
            "Content-Type": "text/plain",
            CACHE_STATUS_HEADER: MISS,
            ERROR_HEADER: error,
            "Access-Control-Allow-Origin": "*",
        },
    )


def snapshot(response: responses.Response) -> models.CachedResponse:
    """Copy a response into an immutable edge-cache entry.

    The X-Cache-Status annotation is never stored; it describes how a
    response was served, not the content.
    """
    headers = tuple(
        (name, value)
        for name, value in response.headers.items()
        if name.lower() != CACHE_STATUS_HEADER.lower()
    )
    return models.CachedResponse(
        status_code=response.status_code,
        headers=headers,
        body=bytes(response.body),
    )


def from_snapshot(
    entry: models.CachedResponse,
    cache_status: str = HIT,
) -> responses.Response:
    """Build a fresh response from a cached entry.

    Only the new response object is annotated; the stored entry is left
    untouched so later lookups see the original headers.
    """
    response = responses.Response(
        content=entry.body,
        status_code=entry.status_code,
        headers=dict(entry.headers),
    )
    response.headers[CACHE_STATUS_HEADER] = cache_status
    return response
