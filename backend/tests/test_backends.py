"""Tests for the storage backend adapters.

This module covers the HTTP-addressable Spaces adapter (through an
httpx MockTransport), the R2 adapter (through a stub S3 client), the
in-memory adapter, and the availability-driven backend registry.

Key coverage:
    - Non-success HTTP statuses are NotFound, transport failures Errored.
    - A missing S3 key is NotFound, other client errors Errored.
    - Unconfigured backends are absent from the registry.
"""

from __future__ import annotations

import asyncio
import io
from typing import Any

import httpx
import pytest
from botocore import exceptions as botocore_exceptions

from data_proxy.core import config
from data_proxy.storage import backends, models


def _spaces(
    handler: Any,
    base_url: str = "https://data.example.org/",
) -> tuple[backends.SpacesBackend, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(record))
    return backends.SpacesBackend(base_url, client), seen


def test_spaces_found() -> None:
    """Test that a 200 response yields the body and served-from name."""
    backend, seen = _spaces(lambda _: httpx.Response(200, content=b"{}"))
    result = asyncio.run(backend.fetch("relays/2024-01-01.json"))
    assert result == models.Found(body=b"{}", source="digitalocean-spaces")
    assert str(seen[0].url) == (
        "https://data.example.org/relays/2024-01-01.json"
    )


@pytest.mark.parametrize("status", [403, 404, 500, 503])
def test_spaces_non_success_is_not_found(status: int) -> None:
    """Test that any non-2xx status is a try-next-backend signal."""
    backend, _ = _spaces(lambda _: httpx.Response(status))
    assert isinstance(asyncio.run(backend.fetch("index.json")), models.NotFound)


def test_spaces_transport_error_is_errored() -> None:
    """Test that connection failures are reported as Errored."""

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    backend, _ = _spaces(refuse)
    result = asyncio.run(backend.fetch("index.json"))
    assert isinstance(result, models.Errored)
    assert result.source == "digitalocean-spaces"
    assert result.message == "connection refused"


def test_spaces_trims_trailing_slash_once() -> None:
    """Test URL construction from base URL and key."""
    backend, _ = _spaces(lambda _: httpx.Response(404), "https://cdn.test/data/")
    assert backend.url_for("index.json") == "https://cdn.test/data/index.json"


class StubS3Client:
    """Minimal stand-in for a boto3 S3 client."""

    def __init__(
        self,
        objects: dict[str, bytes] | None = None,
        error_code: str | None = None,
    ) -> None:
        self.objects = objects or {}
        self.error_code = error_code
        self.requests: list[dict[str, str]] = []

    def get_object(self, **kwargs: str) -> dict[str, Any]:
        self.requests.append(kwargs)
        if self.error_code is not None:
            raise botocore_exceptions.ClientError(
                {"Error": {"Code": self.error_code, "Message": "denied"}},
                "GetObject",
            )
        body = self.objects.get(kwargs["Key"])
        if body is None:
            raise botocore_exceptions.ClientError(
                {"Error": {"Code": "NoSuchKey", "Message": "missing"}},
                "GetObject",
            )
        return {"Body": io.BytesIO(body)}


def test_r2_found() -> None:
    """Test that an existing object is read in full."""
    client = StubS3Client({"index.json": b'{"dates": []}'})
    backend = backends.R2Backend("tor-map", client)
    result = asyncio.run(backend.fetch("index.json"))
    assert result == models.Found(body=b'{"dates": []}', source="cloudflare-r2")
    assert client.requests == [{"Bucket": "tor-map", "Key": "index.json"}]


def test_r2_missing_key_is_not_found() -> None:
    """Test that NoSuchKey maps to NotFound."""
    backend = backends.R2Backend("tor-map", StubS3Client())
    assert isinstance(asyncio.run(backend.fetch("x.json")), models.NotFound)


def test_r2_client_error_is_errored() -> None:
    """Test that other S3 errors map to Errored."""
    backend = backends.R2Backend("tor-map", StubS3Client(error_code="AccessDenied"))
    result = asyncio.run(backend.fetch("x.json"))
    assert isinstance(result, models.Errored)
    assert "AccessDenied" in result.message


def test_r2_without_binding_is_not_found() -> None:
    """Test that a backend without a client never attempts a read."""
    backend = backends.R2Backend("tor-map", None)
    assert isinstance(asyncio.run(backend.fetch("x.json")), models.NotFound)


def test_in_memory_backend() -> None:
    """Test the in-memory store used for development."""
    backend = backends.InMemoryBackend("mem", "memory", {"a.json": b"1"})
    backend.put("b.json", b"2")
    assert asyncio.run(backend.fetch("b.json")) == models.Found(b"2", "memory")
    assert isinstance(asyncio.run(backend.fetch("c.json")), models.NotFound)


def test_build_backends_only_includes_configured(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Test that unconfigured backends are left out of the registry."""
    monkeypatch.setattr(backends, "make_r2_client", lambda _settings: StubS3Client())
    client = httpx.AsyncClient()

    none = config.Settings(_env_file=None)  # type: ignore[call-arg]
    assert backends.build_backends(none, client) == {}

    spaces_only = config.Settings(
        _env_file=None,  # type: ignore[call-arg]
        do_spaces_url="https://data.example.org",
    )
    assert list(backends.build_backends(spaces_only, client)) == ["do"]

    both = config.Settings(
        _env_file=None,  # type: ignore[call-arg]
        do_spaces_url="https://data.example.org",
        r2_bucket_name="tor-map",
        r2_endpoint="https://account.r2.cloudflarestorage.com",
        r2_access_key_id="key",
        r2_secret_access_key="secret",
    )
    registry = backends.build_backends(both, client)
    assert isinstance(registry["do"], backends.SpacesBackend)
    assert isinstance(registry["r2"], backends.R2Backend)


def test_make_r2_client_uses_endpoint() -> None:
    """Test that the boto3 client targets the R2 endpoint."""
    settings = config.Settings(
        _env_file=None,  # type: ignore[call-arg]
        r2_bucket_name="tor-map",
        r2_endpoint="https://account.r2.cloudflarestorage.com",
        r2_access_key_id="key",
        r2_secret_access_key="secret",
    )
    client = backends.make_r2_client(settings)
    assert client.meta.endpoint_url == "https://account.r2.cloudflarestorage.com"
