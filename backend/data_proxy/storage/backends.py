"""Storage backend adapters serving data artifacts by key.

Every adapter exposes the same capability, ``fetch(key) -> FetchResult``,
and converts its client's failure modes into the three fetch outcomes:

- SpacesBackend reads over plain HTTP from a public bucket URL
  (DigitalOcean Spaces). Any non-success status is NotFound; only
  transport failures are Errored.
- R2Backend reads through the S3 API of a Cloudflare R2 bucket. A missing
  key is NotFound; other client errors are Errored.
- InMemoryBackend holds objects in a dictionary for tests and local
  development.

Example:
    Build the registry of configured backends:
        >>> from data_proxy.storage import backends
        >>> registry = backends.build_backends(settings, http_client)
        >>> result = await registry["do"].fetch("index.json")
"""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING, Any, Protocol

import boto3
import httpx
from botocore import exceptions as botocore_exceptions
from fastapi import concurrency

from data_proxy.core import config
from data_proxy.storage import models

if TYPE_CHECKING:
    from collections.abc import Mapping

LOG = logging.getLogger("data_proxy.storage.backends")

SPACES_NAME = "digitalocean-spaces"
R2_NAME = "cloudflare-r2"

_MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "NotFound", "404"})


class StorageBackend(Protocol):
    """Protocol interface for one object store in the fallback chain.

    Attributes:
        identifier: Short name used in the configured order ("do", "r2").
        name: Served-from name reported in the X-Served-From header.
    """

    identifier: str
    name: str

    async def fetch(self, key: str) -> models.FetchResult: ...


class SpacesBackend:
    """Public HTTP bucket addressed as ``<base_url>/<key>``."""

    identifier = config.SPACES_ID
    name = SPACES_NAME

    def __init__(self, base_url: str, client: httpx.AsyncClient) -> None:
        """Initialize the adapter.

        Args:
            base_url: Bucket base URL; a trailing slash is ignored.
            client: Shared async HTTP client owned by the application.
        """
        self.base_url = base_url.rstrip("/")
        self._client = client

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    async def fetch(self, key: str) -> models.FetchResult:
        """GET the object and classify the outcome.

        Args:
            key: Storage key, appended verbatim to the base URL.

        Returns:
            Found on a 2xx response, NotFound on any other status, Errored
            when the request itself fails (connection, timeout, protocol).
        """
        try:
            response = await self._client.get(self.url_for(key))
        except httpx.HTTPError as exc:
            return models.Errored(cause=exc, source=self.name)

        if not response.is_success:
            LOG.debug(
                "%s returned %s for %s",
                self.name,
                response.status_code,
                key,
            )
            return models.NotFound()

        return models.Found(body=response.content, source=self.name)


class R2Backend:
    """Cloudflare R2 bucket read through its S3-compatible API.

    The boto3 client is blocking, so each read runs in FastAPI's
    threadpool. A backend without a client reports every key as missing
    and never touches the network.
    """

    identifier = config.R2_ID
    name = R2_NAME

    def __init__(self, bucket: str, client: Any | None) -> None:
        """Initialize the adapter.

        Args:
            bucket: R2 bucket name.
            client: boto3 S3 client, or None when no binding is available.
        """
        self.bucket = bucket
        self._client = client

    async def fetch(self, key: str) -> models.FetchResult:
        if self._client is None:
            return models.NotFound()

        try:
            body = await concurrency.run_in_threadpool(self._read, key)
        except (
            botocore_exceptions.BotoCoreError,
            botocore_exceptions.ClientError,
        ) as exc:
            return models.Errored(cause=exc, source=self.name)

        if body is None:
            LOG.debug("%s has no object for %s", self.name, key)
            return models.NotFound()

        return models.Found(body=body, source=self.name)

    def _read(self, key: str) -> bytes | None:
        """Read the full object body, or None when the key does not exist."""
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
        except botocore_exceptions.ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code in _MISSING_OBJECT_CODES:
                return None
            raise

        with contextlib.closing(response["Body"]) as stream:
            return stream.read()


class InMemoryBackend:
    """Simple in-memory store for tests and local development.

    Stores objects in a dictionary keyed by storage key. Data is lost when
    the process exits.
    """

    def __init__(
        self,
        identifier: str,
        name: str,
        objects: Mapping[str, bytes] | None = None,
    ) -> None:
        self.identifier = identifier
        self.name = name
        self._objects: dict[str, bytes] = dict(objects or {})

    def put(self, key: str, body: bytes) -> None:
        self._objects[key] = body

    async def fetch(self, key: str) -> models.FetchResult:
        body = self._objects.get(key)
        if body is None:
            return models.NotFound()

        return models.Found(body=body, source=self.name)


def make_r2_client(settings: config.Settings) -> Any:
    """Create a boto3 S3 client for the configured R2 account.

    Args:
        settings: Application settings with R2 endpoint and credentials.

    Returns:
        boto3 S3 client bound to the R2 endpoint.
    """
    secret = settings.r2_secret_access_key
    return boto3.client(
        "s3",
        endpoint_url=settings.r2_endpoint,
        aws_access_key_id=settings.r2_access_key_id,
        aws_secret_access_key=secret.get_secret_value() if secret else None,
        region_name=settings.r2_region,
    )


def build_backends(
    settings: config.Settings,
    http_client: httpx.AsyncClient,
) -> dict[str, StorageBackend]:
    """Create an adapter for every backend whose configuration is present.

    Backends without configuration are left out entirely; they are never
    part of a chain rather than failing at request time.

    Args:
        settings: Application settings.
        http_client: Shared async HTTP client for HTTP-addressable stores.

    Returns:
        Mapping of backend identifier to adapter.
    """
    registry: dict[str, StorageBackend] = {}
    if settings.spaces_configured:
        registry[config.SPACES_ID] = SpacesBackend(
            str(settings.do_spaces_url),
            http_client,
        )
    if settings.r2_configured:
        registry[config.R2_ID] = R2Backend(
            str(settings.r2_bucket_name),
            make_r2_client(settings),
        )

    return registry
