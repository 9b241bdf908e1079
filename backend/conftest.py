"""Pytest configuration and shared fakes for the data proxy tests."""

from __future__ import annotations

import pathlib
import sys

import pytest

BACKEND_ROOT = pathlib.Path(__file__).resolve().parent

if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from data_proxy.storage import models  # noqa: E402


class CountingBackend:
    """Backend double returning a fixed result and counting fetches."""

    def __init__(
        self,
        identifier: str,
        name: str,
        objects: dict[str, bytes] | None = None,
        error: BaseException | None = None,
    ) -> None:
        self.identifier = identifier
        self.name = name
        self.objects = dict(objects or {})
        self.error = error
        self.calls: list[str] = []

    async def fetch(self, key: str) -> models.FetchResult:
        self.calls.append(key)
        if self.error is not None:
            return models.Errored(cause=self.error, source=self.name)
        body = self.objects.get(key)
        if body is None:
            return models.NotFound()
        return models.Found(body=body, source=self.name)


@pytest.fixture
def counting_backend() -> type[CountingBackend]:
    """Expose the CountingBackend class to tests."""
    return CountingBackend
