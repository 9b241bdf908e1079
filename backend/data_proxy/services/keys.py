"""Storage key and media type resolution for requested data paths.

A request under ``/data/`` names an artifact by its path segments. This
module turns those segments into the canonical storage key shared by all
backends and picks the Content-Type served for that key.

Example:
    >>> normalize_path(["relays", "2024-01-01.json"])
    'relays/2024-01-01.json'
    >>> normalize_path(None)
    'index.json'
    >>> media_type_for("relays/2024-01-01.json")
    'application/json'
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

DEFAULT_KEY = "index.json"
DEFAULT_MEDIA_TYPE = "application/octet-stream"

MEDIA_TYPES = {
    "json": "application/json",
    "html": "text/html; charset=utf-8",
    "css": "text/css",
    "js": "application/javascript",
    "png": "image/png",
    "svg": "image/svg+xml",
    "ico": "image/x-icon",
    "txt": "text/plain",
}


def normalize_path(path: str | Sequence[str] | None) -> str:
    """Map raw path segments to a storage key.

    Lists are joined with ``/`` in order, a scalar is used verbatim and an
    absent or empty path falls back to DEFAULT_KEY. Keys are otherwise
    passed through untouched; the object stores scope their own key
    namespaces.

    Args:
        path: None, a single path string, or an ordered list of segments.

    Returns:
        Non-empty storage key.
    """
    if path is None:
        key = ""
    elif isinstance(path, str):
        key = path
    else:
        key = "/".join(path)

    return key.lstrip("/") or DEFAULT_KEY


def get_extension(key: str) -> str:
    """Lowercased text after the last dot, or "" when there is no dot."""
    _, dot, extension = key.rpartition(".")
    return extension.lower() if dot else ""


def media_type_for(key: str) -> str:
    return MEDIA_TYPES.get(get_extension(key), DEFAULT_MEDIA_TYPE)
