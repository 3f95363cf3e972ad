"""Conversions between filesystem paths and file:// URIs."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import unquote, urlparse

_FILE_SCHEME = "file://"


def path_to_uri(path: Path) -> str:
    """Return the file:// URI for path, made absolute first."""
    return path.absolute().as_uri()


def uri_to_path(uri: str) -> Path:
    """Return the filesystem path for a file:// URI.

    Strings without the file scheme are treated as plain paths.
    """
    if not uri.startswith(_FILE_SCHEME):
        return Path(uri)
    return Path(unquote(urlparse(uri).path))


def uri_basename(uri: str) -> str:
    """Last path segment of a URI (used in hover text)."""
    return uri.rstrip("/").rsplit("/", 1)[-1]
