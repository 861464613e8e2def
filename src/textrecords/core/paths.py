# paths.py
# SPDX-License-Identifier: MIT
"""Classify record paths by storage location and byte encoding.

Everything here is pure string inspection: no filesystem access, no errors
for odd inputs. Any path string is classifiable.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

__all__ = [
    "Encoding",
    "Location",
    "DistributedPath",
    "classify_location",
    "classify_encoding",
    "split_distributed_path",
]


class Encoding:
    """Byte-level formats a record path can be stored in.

    ``AUTO`` is not a format; it asks the reader to derive one from the path.
    """

    PLAIN = "plain"
    GZIP = "gzip"
    ZIP = "zip"
    CONTAINER = "container"
    AUTO = "auto"
    ALL = (PLAIN, GZIP, ZIP, CONTAINER)

    @classmethod
    def normalize(cls, value: Optional[str]) -> str:
        enc = (value or cls.AUTO).strip().lower()
        if enc != cls.AUTO and enc not in cls.ALL:
            raise ValueError(f"Invalid encoding: {value!r}. Expected one of {sorted(cls.ALL)} or 'auto'")
        return enc


class Location:
    """Where a path resolves: local disk or a distributed filesystem."""

    LOCAL = "local"
    DISTRIBUTED = "distributed"


# Suffix -> encoding. Anything unmatched is plain text.
_SUFFIX_ENCODINGS: tuple[tuple[str, str], ...] = (
    (".gz", Encoding.GZIP),
    (".zip", Encoding.ZIP),
    (".sf", Encoding.CONTAINER),
)

_DISTRIBUTED_MOUNT = "/hdfs/"
_DISTRIBUTED_SCHEMES = ("dfs://", "hdfs://")


@dataclass(frozen=True, slots=True)
class DistributedPath:
    """A distributed path split into client coordinates and inner path.

    Attributes:
        host (str | None): Namenode host, or None for the configured default.
        port (int | None): Namenode port, or None for the configured default.
        path (str): Absolute path inside the distributed filesystem.
    """

    host: Optional[str]
    port: Optional[int]
    path: str


def _as_text(path: str | os.PathLike[str]) -> str:
    return os.fspath(path)


def classify_location(path: str | os.PathLike[str]) -> str:
    """Return ``Location.DISTRIBUTED`` for HDFS-style paths, else local.

    Distributed paths either start with the ``/hdfs/`` mount segment or use
    the ``dfs://`` or ``hdfs://`` scheme.
    """
    text = _as_text(path)
    if text.startswith(_DISTRIBUTED_MOUNT):
        return Location.DISTRIBUTED
    if text.startswith(_DISTRIBUTED_SCHEMES):
        return Location.DISTRIBUTED
    return Location.LOCAL


def classify_encoding(path: str | os.PathLike[str]) -> str:
    """Return the encoding implied by the path suffix.

    Only the final suffix matters: ``a.txt.gz`` is gzip, ``a.txt`` and
    ``file-name-without-extension`` are plain text.
    """
    text = _as_text(path)
    for suffix, encoding in _SUFFIX_ENCODINGS:
        if text.endswith(suffix):
            return encoding
    return Encoding.PLAIN


def split_distributed_path(path: str | os.PathLike[str]) -> DistributedPath:
    """Resolve a distributed path to (host, port, inner path).

    Args:
        path (str | os.PathLike[str]): Path classified as distributed.

    Returns:
        DistributedPath: Host and port are None when the path relies on the
            default cluster (the ``/hdfs/`` mount form).

    Raises:
        ValueError: If the path is not a distributed path, or its port is
            not a number.
    """
    text = _as_text(path)
    if text.startswith(_DISTRIBUTED_MOUNT):
        inner = text[len(_DISTRIBUTED_MOUNT) - 1:]
        return DistributedPath(host=None, port=None, path=inner)
    if not text.startswith(_DISTRIBUTED_SCHEMES):
        raise ValueError(f"Not a distributed path: {text!r}")
    parts = urlsplit(text)
    try:
        port = parts.port
    except ValueError as exc:
        raise ValueError(f"Invalid port in distributed path: {text!r}") from exc
    inner = parts.path or "/"
    return DistributedPath(host=parts.hostname or None, port=port, path=inner)
