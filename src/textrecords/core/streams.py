# streams.py
# SPDX-License-Identifier: MIT
"""Open byte streams for local or distributed record paths."""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import IO, Any, Dict, Optional, Tuple

from pyarrow import fs as pafs

from .config import HdfsConfig
from .log import get_logger
from .paths import Location, classify_location, split_distributed_path

__all__ = ["ClientFactory", "StreamOpener"]

log = get_logger(__name__)

# (host, port) -> filesystem client exposing open_input_stream/open_input_file
ClientFactory = Callable[[Optional[str], Optional[int]], Any]


class StreamOpener:
    """Open binary streams, routing distributed paths through an HDFS client.

    The HDFS settings are an explicit dependency rather than global state.
    Tests pass ``client_factory`` to substitute an in-memory filesystem; any
    object with ``open_input_stream(path)`` and ``open_input_file(path)``
    will do.

    Args:
        hdfs (HdfsConfig | None): Client settings; defaults to
            ``HdfsConfig()``.
        client_factory (ClientFactory | None): Builds a client for a
            (host, port) pair. Defaults to ``hdfs.build_client``.
    """

    def __init__(
        self,
        hdfs: HdfsConfig | None = None,
        *,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.hdfs = hdfs or HdfsConfig()
        self._client_factory = client_factory or self.hdfs.build_client
        self._clients: Dict[Tuple[Optional[str], Optional[int]], Any] = {}

    def client(self, host: Optional[str] = None, port: Optional[int] = None) -> Any:
        """Return the cached client for ``host``/``port``, creating it on first use."""
        key = (host, port)
        client = self._clients.get(key)
        if client is None:
            client = self._client_factory(host, port)
            self._clients[key] = client
            log.debug("Created distributed filesystem client for %s:%s", host or "default", port or "default")
        return client

    def open(
        self,
        path: str | os.PathLike[str],
        location: Optional[str] = None,
        *,
        random_access: bool = False,
    ) -> IO[bytes]:
        """Open ``path`` for binary reading.

        Args:
            path (str | os.PathLike[str]): Path to open.
            location (str | None): ``Location.LOCAL`` or
                ``Location.DISTRIBUTED``; None classifies the path.
            random_access (bool): Request a seekable stream. Distributed
                reads then use ``open_input_file`` instead of
                ``open_input_stream``.

        Returns:
            IO[bytes]: Readable binary stream; the caller closes it.

        Raises:
            OSError: Missing or unreadable paths and client transport errors,
                propagated unchanged.
        """
        text = os.fspath(path)
        if location is None:
            location = classify_location(text)
        if location == Location.DISTRIBUTED:
            target = split_distributed_path(text)
            client = self.client(target.host, target.port)
            if random_access:
                return client.open_input_file(target.path)
            return client.open_input_stream(target.path)
        return open(text, "rb")

    def filesystem_for(self, path: str | os.PathLike[str]) -> tuple[Any, str]:
        """Return a pyarrow-style filesystem and the path inside it.

        Local paths map to ``pyarrow.fs.LocalFileSystem`` and their absolute
        form; distributed paths map to the cached client and inner path.
        """
        text = os.fspath(path)
        if classify_location(text) == Location.DISTRIBUTED:
            target = split_distributed_path(text)
            return self.client(target.host, target.port), target.path
        return pafs.LocalFileSystem(), os.path.abspath(text)

    def close(self) -> None:
        """Forget cached clients."""
        self._clients.clear()
