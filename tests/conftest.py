from __future__ import annotations

import io

import pytest


class MemoryFilesystem:
    """In-memory stand-in for an HDFS client."""

    def __init__(self, files: dict[str, bytes] | None = None) -> None:
        self.files: dict[str, bytes] = dict(files or {})
        self.opened: list[tuple[str, str]] = []

    def _get(self, path: str) -> bytes:
        try:
            return self.files[path]
        except KeyError:
            raise FileNotFoundError(path) from None

    def open_input_stream(self, path: str) -> io.BytesIO:
        self.opened.append(("stream", path))
        return io.BytesIO(self._get(path))

    def open_input_file(self, path: str) -> io.BytesIO:
        self.opened.append(("file", path))
        return io.BytesIO(self._get(path))


@pytest.fixture
def memory_fs() -> MemoryFilesystem:
    return MemoryFilesystem()
