# zipio.py
# SPDX-License-Identifier: MIT
"""Read the text parts of a zip archive as one continuous line stream."""

from __future__ import annotations

import zipfile
import zlib
from typing import IO, TYPE_CHECKING, Optional

from ..core.interfaces import RecordDecodeError, RecordIOError
from ..core.log import get_logger
from .text import LINE_DECODE_ERRORS, LineReader

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from ..core.streams import StreamOpener

log = get_logger(__name__)

__all__ = ["ZipMultiPartTextDecoder"]

# ZipFile.open raises RuntimeError for encrypted entries without a password.
_ENTRY_OPEN_ERRORS: tuple[type[BaseException], ...] = (
    zipfile.BadZipFile,
    NotImplementedError,
    RuntimeError,
    zlib.error,
)

# A CRC mismatch surfaces as BadZipFile on the read that finishes an entry.
_ENTRY_READ_ERRORS: tuple[type[BaseException], ...] = LINE_DECODE_ERRORS + (zipfile.BadZipFile,)


class ZipMultiPartTextDecoder:
    """Concatenate the lines of every file entry in a zip archive.

    Entries are read in the order they are stored in the archive; directory
    entries are skipped. Each entry is exhausted before the next one is
    opened, and the archive itself is opened only once. Callers cannot see
    where one entry ends and the next begins.

    The cursor is ``(entry_index, line_index)``: the entry currently open and
    the number of lines already taken from it.

    Args:
        path (str): Archive path.
        charset (str): Codec used to decode every entry.
        opener (StreamOpener): Opens the archive with random access.
        location (str): Location class of ``path``.
        decoder_option (bool): Reserved tuning flag; unused here.

    Raises:
        RecordIOError: If the archive's central directory cannot be read.
    """

    def __init__(
        self,
        path: str,
        charset: str,
        *,
        opener: "StreamOpener",
        location: str,
        decoder_option: bool = False,
    ) -> None:
        self.path = path
        self.charset = charset
        self.decoder_option = decoder_option
        self.entry_index = -1
        self.line_index = 0
        self._value: Optional[str] = None
        self._part: Optional[LineReader] = None
        self._archive: Optional[zipfile.ZipFile] = None
        self._exhausted = False
        self._raw: Optional[IO[bytes]] = opener.open(path, location, random_access=True)
        try:
            self._archive = zipfile.ZipFile(self._raw)
        except zipfile.BadZipFile as exc:
            self.close()
            raise RecordIOError(f"Not a readable zip archive: {path}: {exc}") from exc
        except BaseException:
            self.close()
            raise
        self._entries = [info for info in self._archive.infolist() if not info.is_dir()]
        log.debug("Zip archive %s holds %d text parts", path, len(self._entries))

    @property
    def entry_names(self) -> list[str]:
        return [info.filename for info in self._entries]

    def _open_next_entry(self) -> bool:
        """Move the cursor to the next entry; False when none remain."""
        self.entry_index += 1
        self.line_index = 0
        if self.entry_index >= len(self._entries):
            return False
        info = self._entries[self.entry_index]
        assert self._archive is not None
        try:
            member = self._archive.open(info)
        except _ENTRY_OPEN_ERRORS as exc:
            raise RecordDecodeError(f"Failed to open zip entry {info.filename!r} in {self.path}: {exc}") from exc
        self._part = LineReader(
            member, self.charset, f"{self.path}!{info.filename}", read_errors=_ENTRY_READ_ERRORS
        )
        log.debug("Reading zip entry %d (%s) of %s", self.entry_index, info.filename, self.path)
        return True

    def _close_part(self) -> None:
        if self._part is not None:
            self._part.close()
            self._part = None

    def advance(self) -> bool:
        if self._exhausted:
            return False
        while True:
            if self._part is None and not self._open_next_entry():
                self._exhausted = True
                self._value = None
                return False
            assert self._part is not None
            line = self._part.readline()
            if line is not None:
                self.line_index += 1
                self._value = line
                return True
            self._close_part()

    def current_key(self) -> str:
        return ""

    def current_value(self) -> str:
        return self._value if self._value is not None else ""

    def close(self) -> None:
        self._close_part()
        if self._archive is not None:
            self._archive.close()
            self._archive = None
        if self._raw is not None:
            self._raw.close()
            self._raw = None
        self._exhausted = True
