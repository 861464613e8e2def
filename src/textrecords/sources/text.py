# text.py
# SPDX-License-Identifier: MIT

"""Line decoders for plain and gzip-compressed text."""

from __future__ import annotations

import codecs
import gzip
import re
import zlib
from typing import IO, TYPE_CHECKING, Optional

from ..core.interfaces import RecordDecodeError, RecordIOError
from ..core.log import get_logger

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from ..core.streams import StreamOpener

log = get_logger(__name__)

__all__ = ["LINE_DECODE_ERRORS", "GzipTextDecoder", "LineReader", "PlainTextDecoder"]

# Failures that mean the bytes themselves are bad, as opposed to I/O trouble.
LINE_DECODE_ERRORS: tuple[type[BaseException], ...] = (
    UnicodeDecodeError,
    EOFError,
    zlib.error,
    gzip.BadGzipFile,
)

_LINE_END = re.compile(r"\r\n|\r|\n")
_CHUNK_SIZE = 64 * 1024


class LineReader:
    """Split a byte stream into strictly decoded lines.

    Lines end at ``\\n``, ``\\r\\n`` or a lone ``\\r``; the terminator is
    dropped and a final unterminated line is still returned. A decode or
    read failure is held back until every line completed before the bad
    bytes has been handed out, then raised as :class:`RecordDecodeError`
    from the call that reaches it (and from every call after that).

    Args:
        stream (IO[bytes]): Binary stream; closed by :meth:`close`.
        charset (str): Codec used for decoding.
        label (str): Name used in error messages.
        read_errors (tuple): Exceptions from ``stream.read`` that mean the
            bytes are corrupt.
        chunk_size (int): Bytes requested per read.
    """

    def __init__(
        self,
        stream: IO[bytes],
        charset: str,
        label: str,
        *,
        read_errors: tuple[type[BaseException], ...] = LINE_DECODE_ERRORS,
        chunk_size: int = _CHUNK_SIZE,
    ) -> None:
        self._stream = stream
        self._decoder = codecs.getincrementaldecoder(charset)(errors="strict")
        self.label = label
        self._read_errors = read_errors
        self._chunk_size = chunk_size
        self._text = ""
        self._pos = 0
        self._eof = False
        self._error: Optional[BaseException] = None

    def readline(self) -> Optional[str]:
        """Return the next line without its terminator; None at end of stream.

        Raises:
            RecordDecodeError: The next line's bytes are corrupt or cannot
                be decoded.
        """
        while True:
            match = _LINE_END.search(self._text, self._pos)
            # a trailing "\r" may be the first half of "\r\n"
            if match is not None and not (
                match.group() == "\r" and match.end() == len(self._text) and self._can_fill()
            ):
                line = self._text[self._pos:match.start()]
                self._pos = match.end()
                return line
            if self._error is not None:
                raise RecordDecodeError(f"Failed to decode record from {self.label}: {self._error}") from self._error
            if self._eof:
                if self._pos < len(self._text):
                    line = self._text[self._pos:]
                    self._pos = len(self._text)
                    return line
                return None
            self._fill()

    def _can_fill(self) -> bool:
        return not self._eof and self._error is None

    def _fill(self) -> None:
        if self._pos:
            self._text = self._text[self._pos:]
            self._pos = 0
        try:
            chunk = self._stream.read(self._chunk_size)
        except self._read_errors as exc:
            self._error = exc
            return
        final = not chunk
        self._eof = final
        state = self._decoder.getstate()
        try:
            self._text += self._decoder.decode(chunk, final)
        except UnicodeDecodeError:
            self._decoder.setstate(state)
            self._text += self._decode_until_error(chunk, final)

    def _decode_until_error(self, chunk: bytes, final: bool) -> str:
        """Decode byte by byte so every character before the bad bytes survives."""
        parts: list[str] = []
        try:
            for i in range(len(chunk)):
                parts.append(self._decoder.decode(chunk[i:i + 1]))
            parts.append(self._decoder.decode(b"", final))
        except UnicodeDecodeError as exc:
            self._error = exc
        return "".join(parts)

    def close(self) -> None:
        self._stream.close()


class PlainTextDecoder:
    """Yield decoded lines of a text file, one per advance.

    Lines split on ``\\n``, ``\\r\\n`` and ``\\r``; a final line without a
    terminator is still a record.

    Args:
        path (str): Path to read.
        charset (str): Codec used to decode the bytes.
        opener (StreamOpener): Opens the byte stream for ``path``.
        location (str): Location class of ``path``.
        decoder_option (bool): Reserved tuning flag; unused here.
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
        self._value: Optional[str] = None
        self._exhausted = False
        self._handles: list[IO[bytes] | LineReader] = []
        raw = opener.open(path, location)
        self._handles.append(raw)
        try:
            self._lines = LineReader(self._wrap(raw), charset, path)
        except BaseException:
            self.close()
            raise
        self._handles.append(self._lines)

    def _wrap(self, raw: IO[bytes]) -> IO[bytes]:
        return raw

    def advance(self) -> bool:
        if self._exhausted:
            return False
        line = self._lines.readline()
        if line is None:
            self._exhausted = True
            self._value = None
            return False
        self._value = line
        return True

    def current_key(self) -> str:
        return ""

    def current_value(self) -> str:
        return self._value if self._value is not None else ""

    def close(self) -> None:
        # line reader first, then whatever sits beneath it
        while self._handles:
            self._handles.pop().close()
        self._exhausted = True


class GzipTextDecoder(PlainTextDecoder):
    """Like :class:`PlainTextDecoder`, but gunzips the stream first.

    The gzip header is probed when the decoder is built, so a file that is
    not gzip at all fails with :class:`RecordIOError` up front.
    """

    def _wrap(self, raw: IO[bytes]) -> IO[bytes]:
        gz = gzip.GzipFile(fileobj=raw, mode="rb")
        # GzipFile leaves fileobj open on close; raw is closed separately.
        self._handles.append(gz)
        try:
            gz.peek(1)
        except (gzip.BadGzipFile, EOFError, zlib.error) as exc:
            raise RecordIOError(f"Not a readable gzip stream: {self.path}: {exc}") from exc
        return gz
