# reader.py
# SPDX-License-Identifier: MIT
"""RecordReader: one iteration contract over every supported encoding.

A reader classifies its path once, builds the matching decoder once, and
then moves strictly forward::

    >>> reader = RecordReader("part-00000.txt.gz", "UTF-8")
    >>> while reader.next():
    ...     handle(reader.value())
    >>> reader.close()

States are Ready (no current record), Has-record, Exhausted and Closed.
``value()``, ``key()`` and ``current()`` are defined only in Has-record;
elsewhere they raise :class:`ReaderStateError`, whatever the encoding.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from typing import Any, Optional

from .config import DEFAULT_CHARSET, HdfsConfig, TextRecordsConfig, check_charset
from .interfaces import ReaderStateError, Record, RecordDecoder
from .log import get_logger
from .paths import Encoding, classify_encoding, classify_location
from .registries import DecoderRegistry, decoder_registry
from .streams import StreamOpener

__all__ = ["RecordReader", "open_reader", "iter_records"]

log = get_logger(__name__)


class RecordReader:
    """Forward-only record reader over plain, gzip, zip or container data.

    Args:
        path (str | os.PathLike[str]): Local path, ``/hdfs/...`` mount path,
            or ``hdfs://`` / ``dfs://`` URL.
        charset (str): Codec name used to decode records.
        encoding (str | None): Encoding override; None or ``"auto"`` derives
            it from the path suffix.
        decoder_option (bool): Decoder-specific tuning flag handed to the
            decoder unchanged. The built-in decoders ignore it. Defaults to
            False.
        opener (StreamOpener | None): Opens local and distributed streams.
            Defaults to a ``StreamOpener`` built from ``hdfs``.
        hdfs (HdfsConfig | None): HDFS client settings for the default
            opener; ignored when ``opener`` is given.
        registry (DecoderRegistry | None): Encoding to decoder mapping.
            Defaults to the built-in decoders.

    Raises:
        ValueError: Unknown charset or encoding name.
        OSError: The path cannot be opened; :class:`RecordIOError` when the
            archive or container structure is malformed.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        charset: str = DEFAULT_CHARSET,
        encoding: Optional[str] = None,
        decoder_option: bool = False,
        *,
        opener: StreamOpener | None = None,
        hdfs: HdfsConfig | None = None,
        registry: DecoderRegistry | None = None,
    ) -> None:
        self._decoder: Optional[RecordDecoder] = None
        self._current: Optional[Record] = None
        self._num_read = 0
        self._exhausted = False
        self._closed = False
        self.path = os.fspath(path)
        self.charset = check_charset(charset)
        enc = Encoding.normalize(encoding)
        self._encoding = classify_encoding(self.path) if enc == Encoding.AUTO else enc
        self._location = classify_location(self.path)
        self.decoder_option = bool(decoder_option)
        self._owns_opener = opener is None
        self._opener = opener or StreamOpener(hdfs)
        factory = (registry or decoder_registry).get(self._encoding)
        try:
            self._decoder = factory(
                self.path,
                self.charset,
                opener=self._opener,
                location=self._location,
                decoder_option=self.decoder_option,
            )
        except BaseException:
            if self._owns_opener:
                self._opener.close()
            raise
        log.debug("Opened %s (%s, %s, charset=%s)", self.path, self._encoding, self._location, self.charset)

    @classmethod
    def from_config(
        cls,
        path: str | os.PathLike[str],
        config: TextRecordsConfig,
        *,
        opener: StreamOpener | None = None,
    ) -> "RecordReader":
        """Build a reader using reader defaults and HDFS settings from ``config``."""
        rc = config.reader
        return cls(
            path,
            rc.charset,
            rc.encoding,
            rc.decoder_option,
            opener=opener,
            hdfs=config.hdfs,
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def encoding(self) -> str:
        return self._encoding

    @property
    def location(self) -> str:
        return self._location

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Iteration contract
    # ------------------------------------------------------------------
    def next(self) -> bool:
        """Advance to the next record.

        Returns:
            bool: True when a record was loaded; False once the data is
                exhausted, and on every call after that.

        Raises:
            RecordDecodeError: The next record's bytes could not be decoded.
            ReaderStateError: The reader is closed.
        """
        if self._closed:
            raise ReaderStateError(f"Reader for {self.path} is closed")
        if self._exhausted:
            return False
        assert self._decoder is not None
        if not self._decoder.advance():
            self._exhausted = True
            self._current = None
            log.debug("Exhausted %s after %d records", self.path, self._num_read)
            return False
        self._current = Record(key=self._decoder.current_key(), value=self._decoder.current_value())
        self._num_read += 1
        return True

    def current(self) -> Record:
        """Return the current record.

        Raises:
            ReaderStateError: Before the first successful ``next()``, after
                exhaustion, or after ``close()``.
        """
        if self._current is None or self._closed:
            if self._closed:
                state = "closed"
            elif self._exhausted:
                state = "exhausted"
            else:
                state = "positioned before the first record"
            raise ReaderStateError(f"No current record: reader for {self.path} is {state}")
        return self._current

    def value(self) -> str:
        """Return the current record's value (a line, or a container value)."""
        return self.current().value

    def key(self) -> str:
        """Return the current record's key; ``""`` for text encodings."""
        return self.current().key

    def num_read(self) -> int:
        """Return how many records ``next()`` has delivered."""
        return self._num_read

    def close(self) -> None:
        """Release the decoder and every handle it owns. Safe to repeat."""
        if self._closed:
            return
        self._closed = True
        self._current = None
        decoder, self._decoder = self._decoder, None
        try:
            if decoder is not None:
                decoder.close()
        finally:
            if self._owns_opener:
                self._opener.close()
        log.debug("Closed %s after %d records", self.path, self._num_read)

    # ------------------------------------------------------------------
    # Python protocols
    # ------------------------------------------------------------------
    def __iter__(self) -> Iterator[Record]:
        while self.next():
            yield self._current  # type: ignore[misc]

    def __enter__(self) -> "RecordReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"RecordReader(path={self.path!r}, encoding={self._encoding!r}, "
            f"location={self._location!r}, num_read={self._num_read})"
        )


def open_reader(
    path: str | os.PathLike[str],
    *,
    config: TextRecordsConfig | None = None,
    opener: StreamOpener | None = None,
    **overrides: Any,
) -> RecordReader:
    """Open a reader from an optional config, with keyword overrides.

    ``overrides`` may set ``charset``, ``encoding`` or ``decoder_option``
    and win over ``config.reader``.

    Raises:
        TypeError: On an unknown override name.
    """
    cfg = config or TextRecordsConfig()
    allowed = {"charset", "encoding", "decoder_option"}
    unknown = set(overrides) - allowed
    if unknown:
        raise TypeError(f"Unknown reader option(s): {sorted(unknown)}")
    rc = cfg.reader
    return RecordReader(
        path,
        overrides.get("charset", rc.charset),
        overrides.get("encoding", rc.encoding),
        overrides.get("decoder_option", rc.decoder_option),
        opener=opener,
        hdfs=cfg.hdfs,
    )


def iter_records(path: str | os.PathLike[str], **kwargs: Any) -> Iterator[Record]:
    """Yield every record of ``path``, closing the reader afterwards.

    Keyword arguments are forwarded to :func:`open_reader`.
    """
    reader = open_reader(path, **kwargs)
    try:
        yield from reader
    finally:
        reader.close()
