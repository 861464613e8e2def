# container.py
# SPDX-License-Identifier: MIT
"""Key/value container decoder backed by Parquet.

A container is a Parquet file with a ``key`` and a ``value`` column, string
or binary, rows in write order. pyarrow opens it through its own filesystem
layer, so the decoder asks the stream opener for a filesystem rather than a
stream.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, Optional

import pyarrow as pa
import pyarrow.parquet as pq

from ..core.interfaces import RecordDecodeError, RecordIOError
from ..core.log import get_logger

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from ..core.streams import StreamOpener

log = get_logger(__name__)

__all__ = ["KEY_COLUMN", "VALUE_COLUMN", "ContainerKeyValueDecoder"]

KEY_COLUMN = "key"
VALUE_COLUMN = "value"
_BATCH_ROWS = 1024


class ContainerKeyValueDecoder:
    """Yield key/value pairs from a Parquet container in stored order.

    Binary cells are decoded with ``charset``; string cells are already
    Unicode (Arrow strings are UTF-8); null cells read as ``""``.

    Args:
        path (str): Container path, local or distributed.
        charset (str): Codec for binary key/value cells.
        opener (StreamOpener): Supplies the filesystem for ``path``.
        location (str): Location class of ``path``.
        decoder_option (bool): Reserved tuning flag; unused here.

    Raises:
        RecordIOError: If the file is not Parquet or lacks the key/value
            columns.
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
        self._key: Optional[str] = None
        self._value: Optional[str] = None
        self._exhausted = False
        self._parquet: Optional[pq.ParquetFile] = None
        filesystem, inner = opener.filesystem_for(path)
        self._source = filesystem.open_input_file(inner)
        try:
            self._parquet = pq.ParquetFile(self._source)
        except pa.ArrowInvalid as exc:
            self.close()
            raise RecordIOError(f"Not a readable key/value container: {path}: {exc}") from exc
        except BaseException:
            self.close()
            raise
        names = self._parquet.schema_arrow.names
        missing = [col for col in (KEY_COLUMN, VALUE_COLUMN) if col not in names]
        if missing:
            self.close()
            raise RecordIOError(f"Container {path} is missing column(s) {missing}; found {names}")
        meta = self._parquet.metadata
        log.debug("Container %s holds %d rows in %d row groups", path, meta.num_rows, meta.num_row_groups)
        self._rows: Iterator[tuple[Any, Any]] = self._iter_rows()

    def _iter_rows(self) -> Iterator[tuple[Any, Any]]:
        assert self._parquet is not None
        for batch in self._parquet.iter_batches(batch_size=_BATCH_ROWS, columns=[KEY_COLUMN, VALUE_COLUMN]):
            keys = batch.column(0).to_pylist()
            values = batch.column(1).to_pylist()
            yield from zip(keys, values)

    def _decode(self, cell: Any) -> str:
        if cell is None:
            return ""
        if isinstance(cell, (bytes, bytearray)):
            return bytes(cell).decode(self.charset)
        return str(cell)

    def advance(self) -> bool:
        if self._exhausted:
            return False
        try:
            raw_key, raw_value = next(self._rows)
        except StopIteration:
            self._exhausted = True
            self._key = self._value = None
            return False
        except (pa.ArrowInvalid, pa.ArrowNotImplementedError) as exc:
            raise RecordDecodeError(f"Failed to read container batch from {self.path}: {exc}") from exc
        try:
            key, value = self._decode(raw_key), self._decode(raw_value)
        except UnicodeDecodeError as exc:
            raise RecordDecodeError(f"Failed to decode record from {self.path}: {exc}") from exc
        self._key, self._value = key, value
        return True

    def current_key(self) -> str:
        return self._key if self._key is not None else ""

    def current_value(self) -> str:
        return self._value if self._value is not None else ""

    def close(self) -> None:
        if self._parquet is not None:
            self._parquet.close()
            self._parquet = None
        source = getattr(self, "_source", None)
        if source is not None:
            source.close()
            self._source = None
        self._exhausted = True
