# __init__.py
# SPDX-License-Identifier: MIT
"""
Top-level package exports for :mod:`textrecords`.

textrecords reads line-oriented text and key/value containers one record at
a time, whatever the storage encoding (plain, gzip, zip with several text
parts, or a Parquet key/value container) and wherever the path lives (local
disk or HDFS).

Public surface
--------------
The symbols in :data:`PRIMARY_API` are the supported surface and are exported
via :data:`__all__`. Most callers need only :class:`RecordReader` or
:func:`iter_records`.

Examples:
    Explicit iteration::

        >>> from textrecords import RecordReader
        >>> reader = RecordReader("/data/part-00000.txt.gz", "UTF-8")
        >>> while reader.next():
        ...     print(reader.num_read(), reader.value())
        >>> reader.close()

    Config-driven iteration over HDFS::

        >>> from textrecords import iter_records, load_config_from_path
        >>> cfg = load_config_from_path("textrecords.toml")
        >>> for record in iter_records("hdfs://namenode:8020/logs/day.zip", config=cfg):
        ...     print(record.value)
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Package version
# ---------------------------------------------------------------------------
try:
    from importlib.metadata import version as _pkg_version

    __version__ = _pkg_version("textrecords")
except Exception:  # PackageNotFoundError or runtime env oddities
    __version__ = "0.0.0+unknown"


from .core.config import (
    HdfsConfig,
    LoggingConfig,
    ReaderConfig,
    TextRecordsConfig,
    load_config_from_path,
)
from .core.interfaces import (
    Record,
    RecordDecoder,
    RecordDecodeError,
    RecordIOError,
    ReaderStateError,
)
from .core.log import configure_logging, get_logger, temp_level
from .core.paths import (
    Encoding,
    Location,
    classify_encoding,
    classify_location,
    split_distributed_path,
)
from .core.reader import RecordReader, iter_records, open_reader
from .core.registries import DecoderRegistry, decoder_registry
from .core.streams import StreamOpener
from .sources.container import ContainerKeyValueDecoder
from .sources.text import GzipTextDecoder, PlainTextDecoder
from .sources.zipio import ZipMultiPartTextDecoder

# ---------------------------------------------------------------------------
# Stable export list
# ---------------------------------------------------------------------------
PRIMARY_API = [
    "__version__",
    "RecordReader",
    "open_reader",
    "iter_records",
    "Record",
    "Encoding",
    "Location",
    "classify_encoding",
    "classify_location",
    "split_distributed_path",
    "StreamOpener",
    "RecordDecoder",
    "DecoderRegistry",
    "decoder_registry",
    "PlainTextDecoder",
    "GzipTextDecoder",
    "ZipMultiPartTextDecoder",
    "ContainerKeyValueDecoder",
    "RecordIOError",
    "RecordDecodeError",
    "ReaderStateError",
    "TextRecordsConfig",
    "ReaderConfig",
    "HdfsConfig",
    "LoggingConfig",
    "load_config_from_path",
    "configure_logging",
    "get_logger",
    "temp_level",
]

__all__ = list(PRIMARY_API)
