# interfaces.py
# SPDX-License-Identifier: MIT
"""Shared record type, decoder protocols, and error classes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .streams import StreamOpener

__all__ = [
    "Record",
    "RecordDecoder",
    "DecoderFactory",
    "RecordIOError",
    "RecordDecodeError",
    "ReaderStateError",
]


# -----------------------------------------------------------------------------
# Shared data types
# -----------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Record:
    """
    A single unit of iteration produced by a reader.

    Attributes:
        key (str): Decoded key for key/value containers; empty string for
            text-bearing encodings, which carry no keys.
        value (str): Decoded line (terminator stripped) or container value.
    """
    key: str
    value: str


# -----------------------------------------------------------------------------
# Errors
# -----------------------------------------------------------------------------

class RecordIOError(OSError):
    """An archive or container could not be opened because its structure is malformed."""


class RecordDecodeError(ValueError):
    """A record could not be decoded mid-iteration (charset, compression, or container damage)."""


class ReaderStateError(RuntimeError):
    """A reader operation was called in a state where it is not defined."""


# -----------------------------------------------------------------------------
# Protocols
# -----------------------------------------------------------------------------

@runtime_checkable
class RecordDecoder(Protocol):
    """Forward-only decoder over one encoded path.

    ``advance`` loads the next record and reports whether there was one; the
    ``current_*`` accessors read the loaded record. Decoders never count
    records; the reader facade does.
    """

    def advance(self) -> bool:
        ...

    def current_key(self) -> str:
        ...

    def current_value(self) -> str:
        ...

    def close(self) -> None:
        ...


class DecoderFactory(Protocol):
    """Callable building a decoder for one path."""

    def __call__(
        self,
        path: str,
        charset: str,
        *,
        opener: "StreamOpener",
        location: str,
        decoder_option: bool = False,
    ) -> RecordDecoder:
        ...
