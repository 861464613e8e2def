# registries.py
# SPDX-License-Identifier: MIT
"""Registry mapping encoding classes to decoder factories."""
from __future__ import annotations

from .interfaces import DecoderFactory
from .paths import Encoding

__all__ = ["DecoderRegistry", "decoder_registry", "default_decoder_registry"]


class DecoderRegistry:
    """Registry for decoder factories keyed by encoding class."""

    def __init__(self) -> None:
        self._factories: dict[str, DecoderFactory] = {}

    def register(self, encoding: str, factory: DecoderFactory, *, replace: bool = False) -> None:
        """Register ``factory`` as the decoder for ``encoding``.

        Raises:
            ValueError: If ``encoding`` is ``auto`` or unknown, or already has
                a factory and ``replace`` is False.
        """
        enc = Encoding.normalize(encoding)
        if enc == Encoding.AUTO:
            raise ValueError("Cannot register a decoder for 'auto'")
        if not replace and enc in self._factories:
            raise ValueError(f"Decoder for encoding {enc!r} is already registered")
        self._factories[enc] = factory

    def get(self, encoding: str) -> DecoderFactory:
        """Return the factory for a concrete encoding.

        Raises:
            ValueError: If no decoder is registered for ``encoding``.
        """
        enc = Encoding.normalize(encoding)
        factory = self._factories.get(enc)
        if factory is None:
            raise ValueError(f"No decoder registered for encoding {encoding!r}")
        return factory

    def encodings(self) -> tuple[str, ...]:
        """Return registered encodings in registration order."""
        return tuple(self._factories)


def default_decoder_registry() -> DecoderRegistry:
    """Build a registry holding the four built-in decoders."""
    from ..sources.container import ContainerKeyValueDecoder
    from ..sources.text import GzipTextDecoder, PlainTextDecoder
    from ..sources.zipio import ZipMultiPartTextDecoder

    registry = DecoderRegistry()
    registry.register(Encoding.PLAIN, PlainTextDecoder)
    registry.register(Encoding.GZIP, GzipTextDecoder)
    registry.register(Encoding.ZIP, ZipMultiPartTextDecoder)
    registry.register(Encoding.CONTAINER, ContainerKeyValueDecoder)
    return registry


decoder_registry = default_decoder_registry()
