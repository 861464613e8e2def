# config.py
# SPDX-License-Identifier: MIT
"""Configuration models and helpers for record readers.

Declarative dataclasses cover reader defaults, the HDFS client used for
distributed paths, and package logging. Helpers serialize configurations
to JSON and load them from JSON or TOML.
"""
from __future__ import annotations

import codecs
import json
try:  # pragma: no cover - optional dependency
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover
    try:
        import tomli as tomllib  # type: ignore[assignment]
    except Exception:  # pragma: no cover
        tomllib = None  # type: ignore[assignment]
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Type, TypeVar, get_origin, get_type_hints

from pyarrow import fs as pafs

from .log import DEFAULT_FORMAT, PACKAGE_LOGGER_NAME, coerce_level, configure_logging, get_logger
from .paths import Encoding

log = get_logger(__name__)

DEFAULT_CHARSET = "UTF-8"


def check_charset(charset: str) -> str:
    """Return ``charset`` unchanged if Python knows a codec for it.

    Raises:
        ValueError: If no codec is registered under that name.
    """
    try:
        codecs.lookup(charset)
    except (LookupError, TypeError) as exc:
        raise ValueError(f"Unknown charset: {charset!r}") from exc
    return charset


# ---------------------------------------------------------------------------
# Reader defaults
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class ReaderConfig:
    """Defaults applied to readers built from a configuration.

    Attributes:
        charset (str): Codec name used to decode text and binary container
            cells.
        encoding (str | None): Encoding override (``plain``, ``gzip``,
            ``zip``, ``container``); None or ``auto`` detects it from the
            path suffix.
        decoder_option (bool): Decoder-specific tuning flag passed through
            to every decoder. The built-in decoders accept it and ignore it.
    """
    charset: str = DEFAULT_CHARSET
    encoding: Optional[str] = None
    decoder_option: bool = False

    def validate(self) -> None:
        check_charset(self.charset)
        if self.encoding is not None:
            self.encoding = Encoding.normalize(self.encoding)


# ---------------------------------------------------------------------------
# Distributed filesystem
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class HdfsConfig:
    """Connection settings for the HDFS client behind distributed paths.

    Paths that carry their own namenode (``hdfs://host:port/...``) override
    ``host`` and ``port``; ``/hdfs/...`` mount paths use these values.

    Attributes:
        host (str): Namenode host, or ``"default"`` to use ``fs.defaultFS``
            from the Hadoop configuration.
        port (int): Namenode port; 0 together with ``"default"``.
        user (str | None): User to connect as.
        kerb_ticket (str | None): Path to a Kerberos ticket cache.
        extra_conf (dict[str, str]): Extra Hadoop configuration pairs.
    """
    host: str = "default"
    port: int = 0
    user: Optional[str] = None
    kerb_ticket: Optional[str] = None
    extra_conf: Dict[str, str] = field(default_factory=dict)

    def build_client(self, host: Optional[str] = None, port: Optional[int] = None) -> pafs.HadoopFileSystem:
        """Construct a HadoopFileSystem client for ``host``/``port``.

        Args:
            host (str | None): Host override; defaults to ``self.host``.
            port (int | None): Port override; defaults to ``self.port``.

        Returns:
            pyarrow.fs.HadoopFileSystem: Connected client.
        """
        target_host = host or self.host
        target_port = self.port if port is None else port
        log.debug("Connecting HDFS client to %s:%s", target_host, target_port)
        return pafs.HadoopFileSystem(
            target_host,
            target_port,
            user=self.user,
            kerb_ticket=self.kerb_ticket,
            extra_conf=dict(self.extra_conf) or None,
        )


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class LoggingConfig:
    """Controls the package logger; set propagate=True/logger_name to
    integrate with host apps.
    """
    level: int | str = "INFO"
    propagate: bool = False
    fmt: Optional[str] = DEFAULT_FORMAT
    logger_name: str = PACKAGE_LOGGER_NAME

    def apply(self) -> None:
        """Apply this logging configuration to the package logger."""
        configure_logging(
            level=self.level,
            propagate=self.propagate,
            fmt=self.fmt,
            logger_name=self.logger_name or PACKAGE_LOGGER_NAME,
        )


# ---------------------------------------------------------------------------
# Master config
# ---------------------------------------------------------------------------

T = TypeVar("T")


@dataclass(slots=True)
class TextRecordsConfig:
    """Declarative settings for building record readers.

    Holds only serializable knobs. Open clients and decoders belong to the
    reader and its stream opener, never to this object.
    """
    reader: ReaderConfig = field(default_factory=ReaderConfig)
    hdfs: HdfsConfig = field(default_factory=HdfsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> None:
        """Validate charset and encoding, normalizing the encoding name.

        Raises:
            ValueError: On an unknown charset, encoding or logging level, or
                a negative port.
        """
        self.reader.validate()
        coerce_level(self.logging.level)
        if self.hdfs.port < 0:
            raise ValueError(f"hdfs.port must be >= 0; got {self.hdfs.port!r}.")

    # -------------------------
    # Serialization helpers
    # -------------------------
    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation of this configuration."""
        return _dataclass_to_dict(self)

    def to_json(self, path: Path | str, *, indent: int = 2) -> str:
        """Serialize the configuration to JSON and write it to disk.

        Args:
            path (Path | str): Target file path.
            indent (int): Indentation level passed to ``json.dumps``.

        Returns:
            str: String path to the written file.
        """
        target = Path(path)
        target.write_text(json.dumps(self.to_dict(), indent=indent, sort_keys=True), encoding="utf-8")
        return str(target)

    @classmethod
    def from_dict(cls: Type[T], data: Mapping[str, Any]) -> T:
        """Instantiate a configuration from a mapping such as :meth:`to_dict` output."""
        return _dataclass_from_dict(cls, data)

    @classmethod
    def from_json(cls: Type[T], path: Path | str) -> T:
        """Load a configuration from a JSON file."""
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.from_dict(payload)

    @classmethod
    def from_toml(cls: Type[T], path: Path | str) -> T:
        """
        Load a configuration from a TOML file.

        The TOML layout mirrors this dataclass: ``[reader]``, ``[hdfs]`` and
        ``[logging]`` tables.
        """
        if tomllib is None:
            raise RuntimeError(
                "TOML support requires Python 3.11+ (tomllib) or installing the 'tomli' package."
            )
        data = tomllib.loads(Path(path).read_bytes().decode("utf-8"))
        if not isinstance(data, Mapping):
            raise TypeError(f"Top-level TOML document must be a mapping; got {type(data).__name__}.")
        return cls.from_dict(data)


def load_config_from_path(path: str | Path) -> TextRecordsConfig:
    """Load and validate a TextRecordsConfig from a JSON or TOML file.

    Raises:
        ValueError: If the file extension is not ``.toml`` or ``.json``, or
            the loaded values fail validation.
    """
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix == ".toml":
        cfg = TextRecordsConfig.from_toml(p)
    elif suffix == ".json":
        cfg = TextRecordsConfig.from_json(p)
    else:
        raise ValueError(f"Unsupported config extension {p.suffix!r}; expected .toml or .json.")
    cfg.validate()
    return cfg


def _dataclass_to_dict(obj: Any) -> Dict[str, Any]:
    """Serialize a config section to a JSON-friendly dict, skipping None fields."""
    result: Dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if value is None:
            continue
        if is_dataclass(value):
            value = _dataclass_to_dict(value)
        elif isinstance(value, dict):
            value = {str(k): str(v) for k, v in value.items()}
        result[f.name] = value
    return result


def _dataclass_from_dict(cls: Type[T], data: Mapping[str, Any] | None) -> T:
    """Build config section ``cls`` from a mapping; unknown keys are ignored.

    Raises:
        TypeError: If ``data`` or a nested section is not a mapping.
    """
    if data is None:
        return cls()  # type: ignore[call-arg]
    if not isinstance(data, Mapping):
        raise TypeError(f"{cls.__name__} expects a table/object; got {type(data).__name__}.")
    hints = get_type_hints(cls)
    kwargs: Dict[str, Any] = {}
    for f in fields(cls):
        if f.name in data:
            kwargs[f.name] = _coerce_field(hints[f.name], data[f.name])
    return cls(**kwargs)  # type: ignore[arg-type]


def _coerce_field(annotation: Any, value: Any) -> Any:
    # Sections nest one level; extra_conf is the only mapping-valued field.
    if value is None:
        return None
    if isinstance(annotation, type) and is_dataclass(annotation):
        return _dataclass_from_dict(annotation, value)
    if get_origin(annotation) is dict:
        if not isinstance(value, Mapping):
            raise TypeError(f"Expected a table of strings; got {type(value).__name__}.")
        return {str(k): str(v) for k, v in value.items()}
    if annotation is int and isinstance(value, str):
        return int(value)
    return value


__all__ = [
    "DEFAULT_CHARSET",
    "HdfsConfig",
    "LoggingConfig",
    "ReaderConfig",
    "TextRecordsConfig",
    "check_charset",
    "load_config_from_path",
]
