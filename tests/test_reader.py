from __future__ import annotations

import gzip
import io
import logging
import zipfile
from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from textrecords import (
    Encoding,
    Location,
    ReaderStateError,
    Record,
    RecordDecodeError,
    RecordIOError,
    RecordReader,
    StreamOpener,
    TextRecordsConfig,
    iter_records,
    open_reader,
)
from textrecords.core.registries import DecoderRegistry, default_decoder_registry

KEYS = ["aaa", "bbb", "ccc"]
VALUES = ["asdfawaaa", "bbawverwab", "awefaweccc"]


@pytest.fixture
def base(tmp_path: Path) -> Path:
    return tmp_path / "testcase.txt"


def _assert_reads_values(reader: RecordReader, expected: list[str]) -> None:
    for i, value in enumerate(expected):
        assert reader.next()
        assert reader.value() == value
        assert reader.num_read() == i + 1
    assert not reader.next()


def test_read_plain_text(base: Path) -> None:
    base.write_text("".join(f"{v}\n" for v in VALUES), encoding="utf-8")

    reader = RecordReader(str(base), "UTF-8", Encoding.PLAIN, False)
    _assert_reads_values(reader, VALUES)
    reader.close()


def test_read_gzipped_text(base: Path) -> None:
    path = Path(f"{base}.gz")
    with gzip.open(path, "wt", encoding="utf-8") as fp:
        for v in VALUES:
            fp.write(v + "\n")

    reader = RecordReader(str(path), "UTF-8", Encoding.GZIP, False)
    _assert_reads_values(reader, VALUES)
    reader.close()


def test_read_zipped_text_with_two_parts(base: Path) -> None:
    path = Path(f"{base}.zip")
    body = "".join(f"{v}\n" for v in VALUES)
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("part-00000", body)
        zf.writestr("part-00001", body)

    reader = RecordReader(str(path), "UTF-8", Encoding.ZIP, False)
    _assert_reads_values(reader, [VALUES[i % len(VALUES)] for i in range(len(VALUES) * 2)])
    reader.close()


def test_read_key_value_container(base: Path) -> None:
    path = Path(f"{base}.sf")
    pq.write_table(pa.table({"key": KEYS, "value": VALUES}), path)

    reader = RecordReader(str(path), "UTF-8", Encoding.CONTAINER, False)
    for i in range(len(VALUES)):
        assert reader.next()
        assert reader.key() == KEYS[i]
        assert reader.value() == VALUES[i]
        assert reader.num_read() == i + 1
    assert not reader.next()
    reader.close()


def test_abc_scenario(tmp_path: Path) -> None:
    path = tmp_path / "abc.txt"
    path.write_text("a\nb\nc\n")

    reader = RecordReader(path)
    seen = []
    while reader.next():
        seen.append((reader.value(), reader.num_read()))
    assert seen == [("a", 1), ("b", 2), ("c", 3)]
    reader.close()


@pytest.mark.parametrize(
    ("suffix", "expected"),
    [(".txt", Encoding.PLAIN), (".gz", Encoding.GZIP), (".zip", Encoding.ZIP), (".sf", Encoding.CONTAINER)],
)
def test_encoding_is_detected_from_suffix(tmp_path: Path, suffix: str, expected: str) -> None:
    path = tmp_path / f"data{suffix}"
    if expected == Encoding.GZIP:
        path.write_bytes(gzip.compress(b"x\n"))
    elif expected == Encoding.ZIP:
        with zipfile.ZipFile(path, "w") as zf:
            zf.writestr("p", "x\n")
    elif expected == Encoding.CONTAINER:
        pq.write_table(pa.table({"key": ["k"], "value": ["x"]}), path)
    else:
        path.write_text("x\n")

    with RecordReader(str(path), "UTF-8") as reader:
        assert reader.encoding == expected
        assert reader.location == Location.LOCAL
        assert reader.next()
        assert reader.value() == "x"


def test_explicit_encoding_overrides_suffix(tmp_path: Path) -> None:
    path = tmp_path / "compressed.log"
    path.write_bytes(gzip.compress(b"hidden\n"))

    with RecordReader(str(path), encoding="gzip") as reader:
        assert reader.encoding == Encoding.GZIP
        assert [r.value for r in reader] == ["hidden"]


def test_exhaustion_is_permanent(tmp_path: Path) -> None:
    path = tmp_path / "one.txt"
    path.write_text("only\n")

    reader = RecordReader(str(path))
    assert reader.next()
    for _ in range(3):
        assert reader.next() is False
        assert reader.num_read() == 1
    reader.close()


def test_value_and_key_outside_a_record_raise(tmp_path: Path) -> None:
    path = tmp_path / "one.txt"
    path.write_text("only\n")

    reader = RecordReader(str(path))
    with pytest.raises(ReaderStateError):
        reader.value()
    with pytest.raises(ReaderStateError):
        reader.key()
    assert reader.num_read() == 0

    assert reader.next()
    assert reader.key() == ""
    assert reader.current() == Record(key="", value="only")

    assert not reader.next()
    with pytest.raises(ReaderStateError, match="exhausted"):
        reader.value()
    reader.close()
    with pytest.raises(ReaderStateError, match="closed"):
        reader.value()


def test_close_is_repeatable_and_terminal(tmp_path: Path) -> None:
    path = tmp_path / "two.txt"
    path.write_text("a\nb\n")

    reader = RecordReader(str(path))
    assert reader.next()
    reader.close()
    reader.close()
    assert reader.closed
    with pytest.raises(ReaderStateError):
        reader.next()
    assert reader.num_read() == 1


def test_iteration_yields_records(tmp_path: Path) -> None:
    path = tmp_path / "pairs.sf"
    pq.write_table(pa.table({"key": KEYS, "value": VALUES}), path)

    with RecordReader(str(path)) as reader:
        records = list(reader)
        assert reader.num_read() == 3
    assert records == [Record(k, v) for k, v in zip(KEYS, VALUES)]
    assert reader.closed


def test_missing_path_fails_fast(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        RecordReader(str(tmp_path / "missing.txt"))


def test_malformed_archive_fails_fast(tmp_path: Path) -> None:
    path = tmp_path / "broken.zip"
    path.write_bytes(b"PK but not really")

    with pytest.raises(RecordIOError):
        RecordReader(str(path))


def test_decode_error_surfaces_on_next(tmp_path: Path) -> None:
    path = tmp_path / "latin.txt"
    path.write_bytes("café\n".encode("latin-1"))

    reader = RecordReader(str(path), "UTF-8")
    with pytest.raises(RecordDecodeError):
        reader.next()
    assert reader.num_read() == 0
    reader.close()

    with RecordReader(str(path), "latin-1") as reader:
        assert reader.next()
        assert reader.value() == "café"


def test_unknown_charset_and_encoding_are_rejected(tmp_path: Path) -> None:
    path = tmp_path / "a.txt"
    path.write_text("a\n")

    with pytest.raises(ValueError):
        RecordReader(str(path), "no-such-charset")
    with pytest.raises(ValueError):
        RecordReader(str(path), "UTF-8", "bzip2")


def test_distributed_zip_through_fake_client(memory_fs) -> None:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("part-00000", "a\nb\n")
        zf.writestr("part-00001", "c\n")
    memory_fs.files["/user/sxc/logs.zip"] = buf.getvalue()
    opener = StreamOpener(client_factory=lambda host, port: memory_fs)

    with RecordReader("hdfs://nlphead:6060/user/sxc/logs.zip", opener=opener) as reader:
        assert reader.location == Location.DISTRIBUTED
        assert [r.value for r in reader] == ["a", "b", "c"]
        assert reader.num_read() == 3
    assert memory_fs.opened == [("file", "/user/sxc/logs.zip")]


def test_decoder_option_reaches_the_decoder(tmp_path: Path) -> None:
    path = tmp_path / "a.txt"
    path.write_text("a\n")
    seen: list[bool] = []
    registry = default_decoder_registry()
    plain = registry.get(Encoding.PLAIN)

    def spy(*args, **kwargs):
        seen.append(kwargs["decoder_option"])
        return plain(*args, **kwargs)

    registry.register(Encoding.PLAIN, spy, replace=True)

    with RecordReader(str(path), "UTF-8", None, True, registry=registry) as reader:
        assert reader.decoder_option is True
        assert [r.value for r in reader] == ["a"]
    assert seen == [True]


def test_registry_rejects_duplicates_and_unknowns() -> None:
    registry = DecoderRegistry()
    registry.register("plain", lambda *a, **k: None)
    with pytest.raises(ValueError):
        registry.register("plain", lambda *a, **k: None)
    with pytest.raises(ValueError):
        registry.get("zip")
    with pytest.raises(ValueError):
        registry.register("auto", lambda *a, **k: None)
    assert registry.encodings() == ("plain",)


def test_open_reader_applies_config_and_overrides(tmp_path: Path) -> None:
    path = tmp_path / "data.bin"
    path.write_bytes(gzip.compress("中文\n".encode("gbk")))
    cfg = TextRecordsConfig()
    cfg.reader.encoding = "gzip"
    cfg.reader.charset = "UTF-8"

    with open_reader(str(path), config=cfg, charset="GBK") as reader:
        assert reader.encoding == Encoding.GZIP
        assert reader.charset == "GBK"
        assert [r.value for r in reader] == ["中文"]

    with pytest.raises(TypeError):
        open_reader(str(path), config=cfg, bogus=1)


def test_from_config_uses_reader_defaults(tmp_path: Path) -> None:
    path = tmp_path / "a.txt"
    path.write_text("x\n")
    cfg = TextRecordsConfig()
    cfg.reader.decoder_option = True

    with RecordReader.from_config(str(path), cfg) as reader:
        assert reader.decoder_option is True
        assert reader.next()


def test_iter_records_closes_reader(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "a.txt"
    path.write_text("1\n2\n3\n")
    closed: list[bool] = []
    original_close = RecordReader.close

    def tracking_close(self):
        closed.append(True)
        original_close(self)

    monkeypatch.setattr(RecordReader, "close", tracking_close)

    gen = iter_records(str(path))
    assert next(gen).value == "1"
    gen.close()
    assert closed == [True]

    assert [r.value for r in iter_records(str(path))] == ["1", "2", "3"]


def test_open_and_close_are_logged(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "a.txt"
    path.write_text("x\n")

    with caplog.at_level(logging.DEBUG, logger="textrecords"):
        with RecordReader(str(path)) as reader:
            list(reader)

    messages = [rec.getMessage() for rec in caplog.records]
    assert any(msg.startswith("Opened") for msg in messages)
    assert any("Closed" in msg and "after 1 records" in msg for msg in messages)


def test_valid_lines_precede_decode_error(tmp_path: Path) -> None:
    path = tmp_path / "mixed.txt"
    path.write_bytes(b"good1\ngood2\ncaf\xe9\n")

    reader = RecordReader(str(path), "UTF-8")
    assert reader.next() and reader.value() == "good1"
    assert reader.next() and reader.value() == "good2"
    with pytest.raises(RecordDecodeError):
        reader.next()
    assert reader.num_read() == 2
    reader.close()


def test_failed_open_releases_owned_opener(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    closed: list[bool] = []
    original_close = StreamOpener.close

    def tracking_close(self):
        closed.append(True)
        original_close(self)

    monkeypatch.setattr(StreamOpener, "close", tracking_close)

    with pytest.raises(FileNotFoundError):
        RecordReader(str(tmp_path / "missing.txt"))
    assert closed == [True]


def test_failed_open_leaves_caller_opener_alone(memory_fs) -> None:
    built: list[tuple] = []

    def factory(host, port):
        built.append((host, port))
        return memory_fs

    opener = StreamOpener(client_factory=factory)

    with pytest.raises(FileNotFoundError):
        RecordReader("/hdfs/user/sxc/missing.txt", opener=opener)
    assert opener.client(None, None) is memory_fs
    assert len(built) == 1
