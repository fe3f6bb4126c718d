import logging
import struct

import pytest

from builders import chunk, chunk_boundaries, ephe, tile_payload
from ephefile.binary.errors import (
    BadMagic,
    ChecksumMismatch,
    ChunkLengthMismatch,
    ChunkOverrun,
    DecompressionFailed,
    SinkAborted,
    Truncated,
    UnsupportedVersion,
)
from ephefile.binary.reader import decode
from ephefile.models.options import DecodeOptions


class Collector:
    def __init__(self, reject_at=None):
        self.tiles = []
        self.views = []
        self.reject_at = reject_at

    def __call__(self, header, data, user):
        self.views.append(data)
        self.tiles.append((header, bytes(data), user))
        if self.reject_at is not None and len(self.tiles) == self.reject_at:
            return False
        return None


def test_skips_lowercase_chunk_and_decodes_tile():
    stars = b"\x10\x20\x30\x40" * 50
    buf = ephe(
        chunk(b"meta", b"opaque metadata, never a tile"),
        chunk(b"STAR", tile_payload(order=1, pixel=2, data=stars, version=3)),
    )
    sink = Collector()
    decode(buf, "ctx", sink)

    assert len(sink.tiles) == 1
    header, data, user = sink.tiles[0]
    assert (header.order, header.pixel) == (1, 2)
    assert header.nuniq == 18
    assert header.tag == "STAR" and header.version == 3
    assert header.uncompressed_size == len(stars)
    assert data == stars
    assert user == "ctx"


def test_tiles_delivered_in_file_order():
    pixels = [5, 0, 3, 11, 7]
    chunks = []
    for i, pix in enumerate(pixels):
        chunks.append(chunk(b"STAR", tile_payload(order=0, pixel=pix, data=bytes([i]) * 20)))
        chunks.append(chunk(b"pad ", b"\x00" * i))
    sink = Collector()
    decode(ephe(*chunks), None, sink)
    assert [h.pixel for h, _, _ in sink.tiles] == pixels
    assert [d[0] for _, d, _ in sink.tiles] == list(range(5))


def test_no_chunks():
    sink = Collector()
    decode(ephe(), None, sink)
    assert sink.tiles == []


def test_accepts_bytearray_memoryview_and_path(tmp_path):
    buf = ephe(chunk(b"STAR", tile_payload()))
    p = tmp_path / "tiles.eph"
    p.write_bytes(buf)
    for src in (bytearray(buf), memoryview(buf), p, str(p)):
        sink = Collector()
        decode(src, None, sink)
        assert len(sink.tiles) == 1


def test_bad_magic():
    sink = Collector()
    with pytest.raises(BadMagic):
        decode(b"XPHE" + struct.pack("<i", 2) + b"anything at all", None, sink)
    assert sink.tiles == []


def test_unsupported_version():
    buf = ephe(chunk(b"STAR", tile_payload()), version=3)
    sink = Collector()
    with pytest.raises(UnsupportedVersion):
        decode(buf, None, sink)
    assert sink.tiles == []


def test_truncated_at_every_offset():
    chunks = [
        chunk(b"meta", b"some header text"),
        chunk(b"STAR", tile_payload(order=2, pixel=9, data=b"abc" * 30)),
        chunk(b"GAIA", tile_payload(order=0, pixel=1, data=b"")),
    ]
    buf = ephe(*chunks)
    clean_ends = chunk_boundaries(*chunks)
    for cut in range(len(buf)):
        if cut in clean_ends:
            decode(buf[:cut], None, Collector())
            continue
        with pytest.raises(Truncated):
            decode(buf[:cut], None, Collector())


def test_size_mismatch_delivers_nothing():
    data = b"q" * 64
    buf = ephe(chunk(b"STAR", tile_payload(data=data, size=len(data) + 10)))
    sink = Collector()
    with pytest.raises(DecompressionFailed):
        decode(buf, None, sink)
    assert sink.tiles == []


def test_chunk_overrun_and_negative_length():
    payload = tile_payload()
    with pytest.raises(ChunkOverrun):
        decode(ephe(chunk(b"STAR", payload, length=len(payload) - 4)), None, Collector())
    with pytest.raises(ChunkOverrun):
        decode(ephe(chunk(b"meta", b"abc", length=-3)), None, Collector())


def test_tile_shorter_than_chunk():
    payload = tile_payload() + b"\x00\x00"
    with pytest.raises(ChunkLengthMismatch):
        decode(ephe(chunk(b"STAR", payload)), None, Collector())


def test_checksum_gap_and_strict_mode():
    buf = ephe(chunk(b"STAR", tile_payload(), crc=0))
    sink = Collector()
    decode(buf, None, sink)
    assert len(sink.tiles) == 1

    sink = Collector()
    with pytest.raises(ChecksumMismatch):
        decode(buf, None, sink, options=DecodeOptions(verify_checksum=True))
    assert sink.tiles == []

    good = ephe(chunk(b"meta", b"x"), chunk(b"STAR", tile_payload()))
    decode(good, None, Collector(), options=DecodeOptions(verify_checksum=True))


def test_sink_rejection_stops_decode():
    buf = ephe(*[chunk(b"STAR", tile_payload(order=1, pixel=p)) for p in range(4)])
    sink = Collector(reject_at=2)
    with pytest.raises(SinkAborted) as exc:
        decode(buf, None, sink)
    assert len(sink.tiles) == 2
    assert exc.value.offset is not None


def test_sink_exception_is_wrapped():
    def sink(header, data, user):
        raise KeyError("scene graph full")

    with pytest.raises(SinkAborted) as exc:
        decode(ephe(chunk(b"STAR", tile_payload())), None, sink)
    assert isinstance(exc.value.__cause__, KeyError)


def test_sink_view_is_released_after_call():
    sink = Collector()
    decode(ephe(chunk(b"STAR", tile_payload(data=b"keep me"))), None, sink)
    assert sink.tiles[0][1] == b"keep me"
    with pytest.raises(ValueError):
        sink.views[0].tobytes()


def test_big_endian_file():
    buf = ephe(
        chunk(b"STAR", tile_payload(order=4, pixel=100, endian=">"), endian=">"),
        endian=">",
    )
    sink = Collector()
    decode(buf, None, sink, options=DecodeOptions(byte_order="big"))
    assert (sink.tiles[0][0].order, sink.tiles[0][0].pixel) == (4, 100)
    with pytest.raises(UnsupportedVersion):
        decode(buf, None, Collector())


def test_debug_logging(caplog):
    caplog.set_level(logging.DEBUG, logger="ephefile")
    decode(ephe(chunk(b"STAR", tile_payload(order=1, pixel=2))), None, Collector())
    assert "tile STAR order=1 pix=2" in caplog.text


def test_order_30_tile():
    sink = Collector()
    decode(ephe(chunk(b"STAR", tile_payload(order=30, pixel=5))), None, sink)
    header = sink.tiles[0][0]
    assert (header.order, header.pixel) == (30, 5)
    assert header.nuniq == 4 * 4**30 + 5


def test_tile_over_one_mib_with_default_options():
    data = b"\x07" * (2 << 20)
    sink = Collector()
    decode(ephe(chunk(b"STAR", tile_payload(data=data))), None, sink)
    assert sink.tiles[0][0].uncompressed_size == 2 << 20
    assert sink.tiles[0][1] == data


@pytest.mark.parametrize("ret", [True, 1, -1, 0])
def test_only_false_rejects_a_tile(ret):
    seen = []

    def sink(header, data, user):
        seen.append(header.pixel)
        return ret

    buf = ephe(*[chunk(b"STAR", tile_payload(order=0, pixel=p)) for p in range(3)])
    decode(buf, None, sink)
    assert seen == [0, 1, 2]
