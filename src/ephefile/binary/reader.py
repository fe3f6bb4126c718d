from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Any, Callable, Iterator, Literal, Optional, Tuple, Union

from .codecs.bytecursor import Cursor
from .codecs.chunk import Chunk, start_chunk
from .codecs.file_header import decode_file_header
from .codecs.tile_codec import decode_tile, decode_tile_header
from .errors import SinkAborted

from ..models.common import ChunkKind
from ..models.file import ChunkInfo, EpheFile, FileSummary
from ..models.file_header import FileHeader
from ..models.options import DecodeOptions
from ..models.tile import HealpixTile, TileHeader

logger = logging.getLogger(__name__)

BytesLike = Union[str, Path, bytes, bytearray, memoryview]

# Called once per tile with a view valid only for the duration of the call.
# Only a return of False aborts the decode; any other value (None, True,
# C-style non-zero ints) accepts the tile.
TileSink = Callable[[TileHeader, memoryview, Any], Optional[bool]]

_TileMode = Literal["inflate", "header", "skip"]


# -----------------------------
# Helpers
# -----------------------------

def _load_bytes(inp: BytesLike) -> bytes | bytearray | memoryview:
    if isinstance(inp, (bytes, bytearray, memoryview)):
        return inp
    p = Path(str(inp))
    return p.read_bytes()


def _open(data: BytesLike, options: DecodeOptions) -> Tuple[Cursor, FileHeader]:
    cur = Cursor(_load_bytes(data), byte_order=options.byte_order)
    header = decode_file_header(cur)
    return cur, header


def _walk(
    cur: Cursor, options: DecodeOptions, tiles: _TileMode
) -> Iterator[Tuple[Chunk, Optional[TileHeader], Optional[bytes]]]:
    """
    Drive the chunk loop. Each chunk is fully read and closed (checksum
    consumed) before it is yielded, so consumers only ever see chunks whose
    framing checked out. Stops cleanly at end of stream.
      tiles="inflate": decode tile records and inflate their payload
      tiles="header":  decode tile record headers, skip the compressed bytes
      tiles="skip":    framing only, no payload is interpreted
    """
    while True:
        chunk = start_chunk(cur)
        if chunk is None:
            return
        header: Optional[TileHeader] = None
        data: Optional[bytes] = None

        if chunk.kind is ChunkKind.HEALPIX_TILE and tiles == "inflate":
            header, data = decode_tile(chunk, options=options)
        elif chunk.kind is ChunkKind.HEALPIX_TILE and tiles == "header":
            header = decode_tile_header(chunk, options=options)
            chunk.skip(header.compressed_size)
        else:
            chunk.skip_rest()

        chunk.close(verify_checksum=options.verify_checksum)
        yield chunk, header, data


def _chunk_info(chunk: Chunk) -> ChunkInfo:
    return ChunkInfo(
        tag=chunk.tag_str,
        kind=chunk.kind,
        offset=chunk.offset,
        length=chunk.length,
        checksum=chunk.checksum,
    )


def _deliver(sink: TileSink, header: TileHeader, data: bytes, user_context: Any) -> None:
    view = memoryview(data)
    try:
        accepted = sink(header, view, user_context)
    except Exception as e:
        raise SinkAborted(
            f"sink raised on tile {header.tag} order={header.order} pix={header.pixel}: {e}",
            offset=header.offset,
        ) from e
    finally:
        try:
            view.release()
        except BufferError:
            # The sink exported the view (e.g. numpy.frombuffer); the bytes stay valid.
            logger.warning("sink kept a buffer export of tile %s at %d", header.tag, header.offset)
    if accepted is False:
        raise SinkAborted(
            f"sink rejected tile {header.tag} order={header.order} pix={header.pixel}",
            offset=header.offset,
        )


# -----------------------------
# Callback decode
# -----------------------------

def decode(
    data: BytesLike,
    user_context: Any,
    sink: TileSink,
    *,
    options: Optional[DecodeOptions] = None,
) -> None:
    """
    Decode an EPHE buffer, calling `sink(header, data, user_context)` for
    every HEALPix tile in file order. Non-tile chunks are skipped.

    The buffer is only borrowed for the call. Any problem raises a
    DecodeError subclass and stops the decode; there is no partial result.
    """
    options = options or DecodeOptions()
    cur, _ = _open(data, options)

    chunks = tiles = 0
    for chunk, header, payload in _walk(cur, options, "inflate"):
        chunks += 1
        if header is not None:
            _deliver(sink, header, payload, user_context)
            tiles += 1

    logger.debug("decoded %d chunks, %d tiles", chunks, tiles)


# -----------------------------
# Full parse (heavy)
# -----------------------------

def parse_file(data: BytesLike, *, options: Optional[DecodeOptions] = None) -> EpheFile:
    """
    Full parse of an EPHE file: every chunk descriptor plus every inflated
    tile, built into an EpheFile model.
    """
    options = options or DecodeOptions()
    cur, file_header = _open(data, options)

    out = EpheFile(header=file_header)
    for chunk, header, payload in _walk(cur, options, "inflate"):
        out.chunks.append(_chunk_info(chunk))
        if header is not None:
            out.tiles.append(HealpixTile(header=header, data=payload))
    return out


# -----------------------------
# Fast, low-memory summary
# -----------------------------

def summarize_file(data: BytesLike, *, options: Optional[DecodeOptions] = None) -> FileSummary:
    """
    Counts chunks and tiles (per order) reading only tile record headers;
    compressed payloads are skipped, never inflated.
    """
    options = options or DecodeOptions()
    cur, _ = _open(data, options)

    summary = FileSummary()
    per_order: Counter = Counter()
    for chunk, header, _payload in _walk(cur, options, "header"):
        summary.chunks += 1
        if header is None:
            summary.opaque_bytes += chunk.length
        else:
            summary.tiles += 1
            per_order[header.order] += 1
    summary.tiles_per_order = dict(sorted(per_order.items()))
    return summary


# -----------------------------
# Streaming iterators
# -----------------------------

def iter_chunks(data: BytesLike, *, options: Optional[DecodeOptions] = None) -> Iterator[ChunkInfo]:
    """Walk the chunk framing only; no payload is interpreted."""
    options = options or DecodeOptions()
    cur, _ = _open(data, options)
    for chunk, _header, _payload in _walk(cur, options, "skip"):
        yield _chunk_info(chunk)


def iter_tiles(
    data: BytesLike,
    *,
    options: Optional[DecodeOptions] = None,
    max_tiles: Optional[int] = None,
) -> Iterator[HealpixTile]:
    """
    Stream decoded tiles. Each tile owns its bytes. Closing the generator
    between tiles abandons the decode at a chunk boundary.
    """
    options = options or DecodeOptions()
    cur, _ = _open(data, options)

    emitted = 0
    if max_tiles is not None and max_tiles <= 0:
        return
    for _chunk, header, payload in _walk(cur, options, "inflate"):
        if header is None:
            continue
        yield HealpixTile(header=header, data=payload)
        emitted += 1
        if max_tiles is not None and emitted >= max_tiles:
            return
