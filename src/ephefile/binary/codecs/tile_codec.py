from __future__ import annotations
import logging
import zlib

from .chunk import Chunk
from ..errors import ChunkOverrun, DecompressionFailed
from ..healpix import nuniq_to_order_pix
from ...models.common import ChunkKind
from ...models.options import DecodeOptions
from ...models.tile import TileHeader

logger = logging.getLogger(__name__)


def inflate(compressed: bytes | memoryview, expected_size: int, *, offset: int | None = None) -> bytes:
    """
    zlib-inflate `compressed`, which must expand to exactly `expected_size`
    bytes. Output is capped one byte past the expected size so an oversized
    stream is detected without inflating all of it.
    """
    d = zlib.decompressobj()
    try:
        out = d.decompress(compressed, expected_size + 1)
    except zlib.error as e:
        raise DecompressionFailed(f"corrupt zlib stream: {e}", offset=offset) from e
    if len(out) != expected_size:
        raise DecompressionFailed(
            f"inflated size {'>' if len(out) > expected_size else ''}{len(out)} != declared {expected_size}",
            offset=offset,
        )
    if not d.eof:
        raise DecompressionFailed("zlib stream ended early", offset=offset)
    return out


def decode_tile_header(chunk: Chunk, *, options: DecodeOptions) -> TileHeader:
    """
    Read the fixed part of a HEALPix tile record, leaving the chunk
    positioned on the compressed bytes.
    """
    if chunk.kind is not ChunkKind.HEALPIX_TILE:
        raise ValueError(f"chunk {chunk.tag_str!r} is not a HEALPix tile chunk")

    version = chunk.s32()
    nuniq_at = chunk.cur.tell()
    nuniq = chunk.u64()
    order, pixel = nuniq_to_order_pix(nuniq, offset=nuniq_at)
    sizes_at = chunk.cur.tell()
    size = chunk.s32()
    comp_size = chunk.s32()

    if not (0 <= size <= options.max_tile_size):
        raise DecompressionFailed(
            f"tile {chunk.tag_str!r} order={order} pix={pixel}: uncompressed size {size} "
            f"outside 0..{options.max_tile_size}",
            offset=sizes_at,
        )
    if comp_size < 0:
        raise ChunkOverrun(
            f"tile {chunk.tag_str!r}: negative compressed size {comp_size}", offset=sizes_at + 4
        )

    return TileHeader(
        tag=chunk.tag_str,
        version=version,
        nuniq=nuniq,
        order=order,
        pixel=pixel,
        uncompressed_size=size,
        compressed_size=comp_size,
        offset=chunk.offset,
    )


def decode_tile(chunk: Chunk, *, options: DecodeOptions | None = None) -> tuple[TileHeader, bytes]:
    """
    Decode one HEALPix tile record from `chunk`:
      version(int32) nuniq(uint64) size(int32) comp_size(int32) data[comp_size]
    Returns the header and the inflated bytes.
    """
    options = options or DecodeOptions()
    header = decode_tile_header(chunk, options=options)
    comp_size = header.compressed_size

    data_at = chunk.cur.tell()
    compressed = chunk.view(comp_size)
    try:
        data = inflate(compressed, header.uncompressed_size, offset=data_at)
    finally:
        compressed.release()

    logger.debug(
        "tile %s order=%d pix=%d: %d -> %d bytes",
        header.tag, header.order, header.pixel, comp_size, len(data),
    )
    return header, data
