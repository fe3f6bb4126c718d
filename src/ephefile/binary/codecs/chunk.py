from __future__ import annotations
import logging
import zlib
from enum import Enum
from typing import Callable, TypeVar

from .bytecursor import Cursor
from ..errors import ChecksumMismatch, ChunkLengthMismatch, ChunkOverrun
from ...models.common import ChunkKind, classify_tag, tag_to_str

logger = logging.getLogger(__name__)

T = TypeVar("T")

CHUNK_HEADER_SIZE = 8  # tag(4) + length(int32)


class ChunkState(Enum):
    IN_PAYLOAD = "in_payload"
    CLOSED = "closed"


class Chunk:
    """
    One chunk being read: tag(4) length(int32) payload[length] crc(uint32).

    Every payload read goes through this object so `consumed` never
    exceeds `length`; the cursor itself guards the buffer end.
    """
    __slots__ = ("cur", "tag", "length", "offset", "consumed", "checksum", "state")

    def __init__(self, cur: Cursor, tag: bytes, length: int, offset: int):
        self.cur = cur
        self.tag = tag
        self.length = length
        self.offset = offset
        self.consumed = 0
        self.checksum: int | None = None
        self.state = ChunkState.IN_PAYLOAD

    @property
    def kind(self) -> ChunkKind: return classify_tag(self.tag)
    @property
    def tag_str(self) -> str: return tag_to_str(self.tag)
    @property
    def payload_offset(self) -> int: return self.offset + CHUNK_HEADER_SIZE

    def remaining(self) -> int: return self.length - self.consumed

    def _read(self, n: int, fn: Callable[[], T]) -> T:
        if self.state is not ChunkState.IN_PAYLOAD:
            raise RuntimeError(f"chunk {self.tag_str!r} is already closed")
        if n < 0:
            raise ChunkOverrun(f"chunk {self.tag_str!r}: negative read size {n}", offset=self.cur.tell())
        if self.consumed + n > self.length:
            raise ChunkOverrun(
                f"chunk {self.tag_str!r}: read of {n} bytes past declared length "
                f"{self.length} (consumed {self.consumed})",
                offset=self.cur.tell(),
            )
        out = fn()
        self.consumed += n
        return out

    def take(self, n: int) -> bytes: return self._read(n, lambda: self.cur.take(n))
    def view(self, n: int) -> memoryview: return self._read(n, lambda: self.cur.view(n))
    def s32(self) -> int: return self._read(4, self.cur.s32)
    def u64(self) -> int: return self._read(8, self.cur.u64)

    def skip(self, n: int) -> None: self._read(n, lambda: self.cur.skip(n))

    def skip_rest(self) -> None: self.skip(self.remaining())

    def close(self, *, verify_checksum: bool = False) -> int:
        """
        Read the trailing checksum. The value is returned but only compared
        against the payload when `verify_checksum` is set.
        """
        if self.consumed != self.length:
            raise ChunkLengthMismatch(
                f"chunk {self.tag_str!r} closed after {self.consumed} of {self.length} bytes",
                offset=self.cur.tell(),
            )
        crc_at = self.cur.tell()
        self.checksum = self.cur.u32()
        self.state = ChunkState.CLOSED
        if verify_checksum:
            start = self.payload_offset
            actual = zlib.crc32(self.cur.buf[start:start + self.length])
            if actual != self.checksum:
                raise ChecksumMismatch(
                    f"chunk {self.tag_str!r}: crc 0x{self.checksum:08x} != computed 0x{actual:08x}",
                    offset=crc_at,
                )
        return self.checksum


def start_chunk(cur: Cursor) -> Chunk | None:
    """
    Read a chunk header. Returns None at a clean end of stream
    (no bytes left where a chunk would start).
    """
    if cur.remaining() == 0:
        return None
    offset = cur.tell()
    tag = cur.tag()
    length = cur.s32()
    if length < 0:
        raise ChunkOverrun(f"chunk {tag_to_str(tag)!r} declares negative length {length}", offset=offset)
    logger.debug("chunk %r at %d, %d bytes", tag_to_str(tag), offset, length)
    return Chunk(cur, tag, length, offset)
