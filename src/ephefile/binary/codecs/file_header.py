from __future__ import annotations
from .bytecursor import Cursor
from ..errors import BadMagic, Truncated, UnsupportedVersion
from ...models.file_header import FileHeader, FILE_VERSION, MAGIC

FILE_HEADER_SIZE = 8


def decode_file_header(cur: Cursor) -> FileHeader:
    """
    Parse the 8-byte file header: magic "EPHE" then an int32 format version.
    Only FILE_VERSION is accepted; there is no partial compatibility.
    """
    start = cur.tell()
    if cur.remaining() < FILE_HEADER_SIZE:
        raise Truncated(
            f"file header needs {FILE_HEADER_SIZE} bytes, buffer has {cur.remaining()}",
            offset=start,
        )
    magic = cur.take(4)
    if magic != MAGIC:
        raise BadMagic(f"expected magic {MAGIC!r}, got {magic!r}", offset=start)
    version = cur.s32()
    if version != FILE_VERSION:
        raise UnsupportedVersion(
            f"file version {version} not supported (expected {FILE_VERSION})", offset=start + 4
        )
    return FileHeader(magic=magic.decode("ascii"), version=version)
