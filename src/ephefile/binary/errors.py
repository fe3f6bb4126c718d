from __future__ import annotations


class DecodeError(ValueError):
    """Base class for every failure of an EPHE decode call.

    `offset` is the absolute position in the buffer where the problem was
    detected (None when it is not tied to a position).
    """

    def __init__(self, message: str, *, offset: int | None = None):
        self.offset = offset
        if offset is not None:
            message = f"{message} (at offset {offset})"
        super().__init__(message)


class Truncated(DecodeError):
    """Buffer ran out in the middle of a read."""


class BadMagic(DecodeError):
    pass


class UnsupportedVersion(DecodeError):
    pass


class ChunkOverrun(DecodeError):
    """A payload read went past the chunk's declared length."""


class ChunkLengthMismatch(DecodeError):
    """A chunk was closed before its declared length was consumed."""


class ChecksumMismatch(DecodeError):
    pass


class InvalidNuniq(DecodeError):
    pass


class DecompressionFailed(DecodeError):
    pass


class SinkAborted(DecodeError):
    """The tile consumer refused a tile or raised while handling it."""
