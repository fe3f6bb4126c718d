from __future__ import annotations
import struct

from ..errors import Truncated

_ORDER_PREFIX = {"little": "<", "big": ">"}


class Cursor:
    __slots__ = ("buf", "pos", "_endian")

    def __init__(self, data: bytes | bytearray | memoryview, byte_order: str = "little"):
        if byte_order not in _ORDER_PREFIX:
            raise ValueError(f"byte_order must be 'little' or 'big', got {byte_order!r}")
        self.buf = memoryview(data).cast("B")
        self.pos = 0
        self._endian = _ORDER_PREFIX[byte_order]

    def remaining(self) -> int: return len(self.buf) - self.pos
    def tell(self) -> int: return self.pos

    def _check(self, n: int, what: str) -> None:
        if n < 0: raise ValueError(f"{what} of negative size {n}")
        if n > self.remaining():
            raise Truncated(f"{what} needs {n} bytes, {self.remaining()} left", offset=self.pos)

    def take(self, n: int) -> bytes:
        self._check(n, "read")
        end = self.pos + n
        out = self.buf[self.pos:end].tobytes()
        self.pos = end
        return out

    def view(self, n: int) -> memoryview:
        """Like take() but returns a zero-copy slice of the underlying buffer."""
        self._check(n, "read")
        end = self.pos + n
        out = self.buf[self.pos:end]
        self.pos = end
        return out

    def skip(self, n: int) -> None:
        self._check(n, "skip")
        self.pos += n

    def peek(self, n: int) -> bytes:
        self._check(n, "peek")
        return self.buf[self.pos:self.pos + n].tobytes()

    def tag(self) -> bytes: return self.take(4)

    # fixed-width integer reads in the cursor's byte order
    def _unpack(self, code: str, n: int):
        return struct.unpack(self._endian + code, self.take(n))[0]
    def s32(self) -> int: return self._unpack("i", 4)
    def u32(self) -> int: return self._unpack("I", 4)
    def u64(self) -> int: return self._unpack("Q", 8)
