from __future__ import annotations

from dataclasses import dataclass

from ..errors import DecodeUnderflow


@dataclass
class ByteCursor:
    """
    Sequential reader over a finite byte buffer.

    Every ``read_*`` either consumes exactly the bytes it needs or raises
    ``DecodeUnderflow`` without moving the cursor. Integers are little-endian.
    """

    data: bytes
    idx: int = 0

    def _require(self, count: int) -> None:
        if self.idx + count > len(self.data):
            raise DecodeUnderflow(
                f"Insufficient bytes: need {count}, "
                f"have {len(self.data) - self.idx} remaining"
            )

    def read_bytes(self, count: int) -> bytes:
        if count < 0:
            raise ValueError(f"Negative read length: {count}")
        self._require(count)
        chunk = bytes(self.data[self.idx : self.idx + count])
        self.idx += count
        return chunk

    def read_u8(self) -> int:
        self._require(1)
        value = self.data[self.idx]
        self.idx += 1
        return value

    def read_uint(self, width: int) -> int:
        return int.from_bytes(self.read_bytes(width), "little")

    def read_u32(self) -> int:
        return self.read_uint(4)

    def read_u128(self) -> int:
        return self.read_uint(16)

    def read_bool(self) -> bool:
        return bool(self.read_u8() & 1)

    def bytes_consumed(self) -> int:
        return self.idx

    def remaining(self) -> int:
        return len(self.data) - self.idx

    def is_empty(self) -> bool:
        return self.remaining() == 0
