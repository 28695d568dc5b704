"""Mock value shapes used as collection keys and values.

Three shapes stress different storage patterns:

* ``HeavyMock``: a u128, an optional 32-byte payload and a variable tail, so
  entries are heap-sized and vary in length.
* ``LightSparseMock``: a single u32 spanning its full range, so keys rarely
  collide.
* ``LightDenseMock``: the same u32 masked into ``[0, LIGHT_DENSE_MASK]`` when
  generated, which forces key reuse and dense buckets.

Every shape has two byte forms. ``generate`` consumes raw generator bytes from
a :class:`~gasbench.decoding.reader.ByteCursor` and may reshape them (tail
length, dense mask). ``write``/``read`` are the exact wire form and are
inverse of each other.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering
from typing import TYPE_CHECKING, ClassVar, Dict, Optional, Tuple, Type, Union

from .decoding.reader import ByteCursor

if TYPE_CHECKING:  # pragma: no cover
    from .codec import ByteWriter

U32_MAX = 0xFFFF_FFFF
U128_MAX = (1 << 128) - 1
PAYLOAD_LEN = 32
HEAVY_TAIL_MAX = 64
LIGHT_DENSE_MASK = 0x7


@total_ordering
@dataclass(frozen=True)
class HeavyMock:
    a: int = 0
    b: Optional[bytes] = None
    c: bytes = b""

    shape: ClassVar[str] = "heavy"

    def __post_init__(self) -> None:
        if not 0 <= self.a <= U128_MAX:
            raise ValueError(f"HeavyMock.a out of u128 range: {self.a}")
        if self.b is not None and len(self.b) != PAYLOAD_LEN:
            raise ValueError(
                f"HeavyMock.b must be {PAYLOAD_LEN} bytes, got {len(self.b)}"
            )
        if self.c is None:
            raise ValueError("HeavyMock.c must be bytes")

    def sort_key(self) -> Tuple[int, bool, bytes, bytes]:
        # None sorts before any payload.
        return (self.a, self.b is not None, self.b or b"", self.c)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, HeavyMock):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    @classmethod
    def default(cls) -> "HeavyMock":
        return cls()

    @classmethod
    def size_hint(cls) -> Tuple[int, int]:
        # a + presence byte + tail length byte, up to payload + full tail.
        low = 16 + 1 + 1
        return low, low + PAYLOAD_LEN + HEAVY_TAIL_MAX

    @classmethod
    def generate(cls, cursor: ByteCursor) -> "HeavyMock":
        a = cursor.read_u128()
        b = cursor.read_bytes(PAYLOAD_LEN) if cursor.read_bool() else None
        tail_len = cursor.read_u8() % (HEAVY_TAIL_MAX + 1)
        c = cursor.read_bytes(tail_len)
        return cls(a=a, b=b, c=c)

    def write(self, writer: "ByteWriter") -> None:
        writer.write_u128(self.a)
        writer.write_option_fixed(self.b)
        writer.write_vec(self.c)

    @classmethod
    def read(cls, cursor: ByteCursor) -> "HeavyMock":
        a = cursor.read_u128()
        tag = cursor.read_u8()
        if tag == 0:
            b = None
        elif tag == 1:
            b = cursor.read_bytes(PAYLOAD_LEN)
        else:
            raise ValueError(f"Invalid option tag {tag:#x} in HeavyMock.b")
        c = cursor.read_bytes(cursor.read_u32())
        return cls(a=a, b=b, c=c)


@total_ordering
@dataclass(frozen=True)
class _LightMock:
    a: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.a <= U32_MAX:
            raise ValueError(f"{type(self).__name__}.a out of u32 range: {self.a}")

    def __lt__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.a < other.a  # type: ignore[attr-defined]

    @classmethod
    def default(cls):
        return cls()

    @classmethod
    def size_hint(cls) -> Tuple[int, int]:
        return 4, 4

    def write(self, writer: "ByteWriter") -> None:
        writer.write_u32(self.a)

    @classmethod
    def read(cls, cursor: ByteCursor):
        return cls(a=cursor.read_u32())


@dataclass(frozen=True)
class LightSparseMock(_LightMock):
    shape: ClassVar[str] = "light_sparse"

    @classmethod
    def generate(cls, cursor: ByteCursor) -> "LightSparseMock":
        return cls(a=cursor.read_u32())


@dataclass(frozen=True)
class LightDenseMock(_LightMock):
    shape: ClassVar[str] = "light_dense"

    @classmethod
    def generate(cls, cursor: ByteCursor) -> "LightDenseMock":
        return cls(a=cursor.read_u32() & LIGHT_DENSE_MASK)


MockValue = Union[HeavyMock, LightSparseMock, LightDenseMock]
MockShape = Type[MockValue]

SHAPES: Dict[str, MockShape] = {
    HeavyMock.shape: HeavyMock,
    LightSparseMock.shape: LightSparseMock,
    LightDenseMock.shape: LightDenseMock,
}


def shape_for(name: str) -> MockShape:
    try:
        return SHAPES[name]
    except KeyError:
        raise ValueError(
            f"Unknown value shape '{name}' (expected one of: {sorted(SHAPES)})"
        ) from None
