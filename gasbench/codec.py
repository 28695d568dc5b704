"""Binary wire encoding for mock values and action sequences.

The layout follows Borsh: little-endian fixed-width integers, ``Option`` as a
0/1 tag followed by the payload, fixed arrays raw, and variable-length byte
strings and sequences prefixed with a u32 length. Actions are a u8 variant
ordinal followed by their fields.
"""

from __future__ import annotations

import struct
from typing import List, Optional, Sequence

from .decoding.actions import Action, ActionFamily
from .decoding.reader import ByteCursor
from .errors import CodecError, DecodeUnderflow
from .mocks import MockShape, MockValue

_U8 = struct.Struct("<B")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")


class ByteWriter:
    """Append-only Borsh-style writer."""

    def __init__(self) -> None:
        self._buf = bytearray()

    def write_u8(self, value: int) -> None:
        self._buf += _U8.pack(value)

    def write_u32(self, value: int) -> None:
        self._buf += _U32.pack(value)

    def write_u128(self, value: int) -> None:
        if not 0 <= value < (1 << 128):
            raise CodecError(f"u128 out of range: {value}")
        self._buf += _U64.pack(value & 0xFFFF_FFFF_FFFF_FFFF)
        self._buf += _U64.pack(value >> 64)

    def write_fixed(self, data: bytes) -> None:
        self._buf += data

    def write_option_fixed(self, data: Optional[bytes]) -> None:
        if data is None:
            self.write_u8(0)
            return
        self.write_u8(1)
        self.write_fixed(data)

    def write_vec(self, data: bytes) -> None:
        self.write_u32(len(data))
        self.write_fixed(data)

    def getvalue(self) -> bytes:
        return bytes(self._buf)

    def __len__(self) -> int:
        return len(self._buf)


def _finish(cursor: ByteCursor, what: str) -> None:
    if not cursor.is_empty():
        raise CodecError(f"{cursor.remaining()} trailing bytes after {what}")


def encode_value(value: MockValue) -> bytes:
    writer = ByteWriter()
    value.write(writer)
    return writer.getvalue()


def decode_value(data: bytes, shape: MockShape) -> MockValue:
    cursor = ByteCursor(data)
    try:
        value = shape.read(cursor)
    except DecodeUnderflow as exc:
        raise CodecError(f"Truncated {shape.__name__}: {exc}") from exc
    except ValueError as exc:
        raise CodecError(f"Malformed {shape.__name__}: {exc}") from exc
    _finish(cursor, shape.__name__)
    return value


def encode_action(action: Action) -> bytes:
    writer = ByteWriter()
    action.write(writer)
    return writer.getvalue()


def encode_actions(actions: Sequence[Action]) -> bytes:
    writer = ByteWriter()
    writer.write_u32(len(actions))
    for action in actions:
        action.write(writer)
    return writer.getvalue()


def _read_action(cursor: ByteCursor, family: ActionFamily, shape: MockShape) -> Action:
    variant = family.variant_for(cursor.read_u8())
    return variant.read_payload(cursor, shape)


def decode_action(data: bytes, family: ActionFamily, shape: MockShape) -> Action:
    cursor = ByteCursor(data)
    try:
        action = _read_action(cursor, family, shape)
    except DecodeUnderflow as exc:
        raise CodecError(f"Truncated {family.name} action: {exc}") from exc
    except ValueError as exc:
        raise CodecError(f"Malformed {family.name} action: {exc}") from exc
    _finish(cursor, f"{family.name} action")
    return action


def decode_actions(data: bytes, family: ActionFamily, shape: MockShape) -> List[Action]:
    cursor = ByteCursor(data)
    actions: List[Action] = []
    try:
        count = cursor.read_u32()
        for _ in range(count):
            actions.append(_read_action(cursor, family, shape))
    except DecodeUnderflow as exc:
        raise CodecError(
            f"Truncated {family.name} action sequence after {len(actions)} items: {exc}"
        ) from exc
    except ValueError as exc:
        raise CodecError(f"Malformed {family.name} action sequence: {exc}") from exc
    _finish(cursor, f"{family.name} action sequence")
    return actions
