"""Action variants and the weighted, deterministic action decoder.

Raw generator bytes become actions in two steps: a u32 draw is scaled into a
percentage that picks a variant from the family's :class:`WeightTable`, then
the variant's payload (keys and values of one mock shape) is generated from
the same cursor. Decoding is a pure function of the input bytes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, ClassVar, Dict, List, Optional, Sequence, Tuple, Type

from ..errors import CodecError, ConfigError, DecodeUnderflow
from ..mocks import MockShape, MockValue
from .reader import ByteCursor
from .weights import WeightTable

if TYPE_CHECKING:  # pragma: no cover
    from ..codec import ByteWriter
    from ..stream import SeedStream

logger = logging.getLogger(__name__)

REQUIRED = "required"
OPTIONAL = "optional"

TAG_DRAW_SIZE = 4
MIN_BUFFER_SIZE = 32
DEFAULT_BUFFER_SIZE = 4096


@dataclass(frozen=True)
class Action:
    """One operation applied to a collection instance."""

    ordinal: ClassVar[int] = 0
    op: ClassVar[str] = ""
    layout: ClassVar[Tuple[str, ...]] = ()

    def args(self) -> Tuple[Optional[MockValue], ...]:
        return tuple(getattr(self, f.name) for f in fields(self))

    @classmethod
    def size_hint(cls, shape: MockShape) -> Tuple[int, int]:
        """Generator bytes consumed, including the variant draw."""

        value_lo, value_hi = shape.size_hint()
        lo = hi = TAG_DRAW_SIZE
        for slot in cls.layout:
            if slot == OPTIONAL:
                lo += 1
                hi += 1 + value_hi
            else:
                lo += value_lo
                hi += value_hi
        return lo, hi

    @classmethod
    def generate(cls, cursor: ByteCursor, shape: MockShape) -> "Action":
        values: List[Optional[MockValue]] = []
        for slot in cls.layout:
            if slot == OPTIONAL and not cursor.read_bool():
                values.append(None)
            else:
                values.append(shape.generate(cursor))
        return cls(*values)

    def write(self, writer: "ByteWriter") -> None:
        args = self.args()
        for slot, value in zip(self.layout, args):
            if slot != OPTIONAL and value is None:
                raise CodecError(f"{type(self).__name__} is missing a required field")
        writer.write_u8(self.ordinal)
        for slot, value in zip(self.layout, args):
            if slot == OPTIONAL:
                if value is None:
                    writer.write_u8(0)
                    continue
                writer.write_u8(1)
            value.write(writer)

    @classmethod
    def read_payload(cls, cursor: ByteCursor, shape: MockShape) -> "Action":
        values: List[Optional[MockValue]] = []
        for slot in cls.layout:
            if slot == OPTIONAL:
                tag = cursor.read_u8()
                if tag == 0:
                    values.append(None)
                    continue
                if tag != 1:
                    raise ValueError(f"Invalid option tag {tag:#x} in {cls.__name__}")
            values.append(shape.read(cursor))
        return cls(*values)


# Lookup map actions.


@dataclass(frozen=True)
class MapInsert(Action):
    key: MockValue
    value: MockValue

    ordinal: ClassVar[int] = 0
    op: ClassVar[str] = "insert"
    layout: ClassVar[Tuple[str, ...]] = (REQUIRED, REQUIRED)


@dataclass(frozen=True)
class MapSet(Action):
    """Write without reading the previous value; ``None`` deletes."""

    key: MockValue
    value: Optional[MockValue]

    ordinal: ClassVar[int] = 1
    op: ClassVar[str] = "set"
    layout: ClassVar[Tuple[str, ...]] = (REQUIRED, OPTIONAL)


@dataclass(frozen=True)
class MapRemove(Action):
    key: MockValue

    ordinal: ClassVar[int] = 2
    op: ClassVar[str] = "remove"
    layout: ClassVar[Tuple[str, ...]] = (REQUIRED,)


@dataclass(frozen=True)
class MapFlush(Action):
    ordinal: ClassVar[int] = 3
    op: ClassVar[str] = "flush"


@dataclass(frozen=True)
class MapGet(Action):
    key: MockValue

    ordinal: ClassVar[int] = 4
    op: ClassVar[str] = "get"
    layout: ClassVar[Tuple[str, ...]] = (REQUIRED,)


# Lookup set actions.


@dataclass(frozen=True)
class SetInsert(Action):
    value: MockValue

    ordinal: ClassVar[int] = 0
    op: ClassVar[str] = "insert"
    layout: ClassVar[Tuple[str, ...]] = (REQUIRED,)


@dataclass(frozen=True)
class SetPut(Action):
    """Upsert without an existence check."""

    value: MockValue

    ordinal: ClassVar[int] = 1
    op: ClassVar[str] = "put"
    layout: ClassVar[Tuple[str, ...]] = (REQUIRED,)


@dataclass(frozen=True)
class SetRemove(Action):
    value: MockValue

    ordinal: ClassVar[int] = 2
    op: ClassVar[str] = "remove"
    layout: ClassVar[Tuple[str, ...]] = (REQUIRED,)


@dataclass(frozen=True)
class SetFlush(Action):
    ordinal: ClassVar[int] = 3
    op: ClassVar[str] = "flush"


@dataclass(frozen=True)
class SetContains(Action):
    value: MockValue

    ordinal: ClassVar[int] = 4
    op: ClassVar[str] = "contains"
    layout: ClassVar[Tuple[str, ...]] = (REQUIRED,)


# Ordered (tree) map actions.


@dataclass(frozen=True)
class TreeInsert(Action):
    key: MockValue
    value: MockValue

    ordinal: ClassVar[int] = 0
    op: ClassVar[str] = "insert"
    layout: ClassVar[Tuple[str, ...]] = (REQUIRED, REQUIRED)


@dataclass(frozen=True)
class TreeRemove(Action):
    key: MockValue

    ordinal: ClassVar[int] = 1
    op: ClassVar[str] = "remove"
    layout: ClassVar[Tuple[str, ...]] = (REQUIRED,)


@dataclass(frozen=True)
class TreeGet(Action):
    key: MockValue

    ordinal: ClassVar[int] = 2
    op: ClassVar[str] = "get"
    layout: ClassVar[Tuple[str, ...]] = (REQUIRED,)


@dataclass(frozen=True)
class TreeFlush(Action):
    ordinal: ClassVar[int] = 3
    op: ClassVar[str] = "flush"


@dataclass(frozen=True)
class TreeIter(Action):
    """Walk every entry in key order."""

    ordinal: ClassVar[int] = 4
    op: ClassVar[str] = "iter"


@dataclass(frozen=True)
class ActionFamily:
    """The variants one collection kind understands, plus their weights."""

    name: str
    variants: Tuple[Type[Action], ...]
    weights: WeightTable[Type[Action]]

    def __post_init__(self) -> None:
        for index, variant in enumerate(self.variants):
            if variant.ordinal != index:
                raise ValueError(
                    f"{variant.__name__} has ordinal {variant.ordinal}, "
                    f"expected {index} in family '{self.name}'"
                )
        unknown = set(self.weights.choices()) - set(self.variants)
        if unknown:
            names = sorted(v.__name__ for v in unknown)
            raise ValueError(f"Weight table for '{self.name}' selects foreign variants: {names}")

    @property
    def ops(self) -> frozenset:
        return frozenset(variant.op for variant in self.variants)

    def variant_for(self, ordinal: int) -> Type[Action]:
        if not 0 <= ordinal < len(self.variants):
            raise ValueError(f"Unknown {self.name} action ordinal {ordinal}")
        return self.variants[ordinal]

    def max_action_size(self, shape: MockShape) -> int:
        return max(variant.size_hint(shape)[1] for variant in self.variants)

    def min_action_size(self, shape: MockShape) -> int:
        return min(variant.size_hint(shape)[0] for variant in self.variants)

    def generate_one(self, cursor: ByteCursor, shape: MockShape) -> Action:
        variant = self.weights.select_draw(cursor.read_u32())
        return variant.generate(cursor, shape)


MAP_ACTIONS = ActionFamily(
    name="map",
    variants=(MapInsert, MapSet, MapRemove, MapFlush, MapGet),
    weights=WeightTable.of(
        (35, MapInsert),
        (50, MapSet),
        (65, MapRemove),
        (70, MapFlush),
        (100, MapGet),
    ),
)

SET_ACTIONS = ActionFamily(
    name="set",
    variants=(SetInsert, SetPut, SetRemove, SetFlush, SetContains),
    weights=WeightTable.of(
        (35, SetInsert),
        (41, SetPut),
        (61, SetRemove),
        (66, SetFlush),
        (100, SetContains),
    ),
)

TREE_ACTIONS = ActionFamily(
    name="tree",
    variants=(TreeInsert, TreeRemove, TreeGet, TreeFlush, TreeIter),
    weights=WeightTable.of(
        (50, TreeInsert),
        (65, TreeRemove),
        (90, TreeGet),
        (97, TreeFlush),
        (100, TreeIter),
    ),
)

FAMILIES: Dict[str, ActionFamily] = {
    family.name: family for family in (MAP_ACTIONS, SET_ACTIONS, TREE_ACTIONS)
}


def family_for(name: str) -> ActionFamily:
    try:
        return FAMILIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown action family '{name}' (expected one of: {sorted(FAMILIES)})"
        ) from None


def decode_take_rest(
    data: bytes | bytearray, family: ActionFamily, shape: MockShape
) -> List[Action]:
    """Decode actions until ``data`` runs out; an incomplete tail is dropped."""

    cursor = ByteCursor(bytes(data))
    actions: List[Action] = []
    while not cursor.is_empty():
        try:
            actions.append(family.generate_one(cursor, shape))
        except DecodeUnderflow:
            break
    return actions


def minimum_buffer_size(family: ActionFamily, shape: MockShape) -> int:
    return max(MIN_BUFFER_SIZE, family.max_action_size(shape))


def check_buffer_size(buffer_size: int, family: ActionFamily, shape: MockShape) -> None:
    needed = minimum_buffer_size(family, shape)
    if buffer_size < needed:
        raise ConfigError(
            f"Buffer of {buffer_size} bytes cannot guarantee progress for "
            f"{family.name}/{shape.shape} actions (need at least {needed})"
        )


def decode_count_bounded(
    stream: "SeedStream",
    buffer_size: int,
    count: int,
    family: ActionFamily,
    shape: MockShape,
) -> List[Action]:
    """Refill and decode until ``count`` actions exist, then truncate to it."""

    if count < 0:
        raise ValueError(f"Action count must be non-negative, got {count}")
    check_buffer_size(buffer_size, family, shape)
    actions: List[Action] = []
    buf = bytearray(buffer_size)
    refills = 0
    while len(actions) < count:
        stream.fill(buf)
        refills += 1
        actions.extend(decode_take_rest(buf, family, shape))
    logger.debug(
        "decoded %d %s/%s actions from %d refills (kept %d)",
        len(actions),
        family.name,
        shape.shape,
        refills,
        count,
    )
    return actions[:count]


class ActionGenerator:
    """Produces one action sequence per trial from an owned seed stream."""

    def __init__(
        self,
        stream: "SeedStream",
        family: ActionFamily,
        shape: MockShape,
        *,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        count: Optional[int] = None,
    ) -> None:
        if buffer_size <= 0:
            raise ConfigError(f"Buffer size must be positive, got {buffer_size}")
        if count is not None:
            if count < 0:
                raise ConfigError(f"Action count must be non-negative, got {count}")
            check_buffer_size(buffer_size, family, shape)
        self.stream = stream
        self.family = family
        self.shape = shape
        self.buffer_size = buffer_size
        self.count = count
        self._buffer = bytearray(buffer_size)

    def next_trial(self) -> List[Action]:
        if self.count is not None:
            return decode_count_bounded(
                self.stream, self.buffer_size, self.count, self.family, self.shape
            )
        # Take-rest over a random-length prefix of the refilled buffer.
        self.stream.fill(self._buffer)
        length = self.stream.below(self.buffer_size)
        return decode_take_rest(self._buffer[:length], self.family, self.shape)

    def trials(self, n: int) -> Sequence[List[Action]]:
        return [self.next_trial() for _ in range(n)]
