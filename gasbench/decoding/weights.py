from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Iterator, Sequence, Tuple, TypeVar

PERCENT = 100
DRAW_BITS = 32

T = TypeVar("T")


def scale_draw(draw: int, bits: int = DRAW_BITS) -> int:
    """Map an unsigned ``bits``-wide draw onto ``[0, PERCENT)``."""

    if not 0 <= draw < (1 << bits):
        raise ValueError(f"Draw {draw:#x} does not fit in {bits} bits")
    return (draw * PERCENT) >> bits


@dataclass(frozen=True)
class WeightTable(Generic[T]):
    """
    Ordered ``(upper_bound_pct, choice)`` pairs.

    A percentage ``p`` selects the first entry whose bound is greater than
    ``p``. Bounds are exclusive, strictly increasing and the last one is 100,
    so every ``p`` in ``[0, 100)`` selects exactly one entry.
    """

    entries: Tuple[Tuple[int, T], ...]

    def __post_init__(self) -> None:
        if not self.entries:
            raise ValueError("Weight table needs at least one entry")
        previous = 0
        for bound, choice in self.entries:
            if not previous < bound <= PERCENT:
                raise ValueError(
                    f"Weight bound {bound} for {choice!r} must be in "
                    f"({previous}, {PERCENT}]"
                )
            previous = bound
        if previous != PERCENT:
            raise ValueError(f"Last weight bound must be {PERCENT}, got {previous}")

    @classmethod
    def of(cls, *entries: Tuple[int, T]) -> "WeightTable[T]":
        return cls(tuple(entries))

    def select(self, pct: int) -> T:
        if not 0 <= pct < PERCENT:
            raise ValueError(f"Percentage out of range: {pct}")
        for bound, choice in self.entries:
            if pct < bound:
                return choice
        raise AssertionError("unreachable: validated table covers [0, 100)")

    def select_draw(self, draw: int) -> T:
        return self.select(scale_draw(draw))

    def weights(self) -> Sequence[Tuple[T, int]]:
        """Width in percent of each entry, in table order."""

        out = []
        previous = 0
        for bound, choice in self.entries:
            out.append((choice, bound - previous))
            previous = bound
        return out

    def choices(self) -> Iterator[T]:
        return (choice for _, choice in self.entries)
