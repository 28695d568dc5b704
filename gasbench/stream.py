"""Owned pseudorandom byte source for the action generator."""

from __future__ import annotations

import random


class SeedStream:
    """
    Deterministic byte stream seeded with a fixed integer.

    The stream is the only randomness the generator sees. It is owned by one
    runner and threaded explicitly through the calls that consume it; it must
    never be shared between concurrent tasks.
    """

    def __init__(self, seed: int = 0) -> None:
        if seed < 0:
            raise ValueError(f"Seed must be non-negative, got {seed}")
        self.seed = seed
        self._rng = random.Random(seed)
        self._drawn = 0

    @property
    def bytes_drawn(self) -> int:
        return self._drawn

    def fill(self, buffer: bytearray) -> None:
        """Overwrite ``buffer`` in place, always advancing the stream."""

        size = len(buffer)
        if size == 0:
            return
        buffer[:] = self._rng.randbytes(size)
        self._drawn += size

    def next_bytes(self, size: int) -> bytes:
        buf = bytearray(size)
        self.fill(buf)
        return bytes(buf)

    def next_u64(self) -> int:
        return int.from_bytes(self.next_bytes(8), "little")

    def below(self, bound: int) -> int:
        """A draw reduced modulo ``bound`` (slight bias is acceptable here)."""

        if bound <= 0:
            raise ValueError(f"Bound must be positive, got {bound}")
        return self.next_u64() % bound
