from __future__ import annotations

from typing import Protocol, Sequence, TypeVar

T = TypeVar("T")

_MASK_64 = (1 << 64) - 1
_GOLDEN_GAMMA = 0x9E3779B97F4A7C15
_MIX_1 = 0xBF58476D1CE4E5B9
_MIX_2 = 0x94D049BB133111EB
_DOUBLE_UNIT = 1.0 / (1 << 53)


class RandomSource(Protocol):
    def random(self) -> float: ...

    def randint(self, low: int, high: int) -> int: ...


class SeededRandom:
    """SplitMix64 stream.

    The algorithm is fixed: persisted interaction records are keyed by POI ids
    that only stay meaningful while generation replays identically, so the
    output sequence for a seed must never change between releases.
    """

    def __init__(self, seed: int) -> None:
        self.seed = int(seed)
        self._state = self.seed & _MASK_64

    def next_uint64(self) -> int:
        self._state = (self._state + _GOLDEN_GAMMA) & _MASK_64
        z = self._state
        z = ((z ^ (z >> 30)) * _MIX_1) & _MASK_64
        z = ((z ^ (z >> 27)) * _MIX_2) & _MASK_64
        return z ^ (z >> 31)

    def random(self) -> float:
        return (self.next_uint64() >> 11) * _DOUBLE_UNIT

    def randint(self, low: int, high: int) -> int:
        low = int(low)
        high = int(high)
        if high < low:
            raise ValueError(f"Empty range for randint: {low}..{high}")
        return low + int(self.random() * (high - low + 1))

    def choice(self, options: Sequence[T]) -> T:
        if not options:
            raise IndexError("Cannot choose from an empty sequence")
        return options[int(self.random() * len(options))]

    def __repr__(self) -> str:
        return f"SeededRandom(seed={self.seed})"
