from __future__ import annotations

import random
from typing import MutableSequence, Sequence, TypeVar

T = TypeVar("T")


class RandomSource:
    """Uniform and gaussian draws behind one seam.

    Everything in the league that rolls dice goes through an instance of this
    class, so tests can subclass it and script the outcomes.
    """

    def __init__(self, seed: int | str | None = None, rng: random.Random | None = None) -> None:
        self._rng = rng if rng is not None else random.Random(seed)

    def uniform_int(self, lo: int, hi: int) -> int:
        """Integer in ``[lo, hi]``, both ends inclusive."""
        return self._rng.randint(lo, hi)

    def gaussian(self, mean: float = 0.0, stdev: float = 1.0) -> float:
        return self._rng.gauss(mean, stdev)

    def shuffle(self, items: MutableSequence[T]) -> None:
        self._rng.shuffle(items)

    def choice(self, items: Sequence[T]) -> T:
        return items[self.uniform_int(0, len(items) - 1)]
