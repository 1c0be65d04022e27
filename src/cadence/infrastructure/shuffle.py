import random
from collections.abc import MutableSequence
from typing import Any

from cadence.domain.ports import Shuffler


class RandomShuffler(Shuffler):
    """
    Fisher-Yates shuffle backed by a private random.Random.

    With a seed, the sequence of permutations is reproducible; without one
    it is seeded from the OS.
    """

    def __init__(self, seed: int | None = None):
        self.seed = seed
        self._rng = random.Random(seed)

    def shuffle(self, items: MutableSequence[Any]) -> None:
        self._rng.shuffle(items)
