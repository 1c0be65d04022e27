"""Clock adapters: wall-clock time and a manually driven clock."""

import time

from cadence.domain.constants import MS_PER_DAY
from cadence.domain.ports import Clock


class SystemClock(Clock):
    def now(self) -> int:
        return time.time_ns() // 1_000_000


class ManualClock(Clock):
    """
    Clock that only moves when told to. Used for replaying sessions and in tests.
    """

    def __init__(self, start: int = 0):
        self._now = start

    def now(self) -> int:
        return self._now

    def set(self, value: int) -> None:
        self._now = value

    def advance(self, ms: int = 0, days: int = 0) -> int:
        self._now += ms + days * MS_PER_DAY
        return self._now
