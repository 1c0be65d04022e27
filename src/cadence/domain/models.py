"""
Domain models for cards and grading.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from .constants import EF_DEFAULT


class InvalidGradeError(ValueError):
    """Raised when a grade is outside the four-level Again/Hard/Good/Easy scale."""

    def __init__(self, value: Any):
        super().__init__(f"Invalid grade {value!r}: expected one of 0 (Again), 1, 2, 3 (Easy)")
        self.value = value


class Grade(IntEnum):
    """Recall grade given by the learner after revealing a card."""

    AGAIN = 0
    HARD = 1
    GOOD = 2
    EASY = 3

    @classmethod
    def parse(cls, value: Any) -> "Grade":
        """
        Validate a raw grade value.

        Only real integers (or Grade members) are accepted. Booleans, floats
        and strings are rejected rather than coerced.
        """
        if isinstance(value, Grade):
            return value
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidGradeError(value)
        try:
            return cls(value)
        except ValueError as e:
            raise InvalidGradeError(value) from e


@dataclass(frozen=True)
class Card:
    """
    A flashcard and its scheduling state.

    Attributes:
        id: Stable identifier, never changes after creation.
        term: Prompt side.
        definition: Answer side.
        due: Epoch milliseconds at/after which the card is eligible for review.
        ef: Ease factor in [1.3, 3.0].
        reps: Consecutive successful reviews since the last lapse.
        interval: Days until the next due date after a successful review.
        lapses: Lifetime count of Again grades.
        last_reviewed: Epoch milliseconds of the last grading event, or None.
    """

    id: str
    term: str
    definition: str
    due: int
    ef: float = EF_DEFAULT
    reps: int = 0
    interval: int = 0
    lapses: int = 0
    last_reviewed: int | None = None

    @property
    def is_new(self) -> bool:
        return self.last_reviewed is None

    def is_due(self, now: int) -> bool:
        return self.due <= now


@dataclass(frozen=True)
class ValidationIssue:
    """A single default substitution made while parsing a stored card."""

    field: str
    value: Any
    substituted: Any


@dataclass
class CardParse:
    """Result of parsing a persisted record: always a usable card, plus what was repaired."""

    card: Card
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues
