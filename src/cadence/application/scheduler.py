"""
Ease-factor scheduler.

Pure computation: given a card, a grade and the current time, returns the
card's next scheduling state. No clock is read here; ``now`` is passed in.
"""

import math
from dataclasses import replace

from cadence.domain.constants import (
    EF_DELTA_AGAIN,
    EF_DELTA_EASY,
    EF_DELTA_GOOD,
    EF_DELTA_HARD,
    EF_MAX,
    EF_MIN,
    EF_PRECISION,
    FIRST_INTERVAL,
    MS_PER_DAY,
    MULTIPLIER_EASY,
    MULTIPLIER_GOOD,
    MULTIPLIER_HARD,
    SECOND_INTERVAL,
    SECOND_INTERVAL_HARD,
)
from cadence.domain.models import Card, Grade
from cadence.domain.records import sanitize_card

EF_DELTAS = {
    Grade.AGAIN: EF_DELTA_AGAIN,
    Grade.HARD: EF_DELTA_HARD,
    Grade.GOOD: EF_DELTA_GOOD,
    Grade.EASY: EF_DELTA_EASY,
}

MULTIPLIERS = {
    Grade.HARD: MULTIPLIER_HARD,
    Grade.GOOD: MULTIPLIER_GOOD,
    Grade.EASY: MULTIPLIER_EASY,
}


def schedule(card: Card, grade: Grade | int, now: int) -> Card:
    """
    Apply a grade to a card and return the updated card.

    Args:
        card: Card to grade. Corrupt scheduling fields are replaced with
            defaults before anything is computed.
        grade: 0 (Again) to 3 (Easy).
        now: Grading time in epoch milliseconds.

    Returns:
        A new Card; the input is not modified.

    Raises:
        InvalidGradeError: If grade is not one of the four levels.
    """
    grade = Grade.parse(grade)
    card = sanitize_card(card)

    if grade == Grade.AGAIN:
        return replace(
            card,
            reps=0,
            interval=0,
            due=now,
            lapses=card.lapses + 1,
            ef=adjust_ease(card.ef, grade),
            last_reviewed=now,
        )

    reps = card.reps + 1
    # The new ease feeds the interval below.
    ef = adjust_ease(card.ef, grade)
    interval = next_interval(card.interval, reps, ef, grade)

    return replace(
        card,
        reps=reps,
        interval=interval,
        ef=ef,
        due=now + interval * MS_PER_DAY,
        last_reviewed=now,
    )


def adjust_ease(ef: float, grade: Grade) -> float:
    """Shift the ease factor for a grade, clamped to [1.3, 3.0]."""
    shifted = ef + EF_DELTAS[grade]
    return round(min(max(shifted, EF_MIN), EF_MAX), EF_PRECISION)


def next_interval(previous: int, reps: int, ef: float, grade: Grade) -> int:
    """
    Interval in days after a successful review.

    ``reps`` is the post-review repetition count and ``ef`` the post-review
    ease factor.
    """
    if reps == 1:
        return FIRST_INTERVAL
    if reps == 2:
        return SECOND_INTERVAL_HARD if grade == Grade.HARD else SECOND_INTERVAL
    return max(1, round_half_up(previous * ef * MULTIPLIERS[grade]))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 going up (not banker's rounding)."""
    return math.floor(value + 0.5)
