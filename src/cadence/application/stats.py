"""
Deck summary metrics.

This is a pure computation module with no I/O.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from cadence.application.due_selector import partition
from cadence.domain.constants import MS_PER_DAY
from cadence.domain.models import Card


@dataclass
class DeckSummary:
    """Counts and averages for one deck at a reference time."""

    total: int
    due: int
    new: int  # Never reviewed
    learned: int  # At least one success since the last lapse
    lapses: int  # Summed over all cards
    average_ef: float | None
    next_due: int | None  # Earliest due time among not-due cards


def summarize_deck(cards: Iterable[Card], now: int) -> DeckSummary:
    cards = list(cards)
    due, not_due = partition(cards, now)

    return DeckSummary(
        total=len(cards),
        due=len(due),
        new=sum(1 for c in cards if c.is_new),
        learned=sum(1 for c in cards if c.reps > 0),
        lapses=sum(c.lapses for c in cards),
        average_ef=round(sum(c.ef for c in cards) / len(cards), 2) if cards else None,
        next_due=min((c.due for c in not_due), default=None),
    )


def days_overdue(card: Card, now: int) -> int:
    """
    Whole days since the card became due (negative if not yet due).
    """
    return (now - card.due) // MS_PER_DAY
