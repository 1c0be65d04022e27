"""Split a card collection into cards that are due and cards that are not."""

from collections.abc import Iterable

from cadence.domain.models import Card


def partition(cards: Iterable[Card], now: int) -> tuple[list[Card], list[Card]]:
    """
    Stable partition by due time.

    A card is due iff ``card.due <= now``. Relative order inside each group
    follows the input; cards are not copied or modified.
    """
    due: list[Card] = []
    not_due: list[Card] = []
    for card in cards:
        (due if card.is_due(now) else not_due).append(card)
    return due, not_due
