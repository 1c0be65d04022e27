"""
Ports (interfaces) for the scheduling core.

These define the contracts that infrastructure adapters must implement.
Application code depends on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from collections.abc import MutableSequence
from typing import Any

from .models import Card


class CardStore(ABC):
    """
    Port for reading and writing a deck's cards.

    Implementations:
        - KeyValueCardStore: JSON-encoded decks over a KeyValueStore.
    """

    @abstractmethod
    def get(self, deck_id: str) -> list[Card]:
        """
        Return every card in the deck, in stored order.

        An unknown deck yields an empty list.
        """
        pass

    @abstractmethod
    def update(self, deck_id: str, card_id: str, patch: dict[str, Any]) -> None:
        """
        Apply a partial update (persisted field names) to one card.

        Raises:
            UnknownCardError: If the deck or the card does not exist.
        """
        pass


class KeyValueStore(ABC):
    """Opaque durable storage: string keys to string payloads."""

    @abstractmethod
    def load(self, key: str) -> str | None:
        pass

    @abstractmethod
    def save(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass


class Clock(ABC):
    @abstractmethod
    def now(self) -> int:
        """Current time in epoch milliseconds."""
        pass


class Shuffler(ABC):
    @abstractmethod
    def shuffle(self, items: MutableSequence[Any]) -> None:
        """Permute items in place, uniformly over all permutations."""
        pass


class UnknownCardError(KeyError):
    """Raised by CardStore.update when the deck or card id is not present."""

    def __init__(self, deck_id: str, card_id: str):
        super().__init__(f"{deck_id}/{card_id}")
        self.deck_id = deck_id
        self.card_id = card_id
