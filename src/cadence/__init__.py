"""cadence: spaced-repetition scheduling and learn sessions for flashcard decks."""

from cadence.consts import VERSION

__version__ = VERSION
