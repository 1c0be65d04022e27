"""
Card store over a key-value store.

Each deck is a single JSON array of card records saved under
``deck:<deck_id>``.
"""

import json
import logging
import threading
from collections.abc import Iterable
from dataclasses import replace
from typing import Any

from cadence.domain.constants import DECK_KEY_PREFIX
from cadence.domain.models import Card
from cadence.domain.ports import CardStore, KeyValueStore, UnknownCardError
from cadence.domain.records import RECORD_FIELDS, card_to_record, generate_card_id, parse_card

logger = logging.getLogger(__name__)


def deck_key(deck_id: str) -> str:
    return f"{DECK_KEY_PREFIX}{deck_id}"


class KeyValueCardStore(CardStore):
    """
    Reads and writes whole decks through a KeyValueStore.

    Stored records are parsed tolerantly: corrupt numeric fields fall back
    to defaults and are logged, never raised. The repaired values are only
    written back when the deck is next saved. Missing and duplicate ids are
    the exception: fresh ids are written back on read.

    Every read-modify-write of a deck runs under that deck's lock, so
    threads sharing one store instance never lose each other's updates.
    """

    def __init__(self, kv: KeyValueStore):
        self.kv = kv
        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def _deck_lock(self, deck_id: str) -> threading.RLock:
        with self._locks_guard:
            return self._locks.setdefault(deck_id, threading.RLock())

    def get(self, deck_id: str) -> list[Card]:
        with self._deck_lock(deck_id):
            return self._get(deck_id)

    def _get(self, deck_id: str) -> list[Card]:
        raw = self.kv.load(deck_key(deck_id))
        if raw is None:
            return []

        records = self._decode(deck_id, raw)
        cards: list[Card] = []
        seen: set[str] = set()
        assigned = 0
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                logger.warning(f"Skipping non-object entry #{index} in deck '{deck_id}'")
                continue

            parsed = parse_card(record)
            card = parsed.card
            for issue in parsed.issues:
                level = logging.DEBUG if issue.value is None else logging.WARNING
                logger.log(
                    level,
                    f"Deck '{deck_id}' card {card.id}: "
                    f"{issue.field}={issue.value!r} replaced with {issue.substituted!r}",
                )
            if card.id in seen:
                new_id = generate_card_id()
                logger.warning(f"Deck '{deck_id}': duplicate card id {card.id} renamed to {new_id}")
                card = replace(card, id=new_id)
                record["id"] = new_id
                assigned += 1
            elif any(issue.field == "id" for issue in parsed.issues):
                record["id"] = card.id
                assigned += 1
            seen.add(card.id)
            cards.append(card)

        # Generated ids are written back at once so later updates can find the cards.
        if assigned:
            self._write_records(deck_id, records)
            logger.info(f"Assigned {assigned} card id(s) in deck '{deck_id}'")
        return cards

    def update(self, deck_id: str, card_id: str, patch: dict[str, Any]) -> None:
        with self._deck_lock(deck_id):
            raw = self.kv.load(deck_key(deck_id))
            if raw is None:
                raise UnknownCardError(deck_id, card_id)

            records = self._decode(deck_id, raw)
            for record in records:
                if isinstance(record, dict) and str(record.get("id")) == card_id:
                    record.update(
                        {k: v for k, v in patch.items() if k in RECORD_FIELDS and k != "id"}
                    )
                    self._write_records(deck_id, records)
                    return

        logger.warning(f"Update for unknown card {card_id} in deck '{deck_id}'")
        raise UnknownCardError(deck_id, card_id)

    def save_deck(self, deck_id: str, cards: Iterable[Card]) -> None:
        """Replace the whole deck."""
        records = [card_to_record(c) for c in cards]
        with self._deck_lock(deck_id):
            self._write_records(deck_id, records)

    def deck_exists(self, deck_id: str) -> bool:
        return self.kv.load(deck_key(deck_id)) is not None

    def _decode(self, deck_id: str, raw: str) -> list[Any]:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Deck '{deck_id}' is not valid JSON ({e}); treating it as empty")
            return []
        if not isinstance(data, list):
            logger.error(f"Deck '{deck_id}' is not a JSON array; treating it as empty")
            return []
        return data

    def _write_records(self, deck_id: str, records: list[Any]) -> None:
        self.kv.save(deck_key(deck_id), json.dumps(records, indent=2, ensure_ascii=False))
