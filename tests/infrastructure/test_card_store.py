import json
import logging
import threading
import time

import pytest

from cadence.domain.ports import UnknownCardError
from cadence.infrastructure.card_store import KeyValueCardStore, deck_key
from cadence.infrastructure.kv_store import FileKeyValueStore
from tests.factories import DAY, T, make_card


def test_unknown_deck_is_empty(store):
    assert store.get("nope") == []
    assert not store.deck_exists("nope")


def test_save_and_get(store):
    cards = [make_card("a"), make_card("b", reps=1, interval=1, last_reviewed=T, due=T + DAY)]
    store.save_deck("bio", cards)

    assert store.get("bio") == cards
    assert store.deck_exists("bio")


def test_update_applies_patch(store):
    store.save_deck("bio", [make_card("a"), make_card("b")])

    store.update("bio", "b", {"reps": 1, "interval": 1, "due": T + DAY, "lastReviewed": T})

    a, b = store.get("bio")
    assert a == make_card("a")
    assert (b.reps, b.interval, b.due, b.last_reviewed) == (1, 1, T + DAY, T)


def test_update_ignores_id_and_unknown_keys(store, kv):
    store.save_deck("bio", [make_card("a")])
    store.update("bio", "a", {"id": "z", "colour": "red", "lapses": 2})

    record = json.loads(kv.load(deck_key("bio")))[0]
    assert record["id"] == "a"
    assert "colour" not in record
    assert record["lapses"] == 2


def test_update_unknown_card_raises(store):
    store.save_deck("bio", [make_card("a")])
    with pytest.raises(UnknownCardError) as exc:
        store.update("bio", "zzz", {"reps": 1})
    assert exc.value.card_id == "zzz"


def test_update_unknown_deck_raises(store):
    with pytest.raises(KeyError):
        store.update("nope", "a", {"reps": 1})


def test_corrupt_fields_are_repaired_on_read(store, kv, caplog):
    kv.save(
        deck_key("bio"),
        json.dumps([{"id": "a", "term": "t", "definition": "d", "due": T, "ef": "NaN?", "reps": "many"}]),
    )

    with caplog.at_level(logging.WARNING, logger="cadence"):
        (card,) = store.get("bio")

    assert card.ef == 2.3
    assert card.reps == 0
    assert "ef='NaN?'" in caplog.text


def test_missing_ids_are_assigned_and_persisted(store, kv):
    kv.save(deck_key("bio"), json.dumps([{"term": "t", "definition": "d"}]))

    (card,) = store.get("bio")

    assert card.id.startswith("card_")
    assert json.loads(kv.load(deck_key("bio")))[0]["id"] == card.id
    assert store.get("bio")[0].id == card.id
    store.update("bio", card.id, {"reps": 1})


def test_non_object_entries_are_skipped(store, kv):
    kv.save(deck_key("bio"), json.dumps([42, {"id": "a", "term": "t", "definition": "d"}]))
    assert [c.id for c in store.get("bio")] == ["a"]


@pytest.mark.parametrize("payload", ["{not json", '{"id": "a"}'])
def test_unreadable_deck_is_empty(store, kv, payload, caplog):
    kv.save(deck_key("bio"), payload)
    with caplog.at_level(logging.ERROR, logger="cadence"):
        assert store.get("bio") == []
    assert "treating it as empty" in caplog.text
    assert kv.load(deck_key("bio")) == payload


def test_integer_ids_can_be_updated(store, kv):
    kv.save(deck_key("bio"), json.dumps([{"id": 7, "term": "t", "definition": "d"}]))
    store.update("bio", "7", {"reps": 3})
    assert store.get("bio")[0].reps == 3


def test_file_backed_store(tmp_path):
    store = KeyValueCardStore(FileKeyValueStore(tmp_path))
    store.save_deck("bio", [make_card("a")])
    store.update("bio", "a", {"lapses": 1})

    assert KeyValueCardStore(FileKeyValueStore(tmp_path)).get("bio")[0].lapses == 1


def test_duplicate_ids_are_renamed_and_persisted(store, kv, caplog):
    records = [
        {"id": "a", "term": "first", "definition": "d"},
        {"id": "a", "term": "second", "definition": "d"},
    ]
    kv.save(deck_key("bio"), json.dumps(records))

    with caplog.at_level(logging.WARNING):
        first, second = store.get("bio")

    assert first.id == "a"
    assert second.id != "a"
    assert second.id.startswith("card_")
    assert "duplicate card id a" in caplog.text
    assert [r["id"] for r in json.loads(kv.load(deck_key("bio")))] == ["a", second.id]

    store.update("bio", second.id, {"reps": 4})
    first, second = store.get("bio")
    assert (first.term, first.reps) == ("first", 0)
    assert (second.term, second.reps) == ("second", 4)


class SlowLoadStore(FileKeyValueStore):
    """Widens the gap between reading a deck and writing it back."""

    def load(self, key):
        value = super().load(key)
        time.sleep(0.05)
        return value


def test_concurrent_updates_to_one_deck_are_not_lost(tmp_path):
    store = KeyValueCardStore(SlowLoadStore(tmp_path))
    store.save_deck("bio", [make_card("a"), make_card("b")])

    threads = [
        threading.Thread(target=store.update, args=("bio", card_id, {"reps": 1}))
        for card_id in ("a", "b")
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert {c.id: c.reps for c in store.get("bio")} == {"a": 1, "b": 1}
