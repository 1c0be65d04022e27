import random

import pytest

from cadence.application.due_selector import partition
from tests.factories import DAY, T, make_card


def test_partition_boundary_is_inclusive():
    on_time = make_card("on", due=T)
    late = make_card("late", due=T - DAY)
    early = make_card("early", due=T + 1)

    due, not_due = partition([early, on_time, late], T)

    assert due == [on_time, late]
    assert not_due == [early]


def test_partition_is_stable():
    cards = [make_card(f"c{i}", due=T + (DAY if i % 2 else -DAY)) for i in range(10)]
    due, not_due = partition(cards, T)
    assert [c.id for c in due] == ["c0", "c2", "c4", "c6", "c8"]
    assert [c.id for c in not_due] == ["c1", "c3", "c5", "c7", "c9"]


def test_partition_does_not_copy_cards():
    card = make_card()
    due, _ = partition([card], T)
    assert due[0] is card


def test_partition_empty():
    assert partition([], T) == ([], [])


def test_partition_accepts_any_iterable():
    due, not_due = partition((make_card(f"c{i}", due=T) for i in range(3)), T)
    assert len(due) == 3 and not not_due


@pytest.mark.parametrize("seed", range(5))
def test_partition_totality(seed):
    rng = random.Random(seed)
    cards = [make_card(f"c{i}", due=T + rng.randint(-5, 5) * DAY) for i in range(rng.randint(0, 40))]
    now = T + rng.randint(-3, 3) * DAY

    due, not_due = partition(cards, now)

    assert sorted(c.id for c in due + not_due) == sorted(c.id for c in cards)
    assert len(due) + len(not_due) == len(cards)
    assert all(c.due <= now for c in due)
    assert all(c.due > now for c in not_due)
