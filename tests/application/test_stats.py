from cadence.application.stats import days_overdue, summarize_deck
from tests.factories import DAY, T, make_card


def test_summarize_deck():
    cards = [
        make_card("new", due=T),
        make_card("learned", due=T + 3 * DAY, reps=2, interval=3, ef=2.5, last_reviewed=T),
        make_card("lapsed", due=T - DAY, ef=1.5, lapses=4, last_reviewed=T - DAY),
        make_card("later", due=T + DAY, reps=1, interval=1, ef=2.3, lapses=1, last_reviewed=T),
    ]

    summary = summarize_deck(cards, T)

    assert summary.total == 4
    assert summary.due == 2
    assert summary.new == 1
    assert summary.learned == 2
    assert summary.lapses == 5
    assert summary.average_ef == round((2.3 + 2.5 + 1.5 + 2.3) / 4, 2)
    assert summary.next_due == T + DAY


def test_summarize_empty_deck():
    summary = summarize_deck([], T)
    assert summary.total == 0
    assert summary.average_ef is None
    assert summary.next_due is None


def test_days_overdue():
    assert days_overdue(make_card(due=T - 3 * DAY), T) == 3
    assert days_overdue(make_card(due=T), T) == 0
    assert days_overdue(make_card(due=T + 2 * DAY), T) == -2
