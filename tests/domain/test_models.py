import pytest

from cadence.domain.models import Grade, InvalidGradeError
from tests.factories import T, make_card


@pytest.mark.parametrize("value,expected", [(0, Grade.AGAIN), (1, Grade.HARD), (2, Grade.GOOD), (3, Grade.EASY)])
def test_grade_parse_accepts_levels(value, expected):
    assert Grade.parse(value) is expected


def test_grade_parse_passes_members_through():
    assert Grade.parse(Grade.EASY) is Grade.EASY


@pytest.mark.parametrize("value", [-1, 4, 99, 2.0, 1.5, "2", None, True, False])
def test_grade_parse_rejects_everything_else(value):
    with pytest.raises(InvalidGradeError) as exc:
        Grade.parse(value)
    assert exc.value.value == value


def test_invalid_grade_is_value_error():
    with pytest.raises(ValueError):
        Grade.parse(7)


def test_card_due_and_new():
    card = make_card(due=T)
    assert card.is_new
    assert card.is_due(T)
    assert not card.is_due(T - 1)
    assert not make_card(last_reviewed=T).is_new


def test_card_is_immutable():
    card = make_card()
    with pytest.raises(AttributeError):
        card.id = "other"
