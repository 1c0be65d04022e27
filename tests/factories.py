"""Shared test data builders."""

from cadence.domain.models import Card

# 2023-11-14T22:13:20Z
T = 1_700_000_000_000
DAY = 86_400_000


def make_card(card_id: str = "c1", **kwargs) -> Card:
    fields = {"term": f"term {card_id}", "definition": f"definition {card_id}", "due": T}
    fields.update(kwargs)
    return Card(id=card_id, **fields)
