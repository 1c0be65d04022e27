"""
Conversion between Card objects and their persisted flat records.

A record is a JSON-safe dict using the stored field names
(``lastReviewed`` is camel-cased; everything else matches the Card).
Parsing never fails: corrupt or missing fields are replaced with the
lifecycle defaults and each substitution is reported as a ValidationIssue.
"""

import math
from typing import Any

from ulid import ULID

from .constants import EF_DEFAULT, EF_MAX, EF_MIN
from .models import Card, CardParse, ValidationIssue

RECORD_FIELDS = ("id", "term", "definition", "due", "ef", "reps", "interval", "lapses", "lastReviewed")

_MISSING = object()


def generate_card_id() -> str:
    """Generate a stable card ID using ULID."""
    return f"card_{ULID()}"


def new_card(term: str, definition: str, now: int, card_id: str | None = None) -> Card:
    """Create a never-reviewed card that is immediately due."""
    return Card(
        id=card_id or generate_card_id(),
        term=term,
        definition=definition,
        due=now,
    )


def reset_progress(card: Card, now: int) -> Card:
    """Restore creation defaults, keeping identity and content."""
    return new_card(card.term, card.definition, now, card_id=card.id)


def card_to_record(card: Card) -> dict[str, Any]:
    return {
        "id": card.id,
        "term": card.term,
        "definition": card.definition,
        "due": card.due,
        "ef": card.ef,
        "reps": card.reps,
        "interval": card.interval,
        "lapses": card.lapses,
        "lastReviewed": card.last_reviewed,
    }


def scheduling_patch(card: Card) -> dict[str, Any]:
    """The subset of a record the scheduler may change."""
    record = card_to_record(card)
    for key in ("id", "term", "definition"):
        del record[key]
    return record


def parse_card(raw: dict[str, Any]) -> CardParse:
    """
    Parse a persisted record into a Card, substituting defaults for bad fields.

    Defaults: ef=2.3, reps=0, interval=0, lapses=0, lastReviewed absent,
    due=0 (immediately eligible). Out-of-range ease factors are clamped.
    A missing identifier is replaced with a freshly generated one.
    """
    issues: list[ValidationIssue] = []

    def note(field: str, value: Any, substituted: Any) -> None:
        issues.append(
            ValidationIssue(field=field, value=None if value is _MISSING else value, substituted=substituted)
        )

    raw_id = raw.get("id", _MISSING)
    if isinstance(raw_id, str) and raw_id.strip():
        card_id = raw_id
    elif isinstance(raw_id, int) and not isinstance(raw_id, bool):
        card_id = str(raw_id)
    else:
        card_id = generate_card_id()
        note("id", raw_id, card_id)

    term = _text(raw, "term", note)
    definition = _text(raw, "definition", note)

    due = _whole(raw.get("due", _MISSING), allow_negative=True)
    if due is None:
        due = 0
        note("due", raw.get("due", _MISSING), due)

    raw_ef = raw.get("ef", _MISSING)
    ef = _number(raw_ef)
    if ef is None:
        ef = EF_DEFAULT
        note("ef", raw_ef, ef)
    elif not EF_MIN <= ef <= EF_MAX:
        clamped = min(max(ef, EF_MIN), EF_MAX)
        note("ef", raw_ef, clamped)
        ef = clamped

    counters = {}
    for name in ("reps", "interval", "lapses"):
        value = raw.get(name, _MISSING)
        parsed = _whole(value)
        if parsed is None:
            parsed = 0
            note(name, value, parsed)
        counters[name] = parsed

    raw_last = raw.get("lastReviewed", raw.get("last_reviewed", _MISSING))
    last_reviewed = None
    if raw_last is not _MISSING and raw_last is not None:
        last_reviewed = _whole(raw_last, allow_negative=True)
        if last_reviewed is None:
            note("lastReviewed", raw_last, None)

    card = Card(
        id=card_id,
        term=term,
        definition=definition,
        due=due,
        ef=ef,
        reps=counters["reps"],
        interval=counters["interval"],
        lapses=counters["lapses"],
        last_reviewed=last_reviewed,
    )
    return CardParse(card=card, issues=issues)


def sanitize_card(card: Card) -> Card:
    """Re-run the tolerant parse over an in-memory card (e.g. built by hand)."""
    return parse_card(card_to_record(card)).card


def _text(raw: dict[str, Any], field: str, note) -> str:
    value = raw.get(field, _MISSING)
    if isinstance(value, str):
        return value
    substituted = "" if value is _MISSING or value is None else str(value)
    note(field, value, substituted)
    return substituted


def _number(value: Any) -> float | None:
    if value is _MISSING or value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _whole(value: Any, allow_negative: bool = False) -> int | None:
    number = _number(value)
    if number is None:
        return None
    if number < 0 and not allow_negative:
        return None
    return int(number)
