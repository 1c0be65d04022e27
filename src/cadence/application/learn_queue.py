"""
Learn session state machine.

A LearnSession owns one sitting of review: it builds a bounded queue of
card snapshots (due cards first, then not-due cards, each group shuffled),
walks it one card at a time, and writes every grading result back to the
card store. Sessions hold no global state; whoever drives the UI keeps a
reference to the session object (or a SessionRegistry does, per session id).
"""

import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from cadence.application.due_selector import partition
from cadence.application.scheduler import schedule
from cadence.domain.constants import DEFAULT_SESSION_CAP, SNAPSHOT_VERSION
from cadence.domain.models import Card, Grade
from cadence.domain.ports import CardStore, Clock, Shuffler
from cadence.domain.records import scheduling_patch

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# Rejection reasons reported by TransitionResult.reason
NOT_STARTED = "not_started"
ALREADY_STARTED = "already_started"
COMPLETED = "completed"
NOT_REVEALED = "not_revealed"
ALREADY_REVEALED = "already_revealed"
NO_CURRENT_CARD = "no_current_card"


@dataclass(frozen=True)
class TransitionResult:
    """
    Outcome of a session operation.

    Rejected operations (ok=False) leave the session untouched and carry a
    reason string. ``card`` is the card the operation acted on: the
    revealed card for reveal(), the updated card for grade().
    """

    ok: bool
    state: SessionState
    reason: str | None = None
    card: Card | None = None

    @classmethod
    def rejected(cls, state: SessionState, reason: str) -> "TransitionResult":
        return cls(ok=False, state=state, reason=reason)


@dataclass(frozen=True)
class SessionProgress:
    position: int
    graded: int
    total: int

    @property
    def remaining(self) -> int:
        return self.total - self.position

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 0
        return round(self.graded / self.total * 100)


class LearnSession:
    """
    One learning sitting over a single deck.

    States: NOT_STARTED -> IN_PROGRESS -> COMPLETED. end() returns to
    NOT_STARTED from anywhere, discarding the queue.
    """

    def __init__(
        self,
        deck_id: str,
        store: CardStore,
        clock: Clock,
        shuffler: Shuffler,
        cap: int = DEFAULT_SESSION_CAP,
    ):
        if cap < 1:
            raise ValueError(f"Session cap must be at least 1, got {cap}")
        self.deck_id = deck_id
        self._store = store
        self._clock = clock
        self._shuffler = shuffler
        self.cap = cap
        # Serializes transitions when one session is driven from several threads.
        self._lock = threading.RLock()
        self._reset()

    def _reset(self) -> None:
        self._state = SessionState.NOT_STARTED
        self._queue: list[Card] = []
        self._position = 0
        self._graded = 0
        self._flipped = False
        self._started_at: int | None = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def queue(self) -> tuple[Card, ...]:
        return tuple(self._queue)

    @property
    def current(self) -> Card | None:
        if self._state != SessionState.IN_PROGRESS or self._position >= len(self._queue):
            return None
        return self._queue[self._position]

    @property
    def flipped(self) -> bool:
        return self._flipped

    @property
    def started_at(self) -> int | None:
        return self._started_at

    @property
    def progress(self) -> SessionProgress:
        return SessionProgress(position=self._position, graded=self._graded, total=len(self._queue))

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self, cards: Iterable[Card] | None = None, now: int | None = None) -> TransitionResult:
        """
        Build the queue and begin the session.

        Args:
            cards: Cards to draw from. Loaded from the store when omitted.
            now: Reference time for due selection. Read from the clock when omitted.
        """
        with self._lock:
            if self._state != SessionState.NOT_STARTED:
                return TransitionResult.rejected(self._state, ALREADY_STARTED)

            if now is None:
                now = self._clock.now()
            if cards is None:
                cards = self._store.get(self.deck_id)

            due, not_due = partition(cards, now)
            self._shuffler.shuffle(due)
            self._shuffler.shuffle(not_due)

            self._queue = (due + not_due)[: self.cap]
            self._position = 0
            self._graded = 0
            self._flipped = False
            self._started_at = now
            self._state = SessionState.IN_PROGRESS

            logger.info(
                f"Started session on '{self.deck_id}': {len(self._queue)} cards "
                f"({min(len(due), self.cap)} due)"
            )
            self._complete_if_exhausted()
            return TransitionResult(ok=True, state=self._state, card=self.current)

    def reveal(self) -> TransitionResult:
        """Flip the current card to show its definition."""
        with self._lock:
            rejection = self._check_active()
            if rejection:
                return rejection
            if self._flipped:
                return TransitionResult.rejected(self._state, ALREADY_REVEALED)

            self._flipped = True
            return TransitionResult(ok=True, state=self._state, card=self.current)

    def grade(self, value: Grade | int) -> TransitionResult:
        """
        Grade the revealed card, persist the result and advance.

        Raises:
            InvalidGradeError: If value is not a valid grade.
            UnknownCardError: If the store no longer has the card. The
                session does not advance in that case.
        """
        grade = Grade.parse(value)

        with self._lock:
            rejection = self._check_active()
            if rejection:
                return rejection
            if not self._flipped:
                return TransitionResult.rejected(self._state, NOT_REVEALED)

            card = self._queue[self._position]
            updated = schedule(card, grade, self._clock.now())
            self._store.update(self.deck_id, card.id, scheduling_patch(updated))

            self._queue[self._position] = updated
            self._position += 1
            self._graded += 1
            self._flipped = False

            logger.debug(
                f"Graded {card.id} as {grade.name}: interval={updated.interval}d ef={updated.ef}"
            )
            self._complete_if_exhausted()
            return TransitionResult(ok=True, state=self._state, card=updated)

    def end(self) -> None:
        """Abandon the session. Already-graded cards stay written."""
        with self._lock:
            if self._state == SessionState.IN_PROGRESS:
                logger.info(
                    f"Session on '{self.deck_id}' ended early after "
                    f"{self._graded}/{len(self._queue)} cards"
                )
            self._reset()

    def _check_active(self) -> TransitionResult | None:
        if self._state == SessionState.NOT_STARTED:
            return TransitionResult.rejected(self._state, NOT_STARTED)
        if self._state == SessionState.COMPLETED:
            return TransitionResult.rejected(self._state, COMPLETED)
        if self.current is None:
            return TransitionResult.rejected(self._state, NO_CURRENT_CARD)
        return None

    def _complete_if_exhausted(self) -> None:
        if self._state == SessionState.IN_PROGRESS and self._position >= len(self._queue):
            self._state = SessionState.COMPLETED
            logger.info(f"Session on '{self.deck_id}' completed: {self._graded} cards graded")

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """JSON-safe description of the session, enough to resume it later."""
        return {
            "version": SNAPSHOT_VERSION,
            "deck_id": self.deck_id,
            "state": self._state.value,
            "queue": [card.id for card in self._queue],
            "position": self._position,
            "graded": self._graded,
            "flipped": self._flipped,
            "started_at": self._started_at,
        }

    @classmethod
    def restore(
        cls,
        snapshot: Mapping[str, Any],
        cards: Iterable[Card],
        store: CardStore,
        clock: Clock,
        shuffler: Shuffler,
        cap: int = DEFAULT_SESSION_CAP,
    ) -> "LearnSession":
        """
        Rebuild a session from a snapshot against the current card collection.

        Cards that no longer exist are dropped from the queue and the
        position is moved back accordingly. A snapshot with nothing left to
        review restores as COMPLETED.

        Raises:
            ValueError: If the snapshot is malformed.
        """
        try:
            deck_id = str(snapshot["deck_id"])
            state = SessionState(snapshot["state"])
            queue_ids = [str(i) for i in snapshot["queue"]]
            position = int(snapshot["position"])
            started_at = snapshot.get("started_at")
            if started_at is not None:
                started_at = int(started_at)
            flipped = bool(snapshot.get("flipped", False))
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Malformed session snapshot: {e}") from e

        session = cls(deck_id, store, clock, shuffler, cap=cap)
        if state == SessionState.NOT_STARTED:
            return session

        by_id = {card.id: card for card in cards}
        position = min(max(position, 0), len(queue_ids))
        done = [by_id[i] for i in queue_ids[:position] if i in by_id]
        pending = [by_id[i] for i in queue_ids[position:] if i in by_id]

        session._queue = done + pending
        session._position = len(done)
        session._graded = len(done)
        session._started_at = started_at if started_at is not None else clock.now()
        session._state = SessionState.IN_PROGRESS
        session._flipped = (
            flipped
            and state == SessionState.IN_PROGRESS
            and bool(pending)
            and position < len(queue_ids)
            and pending[0].id == queue_ids[position]
        )
        session._complete_if_exhausted()

        dropped = len(queue_ids) - len(session._queue)
        if dropped:
            logger.warning(f"Restored session on '{deck_id}' without {dropped} missing card(s)")
        return session
