"""Keeps concurrently active learn sessions apart, one per session id."""

import logging
import threading

from ulid import ULID

from cadence.application.learn_queue import LearnSession
from cadence.domain.ports import Clock
from cadence.infrastructure.clock import SystemClock

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    return f"session_{ULID()}"


class SessionRegistry:
    """
    In-memory map of session id -> LearnSession.

    The card store stays the only shared resource; sessions are never
    shared between ids. Each lookup refreshes the session's last-activity
    time, which expire_idle() uses to drop abandoned sessions.
    """

    def __init__(self, clock: Clock | None = None):
        self.clock = clock or SystemClock()
        self._sessions: dict[str, LearnSession] = {}
        self._last_seen: dict[str, int] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def add(self, session: LearnSession) -> str:
        session_id = generate_session_id()
        with self._lock:
            self._sessions[session_id] = session
            self._last_seen[session_id] = self.clock.now()
        logger.debug(f"Registered {session_id} for deck '{session.deck_id}'")
        return session_id

    def get(self, session_id: str) -> LearnSession:
        """Raises KeyError for unknown ids."""
        with self._lock:
            session = self._sessions[session_id]
            self._last_seen[session_id] = self.clock.now()
        return session

    def discard(self, session_id: str) -> LearnSession | None:
        """End and forget a session. Unknown ids are ignored."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
            self._last_seen.pop(session_id, None)
        if session is not None:
            session.end()
        return session

    def expire_idle(self, max_idle_ms: int) -> list[str]:
        """Discard sessions not looked up for longer than max_idle_ms. Returns their ids."""
        cutoff = self.clock.now() - max_idle_ms
        with self._lock:
            stale = [sid for sid, seen in self._last_seen.items() if seen < cutoff]
        for session_id in stale:
            self.discard(session_id)
        if stale:
            logger.info(f"Expired {len(stale)} idle session(s)")
        return stale
