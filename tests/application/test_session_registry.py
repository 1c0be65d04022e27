import pytest

from cadence.application.learn_queue import LearnSession, SessionState
from cadence.application.session_registry import SessionRegistry
from tests.factories import T, make_card


@pytest.fixture
def registry(clock):
    return SessionRegistry(clock)


def new_session(store, clock, shuffler, deck_id="bio"):
    return LearnSession(deck_id, store=store, clock=clock, shuffler=shuffler)


def test_sessions_are_kept_apart(registry, store, clock, shuffler):
    a = new_session(store, clock, shuffler)
    b = new_session(store, clock, shuffler)
    a_id = registry.add(a)
    b_id = registry.add(b)

    assert a_id != b_id
    assert a_id.startswith("session_")
    assert registry.get(a_id) is a
    assert registry.get(b_id) is b
    assert len(registry) == 2


def test_get_unknown_raises(registry):
    with pytest.raises(KeyError):
        registry.get("session_missing")


def test_discard_ends_session(registry, store, clock, shuffler):
    session = new_session(store, clock, shuffler)
    session.start([make_card()], T)
    session_id = registry.add(session)

    assert registry.discard(session_id) is session
    assert session.state == SessionState.NOT_STARTED
    assert session_id not in registry


def test_discard_unknown_is_noop(registry):
    assert registry.discard("session_missing") is None


def test_expire_idle_drops_only_stale_sessions(registry, store, clock, shuffler):
    old = new_session(store, clock, shuffler)
    old.start([make_card()], T)
    old_id = registry.add(old)

    clock.advance(ms=30 * 60_000)
    fresh_id = registry.add(new_session(store, clock, shuffler))
    clock.advance(ms=31 * 60_000)

    assert registry.expire_idle(60 * 60_000) == [old_id]
    assert old_id not in registry
    assert fresh_id in registry
    assert old.state == SessionState.NOT_STARTED


def test_lookup_keeps_session_alive(registry, store, clock, shuffler):
    session_id = registry.add(new_session(store, clock, shuffler))

    clock.advance(ms=50 * 60_000)
    registry.get(session_id)
    clock.advance(ms=50 * 60_000)

    assert registry.expire_idle(60 * 60_000) == []
    assert session_id in registry
