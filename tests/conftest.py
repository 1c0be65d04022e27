import pytest

from cadence.infrastructure.card_store import KeyValueCardStore
from cadence.infrastructure.clock import ManualClock
from cadence.infrastructure.kv_store import MemoryKeyValueStore
from cadence.infrastructure.shuffle import RandomShuffler
from tests.factories import T


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point HOME at a temp dir and drop CADENCE_* env vars so no real config leaks in."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for key in (
        "CADENCE_DATA_DIR",
        "CADENCE_SESSION_CAP",
        "CADENCE_SEED",
        "CADENCE_PORT",
        "CADENCE_SESSION_IDLE_MINUTES",
        "CADENCE_VERBOSE",
    ):
        monkeypatch.delenv(key, raising=False)
    return home


@pytest.fixture
def clock():
    return ManualClock(T)


@pytest.fixture
def kv():
    return MemoryKeyValueStore()


@pytest.fixture
def store(kv):
    return KeyValueCardStore(kv)


@pytest.fixture
def shuffler():
    return RandomShuffler(seed=1234)
