"""
Session Factory
Centralizes wiring of the configured store, clock and shuffler.
"""

from functools import lru_cache
from pathlib import Path

from cadence.application.config import AppConfig
from cadence.application.learn_queue import LearnSession
from cadence.domain.ports import Clock, KeyValueStore
from cadence.infrastructure.card_store import KeyValueCardStore
from cadence.infrastructure.clock import SystemClock
from cadence.infrastructure.kv_store import FileKeyValueStore
from cadence.infrastructure.shuffle import RandomShuffler


def get_kv_store(config: AppConfig) -> KeyValueStore:
    return FileKeyValueStore(config.data_dir)


def get_card_store(config: AppConfig, kv: KeyValueStore | None = None) -> KeyValueCardStore:
    return KeyValueCardStore(kv or get_kv_store(config))


@lru_cache(maxsize=None)
def _store_for(data_dir: Path) -> KeyValueCardStore:
    return KeyValueCardStore(FileKeyValueStore(data_dir))


def get_shared_card_store(config: AppConfig) -> KeyValueCardStore:
    """
    One store per data directory for the whole process, so request threads
    share its per-deck locks.
    """
    return _store_for(Path(config.data_dir).resolve())


def get_clock() -> Clock:
    return SystemClock()


def new_learn_session(
    config: AppConfig,
    deck_id: str,
    store: KeyValueCardStore,
    clock: Clock | None = None,
) -> LearnSession:
    """
    Returns an unstarted LearnSession using the configured cap and seed.
    """
    return LearnSession(
        deck_id,
        store=store,
        clock=clock or get_clock(),
        shuffler=RandomShuffler(config.seed),
        cap=config.session_cap,
    )
