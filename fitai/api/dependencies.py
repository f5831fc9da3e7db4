"""
Shared FastAPI dependencies.
"""

import threading
from typing import Optional

from fitai import config
from fitai.analytics import WeeklySummaryGenerator
from fitai.store import AppDataStore

_store: Optional[AppDataStore] = None
_store_lock = threading.Lock()


def build_store() -> AppDataStore:
    """Create and load the store described by the environment configuration."""
    generator = WeeklySummaryGenerator(
        streak_threshold=config.STREAK_THRESHOLD, top_n=config.TOP_EXERCISES
    )
    if config.DATABASE_URL:
        store = AppDataStore.from_database(
            config.DATABASE_URL, key=config.DOCUMENT_KEY, summary_generator=generator
        )
    else:
        store = AppDataStore.from_path(config.DATA_PATH, summary_generator=generator)
    store.load()
    return store


def get_store() -> AppDataStore:
    """Process-wide store dependency, loaded on first use."""
    global _store
    with _store_lock:
        if _store is None:
            _store = build_store()
        return _store
