"""Persistence for settings, reading statistics and bookmarks.

WHY: The shell remembers user preferences and progress markers, but the
pacing core must never depend on storage. This package is the shell's
side of that boundary.

HOW: store.py provides a JSON-file key-value store; settings.py,
stats.py and bookmarks.py each own one fixed key and its schema.

RULES:
- Loading never raises; broken data falls back to defaults with a log
- Playback position is not persisted (bookmarks only)
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from rsvp_reader.config import DATA_DIR
from rsvp_reader.storage.bookmarks import (
    Bookmark,
    add_bookmark,
    load_bookmarks,
    remove_bookmark,
    save_bookmarks,
    update_bookmark,
)
from rsvp_reader.storage.settings import ReaderSettings, load_settings, save_settings
from rsvp_reader.storage.stats import (
    ReadingStats,
    load_stats,
    record_session,
    save_stats,
    update_stats,
)
from rsvp_reader.storage.store import JSONStore


def default_store(directory: Optional[Union[str, Path]] = None) -> JSONStore:
    """Store rooted at ``directory`` or the configured DATA_DIR."""
    return JSONStore(directory if directory is not None else DATA_DIR)


__all__ = [
    "Bookmark",
    "JSONStore",
    "ReaderSettings",
    "ReadingStats",
    "add_bookmark",
    "default_store",
    "load_bookmarks",
    "load_settings",
    "load_stats",
    "record_session",
    "remove_bookmark",
    "save_bookmarks",
    "save_settings",
    "save_stats",
    "update_bookmark",
    "update_stats",
]
