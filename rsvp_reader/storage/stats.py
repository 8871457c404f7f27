"""Cumulative reading statistics.

WHY: Showing how much has been read, and at what effective speed, is
the reader's main feedback loop.

HOW: ReadingStats is stored under STATS_KEY. ``update_stats()`` is pure:
it returns new stats with words and seconds added and the average
recomputed. ``record_session()`` additionally counts one session.

RULES:
- time_spent is in seconds; start_time is a Unix epoch in seconds
- average_wpm = round(words_read / time_spent * 60) when time_spent > 0,
  otherwise the previous average is kept
- Stats are never mutated in place
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict

from rsvp_reader.storage.store import JSONStore

STATS_KEY = "rsvp-reader-stats"

STATS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "words_read": {"type": "integer", "minimum": 0},
        "time_spent": {"type": "number", "minimum": 0},
        "average_wpm": {"type": "number", "minimum": 0},
        "start_time": {"type": "number"},
        "sessions": {"type": "integer", "minimum": 0},
    },
    "required": ["words_read", "time_spent"],
}


@dataclass(frozen=True)
class ReadingStats:
    words_read: int = 0
    time_spent: float = 0.0
    average_wpm: float = 0
    start_time: float = field(default_factory=time.time)
    sessions: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def update_stats(stats: ReadingStats, words_read: int, time_spent: float) -> ReadingStats:
    """Add a reading interval to ``stats``.

    Args:
        stats: Current totals.
        words_read: Words (displayed units) read in the interval.
        time_spent: Interval length in seconds.
    """
    total_words = stats.words_read + words_read
    total_time = stats.time_spent + time_spent
    average = stats.average_wpm
    if total_time > 0:
        average = round(total_words / total_time * 60)
    return replace(stats, words_read=total_words, time_spent=total_time, average_wpm=average)


def record_session(stats: ReadingStats, words_read: int, time_spent: float) -> ReadingStats:
    """Like update_stats(), and count one more reading session."""
    updated = update_stats(stats, words_read, time_spent)
    return replace(updated, sessions=updated.sessions + 1)


def load_stats(store: JSONStore) -> ReadingStats:
    stored = store.load(STATS_KEY, default=None, schema=STATS_SCHEMA)
    if stored is None:
        return ReadingStats()
    known = {k: v for k, v in stored.items() if k in ReadingStats.__dataclass_fields__}
    return ReadingStats(**known)


def save_stats(store: JSONStore, stats: ReadingStats) -> bool:
    return store.save(STATS_KEY, stats.to_dict())
