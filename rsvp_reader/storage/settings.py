"""Persisted reader settings.

WHY: Readers expect their speed, chunk size and display preferences to
survive restarts. The pacing values feed the engine; the display flags
are consumed by whichever shell renders events.

HOW: ReaderSettings is a flat dataclass stored under SETTINGS_KEY.
Loading merges the stored object over the defaults, so settings files
written by older versions keep working, and then passes the pacing
fields through ``normalize_pacing()``.

RULES:
- Unknown stored keys are ignored; missing keys take defaults
- A stored value of the wrong type makes the whole file fall back to
  defaults (schema validation)
- pacing() returns the engine's PacingConfig view of the settings
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict

from rsvp_reader.config import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_PUNCTUATION_PAUSE,
    DEFAULT_SHORT_WORD_FACTOR,
    DEFAULT_WPM,
    normalize_pacing,
)
from rsvp_reader.core.pacing import PacingConfig
from rsvp_reader.storage.store import JSONStore

SETTINGS_KEY = "rsvp-reader-settings"

SETTINGS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "theme": {"enum": ["dark", "light", "auto"]},
        "font_size": {"type": "number"},
        "font_family": {"type": "string"},
        "show_orp": {"type": "boolean"},
        "orp_color": {"type": "string"},
        "words_per_minute": {"type": "number"},
        "chunk_size": {"type": "integer"},
        "punctuation_pause_factor": {"type": "number"},
        "short_word_speedup_factor": {"type": "number"},
        "auto_pause_on_punctuation": {"type": "boolean"},
        "highlight_current_word": {"type": "boolean"},
        "show_progress": {"type": "boolean"},
        "show_stats": {"type": "boolean"},
        "minimal_mode": {"type": "boolean"},
        "show_controls": {"type": "boolean"},
        "compact_controls": {"type": "boolean"},
    },
}


@dataclass
class ReaderSettings:
    # Display
    theme: str = "dark"
    font_size: float = 4
    font_family: str = "system-ui"
    show_orp: bool = True
    orp_color: str = "#4a9eff"

    # Reading
    words_per_minute: float = DEFAULT_WPM
    chunk_size: int = DEFAULT_CHUNK_SIZE
    punctuation_pause_factor: float = DEFAULT_PUNCTUATION_PAUSE
    short_word_speedup_factor: float = DEFAULT_SHORT_WORD_FACTOR

    # Advanced
    auto_pause_on_punctuation: bool = False
    highlight_current_word: bool = True
    show_progress: bool = True
    show_stats: bool = True

    # UI
    minimal_mode: bool = False
    show_controls: bool = True
    compact_controls: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ReaderSettings:
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values.update(normalize_pacing(values))
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def pacing(self) -> PacingConfig:
        return PacingConfig(
            words_per_minute=self.words_per_minute,
            chunk_size=self.chunk_size,
            punctuation_pause_factor=self.punctuation_pause_factor,
            short_word_speedup_factor=self.short_word_speedup_factor,
        )


def load_settings(store: JSONStore) -> ReaderSettings:
    stored = store.load(SETTINGS_KEY, default={}, schema=SETTINGS_SCHEMA)
    return ReaderSettings.from_dict(stored)


def save_settings(store: JSONStore, settings: ReaderSettings) -> bool:
    return store.save(SETTINGS_KEY, settings.to_dict())
