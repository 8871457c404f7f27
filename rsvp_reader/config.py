"""Configuration constants, pacing defaults, and .env loading.

WHY: Centralizes every tunable value so it is easy to find, update and
override. Reading-speed defaults, speed bounds, the data directory and
the accepted document formats are plain data, not buried in logic.

HOW: python-dotenv loads the .env file on import. Defaults are read from
environment variables with hardcoded fallbacks. ``normalize_pacing()`` is
the configuration boundary: everything user-supplied passes through it
before reaching the engine.

RULES:
- Pacing defaults: 300 wpm, chunk size 1, punctuation pause 0.5,
  short-word factor 0.8 (overridable via RSVP_* variables)
- words_per_minute below MIN_WPM is clamped up to MIN_WPM, so the engine
  never divides by zero or produces negative delays
- chunk_size below 1 is clamped up to 1
- Unknown keys are dropped by normalize_pacing()
- DATA_DIR defaults to ~/.rsvp_reader
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# ---------------------------------------------------------------------------
# Pacing defaults
# ---------------------------------------------------------------------------

DEFAULT_WPM = _env_float("RSVP_WPM", 300)
DEFAULT_CHUNK_SIZE = _env_int("RSVP_CHUNK_SIZE", 1)
DEFAULT_PUNCTUATION_PAUSE = _env_float("RSVP_PUNCTUATION_PAUSE", 0.5)
DEFAULT_SHORT_WORD_FACTOR = _env_float("RSVP_SHORT_WORD_FACTOR", 0.8)

MIN_WPM = 10
"""Smallest words-per-minute value accepted at the configuration boundary."""

MAX_WPM = 2000

WPM_STEP = 50
"""Increment used by speed-up / slow-down controls."""

WPM_NUDGE_RANGE = (100, 1200)
"""Range speed-up / slow-down controls stay within."""

# ---------------------------------------------------------------------------
# Storage and logging
# ---------------------------------------------------------------------------

DATA_DIR = Path(os.getenv("RSVP_DATA_DIR", str(Path.home() / ".rsvp_reader"))).expanduser()
LOG_LEVEL = os.getenv("RSVP_LOG_LEVEL", "WARNING").upper()

# ---------------------------------------------------------------------------
# Document formats
# ---------------------------------------------------------------------------

SUPPORTED_DOCUMENT_FORMATS: set[str] = {
    ".txt", ".md", ".markdown", ".html", ".htm", ".pdf", ".epub",
}
"""Document file extensions the readers can decode (lowercase, with dot)."""

# ---------------------------------------------------------------------------
# HTTP API
# ---------------------------------------------------------------------------

API_HOST = os.getenv("RSVP_API_HOST", "127.0.0.1")
API_PORT = _env_int("RSVP_API_PORT", 8000)
SESSION_TTL_SECONDS = _env_int("RSVP_SESSION_TTL", 3600)
MAX_SESSIONS = _env_int("RSVP_MAX_SESSIONS", 50)


def default_pacing() -> Dict[str, Any]:
    """Pacing defaults as a plain dict (engine field names)."""
    return {
        "words_per_minute": DEFAULT_WPM,
        "chunk_size": DEFAULT_CHUNK_SIZE,
        "punctuation_pause_factor": DEFAULT_PUNCTUATION_PAUSE,
        "short_word_speedup_factor": DEFAULT_SHORT_WORD_FACTOR,
    }


def normalize_pacing(values: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Sanitize user-supplied pacing values before they reach the engine.

    WHY: The engine trusts words_per_minute; a zero or negative value
    would produce an infinite or negative delay. This is where that is
    prevented.

    HOW: Keeps only known, non-None keys, then clamps words_per_minute to
    at least MIN_WPM and chunk_size to at least 1.

    RULES:
    - Returns a new dict; ``values`` is not modified
    - Valid values pass through unchanged
    """
    known = default_pacing().keys()
    result = {k: v for k, v in (values or {}).items() if k in known and v is not None}

    if "words_per_minute" in result:
        result["words_per_minute"] = max(float(result["words_per_minute"]), float(MIN_WPM))
    if "chunk_size" in result:
        result["chunk_size"] = max(int(result["chunk_size"]), 1)
    return result


def nudge_wpm(current: float, steps: int) -> float:
    """Raise or lower a speed by ``steps`` increments of WPM_STEP.

    The result stays within WPM_NUDGE_RANGE, matching the arrow-key
    speed controls of a reader UI.
    """
    low, high = WPM_NUDGE_RANGE
    return float(max(low, min(high, current + steps * WPM_STEP)))
