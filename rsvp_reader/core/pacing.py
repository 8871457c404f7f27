"""Pacing configuration and per-chunk delay computation.

WHY: How long a chunk stays on screen is the heart of RSVP reading. The
rule is small but order-sensitive, so it lives in one pure function that
the engine, the CLI timeline and the tests all share.

HOW: The base delay is proportional to the number of tokens shown. A
punctuation pause is ADDED as a fraction of the base, then the short-word
factor MULTIPLIES the result. The outcome is floored at MIN_DELAY_MS.

RULES:
- base = 60000 / words_per_minute * len(chunk)   (milliseconds)
- any punctuation token: delay += base * punctuation_pause_factor
- any short-word token:  delay *= short_word_speedup_factor (always applied)
- additive step first, multiplicative step second (not commutative)
- final delay >= MIN_DELAY_MS
- words_per_minute is trusted here; rsvp_reader.config clamps it upstream
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional, Sequence

from rsvp_reader.core.tokenizer import Token

MIN_DELAY_MS = 50.0
"""Lower bound on any chunk's display time, in milliseconds."""

MS_PER_MINUTE = 60000.0


@dataclass(frozen=True)
class PacingConfig:
    """Reading-speed parameters for one engine.

    RULES:
    - words_per_minute: base rate, must be > 0 (not validated here)
    - chunk_size: tokens per displayed chunk, >= 1 in normal use
    - punctuation_pause_factor: fraction of base added on punctuation
    - short_word_speedup_factor: multiplier applied on short words
    """

    words_per_minute: float = 300
    chunk_size: int = 1
    punctuation_pause_factor: float = 0.5
    short_word_speedup_factor: float = 0.8

    @classmethod
    def field_names(cls) -> frozenset:
        return frozenset(f.name for f in fields(cls))

    @classmethod
    def from_mapping(cls, values: Optional[Mapping[str, Any]] = None) -> PacingConfig:
        """Build a config from a partial mapping; unknown keys are ignored."""
        return cls().merged(values or {})

    def merged(self, values: Mapping[str, Any]) -> PacingConfig:
        """Return a copy with the known fields of ``values`` applied.

        ``None`` values are treated as absent so optional CLI flags and
        request fields can be passed through unchanged.
        """
        known = self.field_names()
        updates = {k: v for k, v in values.items() if k in known and v is not None}
        return replace(self, **updates)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def base_delay(config: PacingConfig, token_count: int) -> float:
    """Undecorated display time for ``token_count`` tokens."""
    return (MS_PER_MINUTE / config.words_per_minute) * token_count


def calculate_delay(chunk: Sequence[Token], config: PacingConfig) -> float:
    """Display time in milliseconds for one chunk.

    Args:
        chunk: The tokens shown together.
        config: Active pacing configuration.

    Returns:
        Delay in milliseconds, never below MIN_DELAY_MS.
    """
    base = base_delay(config, len(chunk))
    delay = base

    if any(token.is_punctuation for token in chunk):
        delay += base * config.punctuation_pause_factor

    if any(token.is_short_word for token in chunk):
        delay *= config.short_word_speedup_factor

    return max(delay, MIN_DELAY_MS)
