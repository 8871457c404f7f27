"""Pacing engine: owns playback position and drives timed display events.

WHY: RSVP playback is a small state machine with a clock. Users pause,
seek and change speed while a "show next chunk" timer is pending, and
the position must stay consistent with whatever they did. Keeping all of
that in one object, with one pending timer, makes the behaviour easy to
reason about and to test on a virtual clock.

HOW: ``load()`` tokenizes and chunks the text. ``play()`` shows the
current chunk immediately and schedules ``_on_timer`` after that chunk's
delay; each firing shows the next chunk and schedules again until the
end, where an ``end`` event is emitted. Every transport call that pauses
or moves the position first cancels the pending timer and bumps a
generation counter, so a stale callback that still fires does nothing.

RULES:
- States: IDLE (no chunks or position at end), PLAYING, PAUSED
- 0 <= current_index <= total at all times; index == total is end-of-document
- At most one timer is pending per engine
- play() is a no-op while playing; at end it restarts from 0 first
- restart() and stop() reset to 0 and never resume playback
- seek()/seek_to() clamp into [0, total], pause, and emit nothing
- update_config() re-chunks only if chunk_size changed; the raw chunk
  index is kept (clamped to the new total), not mapped to token offsets
- No transport call raises; anomalies are clamped or ignored
"""

from __future__ import annotations

import enum
import functools
import logging
from typing import Any, List, Mapping, Optional, Union

from rsvp_reader.core.events import EngineEvent, EventSink, EventType
from rsvp_reader.core.pacing import PacingConfig, calculate_delay
from rsvp_reader.core.scheduler import AsyncioScheduler, Scheduler, TimerHandle
from rsvp_reader.core.tokenizer import Chunk, Token, chunk_text, create_chunks, tokenize

logger = logging.getLogger(__name__)

ConfigLike = Union[PacingConfig, Mapping[str, Any], None]


class EngineState(str, enum.Enum):
    """Observable playback state."""

    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"


def _coerce_config(config: ConfigLike, base: PacingConfig) -> PacingConfig:
    if config is None:
        return base
    if isinstance(config, PacingConfig):
        return config
    return base.merged(config)


class PacingEngine:
    """Timed RSVP playback over one loaded text.

    Args:
        text: Initial document text ("" for an empty engine).
        config: A PacingConfig, or a partial mapping merged over defaults.
        scheduler: Timer source. Defaults to an AsyncioScheduler, which
            needs a running event loop once playback starts.
        sink: Optional callable receiving every EngineEvent.
    """

    def __init__(
        self,
        text: str = "",
        config: ConfigLike = None,
        scheduler: Optional[Scheduler] = None,
        sink: Optional[EventSink] = None,
    ) -> None:
        self._config = _coerce_config(config, PacingConfig())
        self._scheduler = scheduler if scheduler is not None else AsyncioScheduler()
        self._sink = sink
        self._tokens: List[Token] = []
        self._chunks: List[Chunk] = []
        self._current_index = 0
        self._playing = False
        self._timer: Optional[TimerHandle] = None
        self._generation = 0
        self.load(text)

    # ------------------------------------------------------------------
    # Sink
    # ------------------------------------------------------------------

    def set_sink(self, sink: Optional[EventSink]) -> None:
        """Register the event sink, replacing any previous one."""
        self._sink = sink

    def _emit(self, event: EngineEvent) -> None:
        if self._sink is not None:
            self._sink(event)

    # ------------------------------------------------------------------
    # Timer bookkeeping
    # ------------------------------------------------------------------

    def _cancel_pending(self) -> None:
        self._generation += 1
        if self._timer is not None:
            self._scheduler.cancel(self._timer)
            self._timer = None

    def _schedule_next(self, delay_ms: float) -> None:
        self._timer = self._scheduler.schedule(
            delay_ms, functools.partial(self._on_timer, self._generation)
        )

    def _on_timer(self, generation: int) -> None:
        if generation != self._generation or not self._playing:
            logger.debug("Ignoring stale timer (generation %d)", generation)
            return
        self._timer = None
        self._advance()

    def _advance(self) -> None:
        """Show the chunk at the current position and schedule the next step."""
        total = len(self._chunks)
        if self._current_index >= total:
            self._playing = False
            logger.debug("Reached end of document (%d chunks)", total)
            self._emit(EngineEvent(
                type=EventType.END,
                content="",
                index=self._current_index,
                total=total,
            ))
            return

        index = self._current_index
        chunk = self._chunks[index]
        delay = calculate_delay(chunk, self._config)
        event_type = EventType.CHUNK if self._config.chunk_size > 1 else EventType.WORD

        self._current_index = index + 1
        generation = self._generation
        self._emit(EngineEvent(
            type=event_type,
            content=chunk_text(chunk),
            index=index,
            total=total,
            delay_ms=delay,
        ))

        # The sink may have paused or seeked; both cancel and bump the generation.
        if self._playing and generation == self._generation:
            self._schedule_next(delay)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def load(self, text: str, config: ConfigLike = None) -> None:
        """Replace the document, reset to position 0, and pause."""
        self._cancel_pending()
        self._playing = False
        self._config = _coerce_config(config, self._config)
        self._tokens = tokenize(text)
        self._chunks = create_chunks(self._tokens, self._config.chunk_size)
        self._current_index = 0
        logger.debug(
            "Loaded %d tokens into %d chunks (chunk_size=%d)",
            len(self._tokens), len(self._chunks), self._config.chunk_size,
        )

    def play(self) -> None:
        """Start playback, emitting the current chunk immediately."""
        if self._playing:
            return
        if self._current_index >= len(self._chunks):
            self.restart()
        self._playing = True
        logger.debug("Play from chunk %d", self._current_index)
        self._advance()

    def pause(self) -> None:
        """Stop the clock; position is kept."""
        self._cancel_pending()
        if self._playing:
            logger.debug("Paused at chunk %d", self._current_index)
        self._playing = False

    def stop(self) -> None:
        """Pause and rewind to the start."""
        self.pause()
        self._current_index = 0

    def restart(self) -> None:
        """Rewind to the start without resuming playback."""
        self._cancel_pending()
        self._playing = False
        self._current_index = 0

    def seek(self, offset: int) -> None:
        """Move the position by ``offset`` chunks, clamped, and pause."""
        self.seek_to(self._current_index + offset)

    def seek_to(self, index: int) -> None:
        """Move to chunk ``index``, clamped into [0, total], and pause."""
        self._cancel_pending()
        self._playing = False
        self._current_index = max(0, min(len(self._chunks), index))

    def update_config(self, values: ConfigLike = None, **changes: Any) -> None:
        """Merge configuration changes into the live config.

        Accepts a PacingConfig, a partial mapping, keyword arguments, or a
        mix. Playback continues; the next scheduled step uses the new
        values. Changing chunk_size rebuilds the chunks from the same
        tokens and keeps the raw chunk index.
        """
        previous = self._config
        updated = _coerce_config(values, previous)
        if changes:
            updated = updated.merged(changes)
        self._config = updated

        if updated.chunk_size != previous.chunk_size:
            self._chunks = create_chunks(self._tokens, updated.chunk_size)
            self._current_index = min(self._current_index, len(self._chunks))
            logger.debug(
                "Re-chunked to %d chunks (chunk_size %d -> %d), index kept at %d",
                len(self._chunks), previous.chunk_size, updated.chunk_size,
                self._current_index,
            )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> PacingConfig:
        return self._config

    @property
    def tokens(self) -> List[Token]:
        return list(self._tokens)

    @property
    def chunks(self) -> List[Chunk]:
        return list(self._chunks)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def total(self) -> int:
        return len(self._chunks)

    @property
    def progress(self) -> float:
        if not self._chunks:
            return 0.0
        return self._current_index / len(self._chunks)

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def state(self) -> EngineState:
        if self._playing:
            return EngineState.PLAYING
        if self._current_index >= len(self._chunks):
            return EngineState.IDLE
        return EngineState.PAUSED

    @property
    def current_chunk(self) -> Optional[Chunk]:
        if self._current_index >= len(self._chunks):
            return None
        return self._chunks[self._current_index]

    @property
    def current_text(self) -> str:
        chunk = self.current_chunk
        return chunk_text(chunk) if chunk is not None else ""

    def remaining_ms(self) -> float:
        """Display time left from the current position to the end."""
        return sum(
            calculate_delay(chunk, self._config)
            for chunk in self._chunks[self._current_index:]
        )

    def __repr__(self) -> str:
        return "PacingEngine(state={}, index={}, total={}, wpm={})".format(
            self.state.value, self._current_index, len(self._chunks),
            self._config.words_per_minute,
        )
