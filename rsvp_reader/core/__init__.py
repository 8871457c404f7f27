"""Pacing core: tokenizer, delay rules, timers and the playback engine.

WHY: The core is the only part of the reader with real timing and state
semantics. It must stay independent of file formats, storage and any
particular user interface so it can be driven by the CLI, the HTTP API
and the tests alike.

HOW: tokenizer.py turns text into classified tokens and chunks,
pacing.py computes per-chunk delays, scheduler.py provides cancellable
timers, events.py defines what is emitted, and engine.py ties them into
a transport-controlled state machine.

RULES:
- Nothing in this package imports from readers/, storage/ or server/
- The engine raises nothing for bad positions or empty text
"""

from rsvp_reader.core.engine import EngineState, PacingEngine
from rsvp_reader.core.events import EngineEvent, EventQueue, EventType
from rsvp_reader.core.pacing import MIN_DELAY_MS, PacingConfig, calculate_delay
from rsvp_reader.core.scheduler import AsyncioScheduler, ManualScheduler, Scheduler
from rsvp_reader.core.tokenizer import Token, chunk_text, create_chunks, tokenize

__all__ = [
    "AsyncioScheduler",
    "EngineEvent",
    "EngineState",
    "EventQueue",
    "EventType",
    "MIN_DELAY_MS",
    "ManualScheduler",
    "PacingConfig",
    "PacingEngine",
    "Scheduler",
    "Token",
    "calculate_delay",
    "chunk_text",
    "create_chunks",
    "tokenize",
]
