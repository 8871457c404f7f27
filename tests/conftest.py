"""Shared test fixtures for the rsvp_reader test suite.

WHY: Engine, CLI and API tests all need the same sample text, a virtual
clock and a throwaway store. Centralizing them keeps every test on the
same verified scenario.

HOW: SAMPLE_TEXT is the classification scenario used throughout. The
``engine`` fixture wires a PacingEngine to a ManualScheduler and a list
sink so tests can step time and inspect emitted events.

RULES:
- No test sleeps; all timing runs on ManualScheduler
- Store fixtures live under pytest's tmp_path
"""

from typing import List

import pytest

from rsvp_reader.core.engine import PacingEngine
from rsvp_reader.core.events import EngineEvent
from rsvp_reader.core.pacing import PacingConfig
from rsvp_reader.core.scheduler import ManualScheduler
from rsvp_reader.storage.store import JSONStore

SAMPLE_TEXT = "Hello, world! It's a test."
SAMPLE_WORDS = ["Hello,", "world!", "It's", "a", "test."]

DEFAULT_CONFIG = PacingConfig(
    words_per_minute=300,
    chunk_size=1,
    punctuation_pause_factor=0.5,
    short_word_speedup_factor=0.8,
)


class Recorder:
    """List sink with shortcuts for event contents and types."""

    def __init__(self) -> None:
        self.events: List[EngineEvent] = []

    def __call__(self, event: EngineEvent) -> None:
        self.events.append(event)

    @property
    def contents(self) -> List[str]:
        return [e.content for e in self.events]

    @property
    def types(self) -> List[str]:
        return [e.type.value for e in self.events]


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def make_engine(scheduler, recorder):
    """Factory: build an engine on the shared virtual clock and recorder."""

    def _make(text: str = SAMPLE_TEXT, config=None) -> PacingEngine:
        return PacingEngine(
            text,
            config=config if config is not None else DEFAULT_CONFIG,
            scheduler=scheduler,
            sink=recorder,
        )

    return _make


@pytest.fixture
def engine(make_engine):
    return make_engine()


@pytest.fixture
def store(tmp_path):
    return JSONStore(tmp_path / "data")
