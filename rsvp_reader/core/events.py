"""Display events emitted by the pacing engine, and a pollable sink.

WHY: The engine knows nothing about terminals, browsers or HTTP. It hands
every display step to a single registered sink as a small typed event.
Some shells (the HTTP API) cannot receive callbacks and instead poll, so
``EventQueue`` turns the callback into a channel.

RULES:
- type is "word" for single-token chunks, "chunk" for larger chunks,
  "end" once the document is exhausted
- content is the space-joined chunk text ("" for end)
- index is the chunk position BEFORE the engine advances
- total is the chunk count at emission time
- EventQueue is bounded; when full, the oldest event is dropped
"""

from __future__ import annotations

import enum
from collections import deque
from dataclasses import asdict, dataclass
from typing import Any, Callable, Deque, Dict, List, Optional


class EventType(str, enum.Enum):
    """Kinds of display event. Inherits from str for clean JSON output."""

    WORD = "word"
    CHUNK = "chunk"
    END = "end"


@dataclass(frozen=True)
class EngineEvent:
    """One display step."""

    type: EventType
    content: str
    index: int
    total: int
    delay_ms: Optional[float] = None

    @property
    def is_end(self) -> bool:
        return self.type == EventType.END

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        return data


EventSink = Callable[[EngineEvent], None]

DEFAULT_QUEUE_SIZE = 1000


class EventQueue:
    """Bounded FIFO sink that a shell drains on its own schedule.

    Usage::

        queue = EventQueue()
        engine.set_sink(queue)
        ...
        for event in queue.drain():
            render(event)
    """

    def __init__(self, maxlen: int = DEFAULT_QUEUE_SIZE) -> None:
        self._events: Deque[EngineEvent] = deque(maxlen=maxlen)
        self.dropped = 0

    def __call__(self, event: EngineEvent) -> None:
        if self._events.maxlen is not None and len(self._events) == self._events.maxlen:
            self.dropped += 1
        self._events.append(event)

    def __len__(self) -> int:
        return len(self._events)

    def drain(self) -> List[EngineEvent]:
        """Remove and return every queued event, oldest first."""
        events = list(self._events)
        self._events.clear()
        return events

    def peek_last(self) -> Optional[EngineEvent]:
        return self._events[-1] if self._events else None
