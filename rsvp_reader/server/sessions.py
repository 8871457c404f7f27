"""In-memory playback session store with TTL cleanup.

WHY: The HTTP API hosts one pacing engine per loaded document. Clients
create a session, drive it with transport calls and poll its events, so
sessions must be addressable by ID and must not pile up forever when a
client disappears.

HOW: Session bundles an engine, its scheduler and the EventQueue the
engine emits into. SessionStore is a dict keyed by session ID, guarded
by a threading.Lock. Every lookup refreshes ``last_access``; idle
sessions older than the TTL are stopped and removed by
``cleanup_expired()``.

RULES:
- Session IDs are UUID4 hex strings generated at creation time
- New sessions start from the configured RSVP_* pacing defaults
- create_session() raises ValueError when max_sessions is reached
- get_session() returns None for unknown IDs (no exceptions)
- Removing a session (delete or expiry) stops its engine first
- The scheduler factory is injectable so tests can use virtual time
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from rsvp_reader.config import (
    MAX_SESSIONS,
    SESSION_TTL_SECONDS,
    default_pacing,
    normalize_pacing,
)
from rsvp_reader.core.engine import PacingEngine
from rsvp_reader.core.events import EventQueue
from rsvp_reader.core.pacing import PacingConfig
from rsvp_reader.core.scheduler import AsyncioScheduler, Scheduler

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """One loaded document and its playback state.

    RULES:
    - id: UUID4 hex, immutable
    - title: document title or uploaded file name
    - engine: the PacingEngine; its sink is ``events``
    - scheduler: the timer source the engine uses
    - created_at / last_access: Unix epoch seconds
    """

    id: str
    title: str
    engine: PacingEngine
    scheduler: Scheduler
    events: EventQueue
    created_at: float
    last_access: float
    metadata: Dict[str, Any] = field(default_factory=dict)


class SessionStore:
    """Thread-safe registry of playback sessions."""

    def __init__(
        self,
        ttl_seconds: int = SESSION_TTL_SECONDS,
        max_sessions: int = MAX_SESSIONS,
        scheduler_factory: Callable[[], Scheduler] = AsyncioScheduler,
    ) -> None:
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()
        self._ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self.scheduler_factory = scheduler_factory

    def create_session(
        self,
        text: str,
        title: str,
        config: Optional[Mapping[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Session:
        """Load ``text`` into a new paused engine and register it."""
        values = normalize_pacing(default_pacing())
        values.update(normalize_pacing(config))
        pacing = PacingConfig.from_mapping(values)
        scheduler = self.scheduler_factory()
        events = EventQueue()
        engine = PacingEngine(text, config=pacing, scheduler=scheduler, sink=events)

        with self._lock:
            if len(self._sessions) >= self.max_sessions:
                raise ValueError(
                    "Maximum number of sessions ({}) reached".format(self.max_sessions)
                )
            now = time.time()
            session = Session(
                id=uuid.uuid4().hex,
                title=title,
                engine=engine,
                scheduler=scheduler,
                events=events,
                created_at=now,
                last_access=now,
                metadata=metadata or {},
            )
            self._sessions[session.id] = session

        logger.info("Created session %s (%s, %d chunks)", session.id, title, engine.total)
        return session

    def get_session(self, session_id: str) -> Optional[Session]:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                session.last_access = time.time()
            return session

    def list_sessions(self) -> List[Session]:
        with self._lock:
            return sorted(self._sessions.values(), key=lambda s: s.created_at)

    def delete_session(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.engine.stop()
        logger.info("Deleted session %s", session_id)
        return True

    def cleanup_expired(self) -> int:
        """Stop and remove sessions idle for longer than the TTL.

        Playing sessions are kept regardless of idle time.
        """
        now = time.time()
        expired: List[Session] = []
        with self._lock:
            for session_id, session in list(self._sessions.items()):
                if session.engine.is_playing:
                    continue
                if now - session.last_access > self._ttl_seconds:
                    expired.append(self._sessions.pop(session_id))

        for session in expired:
            session.engine.stop()
            logger.info("Expired session %s (idle %.0fs)", session.id, now - session.last_access)
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.engine.stop()
