"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization and the generated OpenAPI docs.

HOW: Request bodies for each transport call, one snapshot model that
every state-changing endpoint returns, and an event list for polling.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Pacing fields use the engine's names (words_per_minute, chunk_size, ...)
- words_per_minute must be > 0 and <= MAX_WPM; values below MIN_WPM are
  raised to MIN_WPM by the configuration boundary, not rejected
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from rsvp_reader.config import MAX_WPM


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class PacingSettings(BaseModel):
    """Partial pacing configuration. Omitted fields keep their value."""

    words_per_minute: Optional[float] = Field(
        default=None, gt=0, le=MAX_WPM,
        description="Base reading speed in words per minute.",
    )
    chunk_size: Optional[int] = Field(
        default=None, ge=1, le=100,
        description="Number of words shown together.",
    )
    punctuation_pause_factor: Optional[float] = Field(
        default=None, ge=0,
        description="Fraction of the base delay added when a chunk contains punctuation.",
    )
    short_word_speedup_factor: Optional[float] = Field(
        default=None, gt=0,
        description="Multiplier applied to the delay when a chunk contains a short word.",
    )

    def changes(self) -> Dict[str, Any]:
        return {k: v for k, v in self.model_dump().items() if v is not None}


class CreateSessionRequest(BaseModel):
    """Load plain text into a new playback session."""

    text: str = Field(description="Plain text to read.")
    title: Optional[str] = Field(default=None, description="Display title for the session.")
    config: Optional[PacingSettings] = Field(
        default=None, description="Initial pacing configuration.",
    )


class SeekRequest(BaseModel):
    offset: int = Field(description="Relative move in chunks (negative moves back).")


class SeekToRequest(BaseModel):
    index: int = Field(description="Absolute chunk index; clamped to [0, total].")


class SpeedRequest(BaseModel):
    steps: int = Field(description="Number of speed steps to apply (negative slows down).")


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class SessionResponse(BaseModel):
    """Snapshot of a session's playback state.

    Returned by every transport endpoint, since seek calls emit no event
    and the client must read the new position from here.
    """

    id: str = Field(description="Unique session identifier (UUID).")
    title: str = Field(description="Document title.")
    state: str = Field(description="Playback state: idle, playing or paused.")
    current_index: int = Field(description="Current chunk index.")
    total: int = Field(description="Number of chunks in the document.")
    progress: float = Field(description="current_index / total, 0 for empty documents.")
    is_playing: bool = Field(description="Whether a display step is scheduled.")
    current_text: str = Field(description="Text of the chunk at current_index ('' at end).")
    remaining_ms: float = Field(description="Display time left to the end, in milliseconds.")
    config: Dict[str, Any] = Field(description="Active pacing configuration.")
    created_at: float = Field(description="Session creation timestamp (Unix epoch seconds).")

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "id": "550e8400e29b41d4a716446655440000",
                "title": "chapter1.txt",
                "state": "paused",
                "current_index": 12,
                "total": 840,
                "progress": 0.0142,
                "is_playing": False,
                "current_text": "world!",
                "remaining_ms": 171240.0,
                "config": {
                    "words_per_minute": 300,
                    "chunk_size": 1,
                    "punctuation_pause_factor": 0.5,
                    "short_word_speedup_factor": 0.8,
                },
                "created_at": 1739959200.0,
            }
        ]
    }}


class EventModel(BaseModel):
    type: str = Field(description="word, chunk or end.")
    content: str = Field(description="Chunk text ('' for end).")
    index: int = Field(description="Chunk index the event shows.")
    total: int = Field(description="Chunk count at emission time.")
    delay_ms: Optional[float] = Field(
        default=None, description="How long the chunk stays on screen.",
    )


class EventListResponse(BaseModel):
    session_id: str = Field(description="The session these events belong to.")
    events: List[EventModel] = Field(description="Events since the last poll, oldest first.")
    dropped: int = Field(description="Events discarded because the queue was full.")


class FormatInfo(BaseModel):
    extension: str = Field(description="File extension, e.g. '.pdf'.")
    name: str = Field(description="Human-readable format name.")


class ErrorResponse(BaseModel):
    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
    sessions: int = Field(description="Number of live sessions.")
