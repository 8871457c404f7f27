"""FastAPI application hosting RSVP playback sessions.

WHY: Browser front-ends and other tools need to drive the pacing engine
remotely: load a document, press play, seek, change speed, and receive
the words to display. FastAPI provides validation, OpenAPI docs and an
asyncio event loop the engine's timers can run on.

HOW: Each session owns a PacingEngine whose timers are scheduled on the
server's event loop (AsyncioScheduler), so timer callbacks and request
handlers never run concurrently. Engine events are collected in the
session's EventQueue; clients poll GET /sessions/{id}/events. Every
transport endpoint returns a full state snapshot because seek calls
emit no event.

RULES:
- All endpoints have OpenAPI summaries and typed error responses
- Unknown session IDs return 404
- Upload validation checks the extension against SUPPORTED_DOCUMENT_FORMATS
- Undecodable uploads return 422; session limit returns 429
- Pacing input passes through normalize_pacing() before the engine
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, List, Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from rsvp_reader import __version__
from rsvp_reader.config import (
    API_HOST,
    API_PORT,
    MAX_WPM,
    SUPPORTED_DOCUMENT_FORMATS,
    normalize_pacing,
    nudge_wpm,
)
from rsvp_reader.readers import READERS, DocumentReadError, read_document_bytes
from rsvp_reader.server.models import (
    CreateSessionRequest,
    ErrorResponse,
    EventListResponse,
    EventModel,
    FormatInfo,
    HealthResponse,
    PacingSettings,
    SeekRequest,
    SeekToRequest,
    SessionResponse,
    SpeedRequest,
)
from rsvp_reader.server.sessions import Session, SessionStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

session_store = SessionStore()

CLEANUP_INTERVAL_SECONDS = 300


async def _periodic_cleanup() -> None:
    """Expire idle sessions every 5 minutes."""
    while True:
        await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
        session_store.cleanup_expired()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start periodic cleanup on startup; stop all sessions on shutdown."""
    task = asyncio.create_task(_periodic_cleanup())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    session_store.clear()


app = FastAPI(
    lifespan=lifespan,
    title="RSVP Reader API",
    description=(
        "Host Rapid Serial Visual Presentation sessions: load a document, "
        "control playback (play, pause, seek, speed) and poll the timed "
        "stream of words to display."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Session not found"}}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _session_to_response(session: Session) -> SessionResponse:
    engine = session.engine
    return SessionResponse(
        id=session.id,
        title=session.title,
        state=engine.state.value,
        current_index=engine.current_index,
        total=engine.total,
        progress=engine.progress,
        is_playing=engine.is_playing,
        current_text=engine.current_text,
        remaining_ms=engine.remaining_ms(),
        config=engine.config.to_dict(),
        created_at=session.created_at,
    )


def _get_session_or_404(session_id: str) -> Session:
    session = session_store.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found: {}".format(session_id))
    return session


def _create_session(
    text: str,
    title: str,
    config: Optional[dict],
    metadata: Optional[dict] = None,
) -> Session:
    try:
        return session_store.create_session(text, title, config=config, metadata=metadata)
    except ValueError as exc:
        raise HTTPException(status_code=429, detail=str(exc))


def _validate_document_extension(filename: str) -> None:
    ext = Path(filename).suffix.lower()
    if ext not in SUPPORTED_DOCUMENT_FORMATS:
        raise HTTPException(
            status_code=400,
            detail="Unsupported document type '{}'. Supported formats: {}".format(
                ext, ", ".join(sorted(SUPPORTED_DOCUMENT_FORMATS))
            ),
        )


# ---------------------------------------------------------------------------
# Endpoints: Sessions
# ---------------------------------------------------------------------------


@app.post(
    "/sessions",
    response_model=SessionResponse,
    status_code=201,
    tags=["sessions"],
    summary="Create a session from plain text",
    responses={429: {"model": ErrorResponse, "description": "Too many sessions"}},
)
async def create_session(request: CreateSessionRequest) -> SessionResponse:
    config = request.config.changes() if request.config else None
    session = _create_session(request.text, request.title or "Untitled", config)
    return _session_to_response(session)


@app.post(
    "/sessions/upload",
    response_model=SessionResponse,
    status_code=201,
    tags=["sessions"],
    summary="Create a session from an uploaded document",
    description=(
        "Upload a .txt, .md, .html, .pdf or .epub file. The document is "
        "decoded to plain text and loaded into a new paused session."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Unsupported document type"},
        422: {"model": ErrorResponse, "description": "Document could not be decoded"},
        429: {"model": ErrorResponse, "description": "Too many sessions"},
    },
)
async def upload_session(
    file: Annotated[UploadFile, File(description="Document to read.")],
    words_per_minute: Annotated[
        Optional[float], Form(gt=0, le=MAX_WPM, description="Base reading speed."),
    ] = None,
    chunk_size: Annotated[
        Optional[int], Form(ge=1, description="Words shown together."),
    ] = None,
) -> SessionResponse:
    # Sanitize filename to prevent path traversal
    filename = Path(file.filename or "upload.txt").name
    _validate_document_extension(filename)

    data = await file.read()
    try:
        document = read_document_bytes(data, filename, strict=True)
    except DocumentReadError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    config = {"words_per_minute": words_per_minute, "chunk_size": chunk_size}
    session = _create_session(
        document.text, document.title, config, metadata=dict(document.metadata),
    )
    return _session_to_response(session)


@app.get(
    "/sessions",
    response_model=List[SessionResponse],
    tags=["sessions"],
    summary="List live sessions",
)
async def list_sessions() -> List[SessionResponse]:
    return [_session_to_response(s) for s in session_store.list_sessions()]


@app.get(
    "/sessions/{session_id}",
    response_model=SessionResponse,
    tags=["sessions"],
    summary="Get a session's playback state",
    responses=_NOT_FOUND,
)
async def get_session(session_id: str) -> SessionResponse:
    return _session_to_response(_get_session_or_404(session_id))


@app.delete(
    "/sessions/{session_id}",
    status_code=204,
    tags=["sessions"],
    summary="Stop and delete a session",
    responses=_NOT_FOUND,
)
async def delete_session(session_id: str) -> Response:
    if not session_store.delete_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found: {}".format(session_id))
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Endpoints: Transport
# ---------------------------------------------------------------------------


@app.post(
    "/sessions/{session_id}/play",
    response_model=SessionResponse,
    tags=["transport"],
    summary="Start or resume playback",
    description=(
        "Emits the current chunk immediately. At the end of the document "
        "playback restarts from the beginning. No-op while playing."
    ),
    responses=_NOT_FOUND,
)
async def play(session_id: str) -> SessionResponse:
    session = _get_session_or_404(session_id)
    session.engine.play()
    return _session_to_response(session)


@app.post(
    "/sessions/{session_id}/pause",
    response_model=SessionResponse,
    tags=["transport"],
    summary="Pause playback, keeping the position",
    responses=_NOT_FOUND,
)
async def pause(session_id: str) -> SessionResponse:
    session = _get_session_or_404(session_id)
    session.engine.pause()
    return _session_to_response(session)


@app.post(
    "/sessions/{session_id}/stop",
    response_model=SessionResponse,
    tags=["transport"],
    summary="Pause and rewind to the start",
    responses=_NOT_FOUND,
)
async def stop(session_id: str) -> SessionResponse:
    session = _get_session_or_404(session_id)
    session.engine.stop()
    return _session_to_response(session)


@app.post(
    "/sessions/{session_id}/restart",
    response_model=SessionResponse,
    tags=["transport"],
    summary="Rewind to the start without resuming",
    responses=_NOT_FOUND,
)
async def restart(session_id: str) -> SessionResponse:
    session = _get_session_or_404(session_id)
    session.engine.restart()
    return _session_to_response(session)


@app.post(
    "/sessions/{session_id}/seek",
    response_model=SessionResponse,
    tags=["transport"],
    summary="Move by a relative number of chunks",
    description="Pauses playback. The position is clamped to [0, total]; no event is emitted.",
    responses=_NOT_FOUND,
)
async def seek(session_id: str, request: SeekRequest) -> SessionResponse:
    session = _get_session_or_404(session_id)
    session.engine.seek(request.offset)
    return _session_to_response(session)


@app.post(
    "/sessions/{session_id}/seek-to",
    response_model=SessionResponse,
    tags=["transport"],
    summary="Move to an absolute chunk index",
    description="Pauses playback. The index is clamped to [0, total]; no event is emitted.",
    responses=_NOT_FOUND,
)
async def seek_to(session_id: str, request: SeekToRequest) -> SessionResponse:
    session = _get_session_or_404(session_id)
    session.engine.seek_to(request.index)
    return _session_to_response(session)


@app.patch(
    "/sessions/{session_id}/config",
    response_model=SessionResponse,
    tags=["transport"],
    summary="Change pacing configuration",
    description=(
        "Merges the given fields into the live configuration without "
        "interrupting playback. Changing chunk_size rebuilds the chunks and "
        "keeps the raw chunk index."
    ),
    responses=_NOT_FOUND,
)
async def update_config(session_id: str, request: PacingSettings) -> SessionResponse:
    session = _get_session_or_404(session_id)
    session.engine.update_config(normalize_pacing(request.changes()))
    return _session_to_response(session)


@app.post(
    "/sessions/{session_id}/speed",
    response_model=SessionResponse,
    tags=["transport"],
    summary="Speed up or slow down in fixed steps",
    responses=_NOT_FOUND,
)
async def change_speed(session_id: str, request: SpeedRequest) -> SessionResponse:
    session = _get_session_or_404(session_id)
    engine = session.engine
    engine.update_config(words_per_minute=nudge_wpm(engine.config.words_per_minute, request.steps))
    return _session_to_response(session)


@app.get(
    "/sessions/{session_id}/events",
    response_model=EventListResponse,
    tags=["transport"],
    summary="Poll display events",
    description="Returns and removes every event emitted since the previous poll.",
    responses=_NOT_FOUND,
)
async def poll_events(session_id: str) -> EventListResponse:
    session = _get_session_or_404(session_id)
    events = [EventModel(**event.to_dict()) for event in session.events.drain()]
    return EventListResponse(
        session_id=session.id,
        events=events,
        dropped=session.events.dropped,
    )


# ---------------------------------------------------------------------------
# Endpoints: Formats and health
# ---------------------------------------------------------------------------


@app.get(
    "/formats",
    response_model=List[FormatInfo],
    tags=["formats"],
    summary="List supported document formats",
)
async def list_formats() -> List[FormatInfo]:
    return [
        FormatInfo(extension=ext, name=reader_cls().name)
        for ext, reader_cls in sorted(READERS.items())
    ]


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        sessions=len(session_store.list_sessions()),
    )


def run_api() -> None:
    """Entry point for the rsvp-api console script."""
    import uvicorn
    uvicorn.run(app, host=API_HOST, port=API_PORT)
