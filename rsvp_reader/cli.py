"""Command-line RSVP player.

WHY: The quickest way to read a document at a controlled pace is a
terminal: one word (or chunk) per line, timed by the pacing engine. The
same entry point can print a document's whole schedule without waiting,
which is handy for tuning settings.

HOW: argparse collects the document path and pacing overrides. Stored
settings supply defaults; flags win. The document is decoded by the
reader registry. Live mode runs the engine on an asyncio loop with an
AsyncioScheduler and prints each event as it fires. ``--timeline`` runs
the same engine on a ManualScheduler and prints index, delay and text
for every chunk instantly.

RULES:
- Display output goes to stdout; status messages go to stderr
- Pacing flags pass through normalize_pacing() before the engine
- --start seeks before playing; out-of-range values are clamped
- Ctrl+C pauses, reports the position and exits with code 130
- Reading statistics are recorded after live playback unless --no-stats
- --bookmark saves a bookmark at the position where playback stopped
- Bookmark and stats commands (--list-bookmarks, --delete-bookmark,
  --bookmark-note, --stats) run instead of playback and need no file
- --from-bookmark starts at a saved bookmark's position
- --save-settings stores the given pacing flags as the new defaults
- Python 3.9 compatible: no match/case, no X | Y unions
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from rsvp_reader.config import LOG_LEVEL, normalize_pacing
from rsvp_reader.core.engine import PacingEngine
from rsvp_reader.core.events import EngineEvent
from rsvp_reader.core.pacing import PacingConfig
from rsvp_reader.core.scheduler import AsyncioScheduler, ManualScheduler
from rsvp_reader.readers import DocumentReadError, read_document
from rsvp_reader.storage import (
    Bookmark,
    JSONStore,
    add_bookmark,
    default_store,
    load_bookmarks,
    load_settings,
    load_stats,
    record_session,
    remove_bookmark,
    save_settings,
    save_stats,
    update_bookmark,
)

logger = logging.getLogger(__name__)


def _status(msg: str) -> None:
    """Print a status message to stderr so stdout stays pipeable."""
    print(msg, file=sys.stderr, flush=True)


def _format_duration(ms: float) -> str:
    seconds = int(round(ms / 1000.0))
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return "{}h{:02d}m{:02d}s".format(hours, minutes, seconds)
    return "{}m{:02d}s".format(minutes, seconds)


def _pacing_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    return normalize_pacing({
        "words_per_minute": args.wpm,
        "chunk_size": args.chunk_size,
        "punctuation_pause_factor": args.punctuation_pause,
        "short_word_speedup_factor": args.short_word_factor,
    })


def _resolve_config(args: argparse.Namespace, store: JSONStore) -> PacingConfig:
    """Stored settings, overridden by any pacing flags given."""
    return load_settings(store).pacing().merged(_pacing_overrides(args))


# ---------------------------------------------------------------------------
# Settings, bookmarks and stats commands
# ---------------------------------------------------------------------------


def _save_pacing(args: argparse.Namespace, store: JSONStore) -> int:
    overrides = _pacing_overrides(args)
    if not overrides:
        print("Error: --save-settings needs at least one pacing flag", file=sys.stderr)
        return 1
    if not save_settings(store, replace(load_settings(store), **overrides)):
        print("Error: Could not write settings to {}".format(store.directory), file=sys.stderr)
        return 1
    _status("Saved settings: {}".format(
        ", ".join("{}={}".format(k, v) for k, v in sorted(overrides.items()))
    ))
    return 0


def _find_bookmark(store: JSONStore, bookmark_id: str) -> Optional[Bookmark]:
    for bookmark in load_bookmarks(store):
        if bookmark.id == bookmark_id:
            return bookmark
    return None


def _list_bookmarks(store: JSONStore) -> int:
    """Print one bookmark per line: id, position, title, text and note."""
    bookmarks = sorted(load_bookmarks(store), key=lambda b: b.timestamp)
    if not bookmarks:
        _status("No bookmarks saved.")
        return 0
    for bookmark in bookmarks:
        print("\t".join([
            bookmark.id,
            str(bookmark.position),
            bookmark.title,
            bookmark.text,
            bookmark.note or "",
        ]))
    return 0


def _delete_bookmark(store: JSONStore, bookmark_id: str) -> int:
    if not remove_bookmark(store, bookmark_id):
        print("Error: Bookmark not found: {}".format(bookmark_id), file=sys.stderr)
        return 1
    _status("Deleted bookmark {}".format(bookmark_id))
    return 0


def _annotate_bookmark(store: JSONStore, bookmark_id: str, note: str) -> int:
    if update_bookmark(store, bookmark_id, note=note) is None:
        print("Error: Bookmark not found: {}".format(bookmark_id), file=sys.stderr)
        return 1
    _status("Updated note on bookmark {}".format(bookmark_id))
    return 0


def _show_stats(store: JSONStore) -> int:
    stats = load_stats(store)
    print("Words read:\t{}".format(stats.words_read))
    print("Time spent:\t{}".format(_format_duration(stats.time_spent * 1000.0)))
    print("Average speed:\t{} wpm".format(stats.average_wpm))
    print("Sessions:\t{}".format(stats.sessions))
    print("Tracking since:\t{}".format(
        time.strftime("%Y-%m-%d", time.localtime(stats.start_time))
    ))
    return 0


def _run_command(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    """Dispatch to a bookmark/stats command or to playback."""
    store = default_store(args.data_dir)

    if args.save_settings:
        code = _save_pacing(args, store)
        if code or args.input_file is None:
            return code
    if args.list_bookmarks:
        return _list_bookmarks(store)
    if args.delete_bookmark:
        return _delete_bookmark(store, args.delete_bookmark)
    if args.bookmark_note:
        return _annotate_bookmark(store, *args.bookmark_note)
    if args.stats:
        return _show_stats(store)

    if args.input_file is None:
        parser.error("the following arguments are required: input_file")

    if args.from_bookmark:
        bookmark = _find_bookmark(store, args.from_bookmark)
        if bookmark is None:
            print("Error: Bookmark not found: {}".format(args.from_bookmark), file=sys.stderr)
            return 1
        args.start = bookmark.position
        _status("Resuming '{}' at chunk {}".format(bookmark.title, bookmark.position))

    return _play(args, store)


def run_timeline(text: str, config: PacingConfig, start: int = 0) -> List[EngineEvent]:
    """Play ``text`` on virtual time and return every emitted event.

    The clock is advanced callback by callback, so nothing sleeps.
    """
    scheduler = ManualScheduler()
    events: List[EngineEvent] = []
    engine = PacingEngine(text, config=config, scheduler=scheduler, sink=events.append)
    engine.seek_to(start)
    engine.play()
    scheduler.run_until_idle()
    return events


def _print_timeline(events: List[EngineEvent]) -> None:
    total_ms = 0.0
    for event in events:
        if event.is_end:
            continue
        delay = event.delay_ms or 0.0
        total_ms += delay
        print("{}\t{:.0f}\t{}".format(event.index, delay, event.content))
    _status("{} chunks, estimated reading time {}".format(
        sum(1 for e in events if not e.is_end), _format_duration(total_ms),
    ))


class _LivePlayer:
    """Sink that prints events and signals the end of the document."""

    def __init__(self) -> None:
        self.words_shown = 0
        self.finished: Optional[asyncio.Event] = None

    def __call__(self, event: EngineEvent) -> None:
        if event.is_end:
            if self.finished is not None:
                self.finished.set()
            return
        self.words_shown += len(event.content.split())
        print(event.content, flush=True)

    async def run(self, engine: PacingEngine) -> None:
        self.finished = asyncio.Event()
        engine.play()
        await self.finished.wait()


def _record_stats(store: JSONStore, words: int, seconds: float) -> None:
    stats = record_session(load_stats(store), words, seconds)
    save_stats(store, stats)
    _status("Session: {} words in {:.0f}s. Overall average: {} wpm over {} sessions.".format(
        words, seconds, stats.average_wpm, stats.sessions,
    ))


def _play(args: argparse.Namespace, store: JSONStore) -> int:
    """Decode the document, play it, and return the exit code."""
    input_path = Path(args.input_file).expanduser().resolve()
    if not input_path.is_file():
        print("Error: File not found: {}".format(input_path), file=sys.stderr)
        return 1

    try:
        document = read_document(input_path)
    except DocumentReadError as e:
        print("Error: {}".format(e), file=sys.stderr)
        return 1

    if not document.text.strip():
        print("Error: No readable text found in {}".format(input_path.name), file=sys.stderr)
        return 1

    config = _resolve_config(args, store)

    if args.timeline:
        _print_timeline(run_timeline(document.text, config, start=args.start))
        return 0

    player = _LivePlayer()
    engine = PacingEngine(document.text, config=config, scheduler=AsyncioScheduler(), sink=player)
    engine.seek_to(args.start)
    _status("Reading '{}': {} chunks at {:.0f} wpm, about {} left".format(
        document.title, engine.total, config.words_per_minute,
        _format_duration(engine.remaining_ms()),
    ))

    exit_code = 0
    started = time.monotonic()
    try:
        asyncio.run(player.run(engine))
    except KeyboardInterrupt:
        engine.pause()
        _status("\nPaused at chunk {} of {} ({:.0%}).".format(
            engine.current_index, engine.total, engine.progress,
        ))
        exit_code = 130
    elapsed = time.monotonic() - started

    if args.bookmark:
        bookmark = add_bookmark(
            store,
            title=document.title,
            text=engine.current_text,
            position=engine.current_index,
            note=args.note,
        )
        _status("Bookmark saved at chunk {} ({})".format(bookmark.position, bookmark.id))

    if not args.no_stats:
        _record_stats(store, player.words_shown, elapsed)

    return exit_code


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    Separating parser construction from main() lets tests inspect it
    without reading any file.
    """
    parser = argparse.ArgumentParser(
        prog="rsvp_reader",
        description="Read a document one word (or chunk) at a time at a controlled pace.",
    )

    parser.add_argument(
        "input_file",
        nargs="?",
        default=None,
        help="Document to read (.txt, .md, .html, .pdf, .epub).",
    )
    parser.add_argument(
        "--wpm",
        type=float,
        default=None,
        help="Reading speed in words per minute (default: stored setting).",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help="Words shown together (default: stored setting).",
    )
    parser.add_argument(
        "--punctuation-pause",
        type=float,
        default=None,
        help="Extra pause after punctuation, as a fraction of the base delay.",
    )
    parser.add_argument(
        "--short-word-factor",
        type=float,
        default=None,
        help="Delay multiplier for chunks containing a short word.",
    )
    parser.add_argument(
        "--start",
        type=int,
        default=0,
        help="Chunk index to start from (e.g. a bookmark position).",
    )
    parser.add_argument(
        "--timeline",
        action="store_true",
        help="Print index, delay and text for every chunk without waiting.",
    )
    parser.add_argument(
        "--bookmark",
        action="store_true",
        help="Save a bookmark where playback stops.",
    )
    parser.add_argument(
        "--note",
        default=None,
        help="Note stored with the bookmark saved by --bookmark.",
    )
    parser.add_argument(
        "--from-bookmark",
        metavar="ID",
        default=None,
        help="Start at the position of a saved bookmark (overrides --start).",
    )

    # Commands that run instead of playback
    parser.add_argument(
        "--list-bookmarks",
        action="store_true",
        help="List saved bookmarks (id, position, title, text, note) and exit.",
    )
    parser.add_argument(
        "--delete-bookmark",
        metavar="ID",
        default=None,
        help="Delete a saved bookmark and exit.",
    )
    parser.add_argument(
        "--bookmark-note",
        nargs=2,
        metavar=("ID", "NOTE"),
        default=None,
        help="Replace the note on a saved bookmark and exit.",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Show cumulative reading statistics and exit.",
    )
    parser.add_argument(
        "--save-settings",
        action="store_true",
        help="Store the given pacing flags as defaults for later runs.",
    )
    parser.add_argument(
        "--no-stats",
        action="store_true",
        help="Do not record reading statistics.",
    )
    parser.add_argument(
        "--data-dir",
        default=None,
        help="Directory for settings, statistics and bookmarks.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log engine activity to stderr.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m rsvp_reader`` and the rsvp-reader script.

    argv=None means use sys.argv; an explicit list is for testing.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else LOG_LEVEL,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    sys.exit(_run_command(args, parser))


if __name__ == "__main__":
    main()
