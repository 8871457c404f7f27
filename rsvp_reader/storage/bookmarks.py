"""Bookmarks: named positions inside a document.

WHY: Playback position itself is not persisted, so bookmarks are how a
reader returns to a spot in a long document.

HOW: The full list is stored under BOOKMARKS_KEY. Each mutation loads the
list, applies the change and saves it back.

RULES:
- id: UUID4 hex, generated on creation
- position: chunk index in the document at bookmark time
- timestamp: Unix epoch seconds at creation
- remove/update on an unknown id change nothing
- id and timestamp cannot be changed by update_bookmark()
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, List, Optional

from rsvp_reader.storage.store import JSONStore

logger = logging.getLogger(__name__)

BOOKMARKS_KEY = "rsvp-reader-bookmarks"

BOOKMARKS_SCHEMA: Dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "id": {"type": "string"},
            "title": {"type": "string"},
            "text": {"type": "string"},
            "position": {"type": "integer", "minimum": 0},
            "timestamp": {"type": "number"},
            "note": {"type": ["string", "null"]},
        },
        "required": ["id", "title", "text", "position", "timestamp"],
    },
}

_IMMUTABLE_FIELDS = frozenset({"id", "timestamp"})


@dataclass(frozen=True)
class Bookmark:
    id: str
    title: str
    text: str
    position: int
    timestamp: float
    note: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_bookmarks(store: JSONStore) -> List[Bookmark]:
    stored = store.load(BOOKMARKS_KEY, default=[], schema=BOOKMARKS_SCHEMA)
    known = Bookmark.__dataclass_fields__
    return [Bookmark(**{k: v for k, v in item.items() if k in known}) for item in stored]


def save_bookmarks(store: JSONStore, bookmarks: List[Bookmark]) -> bool:
    return store.save(BOOKMARKS_KEY, [b.to_dict() for b in bookmarks])


def add_bookmark(
    store: JSONStore,
    title: str,
    text: str,
    position: int,
    note: Optional[str] = None,
) -> Bookmark:
    """Create a bookmark, append it to the stored list, and return it."""
    bookmark = Bookmark(
        id=uuid.uuid4().hex,
        title=title,
        text=text,
        position=position,
        timestamp=time.time(),
        note=note,
    )
    bookmarks = load_bookmarks(store)
    bookmarks.append(bookmark)
    save_bookmarks(store, bookmarks)
    logger.info("Added bookmark %s at position %d", bookmark.id, position)
    return bookmark


def remove_bookmark(store: JSONStore, bookmark_id: str) -> bool:
    """Delete a bookmark. Returns True if one was removed."""
    bookmarks = load_bookmarks(store)
    remaining = [b for b in bookmarks if b.id != bookmark_id]
    if len(remaining) == len(bookmarks):
        return False
    save_bookmarks(store, remaining)
    return True


def update_bookmark(store: JSONStore, bookmark_id: str, **updates: Any) -> Optional[Bookmark]:
    """Apply field updates to a bookmark. Returns the updated bookmark or None."""
    bookmarks = load_bookmarks(store)
    allowed = {
        k: v for k, v in updates.items()
        if k in Bookmark.__dataclass_fields__ and k not in _IMMUTABLE_FIELDS
    }
    for i, bookmark in enumerate(bookmarks):
        if bookmark.id == bookmark_id:
            bookmarks[i] = replace(bookmark, **allowed)
            save_bookmarks(store, bookmarks)
            return bookmarks[i]
    return None
