"""Document reader registry: decode files into plain text for the engine.

WHY: The CLI and the HTTP API need a single lookup from a file extension
to the reader that understands it. A central dict makes adding a format
a one-line change.

HOW: READERS maps lowercase extensions to reader *classes*.
``reader_for()`` resolves a file name, falling back to plain text for
unknown extensions. ``read_document()`` and ``read_document_bytes()`` are
the entry points the shell uses.

RULES:
- Keys are lowercase extensions with the leading dot
- Unknown extensions are read as plain text unless strict=True, in which
  case UnsupportedFormatError is raised
- Every reader listed here must be importable without side effects
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Union

from rsvp_reader.readers.base import (
    BaseReader,
    DocumentReadError,
    DocumentText,
    UnsupportedFormatError,
)
from rsvp_reader.readers.epub import EPUBReader
from rsvp_reader.readers.html_document import HTMLReader
from rsvp_reader.readers.pdf import PDFReader
from rsvp_reader.readers.plain_text import MarkdownReader, PlainTextReader

_READER_CLASSES = (PlainTextReader, MarkdownReader, HTMLReader, PDFReader, EPUBReader)

READERS: Dict[str, type[BaseReader]] = {
    ext: cls for cls in _READER_CLASSES for ext in cls.extensions
}


def reader_for(filename: str, strict: bool = False) -> BaseReader:
    """Return a reader instance for ``filename``'s extension."""
    ext = Path(filename).suffix.lower()
    cls = READERS.get(ext)
    if cls is None:
        if strict:
            available = ", ".join(sorted(READERS))
            raise UnsupportedFormatError(
                "Unsupported document type '{}'. Supported formats: {}".format(ext, available)
            )
        cls = PlainTextReader
    return cls()


def read_document(path: Union[str, Path], strict: bool = False) -> DocumentText:
    """Decode the document at ``path`` into plain text."""
    path = Path(path)
    return reader_for(path.name, strict=strict).read(path)


def read_document_bytes(data: bytes, filename: str, strict: bool = False) -> DocumentText:
    """Decode an in-memory document (e.g. an upload) into plain text."""
    return reader_for(filename, strict=strict).read_bytes(data, filename)


__all__ = [
    "BaseReader",
    "DocumentReadError",
    "DocumentText",
    "READERS",
    "UnsupportedFormatError",
    "read_document",
    "read_document_bytes",
    "reader_for",
]
