"""Abstract base reader and decoded-document container.

WHY: Every document format (plain text, Markdown, HTML, PDF, EPUB) must
end up as the same thing: plain text the pacing engine can tokenize. A
shared base keeps the CLI and the HTTP API format-agnostic.

HOW: BaseReader is an ABC with a ``name`` property and a ``read_bytes()``
method. ``read()`` loads a path and delegates to ``read_bytes()`` so the
API can decode uploads without touching disk. DocumentText bundles the
extracted text with a title and format-specific metadata.

RULES:
- Subclasses MUST implement ``name`` and ``read_bytes()``
- ``extensions`` lists the lowercase suffixes a reader handles
- Decoding failures raise DocumentReadError, never a library exception
- The title falls back to the file name when the format has none
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Tuple


class DocumentReadError(RuntimeError):
    """A document could not be decoded into text."""


class UnsupportedFormatError(ValueError):
    """No reader is registered for a file extension."""


@dataclass
class DocumentText:
    """Plain text extracted from a document.

    Attributes:
        text: The decoded text, ready for ``tokenize()``.
        title: Document title, or the file name when unavailable.
        metadata: Format-specific extras (page count, author, ...).
    """

    text: str
    title: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class BaseReader(ABC):
    """Abstract base for all document readers.

    To add a new format:
    1. Create a new file in readers/
    2. Subclass BaseReader
    3. Implement name and read_bytes()
    4. Register its extensions in READERS in readers/__init__.py
    """

    extensions: Tuple[str, ...] = ()

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'PDF'."""

    @abstractmethod
    def read_bytes(self, data: bytes, filename: str) -> DocumentText:
        """Decode raw file content into a DocumentText.

        Args:
            data: The file content.
            filename: Original file name, used for the fallback title.
        """

    def read(self, path: Path) -> DocumentText:
        """Read and decode a file from disk."""
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise DocumentReadError("Cannot read {}: {}".format(path, exc)) from exc
        return self.read_bytes(data, path.name)


def decode_text(data: bytes) -> str:
    """Decode bytes as UTF-8 (BOM tolerated), falling back to Latin-1."""
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("latin-1")
