"""EPUB reader backed by ebooklib and BeautifulSoup.

WHY: EPUB is the common format for e-books. Its content is a zip of
XHTML documents ordered by the spine.

HOW: The bytes are written to a temporary file for ``epub.read_epub``.
Spine items are visited in reading order, each XHTML document is reduced
to text with the HTML reader's helper, and sections are joined with a
blank line. Title and author come from the Dublin Core metadata.

RULES:
- Sections follow the spine order, not archive order
- Non-document spine entries are ignored
- Invalid archives raise DocumentReadError
"""

from __future__ import annotations

import logging
import os
import tempfile
import zipfile
from typing import Any, Dict, List

import ebooklib
from ebooklib import epub

from rsvp_reader.readers.base import BaseReader, DocumentReadError, DocumentText
from rsvp_reader.readers.html_document import html_to_text

logger = logging.getLogger(__name__)


def _first_metadata(book: epub.EpubBook, name: str) -> str:
    values = book.get_metadata("DC", name)
    if values:
        return str(values[0][0]).strip()
    return ""


class EPUBReader(BaseReader):
    extensions = (".epub",)

    @property
    def name(self) -> str:
        return "EPUB"

    def read_bytes(self, data: bytes, filename: str) -> DocumentText:
        fd, temp_path = tempfile.mkstemp(suffix=".epub")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            book = epub.read_epub(temp_path, options={"ignore_ncx": True})
        except (epub.EpubException, zipfile.BadZipFile, KeyError, OSError) as exc:
            raise DocumentReadError("Failed to read EPUB {}: {}".format(filename, exc)) from exc
        finally:
            try:
                os.unlink(temp_path)
            except OSError:
                logger.warning("Failed to remove temp file: %s", temp_path)

        sections: List[str] = []
        for item_id, _linear in book.spine:
            item = book.get_item_with_id(item_id)
            if item is None or item.get_type() != ebooklib.ITEM_DOCUMENT:
                continue
            text, _ = html_to_text(item.get_content().decode("utf-8", errors="replace"))
            if text:
                sections.append(text)

        metadata: Dict[str, Any] = {"sections": len(sections)}
        author = _first_metadata(book, "creator")
        if author:
            metadata["author"] = author

        return DocumentText(
            text="\n\n".join(sections),
            title=_first_metadata(book, "title") or filename,
            metadata=metadata,
        )
