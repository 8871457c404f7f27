"""PDF reader backed by pypdf.

WHY: Many books and papers only exist as PDF. Their text layer is
extracted page by page and joined into one document.

HOW: ``pypdf.PdfReader`` parses the bytes in memory. Each page's text is
extracted and pages are separated by a blank line. The title comes from
the PDF info dictionary when present.

RULES:
- Pages are joined with "\\n\\n" in document order
- A page whose text cannot be extracted is logged and skipped
- Unparseable files raise DocumentReadError
- metadata["pages"] is the page count
- Scanned PDFs without a text layer produce empty text (no OCR)
"""

from __future__ import annotations

import io
import logging
from typing import Any, Dict, List

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from rsvp_reader.readers.base import BaseReader, DocumentReadError, DocumentText

logger = logging.getLogger(__name__)


class PDFReader(BaseReader):
    extensions = (".pdf",)

    @property
    def name(self) -> str:
        return "PDF"

    def read_bytes(self, data: bytes, filename: str) -> DocumentText:
        try:
            reader = PdfReader(io.BytesIO(data))
            pages = list(reader.pages)
        except (PdfReadError, ValueError, OSError) as exc:
            raise DocumentReadError("Failed to read PDF {}: {}".format(filename, exc)) from exc

        page_texts: List[str] = []
        for number, page in enumerate(pages, start=1):
            try:
                text = page.extract_text() or ""
            except (PdfReadError, KeyError, ValueError) as exc:
                logger.warning("Skipping page %d of %s: %s", number, filename, exc)
                continue
            if text.strip():
                page_texts.append(text.strip())

        metadata: Dict[str, Any] = {"pages": len(pages)}
        title = ""
        info = reader.metadata
        if info is not None:
            title = (info.title or "").strip()
            if info.author:
                metadata["author"] = info.author

        return DocumentText(
            text="\n\n".join(page_texts),
            title=title or filename,
            metadata=metadata,
        )
