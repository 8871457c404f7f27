"""Plain text and Markdown readers.

WHY: Text and Markdown files are the simplest inputs. Markdown syntax
(``#`` headers, ``**bold**``, link targets) would otherwise show up as
words on screen and get punctuation pauses it does not deserve.

HOW: PlainTextReader decodes bytes as-is. MarkdownReader applies a fixed
list of regex substitutions that keep the visible text and drop markup.

RULES:
- Headers, bold, italic, links, inline code and list markers are stripped
- Link text is kept, link targets are dropped
- Output is stripped of leading/trailing whitespace
"""

from __future__ import annotations

import re
from typing import List, Pattern, Tuple

from rsvp_reader.readers.base import BaseReader, DocumentText, decode_text

_MARKDOWN_RULES: List[Tuple[Pattern[str], str]] = [
    (re.compile(r"^#+\s+", re.MULTILINE), ""),
    (re.compile(r"\*\*(.+?)\*\*"), r"\1"),
    (re.compile(r"\*(.+?)\*"), r"\1"),
    (re.compile(r"\[(.+?)\]\(.+?\)"), r"\1"),
    (re.compile(r"`(.+?)`"), r"\1"),
    (re.compile(r"^\s*[-*+]\s+", re.MULTILINE), ""),
    (re.compile(r"^\s*\d+\.\s+", re.MULTILINE), ""),
]


def strip_markdown(text: str) -> str:
    """Remove common Markdown markup, keeping the readable text."""
    for pattern, replacement in _MARKDOWN_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()


class PlainTextReader(BaseReader):
    extensions = (".txt",)

    @property
    def name(self) -> str:
        return "Plain text"

    def read_bytes(self, data: bytes, filename: str) -> DocumentText:
        return DocumentText(text=decode_text(data).strip(), title=filename)


class MarkdownReader(BaseReader):
    extensions = (".md", ".markdown")

    @property
    def name(self) -> str:
        return "Markdown"

    def read_bytes(self, data: bytes, filename: str) -> DocumentText:
        return DocumentText(text=strip_markdown(decode_text(data)), title=filename)
