"""HTML reader backed by BeautifulSoup.

WHY: Saved web pages carry scripts, styles and navigation that must not
be read aloud, one word at a time, to the user.

HOW: Parses with the stdlib ``html.parser`` backend, removes script,
style and nav elements, and takes the body text with newlines between
blocks. The ``<title>`` element becomes the document title.

RULES:
- script, style and nav content never reaches the output
- Title falls back to the file name when <title> is missing or empty
"""

from __future__ import annotations

from typing import Tuple

from bs4 import BeautifulSoup

from rsvp_reader.readers.base import BaseReader, DocumentText, decode_text

_DROP_TAGS = ("script", "style", "nav")


def html_to_text(markup: str) -> Tuple[str, str]:
    """Extract (text, title) from an HTML string."""
    soup = BeautifulSoup(markup, "html.parser")
    title = soup.title.get_text(strip=True) if soup.title else ""
    for tag in soup(list(_DROP_TAGS)):
        tag.decompose()
    root = soup.body if soup.body is not None else soup
    if soup.title is not None and root is soup:
        soup.title.decompose()
    text = root.get_text(separator="\n", strip=True)
    return text, title


class HTMLReader(BaseReader):
    extensions = (".html", ".htm")

    @property
    def name(self) -> str:
        return "HTML"

    def read_bytes(self, data: bytes, filename: str) -> DocumentText:
        text, title = html_to_text(decode_text(data))
        return DocumentText(text=text, title=title or filename)
