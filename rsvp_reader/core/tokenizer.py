"""Text tokenizer and display chunker for RSVP playback.

WHY: The pacing engine shows a document one unit at a time and needs to
know, for every unit, whether it carries punctuation (longer pause) or is
a short word (shorter pause). Grouping units into fixed-size chunks lets
readers trade per-word focus for throughput.

HOW: ``tokenize()`` collapses all whitespace, splits on it, and classifies
each piece against a fixed punctuation class. ``create_chunks()`` slices
the token list into consecutive runs of ``chunk_size``.

RULES:
- Tokens keep their text verbatim, including attached punctuation
- Token order matches document order; no token is ever empty
- A token is punctuation-flagged if the class matches ANYWHERE in it
- A token is short if, with every class character removed, len <= 3
- Chunks partition the tokens exactly; only the last may be shorter
- chunk_size <= 1 (including 0 and negatives) yields singleton chunks
- Both functions are pure: no state is kept between calls
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple

PUNCTUATION_CHARS = frozenset(".,!?;:—–-'\"()[]{}")
"""Characters that mark a token for the punctuation pause."""

SHORT_WORD_THRESHOLD = 3
"""Maximum punctuation-stripped length of a short word (inclusive)."""

_WHITESPACE = re.compile(
    "[\t\n\v\f\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff]+"
)
"""Word separators: ASCII and Unicode space characters plus the BOM."""


@dataclass(frozen=True)
class Token:
    """One whitespace-delimited unit of the source text.

    RULES:
    - text: verbatim piece, e.g. ``"world!"``
    - is_punctuation: True if any character is in PUNCTUATION_CHARS
    - is_short_word: True if the stripped length is <= SHORT_WORD_THRESHOLD
    - length: ``len(text)`` as written, punctuation included
    """

    text: str
    is_punctuation: bool
    is_short_word: bool
    length: int


Chunk = Tuple[Token, ...]
"""A non-empty run of consecutive tokens displayed together."""


def _strip_punctuation(word: str) -> str:
    return "".join(ch for ch in word if ch not in PUNCTUATION_CHARS)


def _split_words(text: str) -> List[str]:
    return [piece for piece in _WHITESPACE.split(text) if piece]


def make_token(word: str) -> Token:
    """Classify a single non-empty piece of text."""
    return Token(
        text=word,
        is_punctuation=any(ch in PUNCTUATION_CHARS for ch in word),
        is_short_word=len(_strip_punctuation(word)) <= SHORT_WORD_THRESHOLD,
        length=len(word),
    )


def tokenize(text: str) -> List[Token]:
    """Split raw text into classified tokens.

    WHY: Documents arrive with arbitrary line breaks, indentation and
    repeated spaces from PDF/EPUB extraction. Only the words matter for
    pacing.

    HOW: Splits on runs of _WHITESPACE and drops empty pieces, so
    whitespace-only input yields an empty list. A stray byte-order mark
    inside extracted text separates words; control characters such as
    \\x1c..\\x1f and \\x85 do not.

    Args:
        text: Arbitrary plain text.

    Returns:
        Tokens in document order.
    """
    return [make_token(word) for word in _split_words(text)]


def create_chunks(tokens: Sequence[Token], chunk_size: int) -> List[Chunk]:
    """Group tokens into display chunks of ``chunk_size``.

    Args:
        tokens: Output of ``tokenize()``.
        chunk_size: Tokens per chunk. Values <= 1 give one token per chunk.

    Returns:
        A new list of chunks; the input is not modified.
    """
    if chunk_size <= 1:
        return [(token,) for token in tokens]

    return [
        tuple(tokens[i:i + chunk_size])
        for i in range(0, len(tokens), chunk_size)
    ]


def chunk_text(chunk: Sequence[Token]) -> str:
    """Space-joined display text of a chunk."""
    return " ".join(token.text for token in chunk)


def count_words(text: str) -> int:
    """Number of tokens ``tokenize()`` would produce for ``text``."""
    return len(_split_words(text))
