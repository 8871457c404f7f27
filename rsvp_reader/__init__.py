"""RSVP Reader: timed one-word-at-a-time document presentation.

WHY: Rapid Serial Visual Presentation shows text as a timed sequence of
single words or small chunks. Reading speed depends on pacing that
reacts to punctuation and word length, and on transport controls that
keep the clock consistent while the reader pauses and seeks.

HOW: Documents are decoded by the readers, paced by the core tokenizer and
engine, and presented by the CLI player or HTTP sessions. Settings, statistics and
bookmarks live in a small JSON store used only by the presentation layer.

RULES:
- The core never imports readers, storage or server code
- The engine consumes plain text and configuration and emits typed events
- Adding a document format = one new reader module, no core changes
"""

__version__ = "0.1.0"
