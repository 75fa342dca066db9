"""Textual host adapter; ``app`` holds the runnable demo."""

from .controller import TextualExcerptAdapter, TextualUIHooks
from .diffing import line_edits, split_lines

__all__ = [
    "TextualExcerptAdapter",
    "TextualUIHooks",
    "line_edits",
    "split_lines",
]
