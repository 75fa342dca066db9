from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from excerpt_engine.ranges import LineSpan


class FakeHost:
    """In-process host collaborator recording everything the engine asks of it."""

    def __init__(self, documents: Optional[Dict[str, str]] = None) -> None:
        self.documents: Dict[str, List[str]] = {}
        self.selection: Optional[Tuple[str, int, int]] = None
        self.highlights: Dict[str, Tuple[LineSpan, ...]] = {}
        self.highlight_calls: List[str] = []
        self.clipboard: List[str] = []
        for file_key, text in (documents or {}).items():
            self.open(file_key, text)

    def open(self, file_key: str, text: str) -> None:
        self.documents[file_key] = text.split("\n")

    def close(self, file_key: str) -> None:
        self.documents.pop(file_key, None)

    def select(self, file_key: str, start_line: int, end_line: int) -> None:
        self.selection = (file_key, start_line, end_line)

    def get_active_selection_span(self) -> Optional[Tuple[str, int, int]]:
        return self.selection

    def get_text(self, file_key: str, start_line: int, end_line: int) -> Optional[str]:
        lines = self.documents.get(file_key)
        if lines is None:
            return None
        return "\n".join(lines[start_line : end_line + 1])

    def set_highlight(self, file_key: str, spans: Sequence[LineSpan]) -> None:
        self.highlights[file_key] = tuple(spans)
        self.highlight_calls.append(file_key)

    def write_clipboard(self, text: str) -> None:
        self.clipboard.append(text)


def numbered_lines(count: int, prefix: str = "line") -> str:
    return "\n".join(f"{prefix} {index}" for index in range(count))


@pytest.fixture
def host() -> FakeHost:
    return FakeHost(
        {
            "/work/a.py": numbered_lines(30, "a"),
            "/work/b.py": numbered_lines(10, "b"),
        }
    )
