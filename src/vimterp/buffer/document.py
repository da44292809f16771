"""Line storage behind a buffer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence


@dataclass(slots=True)
class BufferDocument:
    """Text kept as a list of lines; edits build a new document.

    ``version`` grows by one with every replacement, which is what hosts
    compare to decide whether to redraw.
    """

    _lines: List[str] = field(default_factory=lambda: [""])
    version: int = 0

    @classmethod
    def from_text(cls, text: str, *, version: int = 0) -> "BufferDocument":
        return cls(_lines=text.split("\n"), version=version)

    def with_text(self, text: str) -> "BufferDocument":
        return BufferDocument.from_text(text, version=self.version + 1)

    @property
    def text(self) -> str:
        return "\n".join(self._lines)

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def get_line(self, index: int) -> str:
        return self._lines[index]

    def snapshot(self) -> Sequence[str]:
        return tuple(self._lines)
