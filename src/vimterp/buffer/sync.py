"""Host-facing types: buffer mirrors, edit events and the editor facade."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, Tuple

from .state import Cursor, Selection


@dataclass(slots=True)
class BufferMirror:
    """Host-friendly snapshot describing the current buffer state."""

    text: str
    cursor: Cursor
    selection: Optional[Selection]
    attributes: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class EditEvent:
    """Describes one text replacement so listeners can re-anchor positions."""

    buffer_id: int
    start: Cursor
    end: Cursor
    text: str
    deleted_rows: Optional[Tuple[int, int]] = None  # whole rows removed, inclusive

    @property
    def inserted_lines(self) -> int:
        return self.text.count("\n")

    @property
    def line_delta(self) -> int:
        return self.inserted_lines - (self.end[0] - self.start[0])

    @property
    def new_end(self) -> Cursor:
        if not self.inserted_lines:
            return (self.start[0], self.start[1] + len(self.text))
        tail = self.text.rsplit("\n", 1)[1]
        return (self.start[0] + self.inserted_lines, len(tail))


class EditorFacade(Protocol):
    """Contract the interpreter needs from a host editor.

    ``Buffer`` is the in-memory implementation; hosts embedding the
    interpreter in another widget provide an object with the same surface.
    """

    def get_line(self, row: int) -> str:
        ...

    @property
    def line_count(self) -> int:
        ...

    def offset_for(self, row: int, col: int) -> int:
        ...

    def caret_offset(self) -> int:
        ...

    def set_caret_offset(self, offset: int) -> None:
        ...

    def get_selection(self) -> Optional[Selection]:
        ...

    def set_selection(self, anchor: Cursor, head: Cursor) -> None:
        ...

    def insert_text(self, text: str, *, cursor: Optional[Cursor] = None) -> object:
        ...

    def delete_range(self, start: Cursor, end: Cursor) -> object:
        ...

    def is_writable(self) -> bool:
        ...


class BufferValidationError(RuntimeError):
    """Raised when adapters or buffers provide out-of-bounds cursor info."""

    def __init__(self, message: str, *, cursor: Cursor | None = None) -> None:
        super().__init__(message)
        self.cursor = cursor


READ_ONLY_MESSAGE = "E21: Cannot make changes, 'modifiable' is off"


class BufferReadOnlyError(BufferValidationError):
    """Raised when an edit targets a buffer that is not modifiable."""
