"""Cursor, caret, selection, and change tracking state for buffers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

Cursor = Tuple[int, int]  # (row, column), both 0-based
Selection = Tuple[Cursor, Cursor]  # (anchor, head)


@dataclass(slots=True)
class BufferState:
    """Mutable caret + selection info tied to a BufferDocument version.

    ``cursor`` is the primary caret. Additional carets live in ``secondary``;
    ``carets`` always reports all of them in document order.
    """

    cursor: Cursor = (0, 0)
    selection: Optional[Selection] = None
    active_register: str = '"'
    last_change_tick: int = 0
    secondary: List[Cursor] = field(default_factory=list)
    desired_column: Optional[int] = None

    def set_cursor(self, row: int, col: int) -> None:
        self.cursor = (row, col)

    def clear_selection(self) -> None:
        self.selection = None

    def set_selection(self, start: Cursor, end: Cursor) -> None:
        self.selection = (start, end)

    @property
    def carets(self) -> Tuple[Cursor, ...]:
        return tuple(sorted({self.cursor, *self.secondary}))

    @property
    def has_multiple_carets(self) -> bool:
        return bool(self.secondary)

    def add_caret(self, row: int, col: int) -> None:
        caret = (row, col)
        if caret != self.cursor and caret not in self.secondary:
            self.secondary.append(caret)

    def set_carets(self, carets: Sequence[Cursor]) -> None:
        ordered = sorted(dict.fromkeys(carets))
        if not ordered:
            return
        self.cursor = ordered[0]
        self.secondary = list(ordered[1:])

    def clear_secondary(self) -> None:
        self.secondary.clear()
