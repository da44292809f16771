"""Linear undo history with grouping."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional

from .state import Cursor


@dataclass(slots=True)
class UndoEntry:
    """Whole-text snapshots around one undoable step."""

    label: str
    before_text: str
    after_text: str
    cursor_before: Cursor
    cursor_after: Cursor


class UndoTimeline:
    """Entries up to ``_applied`` are done; the ones after it can be redone.

    Edits pushed inside ``group()`` merge into a single entry that keeps
    the first edit's "before" side and the last edit's "after" side, so a
    command touching several carets, or a change followed by its Insert
    session, undoes in one step. Groups nest; only the outermost one
    commits.
    """

    def __init__(self) -> None:
        self._entries: List[UndoEntry] = []
        self._applied = 0
        self._depth = 0
        self._open: Optional[UndoEntry] = None

    def __len__(self) -> int:
        return len(self._entries)

    def push(self, entry: UndoEntry) -> None:
        if not self._depth:
            self._commit(entry)
        elif self._open is None:
            self._open = entry
        else:
            self._open.after_text = entry.after_text
            self._open.cursor_after = entry.cursor_after

    @contextmanager
    def group(self, label: str) -> Iterator[None]:
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1
            if not self._depth and self._open is not None:
                merged, self._open = self._open, None
                merged.label = label
                self._commit(merged)

    def can_undo(self) -> bool:
        return self._applied > 0

    def can_redo(self) -> bool:
        return self._applied < len(self._entries)

    def undo(self) -> Optional[UndoEntry]:
        if not self.can_undo():
            return None
        self._applied -= 1
        return self._entries[self._applied]

    def redo(self) -> Optional[UndoEntry]:
        if not self.can_redo():
            return None
        self._applied += 1
        return self._entries[self._applied - 1]

    def _commit(self, entry: UndoEntry) -> None:
        del self._entries[self._applied :]
        self._entries.append(entry)
        self._applied = len(self._entries)
