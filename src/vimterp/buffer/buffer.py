"""The in-memory buffer: document text, carets and undo history together."""

from __future__ import annotations

import itertools
from bisect import bisect_right
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, ContextManager, Iterator, List, Optional, Sequence

from vimterp.runtime import telemetry

from .document import BufferDocument
from .state import BufferState, Cursor, Selection
from .sync import READ_ONLY_MESSAGE, BufferMirror, BufferReadOnlyError, EditEvent
from .undo import UndoEntry, UndoTimeline
from .validation import clamp_cursor, ensure_cursor

EditListener = Callable[[EditEvent], None]

_BUFFER_IDS = itertools.count(1)


@dataclass(slots=True)
class BufferView:
    """Read-only picture of a buffer handed to hosts and bus events."""

    version: int
    text: str
    cursor: Cursor
    selection: Optional[Selection]


@dataclass(slots=True)
class BufferDelta:
    """What ``replace_range`` changed, with the document version it produced."""

    version: int
    text: str
    cursor: Cursor
    selection: Optional[Selection]
    label: str
    start: Cursor = (0, 0)
    end: Cursor = (0, 0)


def _line_starts(lines: Sequence[str]) -> List[int]:
    starts = [0]
    for line in lines[:-1]:
        starts.append(starts[-1] + len(line) + 1)
    return starts


class Buffer:
    """Reference implementation of ``EditorFacade``.

    Every edit goes through ``replace_range``, which records one undo entry
    (merged into the open ``group()`` if there is one) and tells the edit
    listeners what moved so marks can follow the text.
    """

    def __init__(
        self,
        *,
        name: str = "default",
        document: Optional[BufferDocument] = None,
        state: Optional[BufferState] = None,
        undo: Optional[UndoTimeline] = None,
        writable: bool = True,
    ) -> None:
        self.id = next(_BUFFER_IDS)
        self.name = name
        self.writable = writable
        self.document = document if document is not None else BufferDocument()
        self.state = state if state is not None else BufferState()
        self.undo = undo if undo is not None else UndoTimeline()
        self._listeners: List[EditListener] = []

    @classmethod
    def from_text(
        cls, text: str, *, name: str = "default", writable: bool = True
    ) -> "Buffer":
        document = BufferDocument.from_text(text)
        return cls(name=name, document=document, writable=writable)

    def __repr__(self) -> str:
        return f"<Buffer #{self.id} {self.name!r} lines={self.line_count}>"

    # -- reading ---------------------------------------------------------------

    @property
    def text(self) -> str:
        return self.document.text

    @property
    def line_count(self) -> int:
        return self.document.line_count

    @property
    def last_row(self) -> int:
        return self.line_count - 1

    def get_line(self, row: int) -> str:
        return self.document.get_line(row)

    def get_lines(self, first: int, last: int) -> List[str]:
        return list(self.document.snapshot()[first : last + 1])

    def get_text_range(self, start: Cursor, end: Cursor) -> str:
        low, high = self._ordered(start, end)
        return self.text[self._offset(low) : self._offset(high)]

    def is_writable(self) -> bool:
        return self.writable

    def clamp(self, cursor: Cursor) -> Cursor:
        return clamp_cursor(self.document, cursor)

    # -- offsets -----------------------------------------------------------------

    def offset_for(self, row: int, col: int) -> int:
        return self._offset(ensure_cursor(self.document, (row, col)))

    def cursor_for(self, offset: int) -> Cursor:
        lines = self.document.snapshot()
        if offset > len(self.text):
            return (len(lines) - 1, len(lines[-1]))
        starts = _line_starts(lines)
        row = max(bisect_right(starts, max(offset, 0)) - 1, 0)
        return (row, max(offset - starts[row], 0))

    def caret_offset(self) -> int:
        return self.offset_for(*self.state.cursor)

    def set_caret_offset(self, offset: int) -> None:
        self.state.set_cursor(*self.cursor_for(offset))

    def _offset(self, cursor: Cursor) -> int:
        row, col = cursor
        return _line_starts(self.document.snapshot())[row] + col

    def _ordered(self, start: Cursor, end: Cursor) -> tuple[Cursor, Cursor]:
        start = ensure_cursor(self.document, start)
        end = ensure_cursor(self.document, end)
        return (start, end) if start <= end else (end, start)

    # -- selection and listeners ---------------------------------------------------

    def get_selection(self) -> Optional[Selection]:
        return self.state.selection

    def set_selection(self, anchor: Cursor, head: Cursor) -> None:
        self.state.set_selection(self.clamp(anchor), self.clamp(head))

    def add_listener(self, listener: EditListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: EditListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def snapshot(self) -> BufferView:
        return BufferView(
            version=self.document.version,
            text=self.text,
            cursor=self.state.cursor,
            selection=self.state.selection,
        )

    def mirror(self, *, attributes: Optional[dict[str, str]] = None) -> BufferMirror:
        view = self.snapshot()
        return BufferMirror(
            text=view.text,
            cursor=view.cursor,
            selection=view.selection,
            attributes=dict(attributes or {}),
        )

    # -- editing -----------------------------------------------------------------

    def replace_range(
        self,
        start: Cursor,
        end: Cursor,
        text: str,
        *,
        label: str,
        deleted_rows: Optional[tuple[int, int]] = None,
    ) -> BufferDelta:
        """Replace ``start..end`` with ``text``; the caret lands after it."""

        if not self.writable:
            raise BufferReadOnlyError(READ_ONLY_MESSAGE, cursor=start)
        start, end = self._ordered(start, end)
        with self._recording(label):
            head = self._offset(start)
            old = self.text
            self.document = self.document.with_text(
                old[:head] + text + old[self._offset(end) :]
            )
            self.state.set_cursor(*self.cursor_for(head + len(text)))
            self.state.last_change_tick = self.document.version

        event = EditEvent(
            buffer_id=self.id,
            start=start,
            end=end,
            text=text,
            deleted_rows=deleted_rows,
        )
        for listener in tuple(self._listeners):
            listener(event)

        return BufferDelta(
            version=self.document.version,
            text=self.text,
            cursor=self.state.cursor,
            selection=self.state.selection,
            label=label,
            start=start,
            end=end,
        )

    def insert_text(self, text: str, *, cursor: Optional[Cursor] = None) -> BufferDelta:
        at = cursor if cursor is not None else self.state.cursor
        return self.replace_range(at, at, text, label="insert_text")

    def delete_range(self, start: Cursor, end: Cursor) -> BufferDelta:
        return self.replace_range(start, end, "", label="delete_range")

    def line_span(self, first: int, last: int) -> tuple[Cursor, Cursor]:
        """Span of rows ``first..last`` including one joining newline.

        The trailing newline is taken when a row follows ``last``; otherwise
        the newline before ``first`` goes, so no empty row is left behind.
        """

        if last < self.last_row:
            return (first, 0), (last + 1, 0)
        tail = (last, len(self.get_line(last)))
        if first == 0:
            return (0, 0), tail
        return (first - 1, len(self.get_line(first - 1))), tail

    def delete_lines(
        self, first: int, last: int, *, label: str = "delete_lines"
    ) -> str:
        """Remove rows ``first..last`` and return them as linewise text."""

        removed = "".join(line + "\n" for line in self.get_lines(first, last))
        start, end = self.line_span(first, last)
        self.replace_range(start, end, "", label=label, deleted_rows=(first, last))
        self.state.set_cursor(*self.clamp((first, 0)))
        return removed

    # -- history -------------------------------------------------------------------

    def group(self, label: str) -> ContextManager[None]:
        return self.undo.group(label)

    def undo_last(self) -> Optional[UndoEntry]:
        entry = self.undo.undo()
        if entry is not None:
            self._restore(entry.before_text, entry.cursor_before, label="undo")
        return entry

    def redo_last(self) -> Optional[UndoEntry]:
        entry = self.undo.redo()
        if entry is not None:
            self._restore(entry.after_text, entry.cursor_after, label="redo")
        return entry

    @contextmanager
    def _recording(self, label: str) -> Iterator[None]:
        before_text = self.text
        before_cursor = self.state.cursor
        with telemetry.span(
            name=f"buffer::{label}", component=True, metadata={"buffer": self.name}
        ):
            yield
            self.undo.push(
                UndoEntry(
                    label=label,
                    before_text=before_text,
                    after_text=self.text,
                    cursor_before=before_cursor,
                    cursor_after=self.state.cursor,
                )
            )

    def _restore(self, text: str, cursor: Cursor, *, label: str) -> None:
        with telemetry.span(
            name=f"buffer::{label}", component=True, metadata={"buffer": self.name}
        ):
            self.document = self.document.with_text(text)
            self.state.clear_secondary()
            self.state.set_cursor(*self.clamp(cursor))
            self.state.last_change_tick = self.document.version
