"""Named buffer positions with buffer-local and process-wide scope."""

from __future__ import annotations

import itertools
import string
import threading
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

from vimterp.buffer import Cursor, EditEvent
from vimterp.runtime import telemetry

WR_REGULAR_FILE_MARKS = string.ascii_lowercase
WR_GLOBAL_MARKS = string.ascii_uppercase
RO_GLOBAL_MARKS = string.digits
SPECIAL_FILE_MARKS = "'.^[]<>"

DEL_FILE_MARKS = WR_REGULAR_FILE_MARKS
DEL_MARKS = WR_REGULAR_FILE_MARKS + WR_GLOBAL_MARKS + SPECIAL_FILE_MARKS

# order used by :marks listings
LISTING_ORDER = (
    "'" + WR_REGULAR_FILE_MARKS + WR_GLOBAL_MARKS + RO_GLOBAL_MARKS + "[]^.<>"
)


class MarkHost(Protocol):
    id: int
    name: str

    @property
    def line_count(self) -> int:
        ...

    def get_line(self, row: int) -> str:
        ...


class MarkError(ValueError):
    """Raised for mark names that cannot be set from the caller's context."""

    def __init__(self, name: str, message: str) -> None:
        super().__init__(message)
        self.name = name


@dataclass(frozen=True, slots=True)
class Mark:
    """A named position; ``line`` and ``col`` are 0-based."""

    name: str
    buffer_id: Optional[int]
    buffer_name: str
    line: int
    col: int
    timestamp: int = 0

    @property
    def is_global(self) -> bool:
        return is_global_mark(self.name)

    @property
    def dangling(self) -> bool:
        return self.buffer_id is None

    @property
    def cursor(self) -> Cursor:
        return (self.line, self.col)


def is_global_mark(name: str) -> bool:
    return len(name) == 1 and (name in WR_GLOBAL_MARKS or name in RO_GLOBAL_MARKS)


class MarkStore:
    """Owns every mark: per-buffer tables for local marks, one table for globals.

    The store is shared process-wide. A re-entrant lock guards each update
    and a logical clock stamps marks so later writers win.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._clock = itertools.count(1)
        self._local: Dict[int, Dict[str, Mark]] = {}
        self._global: Dict[str, Mark] = {}
        self._log = telemetry.get_logger("store.marks")

    # -- updates -------------------------------------------------------------

    def set_mark(self, buffer: MarkHost, name: str, cursor: Cursor) -> Mark:
        """Set a user mark (``a-z`` or ``A-Z``)."""

        if len(name) != 1 or name not in WR_REGULAR_FILE_MARKS + WR_GLOBAL_MARKS:
            raise MarkError(
                name, "E191: Argument must be a letter or forward/backward quote"
            )
        return self._store(buffer, name, cursor)

    def set_system_mark(self, buffer: MarkHost, name: str, cursor: Cursor) -> Mark:
        """Set a mark maintained by the interpreter (special or numbered)."""

        if len(name) != 1 or name not in SPECIAL_FILE_MARKS + RO_GLOBAL_MARKS:
            raise MarkError(name, f"Not a system mark: '{name}'")
        return self._store(buffer, name, cursor)

    def _store(self, buffer: MarkHost, name: str, cursor: Cursor) -> Mark:
        line, col = cursor
        with self._lock:
            mark = Mark(
                name=name,
                buffer_id=buffer.id,
                buffer_name=buffer.name,
                line=line,
                col=col,
                timestamp=next(self._clock),
            )
            if is_global_mark(name):
                self._global[name] = mark
            else:
                self._local.setdefault(buffer.id, {})[name] = mark
        telemetry.record_event(
            "mark.set",
            data={"mark": name, "buffer": buffer.name, "line": line, "col": col},
        )
        return mark

    def remove_mark(self, buffer: MarkHost, name: str) -> bool:
        """Delete one mark; returns ``False`` when it was not set."""

        with self._lock:
            if is_global_mark(name):
                return self._global.pop(name, None) is not None
            table = self._local.get(buffer.id, {})
            return table.pop(name, None) is not None

    def clear_local(self, buffer: MarkHost) -> List[str]:
        with self._lock:
            table = self._local.get(buffer.id, {})
            removed = [name for name in table if name in DEL_FILE_MARKS]
            for name in removed:
                del table[name]
            return removed

    # -- queries -------------------------------------------------------------

    def get_mark(self, buffer: MarkHost, name: str) -> Optional[Mark]:
        """Return mark ``name`` as seen from ``buffer``.

        Local marks come from the buffer's own table. Global marks may belong
        to another buffer or be dangling; callers check ``buffer_id``. Marks in
        ``buffer`` are clamped to its current extent.
        """

        with self._lock:
            if is_global_mark(name):
                mark = self._global.get(name)
            else:
                mark = self._local.get(buffer.id, {}).get(name)
        if mark is None or mark.buffer_id != buffer.id:
            return mark
        return self._clamped(buffer, mark)

    def marks_for(self, buffer: MarkHost) -> List[Mark]:
        """All marks visible from ``buffer`` in listing order."""

        with self._lock:
            found = dict(self._local.get(buffer.id, {}))
            found.update(self._global)
        ordered = sorted(
            found.values(),
            key=lambda mark: LISTING_ORDER.index(mark.name)
            if mark.name in LISTING_ORDER
            else len(LISTING_ORDER),
        )
        return [
            self._clamped(buffer, mark) if mark.buffer_id == buffer.id else mark
            for mark in ordered
        ]

    def global_marks(self) -> Dict[str, Mark]:
        with self._lock:
            return dict(self._global)

    @staticmethod
    def _clamped(buffer: MarkHost, mark: Mark) -> Mark:
        line = max(0, min(mark.line, buffer.line_count - 1))
        col = max(0, min(mark.col, len(buffer.get_line(line))))
        if (line, col) == (mark.line, mark.col):
            return mark
        return replace(mark, line=line, col=col)

    # -- lifetime ------------------------------------------------------------

    def buffer_opened(self, buffer: MarkHost) -> int:
        """Re-attach dangling global marks recorded for ``buffer.name``."""

        attached = 0
        with self._lock:
            for name, mark in list(self._global.items()):
                if mark.dangling and mark.buffer_name == buffer.name:
                    self._global[name] = replace(mark, buffer_id=buffer.id)
                    attached += 1
        return attached

    def buffer_closed(self, buffer: MarkHost) -> None:
        """Purge local marks and leave the buffer's global marks dangling."""

        with self._lock:
            purged = self._local.pop(buffer.id, {})
            for name, mark in list(self._global.items()):
                if mark.buffer_id == buffer.id:
                    self._global[name] = replace(mark, buffer_id=None)
        self._log.debug(
            "purged %d local marks for buffer %s", len(purged), buffer.name
        )

    def on_edit(self, event: EditEvent) -> None:
        """Re-anchor marks of the edited buffer after a text replacement."""

        with self._lock:
            table = self._local.get(event.buffer_id, {})
            for name, mark in list(table.items()):
                moved = _reanchor(mark, event)
                if moved is None:
                    del table[name]
                else:
                    table[name] = moved
            for name, mark in list(self._global.items()):
                if mark.buffer_id != event.buffer_id:
                    continue
                moved = _reanchor(mark, event)
                if moved is None:
                    # global marks on deleted rows are clamped, not removed
                    first = event.deleted_rows[0] if event.deleted_rows else mark.line
                    moved = replace(mark, line=max(0, first), col=0)
                self._global[name] = moved

    # -- persistence ---------------------------------------------------------

    def serialize_marks(self) -> List[Dict[str, Any]]:
        """Return the global mark set as plain data."""

        with self._lock:
            return [
                {
                    "name": mark.name,
                    "buffer_name": mark.buffer_name,
                    "line": mark.line,
                    "col": mark.col,
                    "timestamp": mark.timestamp,
                }
                for mark in sorted(self._global.values(), key=lambda m: m.name)
            ]

    def load_marks(
        self,
        data: Iterable[Mapping[str, Any]],
        *,
        buffers: Iterable[MarkHost] = (),
    ) -> None:
        """Restore global marks; marks for ``buffers`` are attached to them."""

        by_name = {buffer.name: buffer.id for buffer in buffers}
        with self._lock:
            for entry in data:
                name = str(entry["name"])
                if not is_global_mark(name):
                    raise MarkError(name, f"Not a global mark: '{name}'")
                timestamp = int(entry.get("timestamp", 0))
                existing = self._global.get(name)
                if existing is not None and existing.timestamp > timestamp:
                    continue
                buffer_name = str(entry["buffer_name"])
                self._global[name] = Mark(
                    name=name,
                    buffer_id=by_name.get(buffer_name),
                    buffer_name=buffer_name,
                    line=int(entry["line"]),
                    col=int(entry["col"]),
                    timestamp=timestamp,
                )

    def clear(self) -> None:
        with self._lock:
            self._local.clear()
            self._global.clear()


def _reanchor(mark: Mark, event: EditEvent) -> Optional[Mark]:
    """Return the mark moved past ``event`` or ``None`` when its row is gone."""

    if event.deleted_rows is not None:
        first, last = event.deleted_rows
        if mark.line < first:
            return mark
        if mark.line <= last:
            return None
        return replace(mark, line=mark.line - (last - first + 1))

    position = mark.cursor
    if position < event.start:
        return mark
    end_row, end_col = event.end
    if position >= event.end:
        if mark.line == end_row:
            new_row, new_col = event.new_end
            return replace(mark, line=new_row, col=new_col + (mark.col - end_col))
        return replace(mark, line=mark.line + event.line_delta)
    # inside the replaced span
    return replace(mark, line=event.start[0], col=event.start[1])


__all__ = [
    "DEL_FILE_MARKS",
    "DEL_MARKS",
    "LISTING_ORDER",
    "Mark",
    "MarkError",
    "MarkHost",
    "MarkStore",
    "RO_GLOBAL_MARKS",
    "SPECIAL_FILE_MARKS",
    "WR_GLOBAL_MARKS",
    "WR_REGULAR_FILE_MARKS",
    "is_global_mark",
]
