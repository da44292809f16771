"""Cursor motions shared by Normal, Operator-Pending, Visual and Select modes.

A motion is a pure function of a :class:`MotionRequest` returning a
:class:`MotionTarget`; it never edits the buffer. Motions that cannot move
raise :class:`MotionError` so callers can record a per-caret failure.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Callable, Dict, MutableMapping, Optional, Tuple

from vimterp.buffer import Buffer, Cursor
from vimterp.store import MarkStore

# column remembered after ``$`` so vertical moves stick to line ends
END_OF_LINE = sys.maxsize

_PAIRS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {close: open_ for open_, close in _PAIRS.items()}


class MotionError(RuntimeError):
    """Raised when a motion has no valid target from the given cursor."""


@dataclass(slots=True)
class MotionRequest:
    buffer: Buffer
    cursor: Cursor
    count: int = 1
    explicit_count: bool = False
    argument: Optional[str] = None
    marks: Optional[MarkStore] = None
    desired_column: Optional[int] = None
    state: MutableMapping[str, object] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class MotionTarget:
    cursor: Cursor
    linewise: bool = False
    inclusive: bool = False
    jump: bool = False
    vertical: bool = False
    desired_column: Optional[int] = None


Motion = Callable[[MotionRequest], MotionTarget]


@dataclass(frozen=True, slots=True)
class MotionSpec:
    id: str
    keys: Tuple[str, ...]
    handler: Motion
    description: str
    argument: Optional[str] = None
    arrow: bool = False


def first_nonblank(line: str) -> int:
    stripped = line.lstrip(" \t")
    if not stripped:
        return max(0, len(line) - 1)
    return len(line) - len(stripped)


def _char_class(char: str, big: bool) -> int:
    if char.isspace():
        return 0
    if big or char.isalnum() or char == "_":
        return 1
    return 2


# -- character and line motions ----------------------------------------------


def left(request: MotionRequest) -> MotionTarget:
    row, col = request.cursor
    if col == 0:
        raise MotionError("already at start of line")
    return MotionTarget((row, max(0, col - request.count)))


def right(request: MotionRequest) -> MotionTarget:
    row, col = request.cursor
    length = len(request.buffer.get_line(row))
    if col >= length:
        raise MotionError("already at end of line")
    return MotionTarget((row, min(length, col + request.count)))


def _vertical(request: MotionRequest, delta: int) -> MotionTarget:
    row, col = request.cursor
    target_row = row + delta * request.count
    if not 0 <= row + delta <= request.buffer.last_row:
        raise MotionError("no line in that direction")
    target_row = max(0, min(target_row, request.buffer.last_row))
    column = col if request.desired_column is None else request.desired_column
    length = len(request.buffer.get_line(target_row))
    return MotionTarget(
        (target_row, min(column, max(0, length - 1))),
        linewise=True,
        vertical=True,
    )


def down(request: MotionRequest) -> MotionTarget:
    return _vertical(request, 1)


def up(request: MotionRequest) -> MotionTarget:
    return _vertical(request, -1)


def next_line_start(request: MotionRequest) -> MotionTarget:
    target = _vertical(request, 1)
    row = target.cursor[0]
    column = first_nonblank(request.buffer.get_line(row))
    return MotionTarget((row, column), linewise=True)


def previous_line_start(request: MotionRequest) -> MotionTarget:
    target = _vertical(request, -1)
    row = target.cursor[0]
    column = first_nonblank(request.buffer.get_line(row))
    return MotionTarget((row, column), linewise=True)


def line_start(request: MotionRequest) -> MotionTarget:
    return MotionTarget((request.cursor[0], 0), desired_column=0)


def line_first_nonblank(request: MotionRequest) -> MotionTarget:
    row = request.cursor[0]
    return MotionTarget((row, first_nonblank(request.buffer.get_line(row))))


def line_end(request: MotionRequest) -> MotionTarget:
    row = min(request.cursor[0] + request.count - 1, request.buffer.last_row)
    length = len(request.buffer.get_line(row))
    return MotionTarget(
        (row, max(0, length - 1)), inclusive=True, desired_column=END_OF_LINE
    )


def goto_line(request: MotionRequest) -> MotionTarget:
    """``G``: line ``count`` or the last line."""

    buffer = request.buffer
    row = request.count - 1 if request.explicit_count else buffer.last_row
    row = max(0, min(row, buffer.last_row))
    return MotionTarget(
        (row, first_nonblank(buffer.get_line(row))), linewise=True, jump=True
    )


def goto_first_line(request: MotionRequest) -> MotionTarget:
    """``gg``: line ``count`` or the first line."""

    buffer = request.buffer
    row = request.count - 1 if request.explicit_count else 0
    row = max(0, min(row, buffer.last_row))
    return MotionTarget(
        (row, first_nonblank(buffer.get_line(row))), linewise=True, jump=True
    )


# -- word motions ----------------------------------------------------------------


def _word_forward(text: str, pos: int, big: bool) -> Optional[int]:
    size = len(text)
    if pos >= size:
        return None
    cls = _char_class(text[pos], big)
    if cls:
        while pos < size and _char_class(text[pos], big) == cls:
            pos += 1
    while pos < size and _char_class(text[pos], big) == 0:
        if text[pos] == "\n" and pos + 1 < size and text[pos + 1] == "\n":
            return pos + 1  # an empty line is a word
        pos += 1
    return pos


def _word_end(text: str, pos: int, big: bool) -> Optional[int]:
    size = len(text)
    pos += 1
    while pos < size and _char_class(text[pos], big) == 0:
        pos += 1
    if pos >= size:
        return None
    cls = _char_class(text[pos], big)
    while pos + 1 < size and _char_class(text[pos + 1], big) == cls:
        pos += 1
    return pos


def _word_backward(text: str, pos: int, big: bool) -> Optional[int]:
    if pos <= 0:
        return None
    pos -= 1
    while pos > 0 and _char_class(text[pos], big) == 0:
        if text[pos] == "\n" and text[pos - 1] == "\n":
            return pos
        pos -= 1
    cls = _char_class(text[pos], big)
    if cls == 0:
        return pos
    while pos > 0 and _char_class(text[pos - 1], big) == cls:
        pos -= 1
    return pos


def _repeat_word(
    request: MotionRequest,
    step: Callable[[str, int, bool], Optional[int]],
    big: bool,
    *,
    inclusive: bool = False,
) -> MotionTarget:
    buffer = request.buffer
    text = buffer.text
    pos = buffer.offset_for(*request.cursor)
    for index in range(request.count):
        moved = step(text, pos, big)
        if moved is None:
            if index == 0:
                raise MotionError("no more words")
            break
        pos = moved
    return MotionTarget(buffer.cursor_for(pos), inclusive=inclusive)


def word_forward(request: MotionRequest) -> MotionTarget:
    return _repeat_word(request, _word_forward, False)


def bigword_forward(request: MotionRequest) -> MotionTarget:
    return _repeat_word(request, _word_forward, True)


def word_end(request: MotionRequest) -> MotionTarget:
    return _repeat_word(request, _word_end, False, inclusive=True)


def bigword_end(request: MotionRequest) -> MotionTarget:
    return _repeat_word(request, _word_end, True, inclusive=True)


def word_backward(request: MotionRequest) -> MotionTarget:
    return _repeat_word(request, _word_backward, False)


def bigword_backward(request: MotionRequest) -> MotionTarget:
    return _repeat_word(request, _word_backward, True)


# -- paragraphs --------------------------------------------------------------------


def paragraph_forward(request: MotionRequest) -> MotionTarget:
    """``}``: the next blank line after a block of text, else buffer end."""

    buffer = request.buffer
    row = request.cursor[0]
    last = buffer.last_row
    for _ in range(request.count):
        if row >= last:
            break
        while row < last and buffer.get_line(row) == "":
            row += 1
        while row < last and buffer.get_line(row) != "":
            row += 1
    if buffer.get_line(row) == "":
        target = (row, 0)
    else:
        target = (last, len(buffer.get_line(last)))
    start_row, start_col = request.cursor
    at_end = start_row == last and start_col >= len(buffer.get_line(last)) - 1
    if target <= request.cursor or (target[0] == last and at_end):
        raise MotionError("no paragraph after cursor")
    return MotionTarget(target, jump=True)


def paragraph_backward(request: MotionRequest) -> MotionTarget:
    """``{``: the previous blank line before a block of text, else buffer start."""

    buffer = request.buffer
    row = request.cursor[0]
    for _ in range(request.count):
        if row <= 0:
            break
        while row > 0 and buffer.get_line(row) == "":
            row -= 1
        while row > 0 and buffer.get_line(row) != "":
            row -= 1
    target = (row, 0)
    if target >= request.cursor:
        raise MotionError("no paragraph before cursor")
    return MotionTarget(target, jump=True)


# -- in-line character search ------------------------------------------------------


def _find_in_line(
    request: MotionRequest, char: str, *, forward: bool, till: bool
) -> MotionTarget:
    row, col = request.cursor
    line = request.buffer.get_line(row)
    pos = col
    for _ in range(request.count):
        if forward:
            found = line.find(char, pos + 1)
        else:
            found = line.rfind(char, 0, pos)
        if found < 0:
            raise MotionError(f"'{char}' not found")
        pos = found
    if till:
        pos = pos - 1 if forward else pos + 1
    return MotionTarget((row, pos), inclusive=forward)


def _char_search(kind: str) -> Motion:
    forward = kind in ("f", "t")
    till = kind in ("t", "T")

    def motion(request: MotionRequest) -> MotionTarget:
        if not request.argument:
            raise MotionError("character argument required")
        request.state["last_find"] = (kind, request.argument)
        return _find_in_line(request, request.argument, forward=forward, till=till)

    motion.__name__ = f"find_{kind}"
    return motion


find_forward = _char_search("f")
find_backward = _char_search("F")
till_forward = _char_search("t")
till_backward = _char_search("T")

_REVERSED = {"f": "F", "F": "f", "t": "T", "T": "t"}


def _repeat_find(reverse: bool) -> Motion:
    def motion(request: MotionRequest) -> MotionTarget:
        last = request.state.get("last_find")
        if not last:
            raise MotionError("no previous character search")
        kind, char = last  # type: ignore[misc]
        if reverse:
            kind = _REVERSED[kind]
        return _find_in_line(
            request, char, forward=kind in ("f", "t"), till=kind in ("t", "T")
        )

    return motion


repeat_find = _repeat_find(False)
repeat_find_reverse = _repeat_find(True)


# -- marks and brackets --------------------------------------------------------------


def _mark(request: MotionRequest, *, exact: bool) -> MotionTarget:
    name = request.argument or ""
    mark = None
    if request.marks is not None and name:
        mark = request.marks.get_mark(request.buffer, name)
    if mark is None or mark.buffer_id != request.buffer.id:
        raise MotionError("E20: Mark not set")
    if exact:
        return MotionTarget(mark.cursor, jump=True)
    line = request.buffer.get_line(mark.line)
    return MotionTarget((mark.line, first_nonblank(line)), linewise=True, jump=True)


def mark_line(request: MotionRequest) -> MotionTarget:
    return _mark(request, exact=False)


def mark_exact(request: MotionRequest) -> MotionTarget:
    return _mark(request, exact=True)


def match_pair(request: MotionRequest) -> MotionTarget:
    """``%``: jump to the matching bracket; ``N%`` goes to N percent of the file."""

    buffer = request.buffer
    if request.explicit_count:
        if request.count > 100:
            raise MotionError("count out of range")
        row = (request.count * buffer.line_count + 99) // 100 - 1
        return MotionTarget(
            (row, first_nonblank(buffer.get_line(row))), linewise=True, jump=True
        )
    row, col = request.cursor
    line = buffer.get_line(row)
    start = next(
        (i for i in range(col, len(line)) if line[i] in _PAIRS or line[i] in _CLOSERS),
        None,
    )
    if start is None:
        raise MotionError("no bracket on line")
    text = buffer.text
    pos = buffer.offset_for(row, start)
    char = text[pos]
    if char in _PAIRS:
        other, step = _PAIRS[char], 1
    else:
        other, step = _CLOSERS[char], -1
    depth = 0
    while 0 <= pos < len(text):
        if text[pos] == char:
            depth += 1
        elif text[pos] == other:
            depth -= 1
            if depth == 0:
                return MotionTarget(buffer.cursor_for(pos), inclusive=True, jump=True)
        pos += step
    raise MotionError("no matching bracket")


MOTIONS: Dict[str, MotionSpec] = {
    spec.id: spec
    for spec in (
        MotionSpec("motion.left", ("h",), left, "Left"),
        MotionSpec("motion.right", ("l",), right, "Right"),
        MotionSpec("motion.down", ("j",), down, "Down"),
        MotionSpec("motion.up", ("k",), up, "Up"),
        MotionSpec("motion.arrow_left", ("LEFT",), left, "Left", arrow=True),
        MotionSpec("motion.arrow_right", ("RIGHT",), right, "Right", arrow=True),
        MotionSpec("motion.arrow_down", ("DOWN",), down, "Down", arrow=True),
        MotionSpec("motion.arrow_up", ("UP",), up, "Up", arrow=True),
        MotionSpec("motion.next_line_start", ("+",), next_line_start, "Next line"),
        MotionSpec("motion.enter_line_start", ("ENTER",), next_line_start, "Next line"),
        MotionSpec(
            "motion.prev_line_start", ("-",), previous_line_start, "Previous line"
        ),
        MotionSpec("motion.line_start", ("0",), line_start, "Start of line"),
        MotionSpec(
            "motion.first_nonblank", ("^",), line_first_nonblank, "First non-blank"
        ),
        MotionSpec("motion.line_end", ("$",), line_end, "End of line"),
        MotionSpec("motion.word_forward", ("w",), word_forward, "Next word"),
        MotionSpec("motion.word_backward", ("b",), word_backward, "Previous word"),
        MotionSpec("motion.word_end", ("e",), word_end, "End of word"),
        MotionSpec("motion.bigword_forward", ("W",), bigword_forward, "Next WORD"),
        MotionSpec(
            "motion.bigword_backward", ("B",), bigword_backward, "Previous WORD"
        ),
        MotionSpec("motion.bigword_end", ("E",), bigword_end, "End of WORD"),
        MotionSpec("motion.goto_first_line", ("g", "g"), goto_first_line, "First line"),
        MotionSpec("motion.goto_line", ("G",), goto_line, "Last line"),
        MotionSpec(
            "motion.paragraph_forward", ("}",), paragraph_forward, "Next paragraph"
        ),
        MotionSpec(
            "motion.paragraph_backward", ("{",), paragraph_backward, "Paragraph back"
        ),
        MotionSpec("motion.find_forward", ("f",), find_forward, "Find char", "char"),
        MotionSpec(
            "motion.find_backward", ("F",), find_backward, "Find char back", "char"
        ),
        MotionSpec("motion.till_forward", ("t",), till_forward, "Till char", "char"),
        MotionSpec(
            "motion.till_backward", ("T",), till_backward, "Till char back", "char"
        ),
        MotionSpec("motion.repeat_find", (";",), repeat_find, "Repeat find"),
        MotionSpec(
            "motion.repeat_find_reverse", (",",), repeat_find_reverse, "Find reversed"
        ),
        MotionSpec("motion.mark_line", ("'",), mark_line, "Jump to mark line", "char"),
        MotionSpec("motion.mark_exact", ("`",), mark_exact, "Jump to mark", "char"),
        MotionSpec("motion.match_pair", ("%",), match_pair, "Matching bracket"),
    )
}


__all__ = [
    "END_OF_LINE",
    "MOTIONS",
    "Motion",
    "MotionError",
    "MotionRequest",
    "MotionSpec",
    "MotionTarget",
    "first_nonblank",
]
