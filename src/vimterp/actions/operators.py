"""Operators (delete, change, yank, shift, case) applied over a text span."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from vimterp.buffer import READ_ONLY_MESSAGE, Buffer, Cursor
from vimterp.runtime import telemetry
from vimterp.store import RegisterValue

from vimterp.modes.base_mode import ModeContext

from .carets import CaretFailure
from .motions import MotionTarget, first_nonblank


@dataclass(frozen=True, slots=True)
class OperatorSpan:
    """Span an operator acts on; ``end`` is exclusive.

    Block spans use ``start``/``end`` as the top-left and bottom-right
    corners with an exclusive right column.
    """

    start: Cursor
    end: Cursor
    linewise: bool = False
    block: bool = False

    @property
    def first_row(self) -> int:
        return self.start[0]

    @property
    def last_row(self) -> int:
        return self.end[0]

    @property
    def register_type(self) -> str:
        if self.block:
            return "block"
        return "line" if self.linewise else "character"


@dataclass(frozen=True, slots=True)
class OperatorSpec:
    id: str
    keys: Tuple[str, ...]
    handler: Callable[["OperatorCall"], List[Cursor]]
    description: str
    enters_insert: bool = False
    changes_text: bool = True


@dataclass(slots=True)
class OperatorCall:
    context: ModeContext
    span: OperatorSpan
    register: str = '"'
    origin: Cursor = (0, 0)

    @property
    def buffer(self) -> Buffer:
        return self.context.buffer


def span_from_motion(
    buffer: Buffer, origin: Cursor, target: MotionTarget
) -> OperatorSpan:
    start, end = sorted((origin, target.cursor))
    if target.linewise:
        return OperatorSpan(
            (start[0], 0), (end[0], len(buffer.get_line(end[0]))), linewise=True
        )
    if target.inclusive:
        end = (end[0], min(end[1] + 1, len(buffer.get_line(end[0]))))
    elif end[0] > start[0] and end[1] == 0:
        # exclusive motion ending at a line start stops at the previous line end
        end = (end[0] - 1, len(buffer.get_line(end[0] - 1)))
    return OperatorSpan(start, end)


def line_span(buffer: Buffer, row: int, count: int = 1) -> OperatorSpan:
    last = min(row + max(count, 1) - 1, buffer.last_row)
    return OperatorSpan((row, 0), (last, len(buffer.get_line(last))), linewise=True)


def selection_span(
    buffer: Buffer, anchor: Cursor, head: Cursor, kind: str
) -> OperatorSpan:
    """Span of a Visual selection; ``kind`` is ``char``, ``line`` or ``block``."""

    start, end = sorted((anchor, head))
    if kind == "line":
        return line_span(buffer, start[0], end[0] - start[0] + 1)
    if kind == "block":
        left, right = sorted((anchor[1], head[1]))
        return OperatorSpan((start[0], left), (end[0], right + 1), block=True)
    return OperatorSpan(start, (end[0], min(end[1] + 1, len(buffer.get_line(end[0])))))


def span_text(buffer: Buffer, span: OperatorSpan) -> str:
    if span.block:
        return "\n".join(_block_pieces(buffer, span))
    if span.linewise:
        return "\n".join(buffer.get_lines(span.first_row, span.last_row)) + "\n"
    return buffer.get_text_range(span.start, span.end)


def _block_pieces(buffer: Buffer, span: OperatorSpan) -> List[str]:
    left, right = span.start[1], span.end[1]
    return [
        buffer.get_line(row)[left:right]
        for row in range(span.first_row, span.last_row + 1)
    ]


def _mark_change(call: OperatorCall, start: Cursor, end: Cursor) -> None:
    buffer = call.buffer
    marks = call.context.marks
    marks.set_system_mark(buffer, "[", buffer.clamp(start))
    marks.set_system_mark(buffer, "]", buffer.clamp(end))


def _remove_span(call: OperatorCall, *, label: str) -> str:
    buffer, span = call.buffer, call.span
    text = span_text(buffer, span)
    if span.block:
        left, right = span.start[1], span.end[1]
        for row in range(span.last_row, span.first_row - 1, -1):
            length = len(buffer.get_line(row))
            if left < length:
                end = (row, min(right, length))
                buffer.replace_range((row, left), end, "", label=label)
    elif span.linewise:
        buffer.delete_lines(span.first_row, span.last_row, label=label)
    else:
        buffer.delete_range(span.start, span.end)
    return text


def delete(call: OperatorCall) -> List[Cursor]:
    buffer, span = call.buffer, call.span
    text = _remove_span(call, label="operator_delete")
    call.context.registers.delete_to(
        call.register, text, register_type=span.register_type
    )
    if span.linewise:
        row = min(span.first_row, buffer.last_row)
        return [(row, first_nonblank(buffer.get_line(row)))]
    return [buffer.clamp(span.start)]


def change(call: OperatorCall) -> List[Cursor]:
    buffer, span = call.buffer, call.span
    text = span_text(buffer, span)
    if span.linewise:
        indent = buffer.get_line(span.first_row)
        indent = indent[: len(indent) - len(indent.lstrip(" \t"))]
        buffer.replace_range(
            (span.first_row, 0),
            (span.last_row, len(buffer.get_line(span.last_row))),
            indent,
            label="operator_change",
        )
        carets = [(span.first_row, len(indent))]
    elif span.block:
        _remove_span(call, label="operator_change")
        left = span.start[1]
        carets = [
            (row, left)
            for row in range(span.first_row, span.last_row + 1)
            if len(buffer.get_line(row)) >= left
        ]
    else:
        buffer.delete_range(span.start, span.end)
        carets = [span.start]
    call.context.registers.delete_to(
        call.register, text, register_type=span.register_type
    )
    return carets


def yank(call: OperatorCall) -> List[Cursor]:
    buffer, span = call.buffer, call.span
    text = span_text(buffer, span)
    call.context.registers.yank_to(
        call.register, text, register_type=span.register_type
    )
    _mark_change(call, span.start, span.end)
    if span.linewise:
        return [buffer.clamp((span.first_row, call.origin[1]))]
    return [span.start]


def _shift(call: OperatorCall, direction: int) -> List[Cursor]:
    buffer, span = call.buffer, call.span
    width = call.context.options.shiftwidth
    for row in range(span.first_row, span.last_row + 1):
        line = buffer.get_line(row)
        if not line:
            continue
        if direction > 0:
            shifted = " " * width + line
        else:
            leading = len(line) - len(line.lstrip(" "))
            if leading:
                shifted = line[min(leading, width):]
            elif line.startswith("\t"):
                shifted = line[1:]
            else:
                continue
        buffer.replace_range(
            (row, 0), (row, len(line)), shifted, label="operator_shift"
        )
    row = span.first_row
    return [(row, first_nonblank(buffer.get_line(row)))]


def shift_right(call: OperatorCall) -> List[Cursor]:
    return _shift(call, 1)


def shift_left(call: OperatorCall) -> List[Cursor]:
    return _shift(call, -1)


def _transform(call: OperatorCall, convert: Callable[[str], str]) -> List[Cursor]:
    buffer, span = call.buffer, call.span
    if span.block:
        left, right = span.start[1], span.end[1]
        for row in range(span.first_row, span.last_row + 1):
            line = buffer.get_line(row)
            if left < len(line):
                stop = min(right, len(line))
                piece = convert(line[left:stop])
                buffer.replace_range(
                    (row, left), (row, stop), piece, label="operator_case"
                )
        return [span.start]
    text = span_text(buffer, span)
    if span.linewise:
        text = text[:-1]
        end = (span.last_row, len(buffer.get_line(span.last_row)))
        buffer.replace_range(
            (span.first_row, 0), end, convert(text), label="operator_case"
        )
        return [(span.first_row, 0)]
    buffer.replace_range(span.start, span.end, convert(text), label="operator_case")
    return [span.start]


def toggle_case(call: OperatorCall) -> List[Cursor]:
    return _transform(call, str.swapcase)


def lower_case(call: OperatorCall) -> List[Cursor]:
    return _transform(call, str.lower)


def upper_case(call: OperatorCall) -> List[Cursor]:
    return _transform(call, str.upper)


OPERATORS: Dict[str, OperatorSpec] = {
    spec.id: spec
    for spec in (
        OperatorSpec("operator.delete", ("d",), delete, "Delete"),
        OperatorSpec("operator.change", ("c",), change, "Change", enters_insert=True),
        OperatorSpec("operator.yank", ("y",), yank, "Yank", changes_text=False),
        OperatorSpec("operator.shift_right", (">",), shift_right, "Shift right"),
        OperatorSpec("operator.shift_left", ("<",), shift_left, "Shift left"),
        OperatorSpec("operator.toggle_case", ("g", "~"), toggle_case, "Toggle case"),
        OperatorSpec("operator.lower_case", ("g", "u"), lower_case, "Lower case"),
        OperatorSpec("operator.upper_case", ("g", "U"), upper_case, "Upper case"),
    )
}


def run_operator(
    context: ModeContext,
    operator_id: str,
    span: OperatorSpan,
    *,
    register: str = '"',
    origin: Optional[Cursor] = None,
) -> List[Cursor]:
    """Apply ``operator_id`` over ``span``; returns the resulting caret(s)."""

    spec = OPERATORS[operator_id]
    if spec.changes_text and not context.buffer.is_writable():
        raise CaretFailure(READ_ONLY_MESSAGE)
    call = OperatorCall(
        context=context, span=span, register=register, origin=origin or span.start
    )
    with telemetry.span(
        f"operator::{spec.id}",
        component="operators",
        metadata={"linewise": span.linewise, "block": span.block, "register": register},
    ):
        return spec.handler(call)


# -- non-operator edits built on the same spans -----------------------------------


def put_text(
    context: ModeContext,
    cursor: Cursor,
    *,
    register: str = '"',
    after: bool = True,
    count: int = 1,
    value: Optional[RegisterValue] = None,
) -> Cursor:
    """Paste register contents at ``cursor`` (``p`` / ``P``)."""

    buffer = context.buffer
    if value is None:
        value = context.registers.get(register)
    if not value.text:
        raise CaretFailure(f"E353: Nothing in register {register}")
    row, col = cursor
    if value.type == "line":
        lines = value.text[:-1] if value.text.endswith("\n") else value.text
        block = "\n".join([lines] * count)
        if after:
            buffer.insert_text("\n" + block, cursor=(row, len(buffer.get_line(row))))
            target = row + 1
        else:
            buffer.insert_text(block + "\n", cursor=(row, 0))
            target = row
        return (target, first_nonblank(buffer.get_line(target)))
    if value.type == "block":
        pieces = value.text.split("\n")
        column = col + 1 if after and buffer.get_line(row) else col
        for index, piece in enumerate(pieces):
            target_row = row + index
            if target_row > buffer.last_row:
                last_row = buffer.last_row
                end = (last_row, len(buffer.get_line(last_row)))
                buffer.insert_text("\n", cursor=end)
            line = buffer.get_line(target_row)
            if len(line) < column:
                padding = " " * (column - len(line))
                buffer.insert_text(padding, cursor=(target_row, len(line)))
            buffer.insert_text(piece * count, cursor=(target_row, column))
        return (row, column)
    text = value.text * count
    line = buffer.get_line(row)
    column = min(col + 1, len(line)) if after and line else col
    buffer.insert_text(text, cursor=(row, column))
    return buffer.cursor_for(buffer.offset_for(row, column) + len(text) - 1)


def join_lines(context: ModeContext, row: int, count: int = 2) -> Cursor:
    buffer = context.buffer
    if row >= buffer.last_row:
        raise CaretFailure("cannot join the last line")
    last = min(row + max(count, 2) - 1, buffer.last_row)
    joined = buffer.get_line(row)
    column = len(joined)
    for index in range(row + 1, last + 1):
        following = buffer.get_line(index).lstrip(" \t")
        separator = ""
        spaced = joined.endswith((" ", "\t")) or following.startswith(")")
        if following and joined and not spaced:
            separator = " "
        column = len(joined)
        joined = joined + separator + following
    buffer.replace_range(
        (row, 0), (last, len(buffer.get_line(last))), joined, label="join_lines"
    )
    return buffer.clamp((row, column))


def replace_chars(
    context: ModeContext, cursor: Cursor, char: str, count: int = 1
) -> Cursor:
    buffer = context.buffer
    row, col = cursor
    line = buffer.get_line(row)
    if col + count > len(line):
        raise CaretFailure("not enough characters to replace")
    buffer.replace_range(
        (row, col), (row, col + count), char * count, label="replace_chars"
    )
    return (row, col + count - 1)


def toggle_case_chars(context: ModeContext, cursor: Cursor, count: int = 1) -> Cursor:
    buffer = context.buffer
    row, col = cursor
    line = buffer.get_line(row)
    if not line:
        raise CaretFailure("empty line")
    stop = min(col + count, len(line))
    buffer.replace_range(
        (row, col), (row, stop), line[col:stop].swapcase(), label="toggle_case"
    )
    return (row, min(stop, len(line) - 1))


__all__ = [
    "OPERATORS",
    "OperatorCall",
    "OperatorSpan",
    "OperatorSpec",
    "join_lines",
    "line_span",
    "put_text",
    "replace_chars",
    "run_operator",
    "selection_span",
    "span_from_motion",
    "span_text",
    "toggle_case_chars",
]
