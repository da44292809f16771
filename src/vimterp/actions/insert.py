"""Text entry for Insert and Replace modes."""

from __future__ import annotations

from typing import List, MutableMapping, Optional, Tuple, cast

from vimterp.buffer import READ_ONLY_MESSAGE, Cursor
from vimterp.keymaps import ResolutionMatch
from vimterp.modes.base_mode import ModeContext, ModeResult, current_request, mode_state

from .carets import CaretFailure, for_each_caret
from .core import batch_result

INSERT_STATE = "insert_state"

# (row, col, original character); None when the key extended the line and
# "\n" when it broke it
Overwritten = Tuple[int, int, Optional[str]]


def insert_state(context: ModeContext) -> MutableMapping[str, object]:
    state = mode_state(context, INSERT_STATE)
    state.setdefault("typed", [])
    state.setdefault("overwritten", [])
    return state


def typed_chars(context: ModeContext) -> List[str]:
    return cast(List[str], insert_state(context)["typed"])


def overwritten(context: ModeContext) -> List[Overwritten]:
    return cast(List[Overwritten], insert_state(context)["overwritten"])


def reset_insert_state(context: ModeContext) -> str:
    """Clear the session record and return the text typed during it."""

    state = insert_state(context)
    text = "".join(typed_chars(context))
    state["typed"] = []
    state["overwritten"] = []
    return text


def _writable(context: ModeContext) -> Optional[ModeResult]:
    if context.buffer.is_writable():
        return None
    return ModeResult(
        consumed=True,
        status="error",
        message=READ_ONLY_MESSAGE,
    )


def type_text(context: ModeContext, text: str) -> ModeResult:
    """Insert ``text`` at every caret."""

    blocked = _writable(context)
    if blocked is not None:
        return blocked
    buffer = context.buffer

    def step(caret: Cursor) -> Cursor:
        buffer.insert_text(text, cursor=caret)
        return buffer.cursor_for(buffer.offset_for(*caret) + len(text))

    batch = for_each_caret(buffer, step, label="insert_text")
    typed_chars(context).extend(text)
    return batch_result(batch)


def overwrite_text(context: ModeContext, text: str) -> ModeResult:
    """Replace mode: each typed character replaces the one under the caret."""

    blocked = _writable(context)
    if blocked is not None:
        return blocked
    buffer = context.buffer
    record = overwritten(context)
    row, col = buffer.state.cursor
    with buffer.group("replace_text"):
        for char in text:
            line = buffer.get_line(row)
            if char == "\n":
                buffer.insert_text("\n", cursor=(row, col))
                record.append((row, col, "\n"))
                row, col = row + 1, 0
                continue
            if col < len(line):
                record.append((row, col, line[col]))
                buffer.replace_range(
                    (row, col), (row, col + 1), char, label="replace_text"
                )
            else:
                record.append((row, col, None))
                buffer.insert_text(char, cursor=(row, col))
            col += 1
    buffer.state.set_cursor(row, col)
    typed_chars(context).extend(text)
    return ModeResult(consumed=True)


def _backspace_step(context: ModeContext, caret: Cursor) -> Cursor:
    buffer = context.buffer
    row, col = caret
    if col > 0:
        buffer.delete_range((row, col - 1), (row, col))
        return (row, col - 1)
    if row == 0:
        raise CaretFailure("at start of buffer")
    # join with the previous line
    previous = len(buffer.get_line(row - 1))
    buffer.delete_range((row - 1, previous), (row, 0))
    return (row - 1, previous)


def backspace(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    blocked = _writable(context)
    if blocked is not None:
        return blocked
    batch = for_each_caret(
        context.buffer, lambda caret: _backspace_step(context, caret), label="backspace"
    )
    typed = typed_chars(context)
    if typed:
        typed.pop()
    return batch_result(batch)


def replace_backspace(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    """Replace mode Backspace restores what the last typed character covered."""

    del match
    buffer = context.buffer
    record = overwritten(context)
    row, col = buffer.state.cursor
    if not record:
        if col > 0:
            buffer.state.set_cursor(row, col - 1)
        return ModeResult(consumed=True)
    o_row, o_col, original = record.pop()
    if original == "\n":
        buffer.delete_range((o_row, o_col), (o_row + 1, 0))
    elif original is None:
        buffer.delete_range((o_row, o_col), (o_row, o_col + 1))
    else:
        buffer.replace_range(
            (o_row, o_col), (o_row, o_col + 1), original, label="replace_text"
        )
    buffer.state.set_cursor(o_row, o_col)
    typed = typed_chars(context)
    if typed:
        typed.pop()
    return ModeResult(consumed=True)


def newline(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return type_text(context, "\n")


def replace_newline(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return overwrite_text(context, "\n")


def _delete_step(context: ModeContext, caret: Cursor) -> Cursor:
    buffer = context.buffer
    row, col = caret
    if col < len(buffer.get_line(row)):
        buffer.delete_range((row, col), (row, col + 1))
    elif row < buffer.last_row:
        buffer.delete_range((row, col), (row + 1, 0))
    else:
        raise CaretFailure("at end of buffer")
    return caret


def delete_forward(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    blocked = _writable(context)
    if blocked is not None:
        return blocked
    batch = for_each_caret(
        context.buffer,
        lambda caret: _delete_step(context, caret),
        label="delete_forward",
    )
    return batch_result(batch)


def insert_register(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    """``Ctrl-R {reg}`` inserts a register's text as if typed."""

    del match
    name = current_request(context).argument or ""
    value = context.registers.get(name)
    if not value.text:
        return ModeResult(consumed=True)
    if context.extras.get("insert_overwrites"):
        return overwrite_text(context, value.text)
    return type_text(context, value.text)


__all__ = [
    "INSERT_STATE",
    "backspace",
    "delete_forward",
    "insert_register",
    "insert_state",
    "newline",
    "overwrite_text",
    "overwritten",
    "replace_backspace",
    "replace_newline",
    "reset_insert_state",
    "type_text",
    "typed_chars",
]
