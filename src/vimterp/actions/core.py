"""Core action implementations shared across modes."""

from __future__ import annotations

from contextlib import ExitStack
from typing import Callable

from vimterp.buffer import READ_ONLY_MESSAGE, Cursor
from vimterp.keymaps import ResolutionMatch
from vimterp.modes.base_mode import (
    ActionRequest,
    ModeContext,
    ModeResult,
    current_request,
    mode_state,
)
from vimterp.store import MarkError

from .carets import CaretBatch, CaretFailure, for_each_caret
from .motions import MotionRequest, MotionTarget, first_nonblank
from .operators import (
    OperatorSpan,
    join_lines,
    line_span,
    put_text,
    replace_chars,
    run_operator,
    toggle_case_chars,
)

INSERT_SCOPE = "insert_scope"


def batch_result(batch: CaretBatch, **changes: object) -> ModeResult:
    """Turn a caret batch into a ``ModeResult``; fails only if every caret failed."""

    if batch.results and not batch.any_ok:
        return ModeResult(consumed=True, status="error", message=batch.first_failure())
    return ModeResult(consumed=True, **changes)  # type: ignore[arg-type]


def open_insert_scope(context: ModeContext, label: str) -> ExitStack:
    """Start an undo group that the next Insert session closes."""

    scope = context.extras.get(INSERT_SCOPE)
    if isinstance(scope, ExitStack):
        return scope
    scope = ExitStack()
    scope.enter_context(context.buffer.group(label))
    context.extras[INSERT_SCOPE] = scope
    return scope


def close_insert_scope(context: ModeContext) -> None:
    scope = context.extras.pop(INSERT_SCOPE, None)
    if isinstance(scope, ExitStack):
        scope.close()


def _register(context: ModeContext) -> str:
    return current_request(context).register or '"'


# -- mode entry ---------------------------------------------------------------------


def enter_insert_mode(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return ModeResult(consumed=True, switch_to="insert", message="enter_insert")


def _enter_insert_at(
    context: ModeContext, place: Callable[[Cursor], Cursor], label: str
) -> ModeResult:
    buffer = context.buffer
    carets = [buffer.clamp(place(caret)) for caret in buffer.state.carets]
    buffer.state.set_carets(carets)
    return ModeResult(consumed=True, switch_to="insert", message=label)


def append_after_cursor(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    buffer = context.buffer

    def place(caret: Cursor) -> Cursor:
        row, col = caret
        return (row, min(col + 1, len(buffer.get_line(row))))

    return _enter_insert_at(context, place, "enter_insert")


def insert_line_start(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    buffer = context.buffer
    return _enter_insert_at(
        context,
        lambda caret: (caret[0], first_nonblank(buffer.get_line(caret[0]))),
        "enter_insert",
    )


def append_line_end(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    buffer = context.buffer

    def line_end(caret: Cursor) -> Cursor:
        return caret[0], len(buffer.get_line(caret[0]))

    return _enter_insert_at(context, line_end, "enter_insert")


def _open_line(context: ModeContext, *, below: bool) -> ModeResult:
    buffer = context.buffer
    if not buffer.is_writable():
        return ModeResult(
            consumed=True,
            status="error",
            message=READ_ONLY_MESSAGE,
        )
    open_insert_scope(context, "open_line")

    def step(caret: Cursor) -> Cursor:
        row = caret[0]
        if below:
            buffer.insert_text("\n", cursor=(row, len(buffer.get_line(row))))
            return (row + 1, 0)
        buffer.insert_text("\n", cursor=(row, 0))
        return (row, 0)

    batch = for_each_caret(buffer, step, label="open_line")
    return batch_result(batch, switch_to="insert", message="enter_insert")


def open_line_below(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return _open_line(context, below=True)


def open_line_above(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return _open_line(context, below=False)


def enter_replace_mode(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return ModeResult(consumed=True, switch_to="replace", message="enter_replace")


def exit_to_normal_mode(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del context
    name = match.binding.mode
    return ModeResult(
        consumed=True, switch_to="normal", status="cancel", message=f"exit_{name}"
    )


def _enter_selection(
    context: ModeContext, target: str, *, exclusive: bool
) -> ModeResult:
    buffer = context.buffer
    anchor = buffer.state.cursor
    head = anchor
    if exclusive and buffer.get_line(anchor[0]):
        head = (anchor[0], anchor[1] + 1)
    buffer.state.set_cursor(*head)
    state = mode_state(context, "visual_state")
    state["anchor"] = anchor
    return ModeResult(consumed=True, switch_to=target, message=f"enter_{target}")


def enter_visual_mode(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return _enter_selection(context, "visual", exclusive=False)


def enter_visual_line_mode(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return _enter_selection(context, "visual_line", exclusive=False)


def enter_visual_block_mode(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return _enter_selection(context, "visual_block", exclusive=False)


def enter_select_mode(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return _enter_selection(context, "select", exclusive=True)


def enter_select_line_mode(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return _enter_selection(context, "select_line", exclusive=False)


def enter_select_block_mode(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return _enter_selection(context, "select_block", exclusive=True)


def enter_command_mode(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    request = current_request(context)
    if request.explicit_count:
        # "3:" becomes ":.,.+2"
        prefill = f".,.+{request.count - 1}" if request.count > 1 else "."
        mode_state(context, "command_state")["prefill"] = prefill
    return ModeResult(consumed=True, switch_to="command", message="enter_command")


# -- history ---------------------------------------------------------------------------


def undo(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    for _ in range(current_request(context).count):
        if context.buffer.undo_last() is None:
            return ModeResult(
                consumed=True, status="error", message="Already at oldest change"
            )
    return ModeResult(consumed=True, message="undo")


def redo(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    for _ in range(current_request(context).count):
        if context.buffer.redo_last() is None:
            return ModeResult(
                consumed=True, status="error", message="Already at newest change"
            )
    return ModeResult(consumed=True, message="redo")


# -- motions ---------------------------------------------------------------------------


def motion_request(
    context: ModeContext, cursor: Cursor, request: ActionRequest, *, count: int = 0
) -> MotionRequest:
    buffer = context.buffer
    return MotionRequest(
        buffer=buffer,
        cursor=cursor,
        count=count or request.count,
        explicit_count=request.explicit_count,
        argument=request.argument,
        marks=context.marks,
        desired_column=buffer.state.desired_column,
        state=mode_state(context, "motion_state"),
    )


def remember_column(context: ModeContext, target: MotionTarget) -> None:
    """Vertical motions keep the column wanted before they started."""

    if target.vertical:
        return
    state = context.buffer.state
    state.desired_column = (
        target.cursor[1] if target.desired_column is None else target.desired_column
    )


def move_carets(
    context: ModeContext,
    match: ResolutionMatch,
    request: ActionRequest,
    *,
    past_end: bool = False,
) -> CaretBatch:
    """Move every caret by the motion behind ``match``.

    ``past_end`` lets carets rest after the last character, as in Insert.
    Jumps made by the primary caret record the ``'`` mark.
    """

    buffer = context.buffer
    motion = match.action.handler
    primary = buffer.state.cursor
    targets: list[MotionTarget] = []

    def step(caret: Cursor) -> Cursor:
        target = motion(motion_request(context, caret, request))
        if target.jump and caret == primary:
            context.marks.set_system_mark(buffer, "'", caret)
        targets.append(target)
        row, col = target.cursor
        limit = len(buffer.get_line(row))
        if not past_end:
            limit = max(limit - 1, 0)
        return (row, min(col, limit))

    batch = for_each_caret(buffer, step, label=match.action.id)
    if targets:
        remember_column(context, targets[0])
    return batch


# -- single-key edits -----------------------------------------------------------------


def _operate_each(
    context: ModeContext,
    operator_id: str,
    span_for: Callable[[Cursor], OperatorSpan],
    *,
    label: str,
) -> CaretBatch:
    register = _register(context)

    def step(caret: Cursor) -> Cursor:
        span = span_for(caret)
        carets = run_operator(
            context, operator_id, span, register=register, origin=caret
        )
        return carets[0]

    return for_each_caret(context.buffer, step, label=label)


def _chars_span(
    context: ModeContext, caret: Cursor, count: int, *, backward: bool
) -> OperatorSpan:
    row, col = caret
    length = len(context.buffer.get_line(row))
    if backward:
        if col == 0:
            raise CaretFailure("at start of line")
        return OperatorSpan((row, max(0, col - count)), (row, col))
    if col >= length:
        raise CaretFailure("nothing to delete")
    return OperatorSpan((row, col), (row, min(length, col + count)))


def _to_line_end(context: ModeContext, caret: Cursor, count: int) -> OperatorSpan:
    buffer = context.buffer
    last = min(caret[0] + count - 1, buffer.last_row)
    return OperatorSpan(caret, (last, len(buffer.get_line(last))))


def delete_char(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    count = current_request(context).count
    batch = _operate_each(
        context,
        "operator.delete",
        lambda caret: _chars_span(context, caret, count, backward=False),
        label="delete_char",
    )
    return batch_result(batch)


def delete_char_before(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    count = current_request(context).count
    batch = _operate_each(
        context,
        "operator.delete",
        lambda caret: _chars_span(context, caret, count, backward=True),
        label="delete_char_before",
    )
    return batch_result(batch)


def delete_to_line_end(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    count = current_request(context).count
    batch = _operate_each(
        context,
        "operator.delete",
        lambda caret: _to_line_end(context, caret, count),
        label="delete_to_line_end",
    )
    return batch_result(batch)


def change_to_line_end(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    count = current_request(context).count
    open_insert_scope(context, "change_to_line_end")
    batch = _operate_each(
        context,
        "operator.change",
        lambda caret: _to_line_end(context, caret, count),
        label="change_to_line_end",
    )
    return batch_result(batch, switch_to="insert", message="enter_insert")


def yank_line(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    count = current_request(context).count
    batch = _operate_each(
        context,
        "operator.yank",
        lambda caret: line_span(context.buffer, caret[0], count),
        label="yank_line",
    )
    return batch_result(batch)


def _put(context: ModeContext, *, after: bool) -> ModeResult:
    request = current_request(context)
    register = request.register or '"'
    batch = for_each_caret(
        context.buffer,
        lambda caret: put_text(
            context, caret, register=register, after=after, count=request.count
        ),
        label="put",
    )
    return batch_result(batch)


def put_after(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return _put(context, after=True)


def put_before(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return _put(context, after=False)


def join(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    count = current_request(context).count
    batch = for_each_caret(
        context.buffer, lambda caret: join_lines(context, caret[0], count), label="join"
    )
    return batch_result(batch)


def replace_char(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    request = current_request(context)
    char = request.argument or ""
    batch = for_each_caret(
        context.buffer,
        lambda caret: replace_chars(context, caret, char, request.count),
        label="replace_char",
    )
    return batch_result(batch)


def toggle_case(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    count = current_request(context).count
    batch = for_each_caret(
        context.buffer,
        lambda caret: toggle_case_chars(context, caret, count),
        label="toggle_case",
    )
    return batch_result(batch)


def set_mark(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    name = current_request(context).argument or ""
    try:
        context.marks.set_mark(context.buffer, name, context.buffer.state.cursor)
    except MarkError as exc:
        return ModeResult(consumed=True, status="error", message=str(exc))
    return ModeResult(consumed=True, message=f"mark_{name}")


__all__ = [
    "INSERT_SCOPE",
    "append_after_cursor",
    "append_line_end",
    "batch_result",
    "change_to_line_end",
    "close_insert_scope",
    "delete_char",
    "delete_char_before",
    "delete_to_line_end",
    "enter_command_mode",
    "enter_insert_mode",
    "enter_replace_mode",
    "enter_select_block_mode",
    "enter_select_line_mode",
    "enter_select_mode",
    "enter_visual_block_mode",
    "enter_visual_line_mode",
    "enter_visual_mode",
    "exit_to_normal_mode",
    "insert_line_start",
    "join",
    "motion_request",
    "move_carets",
    "remember_column",
    "open_insert_scope",
    "open_line_above",
    "open_line_below",
    "put_after",
    "put_before",
    "redo",
    "replace_char",
    "set_mark",
    "toggle_case",
    "undo",
    "yank_line",
]
