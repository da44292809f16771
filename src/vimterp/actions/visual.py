"""Actions dedicated to Visual and Select mode selection management."""

from __future__ import annotations

from functools import wraps
from typing import Callable, MutableMapping, Optional, Tuple, cast

from vimterp.buffer import Buffer, Cursor
from vimterp.keymaps import ResolutionMatch
from vimterp.modes.base_mode import (
    ActionRequest,
    KeyInput,
    ModeContext,
    ModeResult,
    current_request,
    mode_state,
)
from vimterp.store import RegisterValue

from .carets import CaretFailure, for_each_caret
from .core import batch_result, close_insert_scope, open_insert_scope
from .motions import MotionRequest, first_nonblank
from .operators import (
    OperatorSpan,
    join_lines,
    put_text,
    run_operator,
    selection_span,
)

VISUAL_MODES = {"char": "visual", "line": "visual_line", "block": "visual_block"}
SELECT_MODES = {"char": "select", "line": "select_line", "block": "select_block"}
SELECTION_MODES = frozenset(VISUAL_MODES.values()) | frozenset(SELECT_MODES.values())


def visual_state(context: ModeContext) -> MutableMapping[str, object]:
    state = mode_state(context, "visual_state")
    if "anchor" not in state:
        state["anchor"] = context.buffer.state.cursor
    return state


def selection_kind(context: ModeContext) -> str:
    return str(visual_state(context).get("kind", "char"))


def is_exclusive(context: ModeContext) -> bool:
    return bool(visual_state(context).get("exclusive", False))


def anchor_of(context: ModeContext) -> Cursor:
    return cast(Cursor, visual_state(context)["anchor"])


def apply_selection(context: ModeContext, head: Cursor) -> ModeResult:
    buffer = context.buffer
    head = buffer.clamp(head)
    buffer.state.set_cursor(*head)
    anchor = anchor_of(context)
    buffer.state.set_selection(anchor, head)
    context.bus.emit("visual.selection", {"anchor": anchor, "cursor": head})
    return ModeResult(consumed=True, status="visual_select")


def to_exclusive(anchor: Cursor, head: Cursor) -> Tuple[Cursor, Cursor]:
    """Inclusive (Visual) selection ends to exclusive (Select) ones."""

    if head >= anchor:
        return anchor, (head[0], head[1] + 1)
    return (anchor[0], anchor[1] + 1), head


def to_inclusive(buffer: Buffer, anchor: Cursor, head: Cursor) -> Tuple[Cursor, Cursor]:
    if head > anchor and head[1] > 0:
        return anchor, (head[0], head[1] - 1)
    if head < anchor and anchor[1] > 0:
        return (anchor[0], anchor[1] - 1), head
    return anchor, buffer.clamp(head)


def current_span(context: ModeContext) -> OperatorSpan:
    buffer = context.buffer
    anchor, head = anchor_of(context), buffer.state.cursor
    kind = selection_kind(context)
    if is_exclusive(context) and kind != "line":
        start, end = sorted((anchor, head))
        if kind == "block":
            left, right = sorted((anchor[1], head[1]))
            return OperatorSpan(
                (start[0], left), (end[0], max(right, left + 1)), block=True
            )
        return OperatorSpan(start, end)
    return selection_span(buffer, anchor, head, kind)


def record_visual_marks(context: ModeContext) -> None:
    """Remember the selection in the ``<`` and ``>`` marks."""

    buffer = context.buffer
    if buffer.state.selection is None:
        return
    span = current_span(context)
    start = span.start
    end = (span.end[0], max(span.end[1] - 1, 0))
    if span.linewise:
        end = (span.last_row, max(len(buffer.get_line(span.last_row)) - 1, 0))
    context.marks.set_system_mark(buffer, "<", start)
    context.marks.set_system_mark(buffer, ">", end)


def finish_selection(context: ModeContext) -> None:
    record_visual_marks(context)
    context.buffer.state.clear_selection()


def _register(context: ModeContext) -> str:
    return current_request(context).register or '"'


def _operate(
    context: ModeContext,
    operator_id: str,
    *,
    linewise: bool = False,
    register: Optional[str] = None,
) -> list[Cursor]:
    span = current_span(context)
    if linewise and not span.linewise:
        buffer = context.buffer
        span = OperatorSpan(
            (span.first_row, 0),
            (span.last_row, len(buffer.get_line(span.last_row))),
            linewise=True,
        )
    finish_selection(context)
    return run_operator(
        context,
        operator_id,
        span,
        register=register or _register(context),
        origin=span.start,
    )


def _operate_for_insert(
    context: ModeContext,
    label: str,
    operator_id: str,
    *,
    linewise: bool = False,
    register: Optional[str] = None,
) -> list[Cursor]:
    """``_operate`` inside the undo group the following Insert session closes."""

    open_insert_scope(context, label)
    try:
        return _operate(context, operator_id, linewise=linewise, register=register)
    except CaretFailure:
        close_insert_scope(context)
        raise


def _place(context: ModeContext, carets: list[Cursor]) -> None:
    buffer = context.buffer
    buffer.state.set_carets([buffer.clamp(caret) for caret in carets])


def _reports_failure(action: Callable[..., ModeResult]) -> Callable[..., ModeResult]:
    """Turn a caret failure inside a selection action into an error result."""

    @wraps(action)
    def wrapper(context: ModeContext, *args: object) -> ModeResult:
        try:
            return action(context, *args)
        except CaretFailure as exc:
            return ModeResult(
                consumed=True, switch_to="normal", status="error", message=str(exc)
            )

    return wrapper


# -- selection shape ------------------------------------------------------------


def swap_anchor(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    state = visual_state(context)
    cursor = context.buffer.state.cursor
    anchor = cast(Cursor, state.get("anchor", cursor))
    state["anchor"] = cursor
    context.buffer.state.set_cursor(*anchor)
    context.buffer.state.set_selection(cursor, anchor)
    context.bus.emit(
        "visual.selection",
        {"anchor": state["anchor"], "cursor": anchor, "swap": True},
    )
    return ModeResult(consumed=True, status="visual_swap")


def swap_block_corner(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    """``O`` in block mode: move to the other corner on the same row."""

    if selection_kind(context) != "block":
        return swap_anchor(context, match)
    state = visual_state(context)
    anchor = anchor_of(context)
    head = context.buffer.state.cursor
    state["anchor"] = (anchor[0], head[1])
    return apply_selection(context, (head[0], anchor[1]))


def _switch_kind(context: ModeContext, kind: str) -> ModeResult:
    if selection_kind(context) == kind:
        return ModeResult(consumed=True, switch_to="normal", message="exit_visual")
    target = VISUAL_MODES[kind]
    return ModeResult(consumed=True, switch_to=target, message=f"enter_{target}")


def toggle_visual_char(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return _switch_kind(context, "char")


def toggle_visual_line(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return _switch_kind(context, "line")


def toggle_visual_block(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return _switch_kind(context, "block")


def visual_to_select(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    target = SELECT_MODES[selection_kind(context)]
    return ModeResult(consumed=True, switch_to=target, message=f"enter_{target}")


def select_to_visual(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    target = VISUAL_MODES[selection_kind(context)]
    return ModeResult(consumed=True, switch_to=target, message=f"enter_{target}")


def open_command_line(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    finish_selection(context)
    mode_state(context, "command_state")["prefill"] = "'<,'>"
    return ModeResult(consumed=True, switch_to="command", message="enter_command")


# -- operators over the selection --------------------------------------------------


@_reports_failure
def yank_selection(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    linewise = match.binding.sequence.tokens == ("Y",)
    carets = _operate(context, "operator.yank", linewise=linewise)
    _place(context, carets)
    register = _register(context)
    context.bus.emit("visual.yank", {"register": register})
    return ModeResult(
        consumed=True, switch_to="normal", status="visual_yank", message=register
    )


@_reports_failure
def delete_selection(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    linewise = match.binding.sequence.tokens in (("D",), ("X",))
    register = _register(context)
    carets = _operate(context, "operator.delete", linewise=linewise)
    _place(context, carets)
    context.bus.emit("visual.delete", {"register": register})
    return ModeResult(
        consumed=True, switch_to="normal", status="visual_delete", message=register
    )


@_reports_failure
def change_selection(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    linewise = match.binding.sequence.tokens in (("C",), ("S",), ("R",))
    carets = _operate_for_insert(
        context, "visual_change", "operator.change", linewise=linewise
    )
    _place(context, carets)
    return ModeResult(consumed=True, switch_to="insert", status="visual_change")


@_reports_failure
def _simple_operator(context: ModeContext, operator_id: str) -> ModeResult:
    carets = _operate(context, operator_id)
    _place(context, carets)
    return ModeResult(consumed=True, switch_to="normal", message=operator_id)


def shift_right(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return _simple_operator(context, "operator.shift_right")


def shift_left(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return _simple_operator(context, "operator.shift_left")


def toggle_case(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return _simple_operator(context, "operator.toggle_case")


def lower_case(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return _simple_operator(context, "operator.lower_case")


def upper_case(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    return _simple_operator(context, "operator.upper_case")


def join_selection(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    span = current_span(context)
    finish_selection(context)
    try:
        caret = join_lines(
            context, span.first_row, max(2, span.last_row - span.first_row + 1)
        )
    except CaretFailure as exc:
        return ModeResult(
            consumed=True, switch_to="normal", status="error", message=str(exc)
        )
    _place(context, [caret])
    return ModeResult(consumed=True, switch_to="normal", message="join")


@_reports_failure
def put_over_selection(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    register = _register(context)
    value = context.registers.get(register)
    if not value.text:
        return ModeResult(
            consumed=True,
            status="error",
            message=f"E353: Nothing in register {register}",
        )
    span = current_span(context)
    carets = _operate(context, "operator.delete")
    buffer = context.buffer
    if span.linewise:
        row = min(span.first_row, buffer.last_row)
        if value.type != "line":
            value = RegisterValue(text=value.text + "\n", type="line")
        after = span.first_row > buffer.last_row
        caret = put_text(context, (row, 0), after=after, value=value)
    else:
        position = carets[0]
        line = buffer.get_line(position[0])
        after = bool(line) and position[1] >= len(line)
        caret = put_text(
            context,
            (position[0], min(position[1], max(len(line) - 1, 0))),
            after=after,
            value=value,
        )
    _place(context, [caret])
    return ModeResult(consumed=True, switch_to="normal", message="put")


def block_insert(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    """``I`` / ``A`` in block mode: insert on every row of the block."""

    append = match.binding.sequence.tokens == ("A",)
    span = current_span(context)
    finish_selection(context)
    buffer = context.buffer
    column = span.end[1] if append else span.start[1]
    if not span.block:
        if span.linewise and append:
            caret = (span.last_row, len(buffer.get_line(span.last_row)))
        elif span.linewise:
            caret = (span.first_row, first_nonblank(buffer.get_line(span.first_row)))
        else:
            caret = span.end if append else span.start
        _place(context, [caret])
        return ModeResult(consumed=True, switch_to="insert", message="enter_insert")
    open_insert_scope(context, "block_insert")
    carets = []
    for row in range(span.first_row, span.last_row + 1):
        line = buffer.get_line(row)
        if len(line) < column:
            if not append:
                continue
            buffer.insert_text(" " * (column - len(line)), cursor=(row, len(line)))
        carets.append((row, column))
    _place(context, carets or [span.start])
    return ModeResult(consumed=True, switch_to="insert", message="enter_insert")


# -- select mode -----------------------------------------------------------------------


def _select_edit(context: ModeContext, label: str, operator_id: str) -> list[Cursor]:
    """Run ``operator_id`` over the selection into the black hole register.

    A failure leaves the selection as it was so the mode stays in Select.
    """

    selection = context.buffer.state.selection
    try:
        return _operate_for_insert(context, label, operator_id, register="_")
    except CaretFailure:
        context.buffer.state.selection = selection
        raise


def _select_failure(exc: CaretFailure) -> ModeResult:
    return ModeResult(consumed=True, status="error", message=str(exc))


def delete_select(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    """Backspace in Select mode: drop the selection and continue in Insert."""

    del match
    try:
        carets = _select_edit(context, "select_delete", "operator.delete")
    except CaretFailure as exc:
        return _select_failure(exc)
    _place(context, carets)
    return ModeResult(consumed=True, switch_to="insert", status="select_delete")


def replace_selection(context: ModeContext, key: KeyInput) -> ModeResult:
    """Typed text in Select mode replaces the selection; ``key`` is inserted."""

    try:
        carets = _select_edit(context, "select_replace", "operator.change")
    except CaretFailure as exc:
        return _select_failure(exc)
    _place(context, carets)
    return ModeResult(
        consumed=True, switch_to="insert", status="select_replace", replay=(key,)
    )


# -- keymodel ----------------------------------------------------------------------


def stop_selection(
    context: ModeContext, match: ResolutionMatch, request: ActionRequest
) -> ModeResult:
    """Leave Visual/Select for Normal, moving every caret by the plain motion."""

    finish_selection(context)
    buffer = context.buffer
    motion = match.action.handler

    def step(caret: Cursor) -> Cursor:
        target = motion(
            MotionRequest(
                buffer=buffer,
                cursor=caret,
                count=request.count,
                explicit_count=request.explicit_count,
                marks=context.marks,
            )
        )
        row, col = target.cursor
        return (row, min(col, max(len(buffer.get_line(row)) - 1, 0)))

    batch = for_each_caret(buffer, step, label="stop_selection")
    return batch_result(batch, switch_to="normal", message="stop_selection")


__all__ = [
    "SELECTION_MODES",
    "SELECT_MODES",
    "VISUAL_MODES",
    "anchor_of",
    "apply_selection",
    "block_insert",
    "change_selection",
    "current_span",
    "delete_select",
    "delete_selection",
    "finish_selection",
    "is_exclusive",
    "join_selection",
    "lower_case",
    "open_command_line",
    "put_over_selection",
    "record_visual_marks",
    "replace_selection",
    "select_to_visual",
    "selection_kind",
    "shift_left",
    "shift_right",
    "stop_selection",
    "swap_anchor",
    "swap_block_corner",
    "to_exclusive",
    "to_inclusive",
    "toggle_case",
    "toggle_visual_block",
    "toggle_visual_char",
    "toggle_visual_line",
    "upper_case",
    "visual_state",
    "visual_to_select",
    "yank_selection",
]
