"""Line-editing Ex commands and the bare-range jump."""

from __future__ import annotations

from typing import Optional, Tuple

from vimterp.actions.carets import CaretFailure
from vimterp.actions.motions import first_nonblank
from vimterp.actions.operators import join_lines, line_span, put_text, run_operator
from vimterp.modes.base_mode import ModeContext
from vimterp.store import RegisterValue
from vimterp.store.registers import is_valid_register

from ..dispatcher import ExecutionResult, ExRequest
from ..errors import ArgumentGrammarError, ExError, ExValidationError
from ..ranges import LineRange
from ..registry import Access, ArgumentFlag, CommandDescriptor, RangeFlag

# Vim only reports line counts above this ('report' option default)
REPORT_THRESHOLD = 2


def caret_error(exc: CaretFailure) -> ExError:
    text = str(exc)
    code, _, _ = text.partition(":")
    if not (code.startswith("E") and code[1:].isdigit()):
        code = "E0"
    return ExValidationError(code, text)


def parse_register_count(
    argument: str, *, for_write: bool = True
) -> Tuple[str, Optional[int]]:
    """Split ``[x] [count]`` into a register name and an optional count."""

    text = argument.strip()
    register = '"'
    if text and not text[0].isdigit():
        register = text[0]
        if not is_valid_register(register, for_write=for_write):
            raise ArgumentGrammarError("E488", f"E488: Trailing characters: {text}")
        text = text[1:].lstrip()
    count = parse_count(text)
    return register, count


def parse_count(text: str) -> Optional[int]:
    if not text:
        return None
    if not text.isdigit():
        raise ArgumentGrammarError("E488", f"E488: Trailing characters: {text}")
    count = int(text)
    if count == 0:
        raise ArgumentGrammarError("E939", "E939: Positive count required")
    return count


def with_count(
    line_range: LineRange, count: Optional[int], line_count: int
) -> LineRange:
    """``:3d 2`` counts from the last line of the range."""

    if count is None:
        return line_range
    return LineRange(line_range.end, min(line_range.end + count - 1, line_count))


def _lines_report(count: int, verb: str) -> Optional[str]:
    if count <= REPORT_THRESHOLD:
        return None
    return f"{count} {verb}"


def delete_lines(request: ExRequest, context: ModeContext) -> ExecutionResult:
    buffer = context.buffer
    register, count = parse_register_count(request.argument)
    lines = with_count(request.line_range, count, buffer.line_count)
    span = line_span(buffer, lines.first_row, lines.count)
    try:
        carets = run_operator(context, "operator.delete", span, register=register)
    except CaretFailure as exc:
        raise caret_error(exc) from exc
    row = carets[0][0]
    buffer.state.set_cursor(row, first_nonblank(buffer.get_line(row)))
    return ExecutionResult.success(_lines_report(lines.count, "fewer lines"))


def yank_lines(request: ExRequest, context: ModeContext) -> ExecutionResult:
    buffer = context.buffer
    register, count = parse_register_count(request.argument)
    lines = with_count(request.line_range, count, buffer.line_count)
    cursor = buffer.state.cursor
    run_operator(
        context,
        "operator.yank",
        line_span(buffer, lines.first_row, lines.count),
        register=register,
    )
    buffer.state.set_cursor(*cursor)
    return ExecutionResult.success(_lines_report(lines.count, "lines yanked"))


def put_lines(request: ExRequest, context: ModeContext) -> ExecutionResult:
    """``:[line]put[!] [x]`` always pastes linewise."""

    buffer = context.buffer
    register = request.argument.strip() or '"'
    if len(register) > 1:
        raise ArgumentGrammarError("E488", f"E488: Trailing characters: {register[1:]}")
    if not is_valid_register(register):
        raise ArgumentGrammarError("E488", f"E488: Trailing characters: {register}")
    stored = context.registers.get(register)
    if not stored.text:
        raise ExValidationError("E353", f"E353: Nothing in register {register}")
    text = stored.text if stored.text.endswith("\n") else stored.text + "\n"
    value = RegisterValue(text=text, type="line")

    line = request.line_range.end
    after = not request.bang
    if line == 0:
        line, after = 1, False
    try:
        cursor = put_text(
            context, (line - 1, 0), register=register, after=after, value=value
        )
    except CaretFailure as exc:
        raise caret_error(exc) from exc
    buffer.state.set_cursor(*cursor)
    return ExecutionResult.success()


def join(request: ExRequest, context: ModeContext) -> ExecutionResult:
    buffer = context.buffer
    count = parse_count(request.argument.strip())
    lines = with_count(request.line_range, count, buffer.line_count)
    count = max(lines.count, 2)
    if lines.first_row >= buffer.last_row:
        return ExecutionResult.success()
    try:
        cursor = join_lines(context, lines.first_row, count)
    except CaretFailure as exc:
        raise caret_error(exc) from exc
    buffer.state.set_cursor(*cursor)
    return ExecutionResult.success()


def _shift(
    request: ExRequest, context: ModeContext, operator_id: str
) -> ExecutionResult:
    buffer = context.buffer
    symbol = request.descriptor.name
    text = request.argument.strip()
    # ":>>>" shifts three times
    repeat = 1 + len(text) - len(text.lstrip(symbol))
    text = text.lstrip(symbol).strip()
    lines = with_count(request.line_range, parse_count(text), buffer.line_count)
    span = line_span(buffer, lines.first_row, lines.count)
    try:
        for _ in range(repeat):
            run_operator(context, operator_id, span)
    except CaretFailure as exc:
        raise caret_error(exc) from exc
    row = lines.last_row
    buffer.state.set_cursor(row, first_nonblank(buffer.get_line(row)))
    return ExecutionResult.success()


def shift_right(request: ExRequest, context: ModeContext) -> ExecutionResult:
    return _shift(request, context, "operator.shift_right")


def shift_left(request: ExRequest, context: ModeContext) -> ExecutionResult:
    return _shift(request, context, "operator.shift_left")


def undo(request: ExRequest, context: ModeContext) -> ExecutionResult:
    del request
    if context.buffer.undo_last() is None:
        return ExecutionResult.success("Already at oldest change")
    return ExecutionResult.success()


def redo(request: ExRequest, context: ModeContext) -> ExecutionResult:
    del request
    if context.buffer.redo_last() is None:
        return ExecutionResult.success("Already at newest change")
    return ExecutionResult.success()


def goto_line(request: ExRequest, context: ModeContext) -> ExecutionResult:
    """``:N`` and ``:'a`` move to the last line of the range."""

    buffer = context.buffer
    context.marks.set_system_mark(buffer, "'", buffer.state.cursor)
    row = request.line_range.last_row
    buffer.state.clear_secondary()
    buffer.state.set_cursor(row, first_nonblank(buffer.get_line(row)))
    return ExecutionResult.success()


GOTO_LINE = CommandDescriptor(
    name="goto_line",
    abbreviation="goto_line",
    handler=goto_line,
    range=RangeFlag.REQUIRED,
    description="Jump to the addressed line",
)


COMMANDS = (
    CommandDescriptor(
        name="delete",
        abbreviation="d",
        handler=delete_lines,
        allow_reversed=True,
        argument=ArgumentFlag.OPTIONAL,
        access=Access.WRITE,
        description="Delete lines into a register",
    ),
    CommandDescriptor(
        name="yank",
        abbreviation="y",
        handler=yank_lines,
        allow_reversed=True,
        argument=ArgumentFlag.OPTIONAL,
        description="Yank lines into a register",
    ),
    CommandDescriptor(
        name="put",
        abbreviation="pu",
        handler=put_lines,
        argument=ArgumentFlag.OPTIONAL,
        bang=True,
        access=Access.WRITE,
        zero_line=True,
        description="Put register contents linewise",
    ),
    CommandDescriptor(
        name="join",
        abbreviation="j",
        handler=join,
        argument=ArgumentFlag.OPTIONAL,
        access=Access.WRITE,
        description="Join lines",
    ),
    CommandDescriptor(
        name=">",
        abbreviation=">",
        handler=shift_right,
        argument=ArgumentFlag.OPTIONAL,
        access=Access.WRITE,
        description="Shift lines right",
    ),
    CommandDescriptor(
        name="<",
        abbreviation="<",
        handler=shift_left,
        argument=ArgumentFlag.OPTIONAL,
        access=Access.WRITE,
        description="Shift lines left",
    ),
    CommandDescriptor(
        name="undo",
        abbreviation="u",
        handler=undo,
        range=RangeFlag.FORBIDDEN,
        description="Undo the last change",
    ),
    CommandDescriptor(
        name="redo",
        abbreviation="red",
        handler=redo,
        range=RangeFlag.FORBIDDEN,
        description="Redo the last undone change",
    ),
)


__all__ = [
    "COMMANDS",
    "GOTO_LINE",
    "caret_error",
    "delete_lines",
    "goto_line",
    "join",
    "parse_count",
    "parse_register_count",
    "put_lines",
    "redo",
    "shift_left",
    "shift_right",
    "undo",
    "with_count",
    "yank_lines",
]
