"""Mark commands: ``:delmarks``, ``:marks`` and ``:mark``/``:k``."""

from __future__ import annotations

from typing import List

from vimterp.modes.base_mode import ModeContext
from vimterp.store import DEL_FILE_MARKS, DEL_MARKS, Mark, MarkError

from ..arguments import expand_mark_ranges
from ..dispatcher import ExecutionResult, ExRequest
from ..errors import ArgumentGrammarError
from ..registry import ArgumentFlag, CommandDescriptor, RangeFlag

DELETE_ALL_FILE_MARKS = "!"


def expand_delmarks_argument(argument: str) -> str:
    """Rewrite ``!`` and ``x-y`` runs into the literal list of marks to delete."""

    if argument == DELETE_ALL_FILE_MARKS:
        return DEL_FILE_MARKS
    return expand_mark_ranges(argument)


def check_deletable(marks: str) -> None:
    for index, char in enumerate(marks):
        if char == " " or char in DEL_MARKS:
            continue
        # a dangling "-" is reported together with the character before it
        start = max(index - 1, 0) if char == "-" else index
        raise ArgumentGrammarError("E475", f"E475: Invalid argument: {marks[start:]}")


def delete_marks(request: ExRequest, context: ModeContext) -> ExecutionResult:
    marks = expand_delmarks_argument(request.argument)
    check_deletable(marks)
    removed = [
        char
        for char in marks
        if char != " " and context.marks.remove_mark(context.buffer, char)
    ]
    context.bus.emit("marks.deleted", removed)
    return ExecutionResult.success()


def _describe(mark: Mark, context: ModeContext) -> str:
    buffer = context.buffer
    if mark.buffer_id == buffer.id:
        where = buffer.get_line(mark.line).strip()
    else:
        where = mark.buffer_name
    return f" {mark.name} {mark.line + 1:>6} {mark.col:>4} {where}"


def list_marks(request: ExRequest, context: ModeContext) -> ExecutionResult:
    wanted = set(request.argument.replace(" ", ""))
    found: List[Mark] = [
        mark
        for mark in context.marks.marks_for(context.buffer)
        if not wanted or mark.name in wanted
    ]
    if not found:
        if wanted:
            raise ArgumentGrammarError(
                "E283", f"E283: No marks matching \"{request.argument}\""
            )
        return ExecutionResult.success("No marks set")
    lines = ["mark line  col file/text"]
    lines.extend(_describe(mark, context) for mark in found)
    return ExecutionResult.success(output=tuple(lines))


def set_mark(request: ExRequest, context: ModeContext) -> ExecutionResult:
    name = request.argument
    if len(name) > 1:
        raise ArgumentGrammarError("E488", f"E488: Trailing characters: {name[1:]}")
    buffer = context.buffer
    position = (request.line_range.last_row, 0)
    try:
        if name in "'`":
            context.marks.set_system_mark(buffer, "'", position)
        else:
            context.marks.set_mark(buffer, name, position)
    except MarkError as exc:
        raise ArgumentGrammarError("E191", str(exc)) from exc
    return ExecutionResult.success()


COMMANDS = (
    CommandDescriptor(
        name="delmarks",
        abbreviation="delm",
        handler=delete_marks,
        range=RangeFlag.FORBIDDEN,
        argument=ArgumentFlag.REQUIRED,
        bang_as_argument=True,
        description="Delete the listed marks",
    ),
    CommandDescriptor(
        name="marks",
        abbreviation="marks",
        handler=list_marks,
        range=RangeFlag.FORBIDDEN,
        argument=ArgumentFlag.OPTIONAL,
        description="List marks",
    ),
    CommandDescriptor(
        name="mark",
        abbreviation="ma",
        handler=set_mark,
        argument=ArgumentFlag.REQUIRED,
        description="Set a mark at the last line of the range",
    ),
    CommandDescriptor(
        name="k",
        abbreviation="k",
        handler=set_mark,
        argument=ArgumentFlag.REQUIRED,
        description="Set a mark at the last line of the range",
    ),
)


__all__ = [
    "COMMANDS",
    "check_deletable",
    "delete_marks",
    "expand_delmarks_argument",
    "list_marks",
    "set_mark",
]
