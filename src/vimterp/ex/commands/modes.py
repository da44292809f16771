"""Commands that change the editing mode."""

from __future__ import annotations

from vimterp.modes.base_mode import ModeContext

from ..dispatcher import ExecutionResult, ExRequest
from ..registry import CommandDescriptor, RangeFlag


def start_insert(request: ExRequest, context: ModeContext) -> ExecutionResult:
    if request.bang:
        buffer = context.buffer
        row = buffer.state.cursor[0]
        buffer.state.set_cursor(row, len(buffer.get_line(row)))
    return ExecutionResult.success(switch_to="insert")


def stop_insert(request: ExRequest, context: ModeContext) -> ExecutionResult:
    del request, context
    return ExecutionResult.success(switch_to="normal")


COMMANDS = (
    CommandDescriptor(
        name="startinsert",
        abbreviation="star",
        handler=start_insert,
        range=RangeFlag.FORBIDDEN,
        bang=True,
        description="Start Insert mode (! appends at the line end)",
    ),
    CommandDescriptor(
        name="stopinsert",
        abbreviation="stopi",
        handler=stop_insert,
        range=RangeFlag.FORBIDDEN,
        description="Leave Insert mode",
    ),
)


__all__ = ["COMMANDS", "start_insert", "stop_insert"]
