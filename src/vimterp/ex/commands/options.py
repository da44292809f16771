"""``:set`` over ``EditorOptions``."""

from __future__ import annotations

from vimterp.modes.base_mode import ModeContext
from vimterp.runtime.options import OPTION_SPECS, OptionError

from ..dispatcher import ExecutionResult, ExRequest
from ..errors import ExValidationError
from ..registry import ArgumentFlag, CommandDescriptor, RangeFlag


def set_options(request: ExRequest, context: ModeContext) -> ExecutionResult:
    options = context.options
    items = request.argument.split()
    if not items:
        shown = tuple(options.describe(spec.name) for spec in OPTION_SPECS)
        return ExecutionResult.success(output=("--- Options ---",) + shown)

    replies = []
    for item in items:
        try:
            reply = options.apply(item)
        except OptionError as exc:
            raise ExValidationError(exc.code, str(exc)) from exc
        if reply:
            replies.append(reply)
    context.bus.emit("options.changed", options.as_dict())
    return ExecutionResult.success("  ".join(replies) if replies else None)


COMMANDS = (
    CommandDescriptor(
        name="set",
        abbreviation="se",
        handler=set_options,
        range=RangeFlag.FORBIDDEN,
        argument=ArgumentFlag.OPTIONAL,
        description="Show or change editor options",
    ),
)


__all__ = ["COMMANDS", "set_options"]
