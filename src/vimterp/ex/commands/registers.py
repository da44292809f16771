"""``:registers`` / ``:display``."""

from __future__ import annotations

from vimterp.modes.base_mode import ModeContext

from ..dispatcher import ExecutionResult, ExRequest
from ..registry import ArgumentFlag, CommandDescriptor, RangeFlag

_TYPE_TAGS = {"character": "c", "line": "l", "block": "b"}
PREVIEW_WIDTH = 60


def _preview(text: str) -> str:
    shown = text.replace("\n", "^J").replace("\t", "^I")
    return shown[:PREVIEW_WIDTH]


def list_registers(request: ExRequest, context: ModeContext) -> ExecutionResult:
    wanted = {name.lower() for name in request.argument if name != " "}
    lines = ["Type Name Content"]
    for name, value in context.registers.items():
        if wanted and name not in wanted:
            continue
        tag = _TYPE_TAGS.get(value.type, "c")
        lines.append(f"  {tag}  \"{name}   {_preview(value.text)}")
    return ExecutionResult.success(output=tuple(lines))


COMMANDS = tuple(
    CommandDescriptor(
        name=name,
        abbreviation=abbreviation,
        handler=list_registers,
        range=RangeFlag.FORBIDDEN,
        argument=ArgumentFlag.OPTIONAL,
        description="List register contents",
    )
    for name, abbreviation in (("registers", "reg"), ("display", "di"))
)


__all__ = ["COMMANDS", "list_registers"]
