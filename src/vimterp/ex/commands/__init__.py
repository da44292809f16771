"""Built-in Ex command table."""

from __future__ import annotations

from ..registry import CommandRegistry
from . import edit, host, marks, modes, options, registers
from .edit import GOTO_LINE

BUILTIN_COMMANDS = (
    marks.COMMANDS
    + edit.COMMANDS
    + registers.COMMANDS
    + options.COMMANDS
    + modes.COMMANDS
    + host.COMMANDS
)


def register_builtin_commands(registry: CommandRegistry) -> CommandRegistry:
    for descriptor in BUILTIN_COMMANDS:
        registry.register(descriptor)
    return registry


__all__ = ["BUILTIN_COMMANDS", "GOTO_LINE", "register_builtin_commands"]
