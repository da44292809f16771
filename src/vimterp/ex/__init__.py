"""Ex command line: parsing, ranges, the command table and dispatch."""

from __future__ import annotations

from functools import lru_cache

from .arguments import expand_mark_ranges, normalize_argument, strip_comment
from .dispatcher import ExDispatcher, ExecutionResult, ExHandler, ExRequest, Message
from .errors import (
    AccessError,
    ArgumentGrammarError,
    ExError,
    ExParseError,
    ExValidationError,
    LookupMiss,
)
from .parser import ParsedCommand, parse_command
from .ranges import Address, LineRange, RangeResolver, RangeSpec, parse_range
from .registry import (
    Access,
    ArgumentFlag,
    CommandDescriptor,
    CommandRegistry,
    DefaultRange,
    RangeFlag,
)
from .commands import GOTO_LINE, register_builtin_commands


@lru_cache(maxsize=1)
def default_registry() -> CommandRegistry:
    """The built-in commands, registered once and frozen."""

    registry = register_builtin_commands(CommandRegistry())
    registry.freeze()
    return registry


def default_dispatcher() -> ExDispatcher:
    return ExDispatcher(default_registry(), range_command=GOTO_LINE)


__all__ = [
    "Access",
    "AccessError",
    "Address",
    "ArgumentFlag",
    "ArgumentGrammarError",
    "CommandDescriptor",
    "CommandRegistry",
    "DefaultRange",
    "ExDispatcher",
    "ExError",
    "ExHandler",
    "ExParseError",
    "ExRequest",
    "ExValidationError",
    "ExecutionResult",
    "GOTO_LINE",
    "LineRange",
    "LookupMiss",
    "Message",
    "ParsedCommand",
    "RangeFlag",
    "RangeResolver",
    "RangeSpec",
    "default_dispatcher",
    "default_registry",
    "expand_mark_ranges",
    "normalize_argument",
    "parse_command",
    "parse_range",
    "register_builtin_commands",
    "strip_comment",
]
