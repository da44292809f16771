"""Ex command descriptors and the name lookup table."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional

from vimterp.keymaps.registry import RegistryFrozenError
from vimterp.runtime import telemetry

from .errors import ExValidationError

if TYPE_CHECKING:
    from .dispatcher import ExHandler


class RangeFlag(str, Enum):
    FORBIDDEN = "forbidden"
    OPTIONAL = "optional"
    REQUIRED = "required"


class ArgumentFlag(str, Enum):
    FORBIDDEN = "forbidden"
    OPTIONAL = "optional"
    REQUIRED = "required"


class Access(str, Enum):
    READ_ONLY = "read_only"
    WRITE = "write"


class DefaultRange(str, Enum):
    CURRENT_LINE = "current_line"
    WHOLE_BUFFER = "whole_buffer"


@dataclass(frozen=True, slots=True)
class CommandDescriptor:
    """Static metadata for one Ex command.

    ``abbreviation`` is the shortest prefix Vim documents for the command
    (``delm`` for ``delmarks``); anything between it and the full name
    resolves to this command.
    """

    name: str
    abbreviation: str
    handler: "ExHandler"
    range: RangeFlag = RangeFlag.OPTIONAL
    allow_reversed: bool = False
    default_range: DefaultRange = DefaultRange.CURRENT_LINE
    argument: ArgumentFlag = ArgumentFlag.FORBIDDEN
    bang: bool = False
    bang_as_argument: bool = False
    access: Access = Access.READ_ONLY
    strip_comments: bool = True
    zero_line: bool = False
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("CommandDescriptor.name must be non-empty")
        if not self.name.startswith(self.abbreviation):
            raise ValueError(
                f"abbreviation '{self.abbreviation}' is not a prefix of '{self.name}'"
            )

    def matches(self, typed: str) -> bool:
        return typed.startswith(self.abbreviation) and self.name.startswith(typed)


class CommandRegistry:
    """Table of Ex commands; filled at startup and frozen afterwards."""

    def __init__(self, *, logger_name: str | None = None) -> None:
        self._commands: Dict[str, CommandDescriptor] = {}
        self._frozen = False
        self.logger = telemetry.get_logger(logger_name or "vimterp.ex")

    def __iter__(self) -> Iterator[CommandDescriptor]:
        return iter(self._commands.values())

    def __len__(self) -> int:
        return len(self._commands)

    def __contains__(self, name: object) -> bool:
        return name in self._commands

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True
        self.logger.debug("ex registry frozen with %d commands", len(self._commands))

    def register(self, descriptor: CommandDescriptor) -> CommandDescriptor:
        if self._frozen:
            raise RegistryFrozenError(
                f"Ex command registry is frozen; cannot register '{descriptor.name}'"
            )
        if descriptor.name in self._commands:
            raise ValueError(f"Ex command '{descriptor.name}' already registered")
        self._commands[descriptor.name] = descriptor
        return descriptor

    def get(self, name: str) -> Optional[CommandDescriptor]:
        return self._commands.get(name)

    def lookup(self, typed: str) -> CommandDescriptor:
        """Resolve a typed command name.

        Exact names win, then declared abbreviations, then a unique prefix
        of a full name.
        """

        exact = self._commands.get(typed)
        if exact is not None:
            return exact

        abbreviated = [item for item in self._commands.values() if item.matches(typed)]
        if abbreviated:
            return max(abbreviated, key=lambda item: len(item.abbreviation))

        candidates: List[CommandDescriptor] = [
            item for item in self._commands.values() if item.name.startswith(typed)
        ]
        if len(candidates) == 1:
            return candidates[0]
        if candidates:
            names = ", ".join(sorted(item.name for item in candidates))
            raise ExValidationError(
                "E464", f"E464: Ambiguous use of command: {typed} ({names})"
            )
        raise ExValidationError("E492", f"E492: Not an editor command: {typed}")


__all__ = [
    "Access",
    "ArgumentFlag",
    "CommandDescriptor",
    "CommandRegistry",
    "DefaultRange",
    "RangeFlag",
]
