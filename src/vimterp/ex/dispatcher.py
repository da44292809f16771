"""Validate parsed Ex commands and run their handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from vimterp.buffer import READ_ONLY_MESSAGE
from vimterp.modes.base_mode import ModeContext, mode_state
from vimterp.runtime import telemetry

from .arguments import normalize_argument
from .errors import AccessError, ExError, ExParseError, ExValidationError
from .parser import ParsedCommand, parse_command
from .ranges import LineRange, RangeResolver
from .registry import (
    Access,
    ArgumentFlag,
    CommandDescriptor,
    CommandRegistry,
    DefaultRange,
    RangeFlag,
)


@dataclass(frozen=True, slots=True)
class Message:
    """User-visible text for the host's message line."""

    id: Optional[str]
    text: str
    level: str = "info"


@dataclass(frozen=True, slots=True)
class ExRequest:
    descriptor: CommandDescriptor
    parsed: ParsedCommand
    line_range: LineRange
    argument: str
    bang: bool

    @property
    def range_given(self) -> bool:
        return self.parsed.range is not None


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    ok: bool
    message: Optional[Message] = None
    switch_to: Optional[str] = None
    output: Tuple[str, ...] = ()

    @classmethod
    def success(
        cls,
        text: Optional[str] = None,
        *,
        output: Tuple[str, ...] = (),
        switch_to: Optional[str] = None,
    ) -> "ExecutionResult":
        message = Message(id=None, text=text) if text else None
        return cls(ok=True, message=message, switch_to=switch_to, output=output)

    @classmethod
    def failure(cls, code: str, text: str) -> "ExecutionResult":
        return cls(ok=False, message=Message(id=code, text=text, level="error"))


ExHandler = Callable[[ExRequest, ModeContext], ExecutionResult]


def range_resolver(context: ModeContext) -> RangeResolver:
    return RangeResolver(
        context.buffer,
        context.marks,
        context.options,
        mode_state(context, "search_state"),
    )


class ExDispatcher:
    """Turns command-line text into a handler call.

    ``execute`` never raises ``ExError``: every failure comes back as an
    error ``ExecutionResult`` and is emitted on the ``message`` bus event.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        *,
        range_command: Optional[CommandDescriptor] = None,
    ) -> None:
        self.registry = registry
        self.range_command = range_command
        self.logger = telemetry.get_logger("vimterp.ex")

    def execute(self, line: str, context: ModeContext) -> ExecutionResult:
        with telemetry.span(
            "ex::execute", component="ex", metadata={"line": line}
        ) as handle:
            try:
                request = self.prepare(parse_command(line), context)
                if request is None:
                    return ExecutionResult.success()
                handle.add_metadata("command", request.descriptor.name)
                result = request.descriptor.handler(request, context)
            except ExError as exc:
                handle.add_metadata("error", exc.code)
                result = ExecutionResult.failure(exc.code, exc.message)

        if result.message is not None:
            context.bus.emit("message", result.message)
        if result.output:
            context.bus.emit("command.output", list(result.output))
        if not result.ok:
            self.logger.info(
                "ex command failed: %s", result.message.text if result.message else line
            )
            context.bus.emit("command.error", {"line": line, "message": result.message})
        return result

    def lookup(self, parsed: ParsedCommand) -> Tuple[CommandDescriptor, str]:
        """Find the descriptor for ``parsed`` and the argument it receives."""

        if not parsed.name:
            if parsed.range is None or self.range_command is None:
                raise ExParseError(
                    "E492", f"E492: Not an editor command: {parsed.body}"
                )
            return self.range_command, parsed.argument
        try:
            return self.registry.lookup(parsed.name), parsed.argument
        except ExValidationError as exc:
            if exc.code != "E492":
                raise
            # ":ka" is ":k a"
            if len(parsed.name) > 1 and parsed.name[0] == "k" and "k" in self.registry:
                rest = parsed.name[1:]
                argument = f"{rest} {parsed.argument}" if parsed.argument else rest
                return self.registry.lookup("k"), argument
            raise

    def prepare(
        self, parsed: ParsedCommand, context: ModeContext
    ) -> Optional[ExRequest]:
        """Validate ``parsed`` against its descriptor.

        ``None`` means there is nothing to run: a blank line or a ``"`` comment.
        """

        if parsed.empty:
            return None
        descriptor, argument = self.lookup(parsed)

        bang = parsed.bang
        if bang:
            if descriptor.bang_as_argument:
                argument = "!" + argument
                bang = False
            elif not descriptor.bang:
                raise ExValidationError("E477", "E477: No ! allowed")

        if parsed.range is not None and descriptor.range is RangeFlag.FORBIDDEN:
            raise ExValidationError("E481", "E481: No range allowed")
        if parsed.range is None and descriptor.range is RangeFlag.REQUIRED:
            raise ExValidationError("E14", "E14: Invalid address")

        argument = normalize_argument(
            argument, strip_comments=descriptor.strip_comments
        )
        if descriptor.argument is ArgumentFlag.REQUIRED and not argument:
            raise ExValidationError("E471", "E471: Argument required")
        if descriptor.argument is ArgumentFlag.FORBIDDEN and argument:
            raise ExValidationError("E488", f"E488: Trailing characters: {argument}")

        if descriptor.access is Access.WRITE and not context.buffer.is_writable():
            raise AccessError("E21", READ_ONLY_MESSAGE)

        line_range = self._line_range(parsed, descriptor, context)
        return ExRequest(
            descriptor=descriptor,
            parsed=parsed,
            line_range=line_range,
            argument=argument,
            bang=bang,
        )

    def _line_range(
        self, parsed: ParsedCommand, descriptor: CommandDescriptor, context: ModeContext
    ) -> LineRange:
        resolver = range_resolver(context)
        if parsed.range is not None:
            line_range = resolver.resolve(
                parsed.range, allow_reversed=descriptor.allow_reversed
            )
        elif descriptor.default_range is DefaultRange.WHOLE_BUFFER:
            line_range = LineRange(1, context.buffer.line_count)
        else:
            current = resolver.current_line
            line_range = LineRange(current, current)
        if not descriptor.zero_line and line_range.start == 0:
            line_range = LineRange(1, max(1, line_range.end))
        return line_range


__all__ = [
    "ExDispatcher",
    "ExHandler",
    "ExRequest",
    "ExecutionResult",
    "Message",
    "range_resolver",
]
