"""Commands the host editor carries out: files, windows and echo.

The interpreter owns no files. These handlers only announce the request on
the mode bus (``command.write``, ``command.quit``, ``command.edit``,
``command.echo``) with the payload the host needs to act on it.
"""

from __future__ import annotations

from typing import List

from vimterp.modes.base_mode import ModeContext

from ..dispatcher import ExecutionResult, ExHandler, ExRequest
from ..registry import ArgumentFlag, CommandDescriptor, DefaultRange, RangeFlag


def _args(request: ExRequest) -> List[str]:
    return request.argument.split()


def _emit_write(context: ModeContext, request: ExRequest) -> None:
    payload = {
        "force": request.bang,
        "args": _args(request),
        "snapshot": context.buffer.snapshot(),
    }
    if request.range_given:
        payload["range"] = (request.line_range.start, request.line_range.end)
    context.bus.emit("command.write", payload)


def _emit_quit(context: ModeContext, request: ExRequest) -> None:
    context.bus.emit("command.quit", {"force": request.bang})


def write(request: ExRequest, context: ModeContext) -> ExecutionResult:
    _emit_write(context, request)
    return ExecutionResult.success()


def quit_view(request: ExRequest, context: ModeContext) -> ExecutionResult:
    _emit_quit(context, request)
    return ExecutionResult.success()


def write_quit(request: ExRequest, context: ModeContext) -> ExecutionResult:
    _emit_write(context, request)
    _emit_quit(context, request)
    return ExecutionResult.success()


def edit(request: ExRequest, context: ModeContext) -> ExecutionResult:
    payload = {
        "force": request.bang,
        "args": _args(request),
        "snapshot": context.buffer.snapshot(),
    }
    context.bus.emit("command.edit", payload)
    return ExecutionResult.success()


def echo(request: ExRequest, context: ModeContext) -> ExecutionResult:
    message = request.argument
    if len(message) >= 2 and message[0] == message[-1] and message[0] in "\"'":
        message = message[1:-1]
    context.bus.emit("command.echo", message)
    return ExecutionResult.success(message)


def _file_command(
    name: str, abbreviation: str, handler: ExHandler, description: str
) -> CommandDescriptor:
    return CommandDescriptor(
        name=name,
        abbreviation=abbreviation,
        handler=handler,
        default_range=DefaultRange.WHOLE_BUFFER,
        argument=ArgumentFlag.OPTIONAL,
        bang=True,
        description=description,
    )


COMMANDS = (
    _file_command("write", "w", write, "Ask the host to write the buffer"),
    _file_command("quit", "q", quit_view, "Ask the host to close the view"),
    _file_command("wq", "wq", write_quit, "Write, then quit"),
    _file_command("xit", "x", write_quit, "Write, then quit"),
    _file_command("exit", "exi", write_quit, "Write, then quit"),
    _file_command("edit", "e", edit, "Ask the host to (re)load a file"),
    CommandDescriptor(
        name="echo",
        abbreviation="ec",
        handler=echo,
        range=RangeFlag.FORBIDDEN,
        argument=ArgumentFlag.OPTIONAL,
        strip_comments=False,
        description="Show the argument on the message line",
    ),
)


__all__ = ["COMMANDS", "echo", "edit", "quit_view", "write", "write_quit"]
