"""Command-line actions: editing the typed line and submitting it to Ex."""

from __future__ import annotations

from typing import List, MutableMapping, Optional, cast

from vimterp.ex import ExDispatcher, default_dispatcher
from vimterp.keymaps import ResolutionMatch
from vimterp.modes.base_mode import ModeContext, ModeResult, mode_state


def command_state(context: ModeContext) -> MutableMapping[str, object]:
    state = mode_state(context, "command_state")
    state.setdefault("text", "")
    state.setdefault("history", [])
    state.setdefault("history_index", None)
    return state


def command_history(context: ModeContext) -> List[str]:
    return cast(List[str], command_state(context)["history"])


def command_dispatcher(context: ModeContext) -> ExDispatcher:
    dispatcher = context.extras.get("ex_dispatcher")
    if not isinstance(dispatcher, ExDispatcher):
        dispatcher = default_dispatcher()
        context.extras["ex_dispatcher"] = dispatcher
    return dispatcher


def submit_command_line(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    state = command_state(context)
    text = str(state.get("text", "")).strip()
    context.bus.emit("command.submit", text)
    state["text"] = ""
    state["history_index"] = None
    if not text:
        return ModeResult(consumed=True, switch_to="normal", status="command_empty")
    command_history(context).append(text)

    result = command_dispatcher(context).execute(text, context)
    message = result.message.text if result.message else text
    if not result.ok:
        return ModeResult(
            consumed=True, switch_to="normal", status="error", message=message
        )
    target = result.switch_to or "normal"
    return ModeResult(
        consumed=True,
        switch_to=target,
        status="applied" if target == "normal" else "ok",
        message=message,
    )


def cancel_command_line(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    command_state(context)["text"] = ""
    return ModeResult(
        consumed=True, switch_to="normal", status="cancel", message="command_cancel"
    )


def delete_before(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    """Backspace; on an empty line it abandons the command line like Vim."""

    state = command_state(context)
    text = str(state["text"])
    if not text:
        return cancel_command_line(context, match)
    state["text"] = text[:-1]
    return ModeResult(consumed=True, status="editing")


def clear_line(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    command_state(context)["text"] = ""
    return ModeResult(consumed=True, status="editing")


def _recall(context: ModeContext, index: Optional[int]) -> ModeResult:
    state = command_state(context)
    history = command_history(context)
    state["history_index"] = index
    state["text"] = "" if index is None else history[index]
    return ModeResult(consumed=True, status="editing", message="history")


def history_previous(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    history = command_history(context)
    if not history:
        return ModeResult(consumed=True, status="editing")
    index = cast(Optional[int], command_state(context)["history_index"])
    return _recall(context, len(history) - 1 if index is None else max(0, index - 1))


def history_next(context: ModeContext, match: ResolutionMatch) -> ModeResult:
    del match
    index = cast(Optional[int], command_state(context)["history_index"])
    if index is None:
        return ModeResult(consumed=True, status="editing")
    if index + 1 >= len(command_history(context)):
        return _recall(context, None)
    return _recall(context, index + 1)


__all__ = [
    "cancel_command_line",
    "clear_line",
    "command_dispatcher",
    "command_history",
    "command_state",
    "delete_before",
    "history_next",
    "history_previous",
    "submit_command_line",
]
