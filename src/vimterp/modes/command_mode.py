"""Command-line mode with inline editing and keymap integration."""

from __future__ import annotations

from typing import Optional, Tuple

from vimterp.actions.command import command_state

from .base_mode import EditorMode, KeyInput, ModeResult
from .keymap_helpers import KeymapMode, update_flag
from .notation import key_text


class CommandMode(KeymapMode):
    """Collects an Ex command line; Enter hands it to the dispatcher.

    The typed text lives in ``extras["command_state"]["text"]`` so hosts
    can render it and the command actions can edit it.
    """

    name = "command"
    editor_mode = EditorMode.CMD_LINE
    keymap_mode = "command"

    def on_enter(self, previous: Optional[str]) -> None:
        del previous
        self.reset()
        state = command_state(self.context)
        state["text"] = str(state.pop("prefill", ""))
        state["history_index"] = None
        update_flag(self.context, "command_active", True)
        self.context.bus.emit("command.start", state["text"])

    def on_exit(self, next_mode: Optional[str]) -> None:
        super().on_exit(next_mode)
        update_flag(self.context, "command_active", False)
        self.context.bus.emit("command.end", self.current_command)
        command_state(self.context)["text"] = ""

    @property
    def current_command(self) -> str:
        return str(command_state(self.context)["text"])

    def handle_unmapped(self, keys: Tuple[KeyInput, ...]) -> ModeResult:
        pieces = [key_text(key) for key in keys]
        if not pieces or any(piece is None for piece in pieces):
            return ModeResult(consumed=False, status="miss", message="unhandled")
        state = command_state(self.context)
        state["text"] = self.current_command + "".join(piece or "" for piece in pieces)
        state["history_index"] = None
        return ModeResult(consumed=True, status="editing")


__all__ = ["CommandMode"]
