"""Insert and Replace modes."""

from __future__ import annotations

from typing import Optional, Tuple

from vimterp.actions import core, insert
from vimterp.keymaps import ResolutionMatch

from .base_mode import ActionRequest, EditorMode, KeyInput, ModeResult
from .keymap_helpers import KeymapMode, update_flag
from .notation import key_text


class InsertMode(KeymapMode):
    """Typed text goes into the buffer at every caret.

    The whole session, together with the command that started it (``o``,
    ``c{motion}``, ``A``...), undoes as one step. Leaving sets the ``^`` mark
    and the ``.`` register and steps the carets back onto a character.
    """

    name = "insert"
    editor_mode = EditorMode.INSERT
    keymap_mode = "insert"
    overwrites = False

    def on_enter(self, previous: Optional[str]) -> None:
        del previous
        self.reset()
        context = self.context
        core.open_insert_scope(context, self.name)
        insert.reset_insert_state(context)
        context.extras["insert_overwrites"] = self.overwrites
        update_flag(context, "insert_active", True)
        context.bus.emit("insert.start", {"mode": self.name})

    def on_exit(self, next_mode: Optional[str]) -> None:
        super().on_exit(next_mode)
        context = self.context
        buffer = context.buffer
        typed = insert.reset_insert_state(context)
        if typed:
            context.registers.set_last_inserted(typed)
        context.marks.set_system_mark(buffer, "^", buffer.state.cursor)
        core.close_insert_scope(context)
        context.extras.pop("insert_overwrites", None)
        update_flag(context, "insert_active", False)
        if next_mode == "normal":
            buffer.state.set_carets(
                [(row, max(col - 1, 0)) for row, col in buffer.state.carets]
            )
        context.bus.emit("insert.end", typed)

    def apply_motion(
        self, match: ResolutionMatch, request: ActionRequest
    ) -> ModeResult:
        batch = core.move_carets(self.context, match, request, past_end=True)
        return core.batch_result(batch, message=match.action.id)

    def handle_unmapped(self, keys: Tuple[KeyInput, ...]) -> ModeResult:
        pieces = [key_text(key) for key in keys]
        if not pieces or any(piece is None for piece in pieces):
            return ModeResult(consumed=False, status="miss", message="unmapped")
        return self.insert_text("".join(piece or "" for piece in pieces))

    def insert_text(self, text: str) -> ModeResult:
        return insert.type_text(self.context, text)


class ReplaceMode(InsertMode):
    """Typed characters overwrite the text under the caret."""

    name = "replace"
    editor_mode = EditorMode.REPLACE
    keymap_mode = "replace"
    overwrites = True

    def insert_text(self, text: str) -> ModeResult:
        return insert.overwrite_text(self.context, text)


__all__ = ["InsertMode", "ReplaceMode"]
