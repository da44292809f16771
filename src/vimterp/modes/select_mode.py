"""Select modes: a selection that typing replaces."""

from __future__ import annotations

from typing import Tuple

from vimterp.actions import visual

from .base_mode import EditorMode, KeyInput, ModeResult
from .notation import key_text
from .visual_mode import SelectionMode


class SelectMode(SelectionMode):
    """Printable keys delete the selection (into the black hole register)
    and are then typed in Insert mode."""

    name = "select"
    editor_mode = EditorMode.SELECT_CHARACTER
    keymap_mode = "select"
    exclusive = True
    stop_options = ("stopsel", "stopselect")

    def handle_unmapped(self, keys: Tuple[KeyInput, ...]) -> ModeResult:
        if len(keys) != 1 or key_text(keys[0]) is None:
            return ModeResult(consumed=False, status="miss", message="unmapped")
        return visual.replace_selection(self.context, keys[0])


class SelectLineMode(SelectMode):
    name = "select_line"
    editor_mode = EditorMode.SELECT_LINE
    kind = "line"


class SelectBlockMode(SelectMode):
    name = "select_block"
    editor_mode = EditorMode.SELECT_BLOCK
    kind = "block"


__all__ = ["SelectBlockMode", "SelectLineMode", "SelectMode"]
