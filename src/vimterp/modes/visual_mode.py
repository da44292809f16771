"""Visual modes (characterwise, linewise, blockwise)."""

from __future__ import annotations

from typing import Optional, Tuple

from vimterp.actions import core, visual
from vimterp.actions.motions import MotionError
from vimterp.keymaps import ResolutionMatch

from .base_mode import ActionRequest, EditorMode, ModeResult
from .keymap_helpers import KeymapMode, update_flag


class SelectionMode(KeymapMode):
    """Shared behaviour of the Visual and Select families.

    The selection runs from ``visual_state["anchor"]`` to the primary
    caret. Visual selections include the character under the head, Select
    selections stop before it; switching family converts the ends.
    Secondary carets are kept while selecting.
    """

    kind: str = "char"
    exclusive: bool = False
    # keymodel values that make an unshifted arrow end the selection
    stop_options: Tuple[str, ...] = ()

    def on_enter(self, previous: Optional[str]) -> None:
        self.reset()
        context = self.context
        buffer = context.buffer
        state = visual.visual_state(context)
        anchor, head = visual.anchor_of(context), buffer.state.cursor
        if previous in visual.SELECTION_MODES:
            was_exclusive = bool(state.get("exclusive", False))
            if was_exclusive and not self.exclusive:
                anchor, head = visual.to_inclusive(buffer, anchor, head)
            elif self.exclusive and not was_exclusive:
                anchor, head = visual.to_exclusive(anchor, head)
        state.update(
            anchor=buffer.clamp(anchor), kind=self.kind, exclusive=self.exclusive
        )
        update_flag(context, "visual_active", True)
        visual.apply_selection(context, head)
        context.bus.emit("visual.start", {"mode": self.name, "anchor": state["anchor"]})

    def on_exit(self, next_mode: Optional[str]) -> None:
        super().on_exit(next_mode)
        if next_mode in visual.SELECTION_MODES:
            return
        context = self.context
        visual.finish_selection(context)
        update_flag(context, "visual_active", False)
        context.extras.pop("visual_state", None)
        context.bus.emit("visual.end", {"mode": self.name, "next": next_mode})

    def stops_selection(self, match: ResolutionMatch) -> bool:
        metadata = match.action.metadata
        if not metadata.get("arrow") or metadata.get("shifted"):
            return False
        options = self.context.options
        return any(options.has_keymodel(value) for value in self.stop_options)

    def apply_motion(
        self, match: ResolutionMatch, request: ActionRequest
    ) -> ModeResult:
        context = self.context
        if self.stops_selection(match):
            return visual.stop_selection(context, match, request)
        buffer = context.buffer
        origin = buffer.state.cursor
        try:
            target = match.action.handler(core.motion_request(context, origin, request))
        except MotionError as exc:
            return ModeResult(consumed=True, status="error", message=str(exc))
        if target.jump:
            context.marks.set_system_mark(buffer, "'", origin)
        core.remember_column(context, target)
        row, col = target.cursor
        length = len(buffer.get_line(row))
        limit = length if self.exclusive else max(length - 1, 0)
        return visual.apply_selection(context, (row, min(col, limit)))


class VisualMode(SelectionMode):
    name = "visual"
    editor_mode = EditorMode.VISUAL_CHARACTER
    keymap_mode = "visual"
    accepts_count = True
    accepts_register = True
    stop_options = ("stopsel", "stopvisual")


class VisualLineMode(VisualMode):
    name = "visual_line"
    editor_mode = EditorMode.VISUAL_LINE
    kind = "line"


class VisualBlockMode(VisualMode):
    name = "visual_block"
    editor_mode = EditorMode.VISUAL_BLOCK
    kind = "block"


__all__ = ["SelectionMode", "VisualBlockMode", "VisualLineMode", "VisualMode"]
