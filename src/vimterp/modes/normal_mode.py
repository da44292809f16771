"""Normal mode: motions, operators and the single-key commands."""

from __future__ import annotations

from typing import Optional

from vimterp.actions import core, visual
from vimterp.keymaps import ResolutionMatch

from .base_mode import ActionRequest, EditorMode, ModeResult, mode_state
from .keymap_helpers import KeymapMode

OPERATOR_STATE = "operator_state"


class NormalMode(KeymapMode):
    name = "normal"
    editor_mode = EditorMode.NORMAL
    keymap_mode = "normal"
    accepts_count = True
    accepts_register = True

    def on_enter(self, previous: Optional[str]) -> None:
        del previous
        self.reset()
        buffer = self.context.buffer
        # carets rest on a character outside Insert
        buffer.state.set_carets(
            [
                (row, min(col, max(len(buffer.get_line(row)) - 1, 0)))
                for row, col in buffer.state.carets
            ]
        )

    def apply_motion(
        self, match: ResolutionMatch, request: ActionRequest
    ) -> ModeResult:
        startsel = self.context.options.has_keymodel("startsel")
        if match.action.metadata.get("shifted") and startsel:
            return self._start_selection(match, request)
        batch = core.move_carets(self.context, match, request)
        return core.batch_result(batch, message=match.action.id)

    def start_operator(
        self, match: ResolutionMatch, request: ActionRequest
    ) -> ModeResult:
        state = mode_state(self.context, OPERATOR_STATE)
        state.clear()
        state.update(
            operator=match.action.id,
            count=request.count,
            explicit_count=request.explicit_count,
            register=request.register,
        )
        self.logger.debug("operator %s awaiting motion", match.action.id)
        return ModeResult(
            consumed=True,
            push="operator_pending",
            status="pending",
            message="await_motion",
        )

    def _start_selection(
        self, match: ResolutionMatch, request: ActionRequest
    ) -> ModeResult:
        """Shifted arrow with ``keymodel=startsel``: begin a Select selection."""

        state = visual.visual_state(self.context)
        state["anchor"] = self.context.buffer.state.cursor
        batch = core.move_carets(self.context, match, request, past_end=True)
        return core.batch_result(batch, switch_to="select", message="enter_select")


__all__ = ["NormalMode", "OPERATOR_STATE"]
