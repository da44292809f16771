"""Operator-Pending mode: waits for the motion an operator acts on."""

from __future__ import annotations

from typing import Callable, Optional, Tuple, cast

from vimterp.actions import MOTIONS, OPERATORS, core
from vimterp.actions.carets import for_each_caret
from vimterp.actions.operators import (
    OperatorSpan,
    OperatorSpec,
    line_span,
    run_operator,
    span_from_motion,
)
from vimterp.buffer import Cursor
from vimterp.keymaps import ResolutionMatch

from .base_mode import ActionRequest, EditorMode, KeyInput, ModeResult, mode_state
from .keymap_helpers import KeymapMode, update_flag
from .normal_mode import OPERATOR_STATE

# "cw" changes to the end of the word, like "ce"
_CHANGE_WORD = {
    "motion.word_forward": "motion.word_end",
    "motion.bigword_forward": "motion.bigword_end",
}


class OperatorPendingMode(KeymapMode):
    """Pushed over Normal by an operator key.

    A motion applies the operator over the motion's span; typing the
    operator again applies it to whole lines. Counts typed before the
    operator and before the motion multiply.
    """

    name = "operator_pending"
    editor_mode = EditorMode.OPERATOR_PENDING
    keymap_mode = "operator_pending"
    accepts_count = True

    def on_enter(self, previous: Optional[str]) -> None:
        del previous
        self.reset()
        update_flag(self.context, "operator_pending", True)

    def on_exit(self, next_mode: Optional[str]) -> None:
        super().on_exit(next_mode)
        update_flag(self.context, "operator_pending", False)
        self.context.extras.pop(OPERATOR_STATE, None)

    @property
    def operator(self) -> OperatorSpec:
        state = mode_state(self.context, OPERATOR_STATE)
        return OPERATORS[str(state.get("operator", "operator.delete"))]

    def _count(self, request: ActionRequest) -> Tuple[int, bool]:
        state = mode_state(self.context, OPERATOR_STATE)
        count = cast(int, state.get("count", 1)) * request.count
        explicit = bool(state.get("explicit_count")) or request.explicit_count
        return count, explicit

    # -- completion ------------------------------------------------------------------

    def apply_motion(
        self, match: ResolutionMatch, request: ActionRequest
    ) -> ModeResult:
        buffer = self.context.buffer
        spec = self.operator
        count, explicit = self._count(request)
        scaled = ActionRequest(
            count=count,
            explicit_count=explicit,
            register=request.register,
            argument=request.argument,
            keys=request.keys,
        )
        motion = match.action.handler
        word_end = None
        if spec.id == "operator.change" and match.action.id in _CHANGE_WORD:
            word_end = MOTIONS[_CHANGE_WORD[match.action.id]].handler

        def span_for(caret: Cursor) -> OperatorSpan:
            handler = motion
            line = buffer.get_line(caret[0])
            on_word = caret[1] < len(line) and not line[caret[1]].isspace()
            if word_end is not None and on_word:
                handler = word_end
            target = handler(core.motion_request(self.context, caret, scaled))
            return span_from_motion(buffer, caret, target)

        return self._operate(spec, span_for)

    def start_operator(
        self, match: ResolutionMatch, request: ActionRequest
    ) -> ModeResult:
        spec = self.operator
        tokens = match.binding.sequence.tokens
        if match.action.id != spec.id or tokens not in (spec.keys, spec.keys[-1:]):
            return ModeResult(
                consumed=True,
                switch_to="normal",
                status="error",
                message="operator_mismatch",
            )
        buffer = self.context.buffer
        count, _ = self._count(request)
        return self._operate(spec, lambda caret: line_span(buffer, caret[0], count))

    def handle_unmapped(self, keys: Tuple[KeyInput, ...]) -> ModeResult:
        del keys
        return ModeResult(
            consumed=False, switch_to="normal", status="miss", message="unmapped"
        )

    def _operate(
        self, spec: OperatorSpec, span_for: Callable[[Cursor], OperatorSpan]
    ) -> ModeResult:
        context = self.context
        register = mode_state(context, OPERATOR_STATE).get("register") or '"'
        if spec.enters_insert:
            core.open_insert_scope(context, spec.id)

        def step(caret: Cursor) -> Cursor:
            return run_operator(
                context, spec.id, span_for(caret), register=str(register), origin=caret
            )[0]

        batch = for_each_caret(context.buffer, step, label=spec.id)
        if batch.results and not batch.any_ok:
            if spec.enters_insert:
                core.close_insert_scope(context)
            return ModeResult(
                consumed=True,
                switch_to="normal",
                status="error",
                message=batch.first_failure(),
            )
        if spec.enters_insert:
            return ModeResult(consumed=True, switch_to="insert", message="enter_insert")
        return ModeResult(
            consumed=True, switch_to="normal", status="applied", message=spec.id
        )


__all__ = ["OperatorPendingMode"]
