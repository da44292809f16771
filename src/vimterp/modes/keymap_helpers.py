"""Helper utilities and the shared base class for keymap-driven modes."""

from __future__ import annotations

from dataclasses import replace
from typing import List, Mapping, MutableMapping, Optional, Tuple, cast

from vimterp.runtime import telemetry

from vimterp.keymaps import KeymapResolver, ResolutionMatch
from vimterp.store.registers import is_valid_register

from .base_mode import (
    ActionRequest,
    KeyInput,
    Mode,
    ModeContext,
    ModeResult,
    current_request,
    mode_state,
)
from .notation import ESCAPE, is_escape, key_text, key_to_token


def require_keymap_resolver(context: ModeContext) -> KeymapResolver:
    resolver = context.extras.get("keymap_resolver")
    if not isinstance(resolver, KeymapResolver):
        raise RuntimeError("ModeContext.extras missing 'keymap_resolver'")
    return resolver


def keymap_flag_context(context: ModeContext) -> Mapping[str, bool]:
    flags = context.extras.setdefault("keymap_flags", {})
    return cast(Mapping[str, bool], flags)


def update_flag(context: ModeContext, key: str, value: bool) -> None:
    flags = cast(
        MutableMapping[str, bool], context.extras.setdefault("keymap_flags", {})
    )
    flags[key] = value


class KeymapMode(Mode):
    """Mode whose keys resolve through the keymap trie.

    Handles the parts every keymap-driven mode shares: pending multi-key
    sequences with a committed fallback, Escape, count digits, the ``"x``
    register prefix and bindings that take a one-character argument.
    Subclasses decide what motions and operators mean for them.
    """

    keymap_mode: str = "normal"
    accepts_count: bool = False
    accepts_register: bool = False

    def __init__(
        self,
        context: ModeContext,
        *,
        default_pending_timeout_ms: Optional[int] = None,
    ) -> None:
        super().__init__(context)
        self.logger = telemetry.get_logger(f"vimterp.modes.{self.name}")
        self._resolver = require_keymap_resolver(context)
        self._flags = keymap_flag_context(context)
        self._default_timeout_ms = default_pending_timeout_ms
        self._pending: List[KeyInput] = []
        self._fallback: Optional[Tuple[ResolutionMatch, int]] = None
        self._count_digits = ""
        self._register: Optional[str] = None
        self._awaiting_register = False
        self._awaiting_char: Optional[ResolutionMatch] = None

    # -- state -------------------------------------------------------------

    @property
    def timeout_ms(self) -> int:
        return self._default_timeout_ms or self.context.options.timeoutlen

    @property
    def has_pending(self) -> bool:
        return bool(
            self._pending
            or self._count_digits
            or self._register is not None
            or self._awaiting_register
            or self._awaiting_char is not None
        )

    @property
    def pending_tokens(self) -> Tuple[str, ...]:
        return tuple(key_to_token(key) for key in self._pending)

    def reset(self) -> None:
        self._pending.clear()
        self._fallback = None
        self._count_digits = ""
        self._register = None
        self._awaiting_register = False
        self._awaiting_char = None

    def on_exit(self, next_mode: Optional[str]) -> None:
        del next_mode
        self.reset()

    # -- key handling --------------------------------------------------------

    def handle_key(self, key: KeyInput) -> ModeResult:
        if is_escape(key):
            self.reset()
            return self.handle_escape()

        if self._awaiting_char is not None:
            match = self._awaiting_char
            self._awaiting_char = None
            text = key_text(key)
            if text is None:
                self.reset()
                return ModeResult(
                    consumed=True, status="error", message="argument_expected"
                )
            return self._run(match, argument=text)

        if self._awaiting_register:
            self._awaiting_register = False
            name = key_text(key)
            if name is None or not is_valid_register(name):
                self.reset()
                return ModeResult(
                    consumed=True, status="error", message="E354: Invalid register name"
                )
            self._register = name
            return ModeResult(
                consumed=True, status="pending", message="awaiting_command"
            )

        if not self._pending and not key.modifiers:
            text = key_text(key)
            if self.accepts_count and text and text.isdigit():
                if text != "0" or self._count_digits:
                    self._count_digits += text
                    return ModeResult(consumed=True, status="pending", message="count")
            if self.accepts_register and text == '"':
                self._awaiting_register = True
                return ModeResult(
                    consumed=True, status="pending", message="awaiting_register"
                )

        self._pending.append(key)
        result = self._resolver.resolve(
            self.keymap_mode, self.pending_tokens, context=self._flags
        )

        if result.status == "match" and result.match:
            self._pending.clear()
            self._fallback = None
            return self._run(result.match)

        if result.status == "pending":
            if result.match is not None:
                self._fallback = (result.match, len(self._pending))
            return ModeResult(
                consumed=True,
                status="pending",
                message="awaiting_sequence",
                timeout_ms=result.timeout_ms or self.timeout_ms,
            )

        if self._fallback is not None:
            match, depth = self._fallback
            extra = tuple(self._pending[depth:])
            self._pending.clear()
            self._fallback = None
            outcome = self._run(match)
            return replace(outcome, replay=outcome.replay + extra)

        keys = tuple(self._pending)
        self.reset()
        return self.handle_unmapped(keys)

    def handle_timeout(self) -> ModeResult:
        if self._fallback is not None:
            match, _ = self._fallback
            self._pending.clear()
            self._fallback = None
            return self._run(match)
        if self._pending:
            self.reset()
            return ModeResult(
                consumed=False, status="timeout", message="pending_timeout"
            )
        return ModeResult(consumed=False, status="timeout")

    # -- hooks -------------------------------------------------------------------

    def handle_escape(self) -> ModeResult:
        result = self._resolver.resolve(
            self.keymap_mode, (ESCAPE,), context=self._flags
        )
        if result.status == "match" and result.match:
            return self._execute_match(result.match, ActionRequest(keys=(ESCAPE,)))
        return ModeResult(
            consumed=True,
            switch_to="normal",
            status="cancel",
            message=f"exit_{self.name}",
        )

    def handle_unmapped(self, keys: Tuple[KeyInput, ...]) -> ModeResult:
        return ModeResult(consumed=False, status="miss", message="unmapped")

    def apply_motion(
        self, match: ResolutionMatch, request: ActionRequest
    ) -> ModeResult:
        del match, request
        return ModeResult(consumed=True, status="error", message="motion_not_supported")

    def start_operator(
        self, match: ResolutionMatch, request: ActionRequest
    ) -> ModeResult:
        del match, request
        return ModeResult(
            consumed=True, status="error", message="operator_not_supported"
        )

    # -- dispatch ------------------------------------------------------------------

    def _run(
        self, match: ResolutionMatch, *, argument: Optional[str] = None
    ) -> ModeResult:
        if match.action.wants_char and argument is None:
            self._awaiting_char = match
            return ModeResult(
                consumed=True, status="pending", message="awaiting_argument"
            )
        request = ActionRequest(
            count=int(self._count_digits) if self._count_digits else 1,
            explicit_count=bool(self._count_digits),
            register=self._register,
            argument=argument,
            keys=match.binding.sequence.tokens,
        )
        self._count_digits = ""
        self._register = None
        kind = match.action.kind
        if kind == "motion":
            return self.apply_motion(match, request)
        if kind == "operator":
            return self.start_operator(match, request)
        return self._execute_match(match, request)

    def _execute_match(
        self, match: ResolutionMatch, request: ActionRequest
    ) -> ModeResult:
        self.context.extras["request"] = request
        try:
            with telemetry.span(
                "keymaps::execute",
                component="keymaps",
                metadata={"binding_id": match.binding.id, "action": match.action.id},
            ):
                outcome = match.action(self.context, match)
        finally:
            self.context.extras.pop("request", None)

        if isinstance(outcome, ModeResult):
            return outcome
        return ModeResult(consumed=True)


__all__ = [
    "KeymapMode",
    "current_request",
    "key_to_token",
    "keymap_flag_context",
    "mode_state",
    "require_keymap_resolver",
    "update_flag",
]
