"""The mode stack of one view and the key dispatch that drives it."""

from __future__ import annotations

from dataclasses import dataclass, replace
from itertools import count
import time
from typing import Dict, Iterable, List, Optional, Tuple, Type

from vimterp.runtime import telemetry

from vimterp.keymaps import KeymapRegistry, KeymapResolver, load_default_keymaps

from .base_mode import (
    EditorMode,
    KeyInput,
    Mode,
    ModeContext,
    ModeResult,
    Outcome,
    OutcomeKind,
)

_ERROR_STATUSES = frozenset({"error", "miss", "timeout"})
_PENDING_STATUSES = frozenset({"pending", "editing"})


@dataclass(frozen=True)
class PendingTimeout:
    """Deadline for a partially typed sequence in one mode."""

    deadline: float
    timeout_ms: int
    generation: int

    def due(self, now: float) -> bool:
        return self.deadline <= now


class ModeManager:
    """Stack of modes for one view.

    The first registered mode is the base of the stack (Normal in a full
    session). Modes never touch the stack themselves: they describe the
    transition they want in the ``ModeResult`` they return and the manager
    applies it.
    """

    def __init__(
        self,
        context: ModeContext,
        *,
        keymap_registry: KeymapRegistry | None = None,
        keymap_resolver: KeymapResolver | None = None,
        load_defaults: bool = True,
    ) -> None:
        self.context = context
        self.logger = telemetry.get_logger("vimterp.modes")
        self._modes: Dict[str, Mode] = {}
        self._stack: List[str] = []
        self._timers: Dict[str, PendingTimeout] = {}
        self._generations = count(1)

        registry = keymap_registry
        if registry is None:
            registry = KeymapRegistry(logger_name="vimterp.keymaps")
            if load_defaults:
                load_default_keymaps(registry)
        self.keymap_registry = registry
        self.keymap_resolver = keymap_resolver or KeymapResolver(
            registry, logger_name="vimterp.keymaps"
        )
        shared = {
            "keymap_registry": self.keymap_registry,
            "keymap_resolver": self.keymap_resolver,
            "keymap_flags": {},
            "mode_manager": self,
        }
        for key, value in shared.items():
            self.context.extras.setdefault(key, value)

    # -- stack inspection ------------------------------------------------------

    @property
    def active_mode(self) -> Optional[Mode]:
        return self._modes.get(self._stack[-1]) if self._stack else None

    @property
    def current_mode(self) -> EditorMode:
        """Editor-level mode of the top of the stack; Normal when empty."""

        top = self.active_mode
        return EditorMode.NORMAL if top is None else top.editor_mode

    @property
    def mode_stack(self) -> Tuple[str, ...]:
        return tuple(self._stack)

    def get_mode(self, name: str) -> Mode:
        try:
            return self._modes[name]
        except KeyError:
            raise KeyError(f"Unknown mode '{name}'") from None

    def register_mode(
        self, mode_cls: Type[Mode], /, *mode_args: object, **mode_kwargs: object
    ) -> Mode:
        """Instantiate ``mode_cls`` against this context; the first one is the base."""

        mode = mode_cls(self.context, *mode_args, **mode_kwargs)
        if mode.name in self._modes:
            raise ValueError(f"Mode '{mode.name}' already registered")
        self._modes[mode.name] = mode
        if len(self._modes) == 1:
            self._stack = [mode.name]
            mode.on_enter(None)
        return mode

    # -- transitions -------------------------------------------------------------

    def switch_mode(self, name: str) -> None:
        """Make ``name`` the active mode.

        Switching to the base mode unwinds the whole stack. Any other target
        replaces the active mode, or is pushed when the base is active so
        the stack can always unwind back to it.
        """

        target = self.get_mode(name)
        previous = self.active_mode
        if previous is None:
            self._stack.append(name)
            target.on_enter(None)
            return
        if previous.name == name:
            return
        if name == self._stack[0]:
            while len(self._stack) > 1:
                self._exit_top(name)
        else:
            # the base stays underneath; anything above it is replaced
            self._exit_top(name)
            self._stack.append(name)
        target.on_enter(previous.name)
        self.cancel_timeout(name)
        telemetry.record_event(
            "mode.switch", data={"mode": name, "stack": "/".join(self._stack)}
        )

    def push_mode(self, name: str) -> None:
        target = self.get_mode(name)
        previous = self.active_mode
        if previous is not None and previous.name == name:
            return
        if previous is not None:
            self.cancel_timeout(previous.name)
        self._stack.append(name)
        target.on_enter(previous.name if previous else None)
        telemetry.record_event(
            "mode.push", data={"mode": name, "stack": "/".join(self._stack)}
        )

    def pop_mode(self) -> None:
        if len(self._stack) <= 1:
            return
        popped = self._stack[-1]
        self._exit_top(self._stack[-2])
        self._modes[self._stack[-1]].on_enter(popped)
        telemetry.record_event("mode.pop", data={"mode": self._stack[-1]})

    def reset_to_base(self) -> None:
        if self._stack:
            self.switch_mode(self._stack[0])

    def _exit_top(self, next_mode: str) -> None:
        top = self._stack[-1]
        self.cancel_timeout(top)
        self._modes[top].on_exit(next_mode)
        if len(self._stack) > 1:
            self._stack.pop()

    # -- key dispatch --------------------------------------------------------------

    def feed(self, key: KeyInput) -> Outcome:
        """Process one key and classify what it did."""

        before = self.current_mode
        result = self.handle_key(key)
        return self._replay(self._classify(result, before), result)

    def handle_key(self, key: KeyInput) -> ModeResult:
        """Hand ``key`` to the active mode and apply the transition it asks for."""

        mode = self.active_mode
        if mode is None:
            raise RuntimeError("No active mode registered")
        metadata = {"key": key.key, "mode": mode.name}
        with telemetry.span(
            name=f"mode::{mode.name}", component=True, metadata=metadata
        ):
            outcome = mode.handle_key(key)
        return self._after_mode_result(mode, outcome)

    def _after_mode_result(self, mode: Mode, result: ModeResult) -> ModeResult:
        if not result.timeout_ms:
            self.cancel_timeout(mode.name)
        else:
            self.arm_timeout(mode.name, result.timeout_ms)
        if result.switch_to:
            self.switch_mode(result.switch_to)
        elif result.pop:
            self.pop_mode()
        if result.push:
            self.push_mode(result.push)
        if result.status in _ERROR_STATUSES:
            reason = result.message or result.status
            self.logger.debug("mode %s rejected input: %s", mode.name, reason)
        return result

    def _replay(self, outcome: Outcome, result: ModeResult) -> Outcome:
        """Feed keys a result handed back; a mode change stays the headline."""

        for extra in result.replay:
            replayed = self.feed(extra)
            if outcome.kind is OutcomeKind.MODE_CHANGED and replayed.ok:
                outcome = replace(outcome, mode=replayed.mode)
            else:
                outcome = replayed
        return outcome

    def _classify(self, result: ModeResult, before: EditorMode) -> Outcome:
        after = self.current_mode
        status = result.status
        if status == "cancel":
            kind = OutcomeKind.CANCELLED
        elif status in _ERROR_STATUSES:
            kind = OutcomeKind.ERROR
        elif status == "applied":
            kind = OutcomeKind.APPLIED
        elif after is not before:
            kind = OutcomeKind.MODE_CHANGED
        elif status in _PENDING_STATUSES:
            kind = OutcomeKind.PENDING
        else:
            kind = OutcomeKind.APPLIED
        return Outcome(kind=kind, mode=after, reason=result.message, result=result)

    # -- timeouts ----------------------------------------------------------------------

    def arm_timeout(self, mode_name: str, timeout_ms: int) -> None:
        """(Re)start the pending-sequence timer of ``mode_name``."""

        self._timers[mode_name] = PendingTimeout(
            deadline=time.monotonic() + timeout_ms / 1000.0,
            timeout_ms=timeout_ms,
            generation=next(self._generations),
        )

    def cancel_timeout(self, mode_name: str) -> None:
        self._timers.pop(mode_name, None)

    def process_timeouts(self) -> Dict[str, Outcome]:
        """Expire timers whose deadline passed; keys they give back are replayed."""

        now = time.monotonic()
        due = [name for name, timer in self._timers.items() if timer.due(now)]
        return {name: self._expire_classified(name) for name in due}

    def force_timeout(self, mode_name: Optional[str] = None) -> Dict[str, ModeResult]:
        names: Iterable[str]
        if mode_name is None:
            names = list(self._timers)
        else:
            names = [mode_name] if mode_name in self._timers else []
        return {name: self._expire(name) for name in names}

    def expire_pending(self) -> Optional[Outcome]:
        """Expire the active mode's pending sequence now, as if timed out."""

        mode = self.active_mode
        if mode is None or mode.name not in self._timers:
            return None
        return self._expire_classified(mode.name)

    def _expire_classified(self, mode_name: str) -> Outcome:
        before = self.current_mode
        result = self._expire(mode_name)
        return self._replay(self._classify(result, before), result)

    def _expire(self, mode_name: str) -> ModeResult:
        timer = self._timers.pop(mode_name, None)
        mode = self._modes.get(mode_name)
        if timer is None or mode is None:
            return ModeResult(consumed=False, status="timeout")
        metadata = {"mode": mode_name, "timeout_ms": timer.timeout_ms}
        with telemetry.span(
            name=f"mode_timeout::{mode_name}", component=True, metadata=metadata
        ):
            result = mode.handle_timeout()
        return self._after_mode_result(mode, result)


__all__ = ["ModeManager", "PendingTimeout"]
