"""Base classes and shared utilities for editor modes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, MutableMapping, Optional, Tuple, cast

from vimterp.buffer import Buffer
from vimterp.runtime.options import EditorOptions
from vimterp.store import MarkStore, RegisterBank


class EditorMode(str, Enum):
    NORMAL = "NORMAL"
    INSERT = "INSERT"
    REPLACE = "REPLACE"
    VISUAL_CHARACTER = "VISUAL_CHARACTER"
    VISUAL_LINE = "VISUAL_LINE"
    VISUAL_BLOCK = "VISUAL_BLOCK"
    SELECT_CHARACTER = "SELECT_CHARACTER"
    SELECT_LINE = "SELECT_LINE"
    SELECT_BLOCK = "SELECT_BLOCK"
    OPERATOR_PENDING = "OPERATOR_PENDING"
    CMD_LINE = "CMD_LINE"

    @property
    def is_visual(self) -> bool:
        return self.name.startswith("VISUAL")

    @property
    def is_select(self) -> bool:
        return self.name.startswith("SELECT")


class OutcomeKind(str, Enum):
    PENDING = "pending"
    APPLIED = "applied"
    MODE_CHANGED = "mode_changed"
    CANCELLED = "cancelled"
    ERROR = "error"


@dataclass(slots=True)
class KeyInput:
    """Normalized key event passed to modes."""

    key: str
    modifiers: Tuple[str, ...] = ()
    text: Optional[str] = None


@dataclass(slots=True)
class ModeResult:
    """Result returned from ``Mode.handle_key``.

    ``switch_to`` replaces the active mode (``"normal"`` unwinds the whole
    stack), ``push`` stacks a mode over the active one and ``pop`` returns
    to the mode underneath. ``replay`` holds keys the manager feeds again
    once the result has been applied.
    """

    consumed: bool
    switch_to: Optional[str] = None
    status: str = "ok"
    message: Optional[str] = None
    timeout_ms: Optional[int] = None
    push: Optional[str] = None
    pop: bool = False
    replay: Tuple[KeyInput, ...] = ()


@dataclass(frozen=True, slots=True)
class ActionRequest:
    """Count, register and argument collected before a binding ran."""

    count: int = 1
    explicit_count: bool = False
    register: Optional[str] = None
    argument: Optional[str] = None
    keys: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Outcome:
    """What one fed key did, as seen by the host."""

    kind: OutcomeKind
    mode: EditorMode
    reason: Optional[str] = None
    result: Optional[ModeResult] = None

    @property
    def ok(self) -> bool:
        return self.kind is not OutcomeKind.ERROR


@dataclass(slots=True)
class ModeContext:
    """Shared services every mode can access."""

    buffer: Buffer
    registers: RegisterBank
    bus: "ModeBus"
    extras: Dict[str, object] = field(default_factory=dict)
    marks: MarkStore = field(default_factory=MarkStore)
    options: EditorOptions = field(default_factory=EditorOptions)


def mode_state(context: ModeContext, name: str) -> MutableMapping[str, object]:
    return cast(MutableMapping[str, object], context.extras.setdefault(name, {}))


def current_request(context: ModeContext) -> ActionRequest:
    """Count/register/argument of the binding currently executing."""

    request = context.extras.get("request")
    if isinstance(request, ActionRequest):
        return request
    return ActionRequest()


class ModeBus:
    """Minimal event bus letting modes exchange structured signals."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, list[Callable[[object], None]]] = {}

    def subscribe(self, event: str, callback: Callable[[object], None]) -> None:
        self._subscribers.setdefault(event, []).append(callback)

    def unsubscribe(self, event: str, callback: Callable[[object], None]) -> None:
        callbacks = self._subscribers.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def emit(self, event: str, payload: object | None = None) -> None:
        for callback in list(self._subscribers.get(event, [])):
            callback(payload)


class Mode:
    """Base class all concrete editor modes inherit from."""

    name: str = "mode"
    editor_mode: EditorMode = EditorMode.NORMAL

    def __init__(self, context: ModeContext) -> None:
        self.context = context

    def on_enter(
        self, previous: Optional[str]
    ) -> None:  # pragma: no cover - default no-op
        del previous

    def on_exit(
        self, next_mode: Optional[str]
    ) -> None:  # pragma: no cover - default no-op
        del next_mode

    def handle_key(
        self, key: KeyInput
    ) -> ModeResult:  # pragma: no cover - abstract override
        raise NotImplementedError

    def handle_timeout(self) -> ModeResult:
        """Invoked by the manager when a pending key sequence expires."""

        return ModeResult(consumed=False, status="timeout")

    def reset(self) -> None:
        """Drop any partially typed command."""
