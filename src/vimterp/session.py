"""Session and view wiring: one store and one command table, a manager per view."""

from __future__ import annotations

from typing import List, Optional

from vimterp.buffer import Buffer, EditEvent
from vimterp.ex import (
    GOTO_LINE,
    CommandRegistry,
    ExDispatcher,
    ExecutionResult,
    Message,
    default_registry,
)
from vimterp.keymaps import KeymapRegistry, load_default_keymaps
from vimterp.modes import (
    EditorMode,
    KeyInput,
    ModeBus,
    ModeContext,
    ModeManager,
    Outcome,
    parse_keys,
    register_default_modes,
)
from vimterp.runtime import EditorOptions, telemetry
from vimterp.store import SharedStore, default_store


def build_keymaps(*, timeout_ms: Optional[int] = None) -> KeymapRegistry:
    """The default bindings, frozen; sequence timeouts stay adjustable."""

    registry = KeymapRegistry(logger_name="vimterp.keymaps")
    load_default_keymaps(registry, default_sequence_timeout_ms=timeout_ms)
    registry.freeze()
    return registry


class EditorSession:
    """Owns what every view shares: marks, registers, options and tables."""

    def __init__(
        self,
        *,
        store: Optional[SharedStore] = None,
        options: Optional[EditorOptions] = None,
        ex_registry: Optional[CommandRegistry] = None,
        keymap_registry: Optional[KeymapRegistry] = None,
    ) -> None:
        self.logger = telemetry.get_logger("vimterp.session")
        self.store = store or default_store()
        self.options = options or EditorOptions.from_env()
        self.ex_registry = ex_registry or default_registry()
        self.dispatcher = ExDispatcher(self.ex_registry, range_command=GOTO_LINE)
        self.keymaps = keymap_registry or build_keymaps(
            timeout_ms=self.options.timeoutlen
        )
        self.views: List["EditorView"] = []

    def open_view(
        self, text: str = "", *, name: str = "default", writable: bool = True
    ) -> "EditorView":
        buffer = Buffer.from_text(text, name=name, writable=writable)
        view = EditorView(self, buffer)
        reattached = self.store.marks.buffer_opened(buffer)
        self.views.append(view)
        telemetry.record_event(
            "session.open_view",
            data={"buffer": buffer.name, "id": buffer.id, "reattached": reattached},
        )
        return view

    def close_view(self, view: "EditorView") -> None:
        if view not in self.views:
            raise ValueError(f"View for buffer '{view.buffer.name}' is not open")
        self.views.remove(view)
        view.detach()
        self.store.marks.buffer_closed(view.buffer)
        telemetry.record_event(
            "session.close_view", data={"buffer": view.buffer.name}
        )


class EditorView:
    """A buffer, its mode manager and the context modes work in."""

    def __init__(self, session: EditorSession, buffer: Buffer) -> None:
        self.session = session
        self.buffer = buffer
        self.bus = ModeBus()
        self.context = ModeContext(
            buffer=buffer,
            registers=session.store.registers,
            bus=self.bus,
            marks=session.store.marks,
            options=session.options,
        )
        self.context.extras["ex_dispatcher"] = session.dispatcher
        self.manager = ModeManager(self.context, keymap_registry=session.keymaps)
        register_default_modes(self.manager)
        self.messages: List[Message] = []
        self.bus.subscribe("message", self._on_message)
        buffer.add_listener(session.store.marks.on_edit)
        buffer.add_listener(self._track_change)

    # -- input -----------------------------------------------------------------------

    def feed(self, key: KeyInput) -> Outcome:
        return self.manager.feed(key)

    def feed_keys(self, notation: str) -> List[Outcome]:
        """Feed keys written in Vim notation, e.g. ``"d2w<Esc>"``."""

        return [self.manager.feed(key) for key in parse_keys(notation)]

    def expire_pending(self) -> Optional[Outcome]:
        return self.manager.expire_pending()

    def execute(self, line: str) -> ExecutionResult:
        """Run one Ex command line without going through Command-line mode."""

        result = self.session.dispatcher.execute(line, self.context)
        if result.switch_to:
            self.manager.switch_mode(result.switch_to)
        return result

    # -- state -----------------------------------------------------------------------

    @property
    def mode(self) -> EditorMode:
        return self.manager.current_mode

    @property
    def text(self) -> str:
        return self.buffer.text

    @property
    def last_message(self) -> Optional[Message]:
        return self.messages[-1] if self.messages else None

    def detach(self) -> None:
        self.buffer.remove_listener(self.session.store.marks.on_edit)
        self.buffer.remove_listener(self._track_change)
        self.bus.unsubscribe("message", self._on_message)

    def _on_message(self, payload: object) -> None:
        if isinstance(payload, Message):
            self.messages.append(payload)

    def _track_change(self, event: EditEvent) -> None:
        """Keep the ``.``, ``[`` and ``]`` marks on the latest change."""

        buffer = self.buffer
        marks = self.session.store.marks
        start = buffer.clamp(event.start)
        end = buffer.clamp(event.new_end)
        marks.set_system_mark(buffer, ".", start)
        marks.set_system_mark(buffer, "[", start)
        marks.set_system_mark(buffer, "]", end)


__all__ = ["EditorSession", "EditorView", "build_keymaps"]
