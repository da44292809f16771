"""Bridge between an ``EditorView`` and whatever Textual widgets render it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Mapping, Optional

from vimterp.buffer import BufferMirror
from vimterp.ex import Message
from vimterp.modes import KeyInput, Outcome, OutcomeKind
from vimterp.runtime import telemetry
from vimterp.session import EditorView


def _ignore(*_args: object) -> None:
    return None


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks the adapter drives; only ``update_buffer`` is required."""

    update_buffer: Callable[[BufferMirror], None]
    update_status: Callable[[str], None] = _ignore
    show_command: Callable[[str], None] = _ignore
    show_message: Callable[[Message], None] = _ignore
    handle_event: Callable[[str, object | None], None] = _ignore
    log: Callable[[str], None] = _ignore


# bus events forwarded to ``handle_event``
RELAYED_EVENTS = tuple(
    """
    visual.start visual.end visual.selection visual.yank visual.delete
    insert.start insert.end
    command.start command.end command.submit command.output command.error
    command.write command.quit command.edit command.echo
    marks.deleted options.changed
    """.split()
)


def status_line(view: EditorView, outcome: Optional[Outcome] = None) -> str:
    """``-- INSERT --`` style label, followed by the reason of a failed key."""

    label = f"-- {view.mode.value.replace('_', ' ')} --"
    if outcome is None or outcome.kind is not OutcomeKind.ERROR:
        return label
    return f"{label} {outcome.reason or 'error'}"


class TextualVimAdapter:
    """Feeds keys to one view and keeps the hooks in step with it.

    Every key, expired timer and relayed bus event ends in a re-render of
    the buffer, status and command line. A ``key ->`` / ``outcome <-`` trace
    goes to the ``vimterp.adapters.textual`` logger and to ``hooks.log``.
    """

    def __init__(self, view: EditorView, hooks: TextualUIHooks) -> None:
        self.view = view
        self.hooks = hooks
        self.logger = telemetry.get_logger("vimterp.adapters.textual")
        view.bus.subscribe("message", self._on_message)
        for name in RELAYED_EVENTS:
            view.bus.subscribe(name, self._relay(name))
        self._render()

    # -- input -------------------------------------------------------------------

    def handle_key(self, key: KeyInput) -> Outcome:
        self._trace("key ->", key=key.key, text=key.text, mods=key.modifiers)
        outcome = self.view.feed(key)
        self._settle(outcome)
        return outcome

    def handle_textual_key(
        self,
        key: str,
        *,
        text: Optional[str] = None,
        modifiers: Iterable[str] = (),
    ) -> Outcome:
        """Feed a key named the way Textual names it."""

        mods = tuple(str(modifier).lower() for modifier in modifiers)
        return self.handle_key(KeyInput(key=key, text=text, modifiers=mods))

    def process_timeouts(self) -> Dict[str, Outcome]:
        """Expire due sequence timers; call this from a Textual interval."""

        expired = self.view.manager.process_timeouts()
        for mode_name, outcome in expired.items():
            self._trace("timeout ->", source_mode=mode_name, kind=outcome.kind)
            self._settle(outcome)
        return expired

    # -- rendering -----------------------------------------------------------------

    def _settle(self, outcome: Outcome) -> None:
        self._trace("outcome <-", kind=outcome.kind.value, reason=outcome.reason)
        self._render(outcome)

    def _render(self, outcome: Optional[Outcome] = None) -> None:
        self.hooks.update_status(status_line(self.view, outcome))
        self._render_buffer()
        self._render_command_line()

    def _render_buffer(self) -> None:
        mirror = self.view.buffer.mirror(attributes={"mode": self.view.mode.value})
        self.hooks.update_buffer(mirror)

    def _render_command_line(self) -> None:
        state = self.view.context.extras.get("command_state")
        typed = state.get("text", "") if isinstance(state, Mapping) else ""
        self.hooks.show_command(str(typed))

    # -- bus -----------------------------------------------------------------------

    def _relay(self, name: str) -> Callable[[object | None], None]:
        def forward(payload: object | None) -> None:
            self._trace("event ->", event=name, payload=payload)
            self.hooks.handle_event(name, payload)
            if name.startswith("command."):
                self._render_command_line()
            elif name.startswith("visual."):
                self._render_buffer()

        return forward

    def _on_message(self, payload: object | None) -> None:
        if not isinstance(payload, Message):
            return
        self._trace("message ->", text=payload.text, level=payload.level)
        self.hooks.show_message(payload)

    def _trace(self, prefix: str, **fields: object) -> None:
        buffer = self.view.buffer
        active = self.view.manager.active_mode
        state: Dict[str, object] = {
            "mode": active.name if active else "?",
            "cursor": buffer.state.cursor,
            "carets": len(buffer.state.carets),
            "buffer": buffer.name,
            "buffer_version": buffer.document.version,
        }
        state.update((key, value) for key, value in fields.items() if value is not None)
        line = " ".join([prefix, *(f"{key}={value!r}" for key, value in state.items())])
        self.logger.debug(line)
        self.hooks.log(line)


__all__ = ["RELAYED_EVENTS", "TextualUIHooks", "TextualVimAdapter", "status_line"]
