"""A small Textual editor driven by one ``EditorView``.

Run ``vimterp-demo [path]``; ``:w`` writes back to ``path`` (or the file
named after it), ``:q`` leaves and Ctrl+Q always quits.
"""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Any, Optional, Sequence

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.widgets import Footer, Header, Static

from vimterp.buffer import BufferMirror
from vimterp.ex import Message
from vimterp.modes import EditorMode, KeyInput
from vimterp.modes.notation import normalize_key, normalize_modifiers
from vimterp.runtime import telemetry
from vimterp.session import EditorSession, EditorView

from .controller import TextualUIHooks, TextualVimAdapter

QUIT_KEYS = frozenset({"ctrl+c", "ctrl+q"})
TIMEOUT_POLL_SECONDS = 0.1

# Textual names for printable keys whose ``key`` is not the character itself
_TEXTUAL_NAMES = {"space": " ", "plus": "+", "minus": "-"}


def translate_key(event: events.Key) -> Optional[KeyInput]:
    """Turn a Textual key event into a ``KeyInput``; quit keys give ``None``."""

    if event.key in QUIT_KEYS:
        return None
    parts = ["+"] if event.key == "+" else event.key.split("+")
    modifiers = normalize_modifiers(parts[:-1])
    name = _TEXTUAL_NAMES.get(parts[-1], parts[-1])
    typed = event.character
    if event.is_printable and typed and not {"ctrl", "alt"} & set(modifiers):
        return KeyInput(key=typed, text=typed)
    if len(name) > 1:
        return KeyInput(key=normalize_key(name), modifiers=modifiers)
    if "ctrl" in modifiers:
        name = name.lower()
    return KeyInput(key=name, modifiers=modifiers)


class VimApp(App[None]):
    """Buffer pane, status line and command line around one view."""

    TITLE = "vimterp"

    CSS = """
    #buffer-scroll {
        height: 1fr;
        border: round $accent;
    }

    #buffer-view {
        padding: 0 1;
    }

    #status-line {
        height: 1;
        padding: 0 1;
        background: $surface-darken-1;
    }

    #command-line {
        height: 1;
        padding: 0 1;
        background: $surface-darken-2;
    }

    #command-line.error {
        color: $error;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", priority=True),
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
    ]

    def __init__(
        self,
        text: str = "",
        *,
        path: Optional[Path] = None,
        session: Optional[EditorSession] = None,
    ) -> None:
        super().__init__()
        self.path = path
        self.session = session or EditorSession()
        self.view: EditorView = self.session.open_view(
            text, name=path.name if path else "scratch"
        )
        self.adapter: Optional[TextualVimAdapter] = None
        self._typing_command = False
        self._message: Optional[Message] = None

    def compose(self) -> ComposeResult:
        yield Header()
        with VerticalScroll(id="buffer-scroll"):
            yield Static(id="buffer-view")
        yield Static(id="status-line")
        yield Static(id="command-line")
        yield Footer()

    def on_mount(self) -> None:
        hooks = TextualUIHooks(
            update_buffer=self._show_buffer,
            update_status=self._show_status,
            show_command=self._show_command,
            show_message=self._show_message,
            handle_event=self._on_editor_event,
        )
        self.adapter = TextualVimAdapter(self.view, hooks)
        self.set_interval(TIMEOUT_POLL_SECONDS, self.adapter.process_timeouts)

    def on_unmount(self) -> None:
        if self.view in self.session.views:
            self.session.close_view(self.view)

    def on_key(self, event: events.Key) -> None:
        key = translate_key(event)
        if self.adapter is None or key is None:
            return
        event.stop()
        self._message = None
        self.adapter.handle_key(key)

    # -- hooks -------------------------------------------------------------------

    def _show_buffer(self, mirror: BufferMirror) -> None:
        self.query_one("#buffer-view", Static).update(mirror.text)

    def _show_status(self, status: str) -> None:
        self.query_one("#status-line", Static).update(status)

    def _show_command(self, command: str) -> None:
        self._typing_command = bool(command) or self.view.mode is EditorMode.CMD_LINE
        self._render_command_line(command)

    def _show_message(self, message: Message) -> None:
        self._message = message
        self._render_command_line("")

    def _render_command_line(self, command: str) -> None:
        line = self.query_one("#command-line", Static)
        message = None if self._typing_command else self._message
        line.set_class(message is not None and message.level == "error", "error")
        if message is not None:
            line.update(message.text)
        else:
            line.update(f":{command}" if self._typing_command else "")

    def _on_editor_event(self, name: str, payload: Any) -> None:
        if name == "command.quit":
            self.exit()
        elif name == "command.write" and isinstance(payload, dict):
            self._write(payload)

    def _write(self, payload: dict) -> None:
        args = payload.get("args") or []
        target = Path(args[0]) if args else self.path
        if target is None:
            self._show_status("E32: No file name")
            return
        target.write_text(payload["snapshot"].text, encoding="utf-8")
        self.path = self.path or target
        self._show_status(f'"{target}" written')


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="vimterp-demo", description="Edit a file with the vimterp interpreter."
    )
    parser.add_argument("path", nargs="?", type=Path, help="file to open")
    parser.add_argument(
        "--log-preset",
        default=os.environ.get("VIMTERP_LOG_PRESET"),
        choices=("development", "production", "performance"),
        help="logging preset (default: VIMTERP_* environment settings)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    if args.log_preset:
        telemetry.configure(preset=args.log_preset)
    path: Optional[Path] = args.path
    text = path.read_text(encoding="utf-8") if path and path.exists() else ""
    VimApp(text, path=path).run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()


__all__ = ["QUIT_KEYS", "VimApp", "main", "translate_key"]
