from __future__ import annotations

from typing import Any, Dict, List

from textual import events

from vimterp.adapters.textual import TextualUIHooks, TextualVimAdapter
from vimterp.adapters.textual.app import translate_key
from vimterp.ex import Message
from vimterp.modes import OutcomeKind


def test_adapter_updates_buffer_and_status(make_view) -> None:
    view = make_view("alpha")
    updates: List[str] = []
    statuses: List[str] = []
    hooks = TextualUIHooks(
        update_buffer=lambda mirror: updates.append(mirror.text),
        update_status=lambda status: statuses.append(status),
    )
    adapter = TextualVimAdapter(view, hooks)

    adapter.handle_textual_key("i")
    adapter.handle_textual_key("x", text="x")
    outcome = adapter.handle_textual_key("ESC")

    assert updates[-1] == "xalpha"
    assert "-- INSERT --" in statuses
    assert statuses[-1] == "-- NORMAL --"
    assert outcome.kind is OutcomeKind.CANCELLED


def test_adapter_relays_command_events(make_view) -> None:
    view = make_view()
    command_lines: List[str] = []
    events_seen: List[tuple[str, object | None]] = []
    hooks = TextualUIHooks(
        update_buffer=lambda mirror: None,
        show_command=lambda text: command_lines.append(text),
        handle_event=lambda name, payload: events_seen.append((name, payload)),
        update_status=lambda status: None,
    )
    adapter = TextualVimAdapter(view, hooks)

    adapter.handle_textual_key(":", text=":")
    adapter.handle_textual_key("w", text="w")
    adapter.handle_textual_key("q", text="q")
    assert command_lines[-1] == "wq"
    adapter.handle_textual_key("ENTER")

    assert command_lines[-1] == ""
    assert ("command.submit", "wq") in events_seen
    written = next(payload for name, payload in events_seen if name == "command.write")
    assert isinstance(written, dict)
    assert written["force"] is False
    assert any(name == "command.quit" for name, _ in events_seen)


def test_adapter_surfaces_visual_selection_events(make_view) -> None:
    view = make_view("alpha")
    seen: List[Dict[str, Any]] = []
    hooks = TextualUIHooks(
        update_buffer=lambda mirror: None,
        handle_event=lambda name, payload: seen.append(
            {"name": name, "payload": payload}
        ),
        update_status=lambda status: None,
    )
    adapter = TextualVimAdapter(view, hooks)

    adapter.handle_textual_key("v")
    adapter.handle_textual_key("l")

    visual_payloads = [event for event in seen if event["name"] == "visual.selection"]
    assert visual_payloads
    assert visual_payloads[-1]["payload"] == {"anchor": (0, 0), "cursor": (0, 1)}


def test_adapter_shows_error_messages_and_status(make_view) -> None:
    view = make_view()
    messages: List[Message] = []
    statuses: List[str] = []
    hooks = TextualUIHooks(
        update_buffer=lambda mirror: None,
        update_status=statuses.append,
        show_message=messages.append,
    )
    adapter = TextualVimAdapter(view, hooks)

    for key in ":bogus":
        adapter.handle_textual_key(key, text=key)
    outcome = adapter.handle_textual_key("ENTER")

    assert outcome.kind is OutcomeKind.ERROR
    assert messages[-1].id == "E492"
    assert messages[-1].level == "error"
    assert statuses[-1].startswith("-- NORMAL -- E492")


def test_adapter_emits_log_lines(make_view) -> None:
    view = make_view()
    logs: List[str] = []
    hooks = TextualUIHooks(
        update_buffer=lambda mirror: None,
        update_status=lambda status: None,
        show_command=lambda _: None,
        handle_event=lambda _name, _payload: None,
        log=lambda line: logs.append(line),
    )
    adapter = TextualVimAdapter(view, hooks)

    adapter.handle_textual_key("i")

    assert any(line.startswith("key ->") for line in logs)
    assert any(line.startswith("outcome <-") for line in logs)


def test_adapter_buffer_mirror_carries_mode(make_view) -> None:
    view = make_view("abc")
    mirrors = []
    adapter = TextualVimAdapter(view, TextualUIHooks(update_buffer=mirrors.append))

    adapter.handle_textual_key("V", text="V")

    assert mirrors[-1].attributes == {"mode": "VISUAL_LINE"}
    assert mirrors[-1].selection == ((0, 0), (0, 0))


def test_translate_key_maps_textual_events() -> None:
    printable = translate_key(events.Key("a", "a"))
    ctrl = translate_key(events.Key("ctrl+v", None))
    escape = translate_key(events.Key("escape", None))
    shifted = translate_key(events.Key("shift+down", None))

    assert printable is not None and printable.key == "a" and printable.text == "a"
    assert ctrl is not None and ctrl.key == "v" and ctrl.modifiers == ("ctrl",)
    assert escape is not None and escape.key == "ESC"
    assert shifted is not None and shifted.key == "DOWN"
    assert shifted.modifiers == ("shift",)
    assert translate_key(events.Key("ctrl+q", None)) is None
