from __future__ import annotations

from typing import Dict, List

import pytest
from helpers import make_context

from vimterp.keymaps import Binding, KeySequence
from vimterp.modes import (
    EditorMode,
    NormalMode,
    Outcome,
    OutcomeKind,
    parse_keys,
    register_default_modes,
)
from vimterp.modes import mode_manager as mode_manager_module
from vimterp.modes.mode_manager import ModeManager


def type_keys(manager: ModeManager, notation: str) -> List[Outcome]:
    return [manager.feed(key) for key in parse_keys(notation)]


def add_binding(manager: ModeManager, binding_id: str, keys: str, action: str) -> None:
    manager.keymap_registry.register_binding(
        Binding(
            id=binding_id,
            mode="normal",
            sequence=KeySequence.parse(keys),
            action_id=action,
        )
    )


@pytest.fixture
def manager() -> ModeManager:
    return register_default_modes(ModeManager(make_context("alpha\nbeta")))


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> List[float]:
    now = [100.0]
    monkeypatch.setattr(mode_manager_module.time, "monotonic", lambda: now[0])
    return now


def test_first_registered_mode_is_the_base(manager: ModeManager) -> None:
    assert manager.mode_stack == ("normal",)
    assert manager.current_mode is EditorMode.NORMAL
    assert manager.context.extras["mode_manager"] is manager
    with pytest.raises(ValueError):
        manager.register_mode(NormalMode)
    with pytest.raises(KeyError):
        manager.get_mode("ex")


def test_manager_without_modes_refuses_keys() -> None:
    bare = ModeManager(make_context())

    assert bare.active_mode is None
    assert bare.current_mode is EditorMode.NORMAL
    with pytest.raises(RuntimeError):
        bare.handle_key(parse_keys("i")[0])


def test_switching_replaces_the_mode_above_the_base(manager: ModeManager) -> None:
    manager.switch_mode("insert")
    manager.switch_mode("replace")
    assert manager.mode_stack == ("normal", "replace")

    manager.push_mode("command")
    assert manager.mode_stack == ("normal", "replace", "command")

    manager.pop_mode()
    assert manager.current_mode is EditorMode.REPLACE

    manager.reset_to_base()
    manager.pop_mode()
    assert manager.mode_stack == ("normal",)


def test_escape_from_command_line_is_cancelled(manager: ModeManager) -> None:
    outcomes = type_keys(manager, ":se<Esc>")

    assert [o.kind for o in outcomes] == [
        OutcomeKind.MODE_CHANGED,
        OutcomeKind.PENDING,
        OutcomeKind.PENDING,
        OutcomeKind.CANCELLED,
    ]
    assert manager.mode_stack == ("normal",)


def test_forced_timeout_abandons_a_partial_sequence(manager: ModeManager) -> None:
    add_binding(manager, "normal.zz", "z z", "core.enter_insert")

    pending = manager.handle_key(parse_keys("z")[0])
    assert pending.status == "pending"
    assert pending.timeout_ms == 1000

    expired = manager.force_timeout("normal")

    assert expired["normal"].status == "timeout"
    assert expired["normal"].consumed is False
    assert manager.force_timeout("normal") == {}


def test_deadlines_follow_the_clock(manager: ModeManager, clock: List[float]) -> None:
    manager.keymap_registry.override_sequence_timeouts(timeout_ms=200, mode="normal")

    assert manager.feed(parse_keys("g")[0]).kind is OutcomeKind.PENDING

    clock[0] += 0.1
    assert manager.process_timeouts() == {}

    clock[0] += 0.15
    outcomes: Dict[str, Outcome] = manager.process_timeouts()

    assert outcomes["normal"].kind is OutcomeKind.ERROR
    assert manager.process_timeouts() == {}


def test_timeout_runs_the_complete_prefix(
    manager: ModeManager, clock: List[float]
) -> None:
    add_binding(manager, "normal.z", "z", "core.enter_insert")
    add_binding(manager, "normal.zu", "z u", "core.undo")

    manager.feed(parse_keys("z")[0])
    clock[0] += 5

    outcome = manager.process_timeouts()["normal"]

    assert outcome.kind is OutcomeKind.MODE_CHANGED
    assert manager.current_mode is EditorMode.INSERT


def test_unmatched_continuation_is_replayed(manager: ModeManager) -> None:
    add_binding(manager, "normal.z", "z", "core.enter_insert")
    add_binding(manager, "normal.zu", "z u", "core.undo")

    outcomes = type_keys(manager, "zq")

    assert outcomes[-1].kind is OutcomeKind.MODE_CHANGED
    assert outcomes[-1].mode is EditorMode.INSERT
    assert manager.context.buffer.text == "qalpha\nbeta"


def test_visual_anchor_swap(manager: ModeManager) -> None:
    type_keys(manager, "vl")
    state = manager.context.buffer.state
    assert state.selection == ((0, 0), (0, 1))

    type_keys(manager, "o")

    assert state.cursor == (0, 0)
    assert state.selection == ((0, 1), (0, 0))


def test_host_commands_reach_the_bus(manager: ModeManager) -> None:
    events: List[tuple] = []
    bus = manager.context.bus
    for name in ("command.submit", "command.write", "command.quit", "command.edit"):
        bus.subscribe(name, lambda payload, name=name: events.append((name, payload)))

    type_keys(manager, ":w!<CR>:x<CR>:edit! notes.txt<CR>")

    names = [name for name, _ in events]
    assert names == [
        "command.submit",
        "command.write",
        "command.submit",
        "command.write",
        "command.quit",
        "command.submit",
        "command.edit",
    ]
    assert events[1][1]["force"] is True
    assert events[3][1]["force"] is False
    assert events[6][1]["args"] == ["notes.txt"]
    assert manager.mode_stack == ("normal",)
