from __future__ import annotations

import pytest

from helpers import feed

from vimterp.actions.core import INSERT_SCOPE
from vimterp.modes import EditorMode, OutcomeKind


def mark_at(view, name: str):
    mark = view.context.marks.get_mark(view.buffer, name)
    return None if mark is None else mark.cursor


def test_visual_selection_is_inclusive(make_view) -> None:
    view = make_view("one two")

    entered = feed(view, "v")
    assert entered.kind is OutcomeKind.MODE_CHANGED
    assert entered.mode is EditorMode.VISUAL_CHARACTER

    feed(view, "e")
    assert view.buffer.state.selection == ((0, 0), (0, 2))

    done = feed(view, "d")
    assert done.kind is OutcomeKind.MODE_CHANGED
    assert done.mode is EditorMode.NORMAL
    assert view.text == " two"
    assert view.context.registers.get('"').text == "one"
    assert view.buffer.state.selection is None


def test_visual_yank_records_selection_marks(make_view) -> None:
    view = make_view("one two")

    feed(view, "vey")

    assert view.text == "one two"
    assert view.context.registers.get("0").text == "one"
    assert view.buffer.state.cursor == (0, 0)
    assert mark_at(view, "<") == (0, 0)
    assert mark_at(view, ">") == (0, 2)


def test_visual_line_delete(make_view) -> None:
    view = make_view("a\nb\nc")

    feed(view, "Vjd")

    assert view.text == "c"
    assert view.context.registers.get('"').text == "a\nb\n"


def test_visual_block_delete(make_view) -> None:
    view = make_view("abc\ndef\nghi")

    feed(view, "<C-v>jl")
    assert view.mode is EditorMode.VISUAL_BLOCK
    feed(view, "d")

    assert view.text == "c\nf\nghi"
    assert view.context.registers.get('"').text == "ab\nde"


def test_same_visual_key_leaves_and_escape_cancels(make_view) -> None:
    view = make_view("abc")

    left = feed(view, "vv")
    assert left.kind is OutcomeKind.MODE_CHANGED
    assert left.mode is EditorMode.NORMAL

    feed(view, "V")
    cancelled = feed(view, "<Esc>")
    assert cancelled.kind is OutcomeKind.CANCELLED
    assert cancelled.mode is EditorMode.NORMAL
    assert view.buffer.state.selection is None


def test_visual_colon_prefills_selection_range(make_view) -> None:
    view = make_view("a\nb\nc")

    opened = feed(view, "vj:")
    assert opened.mode is EditorMode.CMD_LINE
    assert view.context.extras["command_state"]["text"] == "'<,'>"

    done = feed(view, "d<CR>")
    assert done.kind is OutcomeKind.APPLIED
    assert done.mode is EditorMode.NORMAL
    assert view.text == "c"


def test_select_typing_replaces_selection_in_one_undo_step(make_view) -> None:
    view = make_view("one two")

    entered = feed(view, "gh")
    assert entered.kind is OutcomeKind.MODE_CHANGED
    assert entered.mode is EditorMode.SELECT_CHARACTER

    typed = feed(view, "X")
    assert typed.kind is OutcomeKind.MODE_CHANGED
    assert typed.mode is EditorMode.INSERT
    assert view.text == "Xne two"
    assert view.context.registers.get('"').text == ""

    feed(view, "<Esc>u")
    assert view.text == "one two"


@pytest.mark.parametrize("key", ["a", "<BS>"])
def test_select_edit_on_read_only_buffer_stays_in_select(make_view, key: str) -> None:
    view = make_view("one two", writable=False)
    feed(view, "gh")
    selection = view.buffer.state.selection

    failed = feed(view, key)

    assert failed.kind is OutcomeKind.ERROR
    assert failed.reason is not None and failed.reason.startswith("E21")
    assert view.mode is EditorMode.SELECT_CHARACTER
    assert view.buffer.state.selection == selection
    assert INSERT_SCOPE not in view.context.extras

    # later edits still undo one at a time
    view.buffer.writable = True
    feed(view, "<Esc>0xx")
    assert view.text == "e two"
    feed(view, "u")
    assert view.text == "ne two"


def test_select_extends_with_shifted_arrows(make_view) -> None:
    view = make_view("one two")

    feed(view, "gh<S-Right>Z")

    assert view.text == "Ze two"


def test_select_backspace_deletes_into_black_hole(make_view) -> None:
    view = make_view("one")

    outcome = feed(view, "gh<BS>")

    assert outcome.mode is EditorMode.INSERT
    assert view.text == "ne"
    assert view.context.registers.get('"').text == ""


def test_ctrl_g_converts_visual_to_exclusive_select(make_view) -> None:
    view = make_view("one two")

    switched = feed(view, "vl<C-g>")
    assert switched.mode is EditorMode.SELECT_CHARACTER

    feed(view, "Z")
    assert view.text == "Ze two"


def test_shifted_arrow_moves_without_startsel(make_view) -> None:
    view = make_view("one two")

    outcome = feed(view, "<S-Right>")

    assert outcome.kind is OutcomeKind.APPLIED
    assert view.mode is EditorMode.NORMAL
    assert view.buffer.state.cursor == (0, 1)


def test_keymodel_startsel_and_stopsel(make_view) -> None:
    view = make_view("one two")
    assert view.execute("set km=startsel,stopsel").ok

    started = feed(view, "<S-Right>")
    assert started.kind is OutcomeKind.MODE_CHANGED
    assert started.mode is EditorMode.SELECT_CHARACTER
    assert view.buffer.state.selection == ((0, 0), (0, 1))

    stopped = feed(view, "<Right>")
    assert stopped.mode is EditorMode.NORMAL
    assert view.buffer.state.selection is None
    assert view.buffer.state.cursor == (0, 2)


def test_unshifted_arrow_extends_visual_without_stopsel(make_view) -> None:
    view = make_view("one two")

    feed(view, "v<Right>")

    assert view.mode is EditorMode.VISUAL_CHARACTER
    assert view.buffer.state.selection == ((0, 0), (0, 1))
