from __future__ import annotations

from helpers import feed

from vimterp.modes import EditorMode, OutcomeKind


def command_text(view) -> str:
    return view.context.extras["command_state"]["text"]


def test_colon_enters_command_line_and_submit_runs_it(make_view) -> None:
    view = make_view("abc")

    entered = feed(view, ":")
    assert entered.kind is OutcomeKind.MODE_CHANGED
    assert entered.mode is EditorMode.CMD_LINE

    editing = feed(view, "set sw=2")
    assert editing.kind is OutcomeKind.PENDING
    assert command_text(view) == "set sw=2"

    done = feed(view, "<CR>")
    assert done.kind is OutcomeKind.APPLIED
    assert done.mode is EditorMode.NORMAL
    assert view.session.options.shiftwidth == 2


def test_count_prefills_a_line_range(make_view) -> None:
    view = make_view("1\n2\n3\n4\n5")

    feed(view, "3:")
    assert command_text(view) == ".,.+2"

    feed(view, "d<CR>")
    assert view.text == "4\n5"
    assert view.last_message.text == "3 fewer lines"


def test_count_of_one_prefills_current_line(make_view) -> None:
    view = make_view("1\n2")

    feed(view, "1:")

    assert command_text(view) == "."


def test_errors_return_to_normal_with_message(make_view) -> None:
    view = make_view("abc")

    outcome = feed(view, ":bogus<CR>")

    assert outcome.kind is OutcomeKind.ERROR
    assert outcome.mode is EditorMode.NORMAL
    assert outcome.reason.startswith("E492")
    assert view.last_message.id == "E492"
    assert view.last_message.level == "error"


def test_empty_line_just_leaves(make_view) -> None:
    view = make_view("abc")

    outcome = feed(view, ":<CR>")

    assert outcome.kind is OutcomeKind.MODE_CHANGED
    assert outcome.mode is EditorMode.NORMAL
    assert view.messages == []


def test_escape_and_backspace_on_empty_line_cancel(make_view) -> None:
    view = make_view("abc")

    escaped = feed(view, ":dd<Esc>")
    assert escaped.kind is OutcomeKind.CANCELLED
    assert view.text == "abc"

    feed(view, ":ab<BS>")
    assert command_text(view) == "a"
    feed(view, "<BS>")
    cancelled = feed(view, "<BS>")
    assert cancelled.kind is OutcomeKind.CANCELLED
    assert cancelled.mode is EditorMode.NORMAL


def test_ctrl_u_clears_the_line(make_view) -> None:
    view = make_view("abc")

    feed(view, ":echo 1<C-u>")

    assert command_text(view) == ""
    assert view.mode is EditorMode.CMD_LINE


def test_history_recall(make_view) -> None:
    view = make_view("abc")
    feed(view, ":set ic<CR>")
    feed(view, ":set noic<CR>")

    feed(view, ":<Up>")
    assert command_text(view) == "set noic"
    feed(view, "<Up>")
    assert command_text(view) == "set ic"
    feed(view, "<Up>")
    assert command_text(view) == "set ic"
    feed(view, "<Down>")
    assert command_text(view) == "set noic"
    feed(view, "<Down>")
    assert command_text(view) == ""


def test_command_that_switches_mode(make_view) -> None:
    view = make_view("abc")

    outcome = feed(view, ":startinsert<CR>")

    assert outcome.kind is OutcomeKind.MODE_CHANGED
    assert outcome.mode is EditorMode.INSERT
