from __future__ import annotations

import pytest
from helpers import feed

from vimterp import EditorSession
from vimterp.modes import EditorMode


def mark_at(view, name: str):
    mark = view.context.marks.get_mark(view.buffer, name)
    return None if mark is None else mark.cursor


def test_session_defaults_to_process_store(fresh_store) -> None:
    session = EditorSession()

    assert session.store is fresh_store
    assert session.views == []


def test_views_share_registers_and_options(session: EditorSession) -> None:
    first = session.open_view("alpha\n", name="first")
    second = session.open_view("beta\n", name="second")

    feed(first, "yy")
    feed(second, "p")
    first.execute("set sw=8")

    assert second.text == "beta\nalpha\n"
    assert second.context.options.shiftwidth == 8
    assert session.views == [first, second]


def test_views_keep_their_own_modes(session: EditorSession) -> None:
    first = session.open_view("a", name="first")
    second = session.open_view("b", name="second")

    feed(first, "i")

    assert first.mode is EditorMode.INSERT
    assert second.mode is EditorMode.NORMAL
    assert first.bus is not second.bus


def test_change_marks_follow_the_latest_edit(make_view) -> None:
    view = make_view("abc")

    feed(view, "ahi<Esc>")

    assert mark_at(view, ".") == (0, 2)
    assert mark_at(view, "[") == (0, 2)
    assert mark_at(view, "]") == (0, 3)


def test_close_view_purges_local_marks_and_reattaches_globals(
    session: EditorSession,
) -> None:
    view = session.open_view("one\ntwo", name="notes")
    feed(view, "majmA")

    session.close_view(view)
    assert view not in session.views

    reopened = session.open_view("one\ntwo", name="notes")
    assert mark_at(reopened, "a") is None
    global_mark = reopened.context.marks.get_mark(reopened.buffer, "A")
    assert global_mark.buffer_id == reopened.buffer.id

    feed(reopened, "'A")
    assert reopened.buffer.state.cursor == (1, 0)


def test_closed_view_stops_tracking_edits(session: EditorSession) -> None:
    view = session.open_view("one\ntwo", name="notes")
    feed(view, "x")
    assert mark_at(view, ".") == (0, 0)
    session.close_view(view)

    view.buffer.insert_text("new\n", cursor=(0, 0))

    assert mark_at(view, ".") is None


def test_closing_twice_is_an_error(session: EditorSession) -> None:
    view = session.open_view("text")
    session.close_view(view)

    with pytest.raises(ValueError):
        session.close_view(view)


def test_ex_messages_reach_the_view(make_view) -> None:
    view = make_view("abc")

    result = view.execute("echo 'hi'")

    assert result.ok
    assert view.last_message.text == "hi"
