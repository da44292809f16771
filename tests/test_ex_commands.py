from __future__ import annotations

from typing import List

import pytest

from vimterp.modes import EditorMode
from vimterp.store import RegisterValue

FIVE = "one\ntwo\nthree\nfour\nfive"


def test_delete_range_fills_unnamed_and_numbered_registers(make_view) -> None:
    view = make_view(FIVE)

    result = view.execute("2,4d")

    assert view.text == "one\nfive"
    assert result.message is not None and result.message.text == "3 fewer lines"
    assert view.buffer.state.cursor == (1, 0)
    registers = view.context.registers
    assert registers.get('"').text == "two\nthree\nfour\n"
    assert registers.get("1").text == "two\nthree\nfour\n"
    assert registers.get("1").is_linewise


def test_delete_into_named_register_with_count(make_view) -> None:
    view = make_view(FIVE)

    result = view.execute("2d a 2")

    assert view.text == "one\nfour\nfive"
    assert result.ok and result.message is None
    assert view.context.registers.get("a").text == "two\nthree\n"


def test_delete_accepts_reversed_range(make_view) -> None:
    view = make_view(FIVE)

    assert view.execute("4,2d").ok
    assert view.text == "one\nfive"


@pytest.mark.parametrize(("line", "code"), [("d .", "E488"), ("d 0", "E939")])
def test_delete_argument_errors(make_view, line: str, code: str) -> None:
    view = make_view(FIVE)

    result = view.execute(line)

    assert result.message is not None and result.message.id == code
    assert view.text == FIVE


def test_yank_keeps_cursor_and_appends_to_uppercase_register(make_view) -> None:
    view = make_view(FIVE)
    view.buffer.state.set_cursor(2, 1)

    result = view.execute("%y")
    assert result.message is not None and result.message.text == "5 lines yanked"
    assert view.buffer.state.cursor == (2, 1)
    assert view.context.registers.get("0").text == FIVE + "\n"

    view.execute("1y a")
    view.execute("3y A")
    stored = view.context.registers.get("a")
    assert stored.text == "one\nthree\n"
    assert stored.type == "line"


def test_put_after_last_line_and_before_first(make_view) -> None:
    view = make_view("one\ntwo\nthree")
    view.execute("1y")

    assert view.execute("$put").ok
    assert view.text == "one\ntwo\nthree\none"
    assert view.buffer.state.cursor == (3, 0)

    assert view.execute("0put").ok
    assert view.text == "one\none\ntwo\nthree\none"
    assert view.buffer.state.cursor == (0, 0)


def test_put_bang_pastes_above_and_characterwise_text_becomes_a_line(
    make_view,
) -> None:
    view = make_view("alpha\nbeta")
    view.context.registers.set("b", RegisterValue("x"))

    assert view.execute("2put! b").ok

    assert view.text == "alpha\nx\nbeta"


def test_put_empty_register_reports_e353(make_view) -> None:
    view = make_view("one")

    result = view.execute("put x")

    assert result.message is not None
    assert result.message.text == "E353: Nothing in register x"


def test_join_current_line_range_and_count(make_view) -> None:
    view = make_view("one\n  two\nthree")
    assert view.execute("j").ok
    assert view.text == "one two\nthree"
    assert view.buffer.state.cursor == (0, 3)

    view = make_view("one\n  two\nthree", name="second")
    assert view.execute("j 3").ok
    assert view.text == "one two three"

    last = make_view("a\nb", name="third")
    last.buffer.state.set_cursor(1, 0)
    assert last.execute("j").ok
    assert last.text == "a\nb"


def test_shift_commands_use_shiftwidth_and_repeat(make_view) -> None:
    view = make_view("a\nb\n\nc")

    assert view.execute("%>").ok
    assert view.text == "    a\n    b\n\n    c"
    assert view.buffer.state.cursor == (3, 4)

    assert view.execute("<").ok
    assert view.text == "    a\n    b\n\nc"

    assert view.execute("1>>").ok
    assert view.buffer.get_line(0) == "            a"

    view.execute("set sw=2")
    assert view.execute("2<").ok
    assert view.buffer.get_line(1) == "  b"


def test_delmarks_ranges_and_events(make_view, session) -> None:
    view = make_view(FIVE)
    marks = session.store.marks
    for index, name in enumerate("abcd"):
        marks.set_mark(view.buffer, name, (index, 0))
    deleted: List[object] = []
    view.bus.subscribe("marks.deleted", deleted.append)

    assert view.execute("delm a-c").ok

    assert deleted == [["a", "b", "c"]]
    assert [mark.name for mark in marks.marks_for(view.buffer)] == ["d"]


@pytest.mark.parametrize(
    ("line", "text"),
    [
        ("delm 1", "E475: Invalid argument: 1"),
        ("delm a-", "E475: Invalid argument: a-"),
        ("delm z-a", "E475: Invalid argument: z-a"),
        ("delm 1-3", "E475: Invalid argument: 123"),
        ("delm b 7", "E475: Invalid argument: 7"),
        ("delm", "E471: Argument required"),
    ],
)
def test_delmarks_errors(make_view, line: str, text: str) -> None:
    view = make_view(FIVE)

    result = view.execute(line)

    assert result.message is not None and result.message.text == text


def test_delmarks_uppercase_runs_comments_and_missing_marks(
    make_view, session
) -> None:
    view = make_view(FIVE)
    other = make_view("elsewhere", name="other")
    marks = session.store.marks
    for name in "ABCD":
        marks.set_mark(other if name == "B" else view.buffer, name, (0, 0))
    marks.set_mark(view.buffer, "b", (1, 0))
    marks.set_mark(view.buffer, "c", (2, 0))
    deleted: List[object] = []
    view.bus.subscribe("marks.deleted", deleted.append)

    assert view.execute('delm A-C b "forget these').ok
    assert view.execute("delm x").ok

    assert deleted == [["A", "B", "C", "b"], []]
    assert sorted(marks.global_marks()) == ["D"]
    assert [mark.name for mark in marks.marks_for(view.buffer)] == ["c", "D"]
    assert view.messages == []


def test_marks_listing(make_view, session) -> None:
    view = make_view("one\ntwo")
    other = make_view("elsewhere", name="other")

    empty = view.execute("marks")
    assert empty.message is not None and empty.message.text == "No marks set"

    marks = session.store.marks
    marks.set_mark(view.buffer, "a", (0, 0))
    marks.set_mark(view.buffer, "B", (1, 2))
    marks.set_mark(other.buffer, "C", (0, 4))

    listing = view.execute("marks")
    assert listing.output[0] == "mark line  col file/text"
    rows = [line.split() for line in listing.output[1:]]
    assert rows == [
        ["a", "1", "0", "one"],
        ["B", "2", "2", "two"],
        ["C", "1", "4", "other"],
    ]

    filtered = view.execute("marks aC")
    assert len(filtered.output) == 3

    missing = view.execute("marks z")
    assert missing.message is not None
    assert missing.message.text == 'E283: No marks matching "z"'


def test_mark_command_sets_mark_on_range_line(make_view, session) -> None:
    view = make_view(FIVE)

    assert view.execute("3mark x").ok
    mark = session.store.marks.get_mark(view.buffer, "x")
    assert mark is not None and mark.cursor == (2, 0)

    bad = view.execute("mark 1")
    assert bad.message is not None and bad.message.id == "E191"
    too_long = view.execute("mark ab")
    assert too_long.message is not None and too_long.message.id == "E488"


def test_set_changes_and_queries_options(make_view, session) -> None:
    view = make_view()
    changed: List[object] = []
    view.bus.subscribe("options.changed", changed.append)

    assert view.execute("set sw=2 ic").ok
    assert session.options.shiftwidth == 2
    assert session.options.ignorecase is True
    assert changed and changed[-1]["shiftwidth"] == 2

    query = view.execute("set sw? ic?")
    assert query.message is not None
    assert query.message.text == "shiftwidth=2  ignorecase"

    view.execute("set noic invws km=startsel,stopsel")
    assert session.options.ignorecase is False
    assert session.options.wrapscan is False
    assert session.options.keymodel == ("startsel", "stopsel")

    listing = view.execute("set")
    assert listing.output[0] == "--- Options ---"
    assert "shiftwidth=2" in listing.output


@pytest.mark.parametrize(
    ("line", "code"),
    [
        ("set bogus", "E518"),
        ("set ws=1", "E474"),
        ("set sw=x", "E521"),
        ("set sw=0", "E487"),
        ("set km=foo", "E474"),
    ],
)
def test_set_errors(make_view, session, line: str, code: str) -> None:
    view = make_view()

    result = view.execute(line)

    assert result.message is not None and result.message.id == code
    assert session.options.shiftwidth == 4


def test_registers_listing_and_filter(make_view) -> None:
    view = make_view("one\ntwo")
    view.execute("1y")

    listing = view.execute("registers")
    assert listing.output[0] == "Type Name Content"
    assert '  l  ""   one^J' in listing.output
    assert '  l  "0   one^J' in listing.output

    filtered = view.execute("di 0")
    assert filtered.output == ("Type Name Content", '  l  "0   one^J')


def test_echo_strips_surrounding_quotes_and_keeps_inner_quotes(make_view) -> None:
    view = make_view()
    echoed: List[object] = []
    view.bus.subscribe("command.echo", echoed.append)

    view.execute('echo "hello"')
    view.execute("ec 'it \" stays'")

    assert echoed == ["hello", 'it " stays']
    assert view.last_message is not None
    assert view.last_message.text == 'it " stays'


def test_startinsert_and_stopinsert_switch_modes(make_view) -> None:
    view = make_view("abc")

    assert view.execute("startinsert").ok
    assert view.mode is EditorMode.INSERT
    assert view.execute("stopi").ok
    assert view.mode is EditorMode.NORMAL

    assert view.execute("star!").ok
    assert view.mode is EditorMode.INSERT
    assert view.buffer.state.cursor == (0, 3)


def test_undo_and_redo_commands(make_view) -> None:
    view = make_view(FIVE)

    nothing = view.execute("undo")
    assert nothing.message is not None
    assert nothing.message.text == "Already at oldest change"

    view.execute("1,2d")
    assert view.text == "three\nfour\nfive"
    assert view.execute("u").ok
    assert view.text == FIVE
    assert view.execute("red").ok
    assert view.text == "three\nfour\nfive"

    done = view.execute("redo")
    assert done.message is not None
    assert done.message.text == "Already at newest change"
