from __future__ import annotations

import pytest

from vimterp.buffer import Buffer
from vimterp.ex import Address, LineRange, RangeResolver, parse_command, parse_range
from vimterp.ex.errors import ExParseError, ExValidationError, LookupMiss
from vimterp.runtime import EditorOptions
from vimterp.store import MarkStore

TEXT = "one\ntwo\nthree\nfour"


def make_resolver(*, row: int = 0, options: EditorOptions | None = None):
    buffer = Buffer.from_text(TEXT)
    buffer.state.set_cursor(row, 0)
    marks = MarkStore()
    return RangeResolver(buffer, marks, options), buffer, marks


def resolve(resolver: RangeResolver, text: str, **kwargs) -> LineRange:
    spec, _ = parse_range(text)
    assert spec is not None
    return resolver.resolve(spec, **kwargs)


def test_parse_command_splits_range_name_bang_and_argument() -> None:
    parsed = parse_command(":3,5d x 2")

    assert parsed.range is not None
    assert [address.value for address in parsed.range.addresses] == [3, 5]
    assert parsed.range.separator == ","
    assert parsed.name == "d"
    assert parsed.bang is False
    assert parsed.argument == "x 2"


def test_parse_command_reads_bang_and_keeps_argument_spacing() -> None:
    parsed = parse_command("w!  out.txt")

    assert parsed.name == "w"
    assert parsed.bang is True
    assert parsed.argument == " out.txt"


def test_parse_command_shift_name_is_a_single_symbol() -> None:
    parsed = parse_command(">>>")

    assert parsed.name == ">"
    assert parsed.argument == ">>"


def test_parse_command_empty_line_and_bare_range() -> None:
    assert parse_command(":").empty
    bare = parse_command("%")
    assert not bare.empty
    assert bare.name == ""
    assert bare.range is not None and bare.range.whole_buffer


def test_parse_range_reads_marks_offsets_and_patterns() -> None:
    spec, pos = parse_range("'a,'b+2d")
    assert spec is not None and pos == 7
    first, second = spec.addresses
    assert first == Address("mark", "a")
    assert second.kind == "mark" and second.offset == 2

    spec, _ = parse_range("/a\\/b/;?x?-")
    assert spec is not None and spec.separator == ";"
    assert spec.addresses[0] == Address("search_forward", "a/b")
    assert spec.addresses[1].kind == "search_backward"
    assert spec.addresses[1].offsets == (-1,)


def test_parse_range_bare_offset_counts_from_current_line() -> None:
    spec, _ = parse_range("+,$")

    assert spec is not None
    assert spec.addresses[0] == Address("current", None, (1,))
    assert spec.addresses[1].kind == "last"


def test_parse_range_rejects_mark_without_name() -> None:
    with pytest.raises(ExParseError) as excinfo:
        parse_range("'")
    assert excinfo.value.code == "E20"


def test_resolver_handles_current_last_and_whole_buffer() -> None:
    resolver, _, _ = make_resolver(row=1)

    assert resolve(resolver, ".,$") == LineRange(2, 4)
    assert resolve(resolver, "%") == LineRange(1, 4)
    assert resolve(resolver, ".+1") == LineRange(3, 3)


def test_resolver_semicolon_moves_the_base_line() -> None:
    resolver, _, _ = make_resolver(row=0)

    assert resolve(resolver, "2,+1") == LineRange(2, 2)
    assert resolve(resolver, "2;+1") == LineRange(2, 3)


def test_resolver_backwards_range() -> None:
    resolver, _, _ = make_resolver()

    with pytest.raises(ExValidationError) as excinfo:
        resolve(resolver, "4,2")
    assert excinfo.value.code == "E493"
    assert resolve(resolver, "4,2", allow_reversed=True) == LineRange(2, 4)


def test_resolver_rejects_lines_past_the_end() -> None:
    resolver, _, _ = make_resolver()

    with pytest.raises(ExValidationError) as excinfo:
        resolve(resolver, "5")
    assert excinfo.value.code == "E16"


def test_resolver_marks() -> None:
    resolver, buffer, marks = make_resolver()

    with pytest.raises(LookupMiss) as excinfo:
        resolve(resolver, "'a")
    assert excinfo.value.code == "E20"

    marks.set_mark(buffer, "a", (1, 2))
    marks.set_mark(buffer, "b", (3, 0))
    assert resolve(resolver, "'a,'b") == LineRange(2, 4)


def test_resolver_searches_forward_backward_and_reuses_pattern() -> None:
    resolver, _, _ = make_resolver(row=1)

    assert resolve(resolver, "/thr/") == LineRange(3, 3)
    assert resolve(resolver, "?one?") == LineRange(1, 1)
    assert resolve(resolver, "//") == LineRange(1, 1)
    assert resolver.state["pattern"] == "one"


def test_resolver_search_wraps_around() -> None:
    resolver, _, _ = make_resolver(row=3)

    assert resolve(resolver, "/two/") == LineRange(2, 2)


def test_resolver_search_failures_depend_on_wrapscan() -> None:
    resolver, _, _ = make_resolver()
    with pytest.raises(LookupMiss) as excinfo:
        resolve(resolver, "/missing/")
    assert excinfo.value.code == "E486"

    no_wrap, _, _ = make_resolver(row=3, options=EditorOptions(wrapscan=False))
    with pytest.raises(LookupMiss) as excinfo:
        resolve(no_wrap, "/one/")
    assert excinfo.value.code == "E385"
    with pytest.raises(LookupMiss) as excinfo:
        resolve(no_wrap, "?four?")
    assert excinfo.value.code == "E384"


def test_resolver_empty_pattern_without_history() -> None:
    resolver, _, _ = make_resolver()

    with pytest.raises(ExValidationError) as excinfo:
        resolve(resolver, "//")
    assert excinfo.value.code == "E35"


def test_resolver_ignorecase_option() -> None:
    resolver, _, _ = make_resolver(options=EditorOptions(ignorecase=True))

    assert resolve(resolver, "/THREE/") == LineRange(3, 3)


def test_address_kind_must_be_known() -> None:
    assert Address("mark", "a").kind == "mark"
    with pytest.raises(ValueError):
        Address("line", 3)
