from __future__ import annotations

import pytest

from vimterp.runtime import EditorOptions, OptionError


def test_defaults() -> None:
    options = EditorOptions()

    assert options.timeoutlen == 1000
    assert options.wrapscan is True
    assert options.ignorecase is False
    assert options.shiftwidth == 4
    assert options.keymodel == ()


def test_from_env_reads_prefixed_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VIMTERP_TIMEOUTLEN", "250")
    monkeypatch.setenv("VIMTERP_WRAPSCAN", "no")
    monkeypatch.setenv("VIMTERP_IGNORECASE", "yes")
    monkeypatch.setenv("VIMTERP_SHIFTWIDTH", "wide")
    monkeypatch.setenv("VIMTERP_KEYMODEL", "startsel, bogus,stopsel")

    options = EditorOptions.from_env()

    assert options.timeoutlen == 250
    assert options.wrapscan is False
    assert options.ignorecase is True
    assert options.shiftwidth == 4
    assert options.keymodel == ("startsel", "stopsel")
    assert options.has_keymodel("stopvisual", "stopsel")
    assert not options.has_keymodel("stopselect")


def test_apply_accepts_short_names_and_boolean_prefixes() -> None:
    options = EditorOptions()

    assert options.apply("ic") is None
    assert options.ignorecase is True
    options.apply("noic")
    assert options.ignorecase is False
    options.apply("invws")
    assert options.wrapscan is False
    options.apply("tm=300")
    assert options.timeoutlen == 300


def test_apply_queries() -> None:
    options = EditorOptions(keymodel=("startsel",))

    assert options.apply("ws?") == "wrapscan"
    assert options.apply("ignorecase?") == "noignorecase"
    assert options.apply("sw") == "shiftwidth=4"
    assert options.apply("km?") == "keymodel=startsel"
    assert options.apply("   ") is None


@pytest.mark.parametrize(
    ("item", "code"),
    [
        ("nosuch", "E518"),
        ("nosw", "E518"),
        ("ic=1", "E474"),
        ("sw=two", "E521"),
        ("tm=-5", "E487"),
        ("km=startsel,sideways", "E474"),
    ],
)
def test_apply_errors_carry_vim_codes(item: str, code: str) -> None:
    with pytest.raises(OptionError) as excinfo:
        EditorOptions().apply(item)

    assert excinfo.value.code == code
    assert str(excinfo.value).startswith(code)


def test_copy_and_as_dict_are_independent() -> None:
    options = EditorOptions()
    clone = options.copy()
    clone.apply("sw=8")

    assert options.shiftwidth == 4
    assert clone.as_dict()["shiftwidth"] == 8
    assert set(options.as_dict()) == {
        "timeoutlen",
        "wrapscan",
        "ignorecase",
        "shiftwidth",
        "keymodel",
    }
