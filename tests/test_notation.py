from __future__ import annotations

import pytest

from vimterp.modes import KeyInput, parse_keys
from vimterp.modes.notation import (
    is_backspace,
    is_escape,
    key_text,
    key_to_token,
    normalize_key,
    normalize_modifiers,
)


def test_plain_characters_and_escape() -> None:
    keys = parse_keys("d2w<Esc>")

    assert [key.key for key in keys] == ["d", "2", "w", "ESC"]
    assert keys[0] == KeyInput(key="d", text="d")
    assert keys[-1].text is None


@pytest.mark.parametrize(
    ("notation", "expected"),
    [
        ("<C-v>", KeyInput(key="v", modifiers=("ctrl",))),
        ("<C-V>", KeyInput(key="v", modifiers=("ctrl",))),
        ("<S-Down>", KeyInput(key="DOWN", modifiers=("shift",))),
        ("<CR>", KeyInput(key="ENTER")),
        ("<BS>", KeyInput(key="BACKSPACE")),
        ("<lt>", KeyInput(key="<", text="<")),
        ("<Space>", KeyInput(key=" ", text=" ")),
        ("<C-->", KeyInput(key="-", modifiers=("ctrl",))),
        ("<A-x>", KeyInput(key="x", modifiers=("alt",))),
    ],
)
def test_bracketed_names(notation: str, expected: KeyInput) -> None:
    assert parse_keys(notation) == [expected]


def test_unknown_bracketed_names_are_literal() -> None:
    keys = parse_keys("<nope>")

    assert "".join(key.key for key in keys) == "<nope>"
    assert [key.key for key in parse_keys("<X-a>")] == list("<X-a>")


def test_normalizers() -> None:
    assert normalize_key("escape") == "ESC"
    assert normalize_key("Return") == "ENTER"
    assert normalize_key("x") == "x"
    assert normalize_key("F5") == "F5"
    assert normalize_modifiers(["S", "c", "ctrl", " "]) == ("ctrl", "shift")


def test_key_text() -> None:
    assert key_text(KeyInput(key="a")) == "a"
    assert key_text(KeyInput(key="A", modifiers=("shift",))) == "A"
    assert key_text(KeyInput(key="TAB")) == "\t"
    assert key_text(KeyInput(key="v", modifiers=("ctrl",))) is None
    assert key_text(KeyInput(key="ESC")) is None


def test_escape_and_backspace_aliases() -> None:
    assert is_escape(KeyInput(key="escape"))
    assert is_escape(KeyInput(key="[", modifiers=("ctrl",)))
    assert not is_escape(KeyInput(key="[", text="["))
    assert is_backspace(KeyInput(key="BACKSPACE"))
    assert is_backspace(KeyInput(key="h", modifiers=("ctrl",)))
    assert not is_backspace(KeyInput(key="h"))


def test_key_to_token() -> None:
    assert key_to_token(KeyInput(key="v", modifiers=("ctrl",))) == "ctrl+v"
    assert key_to_token(KeyInput(key="A", modifiers=("shift",))) == "A"
    assert key_to_token(KeyInput(key="down", modifiers=("shift",))) == "shift+DOWN"
    assert key_to_token(KeyInput(key="escape")) == "ESC"
