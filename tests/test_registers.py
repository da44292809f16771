from __future__ import annotations

import pytest

from vimterp.store import RegisterBank, RegisterError, RegisterValue
from vimterp.store.registers import is_valid_register


@pytest.fixture
def bank() -> RegisterBank:
    return RegisterBank()


def test_small_deletes_go_to_minus_register(bank: RegisterBank) -> None:
    bank.delete_to('"', "abc")

    assert bank.get("-").text == "abc"
    assert bank.get('"').text == "abc"
    assert bank.get("1").text == ""


def test_linewise_and_multiline_deletes_shift_numbered_history(
    bank: RegisterBank,
) -> None:
    bank.delete_to('"', "first\n", register_type="line")
    bank.delete_to('"', "a\nb")
    bank.delete_to('"', "third\n", register_type="line")

    assert bank.get("1").text == "third\n"
    assert bank.get("2").text == "a\nb"
    assert bank.get("3").text == "first\n"
    assert bank.get("-").text == ""


def test_named_delete_fills_unnamed_but_not_history(bank: RegisterBank) -> None:
    bank.delete_to("q", "line\n", register_type="line")

    assert bank.get("q").is_linewise
    assert bank.get('"').text == "line\n"
    assert bank.get("1").text == ""


def test_yank_targets_register_zero_only_when_unnamed(bank: RegisterBank) -> None:
    bank.yank_to('"', "one")
    bank.yank_to("b", "two")

    assert bank.get("0").text == "one"
    assert bank.get("b").text == "two"
    assert bank.get('"').text == "two"


def test_uppercase_names_append(bank: RegisterBank) -> None:
    bank.set("a", RegisterValue("foo"))
    bank.set("A", RegisterValue("bar"))
    assert bank.get("a").text == "foobar"

    bank.append("a", "baz\n", register_type="line")
    merged = bank.get("a")
    assert merged.text == "foobar\nbaz\n"
    assert merged.type == "line"
    assert bank.get('"').text == "foobar\nbaz\n"

    bank.set("N", RegisterValue("new"))
    assert bank.get("n").text == "new"


def test_black_hole_discards_everything(bank: RegisterBank) -> None:
    bank.set('"', RegisterValue("keep"))

    bank.set("_", RegisterValue("gone"))
    bank.delete_to("_", "gone too")

    assert bank.get("_").text == ""
    assert bank.get('"').text == "keep"


def test_invalid_names_and_types_are_rejected(bank: RegisterBank) -> None:
    with pytest.raises(RegisterError):
        bank.set("!", RegisterValue("x"))
    with pytest.raises(RegisterError):
        bank.set(".", RegisterValue("x"))
    with pytest.raises(ValueError):
        bank.set("a", RegisterValue("x", type="word"))


def test_last_inserted_register_is_read_only(bank: RegisterBank) -> None:
    bank.set_last_inserted("typed")

    assert bank.get(".").text == "typed"
    assert is_valid_register(".")
    assert not is_valid_register(".", for_write=True)


def test_clipboard_registers_share_one_slot(bank: RegisterBank) -> None:
    assert not bank.contains("+")

    bank.set("*", RegisterValue("clip"))

    assert bank.contains("+")
    assert bank.get("+").text == "clip"
    assert bank.get('"').text == "clip"


def test_clipboard_hooks_can_be_overridden() -> None:
    host: dict = {}

    class HostBank(RegisterBank):
        def clipboard_get(self):
            return host.get("value")

        def clipboard_set(self, value: RegisterValue) -> None:
            host["value"] = value

    bank = HostBank()
    bank.set("+", RegisterValue("to host"))

    assert host["value"].text == "to host"
    assert bank.get("*").text == "to host"


def test_items_skip_empty_registers_in_display_order(bank: RegisterBank) -> None:
    bank.set("b", RegisterValue("bee"))
    bank.yank_to('"', "zero")
    bank.set("+", RegisterValue("clip"))

    names = [name for name, _ in bank.items()]

    assert names == ['"', "0", "b", "+"]


def test_serialize_load_and_clear(bank: RegisterBank) -> None:
    bank.set("a", RegisterValue("alpha\n", type="line"))
    saved = bank.serialize()

    other = RegisterBank()
    other.load(saved)
    assert other.get("a").text == "alpha\n"
    assert other.get("a").is_linewise

    other.clear()
    assert list(other.items()) == []
