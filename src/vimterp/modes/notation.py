"""Key notation helpers: ``"d2w<Esc>"`` to ``KeyInput`` lists and back."""

from __future__ import annotations

import re
from typing import Iterable, List, Tuple

from .base_mode import KeyInput

ESCAPE = "ESC"
ENTER = "ENTER"
BACKSPACE = "BACKSPACE"
TAB = "TAB"

_KEY_ALIASES = {
    "esc": ESCAPE,
    "escape": ESCAPE,
    "<esc>": ESCAPE,
    "enter": ENTER,
    "return": ENTER,
    "cr": ENTER,
    "bs": BACKSPACE,
    "backspace": BACKSPACE,
    "tab": TAB,
    "up": "UP",
    "down": "DOWN",
    "left": "LEFT",
    "right": "RIGHT",
    "home": "HOME",
    "end": "END",
    "del": "DELETE",
    "delete": "DELETE",
}

_NAMED_TEXT = {"space": " ", "lt": "<", "bar": "|", "bslash": "\\"}

_MODIFIER_ALIASES = {
    "c": "ctrl",
    "ctrl": "ctrl",
    "control": "ctrl",
    "s": "shift",
    "shift": "shift",
    "a": "alt",
    "m": "alt",
    "alt": "alt",
    "meta": "alt",
}

_NOTATION = re.compile(r"<([^<>]+)>")


def normalize_key(key: str) -> str:
    """Map host key names onto the canonical names used by keymaps."""

    if len(key) == 1:
        return key
    return _KEY_ALIASES.get(key.lower(), key)


def normalize_modifiers(modifiers: Iterable[str]) -> Tuple[str, ...]:
    values = (
        _MODIFIER_ALIASES.get(mod.strip().lower(), mod.strip().lower())
        for mod in modifiers
        if mod.strip()
    )
    return tuple(sorted(dict.fromkeys(values)))


def is_escape(key: KeyInput) -> bool:
    if key.modifiers:
        return normalize_modifiers(key.modifiers) == ("ctrl",) and key.key == "["
    return normalize_key(key.key) == ESCAPE


def is_backspace(key: KeyInput) -> bool:
    if key.modifiers:
        ctrl_only = normalize_modifiers(key.modifiers) == ("ctrl",)
        return ctrl_only and key.key.lower() == "h"
    return normalize_key(key.key) == BACKSPACE


def key_text(key: KeyInput) -> str | None:
    """Printable text carried by ``key``, if any."""

    if key.modifiers and normalize_modifiers(key.modifiers) != ("shift",):
        return None
    if key.text:
        return key.text
    if len(key.key) == 1:
        return key.key
    if normalize_key(key.key) == TAB:
        return "\t"
    return None


def _parse_bracketed(body: str) -> KeyInput | None:
    parts = body.split("-")
    if len(parts) > 1 and parts[-1] == "":
        # <C--> style: trailing dash is the key itself
        parts = parts[:-2] + ["-"]
    *mods, name = parts
    modifiers = normalize_modifiers(mods)
    if any(mod not in {"ctrl", "shift", "alt"} for mod in modifiers):
        return None
    lowered = name.lower()
    if lowered in _NAMED_TEXT:
        text = _NAMED_TEXT[lowered]
        return KeyInput(key=text, modifiers=modifiers, text=None if modifiers else text)
    if len(name) == 1:
        key = name.lower() if "ctrl" in modifiers else name
        return KeyInput(key=key, modifiers=modifiers, text=None if modifiers else name)
    canonical = _KEY_ALIASES.get(lowered)
    if canonical is None:
        return None
    return KeyInput(key=canonical, modifiers=modifiers)


def parse_keys(notation: str) -> List[KeyInput]:
    """Parse Vim key notation into a list of ``KeyInput`` objects.

    Plain characters stand for themselves; ``<Esc>``, ``<CR>``, ``<BS>``,
    ``<C-v>``, ``<S-Down>`` and friends name special keys. Unknown
    bracketed names are taken literally.
    """

    keys: List[KeyInput] = []
    index = 0
    while index < len(notation):
        match = _NOTATION.match(notation, index)
        if match:
            parsed = _parse_bracketed(match.group(1))
            if parsed is not None:
                keys.append(parsed)
                index = match.end()
                continue
        char = notation[index]
        keys.append(KeyInput(key=char, text=char))
        index += 1
    return keys


def key_to_token(key: KeyInput) -> str:
    name = normalize_key(key.key)
    modifiers = normalize_modifiers(key.modifiers)
    if len(name) == 1 and modifiers == ("shift",):
        # shifted printable keys already carry their case
        modifiers = ()
    if modifiers:
        return "+".join(modifiers) + "+" + name
    return name


__all__ = [
    "BACKSPACE",
    "ENTER",
    "ESCAPE",
    "TAB",
    "is_backspace",
    "is_escape",
    "key_text",
    "key_to_token",
    "normalize_key",
    "normalize_modifiers",
    "parse_keys",
]
