"""Keymap data: keystrokes, sequences, conditions, actions and bindings."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Iterable, Mapping

DEFAULT_TIMEOUT_MS = 1000


@dataclass(frozen=True, slots=True)
class KeyStroke:
    """One key with its modifiers; ``token`` is the trie edge label."""

    key: str
    modifiers: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("key cannot be empty")
        cleaned = (m.strip().lower() for m in self.modifiers if m.strip())
        object.__setattr__(self, "modifiers", tuple(sorted(set(cleaned))))

    @classmethod
    def parse(cls, token: str) -> "KeyStroke":
        """``"ctrl+v"`` -> ``KeyStroke("v", ("ctrl",))``; ``"+"`` stays a key."""

        if "+" in token and len(token) > 1:
            *modifiers, key = token.split("+")
            return cls(key, tuple(modifiers))
        return cls(token)

    @property
    def token(self) -> str:
        return "+".join(self.modifiers + (self.key,))


@dataclass(frozen=True, slots=True)
class KeySequence:
    strokes: tuple[KeyStroke, ...]
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    def __post_init__(self) -> None:
        if not self.strokes:
            raise ValueError("KeySequence requires at least one stroke")

    @property
    def tokens(self) -> tuple[str, ...]:
        return tuple(stroke.token for stroke in self.strokes)

    @classmethod
    def from_strings(
        cls, *keys: str, timeout_ms: int = DEFAULT_TIMEOUT_MS
    ) -> "KeySequence":
        return cls(tuple(KeyStroke(key) for key in keys if key), timeout_ms)

    @classmethod
    def parse(
        cls, keys: str, *, timeout_ms: int = DEFAULT_TIMEOUT_MS
    ) -> "KeySequence":
        """Space separated tokens, e.g. ``"g ctrl+h"``."""

        strokes = tuple(KeyStroke.parse(token) for token in keys.split(" "))
        return cls(strokes, timeout_ms)


@dataclass(frozen=True, slots=True)
class WhenClause:
    """A mode flag that must be set (or, with ``!``, unset) for a binding."""

    flag: str
    expected: bool = True

    def __post_init__(self) -> None:
        if not self.flag:
            raise ValueError("flag cannot be empty")

    @classmethod
    def parse(cls, expression: str) -> "WhenClause":
        text = expression.strip()
        negated = text.startswith("!")
        flag = text[1:] if negated else text
        if not flag:
            raise ValueError(f"empty condition: {expression!r}")
        return cls(flag, not negated)

    def evaluate(self, flags: Mapping[str, bool]) -> bool:
        return bool(flags.get(self.flag, False)) is self.expected


@dataclass(frozen=True, slots=True)
class ActionRef:
    """A named handler plus the metadata modes use to dispatch it.

    ``metadata["kind"]`` is ``motion``, ``operator`` or absent for plain
    actions; ``metadata["argument"] == "char"`` makes the binding read one
    more typed character.
    """

    id: str
    handler: Callable[..., object]
    description: str = ""
    metadata: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("ActionRef id cannot be empty")
        if not callable(self.handler):
            raise TypeError(f"handler of '{self.id}' must be callable")
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def kind(self) -> str:
        return str(self.metadata.get("kind", "action"))

    @property
    def wants_char(self) -> bool:
        return self.metadata.get("argument") == "char"

    def __call__(self, *args: object, **kwargs: object) -> object:
        return self.handler(*args, **kwargs)


def _clean_tags(tags: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(tag.strip() for tag in tags if tag.strip()))


@dataclass(frozen=True, slots=True)
class Binding:
    """Keys typed in ``mode`` that run ``action_id`` while ``when`` holds.

    Ids follow ``mode.name`` with a numeric suffix for repeated actions,
    e.g. ``visual.delete_selection.2``.
    """

    id: str
    mode: str
    sequence: KeySequence
    action_id: str
    description: str = ""
    when: tuple[WhenClause, ...] = ()
    tags: tuple[str, ...] = ()
    source: str | None = None
    priority: int = 0

    def __post_init__(self) -> None:
        for name in ("id", "mode", "action_id"):
            if not getattr(self, name):
                raise ValueError(f"binding {name} cannot be empty")
        object.__setattr__(self, "tags", _clean_tags(self.tags))
        clauses = tuple(
            clause if isinstance(clause, WhenClause) else WhenClause.parse(str(clause))
            for clause in self.when
        )
        object.__setattr__(self, "when", clauses)

    @property
    def when_map(self) -> Mapping[str, bool]:
        return MappingProxyType({clause.flag: clause.expected for clause in self.when})

    @property
    def key_signature(self) -> str:
        return " ".join(self.sequence.tokens)

    def allows(self, flags: Mapping[str, bool]) -> bool:
        return all(clause.evaluate(flags) for clause in self.when)


__all__ = [
    "ActionRef",
    "Binding",
    "DEFAULT_TIMEOUT_MS",
    "KeySequence",
    "KeyStroke",
    "WhenClause",
]
