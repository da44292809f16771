"""Register storage and clipboard integration."""

from __future__ import annotations

import string
import threading
from dataclasses import dataclass
from typing import Dict, Iterator, Mapping, Optional, Tuple

REGISTER_TYPES = ("character", "line", "block")

UNNAMED = '"'
SMALL_DELETE = "-"
BLACK_HOLE = "_"
LAST_INSERTED = "."
CLIPBOARD = "+*"
NAMED = string.ascii_lowercase
NUMBERED = string.digits
READ_ONLY = LAST_INSERTED

WRITABLE = (
    UNNAMED + SMALL_DELETE + BLACK_HOLE + CLIPBOARD + NAMED + NAMED.upper() + NUMBERED
)


@dataclass(slots=True)
class RegisterValue:
    text: str
    type: str = "character"  # character, line or block

    @property
    def is_linewise(self) -> bool:
        return self.type == "line"


class RegisterError(ValueError):
    """Raised when a register name is invalid or read-only."""

    def __init__(self, name: str, message: str) -> None:
        super().__init__(message)
        self.name = name


def is_valid_register(name: str, *, for_write: bool = False) -> bool:
    if len(name) != 1:
        return False
    if for_write:
        return name in WRITABLE
    return name in WRITABLE or name in READ_ONLY


class RegisterBank:
    """Tracks unnamed, named, numbered, and special registers.

    One bank is shared process-wide; every update happens under a lock so
    views driven from different threads see last-writer-wins semantics.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._registers: Dict[str, RegisterValue] = {}
        self._registers[UNNAMED] = RegisterValue(text="")
        self._clipboard: Optional[RegisterValue] = None

    def get(self, name: str) -> RegisterValue:
        key = name.lower()
        with self._lock:
            if key in CLIPBOARD:
                return self.clipboard_get() or RegisterValue(text="")
            if key == BLACK_HOLE:
                return RegisterValue(text="")
            value = self._registers.get(key)
            if value is None:
                return RegisterValue(text="")
            return RegisterValue(text=value.text, type=value.type)

    def contains(self, name: str) -> bool:
        with self._lock:
            if name.lower() in CLIPBOARD:
                return self._clipboard is not None
            return name.lower() in self._registers

    def set(self, name: str, value: RegisterValue) -> None:
        if not is_valid_register(name, for_write=True):
            raise RegisterError(name, f"Invalid register name: '{name}'")
        if value.type not in REGISTER_TYPES:
            raise ValueError(f"Unknown register type '{value.type}'")
        if name == BLACK_HOLE:
            return
        with self._lock:
            if name.isupper():
                self._append_locked(name.lower(), value)
                self._registers[UNNAMED] = self._copy(name.lower())
                return
            if name in CLIPBOARD:
                self.clipboard_set(value)
            else:
                self._registers[name] = RegisterValue(text=value.text, type=value.type)
            if name != UNNAMED:
                self._registers[UNNAMED] = RegisterValue(
                    text=value.text, type=value.type
                )

    def append(self, name: str, text: str, *, register_type: str = "character") -> None:
        self.set(name.upper(), RegisterValue(text=text, type=register_type))

    def _append_locked(self, key: str, value: RegisterValue) -> None:
        existing = self._registers.get(key)
        if existing is None:
            self._registers[key] = RegisterValue(text=value.text, type=value.type)
            return
        register_type = existing.type
        text = existing.text
        if value.type == "line" or existing.type == "line":
            register_type = "line"
            if text and not text.endswith("\n"):
                text += "\n"
        combined = text + value.text
        if register_type == "line" and not combined.endswith("\n"):
            combined += "\n"
        self._registers[key] = RegisterValue(text=combined, type=register_type)

    def _copy(self, key: str) -> RegisterValue:
        value = self._registers[key]
        return RegisterValue(text=value.text, type=value.type)

    def yank_to(
        self, name: str, text: str, *, register_type: str = "character"
    ) -> None:
        """Store yanked text; the unnamed target also fills register ``0``."""

        value = RegisterValue(text=text, type=register_type)
        if name in (UNNAMED, ""):
            with self._lock:
                self._registers["0"] = value
                self._registers[UNNAMED] = RegisterValue(text=text, type=register_type)
            return
        self.set(name, value)

    def delete_to(
        self, name: str, text: str, *, register_type: str = "character"
    ) -> None:
        """Store deleted text, shifting the numbered delete history."""

        value = RegisterValue(text=text, type=register_type)
        if name not in (UNNAMED, ""):
            self.set(name, value)
            return
        with self._lock:
            if register_type == "line" or "\n" in text:
                for index in range(9, 1, -1):
                    previous = self._registers.get(str(index - 1))
                    if previous is not None:
                        self._registers[str(index)] = previous
                self._registers["1"] = value
            else:
                self._registers[SMALL_DELETE] = value
            self._registers[UNNAMED] = RegisterValue(text=text, type=register_type)

    def set_last_inserted(self, text: str) -> None:
        with self._lock:
            self._registers[LAST_INSERTED] = RegisterValue(text=text)

    def items(self) -> Iterator[Tuple[str, RegisterValue]]:
        with self._lock:
            snapshot = dict(self._registers)
            if self._clipboard is not None:
                snapshot["+"] = self._clipboard
        order = UNNAMED + NUMBERED + NAMED + SMALL_DELETE + LAST_INSERTED + CLIPBOARD
        for name in order:
            value = snapshot.get(name)
            if value is not None and value.text:
                yield name, value

    def serialize(self) -> Mapping[str, RegisterValue]:
        with self._lock:
            return {
                key: RegisterValue(text=value.text, type=value.type)
                for key, value in self._registers.items()
            }

    def load(self, data: Mapping[str, RegisterValue]) -> None:
        with self._lock:
            self._registers.update(
                {k: RegisterValue(text=v.text, type=v.type) for k, v in data.items()}
            )

    def clear(self) -> None:
        with self._lock:
            self._registers = {UNNAMED: RegisterValue(text="")}
            self._clipboard = None

    def clipboard_get(self) -> Optional[RegisterValue]:  # host adapters override
        return self._clipboard

    def clipboard_set(self, value: RegisterValue) -> None:  # host adapters override
        self._clipboard = RegisterValue(text=value.text, type=value.type)


__all__ = [
    "RegisterBank",
    "RegisterError",
    "RegisterValue",
    "REGISTER_TYPES",
    "is_valid_register",
]
