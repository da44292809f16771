"""Editor options shared by every view and the ``:set`` command."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional, Tuple

ENV_PREFIX = "VIMTERP_"

KEYMODEL_VALUES = frozenset({"startsel", "stopsel", "stopselect", "stopvisual"})


class OptionError(ValueError):
    """Raised for unknown option names or invalid option values."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


@dataclass(frozen=True, slots=True)
class OptionSpec:
    name: str
    short: str
    kind: str  # "bool", "int" or "list"


OPTION_SPECS: Tuple[OptionSpec, ...] = (
    OptionSpec("timeoutlen", "tm", "int"),
    OptionSpec("wrapscan", "ws", "bool"),
    OptionSpec("ignorecase", "ic", "bool"),
    OptionSpec("shiftwidth", "sw", "int"),
    OptionSpec("keymodel", "km", "list"),
)


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _env_flag(name: str, default: bool) -> bool:
    raw = _env(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(slots=True)
class EditorOptions:
    """Mutable option set; one instance is shared by a session's views."""

    timeoutlen: int = 1000
    wrapscan: bool = True
    ignorecase: bool = False
    shiftwidth: int = 4
    keymodel: Tuple[str, ...] = ()

    @classmethod
    def from_env(cls) -> "EditorOptions":
        keymodel = tuple(
            part.strip()
            for part in (_env("KEYMODEL") or "").split(",")
            if part.strip() in KEYMODEL_VALUES
        )
        return cls(
            timeoutlen=_env_int("TIMEOUTLEN", 1000),
            wrapscan=_env_flag("WRAPSCAN", True),
            ignorecase=_env_flag("IGNORECASE", False),
            shiftwidth=_env_int("SHIFTWIDTH", 4),
            keymodel=keymodel,
        )

    def copy(self) -> "EditorOptions":
        return replace(self)

    def as_dict(self) -> Dict[str, Any]:
        return {item.name: getattr(self, item.name) for item in fields(self)}

    def has_keymodel(self, *values: str) -> bool:
        return any(value in self.keymodel for value in values)

    def spec(self, name: str) -> OptionSpec:
        for option in OPTION_SPECS:
            if name in (option.name, option.short):
                return option
        raise OptionError("E518", f"E518: Unknown option: {name}")

    def apply(self, assignment: str) -> Optional[str]:
        """Apply one ``:set`` item; returns display text for queries."""

        item = assignment.strip()
        if not item:
            return None
        if item.endswith("?"):
            return self.describe(self.spec(item[:-1]).name)
        if "=" in item:
            name, _, value = item.partition("=")
            return self._assign(self.spec(name), value, item)
        if item.startswith("no") and self._is_bool(item[2:]):
            setattr(self, self.spec(item[2:]).name, False)
            return None
        if item.startswith("inv") and self._is_bool(item[3:]):
            option = self.spec(item[3:])
            setattr(self, option.name, not getattr(self, option.name))
            return None
        option = self.spec(item)
        if option.kind == "bool":
            setattr(self, option.name, True)
            return None
        return self.describe(option.name)

    def describe(self, name: str) -> str:
        option = self.spec(name)
        value = getattr(self, option.name)
        if option.kind == "bool":
            return option.name if value else f"no{option.name}"
        if option.kind == "list":
            return f"{option.name}={','.join(value)}"
        return f"{option.name}={value}"

    def _is_bool(self, name: str) -> bool:
        try:
            return self.spec(name).kind == "bool"
        except OptionError:
            return False

    def _assign(self, option: OptionSpec, value: str, item: str) -> None:
        if option.kind == "bool":
            raise OptionError("E474", f"E474: Invalid argument: {item}")
        if option.kind == "int":
            try:
                number = int(value)
            except ValueError:
                message = f"E521: Number required after =: {item}"
                raise OptionError("E521", message) from None
            if number <= 0:
                raise OptionError("E487", f"E487: Argument must be positive: {item}")
            setattr(self, option.name, number)
            return None
        parts = tuple(part for part in value.split(",") if part)
        invalid = [part for part in parts if part not in KEYMODEL_VALUES]
        if invalid:
            raise OptionError("E474", f"E474: Invalid argument: {item}")
        setattr(self, option.name, parts)
        return None


__all__ = [
    "EditorOptions",
    "KEYMODEL_VALUES",
    "OPTION_SPECS",
    "OptionError",
    "OptionSpec",
]
