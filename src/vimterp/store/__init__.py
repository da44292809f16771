"""Process-wide mark and register storage shared by every editor view."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Optional

from .marks import (
    DEL_FILE_MARKS,
    DEL_MARKS,
    RO_GLOBAL_MARKS,
    SPECIAL_FILE_MARKS,
    WR_GLOBAL_MARKS,
    WR_REGULAR_FILE_MARKS,
    Mark,
    MarkError,
    MarkStore,
)
from .registers import RegisterBank, RegisterError, RegisterValue


@dataclass
class SharedStore:
    marks: MarkStore = field(default_factory=MarkStore)
    registers: RegisterBank = field(default_factory=RegisterBank)


_DEFAULT: Optional[SharedStore] = None
_DEFAULT_LOCK = threading.Lock()


def default_store() -> SharedStore:
    """Return the process-wide store, creating it on first use."""

    global _DEFAULT
    with _DEFAULT_LOCK:
        if _DEFAULT is None:
            _DEFAULT = SharedStore()
        return _DEFAULT


def reset_default_store() -> SharedStore:
    global _DEFAULT
    with _DEFAULT_LOCK:
        _DEFAULT = SharedStore()
        return _DEFAULT


__all__ = [
    "DEL_FILE_MARKS",
    "DEL_MARKS",
    "Mark",
    "MarkError",
    "MarkStore",
    "RO_GLOBAL_MARKS",
    "RegisterBank",
    "RegisterError",
    "RegisterValue",
    "SPECIAL_FILE_MARKS",
    "SharedStore",
    "WR_GLOBAL_MARKS",
    "WR_REGULAR_FILE_MARKS",
    "default_store",
    "reset_default_store",
]
