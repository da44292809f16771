"""Declarative keymap registry and default bindings."""

from .models import ActionRef, Binding, KeySequence, KeyStroke, WhenClause
from .registry import (
    KeymapConflictError,
    KeymapRegistry,
    RegistryFrozenError,
    RegistryStats,
)
from .resolver import KeymapResolver, ResolutionMatch, ResolutionResult
from .defaults import load_default_keymaps

__all__ = [
    "ActionRef",
    "Binding",
    "KeySequence",
    "KeyStroke",
    "WhenClause",
    "KeymapRegistry",
    "KeymapConflictError",
    "RegistryFrozenError",
    "RegistryStats",
    "KeymapResolver",
    "ResolutionResult",
    "ResolutionMatch",
    "load_default_keymaps",
]
