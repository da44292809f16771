"""The built-in set of modes a full editing session registers."""

from __future__ import annotations

from typing import Tuple, Type

from .base_mode import Mode
from .command_mode import CommandMode
from .insert_mode import InsertMode, ReplaceMode
from .mode_manager import ModeManager
from .normal_mode import NormalMode
from .operator_pending_mode import OperatorPendingMode
from .select_mode import SelectBlockMode, SelectLineMode, SelectMode
from .visual_mode import VisualBlockMode, VisualLineMode, VisualMode

# Normal first: the manager keeps the first registered mode at the stack base
DEFAULT_MODES: Tuple[Type[Mode], ...] = (
    NormalMode,
    OperatorPendingMode,
    InsertMode,
    ReplaceMode,
    VisualMode,
    VisualLineMode,
    VisualBlockMode,
    SelectMode,
    SelectLineMode,
    SelectBlockMode,
    CommandMode,
)


def register_default_modes(
    manager: ModeManager, *, default_pending_timeout_ms: int | None = None
) -> ModeManager:
    for mode_cls in DEFAULT_MODES:
        manager.register_mode(
            mode_cls, default_pending_timeout_ms=default_pending_timeout_ms
        )
    return manager


__all__ = ["DEFAULT_MODES", "register_default_modes"]
