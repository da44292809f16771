"""Mode manager, the concrete modes and key dispatch logic."""

from .base_mode import (
    ActionRequest,
    EditorMode,
    KeyInput,
    Mode,
    ModeBus,
    ModeContext,
    ModeResult,
    Outcome,
    OutcomeKind,
)
from .notation import parse_keys
from .keymap_helpers import KeymapMode
from .normal_mode import NormalMode
from .operator_pending_mode import OperatorPendingMode
from .insert_mode import InsertMode, ReplaceMode
from .visual_mode import SelectionMode, VisualBlockMode, VisualLineMode, VisualMode
from .select_mode import SelectBlockMode, SelectLineMode, SelectMode
from .command_mode import CommandMode
from .mode_manager import ModeManager
from .defaults import DEFAULT_MODES, register_default_modes

__all__ = [
    "ActionRequest",
    "CommandMode",
    "DEFAULT_MODES",
    "EditorMode",
    "InsertMode",
    "KeyInput",
    "KeymapMode",
    "Mode",
    "ModeBus",
    "ModeContext",
    "ModeManager",
    "ModeResult",
    "NormalMode",
    "OperatorPendingMode",
    "Outcome",
    "OutcomeKind",
    "ReplaceMode",
    "SelectBlockMode",
    "SelectLineMode",
    "SelectMode",
    "SelectionMode",
    "VisualBlockMode",
    "VisualLineMode",
    "VisualMode",
    "parse_keys",
    "register_default_modes",
]
