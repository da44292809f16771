"""High-level editing verbs reused across modes."""

from . import carets, motions, operators
from .carets import CaretBatch, CaretFailure, CaretResult, for_each_caret
from .motions import MOTIONS, MotionError, MotionRequest, MotionSpec, MotionTarget
from .operators import OPERATORS, OperatorSpan, OperatorSpec, run_operator
from . import core, visual
from .core import enter_insert_mode, exit_to_normal_mode
from .visual import (
    swap_anchor,
    yank_selection,
    delete_selection,
    change_selection,
)
from . import insert
from .insert import type_text
from . import command
from .command import submit_command_line

__all__ = [
    "CaretBatch",
    "CaretFailure",
    "CaretResult",
    "MOTIONS",
    "MotionError",
    "MotionRequest",
    "MotionSpec",
    "MotionTarget",
    "OPERATORS",
    "OperatorSpan",
    "OperatorSpec",
    "carets",
    "command",
    "core",
    "enter_insert_mode",
    "exit_to_normal_mode",
    "for_each_caret",
    "insert",
    "motions",
    "operators",
    "run_operator",
    "swap_anchor",
    "type_text",
    "yank_selection",
    "delete_selection",
    "change_selection",
    "submit_command_line",
    "visual",
]
