"""Runtime services: logging telemetry and editor options."""

from . import telemetry
from .options import EditorOptions, OptionError

__all__ = ["telemetry", "EditorOptions", "OptionError"]
