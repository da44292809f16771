"""Host-independent Vim keystroke and Ex-command interpreter."""

from . import modes  # noqa: F401  (loads the mode layer before actions and ex)
from .session import EditorSession, EditorView

__all__ = [
    "EditorSession",
    "EditorView",
    "actions",
    "adapters",
    "buffer",
    "ex",
    "keymaps",
    "modes",
    "runtime",
    "store",
]

__version__ = "0.1.0"
