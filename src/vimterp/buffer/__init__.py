"""Buffer abstractions, the host facade contract, and undo/redo structures."""

from .buffer import Buffer, BufferDelta, BufferView
from .document import BufferDocument
from .state import BufferState, Cursor, Selection
from .sync import (
    BufferMirror,
    BufferReadOnlyError,
    BufferValidationError,
    EditEvent,
    EditorFacade,
    READ_ONLY_MESSAGE,
)
from .undo import UndoEntry, UndoTimeline
from .validation import clamp_cursor, ensure_cursor

__all__ = [
    "BufferDocument",
    "BufferState",
    "Cursor",
    "Selection",
    "UndoTimeline",
    "UndoEntry",
    "Buffer",
    "BufferDelta",
    "BufferView",
    "BufferMirror",
    "BufferValidationError",
    "BufferReadOnlyError",
    "EditEvent",
    "EditorFacade",
    "READ_ONLY_MESSAGE",
    "clamp_cursor",
    "ensure_cursor",
]
