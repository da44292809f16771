from __future__ import annotations

from typing import Optional

from vimterp.buffer import Buffer
from vimterp.modes import ModeBus, ModeContext, Outcome
from vimterp.runtime import EditorOptions
from vimterp.session import EditorView
from vimterp.store import SharedStore


def make_context(
    text: str = "",
    *,
    store: Optional[SharedStore] = None,
    options: Optional[EditorOptions] = None,
) -> ModeContext:
    shared = store or SharedStore()
    return ModeContext(
        buffer=Buffer.from_text(text),
        registers=shared.registers,
        bus=ModeBus(),
        marks=shared.marks,
        options=options or EditorOptions(),
    )


def feed(view: EditorView, notation: str) -> Outcome:
    """Feed keys and return the outcome of the last one."""

    return view.feed_keys(notation)[-1]
