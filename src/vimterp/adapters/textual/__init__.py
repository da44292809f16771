"""Textual host: key translation, UI hooks and a demo app."""

from .controller import RELAYED_EVENTS, TextualUIHooks, TextualVimAdapter

__all__ = ["RELAYED_EVENTS", "TextualUIHooks", "TextualVimAdapter"]
