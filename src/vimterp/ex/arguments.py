"""Argument pre-processing passes shared by Ex commands.

Each pass is a pure ``str -> str`` function so commands can compose only the
ones they need, in order.
"""

from __future__ import annotations

import re
from typing import Iterable

from vimterp.store.marks import RO_GLOBAL_MARKS, WR_GLOBAL_MARKS, WR_REGULAR_FILE_MARKS

_COMMENT = re.compile(r'(?<!\\)".*')
_ESCAPED_QUOTE = '\\"'

MARK_ALPHABETS = (WR_REGULAR_FILE_MARKS, WR_GLOBAL_MARKS, RO_GLOBAL_MARKS)


def strip_comment(argument: str) -> str:
    """Drop everything from the first unescaped ``"``."""

    return _COMMENT.sub("", argument, count=1)


def unescape_quotes(argument: str) -> str:
    return argument.replace(_ESCAPED_QUOTE, '"')


def trim_trailing(argument: str) -> str:
    return argument.rstrip()


def normalize_argument(argument: str, *, strip_comments: bool = True) -> str:
    text = strip_comment(argument) if strip_comments else argument
    return trim_trailing(unescape_quotes(text))


def expand_range(argument: str, alphabet: str) -> str:
    """Expand ``x-y`` runs drawn from ``alphabet`` into every character between.

    Reversed runs (``z-a``) are left as typed.
    """

    pattern = re.compile(f"[{re.escape(alphabet)}]-[{re.escape(alphabet)}]")

    def expand(match: re.Match[str]) -> str:
        low = alphabet.index(match.group()[0])
        high = alphabet.index(match.group()[2])
        if low > high:
            return match.group()
        return alphabet[low : high + 1]

    return pattern.sub(expand, argument)


def expand_mark_ranges(argument: str, alphabets: Iterable[str] = MARK_ALPHABETS) -> str:
    for alphabet in alphabets:
        argument = expand_range(argument, alphabet)
    return argument


__all__ = [
    "MARK_ALPHABETS",
    "expand_mark_ranges",
    "expand_range",
    "normalize_argument",
    "strip_comment",
    "trim_trailing",
    "unescape_quotes",
]
