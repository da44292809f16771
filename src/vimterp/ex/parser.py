"""Split an Ex command line into range, name, bang and raw argument."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .ranges import RangeSpec, parse_range


@dataclass(frozen=True, slots=True)
class ParsedCommand:
    text: str
    range: Optional[RangeSpec]
    name: str
    bang: bool
    argument: str

    @property
    def body(self) -> str:
        """The line without its leading colons and blanks."""

        return self.text.lstrip(": \t")

    @property
    def empty(self) -> bool:
        body = self.body
        return not body.strip() or body.startswith('"')


def parse_command(line: str) -> ParsedCommand:
    """Parse ``[range]name[!] [argument]``.

    The name is the longest run of letters (or a single ``<``/``>``).
    Exactly one space between the name and the argument is consumed; the
    rest is passed on untouched.
    """

    text = line.lstrip(": \t")
    spec, pos = parse_range(text)
    while pos < len(text) and text[pos] in " \t":
        pos += 1

    start = pos
    if pos < len(text) and text[pos] in "<>":
        pos += 1
    else:
        while pos < len(text) and text[pos].isalpha() and text[pos].isascii():
            pos += 1
    name = text[start:pos]

    bang = False
    if name and pos < len(text) and text[pos] == "!":
        bang = True
        pos += 1

    argument = text[pos:]
    if argument.startswith(" "):
        argument = argument[1:]
    return ParsedCommand(text=line, range=spec, name=name, bang=bang, argument=argument)


__all__ = ["ParsedCommand", "parse_command"]
