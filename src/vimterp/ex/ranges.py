"""Line ranges for Ex commands: parsing address text and resolving it.

Addresses are parsed into ``RangeSpec`` values without touching the buffer;
``RangeResolver`` turns them into 1-based ``LineRange`` pairs against a
buffer, its marks and the search options.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import MutableMapping, Optional, Tuple

from vimterp.buffer import Buffer
from vimterp.runtime.options import EditorOptions
from vimterp.store import MarkStore

from .errors import ExParseError, ExValidationError, LookupMiss

ADDRESS_KINDS = (
    "number",
    "current",
    "last",
    "mark",
    "search_forward",
    "search_backward",
    "all",
)


@dataclass(frozen=True, slots=True)
class Address:
    kind: str
    value: object = None
    offsets: Tuple[int, ...] = ()

    def __post_init__(self) -> None:
        if self.kind not in ADDRESS_KINDS:
            raise ValueError(f"unknown address kind: {self.kind!r}")

    @property
    def offset(self) -> int:
        return sum(self.offsets)


@dataclass(frozen=True, slots=True)
class RangeSpec:
    """Up to two addresses and the separator typed between them."""

    addresses: Tuple[Address, ...]
    separator: Optional[str] = None

    @property
    def whole_buffer(self) -> bool:
        return len(self.addresses) == 1 and self.addresses[0].kind == "all"


@dataclass(frozen=True, slots=True)
class LineRange:
    """Resolved 1-based inclusive line pair."""

    start: int
    end: int

    @property
    def first_row(self) -> int:
        return max(0, self.start - 1)

    @property
    def last_row(self) -> int:
        return max(0, self.end - 1)

    @property
    def count(self) -> int:
        return self.end - self.start + 1


# -- parsing -------------------------------------------------------------------

_NUMBER = re.compile(r"\d+")


def _read_pattern(text: str, pos: int, delimiter: str) -> Tuple[str, int]:
    chars = []
    while pos < len(text):
        char = text[pos]
        if char == "\\" and pos + 1 < len(text):
            following = text[pos + 1]
            chars.append(following if following == delimiter else char + following)
            pos += 2
            continue
        if char == delimiter:
            return "".join(chars), pos + 1
        chars.append(char)
        pos += 1
    return "".join(chars), pos


def _read_offsets(text: str, pos: int) -> Tuple[Tuple[int, ...], int]:
    offsets = []
    while pos < len(text) and text[pos] in "+-":
        sign = 1 if text[pos] == "+" else -1
        pos += 1
        match = _NUMBER.match(text, pos)
        if match:
            offsets.append(sign * int(match.group()))
            pos = match.end()
        else:
            offsets.append(sign)
    return tuple(offsets), pos


def parse_address(text: str, pos: int = 0) -> Tuple[Optional[Address], int]:
    """Parse one address at ``pos``; returns ``(None, pos)`` if there is none."""

    if pos >= len(text):
        return None, pos
    char = text[pos]
    kind: Optional[str] = None
    value: object = None
    if char.isdigit():
        match = _NUMBER.match(text, pos)
        assert match is not None
        kind, value, pos = "number", int(match.group()), match.end()
    elif char == ".":
        kind, pos = "current", pos + 1
    elif char == "$":
        kind, pos = "last", pos + 1
    elif char == "'":
        if pos + 1 >= len(text):
            raise ExParseError("E20", "E20: Mark not set")
        kind, value, pos = "mark", text[pos + 1], pos + 2
    elif char == "/":
        value, pos = _read_pattern(text, pos + 1, "/")
        kind = "search_forward"
    elif char == "?":
        value, pos = _read_pattern(text, pos + 1, "?")
        kind = "search_backward"

    offsets, pos = _read_offsets(text, pos)
    if kind is None:
        if not offsets:
            return None, pos
        # a bare offset counts from the current line
        kind = "current"
    return Address(kind=kind, value=value, offsets=offsets), pos


def parse_range(text: str, pos: int = 0) -> Tuple[Optional[RangeSpec], int]:
    """Parse the range prefix of an Ex command line.

    Returns the spec (``None`` when the line has no range) and the position
    right after it.
    """

    while pos < len(text) and text[pos] == " ":
        pos += 1
    if text.startswith("%", pos):
        return RangeSpec(addresses=(Address("all"),)), pos + 1

    first, pos = parse_address(text, pos)
    if pos < len(text) and text[pos] in ",;":
        separator = text[pos]
        second, pos = parse_address(text, pos + 1)
        return (
            RangeSpec(
                addresses=(first or Address("current"), second or Address("current")),
                separator=separator,
            ),
            pos,
        )
    if first is None:
        return None, pos
    return RangeSpec(addresses=(first,)), pos


# -- resolution ------------------------------------------------------------------


class RangeResolver:
    """Resolve ``RangeSpec`` values against one buffer.

    ``state`` keeps the last search pattern between calls so an empty
    ``//`` reuses it.
    """

    def __init__(
        self,
        buffer: Buffer,
        marks: MarkStore,
        options: Optional[EditorOptions] = None,
        state: Optional[MutableMapping[str, object]] = None,
    ) -> None:
        self.buffer = buffer
        self.marks = marks
        self.options = options or EditorOptions()
        self.state: MutableMapping[str, object] = state if state is not None else {}

    @property
    def current_line(self) -> int:
        return self.buffer.state.cursor[0] + 1

    def resolve(self, spec: RangeSpec, *, allow_reversed: bool = False) -> LineRange:
        if spec.whole_buffer:
            return LineRange(1, self.buffer.line_count)

        base = self.current_line
        lines = []
        for address in spec.addresses:
            line = self.resolve_address(address, base)
            lines.append(line)
            if spec.separator == ";":
                base = line
        start, end = lines[0], lines[-1]
        if start > end:
            if not allow_reversed:
                raise ExValidationError("E493", "E493: Backwards range given")
            start, end = end, start
        return LineRange(start, end)

    def resolve_address(self, address: Address, base: Optional[int] = None) -> int:
        """Return the 1-based line of ``address``; 0 is allowed, negatives are not."""

        if base is None:
            base = self.current_line
        kind = address.kind
        if kind == "number":
            line = int(address.value)  # type: ignore[arg-type]
        elif kind == "current":
            line = base
        elif kind == "mark":
            line = self._mark_line(str(address.value))
        elif kind == "search_forward":
            line = self._search(str(address.value), base, forward=True)
        elif kind == "search_backward":
            line = self._search(str(address.value), base, forward=False)
        else:  # last, all
            line = self.buffer.line_count
        line += address.offset
        if line < 0 or line > self.buffer.line_count:
            raise ExValidationError("E16", "E16: Invalid range")
        return line

    def _mark_line(self, name: str) -> int:
        mark = self.marks.get_mark(self.buffer, name)
        if mark is None or mark.buffer_id != self.buffer.id:
            raise LookupMiss("E20", "E20: Mark not set")
        return mark.line + 1

    def _compile(self, pattern: str) -> "re.Pattern[str]":
        flags = re.IGNORECASE if self.options.ignorecase else 0
        try:
            return re.compile(pattern, flags)
        except re.error:
            return re.compile(re.escape(pattern), flags)

    def _search(self, pattern: str, base: int, *, forward: bool) -> int:
        if not pattern:
            previous = self.state.get("pattern")
            if not previous:
                raise ExValidationError("E35", "E35: No previous regular expression")
            pattern = str(previous)
        self.state["pattern"] = pattern
        regex = self._compile(pattern)

        total = self.buffer.line_count
        row = base - 1
        step = 1 if forward else -1
        for _ in range(total):
            row += step
            if row >= total or row < 0:
                if not self.options.wrapscan:
                    break
                row %= total
            if regex.search(self.buffer.get_line(row)):
                return row + 1

        if self.options.wrapscan:
            raise LookupMiss("E486", f"E486: Pattern not found: {pattern}")
        if forward:
            raise LookupMiss(
                "E385", f"E385: Search hit BOTTOM without match for: {pattern}"
            )
        raise LookupMiss(
            "E384", f"E384: Search hit TOP without match for: {pattern}"
        )


__all__ = [
    "ADDRESS_KINDS",
    "Address",
    "LineRange",
    "RangeResolver",
    "RangeSpec",
    "parse_address",
    "parse_range",
]
