#!/usr/bin/env python3
"""
parser.py

Backtrace parser.

Responsibilities:
  - Parse the text printed under a "stack backtrace:" header into
    immutable Backtrace / Frame / symbol-entry objects.
  - Recognize, per frame:
      * frame index ("<n>:")
      * instruction pointer ("0x...")
      * either one empty marker ("<unresolved>" / "<no info>") or one or
        more resolved symbols ("name [at path:line]"), joined by "-".
  - Report the first mismatch as a ParseError carrying the offset and what
    was expected there.

Notes:
  - Every grammar rule is a plain function taking (text, pos) and returning
    (value, new_pos). A rule that does not match raises _Mismatch; callers
    backtrack by simply reusing their own saved position. Nothing here keeps
    state between calls, so parse() is safe to call from any thread.
  - A symbol name runs to the end of its line, but is cut before the first
    " - " separator or " at <path>:<line>" clause on that same line. Names
    that themselves contain such text are split there; this is a known
    ambiguity of the format and is resolved first-match, left to right.
  - This module does no I/O and no logging; callers own both.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import ClassVar, FrozenSet, Iterable, Iterator, List, Optional, Tuple, Union


HEADER = "stack backtrace:"
UNKNOWN_NAME = "<unknown>"


# ---------------------------------------------------------------------------
# Regexes
# ---------------------------------------------------------------------------

# Whitespace between tokens is insignificant, line breaks included.
_WS_RE = re.compile(r"[ \t\r\n]*")

_DIGITS_RE = re.compile(r"[0-9]+")
_HEX_DIGITS_RE = re.compile(r"[0-9a-fA-F]+")
_PATH_RE = re.compile(r"[^:]+")

# "at" keyword introducing a location, after the name has been consumed.
_AT_RE = re.compile(r"at[ \t\r\n]+")

# Points where a symbol name stops on its own line:
#   "foo - bar"          -> separator before the next inlined symbol
#   "foo at src/a.rs:3"  -> location clause, only when "path:<digits>" ends
#                           the line or is followed by a separator;
#                           otherwise " at " is name text
_NAME_BREAK_RE = re.compile(
    r"""
    [ \t]+
    (?:
        -(?=[ \t]+\S)
      | at[ \t]+(?=[^:]+:[0-9]+(?:[ \t\r]*$|[ \t]+-[ \t]+\S))
    )
    """,
    re.VERBOSE,
)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SymbolLocation:
    """Source position attached to a resolved symbol."""
    path: str
    line: int


@dataclass(frozen=True)
class Unresolved:
    """The address could not be mapped to any symbol."""
    marker: ClassVar[str] = "<unresolved>"


@dataclass(frozen=True)
class NoInfo:
    """A symbol was found for the address, but without debug information."""
    marker: ClassVar[str] = "<no info>"


UNRESOLVED = Unresolved()
NO_INFO = NoInfo()


@dataclass(frozen=True)
class Resolved:
    """
    One resolved symbol of a frame.

    Fields:
        name:     Symbol name, or None when the backtrace printed "<unknown>".
        location: Source location from an "at path:line" clause, if present.
    """
    name: Optional[str]
    location: Optional[SymbolLocation] = None

    @property
    def is_unknown(self) -> bool:
        return self.name is None

    @property
    def path(self) -> Optional[str]:
        return self.location.path if self.location else None

    @property
    def line(self) -> Optional[int]:
        return self.location.line if self.location else None


SymbolEntry = Union[Unresolved, NoInfo, Resolved]
EmptyMarker = Union[Unresolved, NoInfo]


@dataclass(frozen=True)
class Frame:
    """
    Single frame of a backtrace.

    Fields:
        index:   Frame number as printed ("<index>:"); 0 is the innermost frame.
        pointer: Instruction pointer, parsed from "0x...".
        symbols: Either exactly one empty marker (UNRESOLVED / NO_INFO), or
                 one or more Resolved entries. Several entries mean the
                 address belongs to inlined functions, innermost first.
    """
    index: int
    pointer: int
    symbols: Tuple[SymbolEntry, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbols", tuple(self.symbols))
        if self.index < 0:
            raise ValueError(f"frame index must be non-negative, got {self.index}")
        if self.pointer < 0:
            raise ValueError(f"frame pointer must be non-negative, got {self.pointer}")
        if not self.symbols:
            raise ValueError("frame must carry at least one symbol entry")
        for entry in self.symbols:
            if not isinstance(entry, (Unresolved, NoInfo, Resolved)):
                raise ValueError(f"not a symbol entry: {entry!r}")
        markers = [s for s in self.symbols if isinstance(s, (Unresolved, NoInfo))]
        if markers and len(self.symbols) != 1:
            raise ValueError("an empty marker cannot be combined with other symbol entries")

    @property
    def is_empty(self) -> bool:
        """True when the frame carries "<unresolved>" or "<no info>"."""
        return not isinstance(self.symbols[0], Resolved)

    @property
    def resolved(self) -> Tuple[Resolved, ...]:
        """Resolved entries only; an empty tuple for marker frames."""
        if self.is_empty:
            return ()
        return self.symbols


@dataclass(frozen=True)
class Backtrace:
    """Ordered, non-empty list of frames, in the order they were printed."""
    frames: Tuple[Frame, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "frames", tuple(self.frames))
        if not self.frames:
            raise ValueError("backtrace must contain at least one frame")

    def __len__(self) -> int:
        return len(self.frames)

    def __iter__(self) -> Iterator[Frame]:
        return iter(self.frames)

    def __getitem__(self, item: int) -> Frame:
        return self.frames[item]

    @classmethod
    def parse(cls, text: str) -> "Backtrace":
        return parse(text)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ParseError(ValueError):
    """
    Raised when the text does not match the backtrace grammar.

    Fields:
        text:     The full input that was being parsed.
        offset:   Character offset of the failure.
        expected: Sorted descriptions of what would have been accepted there.
    """

    def __init__(self, text: str, offset: int, expected: Iterable[str]):
        self.text = text
        self.offset = offset
        self.expected = tuple(sorted(expected))
        super().__init__(text, offset, self.expected)

    @property
    def line(self) -> int:
        """1-based line number of the failure."""
        return self.text.count("\n", 0, self.offset) + 1

    @property
    def column(self) -> int:
        """1-based column of the failure."""
        return self.offset - (self.text.rfind("\n", 0, self.offset) + 1) + 1

    def pointer(self) -> str:
        """
        Render the offending line with a caret under the failure, e.g.:

            1: 0xzz - main
                 ^
        """
        start = self.text.rfind("\n", 0, self.offset) + 1
        end = self.text.find("\n", self.offset)
        if end == -1:
            end = len(self.text)
        return f"{self.text[start:end]}\n{' ' * (self.column - 1)}^"

    def __str__(self) -> str:
        if len(self.expected) > 1:
            wanted = ", ".join(self.expected[:-1]) + " or " + self.expected[-1]
        elif self.expected:
            wanted = self.expected[0]
        else:
            wanted = "valid input"
        return f"line {self.line}, column {self.column}: expected {wanted}"


class _Mismatch(Exception):
    """Internal failure of a single grammar rule at a given offset."""

    def __init__(self, pos: int, expected: Iterable[str]):
        super().__init__(pos)
        self.pos = pos
        self.expected: FrozenSet[str] = frozenset(expected)

    def merge(self, other: Optional["_Mismatch"]) -> "_Mismatch":
        """Keep the failure that got farthest; union expectations on a tie."""
        if other is None or self.pos > other.pos:
            return self
        if other.pos > self.pos:
            return other
        return _Mismatch(self.pos, self.expected | other.expected)


# ---------------------------------------------------------------------------
# Lexical atoms
# ---------------------------------------------------------------------------

def _skip_ws(text: str, pos: int) -> int:
    return _WS_RE.match(text, pos).end()


def _literal(text: str, pos: int, literal: str) -> int:
    if text.startswith(literal, pos):
        return pos + len(literal)
    raise _Mismatch(pos, [f"'{literal}'"])


def _decimal(text: str, pos: int, what: str) -> Tuple[int, int]:
    """Decimal numeral; "0" alone is fine, any other leading zero is not."""
    m = _DIGITS_RE.match(text, pos)
    if m is None:
        raise _Mismatch(pos, [what])
    digits = m.group()
    if len(digits) > 1 and digits[0] == "0":
        raise _Mismatch(pos, [f"{what} without leading zero"])
    return int(digits), m.end()


def frame_index(text: str, pos: int) -> Tuple[int, int]:
    """Frame index: "<n>:" -> n."""
    index, pos = _decimal(text, pos, "frame index")
    return index, _literal(text, pos, ":")


def frame_pointer(text: str, pos: int) -> Tuple[int, int]:
    """Instruction pointer: "0x<hex>" -> int."""
    pos = _literal(text, pos, "0x")
    m = _HEX_DIGITS_RE.match(text, pos)
    if m is None:
        raise _Mismatch(pos, ["hexadecimal digit"])
    return int(m.group(), 16), m.end()


def symbol_name(text: str, pos: int) -> Tuple[Optional[str], int]:
    """
    "<unknown>" -> None, anything else up to the end of the line -> str.

    The sentinel is tried first so a literal "<unknown>" never comes back as
    an ordinary name.
    """
    if text.startswith(UNKNOWN_NAME, pos):
        return None, pos + len(UNKNOWN_NAME)

    end = text.find("\n", pos)
    if end == -1:
        end = len(text)

    m = _NAME_BREAK_RE.search(text, pos, end)
    cut = m.start() if m else end

    name = text[pos:cut].rstrip()
    if not name:
        raise _Mismatch(pos, ["symbol name"])
    return name, pos + len(name)


def symbol_location(text: str, pos: int) -> Tuple[SymbolLocation, int]:
    """Location clause body: "<path>:<line>" -> SymbolLocation."""
    m = _PATH_RE.match(text, pos)
    if m is None:
        raise _Mismatch(pos, ["source path"])
    pos = _literal(text, m.end(), ":")
    line, pos = _decimal(text, pos, "line number")
    return SymbolLocation(m.group(), line), pos


# ---------------------------------------------------------------------------
# Symbol entries
# ---------------------------------------------------------------------------

def _resolved_entry(text: str, pos: int) -> Tuple[Resolved, int]:
    """name [at path:line]"""
    if text.startswith((Unresolved.marker, NoInfo.marker), pos):
        raise _Mismatch(pos, ["symbol name"])
    name, pos = symbol_name(text, pos)

    m = _AT_RE.match(text, _skip_ws(text, pos))
    if m is None:
        return Resolved(name), pos
    location, pos = symbol_location(text, m.end())
    return Resolved(name, location), pos


def _next_resolved_entry(text: str, pos: int) -> Tuple[Resolved, int]:
    pos = _skip_ws(text, pos)
    pos = _literal(text, pos, "-")
    return _resolved_entry(text, _skip_ws(text, pos))


def frame_symbols(
    text: str, pos: int,
) -> Tuple[Tuple[SymbolEntry, ...], int, Optional[_Mismatch]]:
    """
    "- <unresolved>" | "- <no info>" | "- entry" ("- entry")*

    Besides the entries and the new position, returns the failure that
    ended the entry list, so the caller can report it if nothing else
    gets farther.
    """
    pos = _skip_ws(text, _literal(text, pos, "-"))

    for marker in (UNRESOLVED, NO_INFO):
        if text.startswith(marker.marker, pos):
            return (marker,), pos + len(marker.marker), None

    try:
        entry, pos = _resolved_entry(text, pos)
    except _Mismatch as exc:
        markers = _Mismatch(pos, [f"'{Unresolved.marker}'", f"'{NoInfo.marker}'"])
        raise exc.merge(markers) from None

    entries: List[SymbolEntry] = [entry]
    while True:
        try:
            entry, pos = _next_resolved_entry(text, pos)
        except _Mismatch as exc:
            return tuple(entries), pos, exc
        entries.append(entry)


# ---------------------------------------------------------------------------
# Frames and backtrace
# ---------------------------------------------------------------------------

def frame(text: str, pos: int) -> Tuple[Frame, int, Optional[_Mismatch]]:
    """index ~ pointer ~ symbols"""
    index, pos = frame_index(text, pos)
    pointer, pos = frame_pointer(text, _skip_ws(text, pos))
    symbols, pos, stopped = frame_symbols(text, _skip_ws(text, pos))
    return Frame(index, pointer, symbols), pos, stopped


def _backtrace(text: str) -> Backtrace:
    pos = _literal(text, _skip_ws(text, 0), HEADER)

    frames: List[Frame] = []
    stopped: Optional[_Mismatch] = None
    while True:
        try:
            parsed, pos_after, inner = frame(text, _skip_ws(text, pos))
        except _Mismatch as exc:
            stopped = exc.merge(stopped)
            break
        frames.append(parsed)
        pos, stopped = pos_after, inner

    if not frames:
        raise stopped

    pos = _skip_ws(text, pos)
    if pos != len(text):
        raise _Mismatch(pos, ["end of input"]).merge(stopped)
    return Backtrace(tuple(frames))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse(text: str) -> Backtrace:
    """
    Parse a complete backtrace.

    The text must start (after optional whitespace) with "stack backtrace:",
    followed by at least one frame, and nothing but whitespace after the
    last frame. Any mismatch raises ParseError; there is no partial result.
    """
    try:
        return _backtrace(text)
    except _Mismatch as exc:
        raise ParseError(text, exc.pos, exc.expected) from None


__all__ = [
    "HEADER",
    "UNKNOWN_NAME",
    "SymbolLocation",
    "Unresolved",
    "NoInfo",
    "UNRESOLVED",
    "NO_INFO",
    "Resolved",
    "SymbolEntry",
    "EmptyMarker",
    "Frame",
    "Backtrace",
    "ParseError",
    "frame_index",
    "frame_pointer",
    "symbol_name",
    "symbol_location",
    "frame_symbols",
    "frame",
    "parse",
]
