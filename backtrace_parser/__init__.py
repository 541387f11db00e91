"""
Parser for "stack backtrace:" dumps printed by runtimes on panic or crash.

The parser turns the text into an immutable Backtrace of Frames, each with
an index, an instruction pointer and its symbol entries.
"""

from .parser import (
    HEADER,
    NO_INFO,
    UNKNOWN_NAME,
    UNRESOLVED,
    Backtrace,
    EmptyMarker,
    Frame,
    NoInfo,
    ParseError,
    Resolved,
    SymbolEntry,
    SymbolLocation,
    Unresolved,
    parse,
)
from .output_formatter import backtrace_to_dict, format_backtrace, summary_lines

__version__ = "0.1.0"

__all__ = [
    "HEADER",
    "NO_INFO",
    "UNKNOWN_NAME",
    "UNRESOLVED",
    "Backtrace",
    "EmptyMarker",
    "Frame",
    "NoInfo",
    "ParseError",
    "Resolved",
    "SymbolEntry",
    "SymbolLocation",
    "Unresolved",
    "parse",
    "backtrace_to_dict",
    "format_backtrace",
    "summary_lines",
]
