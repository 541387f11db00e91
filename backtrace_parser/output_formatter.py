#!/usr/bin/env python3
"""
output_formatter.py

Formatting utilities for parsed backtraces.

Responsibilities:
  - Print a Backtrace back into the textual "stack backtrace:" layout.
  - Produce plain dict views (for JSON output).
  - Produce a compact one-line-per-symbol summary.

Layout of the canonical printer (same as the Rust backtrace crate):

    stack backtrace:
       0: 0x55e06f94d05d - backtrace::backtrace::trace
                            at src/backtrace/mod.rs:42
                        - backtrace::capture::Backtrace::new
       1: 0x0 - <no info>

Each location and each further inlined symbol goes on its own line, so the
output parses back into an equal Backtrace as long as no symbol name holds a
line break, surrounding whitespace, or a " - " / " at <path>:<n>" clause.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

from .parser import (
    UNKNOWN_NAME,
    HEADER,
    Backtrace,
    Frame,
    Resolved,
    SymbolEntry,
)


# ---------------------------------------------------------------------------
# Small helpers
# ---------------------------------------------------------------------------

def _entry_text(entry: SymbolEntry) -> str:
    """Marker text for empty frames, name (or "<unknown>") otherwise."""
    if isinstance(entry, Resolved):
        return UNKNOWN_NAME if entry.name is None else entry.name
    return entry.marker


def _entry_kind(entry: SymbolEntry) -> str:
    if isinstance(entry, Resolved):
        return "resolved"
    if entry.marker == "<unresolved>":
        return "unresolved"
    return "no_info"


# ---------------------------------------------------------------------------
# Canonical printer
# ---------------------------------------------------------------------------

def format_frame(frame: Frame, indent: int = 4) -> List[str]:
    """
    Format one frame into text lines.

    The index is right-aligned to `indent` columns. Follow-up entries are
    aligned under the first "-" of the frame line.
    """
    head = f"{str(frame.index).rjust(indent)}: 0x{frame.pointer:x} - "
    dash_col = " " * (len(head) - 2)

    out: List[str] = []
    for n, entry in enumerate(frame.symbols):
        if n == 0:
            out.append(head + _entry_text(entry))
        else:
            out.append(f"{dash_col}- {_entry_text(entry)}")
        if isinstance(entry, Resolved) and entry.location is not None:
            out.append(f"{dash_col}    at {entry.location.path}:{entry.location.line}")
    return out


def format_backtrace(backtrace: Backtrace, indent: int = 4) -> str:
    """
    Format a whole backtrace, header included, with a trailing newline.
    """
    lines = [HEADER]
    for frame in backtrace:
        lines.extend(format_frame(frame, indent=indent))
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Dict / summary views
# ---------------------------------------------------------------------------

def symbol_to_dict(entry: SymbolEntry) -> Dict[str, Any]:
    d: Dict[str, Any] = {"kind": _entry_kind(entry)}
    if isinstance(entry, Resolved):
        d["name"] = entry.name
        d["path"] = entry.path
        d["line"] = entry.line
    return d


def frame_to_dict(frame: Frame) -> Dict[str, Any]:
    return {
        "index": frame.index,
        "pointer": frame.pointer,
        "pointer_hex": f"0x{frame.pointer:x}",
        "symbols": [symbol_to_dict(s) for s in frame.symbols],
    }


def backtrace_to_dict(backtrace: Backtrace) -> Dict[str, Any]:
    """
    JSON-compatible view:

        {"frames": [{"index": 0, "pointer": 171, "pointer_hex": "0xab",
                     "symbols": [{"kind": "resolved", "name": "foo",
                                  "path": "src/lib.rs", "line": 10}]}]}
    """
    return {"frames": [frame_to_dict(f) for f in backtrace]}


def summary_lines(backtrace: Backtrace) -> List[str]:
    """
    One line per symbol entry, keeping the "#N ADDRESS in FUNC at FILE:LINE"
    convention. Inlined entries of the same frame repeat the frame number.

        #0 0xab in foo at src/lib.rs:10
        #1 0xff in <no info>
    """
    out: List[str] = []
    for frame in backtrace:
        for entry in frame.symbols:
            line = f"#{frame.index} 0x{frame.pointer:x} in {_entry_text(entry)}"
            if isinstance(entry, Resolved) and entry.location is not None:
                line = f"{line} at {entry.location.path}:{entry.location.line}"
            out.append(line)
    return out


def write_text_to_file(text: str, path: Path, encoding: str = "utf-8") -> None:
    """
    Write already formatted output to a file.
    """
    with path.open("w", encoding=encoding) as f:
        f.write(text)


__all__ = [
    "format_frame",
    "format_backtrace",
    "symbol_to_dict",
    "frame_to_dict",
    "backtrace_to_dict",
    "summary_lines",
    "write_text_to_file",
]
