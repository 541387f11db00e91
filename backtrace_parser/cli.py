#!/usr/bin/env python3
"""
cli.py

Command-line entry point for the backtrace parser.

Responsibilities:
  - Read backtrace text from a file or stdin.
  - Parse it via parser.py.
  - Print or write the result as canonical text, JSON, or a summary.
  - Report syntax errors with the offending line and a caret.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .parser import Backtrace, ParseError, parse
from .output_formatter import (
    backtrace_to_dict,
    format_backtrace,
    summary_lines,
    write_text_to_file,
)


LOG = logging.getLogger("backtrace_parser")


# ---------------------------------------------------------------------------
# CLI helpers
# ---------------------------------------------------------------------------

def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="backtrace-parser",
        description="Parse a 'stack backtrace:' dump into structured frames.",
    )
    p.add_argument(
        "input",
        metavar="BACKTRACE_PATH",
        help="Path to a file holding the backtrace, or '-' to read stdin.",
    )
    p.add_argument(
        "--format",
        choices=("text", "json", "summary"),
        default="text",
        help=(
            "Output format: canonical backtrace text, JSON, or one "
            "'#N ADDRESS in FUNC at FILE:LINE' line per symbol (default: text)."
        ),
    )
    p.add_argument(
        "--indent",
        type=int,
        default=4,
        help="Width of the frame index column in text output (default: 4).",
    )
    p.add_argument(
        "--output",
        help="Write the result to this file instead of stdout.",
    )
    p.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging.",
    )
    return p


def read_input(source: str) -> str:
    if source == "-":
        LOG.debug("Reading backtrace from stdin")
        return sys.stdin.read()

    path = Path(source)
    if not path.is_file():
        LOG.error("Input path is not a file: %s", path)
        raise SystemExit(1)

    LOG.debug("Reading backtrace file: %s", path)
    return path.read_text(encoding="utf-8", errors="replace")


def parse_or_exit(text: str, source: str) -> Backtrace:
    """
    Parse text, turning a ParseError into a logged message and exit code 1.
    """
    try:
        backtrace = parse(text)
    except ParseError as e:
        LOG.error("%s: %s", source, e)
        for line in e.pointer().splitlines():
            LOG.error("  %s", line)
        raise SystemExit(1)

    LOG.info("Parsed %d frames from %s", len(backtrace), source)
    return backtrace


def render(backtrace: Backtrace, fmt: str, indent: int) -> str:
    if fmt == "json":
        return json.dumps(backtrace_to_dict(backtrace), indent=2) + "\n"
    if fmt == "summary":
        return "\n".join(summary_lines(backtrace)) + "\n"
    return format_backtrace(backtrace, indent=indent)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> None:
    args = build_argparser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    if args.indent < 0:
        LOG.error("--indent must be non-negative, got %d", args.indent)
        raise SystemExit(1)

    text = read_input(args.input)
    backtrace = parse_or_exit(text, args.input)
    result = render(backtrace, args.format, args.indent)

    if args.output:
        out_path = Path(args.output)
        LOG.info("Writing %s output to: %s", args.format, out_path)
        write_text_to_file(result, out_path)
        return

    sys.stdout.write(result)


if __name__ == "__main__":
    main()
