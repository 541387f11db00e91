import pytest

from backtrace_parser import (
    NO_INFO,
    UNRESOLVED,
    Backtrace,
    Frame,
    Resolved,
    SymbolLocation,
    backtrace_to_dict,
    format_backtrace,
    parse,
    summary_lines,
)
from backtrace_parser.output_formatter import format_frame, write_text_to_file


INLINED = Backtrace((
    Frame(0, 1, (Resolved("a"), Resolved("b", SymbolLocation("x", 1)))),
))


def test_format_inlined_frame():
    assert format_backtrace(INLINED) == (
        "stack backtrace:\n"
        "   0: 0x1 - a\n"
        "          - b\n"
        "              at x:1\n"
    )


def test_format_markers_and_unknown():
    bt = Backtrace((
        Frame(0, 0xAB, (UNRESOLVED,)),
        Frame(1, 0xFF, (NO_INFO,)),
        Frame(2, 0, (Resolved(None),)),
    ))
    assert format_backtrace(bt) == (
        "stack backtrace:\n"
        "   0: 0xab - <unresolved>\n"
        "   1: 0xff - <no info>\n"
        "   2: 0x0 - <unknown>\n"
    )


def test_format_frame_indent():
    frame = Frame(12, 0x10, (Resolved("main", SymbolLocation("src/main.rs", 6)),))
    assert format_frame(frame, indent=4) == [
        "  12: 0x10 - main",
        "               at src/main.rs:6",
    ]
    assert format_frame(frame, indent=0)[0] == "12: 0x10 - main"


@pytest.mark.parametrize("name", ["full.txt", "unresolved.txt", "no-info.txt"])
def test_round_trip_fixtures(read_fixture, name):
    parsed = parse(read_fixture(name))
    assert parse(format_backtrace(parsed)) == parsed


def test_round_trip_constructed():
    assert parse(format_backtrace(INLINED)) == INLINED
    assert parse(format_backtrace(INLINED, indent=1)) == INLINED


def test_round_trip_is_stable(read_fixture):
    once = format_backtrace(parse(read_fixture("full.txt")))
    assert format_backtrace(parse(once)) == once


def test_summary_lines():
    bt = parse(
        "stack backtrace:\n"
        "   0: 0xAB - foo at src/lib.rs:10 - bar\n"
        "   1: 0xFF - <no info>\n"
    )
    assert summary_lines(bt) == [
        "#0 0xab in foo at src/lib.rs:10",
        "#0 0xab in bar",
        "#1 0xff in <no info>",
    ]


def test_backtrace_to_dict():
    bt = Backtrace((
        Frame(0, 1, (Resolved("a"), Resolved("b", SymbolLocation("x", 1)))),
        Frame(1, 255, (UNRESOLVED,)),
        Frame(2, 0, (NO_INFO,)),
    ))
    assert backtrace_to_dict(bt) == {
        "frames": [
            {
                "index": 0,
                "pointer": 1,
                "pointer_hex": "0x1",
                "symbols": [
                    {"kind": "resolved", "name": "a", "path": None, "line": None},
                    {"kind": "resolved", "name": "b", "path": "x", "line": 1},
                ],
            },
            {
                "index": 1,
                "pointer": 255,
                "pointer_hex": "0xff",
                "symbols": [{"kind": "unresolved"}],
            },
            {
                "index": 2,
                "pointer": 0,
                "pointer_hex": "0x0",
                "symbols": [{"kind": "no_info"}],
            },
        ]
    }


def test_write_text_to_file(tmp_path):
    out = tmp_path / "bt.txt"
    write_text_to_file(format_backtrace(INLINED), out)
    assert parse(out.read_text(encoding="utf-8")) == INLINED


def test_default_index_column_matches_fixture(read_fixture):
    text = read_fixture("full.txt")
    printed = format_backtrace(parse(text))

    def frame_lines(s):
        return [line for line in s.splitlines() if line[:4].strip().isdigit()]

    assert frame_lines(printed) == frame_lines(text)
    assert len(frame_lines(text)) == 13
