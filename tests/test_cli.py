import io
import json
import logging

import pytest

from backtrace_parser import backtrace_to_dict, format_backtrace, parse
from backtrace_parser.cli import build_argparser, main


def test_argparser_defaults():
    args = build_argparser().parse_args(["trace.txt"])
    assert args.input == "trace.txt"
    assert args.format == "text"
    assert args.indent == 4
    assert args.output is None
    assert not args.verbose


def test_text_output(fixture_path, read_fixture, capsys):
    main([str(fixture_path("full.txt"))])
    out = capsys.readouterr().out
    assert out == format_backtrace(parse(read_fixture("full.txt")))


def test_json_output(fixture_path, read_fixture, capsys):
    main([str(fixture_path("full.txt")), "--format", "json"])
    out = capsys.readouterr().out
    assert json.loads(out) == backtrace_to_dict(parse(read_fixture("full.txt")))


def test_summary_output(fixture_path, capsys):
    main([str(fixture_path("no-info.txt")), "--format", "summary"])
    assert capsys.readouterr().out == "#0 0x0 in <no info>\n"


def test_stdin_input(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("stack backtrace:\n 0: 0x1 - <unresolved>\n"))
    main(["-", "--indent", "1"])
    assert capsys.readouterr().out == "stack backtrace:\n0: 0x1 - <unresolved>\n"


def test_output_file(fixture_path, read_fixture, tmp_path, capsys):
    out_path = tmp_path / "parsed.json"
    main([str(fixture_path("unresolved.txt")), "--format", "json", "--output", str(out_path)])
    assert capsys.readouterr().out == ""
    data = json.loads(out_path.read_text(encoding="utf-8"))
    assert data == backtrace_to_dict(parse(read_fixture("unresolved.txt")))


def test_parse_error_exits(fixture_path, caplog):
    caplog.set_level(logging.INFO)
    with pytest.raises(SystemExit) as exc:
        main([str(fixture_path("bad-pointer.txt"))])
    assert exc.value.code == 1
    errors = [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]
    assert any("line 3, column 9: expected hexadecimal digit" in m for m in errors)
    assert any(m.strip() == "^" for m in errors)


def test_missing_input_exits(tmp_path, caplog):
    with pytest.raises(SystemExit) as exc:
        main([str(tmp_path / "missing.txt")])
    assert exc.value.code == 1
    assert "Input path is not a file" in caplog.text


def test_negative_indent_exits(fixture_path):
    with pytest.raises(SystemExit) as exc:
        main([str(fixture_path("full.txt")), "--indent", "-1"])
    assert exc.value.code == 1
