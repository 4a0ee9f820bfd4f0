"""Tests for the lox command line entry point."""

import io

import pytest

from lox.cli import main


def _script(tmp_path, source: str) -> str:
    path = tmp_path / "script.lox"
    path.write_text(source)
    return str(path)


def test_help(capsys):
    assert main(["--help"]) == 0
    out = capsys.readouterr().out
    assert "lox [OPTIONS] [FILE]" in out


def test_short_help(capsys):
    assert main(["-h"]) == 0
    assert "--ast" in capsys.readouterr().out


def test_unknown_flag(capsys):
    assert main(["--bogus"]) == 2
    assert "unknown flag '--bogus'" in capsys.readouterr().err


def test_too_many_arguments(tmp_path, capsys):
    path = _script(tmp_path, "")
    assert main([path, path]) == 64
    assert "lox [OPTIONS] [FILE]" in capsys.readouterr().err


def test_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "nope.lox")]) == 66
    assert "No such file or directory" in capsys.readouterr().err


def test_invalid_utf8(tmp_path, capsys):
    path = tmp_path / "bad.lox"
    path.write_bytes(b"print \xff;")
    assert main([str(path)]) == 65
    assert "invalid utf-8" in capsys.readouterr().err


def test_run_file(tmp_path, capsys):
    path = _script(tmp_path, 'print "hello";\nprint 1 + 2;\n')
    assert main([path]) == 0
    captured = capsys.readouterr()
    assert captured.out == "hello\n3\n"
    assert captured.err == ""


def test_static_error_exit_code(tmp_path, capsys):
    path = _script(tmp_path, "print 1\nprint 2;\nprint 3")
    assert main([path]) == 65
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == (
        "[line 2] Error at 'print': Expect ';' after value.\n"
        "[line 3] Error at end: Expect ';' after value.\n"
    )


def test_resolve_error_exit_code(tmp_path, capsys):
    path = _script(tmp_path, "return 1;")
    assert main([path]) == 65
    assert "Can't return from top-level code." in capsys.readouterr().err


def test_runtime_error_exit_code(tmp_path, capsys):
    path = _script(tmp_path, 'print "before";\nprint -"x";\nprint "after";\n')
    assert main([path]) == 70
    captured = capsys.readouterr()
    assert captured.out == "before\n"
    assert captured.err == "Operand must be a number.\n[line 2]\n"


def test_stack_overflow(tmp_path, capsys):
    path = _script(tmp_path, "fun f() { f(); } f();")
    assert main([path]) == 70
    assert "Stack overflow." in capsys.readouterr().err


def test_tokens_mode(tmp_path, capsys):
    path = _script(tmp_path, "var x = 1;")
    assert main(["--tokens", path]) == 0
    assert capsys.readouterr().out.splitlines() == [
        "VAR var null",
        "IDENTIFIER x null",
        "EQUAL = null",
        "NUMBER 1 1.0",
        "SEMICOLON ; null",
        "EOF  null",
    ]


def test_ast_mode(tmp_path, capsys):
    path = _script(tmp_path, "print 1 + 2 * 3;\nvar a;")
    assert main([path, "--ast"]) == 0
    assert capsys.readouterr().out == "(print (+ 1 (* 2 3)))\n(var a)\n"


def test_ast_mode_reports_parse_errors(tmp_path, capsys):
    path = _script(tmp_path, "print ;")
    assert main(["--ast", path]) == 65
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Expect expression." in captured.err


def test_prompt_keeps_globals_and_recovers(monkeypatch, capsys):
    lines = 'var a = 1;\nprint a +;\nprint nil + 1;\nprint a;\n'
    monkeypatch.setattr("sys.stdin", io.StringIO(lines))
    assert main([]) == 0
    captured = capsys.readouterr()
    assert captured.out.count("> ") == 5
    assert captured.out.endswith("1\n> \n")
    assert "Expect expression." in captured.err
    assert "Operands must be two numbers or two strings." in captured.err


@pytest.mark.parametrize("flag", ["--ast", "--tokens"])
def test_modes_do_not_execute(tmp_path, capsys, flag):
    path = _script(tmp_path, 'print "side effect";')
    assert main([flag, path]) == 0
    assert "side effect\n" not in capsys.readouterr().out.splitlines()


def test_ast_stack_overflow(tmp_path, capsys):
    path = _script(tmp_path, "print " + "(" * 3000 + "1" + ")" * 3000 + ";")
    assert main(["--ast", path]) == 70
    assert "Stack overflow." in capsys.readouterr().err


def test_prompt_recovers_after_syntax_error_in_ast_mode(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("print ;\nprint 1;\n"))
    assert main(["--ast"]) == 0
    captured = capsys.readouterr()
    assert "(print 1)" in captured.out
    assert captured.err.count("Expect expression.") == 1
