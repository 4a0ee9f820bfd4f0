"""Lox CLI: run .lox scripts or an interactive prompt."""

from __future__ import annotations

import sys

from . import run
from .errors import Reporter
from .parse import parse
from .printer import print_program
from .runtime import Interpreter
from .scan import scan


USAGE: str = """\
lox [OPTIONS] [FILE]

Run a Lox script, or start an interactive prompt when FILE is omitted.

Options:
  --ast      Print the parsed program instead of running it
  --tokens   Print the scanned tokens instead of running it
  --help     Show this help message
"""

# sysexits.h codes
EXIT_OK: int = 0
EXIT_USAGE: int = 64
EXIT_DATAERR: int = 65
EXIT_NOINPUT: int = 66
EXIT_SOFTWARE: int = 70

MODE_RUN = "run"
MODE_AST = "ast"
MODE_TOKENS = "tokens"


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    filepath: str = ""
    mode = MODE_RUN
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return EXIT_OK
        elif arg == "--ast":
            mode = MODE_AST
            i += 1
        elif arg == "--tokens":
            mode = MODE_TOKENS
            i += 1
        elif arg.startswith("-"):
            print("lox: unknown flag '" + arg + "'", file=sys.stderr)
            return 2
        elif filepath == "":
            filepath = arg
            i += 1
        else:
            print(USAGE, end="", file=sys.stderr)
            return EXIT_USAGE

    if filepath == "":
        return run_prompt(mode)
    return run_file(filepath, mode)


def run_file(filepath: str, mode: str) -> int:
    try:
        with open(filepath, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        print("lox: " + filepath + ": No such file or directory", file=sys.stderr)
        return EXIT_NOINPUT
    except OSError as e:
        print("lox: " + filepath + ": " + str(e), file=sys.stderr)
        return EXIT_NOINPUT
    try:
        source = raw.decode("utf-8")
    except ValueError:
        print("lox: " + filepath + ": invalid utf-8", file=sys.stderr)
        return EXIT_DATAERR

    interpreter = Interpreter(stdout=sys.stdout, reporter=Reporter(sys.stderr))
    return run_source(source, interpreter, mode)


def run_prompt(mode: str) -> int:
    """Read-eval-print loop. Globals persist between lines; errors do not."""
    interpreter = Interpreter(stdout=sys.stdout, reporter=Reporter(sys.stderr))
    while True:
        sys.stdout.write("> ")
        sys.stdout.flush()
        line = sys.stdin.readline()
        if line == "":
            sys.stdout.write("\n")
            return EXIT_OK
        run_source(line, interpreter, mode)


def run_source(source: str, interpreter: Interpreter, mode: str) -> int:
    """Process one chunk of source in `mode`; returns the exit code it warrants."""
    reporter = interpreter.reporter
    reporter.reset()
    try:
        if mode == MODE_TOKENS:
            tokens, scan_errors = scan(source)
            reporter.extend(scan_errors)
            for tok in tokens:
                print(str(tok))
        elif mode == MODE_AST:
            tokens, scan_errors = scan(source)
            stmts, parse_errors = parse(tokens)
            reporter.extend(scan_errors)
            reporter.extend(parse_errors)
            if not reporter.had_error:
                print(print_program(stmts))
        else:
            run(source, interpreter)
    except RecursionError:
        print("Stack overflow.", file=sys.stderr)
        return EXIT_SOFTWARE

    if reporter.had_error:
        return EXIT_DATAERR
    if reporter.had_runtime_error:
        return EXIT_SOFTWARE
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
