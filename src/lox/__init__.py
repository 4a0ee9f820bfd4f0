"""Lox interpreter: public API.

The pipeline is four stages, each usable on its own:

    tokens, scan_errors = scan(source)
    stmts, parse_errors = parse(tokens)
    resolve_errors = resolve(stmts, interpreter)
    interpreter.interpret(stmts)

`run` chains them and stops before resolving or executing if an earlier
stage reported anything.
"""

from __future__ import annotations

from .errors import (
    LoxError as LoxError,
    LoxRuntimeError as LoxRuntimeError,
    ParseError as ParseError,
    Reporter as Reporter,
    ResolveError as ResolveError,
    ScanError as ScanError,
)
from .parse import parse as parse
from .printer import print_expr as print_expr, print_program as print_program
from .resolve import resolve as resolve
from .runtime import Interpreter as Interpreter, stringify as stringify
from .scan import scan as scan


def run(source: str, interpreter: Interpreter) -> Reporter:
    """Scan, parse, resolve and execute `source` against `interpreter`.

    Diagnostics go to `interpreter.reporter`, which is cleared first and also
    returned. Scan and parse errors are both collected before giving up, so
    one pass reports every syntax error it can find. Global state persists
    from one call to the next.
    """
    reporter = interpreter.reporter
    reporter.reset()
    tokens, scan_errors = scan(source)
    stmts, parse_errors = parse(tokens)
    reporter.extend(scan_errors)
    reporter.extend(parse_errors)
    if reporter.had_error:
        return reporter

    try:
        reporter.extend(resolve(stmts, interpreter))
        if reporter.had_error:
            return reporter
        interpreter.interpret(stmts)
    finally:
        interpreter.forget_top_level()
    return reporter
