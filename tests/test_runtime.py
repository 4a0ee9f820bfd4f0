"""Tests for the interpreter through the public API."""

import io
import math

import pytest

from lox import Interpreter, LoxRuntimeError, Reporter, parse, resolve, run, scan, stringify
from lox.runtime import Environment, LoxClass, LoxFunction, is_equal, is_truthy
from lox.tokens import TK_IDENTIFIER, Token


def _interp() -> tuple[Interpreter, io.StringIO]:
    out = io.StringIO()
    return Interpreter(stdout=out), out


def _run(source: str) -> str:
    interp, out = _interp()
    reporter = run(source, interp)
    assert not reporter.had_error, [str(e) for e in reporter.errors]
    assert not reporter.had_runtime_error, [str(e) for e in reporter.runtime_errors]
    return out.getvalue()


def _name(lexeme: str) -> Token:
    return Token(TK_IDENTIFIER, lexeme, None, 1)


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------


def test_truthiness():
    assert is_truthy(None) is False
    assert is_truthy(False) is False
    assert is_truthy(True) is True
    assert is_truthy(0.0) is True
    assert is_truthy("") is True


def test_equality_is_type_strict():
    assert is_equal(None, None)
    assert not is_equal(None, False)
    assert not is_equal(True, 1.0)
    assert not is_equal(0.0, False)
    assert not is_equal("1", 1.0)
    assert is_equal(1.0, 1.0)
    assert is_equal("a", "a")


def test_nan_is_not_equal_to_itself():
    assert not is_equal(math.nan, math.nan)


@pytest.mark.parametrize(
    "value,text",
    [
        (None, "nil"),
        (True, "true"),
        (False, "false"),
        (3.0, "3"),
        (-0.0, "-0"),
        (2.5, "2.5"),
        (1e21, "1e+21"),
        (math.inf, "Infinity"),
        (-math.inf, "-Infinity"),
        (math.nan, "NaN"),
        ("text", "text"),
    ],
)
def test_stringify(value, text):
    assert stringify(value) == text


# ---------------------------------------------------------------------------
# Environments
# ---------------------------------------------------------------------------


def test_environment_lookup_walks_outward():
    outer = Environment()
    outer.define("a", 1.0)
    inner = Environment(outer)
    assert inner.get(_name("a")) == 1.0
    inner.assign(_name("a"), 2.0)
    assert outer.get(_name("a")) == 2.0


def test_environment_redefine_overwrites():
    env = Environment()
    env.define("a", 1.0)
    env.define("a", 2.0)
    assert env.get(_name("a")) == 2.0


def test_environment_undefined_raises():
    env = Environment()
    with pytest.raises(LoxRuntimeError, match="Undefined variable 'x'."):
        env.get(_name("x"))
    with pytest.raises(LoxRuntimeError, match="Undefined variable 'x'."):
        env.assign(_name("x"), None)


def test_environment_ancestor():
    g = Environment()
    mid = Environment(g)
    leaf = Environment(mid)
    g.define("v", "global")
    assert leaf.ancestor(2) is g
    assert leaf.get_at(2, "v") == "global"
    leaf.assign_at(2, _name("v"), "changed")
    assert g.values["v"] == "changed"


# ---------------------------------------------------------------------------
# Interpreter
# ---------------------------------------------------------------------------


def test_globals_persist_across_runs():
    interp, out = _interp()
    run("var a = 1;", interp)
    run("fun show() { print a; }", interp)
    run("a = a + 1; show();", interp)
    assert out.getvalue() == "2\n"


def test_runtime_error_leaves_earlier_effects():
    interp, out = _interp()
    reporter = run('var a = "set"; print a; a = nil + 1;', interp)
    assert out.getvalue() == "set\n"
    assert reporter.had_runtime_error
    err = reporter.runtime_errors[0]
    assert err.line == 1
    assert err.render() == "Operands must be two numbers or two strings.\n[line 1]"
    run("print a;", interp)
    assert out.getvalue() == "set\nset\n"


def test_interpret_returns_the_error():
    interp, _ = _interp()
    tokens, _ = scan("\n\nprint -true;")
    stmts, _ = parse(tokens)
    assert resolve(stmts, interp) == []
    err = interp.interpret(stmts)
    assert isinstance(err, LoxRuntimeError)
    assert err.msg == "Operand must be a number."
    assert err.line == 3
    assert interp.reporter.runtime_errors == [err]


def test_static_errors_prevent_execution():
    interp, out = _interp()
    reporter = run('print "side effect"; return 1;', interp)
    assert reporter.had_error
    assert out.getvalue() == ""


def test_reporter_writes_to_stream():
    stream = io.StringIO()
    interp = Interpreter(stdout=io.StringIO(), reporter=Reporter(stream))
    run("print 1 +;", interp)
    assert stream.getvalue() == "[line 1] Error at ';': Expect expression.\n"


def test_reporter_reset_clears_flags():
    interp, _ = _interp()
    reporter = run("print undefined;", interp)
    assert reporter.had_runtime_error
    reporter.reset()
    assert not reporter.had_runtime_error
    assert not reporter.had_error


def test_function_and_class_values():
    interp, out = _interp()
    run("fun f(a, b) {} class C { init(x) {} }", interp)
    f = interp.globals.get(_name("f"))
    c = interp.globals.get(_name("C"))
    assert isinstance(f, LoxFunction)
    assert f.arity() == 2
    assert isinstance(c, LoxClass)
    assert c.arity() == 1
    assert c.find_method("init") is not None


def test_method_lookup_walks_superclass():
    interp, _ = _interp()
    run("class A { m() {} } class B < A {}", interp)
    b = interp.globals.get(_name("B"))
    assert isinstance(b, LoxClass)
    assert b.superclass is not None
    assert b.find_method("m") is b.superclass.methods["m"]
    assert b.find_method("missing") is None


def test_bound_method_keeps_instance():
    assert _run(
        """
        class A { init(n) { this.n = n; } get() { return this.n; } }
        var m = A(1).get;
        var other = A(2);
        print m();
        """
    ) == "1\n"


def test_deep_recursion_raises_recursion_error():
    interp, _ = _interp()
    with pytest.raises(RecursionError):
        run("fun f() { f(); } f();", interp)


def test_clock_is_native():
    assert _run("print clock;") == "<native fn>\n"


def test_static_error_does_not_block_later_runs():
    interp, out = _interp()
    first = run("print 1 +;", interp)
    assert first.had_error
    second = run('print "second";', interp)
    assert not second.had_error
    assert out.getvalue() == "second\n"


def test_runtime_error_in_nested_call_restores_globals():
    interp, out = _interp()
    reporter = run('var x = "outer"; fun f() { { var x = "inner"; nil + 1; } } f();', interp)
    assert reporter.had_runtime_error
    reporter = run("print x; var y = 2; print y;", interp)
    assert not reporter.had_runtime_error
    assert out.getvalue() == "outer\n2\n"


def test_top_level_bindings_are_dropped_after_each_run():
    interp, out = _interp()
    run("{ var a = 1; { print a; } }", interp)
    assert interp.locals == {}
    run("fun make() { var n = 0; fun inc() { n = n + 1; return n; } return inc; }", interp)
    kept = len(interp.locals)
    assert kept > 0
    run("var c = make(); { var t = c(); print t + c(); }", interp)
    assert len(interp.locals) == kept
    assert out.getvalue() == "1\n3\n"
