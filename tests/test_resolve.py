"""Tests for the scope distances the resolver records."""

import io

from lox import Interpreter, parse, resolve, scan
from lox.ast import Assign, Block, Expression, Function, Print, Return, Variable


def _resolve(source: str):
    tokens, _ = scan(source)
    stmts, parse_errors = parse(tokens)
    assert parse_errors == []
    interp = Interpreter(stdout=io.StringIO())
    errors = resolve(stmts, interp)
    assert errors == [], [str(e) for e in errors]
    return stmts, interp


def test_globals_are_not_recorded():
    stmts, interp = _resolve("var a = 1; print a;")
    assert isinstance(stmts[1], Print)
    assert stmts[1].expression not in interp.locals
    assert interp.locals == {}


def test_local_in_same_scope_is_distance_zero():
    stmts, interp = _resolve("{ var a = 1; print a; }")
    block = stmts[0]
    assert isinstance(block, Block)
    use = block.statements[1].expression
    assert interp.locals[use] == 0


def test_nested_block_distance():
    stmts, interp = _resolve("{ var a = 1; { { print a; } } }")
    inner = stmts[0].statements[1].statements[0]
    use = inner.statements[0].expression
    assert isinstance(use, Variable)
    assert interp.locals[use] == 2


def test_closure_distance_and_assignment():
    stmts, interp = _resolve(
        "fun outer() { var x = 1; fun inner() { x = 2; return x; } return inner; }"
    )
    outer = stmts[0]
    assert isinstance(outer, Function)
    inner = outer.body[1]
    assert isinstance(inner, Function)
    assign = inner.body[0].expression
    assert isinstance(assign, Assign)
    assert interp.locals[assign] == 1
    ret = inner.body[1]
    assert isinstance(ret, Return)
    assert interp.locals[ret.value] == 1


def test_parameters_are_distance_zero():
    stmts, interp = _resolve("fun f(a) { return a; }")
    ret = stmts[0].body[0]
    assert interp.locals[ret.value] == 0


def test_this_resolves_to_method_binding_scope():
    stmts, interp = _resolve("class A { m() { return this; } }")
    ret = stmts[0].methods[0].body[0]
    # params scope, then the 'this' scope
    assert interp.locals[ret.value] == 1


def test_super_sits_outside_this():
    stmts, interp = _resolve("class A {} class B < A { m() { return super.m; } }")
    ret = stmts[1].methods[0].body[0]
    assert interp.locals[ret.value] == 2


def test_nodes_with_equal_fields_resolve_independently():
    stmts, interp = _resolve("{ var a = 1; print a; { print a; } }")
    first = stmts[0].statements[1].expression
    second = stmts[0].statements[2].statements[0].expression
    assert first is not second
    assert interp.locals[first] == 0
    assert interp.locals[second] == 1


def test_resolving_twice_is_stable():
    source = "fun f(a) { { var b = a; print b; } return a; }"
    tokens, _ = scan(source)
    stmts, _ = parse(tokens)
    interp = Interpreter(stdout=io.StringIO())
    assert resolve(stmts, interp) == []
    first = dict(interp.locals)
    assert resolve(stmts, interp) == []
    assert interp.locals == first


def test_all_errors_reported():
    tokens, _ = scan("return 1;\nprint this;\n{ var a = a; }")
    stmts, _ = parse(tokens)
    errors = resolve(stmts, Interpreter(stdout=io.StringIO()))
    assert [e.line for e in errors] == [1, 2, 3]
    assert errors[0].render() == "[line 1] Error at 'return': Can't return from top-level code."


def test_unused_expression_statement():
    stmts, interp = _resolve("{ var a; a; }")
    stmt = stmts[0].statements[1]
    assert isinstance(stmt, Expression)
    assert interp.locals[stmt.expression] == 0
