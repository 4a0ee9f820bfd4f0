"""Lox AST printer: renders nodes as parenthesized prefix text.

Used by `lox --ast` and by the parser tests to check tree shape. Like the
resolver and interpreter it must cover every node kind in `ast.py`.
"""

from __future__ import annotations

from .ast import (
    Assign,
    Binary,
    Block,
    Call,
    Class,
    Expr,
    Expression,
    Function,
    Get,
    Grouping,
    If,
    Literal,
    Logical,
    Print,
    Return,
    Set,
    Stmt,
    Super,
    This,
    Unary,
    Var,
    Variable,
    While,
)
from .runtime import stringify


def print_expr(expr: Expr) -> str:
    """Render a single expression, e.g. `(+ 1 (* 2 3))`."""
    return _Printer().expr(expr)


def print_program(stmts: list[Stmt]) -> str:
    """Render statements one per line."""
    p = _Printer()
    return "\n".join(p.stmt(st) for st in stmts)


class _Printer:
    def _paren(self, name: str, *parts: str) -> str:
        if len(parts) == 0:
            return "(" + name + ")"
        return "(" + name + " " + " ".join(parts) + ")"

    def expr(self, e: Expr) -> str:
        if isinstance(e, Literal):
            if isinstance(e.value, str):
                return '"' + e.value + '"'
            return stringify(e.value)
        if isinstance(e, Variable):
            return e.name.lexeme
        if isinstance(e, Assign):
            return self._paren("=", e.name.lexeme, self.expr(e.value))
        if isinstance(e, (Binary, Logical)):
            return self._paren(e.operator.lexeme, self.expr(e.left), self.expr(e.right))
        if isinstance(e, Unary):
            return self._paren(e.operator.lexeme, self.expr(e.right))
        if isinstance(e, Grouping):
            return self._paren("group", self.expr(e.expression))
        if isinstance(e, Call):
            args = [self.expr(a) for a in e.arguments]
            return self._paren("call", self.expr(e.callee), *args)
        if isinstance(e, Get):
            return self._paren(".", self.expr(e.object), e.name.lexeme)
        if isinstance(e, Set):
            return self._paren("=", self.expr(e.object), e.name.lexeme, self.expr(e.value))
        if isinstance(e, This):
            return "this"
        if isinstance(e, Super):
            return self._paren("super", e.method.lexeme)
        raise TypeError("unknown expression " + type(e).__name__)

    def stmt(self, s: Stmt) -> str:
        if isinstance(s, Expression):
            return self._paren(";", self.expr(s.expression))
        if isinstance(s, Print):
            return self._paren("print", self.expr(s.expression))
        if isinstance(s, Var):
            if s.initializer is None:
                return self._paren("var", s.name.lexeme)
            return self._paren("var", s.name.lexeme, "=", self.expr(s.initializer))
        if isinstance(s, Block):
            return self._paren("block", *[self.stmt(st) for st in s.statements])
        if isinstance(s, If):
            if s.else_branch is None:
                return self._paren("if", self.expr(s.condition), self.stmt(s.then_branch))
            return self._paren(
                "if-else",
                self.expr(s.condition),
                self.stmt(s.then_branch),
                self.stmt(s.else_branch),
            )
        if isinstance(s, While):
            return self._paren("while", self.expr(s.condition), self.stmt(s.body))
        if isinstance(s, Function):
            return self._function("fun", s)
        if isinstance(s, Return):
            if s.value is None:
                return self._paren("return")
            return self._paren("return", self.expr(s.value))
        if isinstance(s, Class):
            parts = [s.name.lexeme]
            if s.superclass is not None:
                parts.append("< " + s.superclass.name.lexeme)
            for m in s.methods:
                parts.append(self._function("method", m))
            return self._paren("class", *parts)
        raise TypeError("unknown statement " + type(s).__name__)

    def _function(self, kind: str, fn: Function) -> str:
        params = "(" + " ".join(p.lexeme for p in fn.params) + ")"
        body = [self.stmt(st) for st in fn.body]
        return self._paren(kind, fn.name.lexeme + params, *body)
