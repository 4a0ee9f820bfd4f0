"""Lox AST: parse-time node definitions.

Nodes compare and hash by identity (`eq=False`): the interpreter's binding
table is keyed on the node object, so two structurally equal variable
references at different places in the source stay distinct.
"""

from __future__ import annotations

from dataclasses import dataclass

from .tokens import Token


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass(eq=False)
class Expr:
    """Base for all expression nodes."""


@dataclass(eq=False)
class Literal(Expr):
    """nil, true, false, number or string."""

    value: object


@dataclass(eq=False)
class Variable(Expr):
    name: Token


@dataclass(eq=False)
class Assign(Expr):
    name: Token
    value: Expr


@dataclass(eq=False)
class Unary(Expr):
    operator: Token
    right: Expr


@dataclass(eq=False)
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(eq=False)
class Logical(Expr):
    """Short-circuit `and` / `or`."""

    left: Expr
    operator: Token
    right: Expr


@dataclass(eq=False)
class Grouping(Expr):
    expression: Expr


@dataclass(eq=False)
class Call(Expr):
    """callee(arguments). `paren` is the closing ')' used for error lines."""

    callee: Expr
    paren: Token
    arguments: list[Expr]


@dataclass(eq=False)
class Get(Expr):
    object: Expr
    name: Token


@dataclass(eq=False)
class Set(Expr):
    object: Expr
    name: Token
    value: Expr


@dataclass(eq=False)
class This(Expr):
    keyword: Token


@dataclass(eq=False)
class Super(Expr):
    keyword: Token
    method: Token


# ============================================================
# STATEMENTS
# ============================================================


@dataclass(eq=False)
class Stmt:
    """Base for all statement nodes."""


@dataclass(eq=False)
class Expression(Stmt):
    expression: Expr


@dataclass(eq=False)
class Print(Stmt):
    expression: Expr


@dataclass(eq=False)
class Var(Stmt):
    name: Token
    initializer: Expr | None


@dataclass(eq=False)
class Block(Stmt):
    statements: list[Stmt]


@dataclass(eq=False)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Stmt | None


@dataclass(eq=False)
class While(Stmt):
    condition: Expr
    body: Stmt


@dataclass(eq=False)
class Function(Stmt):
    """fun name(params) { body }, also used for class methods."""

    name: Token
    params: list[Token]
    body: list[Stmt]


@dataclass(eq=False)
class Return(Stmt):
    keyword: Token
    value: Expr | None


@dataclass(eq=False)
class Class(Stmt):
    name: Token
    superclass: Variable | None
    methods: list[Function]
