"""Lox resolver: static pass that binds each local variable reference to a hop count.

References that resolve to no enclosing scope are left out of the table and
looked up by name in the global environment at runtime.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

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
from .errors import ResolveError
from .tokens import Token

if TYPE_CHECKING:
    from .runtime import Interpreter


# Function contexts
FN_NONE = "none"
FN_FUNCTION = "function"
FN_METHOD = "method"
FN_INITIALIZER = "initializer"

# Class contexts
CLASS_NONE = "none"
CLASS_CLASS = "class"
CLASS_SUBCLASS = "subclass"


class Resolver:
    def __init__(self, interpreter: Interpreter) -> None:
        self.interpreter: Interpreter = interpreter
        self.errors: list[ResolveError] = []
        # name -> True once defined; False while its initializer is being resolved
        self.scopes: list[dict[str, bool]] = []
        self.current_function: str = FN_NONE
        self.current_class: str = CLASS_NONE

    def error(self, tok: Token, msg: str) -> None:
        self.errors.append(ResolveError(msg, tok))

    # ── Scope management ──────────────────────────────────────

    def begin_scope(self) -> None:
        self.scopes.append({})

    def end_scope(self) -> None:
        self.scopes.pop()

    def declare(self, name: Token) -> None:
        if len(self.scopes) == 0:
            return
        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.error(name, "Already a variable with this name in this scope.")
        scope[name.lexeme] = False

    def define(self, name: Token) -> None:
        if len(self.scopes) == 0:
            return
        self.scopes[-1][name.lexeme] = True

    def resolve_local(self, expr: Expr, name: Token) -> None:
        i = len(self.scopes) - 1
        while i >= 0:
            if name.lexeme in self.scopes[i]:
                depth = len(self.scopes) - 1 - i
                self.interpreter.resolve(expr, depth, self.current_function == FN_NONE)
                return
            i -= 1

    # ── Statements ───────────────────────────────────────────

    def resolve_stmts(self, stmts: list[Stmt]) -> None:
        for st in stmts:
            self.resolve_stmt(st)

    def resolve_stmt(self, st: Stmt) -> None:
        if isinstance(st, Block):
            self.begin_scope()
            self.resolve_stmts(st.statements)
            self.end_scope()
            return

        if isinstance(st, Var):
            self.declare(st.name)
            if st.initializer is not None:
                self.resolve_expr(st.initializer)
            self.define(st.name)
            return

        if isinstance(st, Function):
            # Defined before the body so the function can recurse.
            self.declare(st.name)
            self.define(st.name)
            self.resolve_function(st, FN_FUNCTION)
            return

        if isinstance(st, Class):
            self.resolve_class(st)
            return

        if isinstance(st, Expression):
            self.resolve_expr(st.expression)
            return

        if isinstance(st, Print):
            self.resolve_expr(st.expression)
            return

        if isinstance(st, If):
            self.resolve_expr(st.condition)
            self.resolve_stmt(st.then_branch)
            if st.else_branch is not None:
                self.resolve_stmt(st.else_branch)
            return

        if isinstance(st, While):
            self.resolve_expr(st.condition)
            self.resolve_stmt(st.body)
            return

        if isinstance(st, Return):
            if self.current_function == FN_NONE:
                self.error(st.keyword, "Can't return from top-level code.")
            if st.value is not None:
                if self.current_function == FN_INITIALIZER:
                    self.error(st.keyword, "Can't return a value from an initializer.")
                self.resolve_expr(st.value)
            return

        raise TypeError("unknown statement " + type(st).__name__)

    def resolve_class(self, st: Class) -> None:
        enclosing_class = self.current_class
        self.current_class = CLASS_CLASS

        self.declare(st.name)
        self.define(st.name)

        if st.superclass is not None:
            if st.superclass.name.lexeme == st.name.lexeme:
                self.error(st.superclass.name, "A class can't inherit from itself.")
            self.current_class = CLASS_SUBCLASS
            self.resolve_expr(st.superclass)
            self.begin_scope()
            self.scopes[-1]["super"] = True

        self.begin_scope()
        self.scopes[-1]["this"] = True

        for method in st.methods:
            kind = FN_INITIALIZER if method.name.lexeme == "init" else FN_METHOD
            self.resolve_function(method, kind)

        self.end_scope()
        if st.superclass is not None:
            self.end_scope()

        self.current_class = enclosing_class

    def resolve_function(self, fn: Function, kind: str) -> None:
        enclosing_function = self.current_function
        self.current_function = kind

        self.begin_scope()
        for param in fn.params:
            self.declare(param)
            self.define(param)
        self.resolve_stmts(fn.body)
        self.end_scope()

        self.current_function = enclosing_function

    # ── Expressions ──────────────────────────────────────────

    def resolve_expr(self, expr: Expr) -> None:
        if isinstance(expr, Variable):
            if len(self.scopes) > 0 and self.scopes[-1].get(expr.name.lexeme) is False:
                self.error(expr.name, "Can't read local variable in its own initializer.")
            self.resolve_local(expr, expr.name)
            return

        if isinstance(expr, Assign):
            self.resolve_expr(expr.value)
            self.resolve_local(expr, expr.name)
            return

        if isinstance(expr, (Binary, Logical)):
            self.resolve_expr(expr.left)
            self.resolve_expr(expr.right)
            return

        if isinstance(expr, Unary):
            self.resolve_expr(expr.right)
            return

        if isinstance(expr, Grouping):
            self.resolve_expr(expr.expression)
            return

        if isinstance(expr, Literal):
            return

        if isinstance(expr, Call):
            self.resolve_expr(expr.callee)
            for arg in expr.arguments:
                self.resolve_expr(arg)
            return

        if isinstance(expr, Get):
            # Property names are dynamic; only the object is resolved.
            self.resolve_expr(expr.object)
            return

        if isinstance(expr, Set):
            self.resolve_expr(expr.value)
            self.resolve_expr(expr.object)
            return

        if isinstance(expr, This):
            if self.current_class == CLASS_NONE:
                self.error(expr.keyword, "Can't use 'this' outside of a class.")
                return
            self.resolve_local(expr, expr.keyword)
            return

        if isinstance(expr, Super):
            if self.current_class == CLASS_NONE:
                self.error(expr.keyword, "Can't use 'super' outside of a class.")
            elif self.current_class != CLASS_SUBCLASS:
                self.error(expr.keyword, "Can't use 'super' in a class with no superclass.")
            self.resolve_local(expr, expr.keyword)
            return

        raise TypeError("unknown expression " + type(expr).__name__)


def resolve(stmts: list[Stmt], interpreter: Interpreter) -> list[ResolveError]:
    """Resolve `stmts` into `interpreter`'s binding table. Returns errors (empty = ok)."""
    resolver = Resolver(interpreter)
    resolver.resolve_stmts(stmts)
    return resolver.errors
