"""Lox runtime: environments, the callable object model, and the tree-walking evaluator."""

from __future__ import annotations

import math
import sys
import time
from dataclasses import dataclass
from typing import Callable, TextIO

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
from .errors import LoxRuntimeError, Reporter
from .tokens import (
    TK_BANG,
    TK_BANG_EQUAL,
    TK_EQUAL_EQUAL,
    TK_GREATER,
    TK_GREATER_EQUAL,
    TK_LESS,
    TK_LESS_EQUAL,
    TK_MINUS,
    TK_OR,
    TK_PLUS,
    TK_SLASH,
    TK_STAR,
    Token,
)


# ============================================================
# Environments
# ============================================================


class Environment:
    """One scope of bindings, chained to its enclosing scope.

    Closures hold on to the environment they were created in, so an
    environment can outlive the block that created it and be shared by
    several function values.
    """

    def __init__(self, enclosing: Environment | None = None) -> None:
        self.values: dict[str, object] = {}
        self.enclosing: Environment | None = enclosing

    def define(self, name: str, value: object) -> None:
        self.values[name] = value

    def get(self, name: Token) -> object:
        env: Environment | None = self
        while env is not None:
            if name.lexeme in env.values:
                return env.values[name.lexeme]
            env = env.enclosing
        raise LoxRuntimeError("Undefined variable '" + name.lexeme + "'.", name)

    def assign(self, name: Token, value: object) -> None:
        env: Environment | None = self
        while env is not None:
            if name.lexeme in env.values:
                env.values[name.lexeme] = value
                return
            env = env.enclosing
        raise LoxRuntimeError("Undefined variable '" + name.lexeme + "'.", name)

    def ancestor(self, distance: int) -> Environment:
        env = self
        for _ in range(distance):
            assert env.enclosing is not None, "resolved distance past global scope"
            env = env.enclosing
        return env

    def get_at(self, distance: int, name: str) -> object:
        return self.ancestor(distance).values[name]

    def assign_at(self, distance: int, name: Token, value: object) -> None:
        self.ancestor(distance).values[name.lexeme] = value


# ============================================================
# Callables
# ============================================================


class LoxCallable:
    """Anything a Lox call expression can invoke."""

    def arity(self) -> int:  # pragma: no cover
        raise NotImplementedError

    def call(self, interpreter: Interpreter, args: list[object]) -> object:  # pragma: no cover
        raise NotImplementedError

    def to_string(self) -> str:  # pragma: no cover
        raise NotImplementedError


class NativeFunction(LoxCallable):
    """A host-provided function exposed as a Lox global."""

    def __init__(self, name: str, params: int, fn: Callable[[list[object]], object]):
        self.name: str = name
        self.params: int = params
        self.fn: Callable[[list[object]], object] = fn

    def arity(self) -> int:
        return self.params

    def call(self, interpreter: Interpreter, args: list[object]) -> object:
        return self.fn(args)

    def to_string(self) -> str:
        return "<native fn>"


def _clock(args: list[object]) -> object:
    return time.time()


class LoxFunction(LoxCallable):
    def __init__(self, declaration: Function, closure: Environment, is_initializer: bool):
        self.declaration: Function = declaration
        self.closure: Environment = closure
        self.is_initializer: bool = is_initializer

    def bind(self, instance: LoxInstance) -> LoxFunction:
        env = Environment(self.closure)
        env.define("this", instance)
        return LoxFunction(self.declaration, env, self.is_initializer)

    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, interpreter: Interpreter, args: list[object]) -> object:
        env = Environment(self.closure)
        for i, param in enumerate(self.declaration.params):
            env.define(param.lexeme, args[i])
        signal = interpreter.execute_block(self.declaration.body, env)
        if self.is_initializer:
            return self.closure.get_at(0, "this")
        if signal is not None:
            return signal.value
        return None

    def to_string(self) -> str:
        return "<fn " + self.declaration.name.lexeme + ">"


class LoxClass(LoxCallable):
    def __init__(
        self, name: str, superclass: LoxClass | None, methods: dict[str, LoxFunction]
    ):
        self.name: str = name
        self.superclass: LoxClass | None = superclass
        self.methods: dict[str, LoxFunction] = methods

    def find_method(self, name: str) -> LoxFunction | None:
        klass: LoxClass | None = self
        while klass is not None:
            if name in klass.methods:
                return klass.methods[name]
            klass = klass.superclass
        return None

    def arity(self) -> int:
        initializer = self.find_method("init")
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter: Interpreter, args: list[object]) -> object:
        instance = LoxInstance(self)
        initializer = self.find_method("init")
        if initializer is not None:
            initializer.bind(instance).call(interpreter, args)
        return instance

    def to_string(self) -> str:
        return self.name


class LoxInstance:
    def __init__(self, klass: LoxClass) -> None:
        self.klass: LoxClass = klass
        self.fields: dict[str, object] = {}

    def get(self, name: Token) -> object:
        # Fields shadow methods.
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]
        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)
        raise LoxRuntimeError("Undefined property '" + name.lexeme + "'.", name)

    def set(self, name: Token, value: object) -> None:
        self.fields[name.lexeme] = value

    def to_string(self) -> str:
        return self.klass.name + " instance"


# ============================================================
# Values
# ============================================================


def is_truthy(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(a: object, b: object) -> bool:
    if a is None:
        return b is None
    # Different kinds never compare equal; keeps `true == 1` false.
    if type(a) is not type(b):
        return False
    return a == b


def stringify(value: object) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        text = repr(value)
        if text.endswith(".0"):
            text = text[:-2]
        return text
    if isinstance(value, str):
        return value
    if isinstance(value, (LoxCallable, LoxInstance)):
        return value.to_string()
    return str(value)


def _check_number(op: Token, operand: object) -> float:
    if isinstance(operand, float):
        return operand
    raise LoxRuntimeError("Operand must be a number.", op)


def _check_numbers(op: Token, left: object, right: object) -> tuple[float, float]:
    if isinstance(left, float) and isinstance(right, float):
        return left, right
    raise LoxRuntimeError("Operands must be numbers.", op)


# ============================================================
# Control flow signal (internal)
# ============================================================


@dataclass
class _Return:
    """Result of executing a `return`; carried up to the enclosing call."""

    value: object


# ============================================================
# Interpreter
# ============================================================


class Interpreter:
    """Executes resolved statements. Global state persists across `interpret` calls."""

    def __init__(self, stdout: TextIO | None = None, reporter: Reporter | None = None):
        self.stdout: TextIO = stdout if stdout is not None else sys.stdout
        self.reporter: Reporter = reporter if reporter is not None else Reporter()
        self.globals: Environment = Environment()
        self.locals: dict[Expr, int] = {}
        # Bindings outside any function body; they run once per pass.
        self.top_level: list[Expr] = []
        self.globals.define("clock", NativeFunction("clock", 0, _clock))

    def resolve(self, expr: Expr, depth: int, top_level: bool = False) -> None:
        self.locals[expr] = depth
        if top_level:
            self.top_level.append(expr)

    def forget_top_level(self) -> None:
        """Drop bindings no later pass can reach, so a long-lived REPL does not grow."""
        for expr in self.top_level:
            self.locals.pop(expr, None)
        self.top_level = []

    def interpret(self, stmts: list[Stmt]) -> LoxRuntimeError | None:
        """Run `stmts` in the global scope. Stops at the first runtime error and returns it."""
        try:
            for st in stmts:
                self._execute(st, self.globals)
        except LoxRuntimeError as e:
            self.reporter.report(e)
            return e
        return None

    # ---- Statements --------------------------------------------------------

    def execute_block(self, stmts: list[Stmt], env: Environment) -> _Return | None:
        for st in stmts:
            signal = self._execute(st, env)
            if signal is not None:
                return signal
        return None

    def _execute(self, st: Stmt, env: Environment) -> _Return | None:
        if isinstance(st, Expression):
            self._evaluate(st.expression, env)
            return None

        if isinstance(st, Print):
            value = self._evaluate(st.expression, env)
            self.stdout.write(stringify(value) + "\n")
            return None

        if isinstance(st, Var):
            value: object = None
            if st.initializer is not None:
                value = self._evaluate(st.initializer, env)
            env.define(st.name.lexeme, value)
            return None

        if isinstance(st, Block):
            return self.execute_block(st.statements, Environment(env))

        if isinstance(st, If):
            if is_truthy(self._evaluate(st.condition, env)):
                return self._execute(st.then_branch, env)
            if st.else_branch is not None:
                return self._execute(st.else_branch, env)
            return None

        if isinstance(st, While):
            while is_truthy(self._evaluate(st.condition, env)):
                signal = self._execute(st.body, env)
                if signal is not None:
                    return signal
            return None

        if isinstance(st, Function):
            env.define(st.name.lexeme, LoxFunction(st, env, False))
            return None

        if isinstance(st, Return):
            value = None
            if st.value is not None:
                value = self._evaluate(st.value, env)
            return _Return(value)

        if isinstance(st, Class):
            self._execute_class(st, env)
            return None

        raise TypeError("unknown statement " + type(st).__name__)

    def _execute_class(self, st: Class, env: Environment) -> None:
        superclass: LoxClass | None = None
        if st.superclass is not None:
            value = self._evaluate(st.superclass, env)
            if not isinstance(value, LoxClass):
                raise LoxRuntimeError("Superclass must be a class.", st.superclass.name)
            superclass = value

        env.define(st.name.lexeme, None)

        method_env = env
        if superclass is not None:
            method_env = Environment(env)
            method_env.define("super", superclass)

        methods: dict[str, LoxFunction] = {}
        for method in st.methods:
            is_init = method.name.lexeme == "init"
            methods[method.name.lexeme] = LoxFunction(method, method_env, is_init)

        klass = LoxClass(st.name.lexeme, superclass, methods)
        env.assign(st.name, klass)

    # ---- Expressions -------------------------------------------------------

    def _evaluate(self, expr: Expr, env: Environment) -> object:
        if isinstance(expr, Literal):
            return expr.value

        if isinstance(expr, Grouping):
            return self._evaluate(expr.expression, env)

        if isinstance(expr, Variable):
            return self._look_up(expr.name, expr, env)

        if isinstance(expr, Assign):
            value = self._evaluate(expr.value, env)
            distance = self.locals.get(expr)
            if distance is not None:
                env.assign_at(distance, expr.name, value)
            else:
                self.globals.assign(expr.name, value)
            return value

        if isinstance(expr, Unary):
            right = self._evaluate(expr.right, env)
            if expr.operator.type == TK_BANG:
                return not is_truthy(right)
            return -_check_number(expr.operator, right)

        if isinstance(expr, Binary):
            left = self._evaluate(expr.left, env)
            right = self._evaluate(expr.right, env)
            return self._eval_binary(expr.operator, left, right)

        if isinstance(expr, Logical):
            left = self._evaluate(expr.left, env)
            if expr.operator.type == TK_OR:
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self._evaluate(expr.right, env)

        if isinstance(expr, Call):
            return self._eval_call(expr, env)

        if isinstance(expr, Get):
            obj = self._evaluate(expr.object, env)
            if isinstance(obj, LoxInstance):
                return obj.get(expr.name)
            raise LoxRuntimeError("Only instances have properties.", expr.name)

        if isinstance(expr, Set):
            obj = self._evaluate(expr.object, env)
            if not isinstance(obj, LoxInstance):
                raise LoxRuntimeError("Only instances have fields.", expr.name)
            value = self._evaluate(expr.value, env)
            obj.set(expr.name, value)
            return value

        if isinstance(expr, This):
            return self._look_up(expr.keyword, expr, env)

        if isinstance(expr, Super):
            return self._eval_super(expr, env)

        raise TypeError("unknown expression " + type(expr).__name__)

    def _look_up(self, name: Token, expr: Expr, env: Environment) -> object:
        distance = self.locals.get(expr)
        if distance is not None:
            return env.get_at(distance, name.lexeme)
        return self.globals.get(name)

    def _eval_binary(self, op: Token, left: object, right: object) -> object:
        kind = op.type
        if kind == TK_EQUAL_EQUAL:
            return is_equal(left, right)
        if kind == TK_BANG_EQUAL:
            return not is_equal(left, right)
        if kind == TK_PLUS:
            if isinstance(left, float) and isinstance(right, float):
                return left + right
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            raise LoxRuntimeError("Operands must be two numbers or two strings.", op)

        a, b = _check_numbers(op, left, right)
        if kind == TK_MINUS:
            return a - b
        if kind == TK_STAR:
            return a * b
        if kind == TK_SLASH:
            if b == 0:
                raise LoxRuntimeError("Division by zero.", op)
            return a / b
        if kind == TK_GREATER:
            return a > b
        if kind == TK_GREATER_EQUAL:
            return a >= b
        if kind == TK_LESS:
            return a < b
        if kind == TK_LESS_EQUAL:
            return a <= b
        raise LoxRuntimeError("Unknown operator '" + op.lexeme + "'.", op)

    def _eval_call(self, expr: Call, env: Environment) -> object:
        callee = self._evaluate(expr.callee, env)
        args = [self._evaluate(arg, env) for arg in expr.arguments]
        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError("Can only call functions and classes.", expr.paren)
        if len(args) != callee.arity():
            raise LoxRuntimeError(
                "Expected "
                + str(callee.arity())
                + " arguments but got "
                + str(len(args))
                + ".",
                expr.paren,
            )
        return callee.call(self, args)

    def _eval_super(self, expr: Super, env: Environment) -> object:
        distance = self.locals[expr]
        superclass = env.get_at(distance, "super")
        # 'this' always lives one scope inside the 'super' scope.
        instance = env.get_at(distance - 1, "this")
        assert isinstance(superclass, LoxClass)
        assert isinstance(instance, LoxInstance)
        method = superclass.find_method(expr.method.lexeme)
        if method is None:
            raise LoxRuntimeError(
                "Undefined property '" + expr.method.lexeme + "'.", expr.method
            )
        return method.bind(instance)
