"""Lox parser: recursive descent, one method per grammar production.

Syntax errors are collected rather than raised out of `parse`: after each
error the parser skips to a plausible statement boundary and keeps going, so
one pass reports every independent error.
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
from .errors import ParseError
from .tokens import (
    TK_AND,
    TK_BANG,
    TK_BANG_EQUAL,
    TK_CLASS,
    TK_COMMA,
    TK_DOT,
    TK_ELSE,
    TK_EOF,
    TK_EQUAL,
    TK_EQUAL_EQUAL,
    TK_FALSE,
    TK_FOR,
    TK_FUN,
    TK_GREATER,
    TK_GREATER_EQUAL,
    TK_IDENTIFIER,
    TK_IF,
    TK_LEFT_BRACE,
    TK_LEFT_PAREN,
    TK_LESS,
    TK_LESS_EQUAL,
    TK_MINUS,
    TK_NIL,
    TK_NUMBER,
    TK_OR,
    TK_PLUS,
    TK_PRINT,
    TK_RETURN,
    TK_RIGHT_BRACE,
    TK_RIGHT_PAREN,
    TK_SEMICOLON,
    TK_SLASH,
    TK_STAR,
    TK_STRING,
    TK_SUPER,
    TK_THIS,
    TK_TRUE,
    TK_VAR,
    TK_WHILE,
    Token,
)

MAX_ARGS: int = 255

# Token kinds that can begin a statement; synchronization stops in front of them
STMT_STARTS: set[str] = {
    TK_CLASS,
    TK_FUN,
    TK_VAR,
    TK_FOR,
    TK_IF,
    TK_WHILE,
    TK_PRINT,
    TK_RETURN,
}


class Parser:
    """Recursive descent parser for Lox."""

    def __init__(self, tokens: list[Token]):
        self.tokens: list[Token] = tokens
        self.pos: int = 0
        self.errors: list[ParseError] = []

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def at_end(self) -> bool:
        return self.current().type == TK_EOF

    def advance(self) -> Token:
        if not self.at_end():
            self.pos += 1
        return self.previous()

    def check(self, type_: str) -> bool:
        if self.at_end():
            return False
        return self.current().type == type_

    def match(self, *types: str) -> bool:
        for type_ in types:
            if self.check(type_):
                self.advance()
                return True
        return False

    def expect(self, type_: str, msg: str) -> Token:
        if self.check(type_):
            return self.advance()
        raise self.error(self.current(), msg)

    def error(self, tok: Token, msg: str) -> ParseError:
        """Record an error and return it; callers raise it to unwind to a declaration."""
        err = ParseError(msg, tok)
        self.errors.append(err)
        return err

    def synchronize(self) -> None:
        self.advance()
        while not self.at_end():
            if self.previous().type == TK_SEMICOLON:
                return
            if self.current().type in STMT_STARTS:
                return
            self.advance()

    # ── Declarations ─────────────────────────────────────────

    def parse_program(self) -> list[Stmt]:
        stmts: list[Stmt] = []
        while not self.at_end():
            decl = self.parse_declaration()
            if decl is not None:
                stmts.append(decl)
        return stmts

    def parse_declaration(self) -> Stmt | None:
        try:
            if self.match(TK_CLASS):
                return self.parse_class_decl()
            if self.match(TK_FUN):
                return self.parse_function("function")
            if self.match(TK_VAR):
                return self.parse_var_decl()
            return self.parse_stmt()
        except ParseError:
            self.synchronize()
            return None

    def parse_class_decl(self) -> Class:
        """Class = 'class' IDENT ( '<' IDENT )? '{' Function* '}'"""
        name = self.expect(TK_IDENTIFIER, "Expect class name.")
        superclass: Variable | None = None
        if self.match(TK_LESS):
            self.expect(TK_IDENTIFIER, "Expect superclass name.")
            superclass = Variable(self.previous())
        self.expect(TK_LEFT_BRACE, "Expect '{' before class body.")
        methods: list[Function] = []
        while not self.check(TK_RIGHT_BRACE) and not self.at_end():
            methods.append(self.parse_function("method"))
        self.expect(TK_RIGHT_BRACE, "Expect '}' after class body.")
        return Class(name, superclass, methods)

    def parse_function(self, kind: str) -> Function:
        """Function = IDENT '(' Params? ')' Block"""
        name = self.expect(TK_IDENTIFIER, "Expect " + kind + " name.")
        self.expect(TK_LEFT_PAREN, "Expect '(' after " + kind + " name.")
        params: list[Token] = []
        if not self.check(TK_RIGHT_PAREN):
            while True:
                if len(params) >= MAX_ARGS:
                    self.error(self.current(), "Can't have more than 255 parameters.")
                params.append(self.expect(TK_IDENTIFIER, "Expect parameter name."))
                if not self.match(TK_COMMA):
                    break
        self.expect(TK_RIGHT_PAREN, "Expect ')' after parameters.")
        self.expect(TK_LEFT_BRACE, "Expect '{' before " + kind + " body.")
        body = self.parse_block()
        return Function(name, params, body)

    def parse_var_decl(self) -> Var:
        """VarDecl = 'var' IDENT ( '=' Expr )? ';'"""
        name = self.expect(TK_IDENTIFIER, "Expect variable name.")
        initializer: Expr | None = None
        if self.match(TK_EQUAL):
            initializer = self.parse_expr()
        self.expect(TK_SEMICOLON, "Expect ';' after variable declaration.")
        return Var(name, initializer)

    # ── Statements ───────────────────────────────────────────

    def parse_stmt(self) -> Stmt:
        if self.match(TK_FOR):
            return self.parse_for_stmt()
        if self.match(TK_IF):
            return self.parse_if_stmt()
        if self.match(TK_PRINT):
            return self.parse_print_stmt()
        if self.match(TK_RETURN):
            return self.parse_return_stmt()
        if self.match(TK_WHILE):
            return self.parse_while_stmt()
        if self.match(TK_LEFT_BRACE):
            return Block(self.parse_block())
        return self.parse_expr_stmt()

    def parse_for_stmt(self) -> Stmt:
        """For = 'for' '(' ( VarDecl | ExprStmt | ';' ) Expr? ';' Expr? ')' Stmt

        Desugared here into a while loop; no For node reaches later stages.
        """
        self.expect(TK_LEFT_PAREN, "Expect '(' after 'for'.")
        initializer: Stmt | None
        if self.match(TK_SEMICOLON):
            initializer = None
        elif self.match(TK_VAR):
            initializer = self.parse_var_decl()
        else:
            initializer = self.parse_expr_stmt()

        condition: Expr | None = None
        if not self.check(TK_SEMICOLON):
            condition = self.parse_expr()
        self.expect(TK_SEMICOLON, "Expect ';' after loop condition.")

        increment: Expr | None = None
        if not self.check(TK_RIGHT_PAREN):
            increment = self.parse_expr()
        self.expect(TK_RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self.parse_stmt()
        if increment is not None:
            body = Block([body, Expression(increment)])
        if condition is None:
            condition = Literal(True)
        body = While(condition, body)
        if initializer is not None:
            body = Block([initializer, body])
        return body

    def parse_if_stmt(self) -> If:
        """If = 'if' '(' Expr ')' Stmt ( 'else' Stmt )?"""
        self.expect(TK_LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self.parse_expr()
        self.expect(TK_RIGHT_PAREN, "Expect ')' after if condition.")
        then_branch = self.parse_stmt()
        else_branch: Stmt | None = None
        if self.match(TK_ELSE):
            else_branch = self.parse_stmt()
        return If(condition, then_branch, else_branch)

    def parse_print_stmt(self) -> Print:
        value = self.parse_expr()
        self.expect(TK_SEMICOLON, "Expect ';' after value.")
        return Print(value)

    def parse_return_stmt(self) -> Return:
        keyword = self.previous()
        value: Expr | None = None
        if not self.check(TK_SEMICOLON):
            value = self.parse_expr()
        self.expect(TK_SEMICOLON, "Expect ';' after return value.")
        return Return(keyword, value)

    def parse_while_stmt(self) -> While:
        self.expect(TK_LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self.parse_expr()
        self.expect(TK_RIGHT_PAREN, "Expect ')' after condition.")
        body = self.parse_stmt()
        return While(condition, body)

    def parse_block(self) -> list[Stmt]:
        """Block = '{' Declaration* '}' (opening brace already consumed)"""
        stmts: list[Stmt] = []
        while not self.check(TK_RIGHT_BRACE) and not self.at_end():
            decl = self.parse_declaration()
            if decl is not None:
                stmts.append(decl)
        self.expect(TK_RIGHT_BRACE, "Expect '}' after block.")
        return stmts

    def parse_expr_stmt(self) -> Expression:
        expr = self.parse_expr()
        self.expect(TK_SEMICOLON, "Expect ';' after expression.")
        return Expression(expr)

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self) -> Expr:
        return self.parse_assignment()

    def parse_assignment(self) -> Expr:
        """Assignment = ( Call '.' )? IDENT '=' Assignment | Or"""
        expr = self.parse_or()
        if self.match(TK_EQUAL):
            equals = self.previous()
            value = self.parse_assignment()
            if isinstance(expr, Variable):
                return Assign(expr.name, value)
            if isinstance(expr, Get):
                return Set(expr.object, expr.name, value)
            # Reported but not raised: the parser is not confused here.
            self.error(equals, "Invalid assignment target.")
        return expr

    def parse_or(self) -> Expr:
        """Or = And ( 'or' And )*"""
        left = self.parse_and()
        while self.match(TK_OR):
            op = self.previous()
            right = self.parse_and()
            left = Logical(left, op, right)
        return left

    def parse_and(self) -> Expr:
        """And = Equality ( 'and' Equality )*"""
        left = self.parse_equality()
        while self.match(TK_AND):
            op = self.previous()
            right = self.parse_equality()
            left = Logical(left, op, right)
        return left

    def parse_equality(self) -> Expr:
        """Equality = Comparison ( ( '!=' | '==' ) Comparison )*"""
        left = self.parse_comparison()
        while self.match(TK_BANG_EQUAL, TK_EQUAL_EQUAL):
            op = self.previous()
            right = self.parse_comparison()
            left = Binary(left, op, right)
        return left

    def parse_comparison(self) -> Expr:
        """Comparison = Term ( ( '>' | '>=' | '<' | '<=' ) Term )*"""
        left = self.parse_term()
        while self.match(TK_GREATER, TK_GREATER_EQUAL, TK_LESS, TK_LESS_EQUAL):
            op = self.previous()
            right = self.parse_term()
            left = Binary(left, op, right)
        return left

    def parse_term(self) -> Expr:
        """Term = Factor ( ( '-' | '+' ) Factor )*"""
        left = self.parse_factor()
        while self.match(TK_MINUS, TK_PLUS):
            op = self.previous()
            right = self.parse_factor()
            left = Binary(left, op, right)
        return left

    def parse_factor(self) -> Expr:
        """Factor = Unary ( ( '/' | '*' ) Unary )*"""
        left = self.parse_unary()
        while self.match(TK_SLASH, TK_STAR):
            op = self.previous()
            right = self.parse_unary()
            left = Binary(left, op, right)
        return left

    def parse_unary(self) -> Expr:
        """Unary = ( '!' | '-' ) Unary | Call"""
        if self.match(TK_BANG, TK_MINUS):
            op = self.previous()
            right = self.parse_unary()
            return Unary(op, right)
        return self.parse_call()

    def parse_call(self) -> Expr:
        """Call = Primary ( '(' Args? ')' | '.' IDENT )*"""
        expr = self.parse_primary()
        while True:
            if self.match(TK_LEFT_PAREN):
                expr = self.finish_call(expr)
            elif self.match(TK_DOT):
                name = self.expect(TK_IDENTIFIER, "Expect property name after '.'.")
                expr = Get(expr, name)
            else:
                break
        return expr

    def finish_call(self, callee: Expr) -> Call:
        args: list[Expr] = []
        if not self.check(TK_RIGHT_PAREN):
            while True:
                if len(args) >= MAX_ARGS:
                    self.error(self.current(), "Can't have more than 255 arguments.")
                args.append(self.parse_expr())
                if not self.match(TK_COMMA):
                    break
        paren = self.expect(TK_RIGHT_PAREN, "Expect ')' after arguments.")
        return Call(callee, paren, args)

    def parse_primary(self) -> Expr:
        if self.match(TK_FALSE):
            return Literal(False)
        if self.match(TK_TRUE):
            return Literal(True)
        if self.match(TK_NIL):
            return Literal(None)
        if self.match(TK_NUMBER, TK_STRING):
            return Literal(self.previous().literal)
        if self.match(TK_SUPER):
            keyword = self.previous()
            self.expect(TK_DOT, "Expect '.' after 'super'.")
            method = self.expect(TK_IDENTIFIER, "Expect superclass method name.")
            return Super(keyword, method)
        if self.match(TK_THIS):
            return This(self.previous())
        if self.match(TK_IDENTIFIER):
            return Variable(self.previous())
        if self.match(TK_LEFT_PAREN):
            expr = self.parse_expr()
            self.expect(TK_RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expr)
        raise self.error(self.current(), "Expect expression.")


def parse(tokens: list[Token]) -> tuple[list[Stmt], list[ParseError]]:
    """Parse a token list. Returns the statements that parsed cleanly and all errors."""
    parser = Parser(tokens)
    stmts = parser.parse_program()
    return stmts, parser.errors
