"""
Pratt Parser for Kestrel

Structure:
- Token stream: any iterable of Tok ending in EOF; one token of lookahead
- Statements: recursive descent (let, return, blocks, expression statements)
- Expressions: Pratt parsing over a precedence table, with prefix and infix
  rules keyed by token type
- Errors: every failure is a ParseError; it is recorded as a diagnostic at
  the nearest statement boundary and parsing resumes after that statement
"""

from __future__ import annotations

import logging
from enum import IntEnum
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple, TypeVar

from .config import Settings
from .token_types import TT, Tok
from .tree import (
    Block,
    BooleanLiteral,
    Call,
    Expression,
    ExpressionStatement,
    FunctionLiteral,
    Identifier,
    If,
    Infix,
    InfixOp,
    IntegerLiteral,
    Let,
    Prefix,
    PrefixOp,
    Program,
    Return,
    Statement,
    StringLiteral,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

I64_MAX = 2**63 - 1

# ============================================================================
# Errors
# ============================================================================

class ParseError(Exception):
    """Parse error with position info"""
    def __init__(self, message: str, token: Optional[Tok] = None):
        self.message = message
        self.token = token
        self.line = token.line if token else None
        self.column = token.column if token else None
        super().__init__(
            f"{message} at line {token.line}, col {token.column}" if token else message
        )

class UnexpectedToken(ParseError):
    def __init__(self, expected: TT, found: Tok):
        super().__init__(
            f"expected next token to be {expected.name}, got {found.type.name} instead", found
        )
        self.expected = expected
        self.found = found

class InvalidPrefixOperator(ParseError):
    def __init__(self, found: Tok):
        super().__init__(f"no prefix parse rule for {found.type.name} found", found)
        self.found = found

class InvalidIntegerLiteral(ParseError):
    def __init__(self, found: Tok):
        super().__init__(f"integer literal {found.value} does not fit in 64 bits", found)
        self.found = found

class NestingTooDeep(ParseError):
    def __init__(self, limit: int, found: Tok):
        super().__init__(f"expression nesting exceeds {limit} levels", found)
        self.limit = limit
        self.found = found

# ============================================================================
# Precedence table
# ============================================================================

class Precedence(IntEnum):
    LOWEST = 1
    EQUALITY = 2    # == !=
    RELATIONAL = 3  # < >
    SUM = 4         # + -
    PRODUCT = 5     # * /
    PREFIX = 6      # -x !x
    CALL = 7        # f(x)

PRECEDENCES: Dict[TT, Precedence] = {
    TT.EQ: Precedence.EQUALITY,
    TT.NEQ: Precedence.EQUALITY,
    TT.LT: Precedence.RELATIONAL,
    TT.GT: Precedence.RELATIONAL,
    TT.PLUS: Precedence.SUM,
    TT.MINUS: Precedence.SUM,
    TT.STAR: Precedence.PRODUCT,
    TT.SLASH: Precedence.PRODUCT,
    TT.LPAR: Precedence.CALL,
}

INFIX_OPS: Dict[TT, InfixOp] = {
    TT.PLUS: InfixOp.ADD,
    TT.MINUS: InfixOp.SUB,
    TT.STAR: InfixOp.MUL,
    TT.SLASH: InfixOp.DIV,
    TT.LT: InfixOp.LESS_THAN,
    TT.GT: InfixOp.GREATER_THAN,
    TT.EQ: InfixOp.EQUAL,
    TT.NEQ: InfixOp.NOT_EQUAL,
}

PREFIX_OPS: Dict[TT, PrefixOp] = {
    TT.MINUS: PrefixOp.NEGATE,
    TT.BANG: PrefixOp.NOT,
}

# ============================================================================
# Parser
# ============================================================================

class Parser:
    """
    Pratt parser for Kestrel.

    Expression precedence (lowest to highest):
    1. equality (==, !=)
    2. relational (<, >)
    3. sum (+, -)
    4. product (*, /)
    5. prefix (-x, !x)
    6. call (f(...))
    """

    def __init__(self, tokens: Iterable[Tok], settings: Optional[Settings] = None):
        self._stream: Iterator[Tok] = iter(tokens)
        self._eof = Tok(TT.EOF, None, 0, 0)
        self.settings = settings or Settings()
        self.errors: List[ParseError] = []
        self._depth = 0

        self.current = self._pull()
        self._peek = self._pull()

        self._prefix_rules: Dict[TT, Callable[[], Expression]] = {
            TT.IDENT: self.parse_identifier,
            TT.INT: self.parse_integer_literal,
            TT.TRUE: self.parse_boolean_literal,
            TT.FALSE: self.parse_boolean_literal,
            TT.STRING: self.parse_string_literal,
            TT.MINUS: self.parse_prefix_expr,
            TT.BANG: self.parse_prefix_expr,
            TT.LPAR: self.parse_grouped_expr,
            TT.IF: self.parse_if_expr,
            TT.FN: self.parse_function_literal,
        }
        self._infix_rules: Dict[TT, Callable[[Expression], Expression]] = {
            tt: self.parse_infix_expr for tt in INFIX_OPS
        }
        self._infix_rules[TT.LPAR] = self.parse_call_expr

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def _pull(self) -> Tok:
        tok = next(self._stream, None)
        if tok is None:
            return self._eof
        if tok.type == TT.EOF:
            self._eof = tok
        return tok

    def peek(self) -> Tok:
        """The single token of lookahead after current"""
        return self._peek

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        prev = self.current
        self.current = self._peek
        self._peek = self._pull() if self.current.type != TT.EOF else self.current
        return prev

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT) -> Tok:
        """Consume token of expected type or raise UnexpectedToken"""
        if not self.check(token_type):
            raise UnexpectedToken(token_type, self.current)
        return self.advance()

    def current_precedence(self) -> Precedence:
        return PRECEDENCES.get(self.current.type, Precedence.LOWEST)

    # ========================================================================
    # Diagnostics
    # ========================================================================

    def diagnostics(self) -> List[str]:
        return [str(err) for err in self.errors]

    def _record(self, err: ParseError) -> None:
        logger.debug("parse diagnostic: %s", err)
        self.errors.append(err)

    def _synchronize(self, in_block: bool) -> None:
        """
        Skip the rest of a failed statement.

        Stops just past a `;` or just before the `}` closing the current
        block. Braces opened while skipping are balanced first, so a `;`
        inside a skipped function body does not end the statement.
        """
        depth = 0

        while not self.check(TT.EOF):
            if depth == 0 and self.match(TT.SEMI):
                return

            if self.check(TT.LBRACE):
                depth += 1
            elif self.check(TT.RBRACE):
                if depth == 0 and in_block:
                    return
                depth = max(depth - 1, 0)

            self.advance()

    def _parse_recovering(self, in_block: bool) -> Optional[Statement]:
        try:
            return self.parse_statement()
        except ParseError as err:
            self._record(err)
            self._synchronize(in_block)
            return None

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse_program(self) -> Program:
        """Parse entire program"""
        stmts: List[Statement] = []

        while not self.check(TT.EOF):
            stmt = self._parse_recovering(in_block=False)
            if stmt is not None:
                stmts.append(stmt)

        return Program(tuple(stmts))

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_statement(self) -> Statement:
        """
        Parse a single statement.

        Statements include:
        - let bindings
        - return
        - blocks
        - expressions
        """
        if self.check(TT.LET):
            return self.parse_let_stmt()
        if self.check(TT.RETURN):
            return self.parse_return_stmt()
        if self.check(TT.LBRACE):
            return self.parse_block()

        value = self.parse_expression()
        self.match(TT.SEMI)
        return ExpressionStatement(value)

    def parse_let_stmt(self) -> Let:
        """Parse let statement: let IDENT = expr [;]"""
        self.expect(TT.LET)
        name = self.expect(TT.IDENT)
        self.expect(TT.ASSIGN)
        value = self.parse_expression()
        self.match(TT.SEMI)
        return Let(name.value, value)

    def parse_return_stmt(self) -> Return:
        """Parse return statement: return expr [;]"""
        self.expect(TT.RETURN)
        value = self.parse_expression()
        self.match(TT.SEMI)
        return Return(value)

    def parse_block(self) -> Block:
        """
        Parse brace block: { stmts }

        A statement that fails inside the block is recovered inside the
        block, so the enclosing construct still gets its closing brace.
        """
        self.expect(TT.LBRACE)
        stmts: List[Statement] = []

        while not self.check(TT.RBRACE, TT.EOF):
            stmt = self._parse_recovering(in_block=True)
            if stmt is not None:
                stmts.append(stmt)

        self.expect(TT.RBRACE)
        return Block(tuple(stmts))

    # ========================================================================
    # Expressions - Pratt
    # ========================================================================

    def parse_expression(self, precedence: Precedence = Precedence.LOWEST) -> Expression:
        """
        Parse an expression whose operators all bind tighter than `precedence`.

        The strict `<` comparison folds equal-precedence operators to the
        left: in `a - b - c` the second `-` does not beat the first's floor.
        """
        self._enter_level()
        levels = 1
        try:
            prefix = self._prefix_rules.get(self.current.type)
            if prefix is None:
                raise InvalidPrefixOperator(self.current)

            left = prefix()

            while not self.check(TT.SEMI) and precedence < self.current_precedence():
                # every fold pushes the tree built so far one level down
                self._enter_level()
                levels += 1
                infix = self._infix_rules[self.current.type]
                left = infix(left)

            return left
        finally:
            self._depth -= levels

    def _enter_level(self) -> None:
        if self._depth >= self.settings.max_depth:
            raise NestingTooDeep(self.settings.max_depth, self.current)
        self._depth += 1

    def parse_identifier(self) -> Identifier:
        return Identifier(self.expect(TT.IDENT).value)

    def parse_integer_literal(self) -> IntegerLiteral:
        tok = self.expect(TT.INT)
        if int(tok.value) > I64_MAX:
            raise InvalidIntegerLiteral(tok)
        return IntegerLiteral(tok.value)

    def parse_boolean_literal(self) -> BooleanLiteral:
        tok = self.advance()
        return BooleanLiteral(tok.type == TT.TRUE)

    def parse_string_literal(self) -> StringLiteral:
        return StringLiteral(self.expect(TT.STRING).value)

    def parse_prefix_expr(self) -> Prefix:
        """Parse unary operators: -expr, !expr"""
        op = self.advance()
        operand = self.parse_expression(Precedence.PREFIX)
        return Prefix(PREFIX_OPS[op.type], operand)

    def parse_grouped_expr(self) -> Expression:
        """Parse ( expr ); the group leaves no node of its own"""
        self.expect(TT.LPAR)
        expr = self.parse_expression()
        self.expect(TT.RPAR)
        return expr

    def parse_if_expr(self) -> If:
        """
        Parse if expression:
        if (cond) { body } [else { body }]
        """
        self.expect(TT.IF)
        self.expect(TT.LPAR)
        condition = self.parse_expression()
        self.expect(TT.RPAR)
        consequence = self.parse_block()

        alternative = None
        if self.match(TT.ELSE):
            alternative = self.parse_block()

        return If(condition, consequence, alternative)

    def parse_function_literal(self) -> FunctionLiteral:
        """Parse function literal: fn(params) { body }"""
        self.expect(TT.FN)
        params = self.parse_paren_list(self.parse_identifier)
        body = self.parse_block()
        return FunctionLiteral(tuple(params), body)

    def parse_infix_expr(self, left: Expression) -> Infix:
        op = self.advance()
        right = self.parse_expression(PRECEDENCES[op.type])
        return Infix(left, INFIX_OPS[op.type], right)

    def parse_call_expr(self, callee: Expression) -> Call:
        args = self.parse_paren_list(self.parse_expression)
        return Call(callee, tuple(args))

    # ========================================================================
    # Helper Parsers
    # ========================================================================

    def parse_paren_list(self, parse_item: Callable[[], T]) -> List[T]:
        """
        Parse ( item, item, ... ) for both parameter lists and call
        arguments. An empty list is allowed; a trailing comma is not.
        """
        self.expect(TT.LPAR)
        items: List[T] = []

        if self.match(TT.RPAR):
            return items

        items.append(parse_item())
        while self.match(TT.COMMA):
            items.append(parse_item())

        self.expect(TT.RPAR)
        return items

# ============================================================================
# Entry points
# ============================================================================

def parse(tokens: Iterable[Tok], settings: Optional[Settings] = None) -> Tuple[Program, List[str]]:
    """Parse a token stream. Diagnostics are returned, never raised."""
    parser = Parser(tokens, settings=settings)
    program = parser.parse_program()
    return program, parser.diagnostics()


def parse_source(source: str, settings: Optional[Settings] = None) -> Tuple[Program, List[str]]:
    """
    Parse Kestrel source code to AST.

    Args:
        source: Source code to parse
        settings: Parser limits (default Settings())
    """
    from .lexer import tokenize

    return parse(tokenize(source), settings=settings)


def parse_expr_fragment(source: str) -> Expression:
    """
    Parse a standalone expression fragment.
    Raises the first ParseError instead of collecting diagnostics.
    """
    from .lexer import tokenize

    parser = Parser(tokenize(source))
    expr = parser.parse_expression()

    # Ensure we've consumed the entire fragment
    parser.match(TT.SEMI)
    if not parser.check(TT.EOF):
        raise ParseError("Unexpected tokens after expression fragment", parser.current)
    return expr
