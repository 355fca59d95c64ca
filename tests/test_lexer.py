from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import pytest

from kestrel_ref.lexer import Lexer, tokenize
from kestrel_ref.token_types import TT, Tok


@dataclass(frozen=True)
class Case:
    """Unified lexer case payload."""

    name: str
    source: str
    expected: Optional[Tuple[Tuple[TT, object], ...]] = None
    expected_types: Optional[Tuple[TT, ...]] = None
    expected_positions: Optional[Tuple[Tuple[str, int, int], ...]] = None


BASIC_TOKEN_CASES: List[Case] = [
    Case("int", "123", expected=((TT.INT, "123"),)),
    Case("ident-single", "x", expected=((TT.IDENT, "x"),)),
    Case("ident-snake", "foo_bar", expected=((TT.IDENT, "foo_bar"),)),
    Case("ident-leading-underscore", "_tmp", expected=((TT.IDENT, "_tmp"),)),
    Case("ident-then-digits", "x1", expected=((TT.IDENT, "x"), (TT.INT, "1"))),
    Case("string-quotes-stripped", '"hello"', expected=((TT.STRING, "hello"),)),
    Case("string-empty", '""', expected=((TT.STRING, ""),)),
    Case("string-with-spaces", '"a b  c"', expected=((TT.STRING, "a b  c"),)),
    Case("string-no-escapes", r'"a\n"', expected=((TT.STRING, r"a\n"),)),
    Case("bool-true", "true", expected=((TT.TRUE, "true"),)),
    Case("bool-false", "false", expected=((TT.FALSE, "false"),)),
]

OPERATOR_CASES: List[Case] = [
    Case("assign", "=", expected_types=(TT.ASSIGN,)),
    Case("plus", "+", expected_types=(TT.PLUS,)),
    Case("minus", "-", expected_types=(TT.MINUS,)),
    Case("star", "*", expected_types=(TT.STAR,)),
    Case("slash", "/", expected_types=(TT.SLASH,)),
    Case("bang", "!", expected_types=(TT.BANG,)),
    Case("lt", "<", expected_types=(TT.LT,)),
    Case("gt", ">", expected_types=(TT.GT,)),
    Case("lte", "<=", expected_types=(TT.LTE,)),
    Case("gte", ">=", expected_types=(TT.GTE,)),
    Case("eq", "==", expected_types=(TT.EQ,)),
    Case("neq", "!=", expected_types=(TT.NEQ,)),
    Case("bang-bang", "!!", expected_types=(TT.BANG, TT.BANG)),
    Case("eq-assign", "===", expected_types=(TT.EQ, TT.ASSIGN)),
    Case(
        "delimiters",
        ",;(){}",
        expected_types=(TT.COMMA, TT.SEMI, TT.LPAR, TT.RPAR, TT.LBRACE, TT.RBRACE),
    ),
]

KEYWORD_CASES: List[Case] = [
    Case("kw-fn", "fn", expected_types=(TT.FN,)),
    Case("kw-let", "let", expected_types=(TT.LET,)),
    Case("kw-if", "if", expected_types=(TT.IF,)),
    Case("kw-else", "else", expected_types=(TT.ELSE,)),
    Case("kw-return", "return", expected_types=(TT.RETURN,)),
    Case("kw-prefix-is-ident", "fnord", expected_types=(TT.IDENT,)),
    Case("kw-suffix-is-ident", "letter", expected_types=(TT.IDENT,)),
    Case("kw-underscored-is-ident", "if_", expected_types=(TT.IDENT,)),
    Case("kw-case-sensitive", "True", expected_types=(TT.IDENT,)),
]

PROGRAM_CASES: List[Case] = [
    Case(
        "let-statement",
        "let five = 5;",
        expected_types=(TT.LET, TT.IDENT, TT.ASSIGN, TT.INT, TT.SEMI),
    ),
    Case(
        "function-literal",
        "let add = fn(x, y) { x + y; };",
        expected_types=(
            TT.LET, TT.IDENT, TT.ASSIGN, TT.FN, TT.LPAR, TT.IDENT, TT.COMMA,
            TT.IDENT, TT.RPAR, TT.LBRACE, TT.IDENT, TT.PLUS, TT.IDENT, TT.SEMI,
            TT.RBRACE, TT.SEMI,
        ),
    ),
    Case(
        "if-else",
        "if (5 < 10) { return true; } else { return false; }",
        expected_types=(
            TT.IF, TT.LPAR, TT.INT, TT.LT, TT.INT, TT.RPAR, TT.LBRACE, TT.RETURN,
            TT.TRUE, TT.SEMI, TT.RBRACE, TT.ELSE, TT.LBRACE, TT.RETURN, TT.FALSE,
            TT.SEMI, TT.RBRACE,
        ),
    ),
    Case(
        "no-whitespace",
        "add(1,-2)",
        expected_types=(TT.IDENT, TT.LPAR, TT.INT, TT.COMMA, TT.MINUS, TT.INT, TT.RPAR),
    ),
]

ILLEGAL_CASES: List[Case] = [
    Case("illegal-at", "@", expected=((TT.ILLEGAL, "@"),)),
    Case(
        "illegal-mid-expression",
        "1 # 2",
        expected=((TT.INT, "1"), (TT.ILLEGAL, "#"), (TT.INT, "2")),
    ),
    Case(
        "illegal-unterminated-string",
        '"abc',
        expected=((TT.ILLEGAL, '"'), (TT.IDENT, "abc")),
    ),
    Case(
        "illegal-run",
        "a $$ b",
        expected=((TT.IDENT, "a"), (TT.ILLEGAL, "$"), (TT.ILLEGAL, "$"), (TT.IDENT, "b")),
    ),
]

POSITION_CASES: List[Case] = [
    Case(
        "positions-single-line",
        "let x = 10;",
        expected_positions=(("let", 1, 1), ("x", 1, 5), ("10", 1, 9)),
    ),
    Case(
        "positions-multi-line",
        "let a = 1;\n  a + b",
        expected_positions=(("a", 1, 5), ("+", 2, 5), ("b", 2, 7)),
    ),
    Case(
        "positions-after-illegal",
        "x ? y",
        expected_positions=(("?", 1, 3), ("y", 1, 5)),
    ),
]


def _non_eof_tokens(source: str) -> List[Tok]:
    return [token for token in tokenize(source) if token.type != TT.EOF]


@pytest.mark.parametrize("case", BASIC_TOKEN_CASES + ILLEGAL_CASES, ids=lambda case: case.name)
def test_token_values(case: Case) -> None:
    tokens = _non_eof_tokens(case.source)

    assert case.expected is not None
    assert len(tokens) == len(case.expected)
    for token, (expected_type, expected_value) in zip(tokens, case.expected):
        assert token.type == expected_type
        assert token.value == expected_value


@pytest.mark.parametrize(
    "case",
    OPERATOR_CASES + KEYWORD_CASES + PROGRAM_CASES,
    ids=lambda case: case.name,
)
def test_token_types(case: Case) -> None:
    tokens = _non_eof_tokens(case.source)
    assert case.expected_types is not None
    assert [token.type for token in tokens] == list(case.expected_types)


@pytest.mark.parametrize("case", POSITION_CASES, ids=lambda case: case.name)
def test_position_tracking(case: Case) -> None:
    assert case.expected_positions is not None
    tokens = _non_eof_tokens(case.source)
    by_value = {}
    for token in tokens:
        by_value.setdefault(token.value, (token.line, token.column))

    for value, line, column in case.expected_positions:
        assert by_value[value] == (line, column)


@pytest.mark.parametrize(
    "source",
    [
        pytest.param("", id="empty"),
        pytest.param("   \n\t  ", id="whitespace-only"),
        pytest.param("let x = 1;", id="statement"),
    ],
)
def test_stream_ends_with_single_eof(source: str) -> None:
    tokens = tokenize(source)
    assert tokens[-1].type == TT.EOF
    assert [token.type for token in tokens].count(TT.EOF) == 1


def test_eof_position_after_last_line() -> None:
    tokens = tokenize("a\nbc")
    eof = tokens[-1]
    assert (eof.line, eof.column) == (2, 3)


def test_keyword_table_matches_token_types() -> None:
    for word, kind in Lexer.KEYWORDS.items():
        assert [token.type for token in _non_eof_tokens(word)] == [kind]
