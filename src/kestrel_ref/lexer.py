"""
Lexer for Kestrel

Tokenizes Kestrel source code into a stream of tokens.

Features:
- Terminal set declared once as a lark grammar; lark's basic lexer does the
  scanning and keyword retyping
- Position tracking (line, column) against the whole source
- Characters no terminal accepts become ILLEGAL tokens and scanning resumes
  after them, so the parser can report them instead of the lexer failing
"""

from __future__ import annotations

from typing import Dict, List

from lark import Lark
from lark import Token as LarkToken
from lark.exceptions import UnexpectedCharacters

from .token_types import TT, Tok

# ============================================================================
# Terminal grammar
# ============================================================================

# Identifiers are letters and underscores only: `x1` is IDENT(x) INT(1).
_TERMINALS = r"""
start: _token*

_token: FN | LET | IF | ELSE | TRUE | FALSE | RETURN
      | IDENT | INT | STRING
      | EQ | NEQ | LTE | GTE | ASSIGN
      | PLUS | MINUS | STAR | SLASH | BANG | LT | GT
      | COMMA | SEMI | LPAR | RPAR | LBRACE | RBRACE

FN: "fn"
LET: "let"
IF: "if"
ELSE: "else"
TRUE: "true"
FALSE: "false"
RETURN: "return"

IDENT: /[A-Za-z_]+/
INT: /[0-9]+/
STRING: /"[^"]*"/

EQ: "=="
NEQ: "!="
LTE: "<="
GTE: ">="
ASSIGN: "="
PLUS: "+"
MINUS: "-"
STAR: "*"
SLASH: "/"
BANG: "!"
LT: "<"
GT: ">"

COMMA: ","
SEMI: ";"
LPAR: "("
RPAR: ")"
LBRACE: "{"
RBRACE: "}"

%import common.WS
%ignore WS
"""

_TERMINAL_GRAMMAR = Lark(_TERMINALS, parser="lalr", lexer="basic")

# ============================================================================
# Lexer Implementation
# ============================================================================

class Lexer:
    """
    Kestrel lexer.

    Produces a finite list of Tok terminated by an explicit EOF token.
    """

    KEYWORDS: Dict[str, TT] = {
        'fn': TT.FN,
        'let': TT.LET,
        'if': TT.IF,
        'else': TT.ELSE,
        'true': TT.TRUE,
        'false': TT.FALSE,
        'return': TT.RETURN,
    }

    def __init__(self, source: str):
        self.source = source
        self.tokens: List[Tok] = []

    def tokenize(self) -> List[Tok]:
        """Scan the whole source, then append EOF"""
        offset = 0

        while True:
            try:
                for raw in _TERMINAL_GRAMMAR.lex(self.source[offset:]):
                    self.tokens.append(self._convert(raw, offset))
            except UnexpectedCharacters as exc:
                pos = offset + exc.pos_in_stream
                line, column = self._position(pos)
                self.tokens.append(Tok(TT.ILLEGAL, self.source[pos], line, column))
                offset = pos + 1
                continue
            break

        line, column = self._position(len(self.source))
        self.tokens.append(Tok(TT.EOF, None, line, column))
        return self.tokens

    # ========================================================================
    # Helpers
    # ========================================================================

    def _convert(self, raw: LarkToken, offset: int) -> Tok:
        start = offset + (raw.start_pos or 0)
        line, column = self._position(start)
        kind = TT[raw.type]
        value: str = raw.value

        if kind == TT.STRING:
            value = value[1:-1]

        return Tok(kind, value, line, column)

    def _position(self, pos: int) -> tuple[int, int]:
        """1-based (line, column) of an absolute offset into the source"""
        line = self.source.count("\n", 0, pos) + 1
        last_nl = self.source.rfind("\n", 0, pos)
        column = pos + 1 if last_nl == -1 else pos - last_nl
        return line, column


def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize source"""
    return Lexer(source).tokenize()
