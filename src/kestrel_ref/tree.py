"""AST node classes shared by the parser and the evaluator.

Nodes are frozen dataclasses; child sequences are tuples, so a built tree
can't be mutated or made cyclic. ``str(node)`` renders the canonical,
fully parenthesized form used by the parser tests.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union
from typing_extensions import TypeAlias


class PrefixOp(Enum):
    NEGATE = "-"
    NOT = "!"

    def __str__(self) -> str:
        return self.value


class InfixOp(Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    LESS_THAN = "<"
    GREATER_THAN = ">"
    EQUAL = "=="
    NOT_EQUAL = "!="

    def __str__(self) -> str:
        return self.value


# ---------- Expressions ----------

@dataclass(frozen=True)
class Identifier:
    name: str
    def __str__(self) -> str:
        return self.name

@dataclass(frozen=True)
class IntegerLiteral:
    text: str
    def __str__(self) -> str:
        return self.text

    @property
    def value(self) -> int:
        return int(self.text)

@dataclass(frozen=True)
class BooleanLiteral:
    value: bool
    def __str__(self) -> str:
        return "true" if self.value else "false"

@dataclass(frozen=True)
class StringLiteral:
    text: str
    def __str__(self) -> str:
        return f'"{self.text}"'

@dataclass(frozen=True)
class Prefix:
    op: PrefixOp
    operand: 'Expression'
    def __str__(self) -> str:
        return f"({self.op} {self.operand})"

@dataclass(frozen=True)
class Infix:
    left: 'Expression'
    op: InfixOp
    right: 'Expression'
    def __str__(self) -> str:
        return f"({self.left} {self.op} {self.right})"

@dataclass(frozen=True)
class If:
    condition: 'Expression'
    consequence: 'Block'
    alternative: Optional['Block'] = None
    def __str__(self) -> str:
        out = f"if ({self.condition}) {self.consequence}"

        if self.alternative is not None:
            out += f" else {self.alternative}"

        return out

@dataclass(frozen=True)
class FunctionLiteral:
    parameters: Tuple[Identifier, ...]
    body: 'Block'
    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.parameters)
        return f"fn({params}) {self.body}"

@dataclass(frozen=True)
class Call:
    callee: 'Expression'
    arguments: Tuple['Expression', ...]
    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.arguments)
        return f"{self.callee}({args})"

# ---------- Statements ----------

@dataclass(frozen=True)
class Let:
    name: str
    value: 'Expression'
    def __str__(self) -> str:
        return f"let {self.name} = {self.value};"

@dataclass(frozen=True)
class Return:
    value: 'Expression'
    def __str__(self) -> str:
        return f"return {self.value};"

@dataclass(frozen=True)
class ExpressionStatement:
    value: 'Expression'
    def __str__(self) -> str:
        return str(self.value)

@dataclass(frozen=True)
class Block:
    statements: Tuple['Statement', ...] = ()
    def __str__(self) -> str:
        if not self.statements:
            return "{ }"

        return "{ " + " ".join(str(s) for s in self.statements) + " }"

@dataclass(frozen=True)
class Program:
    statements: Tuple['Statement', ...] = ()
    def __str__(self) -> str:
        return "".join(str(s) for s in self.statements)


Expression: TypeAlias = Union[
    Identifier,
    IntegerLiteral,
    BooleanLiteral,
    StringLiteral,
    Prefix,
    Infix,
    If,
    FunctionLiteral,
    Call,
]

Statement: TypeAlias = Union[Let, Return, ExpressionStatement, Block]

Node: TypeAlias = Union[Program, Statement, Expression]

