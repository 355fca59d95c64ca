from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Dict, List, Optional, Tuple
from typing_extensions import TypeAlias
from .tree import Block, InfixOp, Node, PrefixOp

# ---------- Value Model ----------

@dataclass
class KstNull:
    type_name: ClassVar[str] = "Null"
    def inspect(self) -> str:
        return "null"
    def __repr__(self) -> str:
        return "null"

@dataclass
class KstInteger:
    value: int
    type_name: ClassVar[str] = "Integer"
    def inspect(self) -> str:
        return str(self.value)
    def __repr__(self) -> str:
        return str(self.value)

@dataclass
class KstBool:
    value: bool
    type_name: ClassVar[str] = "Boolean"
    def inspect(self) -> str:
        return "true" if self.value else "false"
    def __repr__(self) -> str:
        return self.inspect()

@dataclass
class KstString:
    value: str
    type_name: ClassVar[str] = "String"
    def inspect(self) -> str:
        return self.value
    def __repr__(self) -> str:
        return f'"{self.value}"'

@dataclass(eq=False)
class KstFn:
    params: Tuple[str, ...]
    body: Block
    env: 'Environment'                # Closure scope, shared not copied
    type_name: ClassVar[str] = "Function"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KstFn):
            return NotImplemented

        return self.params == other.params and self.body == other.body and self.env is other.env

    __hash__ = None  # type: ignore[assignment]

    def inspect(self) -> str:
        return f"fn({', '.join(self.params)}) {self.body}"
    def __repr__(self) -> str:
        param_desc = ", ".join(self.params) if self.params else "nullary"
        return f"<fn params={param_desc}>"

@dataclass
class KstReturn:
    """Wraps the value of a `return` while it unwinds enclosing blocks."""
    value: 'KstValue'
    type_name: ClassVar[str] = "Return"
    def inspect(self) -> str:
        return self.value.inspect()

@dataclass
class KstError:
    """Reserved for a user-level error value; no evaluation rule builds one yet."""
    message: str
    type_name: ClassVar[str] = "Error"
    def inspect(self) -> str:
        return f"ERROR: {self.message}"

KstValue: TypeAlias = (
    KstNull
    | KstInteger
    | KstBool
    | KstString
    | KstFn
    | KstReturn
    | KstError
)

# ---------- Environment ----------

class Environment:
    """One scope in the lexical chain: local bindings plus the enclosing scope."""

    def __init__(self, parent: Optional['Environment']=None):
        self.parent = parent
        self.vars: Dict[str, KstValue] = {}

    def enclosed(self) -> 'Environment':
        return Environment(parent=self)

    def get(self, name: str) -> KstValue:
        env: Optional[Environment] = self

        while env is not None:
            if name in env.vars:
                return env.vars[name]

            env = env.parent

        raise UnknownIdentifier(name)

    def set(self, name: str, val: KstValue) -> KstValue:
        # innermost scope only; outer bindings are shadowed, never rewritten
        self.vars[name] = val
        return val

    def names(self) -> List[str]:
        return list(self.vars)

    def __contains__(self, name: object) -> bool:
        return name in self.vars

    def __repr__(self) -> str:
        depth = 0
        env = self.parent

        while env is not None:
            depth += 1
            env = env.parent

        return f"<Environment names={self.names()} depth={depth}>"

# ---------- Exceptions ----------

class EvalError(Exception):
    """Base for evaluation failures. Any of these aborts the whole run."""

class TypeMismatch(EvalError):
    def __init__(self, left: KstValue, operator: InfixOp, right: KstValue):
        super().__init__(f"type mismatch: {left.type_name} {operator} {right.type_name}")
        self.left = left
        self.operator = operator
        self.right = right

class UnsupportedPrefixOperator(EvalError):
    def __init__(self, operator: PrefixOp, operand: KstValue):
        super().__init__(f"unknown operator: {operator}{operand.type_name}")
        self.operator = operator
        self.operand = operand

class UnsupportedInfixOperator(EvalError):
    def __init__(self, left: KstValue, operator: InfixOp, right: KstValue):
        super().__init__(f"unknown operator: {left.type_name} {operator} {right.type_name}")
        self.left = left
        self.operator = operator
        self.right = right

class UnknownIdentifier(EvalError):
    def __init__(self, name: str):
        super().__init__(f"identifier not found: {name}")
        self.name = name

class NotCallable(EvalError):
    def __init__(self, value: KstValue):
        super().__init__(f"not a function: {value.type_name}")
        self.value = value

class InvalidExpression(EvalError):
    def __init__(self, node: Node | object):
        super().__init__(f"cannot evaluate {type(node).__name__} node")
        self.node = node

class ArgumentCountMismatch(EvalError):
    def __init__(self, expected: int, got: int):
        super().__init__(f"function expects {expected} argument(s); got {got}")
        self.expected = expected
        self.got = got

class DivisionByZero(EvalError):
    def __init__(self, dividend: int):
        super().__init__(f"division by zero: {dividend} / 0")
        self.dividend = dividend

class IntegerOverflow(EvalError):
    def __init__(self, left: int, operator: InfixOp | PrefixOp, right: Optional[int]=None):
        expr = f"{operator}{left}" if right is None else f"{left} {operator} {right}"
        super().__init__(f"integer overflow: {expr}")
        self.left = left
        self.operator = operator
        self.right = right

class CallDepthExceeded(EvalError):
    def __init__(self, limit: int):
        super().__init__(f"maximum call depth of {limit} exceeded")
        self.limit = limit

class StackExhausted(CallDepthExceeded):
    """The host interpreter ran out of stack before the call limit was reached."""
    def __init__(self, limit: int):
        EvalError.__init__(self, f"evaluation nested too deeply for the host stack (call limit {limit})")
        self.limit = limit
