from __future__ import annotations

from ..tree import InfixOp, PrefixOp
from ..types import (
    DivisionByZero,
    IntegerOverflow,
    KstInteger,
    KstValue,
    TypeMismatch,
    UnsupportedInfixOperator,
    UnsupportedPrefixOperator,
)
from .helpers import is_truthy, native_bool

I64_MIN = -(2**63)
I64_MAX = 2**63 - 1

def eval_prefix(op: PrefixOp, operand: KstValue) -> KstValue:
    match op:
        case PrefixOp.NOT:
            return native_bool(not is_truthy(operand))
        case PrefixOp.NEGATE:
            if not isinstance(operand, KstInteger):
                raise UnsupportedPrefixOperator(op, operand)

            result = -operand.value
            if result > I64_MAX:
                raise IntegerOverflow(operand.value, op)
            return KstInteger(result)

    raise UnsupportedPrefixOperator(op, operand)

def eval_infix(op: InfixOp, left: KstValue, right: KstValue) -> KstValue:
    if type(left) is not type(right):
        raise TypeMismatch(left, op, right)

    if isinstance(left, KstInteger) and isinstance(right, KstInteger):
        return _integer_infix(op, left.value, right.value)

    match op:
        case InfixOp.EQUAL:
            return native_bool(left == right)
        case InfixOp.NOT_EQUAL:
            return native_bool(left != right)
        case _:
            raise UnsupportedInfixOperator(left, op, right)

def _integer_infix(op: InfixOp, lhs: int, rhs: int) -> KstValue:
    match op:
        case InfixOp.ADD:
            return _checked(lhs + rhs, lhs, op, rhs)
        case InfixOp.SUB:
            return _checked(lhs - rhs, lhs, op, rhs)
        case InfixOp.MUL:
            return _checked(lhs * rhs, lhs, op, rhs)
        case InfixOp.DIV:
            if rhs == 0:
                raise DivisionByZero(lhs)
            return _checked(_trunc_div(lhs, rhs), lhs, op, rhs)
        case InfixOp.LESS_THAN:
            return native_bool(lhs < rhs)
        case InfixOp.GREATER_THAN:
            return native_bool(lhs > rhs)
        case InfixOp.EQUAL:
            return native_bool(lhs == rhs)
        case InfixOp.NOT_EQUAL:
            return native_bool(lhs != rhs)

    raise UnsupportedInfixOperator(KstInteger(lhs), op, KstInteger(rhs))

def _trunc_div(lhs: int, rhs: int) -> int:
    """Integer division rounding toward zero (i64 semantics, not Python's floor)."""
    quotient = abs(lhs) // abs(rhs)
    return quotient if (lhs < 0) == (rhs < 0) else -quotient

def _checked(result: int, lhs: int, op: InfixOp, rhs: int) -> KstInteger:
    if result < I64_MIN or result > I64_MAX:
        raise IntegerOverflow(lhs, op, rhs)

    return KstInteger(result)
