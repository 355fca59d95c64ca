from __future__ import annotations

from typing import Sequence

from ..tree import FunctionLiteral
from ..types import ArgumentCountMismatch, Environment, KstFn, KstReturn, KstValue

def make_function(node: FunctionLiteral, env: Environment) -> KstFn:
    # the defining scope is captured by reference
    params = tuple(p.name for p in node.parameters)
    return KstFn(params=params, body=node.body, env=env)

def bind_arguments(fn: KstFn, args: Sequence[KstValue]) -> Environment:
    """Fresh call scope chained to the closure's scope, not the caller's."""
    if len(args) != len(fn.params):
        raise ArgumentCountMismatch(len(fn.params), len(args))

    callee_env = fn.env.enclosed()

    for name, val in zip(fn.params, args):
        callee_env.set(name, val)

    return callee_env

def unwrap_return(value: KstValue) -> KstValue:
    if isinstance(value, KstReturn):
        return value.value

    return value
