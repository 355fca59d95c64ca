from __future__ import annotations

from typing import Callable, Sequence

from ..tree import Node, Statement
from ..types import Environment, KstNull, KstReturn, KstValue

EvalFunc = Callable[[Node, Environment], KstValue]

def eval_program(statements: Sequence[Statement], env: Environment, eval_func: EvalFunc) -> KstValue:
    """Run top-level statements; a `return` ends the program with its value."""
    result: KstValue = KstNull()

    for stmt in statements:
        result = eval_func(stmt, env)

        if isinstance(result, KstReturn):
            return result.value

    return result

def eval_block(statements: Sequence[Statement], env: Environment, eval_func: EvalFunc) -> KstValue:
    """Run a block's statements, handing a KstReturn up still wrapped."""
    result: KstValue = KstNull()

    for stmt in statements:
        result = eval_func(stmt, env)

        if isinstance(result, KstReturn):
            return result

    return result
