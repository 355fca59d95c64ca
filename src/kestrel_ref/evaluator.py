from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, List, Optional

from .config import Settings
from .tree import (
    Block,
    BooleanLiteral,
    Call,
    ExpressionStatement,
    FunctionLiteral,
    Identifier,
    If,
    Infix,
    IntegerLiteral,
    Let,
    Node,
    Prefix,
    Program,
    Return,
    StringLiteral,
)
from .types import (
    CallDepthExceeded,
    Environment,
    EvalError,
    InvalidExpression,
    KstFn,
    KstInteger,
    KstNull,
    KstReturn,
    KstString,
    KstValue,
    NotCallable,
    StackExhausted,
)

from .eval.blocks import eval_block, eval_program
from .eval.expr import eval_infix, eval_prefix
from .eval.fn import bind_arguments, make_function, unwrap_return
from .eval.helpers import is_truthy, native_bool

logger = logging.getLogger(__name__)

# Python frames one Kestrel call takes with an ordinary body
HOST_FRAMES_PER_CALL = 48


class Evaluator:
    """
    Tree-walking evaluator.

    The current environment is passed down every eval_node call and mirrored
    in `self.env`. A function call evaluates its body in a scope chained to
    the closure's captured scope; `entered_call` swaps that scope in and puts
    the caller's back when the call returns or raises.
    """

    def __init__(self, env: Optional[Environment]=None, settings: Optional[Settings]=None):
        self.globals = env if env is not None else Environment()
        self.env = self.globals
        self.settings = settings or Settings()
        self.call_depth = 0

    # ---------------- Public API ----------------

    def eval(self, node: Node, env: Optional[Environment]=None) -> KstValue:
        """Evaluate `node` in `env` (the current scope by default)."""
        try:
            with self.host_stack():
                return self.eval_node(node, self.env if env is None else env)
        except RecursionError:
            # entered_call has already restored env and call_depth on the way out
            err = StackExhausted(self.settings.max_call_depth)
            logger.debug("evaluation failed: %s", err)
            raise err from None
        except EvalError as e:
            logger.debug("evaluation failed: %s", e)
            raise

    @contextmanager
    def host_stack(self) -> Iterator[None]:
        """
        Raise the interpreter's recursion limit to fit `max_call_depth` calls.

        The old limit is put back afterwards. The limit is process-wide, so
        evaluators must not run on several threads at once.
        """
        prev = sys.getrecursionlimit()
        wanted = prev + self.settings.max_call_depth * HOST_FRAMES_PER_CALL

        if self.call_depth > 0 or wanted <= prev:
            yield
            return

        sys.setrecursionlimit(wanted)
        try:
            yield
        finally:
            sys.setrecursionlimit(prev)

    def apply_function(self, fn: KstFn, args: List[KstValue]) -> KstValue:
        callee_env = bind_arguments(fn, args)

        with self.entered_call(callee_env):
            logger.debug("call %r with %d arg(s) at depth %d", fn, len(args), self.call_depth)
            return unwrap_return(self.eval_node(fn.body, callee_env))

    @contextmanager
    def entered_call(self, callee_env: Environment) -> Iterator[None]:
        if self.call_depth >= self.settings.max_call_depth:
            raise CallDepthExceeded(self.settings.max_call_depth)

        prev = self.env
        self.env = callee_env
        self.call_depth += 1

        try:
            yield
        finally:
            self.call_depth -= 1
            self.env = prev

    # ---------------- Core evaluator ----------------

    def eval_node(self, n: Node, env: Environment) -> KstValue:
        match n:
            case Program(statements=stmts):
                return eval_program(stmts, env, self.eval_node)
            case Block(statements=stmts):
                return eval_block(stmts, env, self.eval_node)
            case ExpressionStatement(value=value):
                return self.eval_node(value, env)
            case Let(name=name, value=value):
                val = self.eval_node(value, env)
                if isinstance(val, KstReturn):
                    return val
                return env.set(name, val)
            case Return(value=value):
                val = self.eval_node(value, env)
                return val if isinstance(val, KstReturn) else KstReturn(val)
            case Identifier(name=name):
                return env.get(name)
            case IntegerLiteral():
                return KstInteger(n.value)
            case BooleanLiteral(value=b):
                return native_bool(b)
            case StringLiteral(text=text):
                return KstString(text)
            case Prefix(op=op, operand=operand):
                return eval_prefix(op, self.eval_node(operand, env))
            case Infix(left=left, op=op, right=right):
                lhs = self.eval_node(left, env)
                rhs = self.eval_node(right, env)
                return eval_infix(op, lhs, rhs)
            case If():
                return self._eval_if(n, env)
            case FunctionLiteral():
                return make_function(n, env)
            case Call():
                return self._eval_call(n, env)
            case _:
                raise InvalidExpression(n)

    def _eval_if(self, n: If, env: Environment) -> KstValue:
        cond = self.eval_node(n.condition, env)

        if is_truthy(cond):
            return self.eval_node(n.consequence, env)

        if n.alternative is not None:
            return self.eval_node(n.alternative, env)

        return KstNull()

    def _eval_call(self, n: Call, env: Environment) -> KstValue:
        callee = self.eval_node(n.callee, env)
        if not isinstance(callee, KstFn):
            raise NotCallable(callee)

        # left to right, in the caller's scope
        args = [self.eval_node(arg, env) for arg in n.arguments]

        return self.apply_function(callee, args)
