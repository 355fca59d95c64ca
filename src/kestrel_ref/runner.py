from __future__ import annotations

import logging
from typing import List, NamedTuple, Optional

from .config import Settings
from .evaluator import Evaluator
from .parser import parse_source
from .types import Environment, KstNull, KstValue

logger = logging.getLogger(__name__)


class RunResult(NamedTuple):
    value: KstValue
    diagnostics: List[str]


def run(src: str, env: Optional[Environment]=None, settings: Optional[Settings]=None) -> RunResult:
    """
    Parse and evaluate a whole program.

    - Parse diagnostics are returned, and the program is then not evaluated.
    - Evaluation failures propagate as EvalError.
    - Pass the same `env` to successive runs to keep global bindings.
    """
    if settings is None:
        settings = Settings.from_env()

    program, diagnostics = parse_source(src, settings=settings)

    if diagnostics:
        logger.debug("not evaluating: %d parse diagnostic(s)", len(diagnostics))
        return RunResult(KstNull(), diagnostics)

    value = Evaluator(env, settings=settings).eval(program)
    logger.debug("program of %d statement(s) evaluated to %r", len(program.statements), value)
    return RunResult(value, [])
