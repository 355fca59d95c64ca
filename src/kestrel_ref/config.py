from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

MAX_DEPTH_ENV = "KESTREL_MAX_DEPTH"
MAX_CALL_DEPTH_ENV = "KESTREL_MAX_CALL_DEPTH"


@dataclass(frozen=True)
class Settings:
    """Recursion limits for the parser and the evaluator."""

    max_depth: int = 128
    max_call_depth: int = 1000

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Settings:
        """Build settings from KESTREL_* variables; unset ones keep defaults."""
        env = os.environ if environ is None else environ
        defaults = cls()

        return cls(
            max_depth=_limit_from_env(env, MAX_DEPTH_ENV, defaults.max_depth),
            max_call_depth=_limit_from_env(env, MAX_CALL_DEPTH_ENV, defaults.max_call_depth),
        )


def _limit_from_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None:
        return default

    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None

    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")

    return value
