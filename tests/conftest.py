from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from kestrel_ref.config import MAX_CALL_DEPTH_ENV, MAX_DEPTH_ENV


@pytest.fixture(autouse=True)
def _isolate_limits(monkeypatch: pytest.MonkeyPatch) -> None:
    """Limits set in the shell running pytest must not leak into cases."""
    for name in (MAX_DEPTH_ENV, MAX_CALL_DEPTH_ENV):
        monkeypatch.delenv(name, raising=False)


def pytest_collection_modifyitems(
    session: pytest.Session,
    config: pytest.Config,
    items: List[pytest.Item],
) -> None:
    """Reject a run whose parametrize ids collide."""
    del session
    del config

    seen: Dict[str, int] = {}
    duplicates: List[str] = []
    for item in items:
        if item.nodeid in seen:
            duplicates.append(item.nodeid)
            continue
        seen[item.nodeid] = 1

    if duplicates:
        lines = "\n".join(f"- {nodeid}" for nodeid in sorted(set(duplicates)))
        raise pytest.UsageError(f"Duplicate pytest nodeids detected during collection:\n{lines}")
