"""Pytest configuration for test isolation.

The workspace packages are not necessarily installed, so ``packages/`` and
``libs/ledger_db/src`` are put on ``sys.path`` (ahead of the repo root, which
is added so ``tests.helpers`` resolves).

The CLI loads ``.env`` from the working directory and the SQL ledger reads
``LEDGER_DATABASE_URL`` from the environment. To keep tests hermetic, each
test runs in its own temporary working directory with that variable unset and
the shared SQLAlchemy engine disposed afterwards.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
sys.path[:0] = [
    p
    for p in [str(_ROOT / "packages"), str(_ROOT / "libs" / "ledger_db" / "src"), str(_ROOT)]
    if p not in sys.path
]

from ledger_db.client import reset_engine  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run each test from a private CWD without a ledger URL in the environment."""

    workdir = tmp_path / "cwd"
    workdir.mkdir(parents=True, exist_ok=True)
    monkeypatch.chdir(workdir)
    monkeypatch.delenv("LEDGER_DATABASE_URL", raising=False)
    yield
    reset_engine()
