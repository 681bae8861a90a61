"""Pytest configuration for test isolation.

Every test gets its own SQLite database file under ``tmp_path`` via
``DATABASE_URL``. The shared engine in ``db.client`` is module-global, so it is
disposed before and after each test to keep tests from writing into each
other's files. Environment knobs that change parsing or display are cleared
or pinned so results do not depend on the developer's shell.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest
from db.client import dispose_engine, init_db, session_scope
from sqlalchemy.orm import Session


@pytest.fixture(autouse=True)
def _isolate_database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[str]:
    url = f"sqlite+pysqlite:///{os.fspath(tmp_path / 'finflow.db')}"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.setenv("FINFLOW_CURRENCY_REGION", "US")
    monkeypatch.setenv("FINFLOW_LOG_LEVEL", "WARNING")
    monkeypatch.delenv("FINFLOW_PARSE_MAX_WORKERS", raising=False)
    dispose_engine()
    yield url
    dispose_engine()


@pytest.fixture
def session(_isolate_database: str) -> Iterator[Session]:
    """A session on a freshly created schema; committed when the test ends."""

    init_db()
    with session_scope() as s:
        yield s
