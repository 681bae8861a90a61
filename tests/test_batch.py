from __future__ import annotations

import pytest
from finflow.batch import candidates_only, parse_messages, resolve_max_workers
from finflow.models import RawMessage
from helpers.sms_samples import AMAZON_DEBIT, CHAT, SALARY_CREDIT, SWIGGY_UPI


def _messages(n: int) -> list[RawMessage]:
    bodies = [AMAZON_DEBIT, CHAT, SALARY_CREDIT, SWIGGY_UPI]
    return [
        RawMessage(id=f"m{i}", content=bodies[i % 4], sender="HDFC-BANK", timestamp="2025-01-01")
        for i in range(n)
    ]


@pytest.mark.parametrize("workers", [1, 4])
def test_parse_messages_preserves_input_order(workers: int):
    msgs = _messages(20)

    results = parse_messages(msgs, max_workers=workers)

    assert [r.message.id for r in results] == [m.id for m in msgs]
    kinds = [r.candidate.type if r.candidate else None for r in results[:4]]
    assert kinds == ["expense", None, "income", "expense"]


def test_candidates_only_drops_non_transactions():
    results = parse_messages(_messages(8), max_workers=2)
    kept = candidates_only(results)
    assert len(kept) == 6
    assert all(r.candidate is not None for r in kept)


def test_parse_messages_empty():
    assert parse_messages([]) == []


def test_resolve_max_workers_caps_and_env(monkeypatch: pytest.MonkeyPatch):
    assert resolve_max_workers(3) == 3
    assert resolve_max_workers(100) == 8
    assert resolve_max_workers(100, override=64) == 32
    assert resolve_max_workers(0) == 1

    monkeypatch.setenv("FINFLOW_PARSE_MAX_WORKERS", "2")
    assert resolve_max_workers(100) == 2
    assert resolve_max_workers(100, override=5) == 5

    monkeypatch.setenv("FINFLOW_PARSE_MAX_WORKERS", "lots")
    assert resolve_max_workers(100) == 8
