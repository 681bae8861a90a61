from __future__ import annotations

import json
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest
from finflow.batch import parse_messages
from finflow.errors import NotFoundError
from finflow.models import BillIn, RawMessage, TransactionIn
from finflow.persistence import (
    add_bill,
    add_transaction,
    clear_all_data,
    compute_fingerprint,
    delete_bill,
    delete_transaction,
    export_data,
    get_settings,
    import_candidates,
    import_data,
    list_bills,
    list_transactions,
    save_settings,
    toggle_bill_paid,
    update_bill,
    update_transaction,
)
from helpers.sms_samples import AMAZON_DEBIT, CHAT, SALARY_CREDIT, SWIGGY_UPI


def _tx(**overrides) -> TransactionIn:
    data = {
        "type": "expense",
        "amount": "12.5",
        "category": "food",
        "description": "Lunch",
        "date": date(2025, 1, 10),
    }
    data.update(overrides)
    return TransactionIn(**data)


def _bill(**overrides) -> BillIn:
    data = {
        "name": "Electricity",
        "amount": "40",
        "due_date": date(2025, 1, 20),
        "category": "utilities",
    }
    data.update(overrides)
    return BillIn(**data)


# ---- Transactions -----------------------------------------------------------


def test_add_and_list_transaction(session):
    stored = add_transaction(session, _tx(merchant="  ", account="*1234"))

    assert len(stored.id) == 32
    assert stored.amount == Decimal("12.50")
    assert stored.source == "manual"
    assert stored.merchant is None
    assert stored.account == "*1234"

    (row,) = list_transactions(session)
    assert row.id == stored.id
    assert row.date == date(2025, 1, 10)


def test_add_transaction_rejects_category_of_other_kind(session):
    with pytest.raises(ValueError):
        add_transaction(session, _tx(category="salary"))
    assert list_transactions(session) == []


def test_list_transactions_filters_and_orders_newest_first(session):
    add_transaction(session, _tx(description="old", date=date(2025, 1, 2)))
    add_transaction(session, _tx(description="new", date=date(2025, 1, 28)))
    add_transaction(session, _tx(description="feb", date=date(2025, 2, 1)))
    add_transaction(session, _tx(type="income", category="salary", description="pay", date=date(2025, 1, 31)))

    jan = list_transactions(session, month="2025-01")
    assert [t.description for t in jan] == ["pay", "new", "old"]

    jan_exp = list_transactions(session, month="2025-01", type="expense")
    assert [t.description for t in jan_exp] == ["new", "old"]

    with pytest.raises(ValueError):
        list_transactions(session, month="January")


def test_december_month_filter_spans_year_end(session):
    add_transaction(session, _tx(description="dec", date=date(2024, 12, 31)))
    add_transaction(session, _tx(description="jan", date=date(2025, 1, 1)))
    assert [t.description for t in list_transactions(session, month="2024-12")] == ["dec"]


def test_update_transaction(session):
    stored = add_transaction(session, _tx())

    updated = update_transaction(session, stored.id, amount="99.999", description="Dinner")

    assert updated.amount == Decimal("100.00")
    assert updated.description == "Dinner"
    assert updated.created_at == stored.created_at

    # Type change without a matching category is rejected as a whole.
    with pytest.raises(ValueError):
        update_transaction(session, stored.id, type="income")
    with pytest.raises(NotFoundError):
        update_transaction(session, "missing", amount="1")


def test_delete_transaction(session):
    stored = add_transaction(session, _tx())
    delete_transaction(session, stored.id)
    assert list_transactions(session) == []
    with pytest.raises(NotFoundError):
        delete_transaction(session, stored.id)


# ---- Message import ---------------------------------------------------------


def _parsed():
    msgs = [
        RawMessage("a", AMAZON_DEBIT, "HDFC-BANK", "2025-01-15T00:00:00Z"),
        RawMessage("b", CHAT, "+1555", "2025-01-15T00:00:00Z"),
        RawMessage("c", SALARY_CREDIT, "ICICI-BANK", "2025-01-15T00:00:00Z"),
    ]
    return parse_messages(msgs, max_workers=1)


def test_import_candidates_is_idempotent(session):
    assert import_candidates(session, _parsed(), on=date(2025, 1, 15)) == 2
    assert import_candidates(session, _parsed(), on=date(2025, 1, 16)) == 0

    rows = list_transactions(session)
    assert {(t.type, t.amount, t.source, t.date) for t in rows} == {
        ("expense", Decimal("2500.00"), "sms", date(2025, 1, 15)),
        ("income", Decimal("75000.00"), "sms", date(2025, 1, 15)),
    }


def test_import_candidates_dedupes_within_a_batch(session):
    msgs = [RawMessage(str(i), SWIGGY_UPI, "HDFC-BANK", "t") for i in range(3)]
    assert import_candidates(session, parse_messages(msgs, max_workers=1)) == 1


def test_fingerprint_depends_on_body_and_fields():
    tx = {"type": "expense", "amount": 450, "merchant": "SWIGGY", "account": None}
    same = {"type": "expense", "amount": "450.00", "merchant": " SWIGGY ", "account": None}
    fp = compute_fingerprint(content=SWIGGY_UPI, tx=tx)
    assert len(fp) == 64
    assert fp == compute_fingerprint(content=SWIGGY_UPI, tx=same)
    assert fp != compute_fingerprint(content=SWIGGY_UPI + "!", tx=tx)
    assert fp != compute_fingerprint(content=SWIGGY_UPI, tx={**tx, "amount": 451})


# ---- Bills ------------------------------------------------------------------


def test_bill_crud_and_toggle(session):
    later = add_bill(session, _bill(name="Rent", category="rent", due_date=date(2025, 2, 1)))
    sooner = add_bill(session, _bill(is_recurring=True, frequency="monthly"))

    assert [b.name for b in list_bills(session)] == ["Electricity", "Rent"]
    assert sooner.is_paid is False and sooner.frequency == "monthly"

    assert toggle_bill_paid(session, sooner.id).is_paid is True
    assert toggle_bill_paid(session, sooner.id).is_paid is False

    moved = update_bill(session, later.id, due_date=date(2025, 1, 5), amount="1200")
    assert moved.amount == Decimal("1200.00")
    assert [b.name for b in list_bills(session)] == ["Rent", "Electricity"]

    delete_bill(session, later.id)
    with pytest.raises(NotFoundError):
        toggle_bill_paid(session, later.id)


def test_add_bill_rejects_unknown_category(session):
    with pytest.raises(ValueError):
        add_bill(session, _bill(category="groceries"))


# ---- Settings ---------------------------------------------------------------


def test_settings_merge(session):
    assert get_settings(session) == {}
    save_settings(session, {"currencyRegion": "IN", "notifications": True})
    merged = save_settings(session, {"currencyRegion": "GB"})
    assert merged == {"currencyRegion": "GB", "notifications": True}


# ---- Backup -----------------------------------------------------------------


def test_export_import_roundtrip(session):
    tx = add_transaction(session, _tx(merchant="CAFE"))
    bill = add_bill(session, _bill())
    save_settings(session, {"currencyRegion": "IN"})

    text = export_data(session, now=datetime(2025, 1, 31, 12, 0, tzinfo=UTC))
    doc = json.loads(text)

    assert doc["version"] == "1.0"
    assert doc["exportDate"].startswith("2025-01-31T12:00:00")
    assert doc["settings"] == {"currencyRegion": "IN"}
    (t,) = doc["transactions"]
    assert t["id"] == tx.id and t["amount"] == 12.5 and t["date"] == "2025-01-10"
    assert "createdAt" in t
    (b,) = doc["bills"]
    assert b["id"] == bill.id and b["dueDate"] == "2025-01-20" and b["isPaid"] is False

    clear_all_data(session)
    assert list_transactions(session) == [] and list_bills(session) == []

    assert import_data(session, text) == (1, 1)
    (restored,) = list_transactions(session)
    assert (restored.id, restored.amount, restored.merchant) == (tx.id, Decimal("12.50"), "CAFE")
    assert list_bills(session)[0].id == bill.id
    assert get_settings(session) == {"currencyRegion": "IN"}


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        json.dumps({"transactions": [{"id": "x", "type": "gift", "amount": 1}]}),
    ],
)
def test_invalid_backup_leaves_data_untouched(session, text):
    add_transaction(session, _tx())
    with pytest.raises(ValueError):
        import_data(session, text)
    assert len(list_transactions(session)) == 1


def test_created_at_stays_utc_across_sessions():
    from db.client import init_db, session_scope

    init_db()
    with session_scope() as s:
        stored = add_transaction(s, _tx())
        add_bill(s, _bill())
    assert stored.created_at.tzinfo is not None

    with session_scope() as s:
        (reloaded,) = list_transactions(s)
        (bill,) = list_bills(s)
        doc = json.loads(export_data(s))

    assert reloaded.created_at == stored.created_at
    assert reloaded.created_at.utcoffset() == timedelta(0)
    assert bill.created_at.utcoffset() == timedelta(0)
    exported = datetime.fromisoformat(doc["transactions"][0]["createdAt"])
    assert exported == stored.created_at
