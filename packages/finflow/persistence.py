# ruff: noqa: I001
"""Persistence integration for finflow.

Functions here read and write the local database owned by ``libs/db``. They
rely on SQLAlchemy ORM models defined in ``db.models.finance`` and take a
session provided by ``db.client.session_scope``; committing is the caller's
concern.

Scope:
- Transactions CRUD, plus idempotent import of message-derived candidates
  (deduplicated on a SHA-256 fingerprint).
- Bills CRUD and paid toggling.
- Key/value settings.
- JSON backup export/import and full reset.
"""

from __future__ import annotations

import hashlib
import json
import uuid
from collections.abc import Iterable, Mapping
from datetime import UTC, date, datetime
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from db.models.finance import FfBill, FfSetting, FfTransaction
from .categories import validate_category_id
from .errors import NotFoundError
from .logging_setup import get_logger
from .models import (
    BackupFile,
    Bill,
    BillIn,
    ParsedMessage,
    StoredBill,
    StoredTransaction,
    Transaction,
    TransactionIn,
    TransactionKind,
)

_logger = get_logger("finflow.persistence")

BACKUP_VERSION = "1.0"


def _to_decimal_2(raw: Any) -> Decimal | None:
    if raw is None:
        return None
    try:
        d = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return None
    return d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _norm_str(v: Any) -> str | None:
    if v is None:
        return None
    s = str(v).strip()
    return s if s else None


def _new_id() -> str:
    return uuid.uuid4().hex


def compute_fingerprint(*, content: str, tx: Mapping[str, Any]) -> str:
    """Compute a stable SHA-256 fingerprint for a message-derived transaction.

    Fields used: message body (trimmed), type, amount (2dp string), merchant
    (trimmed), account (trimmed). The transaction date is not included.
    """

    payload = {
        "content": _norm_str(content),
        "type": _norm_str(tx.get("type")),
        "amount": None,
        "merchant": _norm_str(tx.get("merchant")),
        "account": _norm_str(tx.get("account")),
    }
    amt = _to_decimal_2(tx.get("amount"))
    if amt is not None:
        payload["amount"] = f"{amt:.2f}"

    data = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Row <-> record mapping
# ---------------------------------------------------------------------------


def _as_transaction(row: FfTransaction) -> Transaction:
    return Transaction(
        id=row.id,
        type=row.type,  # type: ignore[arg-type]
        amount=Decimal(row.amount),
        category=row.category,
        description=row.description,
        date=row.date,
        created_at=row.created_at,
        source=row.source,  # type: ignore[arg-type]
        merchant=row.merchant,
        account=row.account,
    )


def _as_bill(row: FfBill) -> Bill:
    return Bill(
        id=row.id,
        name=row.name,
        amount=Decimal(row.amount),
        due_date=row.due_date,
        category=row.category,
        is_paid=row.is_paid,
        is_recurring=row.is_recurring,
        created_at=row.created_at,
        frequency=row.frequency,  # type: ignore[arg-type]
    )


def _month_bounds(month: str) -> tuple[date, date]:
    """Return ``[first_day, first_day_of_next_month)`` for ``YYYY-MM``."""

    try:
        start = datetime.strptime(month, "%Y-%m").date()
    except ValueError as exc:
        raise ValueError(f"Invalid month {month!r}; expected YYYY-MM") from exc
    if start.month == 12:
        end = date(start.year + 1, 1, 1)
    else:
        end = date(start.year, start.month + 1, 1)
    return start, end


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


def add_transaction(
    session: Session, tx: TransactionIn, *, fingerprint: str | None = None
) -> Transaction:
    """Insert ``tx`` with a fresh id and creation timestamp.

    Raises ``ValueError`` when the category does not fit the transaction type.
    """

    validate_category_id(tx.category, kind=tx.type)
    row = FfTransaction(
        id=_new_id(),
        type=tx.type,
        amount=tx.amount,
        category=tx.category,
        description=tx.description,
        date=tx.date,
        source=tx.source,
        merchant=tx.merchant,
        account=tx.account,
        fingerprint_sha256=fingerprint,
        created_at=datetime.now(UTC),
    )
    session.add(row)
    session.flush()
    return _as_transaction(row)


def _get_transaction_row(session: Session, tx_id: str) -> FfTransaction:
    row = session.get(FfTransaction, tx_id)
    if row is None:
        raise NotFoundError("transaction", tx_id)
    return row


def update_transaction(session: Session, tx_id: str, **changes: Any) -> Transaction:
    """Apply ``changes`` to an existing transaction.

    The merged record is re-validated as a whole, so e.g. switching the type
    without a matching category is rejected.
    """

    row = _get_transaction_row(session, tx_id)
    current = _as_transaction(row)
    merged = TransactionIn.model_validate(
        {
            "type": current.type,
            "amount": current.amount,
            "category": current.category,
            "description": current.description,
            "date": current.date,
            "source": current.source,
            "merchant": current.merchant,
            "account": current.account,
            **changes,
        }
    )
    validate_category_id(merged.category, kind=merged.type)
    for field in ("type", "amount", "category", "description", "date", "source", "merchant", "account"):
        setattr(row, field, getattr(merged, field))
    session.flush()
    return _as_transaction(row)


def delete_transaction(session: Session, tx_id: str) -> None:
    session.delete(_get_transaction_row(session, tx_id))
    session.flush()


def list_transactions(
    session: Session,
    *,
    month: str | None = None,
    type: TransactionKind | None = None,
) -> list[Transaction]:
    """Return transactions, newest first, optionally limited to a month and/or type."""

    stmt = select(FfTransaction)
    if month is not None:
        start, end = _month_bounds(month)
        stmt = stmt.where(FfTransaction.date >= start, FfTransaction.date < end)
    if type is not None:
        stmt = stmt.where(FfTransaction.type == type)
    stmt = stmt.order_by(FfTransaction.date.desc(), FfTransaction.created_at.desc())
    return [_as_transaction(r) for r in session.scalars(stmt)]


def import_candidates(
    session: Session,
    parsed: Iterable[ParsedMessage],
    *,
    on: date | None = None,
) -> int:
    """Store confirmed message candidates, skipping ones already imported.

    Parameters
    ----------
    session:
        Active SQLAlchemy session.
    parsed:
        Parse results; entries without a candidate are ignored.
    on:
        Transaction date for every inserted row. Defaults to today.

    Returns
    -------
    int
        Number of rows actually inserted.
    """

    existing = set(
        session.scalars(
            select(FfTransaction.fingerprint_sha256).where(
                FfTransaction.fingerprint_sha256.is_not(None)
            )
        )
    )
    inserted = 0
    for item in parsed:
        cand = item.candidate
        if cand is None:
            continue
        fp = compute_fingerprint(content=item.message.content, tx=cand.to_dict())
        if fp in existing:
            _logger.debug("skipping already imported message %s", item.message.id)
            continue
        add_transaction(session, cand.to_transaction(on=on), fingerprint=fp)
        existing.add(fp)
        inserted += 1
    _logger.info("imported %d message transactions", inserted)
    return inserted


# ---------------------------------------------------------------------------
# Bills
# ---------------------------------------------------------------------------


def add_bill(session: Session, bill: BillIn) -> Bill:
    validate_category_id(bill.category)
    row = FfBill(
        id=_new_id(),
        name=bill.name,
        amount=bill.amount,
        due_date=bill.due_date,
        category=bill.category,
        is_paid=bill.is_paid,
        is_recurring=bill.is_recurring,
        frequency=bill.frequency,
        created_at=datetime.now(UTC),
    )
    session.add(row)
    session.flush()
    return _as_bill(row)


def _get_bill_row(session: Session, bill_id: str) -> FfBill:
    row = session.get(FfBill, bill_id)
    if row is None:
        raise NotFoundError("bill", bill_id)
    return row


def update_bill(session: Session, bill_id: str, **changes: Any) -> Bill:
    row = _get_bill_row(session, bill_id)
    current = _as_bill(row)
    merged = BillIn.model_validate(
        {
            "name": current.name,
            "amount": current.amount,
            "due_date": current.due_date,
            "category": current.category,
            "is_paid": current.is_paid,
            "is_recurring": current.is_recurring,
            "frequency": current.frequency,
            **changes,
        }
    )
    validate_category_id(merged.category)
    for field in ("name", "amount", "due_date", "category", "is_paid", "is_recurring", "frequency"):
        setattr(row, field, getattr(merged, field))
    session.flush()
    return _as_bill(row)


def delete_bill(session: Session, bill_id: str) -> None:
    session.delete(_get_bill_row(session, bill_id))
    session.flush()


def list_bills(session: Session) -> list[Bill]:
    """Return all bills ordered by due date."""

    stmt = select(FfBill).order_by(FfBill.due_date.asc(), FfBill.created_at.asc())
    return [_as_bill(r) for r in session.scalars(stmt)]


def toggle_bill_paid(session: Session, bill_id: str) -> Bill:
    row = _get_bill_row(session, bill_id)
    row.is_paid = not row.is_paid
    session.flush()
    return _as_bill(row)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def get_settings(session: Session) -> dict[str, Any]:
    return {r.key: r.value for r in session.scalars(select(FfSetting).order_by(FfSetting.key))}


def save_settings(session: Session, updates: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``updates`` into the stored settings and return the full mapping."""

    for key, value in updates.items():
        row = session.get(FfSetting, key)
        if row is None:
            session.add(FfSetting(key=key, value=value))
        else:
            row.value = value
    session.flush()
    return get_settings(session)


# ---------------------------------------------------------------------------
# Backup
# ---------------------------------------------------------------------------


def export_data(session: Session, *, now: datetime | None = None) -> str:
    """Serialize every stored record to the JSON backup format."""

    transactions = [
        StoredTransaction.model_validate(
            {
                "id": t.id,
                "type": t.type,
                "amount": t.amount,
                "category": t.category,
                "description": t.description,
                "date": t.date,
                "source": t.source,
                "merchant": t.merchant,
                "account": t.account,
                "createdAt": t.created_at,
            }
        )
        for t in list_transactions(session)
    ]
    bills = [
        StoredBill.model_validate(
            {
                "id": b.id,
                "name": b.name,
                "amount": b.amount,
                "dueDate": b.due_date,
                "category": b.category,
                "isPaid": b.is_paid,
                "isRecurring": b.is_recurring,
                "frequency": b.frequency,
                "createdAt": b.created_at,
            }
        )
        for b in list_bills(session)
    ]
    backup = BackupFile(
        transactions=transactions,
        bills=bills,
        settings=get_settings(session),
        export_date=now or datetime.now(UTC),
        version=BACKUP_VERSION,
    )
    return json.dumps(backup.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False)


def clear_all_data(session: Session) -> None:
    session.execute(delete(FfTransaction))
    session.execute(delete(FfBill))
    session.execute(delete(FfSetting))
    session.flush()


def import_data(session: Session, text: str) -> tuple[int, int]:
    """Replace all stored data with the contents of a JSON backup.

    Raises ``pydantic.ValidationError`` (a ``ValueError``) when the document is
    not valid JSON or does not match the backup schema; nothing is changed in
    that case. Returns ``(n_transactions, n_bills)``.
    """

    backup = BackupFile.model_validate_json(text)
    clear_all_data(session)
    for t in backup.transactions:
        session.add(
            FfTransaction(
                id=t.id,
                type=t.type,
                amount=t.amount,
                category=t.category,
                description=t.description,
                date=t.date,
                source=t.source,
                merchant=t.merchant,
                account=t.account,
                created_at=t.created_at,
            )
        )
    for b in backup.bills:
        session.add(
            FfBill(
                id=b.id,
                name=b.name,
                amount=b.amount,
                due_date=b.due_date,
                category=b.category,
                is_paid=b.is_paid,
                is_recurring=b.is_recurring,
                frequency=b.frequency,
                created_at=b.created_at,
            )
        )
    for key, value in backup.settings.items():
        session.add(FfSetting(key=key, value=value))
    session.flush()
    _logger.info(
        "imported backup: %d transactions, %d bills", len(backup.transactions), len(backup.bills)
    )
    return len(backup.transactions), len(backup.bills)


__all__ = [
    "BACKUP_VERSION",
    "compute_fingerprint",
    "add_transaction",
    "update_transaction",
    "delete_transaction",
    "list_transactions",
    "import_candidates",
    "add_bill",
    "update_bill",
    "delete_bill",
    "list_bills",
    "toggle_bill_paid",
    "get_settings",
    "save_settings",
    "export_data",
    "import_data",
    "clear_all_data",
]
