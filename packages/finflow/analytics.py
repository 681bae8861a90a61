"""Summary analytics over stored transactions and bills.

Every function is pure and takes ``today`` explicitly; nothing here reads the
clock or the database. Amounts stay ``Decimal``; percentages are ``float``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal

from .categories import category_name
from .models import (
    Bill,
    FinancialStats,
    GrowthRates,
    MonthlyTotals,
    Notification,
    Transaction,
    TransactionKind,
)

DUE_SOON_DAYS = 3
HIGH_EXPENSE_FACTOR = 2

_ZERO = Decimal("0")


def month_key(d: date) -> str:
    """``YYYY-MM`` for ``d``."""

    return f"{d.year:04d}-{d.month:02d}"


def _shift_month(d: date, delta: int) -> date:
    idx = d.year * 12 + (d.month - 1) + delta
    return date(idx // 12, idx % 12 + 1, 1)


def previous_month(today: date) -> str:
    return month_key(_shift_month(today, -1))


def last_n_months(today: date, n: int = 6) -> list[str]:
    """Month keys for the ``n`` months ending with ``today``'s, oldest first."""

    return [month_key(_shift_month(today, -offset)) for offset in range(n - 1, -1, -1)]


def _in_month(transactions: Iterable[Transaction], month: str) -> list[Transaction]:
    return [t for t in transactions if month_key(t.date) == month]


def _total(transactions: Iterable[Transaction], kind: TransactionKind) -> Decimal:
    return sum((t.amount for t in transactions if t.type == kind), _ZERO)


def _pct_change(current: Decimal, previous: Decimal, *, base: Decimal | None = None) -> float:
    denom = previous if base is None else base
    if denom == 0:
        return 0.0
    return float((current - previous) / denom * 100)


def monthly_totals(transactions: Sequence[Transaction], months: Iterable[str]) -> list[MonthlyTotals]:
    """Income and expense totals for each month key, in the given order."""

    out: list[MonthlyTotals] = []
    for month in months:
        rows = _in_month(transactions, month)
        out.append(MonthlyTotals(month=month, income=_total(rows, "income"), expenses=_total(rows, "expense")))
    return out


def category_breakdown(
    transactions: Iterable[Transaction],
    month: str,
    kind: TransactionKind = "expense",
) -> list[tuple[str, Decimal]]:
    """Sum of ``kind`` amounts per category display name within ``month``.

    Sorted by amount, largest first. Categories sharing a display name (both
    "Other" categories, unknown ids) are merged.
    """

    sums: dict[str, Decimal] = {}
    for t in _in_month(transactions, month):
        if t.type != kind:
            continue
        name = category_name(t.category)
        sums[name] = sums.get(name, _ZERO) + t.amount
    return sorted(sums.items(), key=lambda kv: kv[1], reverse=True)


def growth_rates(transactions: Sequence[Transaction], today: date) -> GrowthRates:
    """Percent change of this month's income, expenses and net vs. the previous month.

    A rate is 0 when the previous month's value is 0. Net growth divides by
    the absolute previous net; improving from a loss is positive.
    """

    cur = _in_month(transactions, month_key(today))
    prev = _in_month(transactions, previous_month(today))
    cur_inc, cur_exp = _total(cur, "income"), _total(cur, "expense")
    prev_inc, prev_exp = _total(prev, "income"), _total(prev, "expense")
    cur_net, prev_net = cur_inc - cur_exp, prev_inc - prev_exp
    return GrowthRates(
        income=_pct_change(cur_inc, prev_inc),
        expenses=_pct_change(cur_exp, prev_exp),
        net=_pct_change(cur_net, prev_net, base=abs(prev_net)),
    )


def financial_stats(transactions: Sequence[Transaction], today: date) -> FinancialStats:
    """Current-month summary used by the dashboard."""

    cur = _in_month(transactions, month_key(today))
    income = _total(cur, "income")
    expenses = _total(cur, "expense")
    net = income - expenses
    savings_rate = float(net / income * 100) if income > 0 else 0.0
    breakdown = category_breakdown(cur, month_key(today))
    return FinancialStats(
        total_income=income,
        total_expenses=expenses,
        net_income=net,
        monthly_growth=growth_rates(transactions, today).net,
        savings_rate=savings_rate,
        top_category=breakdown[0][0] if breakdown else None,
    )


# ---------------------------------------------------------------------------
# Bills
# ---------------------------------------------------------------------------


def days_until_due(due: date, today: date) -> int:
    """Whole days from ``today`` to ``due``; negative once past due."""

    return (due - today).days


def is_overdue(due: date, today: date) -> bool:
    return due < today


def overdue_bills(bills: Iterable[Bill], today: date) -> list[Bill]:
    return [b for b in bills if not b.is_paid and is_overdue(b.due_date, today)]


def upcoming_bills(bills: Iterable[Bill], today: date, limit: int = 5) -> list[Bill]:
    """Unpaid, not yet overdue bills, soonest first, at most ``limit``."""

    pending = [b for b in bills if not b.is_paid and not is_overdue(b.due_date, today)]
    pending.sort(key=lambda b: b.due_date)
    return pending[:limit]


def _plural(n: int, noun: str) -> str:
    return f"{n} {noun}{'s' if n > 1 else ''}"


def notification_for(
    transactions: Sequence[Transaction], bills: Sequence[Bill], today: date
) -> Notification:
    """The single most pressing alert.

    Checked in order: overdue bills (high), unpaid bills due within three days
    (medium), this month's expenses above twice the month's average expense
    (low). Otherwise a ``"none"`` notification.
    """

    overdue = overdue_bills(bills, today)
    if overdue:
        return Notification("bill", f"{_plural(len(overdue), 'overdue bill')}", len(overdue), "high")

    due_soon = [
        b for b in bills if not b.is_paid and 0 <= days_until_due(b.due_date, today) <= DUE_SOON_DAYS
    ]
    if due_soon:
        return Notification("bill", f"{_plural(len(due_soon), 'bill')} due soon", len(due_soon), "medium")

    expenses = [t for t in _in_month(transactions, month_key(today)) if t.type == "expense"]
    if expenses:
        avg = _total(expenses, "expense") / len(expenses)
        high = [t for t in expenses if t.amount > avg * HIGH_EXPENSE_FACTOR]
        if high:
            return Notification(
                "expense", f"{_plural(len(high), 'high expense')} this month", len(high), "low"
            )

    return Notification("none", "", 0, "low")


__all__ = [
    "DUE_SOON_DAYS",
    "month_key",
    "previous_month",
    "last_n_months",
    "monthly_totals",
    "category_breakdown",
    "growth_rates",
    "financial_stats",
    "days_until_due",
    "is_overdue",
    "overdue_bills",
    "upcoming_bills",
    "notification_for",
]
