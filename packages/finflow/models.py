"""Data models and type aliases for ``finflow``.

Two families live here:

- frozen ``dataclass`` records used inside the process (raw messages, the
  extraction rule triple, transaction candidates, stored transactions/bills,
  analytics results);
- Pydantic DTOs that validate data crossing the process boundary (CLI input,
  message-backup JSON, the export/import backup envelope).

Optional values are ``None``; empty strings are never used as "absent".
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

type TransactionKind = Literal["income", "expense"]
type CategoryKind = Literal["income", "expense", "bill"]
type TransactionSource = Literal["manual", "sms"]
type BillFrequency = Literal["monthly", "quarterly", "yearly"]

_CENTS = Decimal("0.01")


def quantize_amount(value: Decimal) -> Decimal:
    """Round to two decimal places (half-up), the precision used downstream."""

    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# SMS pipeline records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RawMessage:
    """A single received message as handed to the parser.

    ``timestamp`` is an ISO-8601 string; the parser itself never reads it.
    """

    id: str
    content: str
    sender: str
    timestamp: str


@dataclass(frozen=True, slots=True)
class ExtractionRule:
    """A (pattern, transaction kind, capture-group index) triple.

    Rules are evaluated in declaration order and the first one whose pattern
    matches with a positive amount decides the kind.
    """

    pattern: re.Pattern[str]
    kind: TransactionKind
    amount_group: int = 1


@dataclass(frozen=True, slots=True)
class TransactionCandidate:
    """An extracted, unsaved transaction pending user review.

    Has no id, date or creation timestamp; those are assigned when the
    candidate is confirmed and stored.
    """

    type: TransactionKind
    amount: Decimal
    description: str
    category: str
    merchant: str | None = None
    account: str | None = None
    source: Literal["sms"] = "sms"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "amount": float(quantize_amount(self.amount)),
            "description": self.description,
            "category": self.category,
            "merchant": self.merchant,
            "account": self.account,
            "source": self.source,
        }

    def to_transaction(self, *, on: date | None = None) -> TransactionIn:
        """Promote to a storable transaction dated ``on`` (default: today)."""

        return TransactionIn(
            type=self.type,
            amount=quantize_amount(self.amount),
            category=self.category,
            description=self.description,
            date=on or date.today(),
            source="sms",
            merchant=self.merchant,
            account=self.account,
        )


@dataclass(frozen=True, slots=True)
class ParsedMessage:
    """A message paired with its parse outcome (``None`` when no transaction)."""

    message: RawMessage
    candidate: TransactionCandidate | None


# ---------------------------------------------------------------------------
# Stored records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Transaction:
    id: str
    type: TransactionKind
    amount: Decimal
    category: str
    description: str
    date: date
    created_at: datetime
    source: TransactionSource = "manual"
    merchant: str | None = None
    account: str | None = None


@dataclass(frozen=True, slots=True)
class Bill:
    id: str
    name: str
    amount: Decimal
    due_date: date
    category: str
    is_paid: bool
    is_recurring: bool
    created_at: datetime
    frequency: BillFrequency | None = None


@dataclass(frozen=True, slots=True)
class Category:
    id: str
    name: str
    type: CategoryKind
    color: str
    icon: str


# ---------------------------------------------------------------------------
# Analytics results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FinancialStats:
    """Current-month summary.

    ``monthly_growth`` and ``savings_rate`` are percentages.
    ``top_category`` is a category display name, or ``None`` without expenses.
    """

    total_income: Decimal
    total_expenses: Decimal
    net_income: Decimal
    monthly_growth: float
    savings_rate: float
    top_category: str | None


@dataclass(frozen=True, slots=True)
class MonthlyTotals:
    month: str
    income: Decimal
    expenses: Decimal

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses


@dataclass(frozen=True, slots=True)
class GrowthRates:
    income: float
    expenses: float
    net: float


@dataclass(frozen=True, slots=True)
class Notification:
    type: Literal["bill", "expense", "none"]
    message: str
    count: int
    priority: Literal["high", "medium", "low"]


# ---------------------------------------------------------------------------
# Boundary DTOs (Pydantic)
# ---------------------------------------------------------------------------


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        return None
    return v


class TransactionIn(BaseModel):
    """A transaction to be stored (no id/created_at yet).

    Field aliases follow the camelCase keys of the JSON backup format.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, str_strip_whitespace=True)

    type: TransactionKind
    amount: Decimal = Field(gt=0)
    category: str = Field(min_length=1)
    description: str = Field(min_length=1)
    date: date
    source: TransactionSource = "manual"
    merchant: str | None = None
    account: str | None = None

    @field_validator("merchant", "account", mode="before")
    @classmethod
    def _optional_text(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("amount")
    @classmethod
    def _two_decimals(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("amount must be a finite number")
        return quantize_amount(v)

    @field_serializer("amount")
    def _amount_as_number(self, v: Decimal) -> float:
        return float(v)


class StoredTransaction(TransactionIn):
    id: str = Field(min_length=1)
    created_at: datetime = Field(alias="createdAt")


class BillIn(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(min_length=1)
    amount: Decimal = Field(gt=0)
    due_date: date = Field(alias="dueDate")
    category: str = Field(min_length=1)
    is_paid: bool = Field(default=False, alias="isPaid")
    is_recurring: bool = Field(default=False, alias="isRecurring")
    frequency: BillFrequency | None = None

    @field_validator("frequency", mode="before")
    @classmethod
    def _optional_frequency(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("amount")
    @classmethod
    def _two_decimals(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("amount must be a finite number")
        return quantize_amount(v)

    @field_serializer("amount")
    def _amount_as_number(self, v: Decimal) -> float:
        return float(v)


class StoredBill(BillIn):
    id: str = Field(min_length=1)
    created_at: datetime = Field(alias="createdAt")


class MessageIn(BaseModel):
    """One entry of a JSON message backup."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str | None = None
    content: str
    sender: str = "Unknown"
    timestamp: str | None = None


class BackupFile(BaseModel):
    """Top-level schema of the export/import JSON backup."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    transactions: list[StoredTransaction] = Field(default_factory=list)
    bills: list[StoredBill] = Field(default_factory=list)
    settings: dict[str, Any] = Field(default_factory=dict)
    export_date: datetime | None = Field(default=None, alias="exportDate")
    version: str = "1.0"


__all__ = [
    "TransactionKind",
    "CategoryKind",
    "TransactionSource",
    "BillFrequency",
    "quantize_amount",
    "RawMessage",
    "ExtractionRule",
    "TransactionCandidate",
    "ParsedMessage",
    "Transaction",
    "Bill",
    "Category",
    "FinancialStats",
    "MonthlyTotals",
    "GrowthRates",
    "Notification",
    "TransactionIn",
    "StoredTransaction",
    "BillIn",
    "StoredBill",
    "MessageIn",
    "BackupFile",
]
