"""Public interface for the ``finflow`` package.

This module exposes the message parser, the category table and the public
models as the stable import surface. There is no runtime logic here, only
symbol re-exports.
"""

from .categories import DEFAULT_CATEGORIES, category_name, get_categories_by_type, get_category_by_id
from .models import (
    Bill,
    BillIn,
    Category,
    FinancialStats,
    Notification,
    ParsedMessage,
    RawMessage,
    Transaction,
    TransactionCandidate,
    TransactionIn,
)
from .sms_parser import is_financially_relevant, parse_sms_transaction

__all__ = [
    # Parser
    "parse_sms_transaction",
    "is_financially_relevant",
    # Categories
    "DEFAULT_CATEGORIES",
    "get_category_by_id",
    "get_categories_by_type",
    "category_name",
    # Models
    "RawMessage",
    "TransactionCandidate",
    "ParsedMessage",
    "Transaction",
    "TransactionIn",
    "Bill",
    "BillIn",
    "Category",
    "FinancialStats",
    "Notification",
]
