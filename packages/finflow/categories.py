"""Fixed category table and lookup helpers.

The category vocabulary is closed: every transaction and bill refers to one of
the ids below. The table is built once at import time and exposed as an
immutable tuple plus a read-only id index; nothing mutates it afterwards.
"""

from __future__ import annotations

from types import MappingProxyType

from .models import Category, CategoryKind

DEFAULT_CATEGORIES: tuple[Category, ...] = (
    # Income
    Category("salary", "Salary", "income", "bg-emerald-500", "Briefcase"),
    Category("freelance", "Freelance", "income", "bg-blue-500", "Laptop"),
    Category("investments", "Investments", "income", "bg-purple-500", "TrendingUp"),
    Category("other-income", "Other", "income", "bg-gray-500", "Plus"),
    # Expense
    Category("food", "Food & Dining", "expense", "bg-orange-500", "UtensilsCrossed"),
    Category("transportation", "Transportation", "expense", "bg-red-500", "Car"),
    Category("shopping", "Shopping", "expense", "bg-pink-500", "ShoppingBag"),
    Category("entertainment", "Entertainment", "expense", "bg-indigo-500", "Film"),
    Category("healthcare", "Healthcare", "expense", "bg-green-500", "Heart"),
    Category("education", "Education", "expense", "bg-amber-500", "GraduationCap"),
    Category("other-expense", "Other", "expense", "bg-gray-500", "Minus"),
    # Bills
    Category("utilities", "Utilities", "bill", "bg-yellow-500", "Zap"),
    Category("rent", "Rent/Mortgage", "bill", "bg-teal-500", "Home"),
    Category("insurance", "Insurance", "bill", "bg-cyan-500", "Shield"),
    Category("subscriptions", "Subscriptions", "bill", "bg-violet-500", "Repeat"),
)

CATEGORIES_BY_ID: MappingProxyType[str, Category] = MappingProxyType(
    {c.id: c for c in DEFAULT_CATEGORIES}
)


def get_category_by_id(category_id: str) -> Category | None:
    return CATEGORIES_BY_ID.get(category_id)


def get_categories_by_type(kind: CategoryKind) -> list[Category]:
    """Return categories of ``kind`` in table order."""

    return [c for c in DEFAULT_CATEGORIES if c.type == kind]


def category_name(category_id: str) -> str:
    """Display name for ``category_id``; unknown ids render as ``"Other"``."""

    cat = CATEGORIES_BY_ID.get(category_id)
    return cat.name if cat is not None else "Other"


def validate_category_id(category_id: str, *, kind: CategoryKind | None = None) -> str:
    """Return ``category_id`` unchanged or raise ``ValueError``.

    When ``kind`` is given the category must be of that type. Expense
    transactions may also use bill categories (e.g., a utility payment parsed
    from a message is stored as ``utilities``).
    """

    cat = CATEGORIES_BY_ID.get(category_id)
    if cat is None:
        raise ValueError(f"Unknown category id: {category_id!r}")
    if kind is None:
        return category_id
    allowed: set[str] = {kind}
    if kind == "expense":
        allowed.add("bill")
    if cat.type not in allowed:
        raise ValueError(f"Category {category_id!r} is a {cat.type} category, not {kind}")
    return category_id


__all__ = [
    "DEFAULT_CATEGORIES",
    "CATEGORIES_BY_ID",
    "get_category_by_id",
    "get_categories_by_type",
    "category_name",
    "validate_category_id",
]
