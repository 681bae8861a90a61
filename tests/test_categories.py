from __future__ import annotations

import pytest
from finflow.categories import (
    DEFAULT_CATEGORIES,
    category_name,
    get_categories_by_type,
    get_category_by_id,
    validate_category_id,
)


def test_table_shape():
    assert len(DEFAULT_CATEGORIES) == 15
    assert len({c.id for c in DEFAULT_CATEGORIES}) == 15
    assert [len(get_categories_by_type(k)) for k in ("income", "expense", "bill")] == [4, 7, 4]


def test_lookup_and_display_name():
    food = get_category_by_id("food")
    assert food is not None and food.name == "Food & Dining"
    assert get_category_by_id("groceries") is None
    assert category_name("rent") == "Rent/Mortgage"
    assert category_name("groceries") == "Other"


def test_validate_category_id():
    assert validate_category_id("salary", kind="income") == "salary"
    # Expenses may be filed under bill categories.
    assert validate_category_id("utilities", kind="expense") == "utilities"
    with pytest.raises(ValueError, match="Unknown category"):
        validate_category_id("groceries")
    with pytest.raises(ValueError):
        validate_category_id("salary", kind="expense")
