"""Shared fixtures for fintrack_core tests."""

from datetime import date, timedelta
from decimal import Decimal
from itertools import count

import pytest

from fintrack_core.models import Category, PaymentMethod, Transaction

_ids = count(1)


def make_transaction(
    amount,
    occurred_on: date,
    category_id=1,
    payment_method: PaymentMethod = PaymentMethod.CASH,
    title=None,
    id=None,
) -> Transaction:
    return Transaction(
        id=id if id is not None else next(_ids),
        category_id=category_id,
        amount=Decimal(str(amount)),
        occurred_on=occurred_on,
        payment_method=payment_method,
        title=title,
    )


@pytest.fixture
def txn():
    """Factory for transactions with sequential ids."""
    return make_transaction


@pytest.fixture
def categories() -> dict[int, Category]:
    """A small category index keyed by id."""
    return {
        1: Category(id=1, name="Food & Dining"),
        2: Category(id=2, name="Transport"),
        3: Category(id=3, name="Entertainment"),
    }


@pytest.fixture
def monthly_subscription() -> list[Transaction]:
    """Ten 25000 payments exactly 30 days apart in one category."""
    start = date(2025, 1, 5)
    return [
        make_transaction(25000, start + timedelta(days=30 * i), category_id=3, id=f"sub-{i}")
        for i in range(10)
    ]
