"""Shared fixtures for fintrack_agents tests."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from itertools import count

import pytest

from fintrack_agents.reasoning import ReasoningOutcome
from fintrack_core.models import Category, PaymentMethod, Transaction

_ids = count(1)


class ManualClock:
    """A clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeReasoningClient:
    """Reasoning client returning a fixed outcome and counting calls."""

    def __init__(self, outcome: ReasoningOutcome):
        self.outcome = outcome
        self.calls = []

    def complete(self, instructions: str, prompt: str) -> ReasoningOutcome:
        self.calls.append((instructions, prompt))
        return self.outcome


class RaisingReasoningClient:
    """Reasoning client that blows up instead of returning an outcome."""

    def complete(self, instructions: str, prompt: str) -> ReasoningOutcome:
        raise RuntimeError("connection reset")


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
def clock() -> ManualClock:
    """Clock fixed at 2025-05-14 12:00 UTC."""
    return ManualClock(datetime(2025, 5, 14, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def categories() -> dict[int, Category]:
    return {
        1: Category(id=1, name="Food & Dining"),
        2: Category(id=2, name="Transport"),
        3: Category(id=3, name="Entertainment"),
    }


@pytest.fixture
def concentrated_spending(txn):
    """Food & Dining is 80% of a 100000 total, spread across May."""
    return [
        txn(40000, date(2025, 5, 2), category_id=1, payment_method=PaymentMethod.CARD),
        txn(40000, date(2025, 5, 6), category_id=1, payment_method=PaymentMethod.CARD),
        txn(5000, date(2025, 5, 3), category_id=2, payment_method=PaymentMethod.MOBILE_MONEY),
        txn(15000, date(2025, 5, 9), category_id=2, payment_method=PaymentMethod.CARD),
    ]


@pytest.fixture
def succeeding_client() -> FakeReasoningClient:
    return FakeReasoningClient(
        ReasoningOutcome.success(
            "Your spending is dominated by dining out.\n\n"
            "1. **Suggestion:** Cook at home three nights a week.\n"
            "2. Set a dining budget of Tsh 60,000.\n"
            "- Move card payments to a single account.\n"
            "* Review transport costs monthly.\n",
            tokens_used=120,
        )
    )


@pytest.fixture
def failing_client() -> FakeReasoningClient:
    return FakeReasoningClient(ReasoningOutcome.failure("Reasoning call timed out"))


@pytest.fixture
def raising_client() -> RaisingReasoningClient:
    return RaisingReasoningClient()


@pytest.fixture
def fake_client():
    """Factory for fake clients with a chosen outcome."""
    return FakeReasoningClient
