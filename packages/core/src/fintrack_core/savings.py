"""Savings opportunity analysis.

Three kinds of opportunity are reported:

1. High-spending categories, where trimming 15% would be meaningful.
2. Many small discretionary purchases that add up.
3. Probable subscriptions worth reviewing.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Optional

import structlog

from .models import (
    CategoryIndex,
    PatternConfidence,
    SavingsOpportunity,
    SavingsOpportunityType,
    SavingsReport,
    Transaction,
    category_label,
)
from .numeric import ZERO, round_money
from .recurrence import RecurrenceDetector

logger = structlog.get_logger()

NEED_MORE_DATA_MESSAGE = "Need more expense data to identify savings opportunities"


class SavingsAnalyzer:
    """Identify categories and habits where spending could be reduced."""

    def __init__(
        self,
        high_spending_threshold: Decimal = Decimal("100000"),
        reduction_rate: Decimal = Decimal("0.15"),
        small_expense_range: tuple[Decimal, Decimal] = (Decimal("1000"), Decimal("10000")),
        small_expense_count: int = 20,
        saving_per_small_expense: Decimal = Decimal("2000"),
        recurrence_detector: Optional[RecurrenceDetector] = None,
        currency: str = "Tsh",
    ):
        self.high_spending_threshold = high_spending_threshold
        self.reduction_rate = reduction_rate
        self.small_expense_range = small_expense_range
        self.small_expense_count = small_expense_count
        self.saving_per_small_expense = saving_per_small_expense
        self.recurrence_detector = recurrence_detector or RecurrenceDetector(currency=currency)
        self.currency = currency

    def _high_spending(
        self,
        transactions: list[Transaction],
        categories: Optional[CategoryIndex],
    ) -> list[SavingsOpportunity]:
        totals: dict[Optional[int], Decimal] = defaultdict(lambda: ZERO)
        for txn in transactions:
            totals[txn.category_id] += txn.amount

        opportunities = []
        for category_id in sorted(totals, key=lambda c: (c is None, c or 0)):
            total = totals[category_id]
            if total <= self.high_spending_threshold:
                continue
            name = category_label(category_id, categories)
            savings = round_money(total * self.reduction_rate)
            rate = int(self.reduction_rate * 100)
            opportunities.append(
                SavingsOpportunity(
                    type=SavingsOpportunityType.HIGH_SPENDING_CATEGORY,
                    description=f"High spending in {name}",
                    category_name=name,
                    current_amount=total,
                    potential_savings=savings,
                    suggestion=(
                        f"Consider reducing {name} expenses by {rate}% "
                        f"to save {self.currency} {savings:,.0f} monthly"
                    ),
                    confidence=PatternConfidence.HIGH,
                )
            )
        return opportunities

    def _small_expenses(self, transactions: list[Transaction]) -> list[SavingsOpportunity]:
        low, high = self.small_expense_range
        small = [t for t in transactions if low < t.amount < high]
        if len(small) <= self.small_expense_count:
            return []

        savings = self.saving_per_small_expense * len(small)
        return [
            SavingsOpportunity(
                type=SavingsOpportunityType.FREQUENT_SMALL_EXPENSES,
                description="Many small frequent expenses detected",
                current_amount=sum((t.amount for t in small), ZERO),
                occurrence_count=len(small),
                potential_savings=savings,
                suggestion=(
                    f"You have {len(small)} small expenses. Consider cutting back "
                    f"to save {self.currency} {savings:,.0f} monthly"
                ),
                confidence=PatternConfidence.MEDIUM,
            )
        ]

    def _subscriptions(
        self,
        transactions: list[Transaction],
        categories: Optional[CategoryIndex],
    ) -> list[SavingsOpportunity]:
        return [
            SavingsOpportunity(
                type=SavingsOpportunityType.SUBSCRIPTION_OPTIMIZATION,
                description=f"{sub.name} - {sub.category_label}",
                category_name=sub.category_label,
                current_amount=sub.amount,
                potential_savings=sub.amount,
                suggestion=sub.suggestion,
                confidence=sub.confidence,
            )
            for sub in self.recurrence_detector.find_subscriptions(transactions, categories)
        ]

    def analyze(
        self,
        transactions: Iterable[Transaction],
        categories: Optional[CategoryIndex] = None,
        analysis_period: Optional[str] = None,
    ) -> SavingsReport:
        """
        Find savings opportunities in a window of transactions.

        The high-spending check compares each category's total over the
        whole window with the threshold, so callers should pass a window of
        known length and describe it in ``analysis_period``.
        """
        items = list(transactions)
        if not items:
            return SavingsReport(
                insufficient_data=True,
                message=NEED_MORE_DATA_MESSAGE,
                analysis_period=analysis_period,
            )

        opportunities = (
            self._high_spending(items, categories)
            + self._small_expenses(items)
            + self._subscriptions(items, categories)
        )
        total = sum((o.potential_savings for o in opportunities), ZERO)

        logger.info(
            "savings_opportunities_found",
            count=len(opportunities),
            total_potential_savings=str(total),
        )
        return SavingsReport(
            opportunities=opportunities,
            total_potential_savings=total,
            categories_analyzed=len({t.category_id for t in items}),
            analysis_period=analysis_period,
        )
