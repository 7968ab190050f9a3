"""Recurring payment and subscription detection.

Transactions are grouped by amount rounded to a configurable unit. A group
of three or more whose dates are evenly spaced (mean absolute deviation of
the day gaps within tolerance) is a recurring pattern. Patterns repeating
roughly monthly are reported as probable subscriptions.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Optional

import structlog

from .exceptions import InvalidParameterError
from .models import (
    CategoryIndex,
    PatternConfidence,
    RecurrencePattern,
    RecurrenceReport,
    Subscription,
    Transaction,
    category_label,
)
from .numeric import ZERO, round_money, round_to_unit

logger = structlog.get_logger()

DEFAULT_GRANULARITY = 1000
MIN_OCCURRENCES = 3
MAX_DEVIATION_DAYS = 5.0
HIGH_CONFIDENCE_DEVIATION_DAYS = 2.0
SUBSCRIPTION_INTERVAL_DAYS = (25, 35)
DAYS_PER_MONTH = Decimal("30")
MONTHS_PER_YEAR = 12


class RecurrenceDetector:
    """Find regularly repeating expenses of similar amount."""

    def __init__(
        self,
        granularity: int = DEFAULT_GRANULARITY,
        max_deviation_days: float = MAX_DEVIATION_DAYS,
        high_confidence_days: float = HIGH_CONFIDENCE_DEVIATION_DAYS,
        currency: str = "Tsh",
    ):
        if granularity <= 0:
            raise InvalidParameterError(
                "Amount granularity must be a positive whole number.",
                field="granularity",
                value=granularity,
            )
        self.granularity = granularity
        self.max_deviation_days = max_deviation_days
        self.high_confidence_days = high_confidence_days
        self.currency = currency

    def _group_by_amount(
        self,
        transactions: Iterable[Transaction],
    ) -> dict[Decimal, list[Transaction]]:
        groups: dict[Decimal, list[Transaction]] = defaultdict(list)
        for txn in transactions:
            groups[round_to_unit(txn.amount, self.granularity)].append(txn)
        return groups

    def find_recurring(
        self,
        transactions: Iterable[Transaction],
        categories: Optional[CategoryIndex] = None,
    ) -> list[RecurrencePattern]:
        """
        Detect recurring expense patterns.

        Args:
            transactions: Transactions to scan. May be empty.
            categories: Optional category index used for labels.

        Returns:
            Patterns ordered by amount bucket. Groups with fewer than three
            transactions never produce a pattern.
        """
        groups = self._group_by_amount(transactions)
        patterns: list[RecurrencePattern] = []

        for amount_bucket in sorted(groups):
            group = groups[amount_bucket]
            if len(group) < MIN_OCCURRENCES:
                continue

            ordered = sorted(group, key=lambda txn: (txn.occurred_on, str(txn.id)))
            gaps = [
                (later.occurred_on - earlier.occurred_on).days
                for earlier, later in zip(ordered, ordered[1:])
            ]
            mean_gap = sum(gaps) / len(gaps)
            deviation = sum(abs(gap - mean_gap) for gap in gaps) / len(gaps)
            interval_days = int(round(mean_gap))

            if deviation > self.max_deviation_days or interval_days <= 0:
                continue

            patterns.append(
                RecurrencePattern(
                    amount_bucket=amount_bucket,
                    interval_days=interval_days,
                    monthly_amount=round_money(
                        amount_bucket * DAYS_PER_MONTH / Decimal(interval_days)
                    ),
                    occurrence_count=len(group),
                    category_label=category_label(ordered[0].category_id, categories),
                    confidence=(
                        PatternConfidence.HIGH
                        if deviation <= self.high_confidence_days
                        else PatternConfidence.MEDIUM
                    ),
                    interval_deviation_days=round(deviation, 2),
                )
            )

        logger.info("recurring_patterns_found", count=len(patterns))
        return patterns

    def subscriptions_from(self, patterns: Iterable[RecurrencePattern]) -> list[Subscription]:
        """Keep the monthly patterns and annotate them as subscriptions."""
        low, high = SUBSCRIPTION_INTERVAL_DAYS
        subscriptions = []
        for pattern in patterns:
            if not low <= pattern.interval_days <= high:
                continue
            subscriptions.append(
                Subscription(
                    amount=pattern.amount_bucket,
                    category_label=pattern.category_label,
                    interval_days=pattern.interval_days,
                    confidence=pattern.confidence,
                    annual_cost=pattern.amount_bucket * MONTHS_PER_YEAR,
                    suggestion=(
                        "This appears to be a monthly subscription costing "
                        f"{self.currency} {pattern.amount_bucket:,.0f}. "
                        "Consider if you still need this service."
                    ),
                )
            )
        return subscriptions

    def find_subscriptions(
        self,
        transactions: Iterable[Transaction],
        categories: Optional[CategoryIndex] = None,
    ) -> list[Subscription]:
        return self.subscriptions_from(self.find_recurring(transactions, categories))

    def analyze(
        self,
        transactions: Iterable[Transaction],
        categories: Optional[CategoryIndex] = None,
    ) -> RecurrenceReport:
        """Recurring patterns, probable subscriptions and their monthly total."""
        patterns = self.find_recurring(transactions, categories)
        return RecurrenceReport(
            recurring_patterns=patterns,
            subscriptions=self.subscriptions_from(patterns),
            monthly_recurring_total=sum((p.monthly_amount for p in patterns), ZERO),
        )
