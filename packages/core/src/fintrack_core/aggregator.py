"""Time-bucket and category aggregation over transaction sets.

Every function here is pure: it reads the supplied transactions and returns
fresh result objects. Empty input always produces an empty result.
"""

from collections import Counter, defaultdict
from decimal import Decimal
from typing import Iterable, Optional

from .models import (
    AggregationResult,
    Bucket,
    CategoryAggregate,
    CategoryIndex,
    GroupBy,
    PaymentMethod,
    TimeSeriesPoint,
    Transaction,
    category_label,
)
from .numeric import ZERO, percentage, round_money


def bucket_key(transaction: Transaction, bucket: Bucket) -> str:
    """Period key for a transaction: YYYY-MM-DD for days, YYYY-MM for months."""
    if bucket == Bucket.DAY:
        return transaction.occurred_on.isoformat()
    return transaction.period_month


def _category_sort_key(category_id: Optional[int]) -> tuple[bool, int]:
    # Uncategorized sorts after every real category
    return (category_id is None, category_id or 0)


def build_series(
    transactions: Iterable[Transaction],
    bucket: Bucket = Bucket.MONTH,
) -> list[TimeSeriesPoint]:
    """Chronologically ordered totals per time bucket."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    counts: Counter[str] = Counter()
    for txn in transactions:
        key = bucket_key(txn, bucket)
        totals[key] += txn.amount
        counts[key] += 1

    return [
        TimeSeriesPoint(period_key=key, total=totals[key], count=counts[key])
        for key in sorted(totals)
    ]


def aggregate(
    transactions: Iterable[Transaction],
    bucket: Bucket = Bucket.MONTH,
    group_by: GroupBy = GroupBy.CATEGORY,
    categories: Optional[CategoryIndex] = None,
) -> AggregationResult:
    """Group transactions by time bucket and, optionally, by category.

    Args:
        transactions: Transactions to aggregate. May be empty.
        bucket: Time unit for the series.
        group_by: ``category`` to also build per-category aggregates.
        categories: Optional category index used for labels.

    Returns:
        AggregationResult with a chronological series, per-category
        aggregates ordered by category id, and the grand total and count.
    """
    items = list(transactions)
    bucket = Bucket(bucket)
    group_by = GroupBy(group_by)

    series = build_series(items, bucket)
    grand_total = sum((txn.amount for txn in items), ZERO)

    category_aggregates: list[CategoryAggregate] = []
    if group_by == GroupBy.CATEGORY:
        by_category: dict[Optional[int], list[Decimal]] = defaultdict(list)
        for txn in items:
            by_category[txn.category_id].append(txn.amount)

        for category_id in sorted(by_category, key=_category_sort_key):
            amounts = by_category[category_id]
            total = sum(amounts, ZERO)
            category_aggregates.append(
                CategoryAggregate(
                    category_id=category_id,
                    category_name=category_label(category_id, categories),
                    total=total,
                    count=len(amounts),
                    average=round_money(total / len(amounts)),
                    percentage_of_whole=percentage(total, grand_total),
                )
            )

    return AggregationResult(
        bucket=bucket,
        series=series,
        categories=category_aggregates,
        total=grand_total,
        count=len(items),
    )


def daily_series(transactions: Iterable[Transaction]) -> list[Decimal]:
    """Daily spending totals in chronological order."""
    return [point.total for point in build_series(transactions, Bucket.DAY)]


def monthly_series_by_category(
    transactions: Iterable[Transaction],
) -> dict[Optional[int], list[TimeSeriesPoint]]:
    """Monthly totals for each category, ordered chronologically.

    Months without spending in a category are absent rather than zero.
    """
    grouped: dict[Optional[int], list[Transaction]] = defaultdict(list)
    for txn in transactions:
        grouped[txn.category_id].append(txn)

    return {
        category_id: build_series(grouped[category_id], Bucket.MONTH)
        for category_id in sorted(grouped, key=_category_sort_key)
    }


def payment_method_distribution(
    transactions: Iterable[Transaction],
) -> dict[PaymentMethod, int]:
    """Number of transactions per payment method, most used first."""
    counts = Counter(txn.payment_method for txn in transactions)
    return dict(sorted(counts.items(), key=lambda item: (-item[1], item[0].value)))


def top_categories(result: AggregationResult, limit: int = 3) -> list[CategoryAggregate]:
    """Largest categories by total, ties broken by category id."""
    ranked = sorted(
        result.categories,
        key=lambda agg: (-agg.total, _category_sort_key(agg.category_id)),
    )
    return ranked[:limit]
