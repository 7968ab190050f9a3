"""Month-over-month spending comparison."""

from typing import Iterable, Optional

import structlog

from .aggregator import aggregate
from .models import (
    CategoryComparison,
    CategoryIndex,
    ComparisonResult,
    GroupBy,
    Transaction,
    TrendDirection,
)
from .numeric import HUNDRED, ZERO, round_money
from .timeframes import parse_period_key

logger = structlog.get_logger()


def _change_percentage(before, after):
    if before <= 0:
        return ZERO
    return round_money((after - before) / before * HUNDRED)


def compare_periods(
    transactions: Iterable[Transaction],
    period1: str,
    period2: str,
    categories: Optional[CategoryIndex] = None,
) -> ComparisonResult:
    """
    Compare spending between two months.

    Args:
        transactions: Transactions covering at least both months.
        period1: Earlier month, YYYY-MM.
        period2: Later month, YYYY-MM.
        categories: Optional category index used for labels.

    Returns:
        ComparisonResult with totals, absolute and percentage change, and a
        per-category comparison for categories present in both months.

    Raises:
        InvalidParameterError: If a period is not a valid YYYY-MM month.
    """
    range1 = parse_period_key(period1, field="period1")
    range2 = parse_period_key(period2, field="period2")

    items = list(transactions)
    first = aggregate(
        [t for t in items if range1.start <= t.occurred_on <= range1.end],
        group_by=GroupBy.CATEGORY,
        categories=categories,
    )
    second = aggregate(
        [t for t in items if range2.start <= t.occurred_on <= range2.end],
        group_by=GroupBy.CATEGORY,
        categories=categories,
    )

    change = second.total - first.total
    if change > 0:
        trend = TrendDirection.INCREASING
    elif change < 0:
        trend = TrendDirection.DECREASING
    else:
        trend = TrendDirection.STABLE

    later = second.category_map
    category_comparison = []
    for agg in first.categories:
        match = later.get(agg.category_id)
        if match is None:
            continue
        category_comparison.append(
            CategoryComparison(
                category_id=agg.category_id,
                category_name=agg.category_name,
                period1_amount=agg.total,
                period2_amount=match.total,
                change=match.total - agg.total,
                change_percentage=_change_percentage(agg.total, match.total),
            )
        )

    logger.info("periods_compared", period1=period1, period2=period2, trend=trend.value)
    return ComparisonResult(
        period1=period1,
        period2=period2,
        period1_total=first.total,
        period2_total=second.total,
        absolute_change=change,
        percentage_change=_change_percentage(first.total, second.total),
        trend=trend,
        category_comparison=category_comparison,
    )
