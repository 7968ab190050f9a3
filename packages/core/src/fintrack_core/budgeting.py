"""Budget suggestions from monthly category history."""

from decimal import Decimal
from typing import Mapping, Optional, Sequence

from .models import BudgetSuggestion, PatternConfidence, TimeSeriesPoint
from .numeric import ZERO, round_money, to_decimal

DEFAULT_BUFFER = Decimal("0.10")
HIGH_CONFIDENCE_MONTHS = 3


def suggest_budgets(
    category_series: Mapping[Optional[int], Sequence[TimeSeriesPoint]],
    buffer: Decimal = DEFAULT_BUFFER,
) -> list[BudgetSuggestion]:
    """
    Suggest a monthly budget per category: average monthly spend plus a buffer.

    Args:
        category_series: Monthly totals per category id.
        buffer: Fractional headroom added to the average (0.10 = 10%).

    Returns:
        One suggestion per category that has any history.
    """
    headroom = Decimal("1") + to_decimal(buffer)
    suggestions = []
    for category_id, points in category_series.items():
        if not points:
            continue
        months = len(points)
        average = sum((p.total for p in points), ZERO) / months
        suggestions.append(
            BudgetSuggestion(
                category_id=category_id,
                suggested_amount=round_money(average * headroom),
                confidence=(
                    PatternConfidence.HIGH
                    if months >= HIGH_CONFIDENCE_MONTHS
                    else PatternConfidence.MEDIUM
                ),
                months_of_data=months,
                reasoning=f"Based on {months} months of spending data",
            )
        )
    return suggestions
