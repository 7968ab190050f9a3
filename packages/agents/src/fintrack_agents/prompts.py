"""Prompt text for narrated spending insights."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from fintrack_core.models import AggregationResult, CategoryAggregate, PaymentMethod

INSIGHT_INSTRUCTIONS = (
    "You are an expert financial advisor. Analyze the provided spending data and "
    "provide specific, actionable insights and recommendations. Focus on categories "
    "with high spending, trends, and practical advice for financial improvement. "
    "Provide 3-5 specific suggestions that address the user's actual spending patterns."
)


@dataclass(frozen=True)
class InsightContext:
    """Aggregated view of a transaction window handed to the narrator."""

    aggregation: AggregationResult
    top_categories: list[CategoryAggregate]
    payment_methods: dict[PaymentMethod, int]
    daily_totals: list[Decimal]
    average_daily: Decimal
    concentration_threshold: float = 40.0
    cash_usage_threshold: float = 70.0
    category_filter: list[int] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return self.aggregation.total

    @property
    def count(self) -> int:
        return self.aggregation.count

    @property
    def dominant_category(self) -> Optional[CategoryAggregate]:
        return self.top_categories[0] if self.top_categories else None

    @property
    def concentrated_categories(self) -> list[CategoryAggregate]:
        """Categories whose share of spending is above the concentration threshold."""
        return [
            agg
            for agg in self.aggregation.categories
            if float(agg.percentage_of_whole) > self.concentration_threshold
        ]

    def payment_share(self, method: PaymentMethod) -> float:
        if not self.count:
            return 0.0
        return round(self.payment_methods.get(method, 0) / self.count * 100, 1)

    @property
    def cash_heavy(self) -> bool:
        return self.payment_share(PaymentMethod.CASH) > self.cash_usage_threshold


def build_insight_prompt(context: InsightContext, currency: str = "Tsh") -> str:
    """Build the user prompt describing one transaction window."""
    lines = [
        "You are analyzing personal expense data for a financial planning app. "
        "Provide specific, actionable financial advice based on this real spending data:",
        "",
        "SPENDING OVERVIEW:",
        f"• Total spent: {currency} {context.total:,.2f}",
        f"• Number of transactions: {context.count}",
        f"• Average daily spending: {currency} {context.average_daily:,.2f}",
        "",
        "TOP SPENDING CATEGORIES:",
    ]
    for agg in context.top_categories:
        lines.append(
            f"• {agg.category_name}: {currency} {agg.total:,.2f} "
            f"({agg.percentage_of_whole}% of total spending)"
        )

    lines += ["", "PAYMENT METHODS:"]
    for method, count in context.payment_methods.items():
        lines.append(
            f"• {method.value}: {count} transactions ({context.payment_share(method)}%)"
        )

    lines += ["", "SPENDING PATTERNS:"]
    dominant = context.dominant_category
    if dominant is not None and float(dominant.percentage_of_whole) > context.concentration_threshold:
        lines.append(
            f"• WARNING: {dominant.category_name} represents {dominant.percentage_of_whole}% "
            "of total spending - this is quite high and may need attention."
        )
    if context.cash_heavy:
        lines.append(
            "• HIGH CASH USAGE: You're using cash for most transactions, "
            "which makes tracking difficult."
        )

    lines += [
        "",
        "FINANCIAL ADVICE REQUESTED:",
        "Based on this specific spending data, provide:",
        "1. 2-3 key insights about their current spending patterns",
        "2. 3-5 specific, actionable recommendations for improving their financial situation",
        "3. Identify the most important category to focus on for immediate improvement",
        "4. Suggest realistic budget adjustments based on their actual spending",
        "5. Provide encouragement and positive reinforcement where appropriate",
        "",
        "Make recommendations specific to their data (mention actual categories and amounts). "
        "Focus on practical, achievable changes rather than generic advice.",
    ]
    return "\n".join(lines)
