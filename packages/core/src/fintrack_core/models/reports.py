"""Report models for the comparison, savings, budgeting and categorization
helpers."""

from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field

from .analytics import PatternConfidence, TrendDirection


class CategoryComparison(BaseModel):
    model_config = {"frozen": True}

    category_id: Optional[int] = None
    category_name: str
    period1_amount: Decimal
    period2_amount: Decimal
    change: Decimal
    change_percentage: Decimal


class ComparisonResult(BaseModel):
    """Spending in one month compared against another."""

    model_config = {"frozen": True}

    period1: str
    period2: str
    period1_total: Decimal
    period2_total: Decimal
    absolute_change: Decimal
    percentage_change: Decimal
    trend: TrendDirection
    category_comparison: list[CategoryComparison] = Field(default_factory=list)


class SavingsOpportunityType(str, Enum):
    HIGH_SPENDING_CATEGORY = "high_spending_category"
    FREQUENT_SMALL_EXPENSES = "frequent_small_expenses"
    SUBSCRIPTION_OPTIMIZATION = "subscription_optimization"


class SavingsOpportunity(BaseModel):
    model_config = {"frozen": True}

    type: SavingsOpportunityType
    description: str
    current_amount: Decimal = Field(ge=0)
    potential_savings: Decimal = Field(ge=0)
    suggestion: str
    confidence: PatternConfidence
    category_name: Optional[str] = None
    occurrence_count: Optional[int] = None


class SavingsReport(BaseModel):
    model_config = {"frozen": True}

    opportunities: list[SavingsOpportunity] = Field(default_factory=list)
    total_potential_savings: Decimal = Decimal("0")
    categories_analyzed: int = 0
    insufficient_data: bool = False
    message: Optional[str] = None
    analysis_period: Optional[str] = Field(
        default=None,
        description="Window the transactions were drawn from, e.g. \"6 months\"",
    )


class BudgetSuggestion(BaseModel):
    """Suggested monthly budget for one category."""

    model_config = {"frozen": True}

    category_id: Optional[int] = None
    suggested_amount: Decimal = Field(ge=0)
    confidence: PatternConfidence
    months_of_data: int = Field(ge=0)
    reasoning: str


class CategorySuggestion(BaseModel):
    """A proposed category for an uncategorized transaction."""

    model_config = {"frozen": True}

    transaction_id: Union[int, str]
    category_id: int
    category_name: str
    confidence: int = Field(ge=0)
    reasoning: str
