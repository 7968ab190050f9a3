"""Data models for fintrack-core.

This package provides:
- Input records supplied by the storage layer (transaction.py)
- Derived analytics results: aggregates, predictions, anomalies,
  recurrence patterns and insights (analytics.py)
- Comparison, savings, budget and categorization reports (reports.py)
"""

from fintrack_core.models.analytics import (
    MAX_CONFIDENCE,
    # Enumerations
    AnomalyDirection,
    Bucket,
    Consistency,
    GroupBy,
    InsightSource,
    PatternConfidence,
    Sensitivity,
    Timeframe,
    TrendDirection,
    # Aggregation
    AggregationResult,
    CategoryAggregate,
    TimeSeriesPoint,
    # Predictions
    Prediction,
    PredictionReport,
    # Anomalies
    Anomaly,
    CategoryBaseline,
    # Recurrence
    RecurrencePattern,
    RecurrenceReport,
    Subscription,
    # Insights
    CacheEntry,
    DateRange,
    InsightResult,
    TrendSummary,
)
from fintrack_core.models.reports import (
    BudgetSuggestion,
    CategoryComparison,
    CategorySuggestion,
    ComparisonResult,
    SavingsOpportunity,
    SavingsOpportunityType,
    SavingsReport,
)
from fintrack_core.models.transaction import (
    UNCATEGORIZED_LABEL,
    Category,
    CategoryIndex,
    PaymentMethod,
    Transaction,
    category_label,
)

__all__ = [
    "MAX_CONFIDENCE",
    "UNCATEGORIZED_LABEL",
    "AggregationResult",
    "Anomaly",
    "AnomalyDirection",
    "Bucket",
    "BudgetSuggestion",
    "CacheEntry",
    "Category",
    "CategoryAggregate",
    "CategoryBaseline",
    "CategoryComparison",
    "CategoryIndex",
    "CategorySuggestion",
    "ComparisonResult",
    "Consistency",
    "DateRange",
    "GroupBy",
    "InsightResult",
    "InsightSource",
    "PatternConfidence",
    "PaymentMethod",
    "Prediction",
    "PredictionReport",
    "RecurrencePattern",
    "RecurrenceReport",
    "SavingsOpportunity",
    "SavingsOpportunityType",
    "SavingsReport",
    "Sensitivity",
    "Subscription",
    "TimeSeriesPoint",
    "Timeframe",
    "Transaction",
    "TrendDirection",
    "TrendSummary",
    "category_label",
]
