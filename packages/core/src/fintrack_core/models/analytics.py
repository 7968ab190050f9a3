"""Derived analytics models produced by the engine.

None of these are persisted by the engine; they are created fresh on every
call from caller-supplied transactions. The only exception is CacheEntry,
which lives in the in-process insight cache for a bounded TTL.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field

MAX_CONFIDENCE = 0.95


# =============================================================================
# ENUMERATIONS
# =============================================================================


class Bucket(str, Enum):
    """Time unit used to build a series from raw transactions."""

    DAY = "day"
    MONTH = "month"


class GroupBy(str, Enum):
    """Secondary grouping applied by the aggregator."""

    CATEGORY = "category"
    NONE = "none"


class Timeframe(str, Enum):
    """Analysis windows accepted by the insight endpoints."""

    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class Sensitivity(str, Enum):
    """Anomaly detection sensitivity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Consistency(str, Enum):
    """Dispersion label for a numeric series."""

    INSUFFICIENT_DATA = "insufficient_data"
    CONSISTENT = "consistent"
    MODERATE = "moderate"
    VARIABLE = "variable"


class TrendDirection(str, Enum):
    """Direction label from a first-half/second-half comparison."""

    INSUFFICIENT_DATA = "insufficient_data"
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class AnomalyDirection(str, Enum):
    HIGH = "high"
    LOW = "low"


class PatternConfidence(str, Enum):
    """Qualitative confidence for recurrence and savings findings."""

    HIGH = "high"
    MEDIUM = "medium"


class InsightSource(str, Enum):
    """Which branch of the narrator produced an insight result."""

    EXTERNAL = "external"
    FALLBACK = "fallback"
    EMPTY = "empty"


# =============================================================================
# AGGREGATION
# =============================================================================


class TimeSeriesPoint(BaseModel):
    """Total spending inside one time bucket."""

    model_config = {"frozen": True}

    period_key: str = Field(description="Bucket key, e.g. 2025-09 or 2025-09-15")
    total: Decimal = Field(ge=0)
    count: int = Field(ge=0)


class CategoryAggregate(BaseModel):
    """Spending summary for one category over the aggregated window."""

    model_config = {"frozen": True}

    category_id: Optional[int] = None
    category_name: str
    total: Decimal = Field(ge=0)
    count: int = Field(ge=0)
    average: Decimal = Field(ge=0)
    percentage_of_whole: Decimal = Field(ge=0, le=100)


class AggregationResult(BaseModel):
    """Output of the aggregator.

    ``categories`` is ordered by category id with the uncategorized bucket
    last, so the result is deterministic for a given input.
    """

    model_config = {"frozen": True}

    bucket: Bucket
    series: list[TimeSeriesPoint] = Field(default_factory=list)
    categories: list[CategoryAggregate] = Field(default_factory=list)
    total: Decimal = Decimal("0")
    count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.count == 0

    @property
    def category_map(self) -> dict[Optional[int], CategoryAggregate]:
        """Category aggregates keyed by category id."""
        return {agg.category_id: agg for agg in self.categories}


# =============================================================================
# PREDICTIONS
# =============================================================================


class Prediction(BaseModel):
    """Predicted spending for one category in one future month."""

    model_config = {"frozen": True}

    category_id: Optional[int] = None
    period_key: str
    predicted_amount: Decimal = Field(ge=0)
    confidence: float = Field(ge=0.0, le=MAX_CONFIDENCE)


class PredictionReport(BaseModel):
    """All predictions for a request, or an explicit need-more-data result."""

    model_config = {"frozen": True}

    predictions: list[Prediction] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=MAX_CONFIDENCE)
    methodology: str = ""
    months_ahead: int = Field(default=3, ge=1, le=12)
    insufficient_data: bool = False
    message: Optional[str] = None


# =============================================================================
# ANOMALIES
# =============================================================================


class CategoryBaseline(BaseModel):
    """Historical spending statistics for one category."""

    model_config = {"frozen": True}

    category_id: Optional[int] = None
    mean: Decimal = Field(ge=0)
    std_dev: Decimal = Field(ge=0)
    sample_count: int = Field(ge=0)


class Anomaly(BaseModel):
    """A transaction whose amount falls outside its expected range."""

    model_config = {"frozen": True}

    transaction_id: Union[int, str]
    occurred_on: date
    category_id: Optional[int] = None
    category_name: str
    expected_amount: Decimal = Field(ge=0)
    actual_amount: Decimal = Field(ge=0)
    deviation_percentage: Decimal = Field(ge=0, le=100)
    direction: AnomalyDirection


# =============================================================================
# RECURRENCE
# =============================================================================


class RecurrencePattern(BaseModel):
    """A group of similar-amount transactions spaced at regular intervals."""

    model_config = {"frozen": True}

    amount_bucket: Decimal = Field(ge=0)
    interval_days: int = Field(gt=0)
    monthly_amount: Decimal = Field(ge=0)
    occurrence_count: int = Field(ge=3)
    category_label: str
    confidence: PatternConfidence
    interval_deviation_days: float = Field(ge=0)


class Subscription(BaseModel):
    """A recurrence pattern with a monthly interval."""

    model_config = {"frozen": True}

    name: str = "Potential Monthly Subscription"
    amount: Decimal = Field(ge=0)
    category_label: str
    interval_days: int
    confidence: PatternConfidence
    annual_cost: Decimal = Field(ge=0)
    suggestion: str


class RecurrenceReport(BaseModel):
    model_config = {"frozen": True}

    recurring_patterns: list[RecurrencePattern] = Field(default_factory=list)
    subscriptions: list[Subscription] = Field(default_factory=list)
    monthly_recurring_total: Decimal = Decimal("0")


# =============================================================================
# INSIGHTS
# =============================================================================


class DateRange(BaseModel):
    model_config = {"frozen": True}

    start: date
    end: date


class TrendSummary(BaseModel):
    model_config = {"frozen": True}

    direction: TrendDirection = TrendDirection.INSUFFICIENT_DATA
    consistency: Consistency = Consistency.INSUFFICIENT_DATA


class InsightResult(BaseModel):
    """Narrative insights and suggestions for one user and timeframe."""

    model_config = {"frozen": True}

    timeframe: Timeframe
    date_range: Optional[DateRange] = None
    total: Decimal = Decimal("0")
    count: int = 0
    narrative_text: str
    suggestions: list[str] = Field(default_factory=list)
    trend: TrendSummary = Field(default_factory=TrendSummary)
    source: InsightSource = InsightSource.FALLBACK
    concentration_warnings: list[str] = Field(
        default_factory=list,
        description="Categories whose share of spending exceeds the concentration threshold",
    )


class CacheEntry(BaseModel):
    """An immutable cached insight result."""

    model_config = {"frozen": True}

    key: str
    value: InsightResult
    created_at: datetime
    ttl: timedelta

    @property
    def expires_at(self) -> datetime:
        return self.created_at + self.ttl

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at
