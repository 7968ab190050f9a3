"""Facade over the analytics components.

The engine validates caller parameters, selects the transaction window each
operation needs, and delegates to the core analytics. Callers supply the
user's transactions; the engine never fetches data itself.

Usage:
    from fintrack_agents import AnalyticsEngine, FintrackConfig, configure_logging_from

    config = FintrackConfig()
    configure_logging_from(config)
    engine = AnalyticsEngine.from_config(config)
    result = engine.insights(user_id=7, transactions=txns, timeframe="month")
"""

from datetime import date, datetime, timezone
from typing import Callable, Iterable, Optional, Sequence, Union

import structlog

from fintrack_core.aggregator import monthly_series_by_category
from fintrack_core.anomaly import AnomalyDetector, build_category_baselines
from fintrack_core.budgeting import suggest_budgets
from fintrack_core.cache import InsightCache, InsightStore
from fintrack_core.categorizer import CategorySuggester, suggest_categories
from fintrack_core.comparison import compare_periods
from fintrack_core.models import (
    Anomaly,
    BudgetSuggestion,
    Category,
    CategoryIndex,
    CategorySuggestion,
    ComparisonResult,
    DateRange,
    InsightResult,
    PredictionReport,
    RecurrenceReport,
    SavingsReport,
    Sensitivity,
    Timeframe,
    Transaction,
)
from fintrack_core.predictor import SpendingPredictor
from fintrack_core.recurrence import RecurrenceDetector
from fintrack_core.savings import SavingsAnalyzer
from fintrack_core.timeframes import (
    add_months,
    parse_sensitivity,
    parse_timeframe,
    resolve_date_range,
    validate_month_count,
    validate_months_ahead,
)

from .config import FintrackConfig
from .narrator import InsightNarrator
from .reasoning import ReasoningClient, create_reasoning_client

logger = structlog.get_logger()

UserId = Union[int, str]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _index(categories: Optional[Sequence[Category]]) -> Optional[CategoryIndex]:
    if categories is None:
        return None
    return {category.id: category for category in categories}


def _within(transactions: Iterable[Transaction], window: DateRange) -> list[Transaction]:
    return [t for t in transactions if window.start <= t.occurred_on <= window.end]


class AnalyticsEngine:
    """
    Entry point for all analytics operations.

    Every operation is a pure function of the transactions passed in and the
    engine's clock, except ``insights``, which may consult the reasoning
    service and the insight cache.
    """

    def __init__(
        self,
        reasoning_client: Optional[ReasoningClient] = None,
        cache: Optional[InsightStore] = None,
        clock: Optional[Callable[[], datetime]] = None,
        predictor: Optional[SpendingPredictor] = None,
        anomaly_detector: Optional[AnomalyDetector] = None,
        recurrence_detector: Optional[RecurrenceDetector] = None,
        savings_analyzer: Optional[SavingsAnalyzer] = None,
        category_suggester: Optional[CategorySuggester] = None,
        default_timeframe: Timeframe = Timeframe.MONTH,
        default_sensitivity: Sensitivity = Sensitivity.MEDIUM,
        default_months_ahead: int = 3,
        history_months: int = 12,
        concentration_threshold: float = 40.0,
        cash_usage_threshold: float = 70.0,
        currency: str = "Tsh",
    ):
        self._clock = clock or _utc_now
        self.cache = cache if cache is not None else InsightCache(clock=self._clock)
        self.narrator = InsightNarrator(
            reasoning_client=reasoning_client,
            cache=self.cache,
            clock=self._clock,
            concentration_threshold=concentration_threshold,
            cash_usage_threshold=cash_usage_threshold,
            currency=currency,
        )
        self.predictor = predictor or SpendingPredictor()
        self.anomaly_detector = anomaly_detector or AnomalyDetector()
        self.recurrence_detector = recurrence_detector or RecurrenceDetector(currency=currency)
        self.savings_analyzer = savings_analyzer or SavingsAnalyzer(
            recurrence_detector=self.recurrence_detector, currency=currency
        )
        self.category_suggester = category_suggester
        self.default_timeframe = default_timeframe
        self.default_sensitivity = default_sensitivity
        self.default_months_ahead = default_months_ahead
        self.history_months = history_months

    @classmethod
    def from_config(
        cls,
        config: Optional[FintrackConfig] = None,
        reasoning_client: Optional[ReasoningClient] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "AnalyticsEngine":
        """
        Build an engine from configuration.

        The reasoning client is created from ``config.llm`` unless one is
        given. When no client can be created the engine still works and all
        insights come from the local fallback.
        """
        config = config or FintrackConfig()
        analytics = config.analytics
        if reasoning_client is None:
            reasoning_client = create_reasoning_client(config.llm)

        clock = clock or _utc_now
        return cls(
            reasoning_client=reasoning_client,
            cache=InsightCache(
                ttl=analytics.cache_ttl,
                max_entries=analytics.cache_max_entries,
                clock=clock,
            ),
            clock=clock,
            recurrence_detector=RecurrenceDetector(
                granularity=analytics.recurrence_granularity,
                currency=analytics.currency,
            ),
            default_timeframe=analytics.default_timeframe,
            default_sensitivity=analytics.default_sensitivity,
            default_months_ahead=analytics.default_months_ahead,
            history_months=analytics.history_months,
            concentration_threshold=analytics.concentration_threshold,
            cash_usage_threshold=analytics.cash_usage_threshold,
            currency=analytics.currency,
        )

    @property
    def today(self) -> date:
        return self._clock().date()

    def history_window(self) -> DateRange:
        """The last ``history_months`` months up to today."""
        today = self.today
        return DateRange(start=add_months(today, -self.history_months), end=today)

    def insights(
        self,
        user_id: UserId,
        transactions: Iterable[Transaction],
        timeframe: Union[Timeframe, str, None] = None,
        category_filter: Optional[Iterable[int]] = None,
        categories: Optional[Sequence[Category]] = None,
    ) -> InsightResult:
        """
        Narrated insights for the user's transactions in the timeframe window.

        Raises:
            InvalidParameterError: If the timeframe is not recognised.
        """
        timeframe = parse_timeframe(self.default_timeframe if timeframe is None else timeframe)
        window = resolve_date_range(timeframe, self.today)
        return self.narrator.narrate(
            _within(transactions, window),
            timeframe,
            category_filter,
            user_id=user_id,
            categories=_index(categories),
            date_range=window,
        )

    def predictions(
        self,
        transactions: Iterable[Transaction],
        months_ahead: Optional[int] = None,
    ) -> PredictionReport:
        """
        Predict monthly spending per category from the history window.

        Raises:
            InvalidParameterError: If months_ahead is outside 1-12.
        """
        months_ahead = validate_months_ahead(
            self.default_months_ahead if months_ahead is None else months_ahead
        )
        history = _within(transactions, self.history_window())
        return self.predictor.predict(
            monthly_series_by_category(history),
            months_ahead=months_ahead,
            reference_date=self.today,
        )

    def anomalies(
        self,
        transactions: Iterable[Transaction],
        sensitivity: Union[Sensitivity, str, None] = None,
        history: Optional[Iterable[Transaction]] = None,
        categories: Optional[Sequence[Category]] = None,
        months: int = 6,
    ) -> list[Anomaly]:
        """
        Flag unusual transactions from the last ``months`` months.

        Each transaction is compared against its category's mean and spread.
        The baselines come from ``history`` when given, otherwise from the
        windowed transactions themselves.

        Raises:
            InvalidParameterError: If sensitivity is not recognised or months
                is outside 1-12.
        """
        sensitivity = parse_sensitivity(
            self.default_sensitivity if sensitivity is None else sensitivity
        )
        months = validate_month_count(months)
        today = self.today
        recent = _within(transactions, DateRange(start=add_months(today, -months), end=today))
        baselines = build_category_baselines(recent if history is None else history)
        return self.anomaly_detector.detect(
            recent,
            sensitivity=sensitivity,
            baselines=baselines,
            categories=_index(categories),
        )

    def recurring(
        self,
        transactions: Iterable[Transaction],
        categories: Optional[Sequence[Category]] = None,
    ) -> RecurrenceReport:
        return self.recurrence_detector.analyze(transactions, _index(categories))

    def savings(
        self,
        transactions: Iterable[Transaction],
        categories: Optional[Sequence[Category]] = None,
        months: int = 6,
    ) -> SavingsReport:
        """
        Savings opportunities in the last ``months`` months.

        Raises:
            InvalidParameterError: If months is outside 1-12.
        """
        months = validate_month_count(months)
        today = self.today
        recent = _within(transactions, DateRange(start=add_months(today, -months), end=today))
        return self.savings_analyzer.analyze(
            recent, _index(categories), analysis_period=f"{months} months"
        )

    def budget_suggestions(self, transactions: Iterable[Transaction]) -> list[BudgetSuggestion]:
        """Monthly budget per category from the history window."""
        history = _within(transactions, self.history_window())
        return suggest_budgets(monthly_series_by_category(history))

    def compare(
        self,
        transactions: Iterable[Transaction],
        period1: str,
        period2: str,
        categories: Optional[Sequence[Category]] = None,
    ) -> ComparisonResult:
        return compare_periods(transactions, period1, period2, _index(categories))

    def suggest_categories(
        self,
        transactions: Iterable[Transaction],
        categories: Sequence[Category],
    ) -> list[CategorySuggestion]:
        return suggest_categories(transactions, categories, self.category_suggester)

    def invalidate_user(self, user_id: UserId) -> int:
        """Drop every cached insight for the user, e.g. after a new expense."""
        invalidate = getattr(self.cache, "invalidate_user", None)
        if invalidate is None:
            logger.warning("cache_invalidation_unsupported", user_id=str(user_id))
            return 0
        removed = invalidate(user_id)
        logger.info("insights_invalidated", user_id=str(user_id), removed=removed)
        return removed
