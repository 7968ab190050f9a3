"""Insight narration with a local fallback.

Flow for one call:

    cache check -> hit: return cached result
                -> miss: build context -> reasoning attempt
                       -> success: narrative from the service
                       -> failure / no client: local narrative
                -> attach trend -> write cache

The reasoning attempt is made once, with the client's bounded timeout, and
never retried. Its failures are logged and never reach the caller.
"""

import re
from datetime import date, datetime, timezone
from typing import Callable, Iterable, Optional, Sequence, Union

import structlog

from fintrack_core.aggregator import (
    aggregate,
    payment_method_distribution,
    top_categories,
)
from fintrack_core.cache import InsightStore, insight_cache_key
from fintrack_core.dispersion import consistency, mean, trend_direction
from fintrack_core.models import (
    Bucket,
    CategoryIndex,
    Consistency,
    DateRange,
    GroupBy,
    InsightResult,
    InsightSource,
    PaymentMethod,
    Timeframe,
    Transaction,
    TrendSummary,
)
from fintrack_core.numeric import ZERO, round_money
from fintrack_core.timeframes import parse_timeframe, resolve_date_range

from .prompts import INSIGHT_INSTRUCTIONS, InsightContext, build_insight_prompt
from .reasoning import ReasoningClient, ReasoningOutcome

logger = structlog.get_logger()

MAX_SUGGESTIONS = 5
MIN_EXTRACTED_SUGGESTIONS = 3
SMALL_HISTORY_COUNT = 10

EMPTY_NARRATIVE = "Start adding expenses to get AI insights!"
EMPTY_SUGGESTIONS = (
    "Add some expenses to see spending patterns",
    "Create categories to organize your expenses",
    "Set a monthly budget to track your goals",
)
DEFAULT_NARRATIVE = "Keep tracking your expenses to get more detailed insights."

_LIST_ITEM = re.compile(r"^\s*(?:\d+[.)]|[-*•])\s+(.+)$")
_ADVISORY = re.compile(r"^(?:consider|try|recommend)\b", re.IGNORECASE)
_LABEL_PREFIX = re.compile(r"^(?:suggestion|recommendation|advice)s?\s*:\s*", re.IGNORECASE)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _clean_suggestion(line: str) -> str:
    cleaned = line.replace("**", "").strip()
    cleaned = _LABEL_PREFIX.sub("", cleaned)
    return cleaned.strip(" -•.*")


def extract_suggestions(text: str) -> list[str]:
    """Pull suggestion lines out of a narrative.

    Bulleted or numbered lines are preferred; when there are none, lines
    starting with consider/try/recommend are used instead.
    """
    listed: list[str] = []
    advisory: list[str] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        match = _LIST_ITEM.match(line)
        if match:
            listed.append(match.group(1))
        elif _ADVISORY.match(line):
            advisory.append(line)

    suggestions = []
    for candidate in listed or advisory:
        cleaned = _clean_suggestion(candidate)
        if cleaned and cleaned not in suggestions:
            suggestions.append(cleaned)
    return suggestions


def contextual_suggestions(context: InsightContext) -> list[str]:
    """Data-driven suggestions used to top up a short external response."""
    suggestions = []

    dominant = context.dominant_category
    if dominant is not None and float(dominant.percentage_of_whole) > context.concentration_threshold:
        suggestions.append(
            f"Consider reviewing your {dominant.category_name} expenses as they represent "
            f"{dominant.percentage_of_whole}% of your total spending - this is quite high "
            "and may indicate an area for potential savings."
        )

    if context.cash_heavy:
        suggestions.append(
            f"You're using cash for {context.payment_share(PaymentMethod.CASH)}% of "
            "transactions. Consider switching to digital payments for better expense "
            "tracking and security."
        )

    if context.count < SMALL_HISTORY_COUNT:
        suggestions.append(
            f"With only {context.count} transactions recorded, consider adding more "
            "expenses to get more detailed insights into your spending patterns."
        )

    if len(context.top_categories) < 3:
        suggestions.append(
            "You have limited category diversity in your expenses. Consider breaking down "
            "large categories into more specific subcategories for better tracking."
        )

    suggestions.append(
        "Set up category-specific budgets based on your spending patterns to maintain "
        "better control over your expenses."
    )
    if context.total > 0:
        suggestions.append(
            "Review your recurring expenses regularly to identify subscriptions or services "
            "you no longer need - this can create immediate savings."
        )
    return suggestions


def fallback_insights(context: InsightContext) -> tuple[str, list[str], list[str]]:
    """Local narrative, suggestions and concentration warnings.

    Always returns a non-empty narrative and at least one suggestion.
    """
    insights: list[str] = []
    suggestions: list[str] = []
    warnings: list[str] = []

    dominant = context.dominant_category
    if dominant is not None and context.total > 0:
        insights.append(
            f"Your biggest expense category is {dominant.category_name}, accounting for "
            f"{dominant.percentage_of_whole}% of your total spending."
        )

    for agg in context.concentrated_categories:
        warnings.append(agg.category_name)
        insights.append(
            f"{agg.category_name} makes up {agg.percentage_of_whole}% of your spending, "
            f"above the {context.concentration_threshold:g}% concentration level."
        )
        suggestions.append(
            f"Consider reviewing your {agg.category_name} expenses as they make up a "
            "large portion of your budget."
        )

    volatility = consistency(context.daily_totals)
    if volatility == Consistency.VARIABLE:
        average = mean(context.daily_totals)
        peak = max(float(v) for v in context.daily_totals)
        ratio = peak / average if average else 0.0
        insights.append(
            "You have inconsistent daily spending patterns. Your highest spending day "
            f"was {ratio:.2f} times your average."
        )
        suggestions.append("Try to spread out large purchases to maintain consistent spending.")
    elif volatility == Consistency.MODERATE:
        insights.append("Your daily spending varies moderately from day to day.")
    elif volatility == Consistency.CONSISTENT:
        insights.append("Your spending is relatively consistent across days.")

    if context.cash_heavy:
        insights.append(
            f"You paid cash for {context.payment_share(PaymentMethod.CASH)}% of your transactions."
        )
        suggestions.append(
            "You're using cash for most transactions. Consider digital payments for better tracking."
        )

    if context.count < 5:
        suggestions.append(
            "Add more expense categories to get detailed insights into your spending patterns."
        )

    suggestions.append("Set a monthly budget for each category to better control your expenses.")
    suggestions.append("Review your recurring expenses to identify potential savings.")

    narrative = " ".join(insights) or DEFAULT_NARRATIVE
    return narrative, suggestions, warnings


class InsightNarrator:
    """
    Turn a user's transactions into narrative insights and suggestions.

    The reasoning client and cache are both optional. Without a client every
    result comes from the local fallback; without a cache (or a user id)
    nothing is memoized.
    """

    def __init__(
        self,
        reasoning_client: Optional[ReasoningClient] = None,
        cache: Optional[InsightStore] = None,
        clock: Optional[Callable[[], datetime]] = None,
        concentration_threshold: float = 40.0,
        cash_usage_threshold: float = 70.0,
        currency: str = "Tsh",
    ):
        self.reasoning_client = reasoning_client
        self.cache = cache
        self._clock = clock or _utc_now
        self.concentration_threshold = concentration_threshold
        self.cash_usage_threshold = cash_usage_threshold
        self.currency = currency

    def build_context(
        self,
        transactions: Sequence[Transaction],
        categories: Optional[CategoryIndex] = None,
        category_filter: Optional[Iterable[int]] = None,
    ) -> InsightContext:
        aggregation = aggregate(
            transactions,
            bucket=Bucket.DAY,
            group_by=GroupBy.CATEGORY,
            categories=categories,
        )
        daily_totals = [point.total for point in aggregation.series]
        average_daily = (
            round_money(aggregation.total / len(daily_totals)) if daily_totals else ZERO
        )
        return InsightContext(
            aggregation=aggregation,
            top_categories=top_categories(aggregation, limit=3),
            payment_methods=payment_method_distribution(transactions),
            daily_totals=daily_totals,
            average_daily=average_daily,
            concentration_threshold=self.concentration_threshold,
            cash_usage_threshold=self.cash_usage_threshold,
            category_filter=sorted(set(category_filter or ())),
        )

    def _attempt_reasoning(self, context: InsightContext) -> ReasoningOutcome:
        if self.reasoning_client is None:
            logger.info("reasoning_not_configured")
            return ReasoningOutcome.failure("no reasoning client configured")

        prompt = build_insight_prompt(context, currency=self.currency)
        logger.info("reasoning_call_started", transactions=context.count)
        try:
            return self.reasoning_client.complete(INSIGHT_INSTRUCTIONS, prompt)
        except Exception as e:
            logger.error("reasoning_client_error", error=str(e), error_type=type(e).__name__)
            return ReasoningOutcome.failure(str(e))

    def _empty_result(self, timeframe: Timeframe, date_range: DateRange) -> InsightResult:
        return InsightResult(
            timeframe=timeframe,
            date_range=date_range,
            narrative_text=EMPTY_NARRATIVE,
            suggestions=list(EMPTY_SUGGESTIONS),
            source=InsightSource.EMPTY,
        )

    def narrate(
        self,
        transactions: Iterable[Transaction],
        timeframe: Union[Timeframe, str] = Timeframe.MONTH,
        category_filter: Optional[Iterable[int]] = None,
        *,
        user_id: Optional[Union[int, str]] = None,
        categories: Optional[CategoryIndex] = None,
        date_range: Optional[DateRange] = None,
    ) -> InsightResult:
        """
        Produce insights for one user's transaction window.

        Args:
            transactions: The user's transactions for the window.
            timeframe: week, month, quarter or year.
            category_filter: Optional category ids to restrict the analysis to.
            user_id: Identity used for the cache key; no caching without it.
            categories: Optional category index used for labels.
            date_range: Window reported in the result. Resolved from the
                timeframe and the narrator's clock when omitted.

        Returns:
            InsightResult. Never raises for reasoning failures.

        Raises:
            InvalidParameterError: If the timeframe is not recognised.
        """
        timeframe = parse_timeframe(timeframe)
        filter_ids = sorted(set(category_filter or ()))
        window = date_range or resolve_date_range(timeframe, self._reference_date())

        cache_key = None
        if self.cache is not None and user_id is not None:
            cache_key = insight_cache_key(user_id, timeframe, filter_ids)
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.info("insights_cache_hit", user_id=str(user_id), timeframe=timeframe.value)
                return cached
            logger.debug("insights_cache_miss", user_id=str(user_id), timeframe=timeframe.value)

        items = [
            txn for txn in transactions if not filter_ids or txn.category_id in filter_ids
        ]
        if not items:
            logger.info("insights_no_transactions", timeframe=timeframe.value)
            return self._empty_result(timeframe, window)

        context = self.build_context(items, categories, filter_ids)
        outcome = self._attempt_reasoning(context)

        if outcome.succeeded:
            narrative = outcome.text.strip()
            suggestions = extract_suggestions(narrative)
            if len(suggestions) < MIN_EXTRACTED_SUGGESTIONS:
                for suggestion in contextual_suggestions(context):
                    if suggestion not in suggestions:
                        suggestions.append(suggestion)
            suggestions = suggestions[:MAX_SUGGESTIONS]
            warnings = [agg.category_name for agg in context.concentrated_categories]
            source = InsightSource.EXTERNAL
        else:
            logger.warning("insights_fallback", reason=outcome.error)
            narrative, suggestions, warnings = fallback_insights(context)
            source = InsightSource.FALLBACK

        result = InsightResult(
            timeframe=timeframe,
            date_range=window,
            total=context.total,
            count=context.count,
            narrative_text=narrative,
            suggestions=suggestions,
            trend=TrendSummary(
                direction=trend_direction(context.daily_totals),
                consistency=consistency(context.daily_totals),
            ),
            source=source,
            concentration_warnings=warnings,
        )

        if cache_key is not None:
            self.cache.put(cache_key, result)
        logger.info(
            "insights_generated",
            source=source.value,
            timeframe=timeframe.value,
            suggestions=len(suggestions),
        )
        return result

    def _reference_date(self) -> date:
        return self._clock().date()
