"""Tests for the insight narrator."""

import time
from datetime import date
from decimal import Decimal

import pytest

from fintrack_agents.narrator import (
    DEFAULT_NARRATIVE,
    EMPTY_NARRATIVE,
    InsightNarrator,
    extract_suggestions,
    fallback_insights,
)
from fintrack_agents.prompts import INSIGHT_INSTRUCTIONS
from fintrack_agents.reasoning import ReasoningOutcome
from fintrack_core.cache import InsightCache
from fintrack_core.exceptions import InvalidParameterError
from fintrack_core.models import (
    Consistency,
    DateRange,
    InsightSource,
    PaymentMethod,
    Timeframe,
    TrendDirection,
)


class TestExtractSuggestions:
    """Test suite for pulling suggestions out of narrative text."""

    def test_numbered_and_bulleted_lines(self):
        text = (
            "Overview paragraph.\n"
            "1. **Suggestion:** Cook at home.\n"
            "2) Walk to work\n"
            "- Cancel unused apps.\n"
            "• Track cash spending\n"
        )

        assert extract_suggestions(text) == [
            "Cook at home",
            "Walk to work",
            "Cancel unused apps",
            "Track cash spending",
        ]

    def test_advisory_lines_when_no_list(self):
        text = "Consider cooking at home.\nTry walking to work.\nGreat job overall."

        assert extract_suggestions(text) == ["Consider cooking at home", "Try walking to work"]

    def test_duplicates_removed(self):
        assert extract_suggestions("- Save more\n- Save more.") == ["Save more"]

    def test_plain_text_has_none(self):
        assert extract_suggestions("Spend less on food.") == []


class TestFallbackInsights:
    """Test suite for the local insight branch."""

    def test_concentration_warning(self, concentrated_spending, categories):
        """A category at 80% of spending should be flagged."""
        context = InsightNarrator().build_context(concentrated_spending, categories)

        narrative, suggestions, warnings = fallback_insights(context)

        assert warnings == ["Food & Dining"]
        assert "Your biggest expense category is Food & Dining" in narrative
        assert "80.00%" in narrative
        assert any("Food & Dining" in s for s in suggestions)

    def test_volatility_and_small_history(self, concentrated_spending, categories):
        context = InsightNarrator().build_context(concentrated_spending, categories)

        narrative, suggestions, _ = fallback_insights(context)

        assert "inconsistent daily spending" in narrative
        assert "1.60 times your average" in narrative
        assert (
            "Add more expense categories to get detailed insights into your spending patterns."
            in suggestions
        )

    def test_cash_heavy_spending(self, txn):
        context = InsightNarrator().build_context(
            [txn(1000, date(2025, 5, d), payment_method=PaymentMethod.CASH) for d in (1, 2, 3)]
        )

        narrative, suggestions, _ = fallback_insights(context)

        assert "You paid cash for 100.0% of your transactions." in narrative
        assert any("digital payments" in s for s in suggestions)

    def test_always_has_generic_suggestions(self, txn):
        context = InsightNarrator().build_context([txn(0, date(2025, 5, 1))])

        narrative, suggestions, _ = fallback_insights(context)

        assert narrative
        assert "Set a monthly budget for each category to better control your expenses." in (
            suggestions
        )
        assert "Review your recurring expenses to identify potential savings." in suggestions

    def test_default_narrative_when_nothing_to_say(self, txn):
        # A single zero-amount day has no dominant spend and no dispersion label
        context = InsightNarrator().build_context(
            [txn(0, date(2025, 5, 1), payment_method=PaymentMethod.CARD)]
        )

        narrative, _, _ = fallback_insights(context)

        assert narrative == DEFAULT_NARRATIVE


class TestInsightNarrator:
    """Test suite for InsightNarrator.narrate."""

    def test_empty_transactions(self, failing_client):
        """No data should yield the onboarding message without calling out."""
        narrator = InsightNarrator(reasoning_client=failing_client)

        result = narrator.narrate([], "month")

        assert result.narrative_text == EMPTY_NARRATIVE
        assert len(result.suggestions) >= 2
        assert result.source == InsightSource.EMPTY
        assert failing_client.calls == []

    def test_failed_reasoning_falls_back(self, failing_client, concentrated_spending):
        """A failed external call should still produce narrative and suggestions."""
        narrator = InsightNarrator(reasoning_client=failing_client)

        started = time.monotonic()
        result = narrator.narrate(concentrated_spending, "month")
        elapsed = time.monotonic() - started

        assert result.source == InsightSource.FALLBACK
        assert result.narrative_text
        assert len(result.suggestions) >= 1
        assert elapsed < 10.0
        assert len(failing_client.calls) == 1

    def test_client_exception_falls_back(self, raising_client, concentrated_spending):
        narrator = InsightNarrator(reasoning_client=raising_client)

        result = narrator.narrate(concentrated_spending, "month")

        assert result.source == InsightSource.FALLBACK
        assert result.suggestions

    def test_no_client_uses_fallback(self, concentrated_spending, categories):
        result = InsightNarrator().narrate(
            concentrated_spending, "month", categories=categories
        )

        assert result.source == InsightSource.FALLBACK
        assert result.concentration_warnings == ["Food & Dining"]
        assert result.total == Decimal("100000")
        assert result.count == 4

    def test_successful_reasoning(self, succeeding_client, concentrated_spending, categories):
        narrator = InsightNarrator(reasoning_client=succeeding_client)

        result = narrator.narrate(concentrated_spending, "month", categories=categories)

        assert result.source == InsightSource.EXTERNAL
        assert result.narrative_text.startswith("Your spending is dominated by dining out.")
        assert result.suggestions == [
            "Cook at home three nights a week",
            "Set a dining budget of Tsh 60,000",
            "Move card payments to a single account",
            "Review transport costs monthly",
        ]
        assert result.concentration_warnings == ["Food & Dining"]

    def test_prompt_describes_the_data(self, succeeding_client, concentrated_spending, categories):
        InsightNarrator(reasoning_client=succeeding_client).narrate(
            concentrated_spending, "month", categories=categories
        )

        instructions, prompt = succeeding_client.calls[0]
        assert instructions == INSIGHT_INSTRUCTIONS
        assert "Total spent: Tsh 100,000.00" in prompt
        assert "Food & Dining: Tsh 80,000.00 (80.00% of total spending)" in prompt
        assert "WARNING: Food & Dining" in prompt

    def test_short_response_is_topped_up(self, fake_client, concentrated_spending):
        client = fake_client(ReasoningOutcome.success("Spend less on food."))

        result = InsightNarrator(reasoning_client=client).narrate(concentrated_spending)

        assert result.source == InsightSource.EXTERNAL
        assert result.narrative_text == "Spend less on food."
        assert 3 <= len(result.suggestions) <= 5

    def test_blank_success_counts_as_failure(self, fake_client, concentrated_spending):
        client = fake_client(ReasoningOutcome.success("   "))

        result = InsightNarrator(reasoning_client=client).narrate(concentrated_spending)

        assert result.source == InsightSource.FALLBACK

    def test_trend_summary(self, concentrated_spending):
        result = InsightNarrator().narrate(concentrated_spending)

        assert result.trend.direction == TrendDirection.INCREASING
        assert result.trend.consistency == Consistency.VARIABLE

    def test_category_filter(self, concentrated_spending):
        result = InsightNarrator().narrate(concentrated_spending, "month", [2])

        assert result.total == Decimal("20000")
        assert result.count == 2

    def test_date_range_from_clock(self, clock, concentrated_spending):
        result = InsightNarrator(clock=clock).narrate(concentrated_spending, Timeframe.MONTH)

        assert result.date_range == DateRange(start=date(2025, 3, 1), end=date(2025, 5, 31))

    def test_rejects_unknown_timeframe(self, concentrated_spending):
        with pytest.raises(InvalidParameterError):
            InsightNarrator().narrate(concentrated_spending, "decade")


class TestNarratorCaching:
    """Test suite for cache interaction."""

    def test_second_call_is_served_from_cache(self, succeeding_client, clock, concentrated_spending):
        narrator = InsightNarrator(
            reasoning_client=succeeding_client,
            cache=InsightCache(clock=clock),
            clock=clock,
        )

        first = narrator.narrate(concentrated_spending, "month", user_id=7)
        second = narrator.narrate(concentrated_spending, "month", user_id=7)

        assert second == first
        assert len(succeeding_client.calls) == 1

    def test_expired_entry_is_recomputed(self, succeeding_client, clock, concentrated_spending):
        narrator = InsightNarrator(
            reasoning_client=succeeding_client,
            cache=InsightCache(clock=clock),
            clock=clock,
        )

        narrator.narrate(concentrated_spending, "month", user_id=7)
        clock.advance(minutes=31)
        narrator.narrate(concentrated_spending, "month", user_id=7)

        assert len(succeeding_client.calls) == 2

    def test_filters_are_cached_separately(self, succeeding_client, clock, concentrated_spending):
        narrator = InsightNarrator(
            reasoning_client=succeeding_client,
            cache=InsightCache(clock=clock),
            clock=clock,
        )

        narrator.narrate(concentrated_spending, "month", user_id=7)
        narrator.narrate(concentrated_spending, "month", [1], user_id=7)
        narrator.narrate(concentrated_spending, "month", [1], user_id=7)

        assert len(succeeding_client.calls) == 2

    def test_empty_result_is_not_cached(self, clock):
        cache = InsightCache(clock=clock)
        narrator = InsightNarrator(cache=cache, clock=clock)

        narrator.narrate([], "week", user_id=7)

        assert len(cache) == 0

    def test_no_user_id_skips_cache(self, clock, concentrated_spending):
        cache = InsightCache(clock=clock)

        InsightNarrator(cache=cache, clock=clock).narrate(concentrated_spending)

        assert len(cache) == 0
