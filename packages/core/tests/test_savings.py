"""Tests for savings opportunity analysis."""

from datetime import date, timedelta
from decimal import Decimal

from fintrack_core.models import PatternConfidence, SavingsOpportunityType
from fintrack_core.savings import SavingsAnalyzer


class TestSavingsAnalyzer:
    """Test suite for SavingsAnalyzer."""

    def test_empty_input(self):
        report = SavingsAnalyzer().analyze([])

        assert report.insufficient_data
        assert report.message == "Need more expense data to identify savings opportunities"
        assert report.analysis_period is None

    def test_analysis_period_is_reported(self, txn):
        analyzer = SavingsAnalyzer()

        assert analyzer.analyze([], analysis_period="6 months").analysis_period == "6 months"
        report = analyzer.analyze([txn(150000, date(2025, 5, 1))], analysis_period="3 months")
        assert report.analysis_period == "3 months"

    def test_high_spending_category(self, txn, categories):
        """Categories above the threshold should suggest a 15% reduction."""
        report = SavingsAnalyzer().analyze(
            [
                txn(90000, date(2025, 3, 1), category_id=1),
                txn(60000, date(2025, 3, 9), category_id=1),
                txn(20000, date(2025, 3, 9), category_id=2),
            ],
            categories,
        )

        assert len(report.opportunities) == 1
        opportunity = report.opportunities[0]
        assert opportunity.type == SavingsOpportunityType.HIGH_SPENDING_CATEGORY
        assert opportunity.potential_savings == Decimal("22500.00")
        assert opportunity.confidence == PatternConfidence.HIGH
        assert opportunity.suggestion == (
            "Consider reducing Food & Dining expenses by 15% to save Tsh 22,500 monthly"
        )
        assert report.total_potential_savings == Decimal("22500.00")
        assert report.categories_analyzed == 2

    def test_frequent_small_expenses(self, txn):
        """More than twenty small purchases should be flagged."""
        start = date(2025, 3, 1)
        small = [txn(5000, start + timedelta(days=i), category_id=i % 4) for i in range(21)]

        report = SavingsAnalyzer().analyze(small)

        kinds = [o.type for o in report.opportunities]
        assert kinds == [SavingsOpportunityType.FREQUENT_SMALL_EXPENSES]
        assert report.opportunities[0].potential_savings == Decimal("42000")
        assert report.opportunities[0].occurrence_count == 21

    def test_twenty_small_expenses_is_not_enough(self, txn):
        small = [txn(5000, date(2025, 3, 1) + timedelta(days=i), category_id=i % 4) for i in range(20)]

        report = SavingsAnalyzer().analyze(small)

        assert report.opportunities == []
        assert not report.insufficient_data

    def test_subscription_opportunity(self, monthly_subscription, categories):
        report = SavingsAnalyzer().analyze(monthly_subscription, categories)

        subscription = [
            o
            for o in report.opportunities
            if o.type == SavingsOpportunityType.SUBSCRIPTION_OPTIMIZATION
        ]
        assert len(subscription) == 1
        assert subscription[0].potential_savings == Decimal("25000")
        assert subscription[0].description == "Potential Monthly Subscription - Entertainment"
