"""
Tests for HistoryAggregator analytics.
"""
from datetime import date, datetime, timedelta

import pytest

from defer.managers.history_aggregator import HistoryAggregator
from defer.models.enums import DecisionOutcome, DeferCategory

from tests.conftest import NOW


@pytest.fixture
def aggregator():
    return HistoryAggregator()


class TestSummaryMetrics:
    """Tests for summary_metrics."""

    def test_empty_records_are_zero(self, aggregator):
        """Test every rate is 0 without records."""
        metrics = aggregator.summary_metrics([])
        assert metrics.decision_count == 0
        assert metrics.intentional_ratio == 0.0
        assert metrics.intentional_rate == 0
        assert metrics.honored_rate == 0
        assert metrics.reflection_rate == 0
        assert metrics.average_duration_days == 0

    def test_seven_of_ten_intentional(self, aggregator, mock_data):
        """Test 7 intentional out of 10 gives a 70% rate."""
        records = [
            mock_data.create_completion(
                completed_at=NOW - timedelta(days=i),
                outcome=DecisionOutcome.INTENTIONAL if i < 7 else DecisionOutcome.IMPULSIVE,
            )
            for i in range(10)
        ]
        metrics = aggregator.summary_metrics(records)
        assert metrics.decision_count == 10
        assert metrics.intentional_count == 7
        assert metrics.impulsive_count == 3
        assert metrics.intentional_rate == 70

    def test_honored_reflection_and_cost(self, aggregator, mock_data):
        records = [
            mock_data.create_completion(reflection="Glad I waited", estimated_cost=40, duration_days=2),
            mock_data.create_completion(
                outcome=DecisionOutcome.IMPULSIVE,
                estimated_cost=100,
                was_after_checkpoint=False,
                duration_days=1,
            ),
            mock_data.create_completion(reflection="  ", estimated_cost=None, duration_days=4),
        ]
        metrics = aggregator.summary_metrics(records)
        assert metrics.honored_count == 2
        assert metrics.honored_rate == 67
        assert metrics.reflection_count == 1
        assert metrics.reflection_rate == 33
        assert metrics.total_estimated_cost_deferred == pytest.approx(40.0)
        assert metrics.average_duration_days == 2


class TestCategoryBreakdown:
    """Tests for category_breakdown."""

    def test_most_used_first_ties_in_catalog_order(self, aggregator, mock_data):
        records = [
            mock_data.create_completion(category=DeferCategory.HABIT),
            mock_data.create_completion(category=DeferCategory.SPENDING),
            mock_data.create_completion(category=DeferCategory.HEALTH),
            mock_data.create_completion(
                category=DeferCategory.HABIT, outcome=DecisionOutcome.IMPULSIVE
            ),
        ]
        stats = aggregator.category_breakdown(records)
        assert [s.category for s in stats] == [
            DeferCategory.HABIT,
            DeferCategory.HEALTH,
            DeferCategory.SPENDING,
        ]
        assert stats[0].count == 2
        assert stats[0].intentional_ratio == pytest.approx(0.5)

    def test_empty(self, aggregator):
        assert aggregator.category_breakdown([]) == []


class TestMonthlyRhythm:
    """Tests for monthly_rhythm."""

    def test_gap_months_are_zero_filled(self, aggregator, mock_data):
        """Test January and April records produce four consecutive months."""
        records = [
            mock_data.create_completion(completed_at=datetime(2025, 1, 15)),
            mock_data.create_completion(completed_at=datetime(2025, 4, 2)),
            mock_data.create_completion(completed_at=datetime(2025, 4, 20)),
        ]
        rhythm = aggregator.monthly_rhythm(records, now=datetime(2025, 4, 25))
        assert [m.month for m in rhythm] == [
            date(2025, 1, 1),
            date(2025, 2, 1),
            date(2025, 3, 1),
            date(2025, 4, 1),
        ]
        assert [m.count for m in rhythm] == [1, 0, 0, 2]
        assert rhythm[0].label == "Jan 2025"

    def test_extends_to_current_month(self, aggregator, mock_data):
        records = [mock_data.create_completion(completed_at=datetime(2025, 1, 15))]
        rhythm = aggregator.monthly_rhythm(records, now=datetime(2025, 3, 1))
        assert len(rhythm) == 3
        assert rhythm[-1].count == 0

    def test_empty_records(self, aggregator):
        assert aggregator.monthly_rhythm([], now=NOW) == []


class TestTimelineAndFilter:
    """Tests for filtered_decisions and timeline_groups."""

    def test_filter_by_category(self, aggregator, mock_data):
        health = mock_data.create_completion(category=DeferCategory.HEALTH)
        spending = mock_data.create_completion(category=DeferCategory.SPENDING)
        assert aggregator.filtered_decisions([health, spending], DeferCategory.HEALTH) == [health]
        assert aggregator.filtered_decisions([health, spending]) == [health, spending]

    def test_groups_newest_first(self, aggregator, mock_data):
        morning = mock_data.create_completion(completed_at=NOW.replace(hour=8))
        evening = mock_data.create_completion(completed_at=NOW.replace(hour=20))
        yesterday = mock_data.create_completion(completed_at=NOW - timedelta(days=1))

        groups = aggregator.timeline_groups([morning, yesterday, evening])

        assert [g.day for g in groups] == [NOW.date(), (NOW - timedelta(days=1)).date()]
        assert groups[0].records == [evening, morning]
        assert groups[1].records == [yesterday]
