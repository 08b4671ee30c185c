"""
HistoryAggregator for decision analytics.

Turns CompletionHistory records into summary metrics, category
breakdowns, monthly rhythms and day-grouped timelines.
"""

from collections import defaultdict
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence

from defer.models.enums import DeferCategory
from defer.models.records import CompletionHistory
from defer.models.views import (
    HistoryCategoryStat,
    HistoryMonthStat,
    HistorySummaryMetrics,
    HistoryTimelineGroup,
)
from defer.utils import add_months, month_start, percent, resolve_now, safe_ratio


class HistoryAggregator:
    """
    Read-only analytics over resolved decisions.

    Every method is a pure function of its arguments: no records are
    mutated and nothing is cached between calls.
    """

    def summary_metrics(self, records: Sequence[CompletionHistory]) -> HistorySummaryMetrics:
        """Single-pass totals and rates for a set of decisions.

        All rates are whole percents and are 0 when there are no records.
        """
        decision_count = 0
        intentional_count = 0
        honored_count = 0
        reflection_count = 0
        total_duration = 0
        cost_deferred = 0.0

        for record in records:
            decision_count += 1
            total_duration += record.duration_days
            if record.is_intentional:
                intentional_count += 1
                if record.estimated_cost is not None:
                    cost_deferred += record.estimated_cost
            if record.was_after_checkpoint:
                honored_count += 1
            if record.has_reflection:
                reflection_count += 1

        intentional_ratio = safe_ratio(intentional_count, decision_count)
        return HistorySummaryMetrics(
            decision_count=decision_count,
            intentional_count=intentional_count,
            impulsive_count=decision_count - intentional_count,
            intentional_ratio=intentional_ratio,
            intentional_rate=percent(intentional_ratio),
            honored_count=honored_count,
            honored_rate=percent(safe_ratio(honored_count, decision_count)),
            reflection_count=reflection_count,
            reflection_rate=percent(safe_ratio(reflection_count, decision_count)),
            total_estimated_cost_deferred=cost_deferred,
            average_duration_days=total_duration // decision_count if decision_count else 0,
        )

    def category_breakdown(self, records: Sequence[CompletionHistory]) -> List[HistoryCategoryStat]:
        """Per-category counts, most used first; ties follow catalog order."""
        counts: Dict[DeferCategory, int] = defaultdict(int)
        intentional: Dict[DeferCategory, int] = defaultdict(int)
        for record in records:
            counts[record.category] += 1
            if record.is_intentional:
                intentional[record.category] += 1

        ordered = sorted(counts, key=lambda category: (-counts[category], category.catalog_index))
        return [
            HistoryCategoryStat(
                category=category,
                count=counts[category],
                intentional_count=intentional[category],
                intentional_ratio=safe_ratio(intentional[category], counts[category]),
            )
            for category in ordered
        ]

    def monthly_rhythm(
        self, records: Sequence[CompletionHistory], now: Optional[datetime] = None
    ) -> List[HistoryMonthStat]:
        """Decisions per month from the earliest record through the current month.

        Months without activity are included with a count of 0.
        """
        if not records:
            return []

        counts: Dict[date, int] = defaultdict(int)
        intentional: Dict[date, int] = defaultdict(int)
        for record in records:
            month = month_start(record.completed_at)
            counts[month] += 1
            if record.is_intentional:
                intentional[month] += 1

        first = min(counts)
        last = max(month_start(resolve_now(now)), max(counts))

        rhythm = []
        month = first
        while month <= last:
            rhythm.append(
                HistoryMonthStat(
                    month=month, count=counts.get(month, 0), intentional_count=intentional.get(month, 0)
                )
            )
            month = add_months(month, 1)
        return rhythm

    def filtered_decisions(
        self,
        records: Sequence[CompletionHistory],
        category: Optional[DeferCategory] = None,
    ) -> List[CompletionHistory]:
        if category is None:
            return list(records)
        return [record for record in records if record.category is category]

    def timeline_groups(self, records: Sequence[CompletionHistory]) -> List[HistoryTimelineGroup]:
        """Records grouped by completion day, newest day and newest record first."""
        by_day: Dict[date, List[CompletionHistory]] = defaultdict(list)
        for record in records:
            by_day[record.completed_at.date()].append(record)

        return [
            HistoryTimelineGroup(
                day=day,
                records=sorted(by_day[day], key=lambda record: record.completed_at, reverse=True),
            )
            for day in sorted(by_day, reverse=True)
        ]
