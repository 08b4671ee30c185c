"""
Read-only view models returned by the query services.

Built fresh on every call; the presentation layer owns any caching.
"""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from defer.models.achievements import AchievementDefinition, AchievementProgress
from defer.models.enums import DeferCategory
from defer.models.records import CompletionHistory


class HistorySummaryMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    decision_count: int = 0
    intentional_count: int = 0
    impulsive_count: int = 0
    intentional_ratio: float = 0.0
    intentional_rate: int = 0
    honored_count: int = 0
    honored_rate: int = 0
    reflection_count: int = 0
    reflection_rate: int = 0
    total_estimated_cost_deferred: float = 0.0
    average_duration_days: int = 0


class HistoryCategoryStat(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: DeferCategory
    count: int
    intentional_count: int
    intentional_ratio: float


class HistoryMonthStat(BaseModel):
    model_config = ConfigDict(frozen=True)

    month: date
    count: int
    intentional_count: int = 0

    @property
    def label(self) -> str:
        return self.month.strftime("%b %Y")


class HistoryTimelineGroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: date
    records: List[CompletionHistory] = Field(default_factory=list)


class HomeStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    active: int = 0
    longest_streak: int = 0
    due_soon: int = 0


class AchievementSnapshot(BaseModel):
    """Everything the achievements screen shows, in catalog order."""

    model_config = ConfigDict(frozen=True)

    progress: AchievementProgress
    unlocked: List[AchievementDefinition] = Field(default_factory=list)
    locked: List[AchievementDefinition] = Field(default_factory=list)
    completion_ratio: float = 0.0
    summary_title: str = ""
    summary_subtitle: str = ""
    showcased_key: Optional[str] = None
