"""
Data models for the Defer CLI.

Import models explicitly from their modules:
    from defer.models.enums import DeferCategory, DeferStatus, DecisionOutcome
    from defer.models.protocol import DelayProtocol
    from defer.models.item import DeferItem, StreakRecord
    from defer.models.records import CompletionHistory, UrgeLog, Achievement
    from defer.models.draft import DeferDraft
    from defer.models.templates import DeferTemplate, TEMPLATE_CATALOG
    from defer.models.achievements import AchievementDefinition, ACHIEVEMENT_CATALOG
    from defer.models.views import HistorySummaryMetrics, AchievementSnapshot
    from defer.models.files import DefersFile, HistoryFile, ConfigFile, etc.
"""

from .enums import (
    AchievementTier,
    DecisionOutcome,
    DeferCategory,
    DeferStatus,
    DelayProtocolType,
    StreakEntryStatus,
)
from .protocol import DelayProtocol
from .item import DeferItem, StreakRecord
from .records import Achievement, CompletionHistory, UrgeLog
from .draft import DeferDraft
