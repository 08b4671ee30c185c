"""
Managers for the Defer CLI.

This package contains focused manager classes that handle specific aspects of Defer functionality:
- DeferLifecycleManager: Check-ins, resolution and list queries for DeferItems
- HistoryAggregator: Summary metrics, category breakdowns, rhythms and timelines
- AchievementEngine: Achievement evaluation and catalog listings
- StorageManager: Persistence to .defer/ folder structure
- EventBus: Event-driven architecture for decoupled communication
- AchievementListener: Evaluate achievements after lifecycle events
"""

from defer.managers.events import (
    AchievementEvent,
    DeferEvent,
    Event,
    EventBus,
    EventListener,
    EventType,
)
from defer.managers.storage_manager import StorageManager
from defer.managers.lifecycle_manager import DeferLifecycleManager
from defer.managers.history_aggregator import HistoryAggregator
from defer.managers.achievement_engine import AchievementEngine
from defer.managers.achievement_listener import AchievementListener
from defer.exceptions import StorageError

__all__ = [
    "DeferLifecycleManager",
    "HistoryAggregator",
    "AchievementEngine",
    "StorageManager",
    "StorageError",
    "EventBus",
    "Event",
    "DeferEvent",
    "AchievementEvent",
    "EventType",
    "EventListener",
    "AchievementListener",
]
