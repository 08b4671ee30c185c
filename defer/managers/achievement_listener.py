"""
Achievement listener for lifecycle events.

Re-evaluates achievements whenever a check-in, resolution or urge log
changes the behavioral counts they depend on.
"""
import logging
from datetime import datetime
from typing import Callable, List, Optional

from defer.managers.events import (
    AchievementEvent,
    DeferEvent,
    Event,
    EventBus,
    EventListener,
    EventType,
)
from defer.models.records import Achievement

logger = logging.getLogger(__name__)

EvaluateCallback = Callable[[datetime, Optional[str]], List[Achievement]]


class AchievementListener(EventListener):
    """
    Evaluates and records achievements after lifecycle events.

    When an item is checked in, resolved or closed, or an urge is logged:
    1. Call the evaluation callback (which persists newly unlocked records)
    2. Publish one ACHIEVEMENT_UNLOCKED event per new record
    3. Keep the new records until the caller drains them
    """

    def __init__(
        self,
        evaluate: EvaluateCallback,
        event_bus: EventBus,
        enabled: bool = True,
    ) -> None:
        """
        Initialize AchievementListener.

        Args:
            evaluate: Callback taking (now, source_defer_id) and returning new achievements.
            event_bus: Bus used to announce unlocks.
            enabled: Whether evaluation runs at all.
        """
        self._evaluate = evaluate
        self.event_bus = event_bus
        self.enabled = enabled
        self._pending: List[Achievement] = []

    @property
    def subscribed_events(self) -> List[EventType]:
        """Return list of events this listener handles."""
        return [
            EventType.DEFER_CHECKED_IN,
            EventType.DEFER_RESOLVED,
            EventType.DEFER_CLOSED,
            EventType.URGE_LOGGED,
        ]

    def handle(self, event: Event) -> None:
        """Handle a lifecycle event.

        Args:
            event: The lifecycle event.
        """
        if not self.enabled:
            return

        source_defer_id = event.item_uuid if isinstance(event, DeferEvent) else None
        unlocked = self._evaluate(event.timestamp, source_defer_id)

        for achievement in unlocked:
            logger.info("Achievement unlocked: %s", achievement.title)
            self.event_bus.publish(
                AchievementEvent(
                    type=EventType.ACHIEVEMENT_UNLOCKED,
                    timestamp=achievement.unlocked_at,
                    key=achievement.key,
                    title=achievement.title,
                    tier=achievement.tier.value,
                )
            )
        self._pending.extend(unlocked)

    def drain(self) -> List[Achievement]:
        """Return and forget achievements unlocked since the last drain."""
        pending, self._pending = self._pending, []
        return pending
