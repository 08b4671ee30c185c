"""
DeferLifecycleManager for DeferItem state changes and list queries.

Handles:
- Creating items from validated drafts
- Daily check-ins, pause, fail and postpone
- Strict-mode enforcement and auto-completion of overdue items
- Resolution into CompletionHistory records
- Urge logging
- Pending-list filtering, sorting and home statistics
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence

from defer.constants import (
    CHECKPOINT_DUE_URGENCY,
    DEFAULT_DUE_SOON_DAYS,
    DEFAULT_RECENT_URGE_LIMIT,
    DEFAULT_URGE_INTENSITY,
    FALLBACK_URGE_INTENSITY,
    URGENCY_RECENT_URGE_WINDOW,
)
from defer.managers.events import DeferEvent, EventBus, EventType
from defer.models.draft import DeferDraft
from defer.models.enums import (
    DecisionOutcome,
    DeferCategory,
    DeferStatus,
    SortOption,
    StreakEntryStatus,
)
from defer.models.item import DeferItem, StreakRecord
from defer.models.protocol import DelayProtocol
from defer.models.records import CompletionHistory, UrgeLog
from defer.models.views import HomeStats
from defer.utils import resolve_now, start_of_day

logger = logging.getLogger(__name__)


class DeferLifecycleManager:
    """
    Applies lifecycle operations to caller-owned DeferItems.

    The manager holds no item collections of its own. Guarded operations
    (duplicate check-in, anything on a terminal item, invalid drafts)
    return None or False and publish nothing.
    """

    def __init__(
        self,
        event_bus: Optional[EventBus] = None,
        due_soon_days: int = DEFAULT_DUE_SOON_DAYS,
        history_callback: Optional[Callable[[CompletionHistory], None]] = None,
        urge_callback: Optional[Callable[[UrgeLog], None]] = None,
    ) -> None:
        """
        Initialize DeferLifecycleManager.

        Args:
            event_bus: Bus to publish lifecycle events on. Events are skipped when None.
            due_soon_days: Window used by home_stats for the due-soon count.
            history_callback: Called with each new CompletionHistory before its event is published.
            urge_callback: Called with each new UrgeLog before its event is published.
        """
        self.event_bus = event_bus
        self.due_soon_days = due_soon_days
        self.history_callback = history_callback
        self.urge_callback = urge_callback

    def _publish(self, event_type: EventType, item: Optional[DeferItem], now: datetime, **data) -> None:
        if self.event_bus is None:
            return
        event = DeferEvent(
            type=event_type,
            timestamp=now,
            data=data,
            item_uuid=item.uuid if item else None,
            item_title=item.title if item else "",
            category=item.category.value if item else "",
            status=item.status.value if item else "",
        )
        self.event_bus.publish(event)

    # =========================================================================
    # Lifecycle Operations
    # =========================================================================

    def create_item(self, draft: DeferDraft, now: Optional[datetime] = None) -> Optional[DeferItem]:
        """Create an active DeferItem from a draft.

        Returns:
            The new item, or None when the draft is not valid.
        """
        now = resolve_now(now)
        item = draft.make_item(now)
        if item is None:
            logger.debug("Draft %r rejected", draft.title)
            return None
        logger.debug("Created defer %s due %s", item.uuid, item.decision_date)
        self._publish(EventType.DEFER_CREATED, item, now)
        return item

    def check_in(
        self,
        item: DeferItem,
        status: StreakEntryStatus = StreakEntryStatus.SUCCESS,
        now: Optional[datetime] = None,
        note: Optional[str] = None,
    ) -> Optional[StreakRecord]:
        """Record today's check-in on an active item."""
        now = resolve_now(now)
        record = item.check_in(status, now, note)
        if record is not None:
            self._publish(EventType.DEFER_CHECKED_IN, item, now, streak_status=status.value)
            if item.status is DeferStatus.FAILED:
                self._publish(EventType.DEFER_CLOSED, item, now)
        return record

    def resolve(
        self,
        item: DeferItem,
        outcome: DecisionOutcome,
        now: Optional[datetime] = None,
        reflection: Optional[str] = None,
    ) -> Optional[CompletionHistory]:
        """Resolve an active item and build its CompletionHistory entry.

        Returns:
            The history record, or None when the item was already terminal.
        """
        now = resolve_now(now)
        if not item.resolve(outcome, now):
            return None
        history = CompletionHistory.from_item(item, outcome, now, reflection)
        logger.debug("Resolved defer %s as %s", item.uuid, outcome.value)
        if self.history_callback:
            self.history_callback(history)
        self._publish(EventType.DEFER_RESOLVED, item, now, outcome=outcome.value)
        return history

    def pause(self, item: DeferItem, now: Optional[datetime] = None) -> bool:
        now = resolve_now(now)
        if not item.pause(now):
            return False
        self._publish(EventType.DEFER_CLOSED, item, now)
        return True

    def fail(self, item: DeferItem, now: Optional[datetime] = None) -> bool:
        now = resolve_now(now)
        if not item.fail(now):
            return False
        self._publish(EventType.DEFER_CLOSED, item, now)
        return True

    def postpone(
        self, item: DeferItem, delay_protocol: DelayProtocol, now: Optional[datetime] = None
    ) -> bool:
        now = resolve_now(now)
        if not item.postpone(delay_protocol, now):
            return False
        self._publish(EventType.DEFER_POSTPONED, item, now, protocol=delay_protocol.type.value)
        return True

    def enforce_strict_mode(
        self, items: Sequence[DeferItem], now: Optional[datetime] = None
    ) -> List[DeferItem]:
        """Fail strict items that missed yesterday's check-in.

        Only items started before today and not yet past their decision day
        are checked.

        Returns:
            The items that were failed.
        """
        now = resolve_now(now)
        today = start_of_day(now)
        yesterday = today - timedelta(days=1)
        failed = []
        for item in items:
            if not (item.is_active and item.strict_mode):
                continue
            if start_of_day(item.start_date) > yesterday or item.decision_date < today:
                continue
            last = item.last_check_in
            if last is None or start_of_day(last) < yesterday:
                if self.fail(item, now):
                    logger.debug("Strict item %s missed its check-in", item.uuid)
                    failed.append(item)
        return failed

    def auto_complete_eligible(
        self, items: Sequence[DeferItem], now: Optional[datetime] = None
    ) -> List[CompletionHistory]:
        """Resolve every overdue item as intentional: the full wait was honored."""
        now = resolve_now(now)
        completed = []
        for item in self.overdue_items(items, now):
            history = self.resolve(item, DecisionOutcome.INTENTIONAL, now)
            if history is not None:
                completed.append(history)
        return completed

    def log_urge(
        self,
        item: Optional[DeferItem] = None,
        intensity: int = DEFAULT_URGE_INTENSITY,
        note: Optional[str] = None,
        used_fallback_action: bool = False,
        now: Optional[datetime] = None,
    ) -> UrgeLog:
        """Record an urge, optionally against a DeferItem."""
        now = resolve_now(now)
        log = UrgeLog(
            defer_id=item.uuid if item else None,
            logged_at=now,
            intensity=intensity,
            note=note,
            used_fallback_action=used_fallback_action,
        )
        if self.urge_callback:
            self.urge_callback(log)
        self._publish(EventType.URGE_LOGGED, item, now, intensity=log.intensity)
        return log

    def use_fallback(self, item: DeferItem, now: Optional[datetime] = None) -> UrgeLog:
        """Log an urge that was handled with the item's fallback action."""
        if item.fallback_action:
            note = f"Used fallback: {item.fallback_action}"
        else:
            note = "Used fallback action"
        return self.log_urge(item, FALLBACK_URGE_INTENSITY, note, True, now)

    # =========================================================================
    # Queries
    # =========================================================================

    def urgency_score(
        self, item: DeferItem, urges: Sequence[UrgeLog] = (), now: Optional[datetime] = None
    ) -> float:
        """Higher is more urgent. Due checkpoints always rank first."""
        now = resolve_now(now)
        if item.is_checkpoint_due(now):
            return CHECKPOINT_DUE_URGENCY
        hours_left = max(1, item.hours_remaining(now))
        own_urges = sorted(
            (log for log in urges if log.defer_id == item.uuid), key=lambda log: log.logged_at
        )
        urge_bias = sum(log.intensity for log in own_urges[-URGENCY_RECENT_URGE_WINDOW:])
        return 100.0 / hours_left + urge_bias

    def pending_items(
        self,
        items: Sequence[DeferItem],
        category: Optional[DeferCategory] = None,
        sort: SortOption = SortOption.SOONEST,
        urges: Sequence[UrgeLog] = (),
        now: Optional[datetime] = None,
    ) -> List[DeferItem]:
        """Active items, optionally limited to one category, in ``sort`` order."""
        now = resolve_now(now)
        pending = [item for item in items if item.is_active]
        if category is not None:
            pending = [item for item in pending if item.category is category]

        if sort is SortOption.SOONEST:
            pending.sort(key=lambda item: (not item.is_checkpoint_due(now), item.decision_date))
        elif sort is SortOption.MOST_URGENT:
            pending.sort(
                key=lambda item: (-self.urgency_score(item, urges, now), item.decision_date)
            )
        else:
            pending.sort(key=lambda item: item.created_at, reverse=True)
        return pending

    def overdue_items(
        self, items: Sequence[DeferItem], now: Optional[datetime] = None
    ) -> List[DeferItem]:
        """Active items whose decision date fell before today, oldest first."""
        today = start_of_day(resolve_now(now))
        overdue = [item for item in items if item.is_active and item.decision_date < today]
        return sorted(overdue, key=lambda item: item.decision_date)

    def needs_decision_now(
        self, items: Sequence[DeferItem], now: Optional[datetime] = None
    ) -> List[DeferItem]:
        now = resolve_now(now)
        return [item for item in self.pending_items(items, now=now) if item.is_checkpoint_due(now)]

    def in_delay_window(
        self, items: Sequence[DeferItem], now: Optional[datetime] = None
    ) -> List[DeferItem]:
        now = resolve_now(now)
        return [
            item for item in self.pending_items(items, now=now) if not item.is_checkpoint_due(now)
        ]

    def home_stats(self, items: Sequence[DeferItem], now: Optional[datetime] = None) -> HomeStats:
        """Active count, best streak and the number of items due soon."""
        now = resolve_now(now)
        active = [item for item in items if item.is_active]
        today = start_of_day(now)
        horizon = today + timedelta(days=self.due_soon_days)
        return HomeStats(
            active=len(active),
            longest_streak=max((item.longest_streak() for item in items), default=0),
            due_soon=sum(1 for item in active if today <= item.decision_date <= horizon),
        )

    def recent_urges(
        self, urges: Sequence[UrgeLog], limit: int = DEFAULT_RECENT_URGE_LIMIT
    ) -> List[UrgeLog]:
        ordered = sorted(urges, key=lambda log: log.logged_at, reverse=True)
        return ordered[: max(0, limit)]
