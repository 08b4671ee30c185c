"""
DeferItem and StreakRecord models.

A DeferItem is one deferred decision. It starts active, collects at most
one StreakRecord per calendar day while waiting, and ends in exactly one
terminal status. Guarded operations return a falsy value instead of raising
when the transition table does not allow them.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from defer.constants import FAILED_RECORD_NOTE, PAUSED_RECORD_NOTE, VALIDATION_DATE_RANGE
from defer.models.enums import (
    DecisionOutcome,
    DeferCategory,
    DeferStatus,
    StreakEntryStatus,
)
from defer.models.protocol import DelayProtocol
from defer.utils import calendar_days_between, is_same_day, resolve_now

logger = logging.getLogger(__name__)


class StreakRecord(BaseModel):
    """One daily check-in during the waiting period."""

    uuid: str = Field(default_factory=lambda: str(uuid.uuid4()))
    date: datetime
    status: StreakEntryStatus
    note: Optional[str] = None


class DeferItem(BaseModel):
    """
    A single deferred decision.

    Fields:
    - uuid: Unique identifier
    - title / why_it_matters: What is being deferred and why
    - category: DeferCategory
    - start_date + delay_protocol: Determine decision_date
    - estimated_cost: Optional, never negative
    - fallback_action: What to do instead when the urge hits
    - strict_mode: Daily check-ins are required; a failed or missed day fails the item
    - status: DeferStatus, changed only through the lifecycle methods
    - streak_records: Check-ins in the order they were made
    """

    uuid: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    why_it_matters: str = ""
    category: DeferCategory = DeferCategory.CUSTOM
    start_date: datetime
    delay_protocol: DelayProtocol = Field(default_factory=DelayProtocol)
    estimated_cost: Optional[float] = Field(default=None, ge=0)
    fallback_action: str = ""
    strict_mode: bool = False
    status: DeferStatus = DeferStatus.ACTIVE
    streak_records: List[StreakRecord] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @model_validator(mode="after")
    def validate_date_range(self) -> "DeferItem":
        """Decision date must be strictly after the start date."""
        if self.decision_date <= self.start_date:
            raise ValueError(VALIDATION_DATE_RANGE)
        return self

    # =========================================================================
    # Derived values
    # =========================================================================

    @property
    def decision_date(self) -> datetime:
        return self.delay_protocol.decision_date(self.start_date)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_active(self) -> bool:
        return self.status is DeferStatus.ACTIVE

    @property
    def outcome(self) -> Optional[DecisionOutcome]:
        return DecisionOutcome.from_status(self.status)

    def progress_percent(self, now: Optional[datetime] = None) -> float:
        """Fraction of the waiting period that has elapsed, clamped to [0, 1]."""
        if self.is_terminal:
            return 1.0
        now = resolve_now(now)
        total = (self.decision_date - self.start_date).total_seconds()
        if total <= 0:
            return 1.0
        elapsed = (now - self.start_date).total_seconds()
        return min(max(elapsed / total, 0.0), 1.0)

    def days_remaining(self, now: Optional[datetime] = None) -> int:
        """Calendar days until the decision day, never negative."""
        return max(0, calendar_days_between(resolve_now(now), self.decision_date))

    def hours_remaining(self, now: Optional[datetime] = None) -> int:
        remaining = self.decision_date - resolve_now(now)
        return max(0, int(remaining.total_seconds() // 3600))

    def is_checkpoint_due(self, now: Optional[datetime] = None) -> bool:
        return self.is_active and resolve_now(now) >= self.decision_date

    def has_checked_in(self, now: Optional[datetime] = None) -> bool:
        """True if a check-in exists for the calendar day of ``now``."""
        now = resolve_now(now)
        return any(is_same_day(record.date, now) for record in self.streak_records)

    @property
    def last_check_in(self) -> Optional[datetime]:
        """Date of the most recent successful check-in, if any."""
        return max(
            (record.date for record in self.streak_records if record.status is StreakEntryStatus.SUCCESS),
            default=None,
        )

    def _count(self, status: StreakEntryStatus) -> int:
        return sum(1 for record in self.streak_records if record.status is status)

    @property
    def success_count(self) -> int:
        return self._count(StreakEntryStatus.SUCCESS)

    @property
    def skipped_count(self) -> int:
        return self._count(StreakEntryStatus.SKIPPED)

    @property
    def failed_count(self) -> int:
        return self._count(StreakEntryStatus.FAILED)

    def longest_streak(self) -> int:
        """Longest run of consecutive calendar days with a successful check-in."""
        days = sorted(
            {
                record.date.date()
                for record in self.streak_records
                if record.status is StreakEntryStatus.SUCCESS
            }
        )
        best = 0
        current = 0
        previous = None
        for day in days:
            if previous is not None and day - previous == timedelta(days=1):
                current += 1
            else:
                current = 1
            best = max(best, current)
            previous = day
        return best

    # =========================================================================
    # Lifecycle operations
    # =========================================================================

    def check_in(
        self,
        status: StreakEntryStatus = StreakEntryStatus.SUCCESS,
        now: Optional[datetime] = None,
        note: Optional[str] = None,
    ) -> Optional[StreakRecord]:
        """Record today's check-in.

        A failed check-in on a strict item also fails the item.

        Returns:
            The new StreakRecord, or None when the item is terminal or has
            already been checked in today.
        """
        now = resolve_now(now)
        if not self.is_active:
            logger.debug("Ignoring check-in on %s item %s", self.status.value, self.uuid)
            return None
        if self.has_checked_in(now):
            logger.debug("Item %s already checked in on %s", self.uuid, now.date())
            return None

        record = StreakRecord(date=now, status=status, note=note)
        self.streak_records.append(record)
        self.updated_at = now
        if self.strict_mode and status is StreakEntryStatus.FAILED:
            logger.debug("Strict item %s failed by its check-in", self.uuid)
            self._transition(DeferStatus.FAILED, now)
        return record

    def _transition(self, target: DeferStatus, now: Optional[datetime]) -> bool:
        if not self.status.can_transition_to(target):
            logger.debug(
                "Rejected transition %s -> %s for item %s",
                self.status.value, target.value, self.uuid,
            )
            return False
        self.status = target
        self.updated_at = resolve_now(now)
        return True

    def resolve(self, outcome: DecisionOutcome, now: Optional[datetime] = None) -> bool:
        """Record the final decision. Only allowed while active."""
        return self._transition(outcome.status, now)

    def _close(
        self, target: DeferStatus, record_status: StreakEntryStatus, note: str, now: Optional[datetime]
    ) -> bool:
        now = resolve_now(now)
        if not self._transition(target, now):
            return False
        # A day that already has a check-in keeps it as its only record
        if not self.has_checked_in(now):
            self.streak_records.append(StreakRecord(date=now, status=record_status, note=note))
        return True

    def pause(self, now: Optional[datetime] = None) -> bool:
        """Abandon the defer without a decision, leaving a skipped record for the day."""
        return self._close(DeferStatus.SKIPPED, StreakEntryStatus.SKIPPED, PAUSED_RECORD_NOTE, now)

    def fail(self, now: Optional[datetime] = None) -> bool:
        """Mark the defer as broken, leaving a failed record for the day."""
        return self._close(DeferStatus.FAILED, StreakEntryStatus.FAILED, FAILED_RECORD_NOTE, now)

    def postpone(self, delay_protocol: DelayProtocol, now: Optional[datetime] = None) -> bool:
        """Restart the waiting period at ``now`` under a new protocol.

        Returns False when the item is terminal or the new protocol would
        not put the decision date after ``now``.
        """
        now = resolve_now(now)
        if not self.is_active:
            return False
        if delay_protocol.decision_date(now) <= now:
            return False
        self.start_date = now
        self.delay_protocol = delay_protocol
        self.updated_at = now
        return True
