"""
Immutable records produced by the Defer lifecycle.

- CompletionHistory: one per resolved DeferItem
- UrgeLog: a standalone impulse event
- Achievement: an unlocked badge
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from defer.constants import URGE_INTENSITY_MAX, URGE_INTENSITY_MIN
from defer.models.enums import (
    AchievementTier,
    DecisionOutcome,
    DeferCategory,
    DelayProtocolType,
)
from defer.models.item import DeferItem
from defer.utils import calendar_days_between, resolve_now


class CompletionHistory(BaseModel):
    """Record of a resolved DeferItem. Never mutated after creation."""

    model_config = ConfigDict(frozen=True)

    uuid: str = Field(default_factory=lambda: str(uuid.uuid4()))
    defer_id: str
    defer_title: str
    category: DeferCategory
    outcome: DecisionOutcome
    protocol_type: DelayProtocolType = DelayProtocolType.TWENTY_FOUR_HOURS
    protocol_duration_hours: int = 24
    start_date: datetime
    target_date: datetime
    completed_at: datetime
    duration_days: int = 1
    was_after_checkpoint: bool = True
    reflection: Optional[str] = None
    estimated_cost: Optional[float] = Field(default=None, ge=0)

    @property
    def is_intentional(self) -> bool:
        return self.outcome is DecisionOutcome.INTENTIONAL

    @property
    def has_reflection(self) -> bool:
        return bool(self.reflection and self.reflection.strip())

    @classmethod
    def from_item(
        cls,
        item: DeferItem,
        outcome: DecisionOutcome,
        completed_at: Optional[datetime] = None,
        reflection: Optional[str] = None,
    ) -> "CompletionHistory":
        """Build the history entry for an item resolved with ``outcome``."""
        completed_at = resolve_now(completed_at)
        target_date = item.decision_date
        return cls(
            defer_id=item.uuid,
            defer_title=item.title,
            category=item.category,
            outcome=outcome,
            protocol_type=item.delay_protocol.type,
            protocol_duration_hours=item.delay_protocol.duration_hours(item.start_date),
            start_date=item.start_date,
            target_date=target_date,
            completed_at=completed_at,
            duration_days=max(1, calendar_days_between(item.start_date, completed_at)),
            was_after_checkpoint=completed_at >= target_date,
            reflection=reflection.strip() if reflection and reflection.strip() else None,
            estimated_cost=item.estimated_cost,
        )


class UrgeLog(BaseModel):
    """An urge or impulse event, optionally tied to a DeferItem."""

    model_config = ConfigDict(frozen=True)

    uuid: str = Field(default_factory=lambda: str(uuid.uuid4()))
    defer_id: Optional[str] = None
    logged_at: datetime = Field(default_factory=datetime.now)
    intensity: int = 3
    note: Optional[str] = None
    used_fallback_action: bool = False

    @field_validator("intensity", mode="before")
    @classmethod
    def clamp_intensity(cls, v) -> int:
        """Clamp intensity into the 1..5 scale."""
        return max(URGE_INTENSITY_MIN, min(int(v), URGE_INTENSITY_MAX))


class Achievement(BaseModel):
    """An unlocked achievement. The unlock timestamp is never rewritten."""

    model_config = ConfigDict(frozen=True)

    uuid: str = Field(default_factory=lambda: str(uuid.uuid4()))
    key: str
    title: str
    details: str
    tier: AchievementTier
    unlocked_at: datetime
    source_defer_id: Optional[str] = None
