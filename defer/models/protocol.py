"""
DelayProtocol value object.

Computes when a deferred decision becomes due.
"""

from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict

from defer.constants import (
    CUSTOM_FALLBACK_HOURS,
    PAYDAY_DAYS,
    PAYDAY_HOUR,
    TEN_MINUTES_SECONDS,
    UNTIL_PAYDAY_NOMINAL_HOURS,
)
from defer.models.enums import DelayProtocolType
from defer.utils import add_months, month_start

FIXED_DURATIONS = {
    DelayProtocolType.TEN_MINUTES: timedelta(seconds=TEN_MINUTES_SECONDS),
    DelayProtocolType.TWENTY_FOUR_HOURS: timedelta(hours=24),
    DelayProtocolType.SEVENTY_TWO_HOURS: timedelta(hours=72),
}

# Nominal durations recorded alongside history entries.
NOMINAL_HOURS = {
    DelayProtocolType.TEN_MINUTES: 1,
    DelayProtocolType.TWENTY_FOUR_HOURS: 24,
    DelayProtocolType.SEVENTY_TWO_HOURS: 72,
    DelayProtocolType.UNTIL_PAYDAY: UNTIL_PAYDAY_NOMINAL_HOURS,
}


def next_payday(after: datetime) -> datetime:
    """Return the next payday strictly after ``after``.

    Paydays fall on the 15th and on the 1st of each month at 09:00.
    """
    mid_month, first_of_month = PAYDAY_DAYS
    if after.day < mid_month:
        this_month = after.replace(
            day=mid_month, hour=PAYDAY_HOUR, minute=0, second=0, microsecond=0
        )
        if this_month > after:
            return this_month

    next_month = add_months(month_start(after), 1)
    candidate = datetime(
        next_month.year, next_month.month, first_of_month, PAYDAY_HOUR
    )
    if candidate > after:
        return candidate
    return after + timedelta(hours=24)


class DelayProtocol(BaseModel):
    """
    Cooling-off rule attached to a DeferItem.

    Fixed variants add a constant offset to the start date. The custom
    variant returns its stored date verbatim; callers validate that it
    lies after the start date.
    """

    model_config = ConfigDict(frozen=True)

    type: DelayProtocolType = DelayProtocolType.TWENTY_FOUR_HOURS
    custom_date: Optional[datetime] = None

    @classmethod
    def custom(cls, custom_date: datetime) -> "DelayProtocol":
        return cls(type=DelayProtocolType.CUSTOM_DATE, custom_date=custom_date)

    @property
    def is_fixed(self) -> bool:
        return self.type in FIXED_DURATIONS

    def decision_date(self, start_date: datetime) -> datetime:
        """Compute the decision date for a waiting period starting at ``start_date``."""
        if self.is_fixed:
            return start_date + FIXED_DURATIONS[self.type]
        if self.type is DelayProtocolType.UNTIL_PAYDAY:
            return next_payday(start_date)
        if self.custom_date is None:
            return start_date + timedelta(hours=CUSTOM_FALLBACK_HOURS)
        return self.custom_date

    def duration_hours(self, start_date: datetime) -> int:
        """Nominal length of the protocol in whole hours, at least 1."""
        if self.type in NOMINAL_HOURS:
            return NOMINAL_HOURS[self.type]
        span = self.decision_date(start_date) - start_date
        return max(1, int(span.total_seconds() // 3600))

    def describe(self) -> str:
        if self.type is DelayProtocolType.CUSTOM_DATE and self.custom_date:
            return f"Until {self.custom_date.strftime('%Y-%m-%d %H:%M')}"
        return self.type.display_name
