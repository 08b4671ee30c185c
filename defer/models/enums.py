"""
Enumerations shared by the Defer models.

Declaration order is meaningful: it is the catalog order used for
stable sorting and display.
"""

from enum import Enum
from typing import Dict, FrozenSet, List, Optional


class DeferCategory(str, Enum):
    """Life area a deferred decision belongs to."""

    HEALTH = "health"
    SPENDING = "spending"
    NUTRITION = "nutrition"
    HABIT = "habit"
    RELATIONSHIP = "relationship"
    PRODUCTIVITY = "productivity"
    CUSTOM = "custom"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def ordered(cls) -> List["DeferCategory"]:
        """Categories in catalog order."""
        return list(cls)

    @property
    def catalog_index(self) -> int:
        return list(type(self)).index(self)


class DeferStatus(str, Enum):
    """Lifecycle status of a DeferItem."""

    ACTIVE = "active"
    COMPLETED_INTENTIONALLY = "completed_intentionally"
    COMPLETED_IMPULSIVELY = "completed_impulsively"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def display_name(self) -> str:
        return _STATUS_DISPLAY_NAMES[self]

    @property
    def is_terminal(self) -> bool:
        return self is not DeferStatus.ACTIVE

    def can_transition_to(self, target: "DeferStatus") -> bool:
        """Check the allowed-transition table."""
        return target in ALLOWED_TRANSITIONS[self]


_STATUS_DISPLAY_NAMES = {
    DeferStatus.ACTIVE: "Active",
    DeferStatus.COMPLETED_INTENTIONALLY: "Intentional",
    DeferStatus.COMPLETED_IMPULSIVELY: "Impulsive",
    DeferStatus.FAILED: "Failed",
    DeferStatus.SKIPPED: "Skipped",
}

# Terminal states have no outgoing edges.
ALLOWED_TRANSITIONS: Dict[DeferStatus, FrozenSet[DeferStatus]] = {
    DeferStatus.ACTIVE: frozenset(
        {
            DeferStatus.COMPLETED_INTENTIONALLY,
            DeferStatus.COMPLETED_IMPULSIVELY,
            DeferStatus.FAILED,
            DeferStatus.SKIPPED,
        }
    ),
    DeferStatus.COMPLETED_INTENTIONALLY: frozenset(),
    DeferStatus.COMPLETED_IMPULSIVELY: frozenset(),
    DeferStatus.FAILED: frozenset(),
    DeferStatus.SKIPPED: frozenset(),
}


class StreakEntryStatus(str, Enum):
    """Outcome of a single daily check-in."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


class DecisionOutcome(str, Enum):
    """Final decision recorded when a defer is resolved."""

    INTENTIONAL = "intentional"
    IMPULSIVE = "impulsive"

    @property
    def status(self) -> DeferStatus:
        """The terminal DeferStatus this outcome resolves to."""
        if self is DecisionOutcome.INTENTIONAL:
            return DeferStatus.COMPLETED_INTENTIONALLY
        return DeferStatus.COMPLETED_IMPULSIVELY

    @classmethod
    def from_status(cls, status: DeferStatus) -> Optional["DecisionOutcome"]:
        for outcome in cls:
            if outcome.status is status:
                return outcome
        return None


class DelayProtocolType(str, Enum):
    """Cooling-off rule variants."""

    TEN_MINUTES = "ten_minutes"
    TWENTY_FOUR_HOURS = "twenty_four_hours"
    SEVENTY_TWO_HOURS = "seventy_two_hours"
    UNTIL_PAYDAY = "until_payday"
    CUSTOM_DATE = "custom_date"

    @property
    def display_name(self) -> str:
        return _PROTOCOL_DISPLAY_NAMES[self]


_PROTOCOL_DISPLAY_NAMES = {
    DelayProtocolType.TEN_MINUTES: "10 minutes",
    DelayProtocolType.TWENTY_FOUR_HOURS: "24 hours",
    DelayProtocolType.SEVENTY_TWO_HOURS: "72 hours",
    DelayProtocolType.UNTIL_PAYDAY: "Until payday",
    DelayProtocolType.CUSTOM_DATE: "Custom date",
}


class AchievementTier(str, Enum):
    """Badge rarity."""

    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    LEGEND = "legend"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class SortOption(str, Enum):
    """Orderings for the pending-item list."""

    SOONEST = "soonest"
    MOST_URGENT = "most-urgent"
    NEWEST = "newest"
