"""
Predefined defer templates, two per category.

The catalog is a read-only module-level mapping.
"""

from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from defer.models.enums import DeferCategory, DelayProtocolType
from defer.models.protocol import DelayProtocol


class DeferTemplate(BaseModel):
    """Pre-filled values for a new draft."""

    model_config = ConfigDict(frozen=True)

    id: str
    category: DeferCategory
    title: str
    why_it_matters: str
    protocol_type: DelayProtocolType
    duration_hours: int
    fallback_action: str
    suggested_cost: Optional[float] = None

    def delay_protocol(self, start_date: datetime) -> DelayProtocol:
        """Protocol for a draft starting at ``start_date``."""
        if self.protocol_type is DelayProtocolType.CUSTOM_DATE:
            return DelayProtocol.custom(start_date + timedelta(hours=self.duration_hours))
        return DelayProtocol(type=self.protocol_type)


def _template(category, id, title, why, protocol_type, hours, fallback, cost=None):
    return DeferTemplate(
        id=id,
        category=category,
        title=title,
        why_it_matters=why,
        protocol_type=protocol_type,
        duration_hours=hours,
        fallback_action=fallback,
        suggested_cost=cost,
    )


_C = DeferCategory
_P = DelayProtocolType

TEMPLATE_CATALOG: Mapping[DeferCategory, Tuple[DeferTemplate, ...]] = MappingProxyType({
    _C.HEALTH: (
        _template(_C.HEALTH, "health-late-snack", "Late-night snack urge",
                  "I sleep and recover better when I pause this urge.",
                  _P.TEN_MINUTES, 1, "Drink water and take a short walk."),
        _template(_C.HEALTH, "health-rest-day", "Skip workout today",
                  "I want consistency over convenience.",
                  _P.TWENTY_FOUR_HOURS, 24, "Do 5 minutes of stretching instead."),
    ),
    _C.SPENDING: (
        _template(_C.SPENDING, "spending-24h-purchase", "Impulse purchase",
                  "I want purchases to match my priorities, not moods.",
                  _P.TWENTY_FOUR_HOURS, 24, "Add item to wishlist and review tomorrow.", 40),
        _template(_C.SPENDING, "spending-payday", "Non-essential purchase",
                  "I only buy this if I still want it on payday.",
                  _P.UNTIL_PAYDAY, 24 * 14, "Compare alternatives before deciding.", 120),
    ),
    _C.NUTRITION: (
        _template(_C.NUTRITION, "nutrition-dessert", "Dessert craving",
                  "I feel better when I avoid reactive sugar choices.",
                  _P.TEN_MINUTES, 1, "Eat fruit or tea first."),
        _template(_C.NUTRITION, "nutrition-order-out", "Order takeout urge",
                  "I want food decisions to support energy tomorrow.",
                  _P.TWENTY_FOUR_HOURS, 24, "Cook one simple backup meal.", 25),
    ),
    _C.HABIT: (
        _template(_C.HABIT, "habit-social-scroll", "Open social apps",
                  "I protect focused time before entertainment.",
                  _P.TEN_MINUTES, 1, "Read one saved article instead."),
        _template(_C.HABIT, "habit-binge", "Start another episode",
                  "I want better sleep and next-day clarity.",
                  _P.SEVENTY_TWO_HOURS, 72, "Set a 5-minute wind-down timer."),
    ),
    _C.RELATIONSHIP: (
        _template(_C.RELATIONSHIP, "relationship-reactive-message", "Send reactive message",
                  "I communicate better when I respond, not react.",
                  _P.TEN_MINUTES, 1, "Draft the message and revisit after breathing."),
        _template(_C.RELATIONSHIP, "relationship-big-decision", "Make emotional decision",
                  "I want to make this choice from clarity.",
                  _P.TWENTY_FOUR_HOURS, 24, "Talk it through with a trusted person."),
    ),
    _C.PRODUCTIVITY: (
        _template(_C.PRODUCTIVITY, "productivity-context-switch", "Switch tasks impulsively",
                  "I finish more when I delay distractions.",
                  _P.TEN_MINUTES, 1, "Write next step for current task first."),
        _template(_C.PRODUCTIVITY, "productivity-new-tool", "Buy a new productivity tool",
                  "I choose tools intentionally, not from FOMO.",
                  _P.SEVENTY_TWO_HOURS, 72, "Audit current workflow gaps first.", 60),
    ),
    _C.CUSTOM: (
        _template(_C.CUSTOM, "custom-short-delay", "Short pause intent",
                  "I want one structured pause before deciding.",
                  _P.TWENTY_FOUR_HOURS, 24, "Capture the urge and revisit at checkpoint."),
        _template(_C.CUSTOM, "custom-long-delay", "Longer decision horizon",
                  "I need distance to choose what matters most.",
                  _P.CUSTOM_DATE, 24 * 7, "Set one reminder and do nothing else for now."),
    ),
})


def templates_for(category: DeferCategory) -> Tuple[DeferTemplate, ...]:
    return TEMPLATE_CATALOG.get(category, ())


def all_templates() -> Tuple[DeferTemplate, ...]:
    """Every template, in category catalog order."""
    return tuple(t for category in DeferCategory for t in templates_for(category))


def template_by_id(template_id: str) -> Optional[DeferTemplate]:
    for template in all_templates():
        if template.id == template_id:
            return template
    return None
