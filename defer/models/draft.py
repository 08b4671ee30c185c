"""
DeferDraft - the pre-commit shape of a DeferItem.

Owned by the creation flow: filled from user input or a template,
checked with ``is_valid`` and converted with ``make_item``.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from defer.models.enums import DeferCategory
from defer.models.item import DeferItem
from defer.models.protocol import DelayProtocol
from defer.models.templates import DeferTemplate
from defer.utils import parse_estimated_cost, resolve_now, start_of_day


class DeferDraft(BaseModel):
    """Editable form state for a new defer."""

    title: str = ""
    why_it_matters: str = ""
    category: DeferCategory = DeferCategory.CUSTOM
    start_date: datetime = Field(default_factory=datetime.now)
    delay_protocol: DelayProtocol = Field(default_factory=DelayProtocol)
    estimated_cost: Optional[float] = Field(default=None, ge=0)
    fallback_action: str = ""
    strict_mode: bool = False

    @property
    def normalized_title(self) -> str:
        return self.title.strip()

    @property
    def normalized_why(self) -> str:
        return self.why_it_matters.strip()

    @property
    def decision_date(self) -> datetime:
        return self.delay_protocol.decision_date(self.start_date)

    @property
    def is_date_range_invalid(self) -> bool:
        return self.decision_date <= self.start_date

    @property
    def is_valid(self) -> bool:
        """A draft needs a non-blank title and a decision date after its start."""
        return bool(self.normalized_title) and not self.is_date_range_invalid

    def set_estimated_cost_text(self, text: Optional[str]) -> None:
        self.estimated_cost = parse_estimated_cost(text)

    def apply_template(
        self,
        template: DeferTemplate,
        now: Optional[datetime] = None,
        start_date: Optional[datetime] = None,
    ) -> "DeferDraft":
        """Overwrite the draft with a template's values.

        The start date snaps to the start of today unless ``start_date`` is
        given, and custom-date templates are measured from that start. A
        template without a suggested cost leaves the current estimate untouched.
        """
        anchor = start_date if start_date is not None else start_of_day(resolve_now(now))
        self.title = template.title
        self.why_it_matters = template.why_it_matters
        self.fallback_action = template.fallback_action
        if template.suggested_cost is not None:
            self.estimated_cost = template.suggested_cost
        self.category = template.category
        self.start_date = anchor
        self.delay_protocol = template.delay_protocol(anchor)
        return self

    def make_item(self, now: Optional[datetime] = None) -> Optional[DeferItem]:
        """Convert to an active DeferItem, or None if the draft is invalid."""
        if not self.is_valid:
            return None
        now = resolve_now(now)
        return DeferItem(
            title=self.normalized_title,
            why_it_matters=self.normalized_why,
            category=self.category,
            start_date=self.start_date,
            delay_protocol=self.delay_protocol,
            estimated_cost=self.estimated_cost,
            fallback_action=self.fallback_action.strip(),
            strict_mode=self.strict_mode,
            created_at=now,
            updated_at=now,
        )
