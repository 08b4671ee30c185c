"""
DeferCore - Core business logic for the Defer CLI using .defer/ storage.

Orchestrates manager classes for all business operations.
Uses StorageManager for .defer/ folder-based storage exclusively.
Uses an EventBus per instance for decoupled achievement evaluation.
"""

import csv
import io
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from defer.constants import (
    DEFAULT_CATEGORY,
    DEFAULT_DATE_FORMATS,
    DEFAULT_DUE_SOON_DAYS,
    DEFAULT_PERCENTAGE_ROUND_PRECISION,
    DEFAULT_RECENT_URGE_LIMIT,
    DEFAULT_RETENTION_POLICY,
    DEFAULT_URGE_INTENSITY,
    RETENTION_ARCHIVE,
    VALID_RETENTION_POLICIES,
    VALIDATION_DATE_RANGE,
    VALIDATION_TITLE_REQUIRED,
    ConfigManager,
)
from defer.exceptions import (
    ConfigurationError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from defer.managers import (
    AchievementEngine,
    AchievementListener,
    DeferLifecycleManager,
    EventBus,
    HistoryAggregator,
    StorageManager,
)
from defer.models.achievements import definition_for
from defer.models.draft import DeferDraft
from defer.models.enums import (
    DecisionOutcome,
    DeferCategory,
    SortOption,
    StreakEntryStatus,
)
from defer.models.files import ConfigFile
from defer.models.item import DeferItem, StreakRecord
from defer.models.protocol import DelayProtocol
from defer.models.records import Achievement, CompletionHistory, UrgeLog
from defer.models.templates import template_by_id
from defer.models.views import (
    AchievementSnapshot,
    HistoryCategoryStat,
    HistoryMonthStat,
    HistorySummaryMetrics,
    HistoryTimelineGroup,
    HomeStats,
)

logger = logging.getLogger(__name__)


class DeferCore:
    """
    Core class for business logic operations backed by a .defer/ directory.

    Orchestrates manager classes:
    - StorageManager: Persistence to .defer/ folder
    - ConfigManager: Runtime settings from .defer/config.json
    - DeferLifecycleManager: Create, check in, resolve and close items
    - HistoryAggregator: Decision analytics
    - AchievementEngine: Badge evaluation
    - EventBus: Event-driven communication
    - AchievementListener: Evaluate achievements after lifecycle events
    """

    def __init__(
        self,
        defer_dir: Optional[Path] = None,
        clock: Callable[[], datetime] = datetime.now,
        achievements_enabled: bool = True,
    ):
        """
        Initialize the DeferCore with a .defer/ directory.

        Args:
            defer_dir: Path to .defer/ directory. Defaults to .defer/ in current directory.
            clock: Callable returning the current time.
            achievements_enabled: Whether lifecycle events unlock achievements.
        """
        self.clock = clock
        self.storage = StorageManager(defer_dir)
        self.config = ConfigManager(defer_dir=self.storage.defer_dir)

        # Load data from storage
        self.defers_file = self.storage.load_defers()
        self.archive_file = self.storage.load_archived_defers()
        self.history_file = self.storage.load_history()
        self.urges_file = self.storage.load_urges()
        self.achievements_file = self.storage.load_achievements()

        # Set up event-driven architecture
        self.event_bus = EventBus()

        # Initialize managers
        self.lifecycle = DeferLifecycleManager(
            self.event_bus,
            due_soon_days=self.config.get_int("due_soon_days", DEFAULT_DUE_SOON_DAYS),
            history_callback=self._record_history,
            urge_callback=self._record_urge,
        )
        self.history = HistoryAggregator()
        self.achievement_engine = AchievementEngine()

        self.achievement_listener = AchievementListener(
            self._evaluate_achievements,
            self.event_bus,
            enabled=achievements_enabled,
        )
        self.event_bus.subscribe(self.achievement_listener)

    # =========================================================================
    # Persistence helpers
    # =========================================================================

    @property
    def defers(self) -> List[DeferItem]:
        return self.defers_file.defers

    @property
    def archived_defers(self) -> List[DeferItem]:
        return self.archive_file.defers

    @property
    def completions(self) -> List[CompletionHistory]:
        return self.history_file.completions

    @property
    def urges(self) -> List[UrgeLog]:
        return self.urges_file.urges

    @property
    def achievements(self) -> List[Achievement]:
        return self.achievements_file.achievements

    @property
    def retention_policy(self) -> str:
        policy = self.config.get_str("retention_policy", DEFAULT_RETENTION_POLICY)
        return policy if policy in VALID_RETENTION_POLICIES else DEFAULT_RETENTION_POLICY

    def all_defers(self) -> List[DeferItem]:
        """Active-store and archived items together."""
        return self.defers + self.archived_defers

    def _save_defers(self) -> None:
        self.storage.save_defers(self.defers_file)

    def _record_history(self, record: CompletionHistory) -> None:
        self.completions.append(record)
        self.storage.save_history(self.history_file)

    def _record_urge(self, log: UrgeLog) -> None:
        self.urges.append(log)
        self.storage.save_urges(self.urges_file)

    def _evaluate_achievements(
        self, now: datetime, source_defer_id: Optional[str] = None
    ) -> List[Achievement]:
        """Evaluate the catalog and persist anything newly unlocked."""
        unlocked = self.achievement_engine.evaluate(
            self.all_defers(),
            self.completions,
            self.urges,
            self.achievements,
            now=now,
            source_defer_id=source_defer_id,
        )
        if unlocked:
            self.achievements.extend(unlocked)
            self.storage.save_achievements(self.achievements_file)
        return unlocked

    def _apply_retention(self, item: DeferItem) -> None:
        if self.retention_policy != RETENTION_ARCHIVE:
            return
        self.defers.remove(item)
        self.archived_defers.append(item)
        self.storage.save_archived_defers(self.archive_file)
        logger.debug("Archived defer %s", item.uuid)

    # =========================================================================
    # Items
    # =========================================================================

    def get_item(self, identifier: str, include_archived: bool = False) -> DeferItem:
        """Find an item by full UUID or unique UUID prefix.

        Raises:
            NotFoundError: If no item matches.
            ValidationError: If the prefix matches more than one item.
        """
        pool = self.all_defers() if include_archived else self.defers
        for item in pool:
            if item.uuid == identifier:
                return item

        matches = [item for item in pool if identifier and item.uuid.startswith(identifier)]
        if not matches:
            raise NotFoundError(f"Defer '{identifier}' not found.")
        if len(matches) > 1:
            raise ValidationError(
                f"Identifier '{identifier}' matches {len(matches)} defers. Use more characters."
            )
        return matches[0]

    @property
    def default_category(self) -> DeferCategory:
        value = self.config.get_str("default_category", DEFAULT_CATEGORY)
        try:
            return DeferCategory(value)
        except ValueError:
            return DeferCategory.CUSTOM

    @property
    def date_formats(self) -> List[str]:
        """strptime formats accepted for dates typed on the command line."""
        return self.config.get_list("date_formats", DEFAULT_DATE_FORMATS)

    @property
    def percentage_precision(self) -> int:
        return self.config.get_int("percentage_round_precision", DEFAULT_PERCENTAGE_ROUND_PRECISION)

    def new_draft(self) -> DeferDraft:
        """Empty draft starting now in the configured default category."""
        return DeferDraft(category=self.default_category, start_date=self.clock())

    def draft_from_template(self, template_id: str, start_date: Optional[datetime] = None) -> DeferDraft:
        """Build a draft pre-filled from a template.

        Args:
            template_id: Template to apply.
            start_date: Explicit start; defaults to the start of today.

        Raises:
            NotFoundError: If the template id is unknown.
        """
        template = template_by_id(template_id)
        if template is None:
            raise NotFoundError(f"Template '{template_id}' not found.")
        return DeferDraft().apply_template(template, self.clock(), start_date=start_date)

    def create(self, draft: DeferDraft) -> DeferItem:
        """Create and store a new active item.

        Raises:
            ValidationError: If the draft has no title or an invalid date range.
        """
        item = self.lifecycle.create_item(draft, self.clock())
        if item is None:
            if not draft.normalized_title:
                raise ValidationError(VALIDATION_TITLE_REQUIRED)
            raise ValidationError(VALIDATION_DATE_RANGE)
        self.defers.append(item)
        self._save_defers()
        return item

    def pending_items(
        self,
        category: Optional[DeferCategory] = None,
        sort: SortOption = SortOption.SOONEST,
    ) -> List[DeferItem]:
        return self.lifecycle.pending_items(
            self.defers, category, sort, self.urges, self.clock()
        )

    def needs_decision_now(self) -> List[DeferItem]:
        return self.lifecycle.needs_decision_now(self.defers, self.clock())

    def in_delay_window(self) -> List[DeferItem]:
        return self.lifecycle.in_delay_window(self.defers, self.clock())

    def home_stats(self) -> HomeStats:
        return self.lifecycle.home_stats(self.all_defers(), self.clock())

    def urgency_score(self, item: DeferItem) -> float:
        return self.lifecycle.urgency_score(item, self.urges, self.clock())

    def overdue_items(self) -> List[DeferItem]:
        return self.lifecycle.overdue_items(self.defers, self.clock())

    def enforce_strict_mode(self) -> List[DeferItem]:
        """Fail strict items that missed a daily check-in."""
        failed = self.lifecycle.enforce_strict_mode(self.defers, self.clock())
        if failed:
            self._save_defers()
        return failed

    def auto_complete_eligible(self) -> List[CompletionHistory]:
        """Resolve items whose decision day has passed."""
        now = self.clock()
        overdue = self.lifecycle.overdue_items(self.defers, now)
        completed = self.lifecycle.auto_complete_eligible(overdue, now)
        for item in overdue:
            if not item.is_active:
                self._apply_retention(item)
        if completed:
            self._save_defers()
        return completed

    def sweep(self) -> Tuple[List[DeferItem], List[CompletionHistory]]:
        """Run strict-mode enforcement, then auto-completion."""
        return self.enforce_strict_mode(), self.auto_complete_eligible()

    def check_in(
        self,
        identifier: str,
        status: StreakEntryStatus = StreakEntryStatus.SUCCESS,
        note: Optional[str] = None,
    ) -> StreakRecord:
        """Record today's check-in.

        Raises:
            InvalidOperationError: If the item is closed or already checked in today.
        """
        item = self.get_item(identifier)
        now = self.clock()
        if not item.is_active:
            raise InvalidOperationError(
                f"Defer '{item.title}' is {item.status.display_name.lower()}."
            )
        record = self.lifecycle.check_in(item, status, now, note)
        if record is None:
            raise InvalidOperationError(f"Defer '{item.title}' is already checked in today.")
        self._save_defers()
        return record

    def resolve(
        self,
        identifier: str,
        outcome: DecisionOutcome,
        reflection: Optional[str] = None,
    ) -> CompletionHistory:
        """Resolve an active item and record the decision in history.

        Raises:
            InvalidOperationError: If the item is already closed.
        """
        item = self.get_item(identifier)
        record = self.lifecycle.resolve(item, outcome, self.clock(), reflection)
        if record is None:
            raise InvalidOperationError(f"Defer '{item.title}' is already closed.")
        self._apply_retention(item)
        self._save_defers()
        return record

    def pause(self, identifier: str) -> DeferItem:
        item = self.get_item(identifier)
        if not self.lifecycle.pause(item, self.clock()):
            raise InvalidOperationError(f"Defer '{item.title}' is already closed.")
        self._save_defers()
        return item

    def fail(self, identifier: str) -> DeferItem:
        item = self.get_item(identifier)
        if not self.lifecycle.fail(item, self.clock()):
            raise InvalidOperationError(f"Defer '{item.title}' is already closed.")
        self._save_defers()
        return item

    def postpone(self, identifier: str, delay_protocol: DelayProtocol) -> DeferItem:
        """Replace the delay protocol of an active item.

        Raises:
            InvalidOperationError: If the item is closed or the new decision date
                would not be after its start date.
        """
        item = self.get_item(identifier)
        if not self.lifecycle.postpone(item, delay_protocol, self.clock()):
            raise InvalidOperationError(
                f"Defer '{item.title}' cannot be postponed to {delay_protocol.describe()}."
            )
        self._save_defers()
        return item

    # =========================================================================
    # Urges
    # =========================================================================

    def log_urge(
        self,
        identifier: Optional[str] = None,
        intensity: int = DEFAULT_URGE_INTENSITY,
        note: Optional[str] = None,
    ) -> UrgeLog:
        item = self.get_item(identifier) if identifier else None
        return self.lifecycle.log_urge(item, intensity, note, False, self.clock())

    def use_fallback(self, identifier: str) -> UrgeLog:
        item = self.get_item(identifier)
        return self.lifecycle.use_fallback(item, self.clock())

    def recent_urges(self, limit: Optional[int] = None) -> List[UrgeLog]:
        if limit is None:
            limit = self.config.get_int("recent_urge_limit", DEFAULT_RECENT_URGE_LIMIT)
        return self.lifecycle.recent_urges(self.urges, limit)

    # =========================================================================
    # History
    # =========================================================================

    def history_records(self, category: Optional[DeferCategory] = None) -> List[CompletionHistory]:
        return self.history.filtered_decisions(self.completions, category)

    def history_summary(self, category: Optional[DeferCategory] = None) -> HistorySummaryMetrics:
        return self.history.summary_metrics(self.history_records(category))

    def category_breakdown(self) -> List[HistoryCategoryStat]:
        return self.history.category_breakdown(self.completions)

    def monthly_rhythm(self, category: Optional[DeferCategory] = None) -> List[HistoryMonthStat]:
        return self.history.monthly_rhythm(self.history_records(category), self.clock())

    def timeline(self, category: Optional[DeferCategory] = None) -> List[HistoryTimelineGroup]:
        return self.history.timeline_groups(self.history_records(category))

    # =========================================================================
    # Achievements
    # =========================================================================

    def evaluate_achievements(self) -> List[Achievement]:
        """Run an evaluation outside of any lifecycle event."""
        return self._evaluate_achievements(self.clock())

    def drain_unlocked(self) -> List[Achievement]:
        """Achievements unlocked by lifecycle events since the last drain."""
        return self.achievement_listener.drain()

    def achievement_snapshot(self) -> AchievementSnapshot:
        return self.achievement_engine.snapshot(
            self.all_defers(),
            self.completions,
            self.urges,
            self.achievements,
            self.achievements_file.showcased_key,
        )

    def set_showcase(self, key: str) -> Achievement:
        """Pin an unlocked achievement.

        Raises:
            NotFoundError: If the key is not in the catalog.
            InvalidOperationError: If the achievement is still locked.
        """
        definition = definition_for(key, self.achievement_engine.catalog)
        if definition is None:
            raise NotFoundError(f"Achievement '{key}' not found.")
        achievement = self.achievement_engine.showcased(key, self.achievements)
        if achievement is None:
            raise InvalidOperationError(f"Achievement '{definition.title}' is still locked.")
        self.achievements_file.showcased_key = key
        self.storage.save_achievements(self.achievements_file)
        return achievement

    def clear_showcase(self) -> None:
        self.achievements_file.showcased_key = None
        self.storage.save_achievements(self.achievements_file)

    # =========================================================================
    # Config and export
    # =========================================================================

    def get_config(self) -> ConfigFile:
        return self.storage.load_config()

    def set_config(self, key: str, value: Any) -> ConfigFile:
        """Validate and store a single configuration value.

        Raises:
            ConfigurationError: If the key is unknown or the value is invalid.
        """
        if key not in ConfigFile.model_fields or key == "schema_version":
            raise ConfigurationError(f"Unknown config key '{key}'.")

        data = self.storage.load_config().model_dump()
        data[key] = value
        try:
            config = ConfigFile.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid value for '{key}': {e.errors()[0]['msg']}")

        self.storage.save_config(config)
        self.config.reload()
        self.lifecycle.due_soon_days = config.due_soon_days
        return config

    def export_data(self) -> Dict[str, Any]:
        """Everything in the store as one JSON-ready dictionary."""
        return {
            "exported_at": self.clock().isoformat(),
            "defers": [item.model_dump(mode="json") for item in self.defers],
            "archived_defers": [item.model_dump(mode="json") for item in self.archived_defers],
            "completions": [record.model_dump(mode="json") for record in self.completions],
            "urges": [log.model_dump(mode="json") for log in self.urges],
            "achievements": [a.model_dump(mode="json") for a in self.achievements],
            "showcased_key": self.achievements_file.showcased_key,
        }

    def export_csv(self) -> str:
        """Everything in the store as one CSV document with a section per record type."""
        def stamp(moment: Optional[datetime]) -> str:
            return moment.isoformat() if moment else ""

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(["Defer Backup Generated At", stamp(self.clock())])

        writer.writerows([[], ["[Defers]"]])
        writer.writerow([
            "uuid", "title", "why_it_matters", "category", "protocol", "status",
            "start_date", "decision_date", "strict_mode", "success_count",
            "last_check_in", "estimated_cost", "created_at", "updated_at",
        ])
        for item in sorted(self.all_defers(), key=lambda i: i.created_at):
            writer.writerow([
                item.uuid, item.title, item.why_it_matters, item.category.value,
                item.delay_protocol.type.value, item.status.value,
                stamp(item.start_date), stamp(item.decision_date),
                "true" if item.strict_mode else "false", item.success_count,
                stamp(item.last_check_in),
                "" if item.estimated_cost is None else item.estimated_cost,
                stamp(item.created_at), stamp(item.updated_at),
            ])

        writer.writerows([[], ["[CompletionHistory]"]])
        writer.writerow([
            "uuid", "defer_id", "defer_title", "category", "outcome", "protocol_type",
            "start_date", "target_date", "completed_at", "duration_days", "reflection",
        ])
        for record in sorted(self.completions, key=lambda r: r.completed_at, reverse=True):
            writer.writerow([
                record.uuid, record.defer_id, record.defer_title, record.category.value,
                record.outcome.value, record.protocol_type.value,
                stamp(record.start_date), stamp(record.target_date), stamp(record.completed_at),
                record.duration_days, record.reflection or "",
            ])

        writer.writerows([[], ["[Urges]"]])
        writer.writerow(["uuid", "defer_id", "logged_at", "intensity", "note", "used_fallback_action"])
        for log in sorted(self.urges, key=lambda u: u.logged_at, reverse=True):
            writer.writerow([
                log.uuid, log.defer_id or "", stamp(log.logged_at), log.intensity,
                log.note or "", "true" if log.used_fallback_action else "false",
            ])

        writer.writerows([[], ["[Achievements]"]])
        writer.writerow(["uuid", "key", "title", "details", "tier", "unlocked_at", "source_defer_id"])
        for achievement in sorted(self.achievements, key=lambda a: a.unlocked_at, reverse=True):
            writer.writerow([
                achievement.uuid, achievement.key, achievement.title, achievement.details,
                achievement.tier.value, stamp(achievement.unlocked_at),
                achievement.source_defer_id or "",
            ])
        return buffer.getvalue()
