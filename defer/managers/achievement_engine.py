"""
AchievementEngine for badge evaluation.

Evaluates the achievement catalog against fresh progress counts and
reports which definitions are locked, unlocked or newly earned.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from defer.models.achievements import (
    ACHIEVEMENT_CATALOG,
    AchievementDefinition,
    AchievementProgress,
    definition_for,
)
from defer.models.item import DeferItem
from defer.models.records import Achievement, CompletionHistory, UrgeLog
from defer.models.views import AchievementSnapshot
from defer.utils import resolve_now, safe_ratio

logger = logging.getLogger(__name__)


class AchievementEngine:
    """
    Evaluates achievement definitions against behavioral counts.

    Handles:
    - Computing AchievementProgress from defers, completions and urge logs
    - Emitting only newly unlocked achievements (existing unlocks keep their timestamp)
    - Locked/unlocked listings in catalog order
    - Completion ratio and showcase lookup
    """

    def __init__(self, catalog: Sequence[AchievementDefinition] = ACHIEVEMENT_CATALOG) -> None:
        """
        Initialize AchievementEngine.

        Args:
            catalog: Ordered achievement definitions. Defaults to the built-in catalog.
        """
        self.catalog = tuple(catalog)

    def progress(
        self,
        defers: Sequence[DeferItem],
        completions: Sequence[CompletionHistory],
        urge_logs: Sequence[UrgeLog] = (),
    ) -> AchievementProgress:
        return AchievementProgress.from_collections(defers, completions, urge_logs)

    def evaluate(
        self,
        defers: Sequence[DeferItem],
        completions: Sequence[CompletionHistory],
        urge_logs: Sequence[UrgeLog],
        existing: Sequence[Achievement],
        now: Optional[datetime] = None,
        source_defer_id: Optional[str] = None,
    ) -> List[Achievement]:
        """Return achievements unlocked by the current data and not yet recorded.

        The caller persists the returned records. Definitions already present
        in ``existing`` are never returned again.
        """
        now = resolve_now(now)
        existing_keys = {achievement.key for achievement in existing}
        progress = self.progress(defers, completions, urge_logs)

        unlocked = []
        for definition in self.catalog:
            if definition.key in existing_keys:
                continue
            if not definition.rule.is_satisfied(progress):
                continue
            unlocked.append(
                Achievement(
                    key=definition.key,
                    title=definition.title,
                    details=definition.details,
                    tier=definition.tier,
                    unlocked_at=now,
                    source_defer_id=source_defer_id,
                )
            )
            logger.debug("Unlocked achievement %s", definition.key)
        return unlocked

    def unlocked_by_key(self, achievements: Sequence[Achievement]) -> Dict[str, Achievement]:
        """Map keys to their earliest unlock record."""
        by_key: Dict[str, Achievement] = {}
        for achievement in achievements:
            current = by_key.get(achievement.key)
            if current is None or achievement.unlocked_at < current.unlocked_at:
                by_key[achievement.key] = achievement
        return by_key

    def unlocked_definitions(self, achievements: Sequence[Achievement]) -> List[AchievementDefinition]:
        keys = {achievement.key for achievement in achievements}
        return [definition for definition in self.catalog if definition.key in keys]

    def locked_definitions(self, achievements: Sequence[Achievement]) -> List[AchievementDefinition]:
        keys = {achievement.key for achievement in achievements}
        return [definition for definition in self.catalog if definition.key not in keys]

    def completion_ratio(self, achievements: Sequence[Achievement]) -> float:
        """Unlocked share of the catalog, 0.0 for an empty catalog."""
        return safe_ratio(len(self.unlocked_definitions(achievements)), len(self.catalog))

    def showcased(self, key: Optional[str], achievements: Sequence[Achievement]) -> Optional[Achievement]:
        """The pinned achievement, or None when the key is unknown or still locked."""
        if not key or definition_for(key, self.catalog) is None:
            return None
        return self.unlocked_by_key(achievements).get(key)

    def summary_title(self, unlocked_count: int) -> str:
        if unlocked_count == 0:
            return "Your first badge is waiting"
        if unlocked_count >= len(self.catalog):
            return "Full collection complete"
        return "Collection is growing steadily"

    def summary_subtitle(self, unlocked_count: int, progress: AchievementProgress) -> str:
        if unlocked_count == 0:
            return "Resolve your first defer to unlock your first achievement."
        return (
            f"{progress.completion_count} decisions and a best streak of "
            f"{progress.max_streak} days."
        )

    def snapshot(
        self,
        defers: Sequence[DeferItem],
        completions: Sequence[CompletionHistory],
        urge_logs: Sequence[UrgeLog],
        achievements: Sequence[Achievement],
        showcased_key: Optional[str] = None,
    ) -> AchievementSnapshot:
        """Bundle everything the achievements view needs."""
        progress = self.progress(defers, completions, urge_logs)
        unlocked = self.unlocked_definitions(achievements)
        showcase = self.showcased(showcased_key, achievements)
        return AchievementSnapshot(
            progress=progress,
            unlocked=unlocked,
            locked=self.locked_definitions(achievements),
            completion_ratio=self.completion_ratio(achievements),
            summary_title=self.summary_title(len(unlocked)),
            summary_subtitle=self.summary_subtitle(len(unlocked), progress),
            showcased_key=showcase.key if showcase else None,
        )
