"""
Achievement catalog and the progress snapshot it is evaluated against.

Definitions are immutable and globally ordered; catalog order drives
every listing of locked and unlocked badges.
"""

from collections import Counter
from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from defer.models.enums import AchievementTier, DeferStatus
from defer.models.item import DeferItem
from defer.models.records import CompletionHistory, UrgeLog


class AchievementProgress(BaseModel):
    """Aggregate behavioral counts. Recomputed on every request, never stored."""

    model_config = ConfigDict(frozen=True)

    completion_count: int = 0
    intentional_count: int = 0
    impulsive_count: int = 0
    max_streak: int = 0
    highest_category_completion_count: int = 0
    max_consecutive_intentional: int = 0
    urge_log_count: int = 0
    fallback_use_count: int = 0

    @classmethod
    def from_collections(
        cls,
        defers: Sequence[DeferItem],
        completions: Sequence[CompletionHistory],
        urge_logs: Sequence[UrgeLog] = (),
    ) -> "AchievementProgress":
        category_counts = Counter(record.category for record in completions)
        intentional = sum(1 for record in completions if record.is_intentional)
        return cls(
            completion_count=len(completions),
            intentional_count=intentional,
            impulsive_count=len(completions) - intentional,
            max_streak=max((item.longest_streak() for item in defers), default=0),
            highest_category_completion_count=max(category_counts.values(), default=0),
            max_consecutive_intentional=_longest_intentional_run(defers),
            urge_log_count=len(urge_logs),
            fallback_use_count=sum(1 for log in urge_logs if log.used_fallback_action),
        )


def _longest_intentional_run(defers: Iterable[DeferItem]) -> int:
    """Longest run of intentional resolutions, in the order items were closed.

    Any other terminal status breaks the run.
    """
    terminal = sorted(
        (item for item in defers if item.is_terminal), key=lambda item: item.updated_at
    )
    best = 0
    current = 0
    for item in terminal:
        if item.status is DeferStatus.COMPLETED_INTENTIONALLY:
            current += 1
            best = max(best, current)
        else:
            current = 0
    return best


class AchievementRuleKind(str, Enum):
    MIN_COMPLETIONS = "min_completions"
    MIN_INTENTIONAL = "min_intentional"
    MIN_STREAK = "min_streak"
    CATEGORY_MASTERY = "category_mastery"
    CONSECUTIVE_INTENTIONAL = "consecutive_intentional"
    MIN_URGE_LOGS = "min_urge_logs"
    MIN_FALLBACK_USES = "min_fallback_uses"


# kind -> (progress field, progress label)
_RULE_METRICS = {
    AchievementRuleKind.MIN_COMPLETIONS: ("completion_count", "{value}/{target} completed"),
    AchievementRuleKind.MIN_INTENTIONAL: ("intentional_count", "{value}/{target} intentional"),
    AchievementRuleKind.MIN_STREAK: ("max_streak", "Best streak: {value}/{target}"),
    AchievementRuleKind.CATEGORY_MASTERY: (
        "highest_category_completion_count", "Best category: {value}/{target}"
    ),
    AchievementRuleKind.CONSECUTIVE_INTENTIONAL: (
        "max_consecutive_intentional", "Best run: {value}/{target}"
    ),
    AchievementRuleKind.MIN_URGE_LOGS: ("urge_log_count", "{value}/{target} urges logged"),
    AchievementRuleKind.MIN_FALLBACK_USES: ("fallback_use_count", "{value}/{target} fallbacks used"),
}


class AchievementRule(BaseModel):
    """Unlock predicate: a progress metric must reach ``threshold``."""

    model_config = ConfigDict(frozen=True)

    kind: AchievementRuleKind
    threshold: int

    def current_value(self, progress: AchievementProgress) -> int:
        field_name, _ = _RULE_METRICS[self.kind]
        return getattr(progress, field_name)

    def is_satisfied(self, progress: AchievementProgress) -> bool:
        return self.current_value(progress) >= self.threshold

    def progress_text(self, progress: AchievementProgress) -> str:
        _, label = _RULE_METRICS[self.kind]
        return label.format(
            value=min(self.current_value(progress), self.threshold), target=self.threshold
        )


class AchievementDefinition(BaseModel):
    """Static catalog entry."""

    model_config = ConfigDict(frozen=True)

    key: str
    title: str
    details: str
    tier: AchievementTier
    icon: str
    rule: AchievementRule


def _definition(key, title, details, tier, icon, kind, threshold):
    return AchievementDefinition(
        key=key,
        title=title,
        details=details,
        tier=tier,
        icon=icon,
        rule=AchievementRule(kind=kind, threshold=threshold),
    )


_K = AchievementRuleKind
_T = AchievementTier

ACHIEVEMENT_CATALOG: Tuple[AchievementDefinition, ...] = (
    _definition("first_completion", "First Win", "Resolve your first defer.",
                _T.BRONZE, "flag", _K.MIN_COMPLETIONS, 1),
    _definition("streak_7", "7-Day Discipline", "Reach a 7-day check-in streak.",
                _T.BRONZE, "flame", _K.MIN_STREAK, 7),
    _definition("streak_30", "30-Day Focus", "Reach a 30-day check-in streak.",
                _T.SILVER, "flame-circle", _K.MIN_STREAK, 30),
    _definition("streak_100", "100-Day Mastery", "Reach a 100-day check-in streak.",
                _T.LEGEND, "bolt", _K.MIN_STREAK, 100),
    _definition("category_mastery_3", "Category Specialist",
                "Resolve 3 defers in one category.",
                _T.SILVER, "grid", _K.CATEGORY_MASTERY, 3),
    _definition("category_mastery_10", "Category Master",
                "Resolve 10 defers in one category.",
                _T.GOLD, "crown", _K.CATEGORY_MASTERY, 10),
    _definition("completion_run_3", "Momentum Builder",
                "Resolve 3 defers intentionally in a row.",
                _T.GOLD, "trend", _K.CONSECUTIVE_INTENTIONAL, 3),
    _definition("completion_run_7", "Unstoppable",
                "Resolve 7 defers intentionally in a row.",
                _T.LEGEND, "star", _K.CONSECUTIVE_INTENTIONAL, 7),
    _definition("first_intentional_choice", "First Intentional Choice",
                "Resolve a defer intentionally.",
                _T.BRONZE, "check", _K.MIN_INTENTIONAL, 1),
    _definition("first_urge_logged", "Named the Urge", "Log your first urge.",
                _T.BRONZE, "wave", _K.MIN_URGE_LOGS, 1),
    _definition("intentional_5", "Deliberate Five", "Make 5 intentional decisions.",
                _T.SILVER, "seal", _K.MIN_INTENTIONAL, 5),
    _definition("fallback_3", "Plan B", "Use your fallback action 3 times.",
                _T.SILVER, "shuffle", _K.MIN_FALLBACK_USES, 3),
    _definition("urge_surfer_10", "Urge Surfer", "Log 10 urges.",
                _T.GOLD, "surf", _K.MIN_URGE_LOGS, 10),
)


def definition_for(
    key: str, catalog: Sequence[AchievementDefinition] = ACHIEVEMENT_CATALOG
) -> Optional[AchievementDefinition]:
    return next((definition for definition in catalog if definition.key == key), None)
