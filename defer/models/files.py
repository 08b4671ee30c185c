"""
File models for the Defer CLI.

Models representing the structure of JSON files in the .defer/ directory.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from defer.constants import (
    DEFAULT_CATEGORY,
    DEFAULT_DATE_FORMATS,
    DEFAULT_DUE_SOON_DAYS,
    DEFAULT_PERCENTAGE_ROUND_PRECISION,
    DEFAULT_RECENT_URGE_LIMIT,
    DEFAULT_RETENTION_POLICY,
    VALID_RETENTION_POLICIES,
)
from defer.models.item import DeferItem
from defer.models.records import Achievement, CompletionHistory, UrgeLog


class DefersFile(BaseModel):
    """Model for defers.json file.

    Every DeferItem still owned by the active store, in creation order.
    """

    defers: List[DeferItem] = Field(default_factory=list)


class ArchivedDefersFile(BaseModel):
    """Model for archive/defers.json file.

    Resolved items moved out of defers.json under the archive retention policy.
    """

    defers: List[DeferItem] = Field(default_factory=list)


class HistoryFile(BaseModel):
    """Model for history.json file."""

    completions: List[CompletionHistory] = Field(default_factory=list)


class UrgesFile(BaseModel):
    """Model for urges.json file."""

    urges: List[UrgeLog] = Field(default_factory=list)


class AchievementsFile(BaseModel):
    """Model for achievements.json file.

    Unlocked achievements plus the badge the user pinned, if any.
    """

    achievements: List[Achievement] = Field(default_factory=list)
    showcased_key: Optional[str] = None


class ConfigFile(BaseModel):
    """Model for config.json file.

    Project settings and configuration.
    """

    schema_version: str = "0.3.0"

    # Home settings
    due_soon_days: int = DEFAULT_DUE_SOON_DAYS
    recent_urge_limit: int = DEFAULT_RECENT_URGE_LIMIT
    default_category: str = DEFAULT_CATEGORY

    # Date settings
    date_formats: List[str] = Field(default_factory=lambda: list(DEFAULT_DATE_FORMATS))

    # Display settings
    percentage_round_precision: int = DEFAULT_PERCENTAGE_ROUND_PRECISION

    # Storage settings
    retention_policy: str = DEFAULT_RETENTION_POLICY

    @field_validator("retention_policy")
    @classmethod
    def validate_retention_policy(cls, v: str) -> str:
        if v not in VALID_RETENTION_POLICIES:
            raise ValueError(
                f"retention_policy must be one of: {', '.join(VALID_RETENTION_POLICIES)}"
            )
        return v
