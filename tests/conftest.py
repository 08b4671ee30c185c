"""
Test fixtures for the Defer CLI test suite.

Provides:
- A fixed NOW used wherever time matters
- Temporary directory fixtures (isolated from any real .defer/)
- Mock data builders for creating test items and records
"""

import shutil
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import Generator, Optional

import pytest

from defer.core import DeferCore
from defer.models.draft import DeferDraft
from defer.models.enums import (
    DecisionOutcome,
    DeferCategory,
    DeferStatus,
    DelayProtocolType,
)
from defer.models.item import DeferItem
from defer.models.protocol import DelayProtocol
from defer.models.records import CompletionHistory, UrgeLog

NOW = datetime(2025, 3, 10, 12, 0)


class FakeClock:
    """Manually advanced clock for DeferCore."""

    def __init__(self, start: datetime = NOW) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# =============================================================================
# Temporary Directory Fixtures
# =============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test isolation.

    Ensures tests don't modify a real .defer/ directory.
    """
    temp_path = Path(tempfile.mkdtemp(prefix="defer_test_"))
    yield temp_path
    # Cleanup
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def defer_dir(temp_dir: Path) -> Generator[Path, None, None]:
    """Path to a not-yet-created .defer/ directory inside temp_dir."""
    yield temp_dir / ".defer"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def core(defer_dir: Path, clock: FakeClock) -> DeferCore:
    """DeferCore on a temporary directory with a fixed clock."""
    return DeferCore(defer_dir, clock=clock)


# =============================================================================
# Mock Data Builders
# =============================================================================


class MockDataBuilder:
    """Helper class for building mock Defer records for testing."""

    @staticmethod
    def create_item(
        title: str = "Test Defer",
        category: DeferCategory = DeferCategory.SPENDING,
        start_date: datetime = NOW,
        protocol: Optional[DelayProtocol] = None,
        status: DeferStatus = DeferStatus.ACTIVE,
        estimated_cost: Optional[float] = None,
        fallback_action: str = "",
        strict_mode: bool = False,
        uuid: Optional[str] = None,
        updated_at: Optional[datetime] = None,
    ) -> DeferItem:
        """Create a mock DeferItem for testing."""
        item = DeferItem(
            title=title,
            category=category,
            start_date=start_date,
            delay_protocol=protocol or DelayProtocol(),
            estimated_cost=estimated_cost,
            fallback_action=fallback_action,
            strict_mode=strict_mode,
            created_at=start_date,
            updated_at=updated_at or start_date,
        )
        item.status = status
        if uuid:
            item.uuid = uuid
        return item

    @staticmethod
    def create_completion(
        completed_at: datetime = NOW,
        outcome: DecisionOutcome = DecisionOutcome.INTENTIONAL,
        category: DeferCategory = DeferCategory.SPENDING,
        title: str = "Test Defer",
        duration_days: int = 1,
        reflection: Optional[str] = None,
        estimated_cost: Optional[float] = None,
        was_after_checkpoint: bool = True,
    ) -> CompletionHistory:
        """Create a mock CompletionHistory record for testing."""
        return CompletionHistory(
            defer_id=f"defer-{completed_at.isoformat()}",
            defer_title=title,
            category=category,
            outcome=outcome,
            protocol_type=DelayProtocolType.TWENTY_FOUR_HOURS,
            protocol_duration_hours=24,
            start_date=completed_at - timedelta(days=duration_days),
            target_date=completed_at - timedelta(days=duration_days) + timedelta(hours=24),
            completed_at=completed_at,
            duration_days=duration_days,
            was_after_checkpoint=was_after_checkpoint,
            reflection=reflection,
            estimated_cost=estimated_cost,
        )

    @staticmethod
    def create_urge(
        logged_at: datetime = NOW,
        defer_id: Optional[str] = None,
        intensity: int = 3,
        used_fallback_action: bool = False,
    ) -> UrgeLog:
        """Create a mock UrgeLog for testing."""
        return UrgeLog(
            defer_id=defer_id,
            logged_at=logged_at,
            intensity=intensity,
            used_fallback_action=used_fallback_action,
        )

    @staticmethod
    def create_draft(
        title: str = "Buy gadget",
        start_date: datetime = NOW,
        protocol: Optional[DelayProtocol] = None,
        category: DeferCategory = DeferCategory.SPENDING,
    ) -> DeferDraft:
        """Create a mock DeferDraft for testing."""
        return DeferDraft(
            title=title,
            category=category,
            start_date=start_date,
            delay_protocol=protocol or DelayProtocol(),
        )


@pytest.fixture
def mock_data() -> MockDataBuilder:
    """Provide mock data builder for test item creation."""
    return MockDataBuilder()
