"""
Tests for the DeferItem model: derived values and lifecycle guards.
"""
from datetime import timedelta

import pydantic
import pytest

from defer.models.enums import DecisionOutcome, DeferStatus, StreakEntryStatus
from defer.models.item import DeferItem
from defer.models.protocol import DelayProtocol

from tests.conftest import NOW


class TestDateRange:
    """Decision date must be after the start date."""

    def test_custom_date_before_start_rejected(self):
        """Test an item cannot be built with an inverted range."""
        with pytest.raises(pydantic.ValidationError):
            DeferItem(
                title="Bad",
                start_date=NOW,
                delay_protocol=DelayProtocol.custom(NOW - timedelta(hours=1)),
            )

    def test_custom_date_equal_to_start_rejected(self):
        """Test an empty range is rejected."""
        with pytest.raises(pydantic.ValidationError):
            DeferItem(title="Bad", start_date=NOW, delay_protocol=DelayProtocol.custom(NOW))


class TestProgress:
    """Tests for progress_percent and days_remaining."""

    def test_progress_at_start_is_zero(self, mock_data):
        item = mock_data.create_item()
        assert item.progress_percent(NOW) == 0.0

    def test_progress_halfway(self, mock_data):
        item = mock_data.create_item()
        assert item.progress_percent(NOW + timedelta(hours=12)) == pytest.approx(0.5)

    def test_progress_is_monotone_and_bounded(self, mock_data):
        """Test progress never decreases and stays within [0, 1]."""
        item = mock_data.create_item(protocol=DelayProtocol.custom(NOW + timedelta(days=3)))
        moments = [NOW + timedelta(hours=h) for h in range(-12, 100, 6)]
        values = [item.progress_percent(moment) for moment in moments]
        assert values == sorted(values)
        assert all(0.0 <= value <= 1.0 for value in values)

    def test_at_decision_date(self, mock_data):
        """Test an active item at its decision date is complete with zero days left."""
        item = mock_data.create_item(protocol=DelayProtocol.custom(NOW + timedelta(days=3)))
        assert item.streak_records == []
        decision = item.decision_date
        assert item.progress_percent(decision) == 1.0
        assert item.days_remaining(decision) == 0

    def test_terminal_item_is_complete(self, mock_data):
        item = mock_data.create_item(status=DeferStatus.FAILED)
        assert item.progress_percent(NOW) == 1.0

    def test_days_remaining_counts_calendar_days(self, mock_data):
        """Test days are counted on calendar boundaries."""
        item = mock_data.create_item(protocol=DelayProtocol.custom(NOW + timedelta(days=3)))
        assert item.days_remaining(NOW) == 3
        assert item.days_remaining(NOW.replace(hour=23, minute=59)) == 3
        assert item.days_remaining(NOW + timedelta(days=10)) == 0

    def test_checkpoint_due(self, mock_data):
        item = mock_data.create_item()
        assert not item.is_checkpoint_due(NOW)
        assert item.is_checkpoint_due(NOW + timedelta(hours=24))

    def test_hours_remaining(self, mock_data):
        item = mock_data.create_item()
        assert item.hours_remaining(NOW) == 24
        assert item.hours_remaining(NOW + timedelta(hours=5, minutes=30)) == 18
        assert item.hours_remaining(NOW + timedelta(days=2)) == 0


class TestCheckIn:
    """Tests for daily check-ins."""

    def test_check_in_appends_record(self, mock_data):
        item = mock_data.create_item()
        record = item.check_in(StreakEntryStatus.SUCCESS, NOW)
        assert record is not None
        assert item.streak_records == [record]
        assert item.updated_at == NOW

    def test_second_check_in_same_day_is_noop(self, mock_data):
        """Test a same-day check-in returns None and leaves records unchanged."""
        item = mock_data.create_item()
        item.check_in(StreakEntryStatus.SUCCESS, NOW)
        again = item.check_in(StreakEntryStatus.FAILED, NOW + timedelta(hours=3))
        assert again is None
        assert len(item.streak_records) == 1
        assert item.streak_records[0].status is StreakEntryStatus.SUCCESS

    def test_check_in_next_day_allowed(self, mock_data):
        item = mock_data.create_item(protocol=DelayProtocol.custom(NOW + timedelta(days=5)))
        item.check_in(now=NOW)
        assert item.check_in(now=NOW + timedelta(days=1)) is not None
        assert item.success_count == 2
        assert item.has_checked_in(NOW + timedelta(days=1, hours=2))
        assert not item.has_checked_in(NOW + timedelta(days=2))

    def test_check_in_on_terminal_item_is_noop(self, mock_data):
        item = mock_data.create_item(status=DeferStatus.SKIPPED)
        assert item.check_in(now=NOW) is None
        assert item.streak_records == []

    def test_longest_streak(self, mock_data):
        """Test the longest run of consecutive success days."""
        item = mock_data.create_item(protocol=DelayProtocol.custom(NOW + timedelta(days=30)))
        for day, status in enumerate(
            [
                StreakEntryStatus.SUCCESS,
                StreakEntryStatus.SUCCESS,
                StreakEntryStatus.FAILED,
                StreakEntryStatus.SUCCESS,
                StreakEntryStatus.SUCCESS,
                StreakEntryStatus.SUCCESS,
            ]
        ):
            item.check_in(status, NOW + timedelta(days=day))
        assert item.longest_streak() == 3
        assert item.failed_count == 1


class TestTransitions:
    """Tests for resolve, pause, fail and postpone."""

    def test_resolve_sets_outcome_status(self, mock_data):
        item = mock_data.create_item()
        assert item.resolve(DecisionOutcome.INTENTIONAL, NOW)
        assert item.status is DeferStatus.COMPLETED_INTENTIONALLY
        assert item.outcome is DecisionOutcome.INTENTIONAL

    def test_transition_table(self):
        assert DeferStatus.ACTIVE.can_transition_to(DeferStatus.FAILED)
        assert not DeferStatus.ACTIVE.can_transition_to(DeferStatus.ACTIVE)
        for status in DeferStatus:
            if status.is_terminal:
                assert not any(status.can_transition_to(target) for target in DeferStatus)

    def test_terminal_item_cannot_transition(self, mock_data):
        """Test every lifecycle operation is a no-op once terminal."""
        item = mock_data.create_item()
        item.resolve(DecisionOutcome.IMPULSIVE, NOW)
        assert not item.resolve(DecisionOutcome.INTENTIONAL, NOW)
        assert not item.pause(NOW)
        assert not item.fail(NOW)
        assert not item.postpone(DelayProtocol(), NOW)
        assert item.status is DeferStatus.COMPLETED_IMPULSIVELY

    def test_pause_and_fail(self, mock_data):
        paused = mock_data.create_item()
        failed = mock_data.create_item()
        assert paused.pause(NOW)
        assert failed.fail(NOW)
        assert paused.status is DeferStatus.SKIPPED
        assert failed.status is DeferStatus.FAILED
        assert paused.outcome is None

    def test_pause_and_fail_leave_a_record(self, mock_data):
        """Test closing without a decision writes the day's record."""
        paused = mock_data.create_item()
        failed = mock_data.create_item()
        paused.pause(NOW)
        failed.fail(NOW)
        assert [(r.status, r.note) for r in paused.streak_records] == [
            (StreakEntryStatus.SKIPPED, "Paused")
        ]
        assert [(r.status, r.note) for r in failed.streak_records] == [
            (StreakEntryStatus.FAILED, "Failed")
        ]

    def test_close_keeps_existing_check_in(self, mock_data):
        """Test a day that was already checked in keeps a single record."""
        item = mock_data.create_item()
        item.check_in(StreakEntryStatus.SUCCESS, NOW)
        assert item.pause(NOW + timedelta(hours=1))
        assert [r.status for r in item.streak_records] == [StreakEntryStatus.SUCCESS]

    def test_postpone_restarts_waiting_period(self, mock_data):
        item = mock_data.create_item()
        later = NOW + timedelta(hours=5)
        assert item.postpone(DelayProtocol(), later)
        assert item.start_date == later
        assert item.decision_date == later + timedelta(hours=24)

    def test_postpone_rejects_past_custom_date(self, mock_data):
        item = mock_data.create_item()
        assert not item.postpone(DelayProtocol.custom(NOW - timedelta(days=1)), NOW)
        assert item.start_date == NOW


class TestStrictMode:
    """Tests for strict items, where a failed check-in ends the defer."""

    def test_failed_check_in_fails_strict_item(self, mock_data):
        item = mock_data.create_item(strict_mode=True)
        record = item.check_in(StreakEntryStatus.FAILED, NOW, note="gave in")
        assert record is not None
        assert item.status is DeferStatus.FAILED
        assert item.streak_records == [record]

    def test_failed_check_in_is_informational_otherwise(self, mock_data):
        item = mock_data.create_item()
        item.check_in(StreakEntryStatus.FAILED, NOW)
        assert item.is_active
        assert item.failed_count == 1

    def test_last_check_in_ignores_non_success(self, mock_data):
        item = mock_data.create_item(protocol=DelayProtocol.custom(NOW + timedelta(days=5)))
        assert item.last_check_in is None
        item.check_in(StreakEntryStatus.SUCCESS, NOW)
        item.check_in(StreakEntryStatus.SKIPPED, NOW + timedelta(days=1))
        assert item.last_check_in == NOW
