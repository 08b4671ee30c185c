"""
Tests for DelayProtocol decision-date computation.
"""
from datetime import datetime, timedelta

import pytest

from defer.models.enums import DelayProtocolType
from defer.models.protocol import DelayProtocol, next_payday

from tests.conftest import NOW


class TestFixedProtocols:
    """Fixed protocols add a constant offset to the start date."""

    @pytest.mark.parametrize(
        "protocol_type, offset",
        [
            (DelayProtocolType.TEN_MINUTES, timedelta(minutes=10)),
            (DelayProtocolType.TWENTY_FOUR_HOURS, timedelta(hours=24)),
            (DelayProtocolType.SEVENTY_TWO_HOURS, timedelta(hours=72)),
        ],
    )
    def test_fixed_offsets(self, protocol_type, offset):
        """Test decision date is start plus the fixed offset."""
        protocol = DelayProtocol(type=protocol_type)
        assert protocol.is_fixed
        assert protocol.decision_date(NOW) == NOW + offset

    def test_default_is_twenty_four_hours(self):
        """Test a bare protocol waits 24 hours."""
        assert DelayProtocol().type is DelayProtocolType.TWENTY_FOUR_HOURS

    def test_nominal_duration_hours(self):
        """Test history duration hours for the fixed variants."""
        assert DelayProtocol(type=DelayProtocolType.TEN_MINUTES).duration_hours(NOW) == 1
        assert DelayProtocol(type=DelayProtocolType.SEVENTY_TWO_HOURS).duration_hours(NOW) == 72


class TestUntilPayday:
    """Payday falls on the 15th and the 1st at 09:00."""

    def test_before_mid_month(self):
        """Test early in the month waits for the 15th."""
        assert next_payday(datetime(2025, 3, 10, 12, 0)) == datetime(2025, 3, 15, 9, 0)

    def test_after_mid_month(self):
        """Test late in the month waits for the 1st of next month."""
        assert next_payday(datetime(2025, 3, 20, 8, 0)) == datetime(2025, 4, 1, 9, 0)

    def test_exactly_on_payday_moves_to_next(self):
        """Test the result is strictly after the start."""
        assert next_payday(datetime(2025, 3, 15, 9, 0)) == datetime(2025, 4, 1, 9, 0)

    def test_year_rollover(self):
        """Test December rolls into January."""
        assert next_payday(datetime(2025, 12, 20)) == datetime(2026, 1, 1, 9, 0)

    def test_mid_month_before_nine(self):
        """Test the 15th itself already waits for the 1st of next month."""
        assert next_payday(datetime(2025, 3, 15, 7, 30)) == datetime(2025, 4, 1, 9, 0)

    def test_protocol_uses_next_payday(self):
        """Test the protocol delegates to next_payday."""
        protocol = DelayProtocol(type=DelayProtocolType.UNTIL_PAYDAY)
        assert protocol.decision_date(NOW) == datetime(2025, 3, 15, 9, 0)
        assert protocol.duration_hours(NOW) == 24 * 14


class TestCustomDate:
    """Custom protocols return the stored date verbatim."""

    def test_custom_date_returned(self):
        """Test the stored date is the decision date."""
        target = NOW + timedelta(days=3)
        protocol = DelayProtocol.custom(target)
        assert protocol.type is DelayProtocolType.CUSTOM_DATE
        assert protocol.decision_date(NOW) == target

    def test_custom_date_in_past_is_not_adjusted(self):
        """Test a past custom date is returned unchanged."""
        target = NOW - timedelta(days=1)
        assert DelayProtocol.custom(target).decision_date(NOW) == target

    def test_custom_without_date_falls_back(self):
        """Test a custom protocol with no date waits 24 hours."""
        protocol = DelayProtocol(type=DelayProtocolType.CUSTOM_DATE)
        assert protocol.decision_date(NOW) == NOW + timedelta(hours=24)

    def test_custom_duration_hours_from_span(self):
        """Test duration hours are measured for custom dates."""
        protocol = DelayProtocol.custom(NOW + timedelta(days=2))
        assert protocol.duration_hours(NOW) == 48

    def test_describe(self):
        """Test human-readable descriptions."""
        assert DelayProtocol().describe() == "24 hours"
        assert DelayProtocol.custom(datetime(2025, 4, 1, 18, 30)).describe() == "Until 2025-04-01 18:30"
