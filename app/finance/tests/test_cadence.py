"""
Tests for recurrence calendar arithmetic.
"""

from datetime import date

import pytest

from finance.services.cadence import (
    add_months,
    clamp_day,
    materialization_horizon,
    next_occurrence,
)
from finance.state_machines import RecurrenceFrequency


class TestClampDay:
    def test_day_inside_month(self):
        assert clamp_day(2026, 4, 15) == date(2026, 4, 15)

    def test_day_clamped_to_month_end(self):
        assert clamp_day(2026, 2, 31) == date(2026, 2, 28)
        assert clamp_day(2028, 2, 31) == date(2028, 2, 29)
        assert clamp_day(2026, 4, 31) == date(2026, 4, 30)


class TestAddMonths:
    def test_crosses_year_boundary(self):
        assert add_months(date(2026, 11, 30), 2, 30) == date(2027, 1, 30)

    def test_lands_on_anchor_not_current_day(self):
        assert add_months(date(2026, 2, 28), 1, 31) == date(2026, 3, 31)


class TestNextOccurrence:
    def test_weekly(self):
        assert next_occurrence(date(2026, 1, 29), RecurrenceFrequency.WEEKLY, 29) == date(
            2026, 2, 5
        )

    def test_monthly_end_of_month_sequence(self):
        """A 31st anchor clamps in short months and returns to the 31st."""
        current = date(2026, 1, 31)
        sequence = []
        for _ in range(4):
            current = next_occurrence(current, RecurrenceFrequency.MONTHLY, 31)
            sequence.append(current)

        assert sequence == [
            date(2026, 2, 28),
            date(2026, 3, 31),
            date(2026, 4, 30),
            date(2026, 5, 31),
        ]

    def test_monthly_mid_month(self):
        assert next_occurrence(date(2026, 1, 10), RecurrenceFrequency.MONTHLY, 10) == date(
            2026, 2, 10
        )

    def test_yearly_leap_day(self):
        """Feb 29 anchors fall back to Feb 28 in common years."""
        assert next_occurrence(date(2028, 2, 29), RecurrenceFrequency.YEARLY, 29) == date(
            2029, 2, 28
        )
        assert next_occurrence(date(2031, 2, 28), RecurrenceFrequency.YEARLY, 29) == date(
            2032, 2, 29
        )

    @pytest.mark.parametrize("anchor", [0, 32])
    def test_anchor_out_of_range(self, anchor):
        with pytest.raises(ValueError):
            next_occurrence(date(2026, 1, 1), RecurrenceFrequency.MONTHLY, anchor)

    def test_unknown_frequency(self):
        with pytest.raises(ValueError):
            next_occurrence(date(2026, 1, 1), "daily", 1)


class TestMaterializationHorizon:
    @pytest.mark.parametrize(
        "frequency", [RecurrenceFrequency.WEEKLY, RecurrenceFrequency.YEARLY]
    )
    def test_is_as_of(self, frequency):
        assert materialization_horizon(date(2026, 4, 15), frequency) == date(2026, 4, 15)
        assert materialization_horizon(date(2026, 12, 1), frequency) == date(2026, 12, 1)

    def test_monthly_is_end_of_month(self):
        monthly = RecurrenceFrequency.MONTHLY
        assert materialization_horizon(date(2026, 4, 15), monthly) == date(2026, 4, 30)
        assert materialization_horizon(date(2026, 2, 1), monthly) == date(2026, 2, 28)
