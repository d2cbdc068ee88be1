import pytest
from datetime import datetime, timedelta, timezone

from hrms.core.exceptions import BadRequestError, InvalidClockTimesError
from hrms.services.hr.ot_calculation import (
    OtPolicy,
    calculate_ot_minutes,
    calculate_worked_minutes,
    calculate_worked_time,
    round_to_interval,
    validate_ot_approval,
)

CLOCK_IN = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


class TestWorkedMinutes:
    """Worked time is the clocked span minus the unpaid break"""

    def test_standard_day(self):
        clock_out = CLOCK_IN + timedelta(hours=9, minutes=30)
        assert calculate_worked_minutes(CLOCK_IN, clock_out, 60) == 510

    def test_still_clocked_in(self):
        assert calculate_worked_minutes(CLOCK_IN, None) == 0

    def test_short_span_never_negative(self):
        clock_out = CLOCK_IN + timedelta(minutes=30)
        assert calculate_worked_minutes(CLOCK_IN, clock_out, 60) == 0

    def test_clock_out_before_clock_in(self):
        with pytest.raises(InvalidClockTimesError):
            calculate_worked_minutes(CLOCK_IN, CLOCK_IN - timedelta(minutes=1))

    def test_naive_times_are_treated_as_utc(self):
        naive_in = datetime(2026, 1, 5, 9, 0)
        aware_out = datetime(2026, 1, 5, 18, 0, tzinfo=timezone.utc)
        assert calculate_worked_minutes(naive_in, aware_out, 60) == 480


class TestOtMinutes:
    def test_plain_formula(self):
        assert calculate_ot_minutes(510, 480) == 30
        assert calculate_ot_minutes(570, 480) == 90
        assert calculate_ot_minutes(400, 480) == 0

    def test_policy_rounding_and_daily_cap(self):
        policy = OtPolicy(daily_threshold_minutes=480, rounding_interval_minutes=15, max_ot_per_day_minutes=60)
        assert calculate_ot_minutes(487, 480, policy) == 0
        assert calculate_ot_minutes(488, 480, policy) == 15
        assert calculate_ot_minutes(600, 480, policy) == 60

    def test_policy_threshold_overrides_standard(self):
        policy = OtPolicy(daily_threshold_minutes=420)
        assert calculate_ot_minutes(480, 480, policy) == 60

    def test_round_to_interval(self):
        assert round_to_interval(22, 15) == 15
        assert round_to_interval(23, 15) == 30
        assert round_to_interval(22, 0) == 22

    def test_worked_time_bundle(self):
        result = calculate_worked_time(CLOCK_IN, CLOCK_IN + timedelta(hours=10, minutes=30))
        assert result.worked_minutes == 570
        assert result.ot_minutes == 90
        assert result.break_minutes == 60


class TestOtApproval:
    def test_within_calculated(self):
        validate_ot_approval(30, 90)
        validate_ot_approval(0, 0)

    def test_above_calculated(self):
        with pytest.raises(BadRequestError):
            validate_ot_approval(91, 90)

    def test_negative(self):
        with pytest.raises(BadRequestError):
            validate_ot_approval(-1, 90)
