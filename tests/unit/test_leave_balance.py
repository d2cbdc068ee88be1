import pytest
from datetime import date
from types import SimpleNamespace

from hrms.core.exceptions import BadRequestError
from hrms.services.leave import leave_balance


def make_balance(total=12.0, carried=0.0, used=2.0, pending=0.0):
    return SimpleNamespace(total_days=total, carried_over=carried, used_days=used, pending_days=pending)


class TestLeaveDays:
    def test_weekdays_only(self):
        # Fri 2026-01-09 .. Tue 2026-01-13
        assert leave_balance.calculate_leave_days(date(2026, 1, 9), date(2026, 1, 13)) == 3

    def test_holidays_excluded(self):
        days = leave_balance.calculate_leave_days(
            date(2026, 1, 12), date(2026, 1, 16), holidays=[date(2026, 1, 14)]
        )
        assert days == 4

    def test_half_day(self):
        day = date(2026, 1, 12)
        assert leave_balance.calculate_leave_days(day, day, True, "FIRST_HALF") == 0.5

    def test_half_day_over_several_days(self):
        with pytest.raises(BadRequestError):
            leave_balance.calculate_leave_days(date(2026, 1, 12), date(2026, 1, 13), True, "FIRST_HALF")

    def test_reversed_range(self):
        with pytest.raises(BadRequestError):
            leave_balance.calculate_leave_days(date(2026, 1, 13), date(2026, 1, 12))

    def test_weekend_only_range(self):
        with pytest.raises(BadRequestError):
            leave_balance.calculate_leave_days(date(2026, 1, 10), date(2026, 1, 11))


class TestBalanceLifecycle:
    def test_reserve_commit(self):
        balance = make_balance()
        leave_balance.reserve(balance, 3)
        assert balance.pending_days == 3
        assert leave_balance.available_days(balance) == 7

        leave_balance.commit(balance, 3)
        assert balance.pending_days == 0
        assert balance.used_days == 5
        assert leave_balance.available_days(balance) == 7

    def test_reserve_release(self):
        balance = make_balance()
        leave_balance.reserve(balance, 3)
        leave_balance.release(balance, 3)
        assert balance.pending_days == 0
        assert leave_balance.available_days(balance) == 10

    def test_insufficient(self):
        balance = make_balance(total=2, used=0)
        with pytest.raises(BadRequestError):
            leave_balance.reserve(balance, 3)
        assert balance.pending_days == 0

    def test_negative_allowed_for_unpaid(self):
        balance = make_balance(total=0, used=0)
        leave_balance.reserve(balance, 2, allow_negative=True)
        assert leave_balance.available_days(balance) == -2


class TestAccrual:
    def test_plain_credit(self):
        balance = make_balance(total=5, used=0)
        result = leave_balance.apply_accrual(balance, 1.5)
        assert result.days_accrued == 1.5
        assert balance.total_days == 6.5
        assert not result.cap_applied

    def test_cap_on_accrual(self):
        balance = make_balance(total=11.5, used=0)
        result = leave_balance.apply_accrual(balance, 1, max_cap=12)
        assert result.days_accrued == 0.5
        assert result.cap_applied
        assert balance.total_days == 12

    def test_at_cap_accrues_nothing(self):
        balance = make_balance(total=12, used=0)
        result = leave_balance.apply_accrual(balance, 1, max_cap=12)
        assert result.days_accrued == 0
        assert balance.total_days == 12

    def test_cap_deferred_to_year_end(self):
        balance = make_balance(total=12, used=0)
        leave_balance.apply_accrual(balance, 1, max_cap=12, apply_cap_on_accrual=False)
        assert balance.total_days == 13

        before, after = leave_balance.apply_year_end_cap(balance, 12)
        assert (before, after) == (13, 12)

    def test_year_end_cap_keeps_available_non_negative(self):
        balance = make_balance(total=20, used=15)
        leave_balance.apply_year_end_cap(balance, 12)
        assert balance.total_days == 15
        assert leave_balance.available_days(balance) == 0

    def test_carry_forward_limited(self):
        balance = make_balance(total=20, used=2)
        assert leave_balance.carry_forward_days(balance, 10) == 10
        assert leave_balance.carry_forward_days(balance, None) == 18
