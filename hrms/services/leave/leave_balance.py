"""
Leave balance bookkeeping.

Every function mutates a LeaveBalance-like object (anything with
total_days, carried_over, used_days and pending_days attributes) in place.
Callers own the transaction.
"""
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Tuple

from hrms.core.exceptions import BadRequestError
from hrms.utils.date_utils import count_weekdays

HALF_DAY_VALUE = 0.5


def available_days(balance) -> float:
    return (
        (balance.total_days or 0)
        + (balance.carried_over or 0)
        - (balance.used_days or 0)
        - (balance.pending_days or 0)
    )


def calculate_leave_days(
    start_date: date,
    end_date: date,
    is_half_day: bool = False,
    half_day_period: Optional[str] = None,
    holidays: Optional[Iterable[date]] = None,
) -> float:
    """Number of leave days a request consumes (weekends excluded)"""
    if start_date > end_date:
        raise BadRequestError("Start date must be before or equal to end date")

    if is_half_day:
        if start_date != end_date:
            raise BadRequestError("Half day leave must be for a single day")
        if not half_day_period:
            raise BadRequestError("Half day period is required for half day leave")
        return HALF_DAY_VALUE

    days = count_weekdays(start_date, end_date, holidays)
    if days == 0:
        raise BadRequestError("Leave request does not cover any working day")
    return float(days)


def ensure_sufficient(balance, days: float, allow_negative: bool = False) -> None:
    if allow_negative:
        return
    available = available_days(balance)
    if days > available:
        raise BadRequestError(f"Insufficient leave balance. Available: {available}, Requested: {days}")


def reserve(balance, days: float, allow_negative: bool = False) -> None:
    """A new request holds its days as pending"""
    ensure_sufficient(balance, days, allow_negative)
    balance.pending_days = (balance.pending_days or 0) + days


def commit(balance, days: float) -> None:
    """Approval moves the held days from pending to used"""
    balance.pending_days = max(0, (balance.pending_days or 0) - days)
    balance.used_days = (balance.used_days or 0) + days


def release(balance, days: float) -> None:
    """Rejection or cancellation gives the held days back"""
    balance.pending_days = max(0, (balance.pending_days or 0) - days)


def credit(balance, days: float) -> None:
    balance.total_days = (balance.total_days or 0) + days


@dataclass
class AccrualResult:
    days_accrued: float
    balance_before: float
    balance_after: float
    cap_applied: bool


def apply_accrual(
    balance,
    monthly_days: float,
    max_cap: Optional[float] = None,
    apply_cap_on_accrual: bool = True,
) -> AccrualResult:
    """Credit one month of accrual, honouring the cap when it applies at accrual time.

    A zero result means the balance is already at the cap; the caller skips it.
    """
    before = balance.total_days or 0
    days = monthly_days
    cap_applied = False

    if apply_cap_on_accrual and max_cap is not None:
        headroom = max(0, max_cap - before)
        if days > headroom:
            days = headroom
            cap_applied = True

    if days > 0:
        credit(balance, days)

    return AccrualResult(
        days_accrued=days,
        balance_before=before,
        balance_after=balance.total_days or 0,
        cap_applied=cap_applied,
    )


def apply_year_end_cap(balance, max_cap: float) -> Tuple[float, float]:
    """Clamp total_days to the cap without pushing available below zero.

    Returns (before, after).
    """
    before = balance.total_days or 0
    floor = (balance.used_days or 0) + (balance.pending_days or 0) - (balance.carried_over or 0)
    after = max(min(before, max_cap), floor, 0)
    balance.total_days = after
    return before, after


def carry_forward_days(balance, max_carry_forward: Optional[float]) -> float:
    """Days that move into next year's carried_over"""
    available = max(0, available_days(balance))
    if max_carry_forward is None:
        return available
    return min(available, max_carry_forward)
