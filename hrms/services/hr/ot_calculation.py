"""
Worked-time and overtime arithmetic.

Pure functions; the attendance service feeds them timestamps from the
database and stores the results on the attendance record.
"""
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from hrms.core.config import settings
from hrms.core.exceptions import BadRequestError, InvalidClockTimesError
from hrms.utils.date_utils import ensure_utc


@dataclass
class OtPolicy:
    """Subset of an OT rule used by the calculator"""
    daily_threshold_minutes: Optional[int] = None
    rounding_interval_minutes: int = 0
    max_ot_per_day_minutes: Optional[int] = None

    @classmethod
    def from_rule(cls, rule) -> Optional["OtPolicy"]:
        if rule is None:
            return None
        return cls(
            daily_threshold_minutes=rule.daily_threshold_minutes,
            rounding_interval_minutes=rule.rounding_interval_minutes or 0,
            max_ot_per_day_minutes=rule.max_ot_per_day_minutes,
        )


@dataclass
class WorkedTime:
    worked_minutes: int
    ot_minutes: int
    break_minutes: int


def calculate_worked_minutes(
    clock_in: Optional[datetime],
    clock_out: Optional[datetime],
    break_minutes: int = settings.DEFAULT_BREAK_MINUTES,
) -> int:
    """Minutes between clock-in and clock-out minus the unpaid break.

    Returns 0 while the employee is still clocked in. A clock-out earlier
    than the clock-in is rejected instead of producing negative time.
    """
    if clock_in is None or clock_out is None:
        return 0

    clock_in = ensure_utc(clock_in)
    clock_out = ensure_utc(clock_out)
    if clock_out < clock_in:
        raise InvalidClockTimesError()

    elapsed = math.floor((clock_out - clock_in).total_seconds() / 60)
    return max(0, elapsed - break_minutes)


def round_to_interval(minutes: int, interval: int) -> int:
    """Round to the nearest interval; exactly half an interval rounds up"""
    if not interval or interval <= 0:
        return minutes
    remainder = minutes % interval
    if remainder * 2 >= interval:
        return minutes - remainder + interval
    return minutes - remainder


def calculate_ot_minutes(
    worked_minutes: int,
    standard_work_minutes: int = settings.STANDARD_WORK_MINUTES,
    policy: Optional[OtPolicy] = None,
) -> int:
    if policy is None:
        return max(0, worked_minutes - standard_work_minutes)

    threshold = policy.daily_threshold_minutes or standard_work_minutes
    ot_minutes = max(0, worked_minutes - threshold)
    ot_minutes = round_to_interval(ot_minutes, policy.rounding_interval_minutes)

    if policy.max_ot_per_day_minutes is not None:
        ot_minutes = min(ot_minutes, policy.max_ot_per_day_minutes)

    return ot_minutes


def calculate_worked_time(
    clock_in: Optional[datetime],
    clock_out: Optional[datetime],
    standard_work_minutes: int = settings.STANDARD_WORK_MINUTES,
    policy: Optional[OtPolicy] = None,
    break_minutes: int = settings.DEFAULT_BREAK_MINUTES,
) -> WorkedTime:
    """Worked and overtime minutes for one attendance day"""
    if clock_in is None or clock_out is None:
        return WorkedTime(worked_minutes=0, ot_minutes=0, break_minutes=0)

    worked = calculate_worked_minutes(clock_in, clock_out, break_minutes)
    return WorkedTime(
        worked_minutes=worked,
        ot_minutes=calculate_ot_minutes(worked, standard_work_minutes, policy),
        break_minutes=break_minutes,
    )


def validate_ot_approval(approved_minutes: int, calculated_minutes: int) -> None:
    """Approved OT must lie within [0, calculated]"""
    if approved_minutes < 0:
        raise BadRequestError("Approved OT minutes cannot be negative")
    if approved_minutes > (calculated_minutes or 0):
        raise BadRequestError(
            f"Approved OT minutes ({approved_minutes}) cannot exceed calculated OT minutes ({calculated_minutes or 0})"
        )
