"""
Payslip arithmetic.

Amounts are Decimal and rounded half-up to two places. Percentage
components are computed against the (pro-rated) base pay, never gross.
"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional

from hrms.core.exceptions import ValidationError
from hrms.models.shared.enums import ComponentType, CalcType

TWO_PLACES = Decimal("0.01")
HUNDRED = Decimal("100")


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def money(value: Any) -> Decimal:
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


@dataclass
class PayComponent:
    name: str
    type: ComponentType
    calc_type: CalcType
    value: Decimal

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PayComponent":
        try:
            return cls(
                name=data["name"],
                type=ComponentType(data["type"]),
                calc_type=CalcType(data.get("calc_type") or data.get("calcType")),
                value=to_decimal(data["value"]),
            )
        except (KeyError, ValueError) as e:
            raise ValidationError(f"Invalid salary component {data!r}: {e}")


@dataclass
class ComponentLine:
    name: str
    amount: Decimal

    def as_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "amount": float(self.amount)}


@dataclass
class PayslipFigures:
    base_pay: Decimal
    earnings: List[ComponentLine] = field(default_factory=list)
    deductions: List[ComponentLine] = field(default_factory=list)
    ot_pay: Decimal = Decimal("0.00")

    @property
    def total_earnings(self) -> Decimal:
        return sum((line.amount for line in self.earnings), Decimal("0.00"))

    @property
    def total_deductions(self) -> Decimal:
        return sum((line.amount for line in self.deductions), Decimal("0.00"))

    @property
    def gross_pay(self) -> Decimal:
        return money(self.base_pay + self.total_earnings + self.ot_pay)

    @property
    def net_pay(self) -> Decimal:
        return money(self.gross_pay - self.total_deductions)


def component_amount(component: PayComponent, base_pay: Decimal, prorate_factor: Decimal = Decimal("1")) -> Decimal:
    if component.calc_type == CalcType.PERCENTAGE:
        return money(base_pay * component.value / HUNDRED)
    return money(component.value * prorate_factor)


def compute_payslip(
    base_pay: Any,
    components: Iterable[Any],
    ot_pay: Any = 0,
    prorate_factor: Any = 1,
) -> PayslipFigures:
    """Split components into earnings and deductions and total them.

    With a pro-rate factor below one, base pay and fixed components are
    scaled; percentage components follow the scaled base.
    """
    factor = to_decimal(prorate_factor)
    prorated_base = money(to_decimal(base_pay) * factor)

    figures = PayslipFigures(base_pay=prorated_base, ot_pay=money(ot_pay))
    for raw in components:
        component = raw if isinstance(raw, PayComponent) else PayComponent.from_dict(raw)
        line = ComponentLine(component.name, component_amount(component, prorated_base, factor))
        if component.type == ComponentType.EARNING:
            figures.earnings.append(line)
        else:
            figures.deductions.append(line)
    return figures


def prorate_factor(present_days: float, paid_leave_days: float, working_days: float) -> Decimal:
    if working_days <= 0:
        return Decimal("1")
    payable = min(present_days + paid_leave_days, working_days)
    return to_decimal(payable) / to_decimal(working_days)


def hourly_rate(
    base_pay: Any,
    working_days: float,
    hours_per_day: int,
    employee_hourly_rate: Optional[Any] = None,
) -> Decimal:
    """Own rate for hourly staff; otherwise base pay spread over the month's working hours"""
    if employee_hourly_rate is not None:
        return to_decimal(employee_hourly_rate)
    if working_days <= 0:
        return Decimal("0")
    return to_decimal(base_pay) / (to_decimal(working_days) * hours_per_day)


def overtime_pay(approved_ot_minutes: int, rate: Any, multiplier: Any) -> Decimal:
    if not approved_ot_minutes:
        return Decimal("0.00")
    hours = to_decimal(approved_ot_minutes) / Decimal("60")
    return money(hours * to_decimal(rate) * to_decimal(multiplier))
