from decimal import Decimal

import pytest

from hrms.core.exceptions import ValidationError
from hrms.services.payroll.payroll_calculation import (
    compute_payslip,
    hourly_rate,
    overtime_pay,
    prorate_factor,
)

COMPONENTS = [
    {"name": "HRA", "type": "earning", "calc_type": "fixed", "value": 10000},
    {"name": "PF", "type": "deduction", "calc_type": "percentage", "value": 12},
]


class TestPayslip:
    def test_full_month(self):
        figures = compute_payslip(Decimal("50000"), COMPONENTS)
        assert figures.base_pay == Decimal("50000.00")
        assert figures.total_earnings == Decimal("10000.00")
        assert figures.total_deductions == Decimal("6000.00")
        assert figures.gross_pay == Decimal("60000.00")
        assert figures.net_pay == Decimal("54000.00")

    def test_percentage_follows_prorated_base(self):
        figures = compute_payslip(Decimal("50000"), COMPONENTS, prorate_factor=Decimal("0.5"))
        assert figures.base_pay == Decimal("25000.00")
        assert figures.earnings[0].amount == Decimal("5000.00")
        assert figures.deductions[0].amount == Decimal("3000.00")
        assert figures.net_pay == Decimal("27000.00")

    def test_ot_pay_counts_toward_gross(self):
        figures = compute_payslip(Decimal("1000"), [], ot_pay=Decimal("37.50"))
        assert figures.gross_pay == Decimal("1037.50")

    def test_invalid_component(self):
        with pytest.raises(ValidationError):
            compute_payslip(Decimal("1000"), [{"name": "X", "type": "bonus", "calc_type": "fixed", "value": 1}])

    def test_rounding_half_up(self):
        figures = compute_payslip(Decimal("333.33"), [{"name": "T", "type": "deduction", "calc_type": "percentage", "value": 1.5}])
        assert figures.deductions[0].amount == Decimal("5.00")


class TestRates:
    def test_prorate_factor(self):
        assert prorate_factor(10, 5, 20) == Decimal("0.75")
        assert prorate_factor(25, 0, 20) == Decimal("1")
        assert prorate_factor(0, 0, 20) == Decimal("0")
        assert prorate_factor(0, 0, 0) == Decimal("1")

    def test_hourly_rate(self):
        assert hourly_rate(Decimal("16000"), 20, 8) == Decimal("100")
        assert hourly_rate(Decimal("16000"), 20, 8, Decimal("25")) == Decimal("25")
        assert hourly_rate(Decimal("16000"), 0, 8) == Decimal("0")

    def test_overtime_pay(self):
        assert overtime_pay(90, Decimal("100"), 1.5) == Decimal("225.00")
        assert overtime_pay(0, Decimal("100"), 1.5) == Decimal("0.00")
