import pytest

from hrms.core.exceptions import InvalidTransitionError
from hrms.models.shared.enums import ExpenseStatus, LeaveStatus, OnboardingTaskStatus, PayrollStatus
from hrms.services.shared.status_transitions import (
    EXPENSE_TRANSITIONS,
    LEAVE_TRANSITIONS,
    ONBOARDING_TASK_TRANSITIONS,
    PAYROLL_TRANSITIONS,
    can_transition,
    ensure_transition,
    is_terminal,
)


class TestTransitions:
    def test_leave_pending_only(self):
        assert can_transition(LEAVE_TRANSITIONS, LeaveStatus.PENDING, LeaveStatus.APPROVED)
        assert not can_transition(LEAVE_TRANSITIONS, LeaveStatus.APPROVED, LeaveStatus.APPROVED)
        assert not can_transition(LEAVE_TRANSITIONS, LeaveStatus.REJECTED, LeaveStatus.CANCELLED)

    def test_expense_chain(self):
        path = [ExpenseStatus.DRAFT, ExpenseStatus.SUBMITTED, ExpenseStatus.APPROVED, ExpenseStatus.REIMBURSED]
        for current, target in zip(path, path[1:]):
            ensure_transition(EXPENSE_TRANSITIONS, "expense claim", current, target)
        assert is_terminal(EXPENSE_TRANSITIONS, ExpenseStatus.REIMBURSED)
        assert is_terminal(EXPENSE_TRANSITIONS, ExpenseStatus.REJECTED)

    def test_payroll_cannot_skip_compute(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            ensure_transition(PAYROLL_TRANSITIONS, "payroll run", PayrollStatus.DRAFT, PayrollStatus.APPROVED)
        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Cannot move payroll run from DRAFT to APPROVED"

    def test_task_must_start_before_completion(self):
        assert not can_transition(
            ONBOARDING_TASK_TRANSITIONS, OnboardingTaskStatus.PENDING, OnboardingTaskStatus.COMPLETED
        )
        assert can_transition(
            ONBOARDING_TASK_TRANSITIONS, OnboardingTaskStatus.IN_PROGRESS, OnboardingTaskStatus.COMPLETED
        )
