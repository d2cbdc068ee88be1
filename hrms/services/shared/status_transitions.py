"""
Allowed status transitions for every approval-style workflow.
"""
from typing import Dict, FrozenSet

from hrms.core.exceptions import InvalidTransitionError
from hrms.models.shared.enums import (
    RequestStatus,
    LeaveStatus,
    ExpenseStatus,
    OnboardingTaskStatus,
    OnboardingStatus,
    PayrollStatus,
)

TransitionTable = Dict[str, FrozenSet[str]]

LEAVE_TRANSITIONS: TransitionTable = {
    LeaveStatus.PENDING: frozenset({LeaveStatus.APPROVED, LeaveStatus.REJECTED, LeaveStatus.CANCELLED}),
}

REQUEST_TRANSITIONS: TransitionTable = {
    RequestStatus.PENDING: frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED}),
}

EXPENSE_TRANSITIONS: TransitionTable = {
    ExpenseStatus.DRAFT: frozenset({ExpenseStatus.SUBMITTED}),
    ExpenseStatus.SUBMITTED: frozenset({ExpenseStatus.APPROVED, ExpenseStatus.REJECTED}),
    ExpenseStatus.APPROVED: frozenset({ExpenseStatus.REIMBURSED}),
}

ONBOARDING_TASK_TRANSITIONS: TransitionTable = {
    OnboardingTaskStatus.PENDING: frozenset({OnboardingTaskStatus.IN_PROGRESS, OnboardingTaskStatus.SKIPPED}),
    OnboardingTaskStatus.IN_PROGRESS: frozenset({OnboardingTaskStatus.COMPLETED, OnboardingTaskStatus.SKIPPED}),
}

ONBOARDING_PROCESS_TRANSITIONS: TransitionTable = {
    OnboardingStatus.NOT_STARTED: frozenset(
        {OnboardingStatus.IN_PROGRESS, OnboardingStatus.COMPLETED, OnboardingStatus.CANCELLED}
    ),
    OnboardingStatus.IN_PROGRESS: frozenset({OnboardingStatus.COMPLETED, OnboardingStatus.CANCELLED}),
}

PAYROLL_TRANSITIONS: TransitionTable = {
    PayrollStatus.DRAFT: frozenset({PayrollStatus.PROCESSING}),
    PayrollStatus.PROCESSING: frozenset({PayrollStatus.COMPUTED, PayrollStatus.DRAFT}),
    PayrollStatus.COMPUTED: frozenset({PayrollStatus.APPROVED}),
    PayrollStatus.APPROVED: frozenset({PayrollStatus.PAID}),
}


def can_transition(table: TransitionTable, current: str, target: str) -> bool:
    return target in table.get(current, frozenset())


def ensure_transition(table: TransitionTable, entity: str, current: str, target: str) -> None:
    """Raise InvalidTransitionError (HTTP 400) unless current -> target is allowed"""
    if not can_transition(table, current, target):
        raise InvalidTransitionError(entity, _label(current), _label(target))


def is_terminal(table: TransitionTable, status: str) -> bool:
    return not table.get(status)


def _label(status) -> str:
    return getattr(status, "value", status)
