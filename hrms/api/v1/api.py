from fastapi import APIRouter
from hrms.api.v1.endpoints.audit import audit
from hrms.api.v1.endpoints.auth import login
from hrms.api.v1.endpoints.expense import expenses
from hrms.api.v1.endpoints.hr import attendance, employees, holidays, regularizations
from hrms.api.v1.endpoints.leave import accrual, comp_off, leave
from hrms.api.v1.endpoints.onboarding import onboarding
from hrms.api.v1.endpoints.payroll import payroll, salary

api_router = APIRouter()

# Authentication routes
api_router.include_router(login.router, prefix="/auth", tags=["Authentication"])

# HR routes
api_router.include_router(employees.router, prefix="/employees", tags=["Human Resource"])
api_router.include_router(holidays.router, prefix="/holidays", tags=["Human Resource"])
# Must precede the attendance router, which declares "/{record_id}"
api_router.include_router(regularizations.router, prefix="/attendance/regularizations", tags=["Attendance"])
api_router.include_router(attendance.router, prefix="/attendance", tags=["Attendance"])

# Leave routes
api_router.include_router(comp_off.router, prefix="/leave/comp-off", tags=["Leave"])
api_router.include_router(accrual.router, prefix="/leave/accrual", tags=["Leave"])
api_router.include_router(leave.router, prefix="/leave", tags=["Leave"])

# Payroll routes
api_router.include_router(salary.router, prefix="/payroll/salary", tags=["Payroll"])
api_router.include_router(payroll.router, prefix="/payroll", tags=["Payroll"])

# Expense routes
api_router.include_router(expenses.router, prefix="/expenses", tags=["Expenses"])

# Onboarding routes
api_router.include_router(onboarding.router, prefix="/onboarding", tags=["Onboarding"])

# Audit routes
api_router.include_router(audit.router, prefix="/audit", tags=["Audit"])
