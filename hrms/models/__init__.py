from hrms.models.organization.tenant import Tenant
from hrms.models.organization.department import Department
from hrms.models.auth.user import User
from hrms.models.auth.audit_log import AuditLog
from hrms.models.hr.employee import Employee
from hrms.models.hr.holiday import Holiday
from hrms.models.hr.attendance import AttendanceRecord
from hrms.models.hr.ot_rule import OtRule
from hrms.models.hr.regularization import AttendanceRegularization
from hrms.models.leave.leave_type import LeaveType
from hrms.models.leave.leave_balance import LeaveBalance
from hrms.models.leave.leave_request import LeaveRequest
from hrms.models.leave.comp_off import CompOffRequest
from hrms.models.leave.accrual import LeaveAccrualRule, LeaveAccrualRun, LeaveAccrualEntry
from hrms.models.payroll.salary_structure import SalaryStructure
from hrms.models.payroll.employee_salary import EmployeeSalary
from hrms.models.payroll.payroll_run import PayrollRun
from hrms.models.payroll.payslip import Payslip
from hrms.models.expense.expense_category import ExpenseCategory
from hrms.models.expense.expense_claim import ExpenseClaim
from hrms.models.onboarding.template import OnboardingTemplate
from hrms.models.onboarding.process import OnboardingProcess
from hrms.models.onboarding.task import OnboardingTask
